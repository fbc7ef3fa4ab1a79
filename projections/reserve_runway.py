# projections/reserve_runway.py
#
# How long a protected reserve could carry spending on its own
#

import math
from dataclasses import dataclass
from typing import Iterable, Union

from config.projection_assumptions import default_inflation_rate, reserve_runway_max_years
from models import IncomeStream

# Guaranteed income covers the gap; no finite year count applies
UNLIMITED_RUNWAY = "unlimited"

Runway = Union[int, str]


@dataclass(frozen=True)
class ReserveRunwayResult:
    years_of_essentials: Runway
    years_of_full_spending: Runway
    description: str


def is_unlimited(runway: Runway) -> bool:
    return runway == UNLIMITED_RUNWAY


def _inflation_adjusted_years(reserve: float, annual_need: float, inflation_rate: float) -> int:
    remaining = reserve
    years = 0
    need = annual_need
    while remaining > 0 and years < reserve_runway_max_years:
        remaining -= need
        need *= 1 + inflation_rate
        years += 1
    return years


def _describe(years_of_essentials: Runway) -> str:
    if is_unlimited(years_of_essentials):
        return "Guaranteed income covers all essential expenses"
    if years_of_essentials >= 30:
        return "Reserve provides 30+ years of essential expense coverage"
    if years_of_essentials >= 10:
        return f"Reserve covers ~{years_of_essentials} years of essential expenses"
    if years_of_essentials >= 1:
        return (
            f"Reserve covers {years_of_essentials} year{'s' if years_of_essentials >= 2 else ''} "
            f"of essential expenses"
        )
    return "Reserve covers less than a year of essential expenses"


def calculate_reserve_runway(
    reserve_amount: float,
    annual_essential_expenses: float,
    annual_discretionary_expenses: float,
    guaranteed_annual_income: float,
    inflation_rate: float = default_inflation_rate,
) -> ReserveRunwayResult:
    """
    Years the reserve covers the essential gap (essentials not met by
    guaranteed income) and the full spending gap, with the need inflated
    each year and the count capped at reserve_runway_max_years.

    A gap of zero yields UNLIMITED_RUNWAY instead of a number.
    """
    essential_gap = max(0.0, annual_essential_expenses - guaranteed_annual_income)
    full_gap = essential_gap + max(0.0, annual_discretionary_expenses)
    reserve_amount = max(0.0, reserve_amount if math.isfinite(reserve_amount) else 0.0)

    years_of_essentials: Runway = UNLIMITED_RUNWAY
    if essential_gap > 0:
        years_of_essentials = _inflation_adjusted_years(reserve_amount, essential_gap, inflation_rate)

    years_of_full_spending: Runway = UNLIMITED_RUNWAY
    if full_gap > 0:
        years_of_full_spending = _inflation_adjusted_years(reserve_amount, full_gap, inflation_rate)

    return ReserveRunwayResult(
        years_of_essentials=years_of_essentials,
        years_of_full_spending=years_of_full_spending,
        description=_describe(years_of_essentials),
    )


def calculate_guaranteed_income_total(streams: Iterable[IncomeStream]) -> float:
    """Nominal annual total of guaranteed streams, ignoring start ages."""
    return sum(s.annual_amount for s in streams if s.is_guaranteed)
