# projections/income_floor.py
#
# Safety-first check: does guaranteed income (Social Security, pensions,
# annuities) cover essential expenses through retirement?
#

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from models import ProjectionInput
from projections.income_calculator import calculate_guaranteed_income, has_guaranteed_income
from projections.spending import calculate_phase_adjusted_expenses

FULL_COVERAGE_RATIO = 1.0

COVERAGE_STATUSES = ("fully-covered", "partial", "insufficient")


@dataclass(frozen=True)
class YearlyCoverage:
    age: int
    year: Optional[int]
    guaranteed_income: float
    essential_expenses: float
    coverage_ratio: float
    is_fully_covered: bool
    status: str


@dataclass(frozen=True)
class IncomeFloorAnalysis:
    guaranteed_income_at_retirement: float
    essential_expenses_at_retirement: float
    coverage_ratio_at_retirement: float
    is_floor_established: bool
    floor_established_age: Optional[int]
    status: str
    coverage_by_age: Tuple[YearlyCoverage, ...]
    insight_statement: str


def _coverage_ratio(income: float, essentials: float) -> float:
    if essentials > 0:
        return income / essentials
    return math.inf if income > 0 else 1.0


def _coverage_status(ratio: float, guaranteed_income_pending: bool) -> str:
    if ratio >= FULL_COVERAGE_RATIO:
        return "fully-covered"
    if ratio > 0 or guaranteed_income_pending:
        return "partial"
    return "insufficient"


def _insight_statement(
    status: str, ratio: float, floor_age: Optional[int], retirement_age: int
) -> str:
    percent = round(ratio * 100) if math.isfinite(ratio) else 100

    if status == "fully-covered":
        if floor_age == retirement_age:
            return "Your essential lifestyle is fully covered by guaranteed income from retirement."
        return f"Your essential lifestyle is fully covered by guaranteed income starting at age {floor_age}."

    if status == "partial":
        statement = f"Guaranteed income covers {percent}% of essential expenses at retirement."
        if floor_age is not None:
            statement += f" Full coverage begins at age {floor_age}."
        return statement

    return (
        "Essential expenses exceed guaranteed income throughout retirement. "
        f"Guaranteed income covers {percent}% of essential expenses."
    )


def calculate_income_floor(inputs: ProjectionInput) -> Optional[IncomeFloorAnalysis]:
    """
    Year-by-year coverage of inflated, phase-adjusted essential expenses by
    guaranteed income, from retirement age through max age.

    Returns None when there is no guaranteed income stream or no essential
    spending to cover.
    """
    if not has_guaranteed_income(inputs.income_streams) or inputs.essential_expenses <= 0:
        return None

    guaranteed_streams = [s for s in inputs.income_streams if s.is_guaranteed]
    coverage = []
    floor_age = None

    for age in range(inputs.retirement_age, inputs.max_age + 1):
        inflation_multiplier = (1 + inputs.inflation_rate) ** (age - inputs.retirement_age)
        phase = calculate_phase_adjusted_expenses(
            age,
            inputs.essential_expenses,
            inputs.discretionary_expenses,
            inputs.spending_phase_config,
        )
        essentials = phase.essential * inflation_multiplier
        income = calculate_guaranteed_income(guaranteed_streams, age, inputs.inflation_rate)
        ratio = _coverage_ratio(income, essentials)

        # Income that has not started yet still counts toward a partial floor
        pending = any(s.start_age > age for s in guaranteed_streams)
        status = _coverage_status(ratio, pending)
        if status == "fully-covered" and floor_age is None:
            floor_age = age

        year = None
        if inputs.start_year is not None:
            year = inputs.start_year + (age - inputs.current_age)

        coverage.append(YearlyCoverage(
            age=age,
            year=year,
            guaranteed_income=round(income, 2),
            essential_expenses=round(essentials, 2),
            coverage_ratio=round(ratio, 3) if math.isfinite(ratio) else ratio,
            is_fully_covered=status == "fully-covered",
            status=status,
        ))

    at_retirement = coverage[0]
    ratio_at_retirement = _coverage_ratio(
        at_retirement.guaranteed_income, at_retirement.essential_expenses
    )

    return IncomeFloorAnalysis(
        guaranteed_income_at_retirement=at_retirement.guaranteed_income,
        essential_expenses_at_retirement=at_retirement.essential_expenses,
        coverage_ratio_at_retirement=(
            round(ratio_at_retirement, 3) if math.isfinite(ratio_at_retirement) else ratio_at_retirement
        ),
        is_floor_established=floor_age is not None,
        floor_established_age=floor_age,
        status=at_retirement.status,
        coverage_by_age=tuple(coverage),
        insight_statement=_insight_statement(
            at_retirement.status, ratio_at_retirement, floor_age, inputs.retirement_age
        ),
    )
