# projections/spending_comparison.py
#
# Flat vs phased retirement spending, run side by side
#

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from models import ProjectionInput, ProjectionResult
from projections.simulator import run_projection

DEFAULT_EARLY_YEARS_COUNT = 10
# Cumulative totals this close count as having met
BREAK_EVEN_TOLERANCE = 100.0


@dataclass(frozen=True)
class YearlySpending:
    age: int
    amount: float
    phase: Optional[str] = None


@dataclass(frozen=True)
class StrategySpending:
    total_lifetime_spending: float
    portfolio_depletion_age: Optional[int]
    ending_balance: float
    yearly_spending: Tuple[YearlySpending, ...]


@dataclass(frozen=True)
class SpendingComparison:
    flat_spending: StrategySpending
    phased_spending: StrategySpending
    early_years_bonus: float
    early_years_count: int
    break_even_age: Optional[int]
    longevity_difference: int


def _retirement_outflows(result: ProjectionResult, retirement_age: int):
    return [r for r in result.records if r.age >= retirement_age]


def _strategy_spending(result: ProjectionResult, retirement_age: int) -> StrategySpending:
    records = _retirement_outflows(result, retirement_age)
    return StrategySpending(
        total_lifetime_spending=sum(r.outflows for r in records),
        portfolio_depletion_age=result.summary.depletion_age,
        ending_balance=result.summary.ending_balance,
        yearly_spending=tuple(
            YearlySpending(age=r.age, amount=round(r.outflows, 2), phase=r.active_phase_name)
            for r in records
        ),
    )


def _early_years_spending(result: ProjectionResult, retirement_age: int, years: int) -> float:
    return sum(
        r.outflows for r in result.records
        if retirement_age <= r.age < retirement_age + years
    )


def _break_even_age(flat: ProjectionResult, phased: ProjectionResult, retirement_age: int) -> Optional[int]:
    """First age where cumulative phased spending crosses (or meets) cumulative flat spending."""
    flat_total = 0.0
    phased_total = 0.0
    flat_records = _retirement_outflows(flat, retirement_age)
    phased_records = _retirement_outflows(phased, retirement_age)

    for i, (f, p) in enumerate(zip(flat_records, phased_records)):
        previous_diff = phased_total - flat_total
        flat_total += f.outflows
        phased_total += p.outflows
        diff = phased_total - flat_total

        if (previous_diff > 0 and diff <= 0) or (previous_diff < 0 and diff >= 0):
            return f.age
        if i > 0 and abs(diff) < BREAK_EVEN_TOLERANCE:
            return f.age
    return None


def _longevity_difference(inputs: ProjectionInput, flat_age: Optional[int], phased_age: Optional[int]) -> int:
    """Extra years the phased plan lasts; a plan that never depletes counts as lasting to max age."""
    if flat_age is not None and phased_age is not None:
        return phased_age - flat_age
    if flat_age is not None:
        return inputs.max_age - flat_age
    if phased_age is not None:
        return -(inputs.max_age - phased_age)
    return 0


def calculate_spending_comparison(
    inputs: ProjectionInput, early_years_count: int = DEFAULT_EARLY_YEARS_COUNT
) -> SpendingComparison:
    """
    Runs the plan twice, once with phases removed and once as configured,
    and compares spending over retirement.

    early_years_bonus is the extra (or, if negative, reduced) spending the
    phased plan allows over the first `early_years_count` retirement years.
    """
    flat = run_projection(replace(inputs, spending_phase_config=None))
    phased = run_projection(inputs)

    flat_spending = _strategy_spending(flat, inputs.retirement_age)
    phased_spending = _strategy_spending(phased, inputs.retirement_age)

    early_bonus = (
        _early_years_spending(phased, inputs.retirement_age, early_years_count)
        - _early_years_spending(flat, inputs.retirement_age, early_years_count)
    )

    return SpendingComparison(
        flat_spending=flat_spending,
        phased_spending=phased_spending,
        early_years_bonus=early_bonus,
        early_years_count=early_years_count,
        break_even_age=_break_even_age(flat, phased, inputs.retirement_age),
        longevity_difference=_longevity_difference(
            inputs, flat_spending.portfolio_depletion_age, phased_spending.portfolio_depletion_age
        ),
    )
