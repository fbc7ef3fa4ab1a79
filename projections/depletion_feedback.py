# projections/depletion_feedback.py
#
# Sustainable spending for a "spend X% of the portfolio by age Y" goal, found
# by rerunning the projection rather than with a closed-form annuity.
#

import logging
from dataclasses import dataclass, replace
from typing import Optional, Sequence, Tuple

from config.projection_assumptions import (
    sustainable_spending_iterations,
    trajectory_tolerance_band,
)
from models import DepletionTarget, ProjectionInput, ProjectionRecord, SpendingPhaseConfig
from projections.simulator import run_projection
from projections.spending import calculate_phase_adjusted_expenses, phase_periods
from utils.currency import format_dollars

logger = logging.getLogger(__name__)

TRAJECTORY_STATUSES = ("on_track", "underspending", "overspending")

# Upper search bound doubles until the plan misses its reserve
MAX_BRACKET_DOUBLINGS = 60


@dataclass(frozen=True)
class PhaseSpendingBreakdown:
    phase_name: str
    start_age: int
    end_age: int
    annual_spending: float
    monthly_spending: float
    years_in_phase: int


@dataclass(frozen=True)
class DepletionFeedback:
    enabled: bool
    sustainable_annual_spending: float
    sustainable_monthly_spending: float
    planned_annual_spending: float
    trajectory_status: str
    status_message: str
    warning_messages: Tuple[str, ...] = ()
    phase_breakdown: Optional[Tuple[PhaseSpendingBreakdown, ...]] = None
    projected_reserve_at_target: float = 0.0
    projected_depletion_age: Optional[int] = None
    reserve_amount: float = 0.0
    reserve_purposes: Tuple[str, ...] = ()
    target_age: Optional[int] = None


def calculate_reserve_amount(target: DepletionTarget, portfolio_value: float) -> float:
    """
    Dollar amount to protect at the target age.

    derived    : whatever the spend-down percentage leaves unspent
    percentage : reserve.amount percent of the portfolio
    absolute   : reserve.amount dollars, capped at the portfolio
    """
    portfolio_value = max(0.0, portfolio_value)
    unspent_percent = 100.0 - target.target_percentage_spent
    reserve = target.reserve

    if reserve is None or reserve.type == "derived":
        amount = portfolio_value * unspent_percent / 100.0
    elif reserve.type == "percentage":
        percent = reserve.amount if reserve.amount is not None else unspent_percent
        amount = portfolio_value * percent / 100.0
    elif reserve.type == "absolute":
        amount = min(reserve.amount or 0.0, portfolio_value)
    else:
        raise ValueError(f"Unknown reserve type '{reserve.type}'")

    return max(0.0, amount)


def _disabled_feedback(message: str, target_age: Optional[int] = None) -> DepletionFeedback:
    return DepletionFeedback(
        enabled=False,
        sustainable_annual_spending=0.0,
        sustainable_monthly_spending=0.0,
        planned_annual_spending=0.0,
        trajectory_status="on_track",
        status_message=message,
        target_age=target_age,
    )


# =============================================================================
# SUSTAINABLE SPENDING SEARCH
# =============================================================================

def _scaled_phase_config(config: Optional[SpendingPhaseConfig], factor: Optional[float]):
    """
    Phase dollar overrides move with base spending. With no base to scale
    from (factor None) the overrides are dropped and the multipliers apply.
    """
    if config is None:
        return None
    phases = []
    for phase in config.phases:
        overrides = {}
        for name in ("absolute_essential", "absolute_discretionary"):
            amount = getattr(phase, name)
            if amount is not None:
                overrides[name] = amount * factor if factor is not None else None
        phases.append(replace(phase, **overrides))
    return replace(config, phases=tuple(phases))


def _with_base_spending(inputs: ProjectionInput, base_spending: float) -> ProjectionInput:
    """Same plan with base spending rescaled, keeping the essential/discretionary mix."""
    total = inputs.total_base_expenses
    essential_share = inputs.essential_expenses / total if total > 0 else 1.0
    factor = base_spending / total if total > 0 else None
    return replace(
        inputs,
        annual_expenses=base_spending,
        annual_essential_expenses=base_spending * essential_share,
        annual_discretionary_expenses=base_spending * (1 - essential_share),
        spending_phase_config=_scaled_phase_config(inputs.spending_phase_config, factor),
        reserve_floor=None,
    )


def _balance_at(records: Sequence[ProjectionRecord], age: int) -> float:
    for record in records:
        if record.age == age:
            return record.balance
    return records[-1].balance


def _balance_at_target(inputs: ProjectionInput, base_spending: float, target_age: int) -> float:
    result = run_projection(_with_base_spending(inputs, base_spending))
    return _balance_at(result.records, target_age)


def find_sustainable_spending(inputs: ProjectionInput, target_age: int, reserve: float) -> float:
    """
    Largest base (today's dollars) annual spending that still leaves `reserve`
    in the portfolio at `target_age`, by bisection over projection runs.
    """
    unspent_balance = _balance_at_target(inputs, 0.0, target_age)
    if unspent_balance <= reserve:
        return 0.0

    low = 0.0
    high = max(1000.0, inputs.total_base_expenses)
    for _ in range(MAX_BRACKET_DOUBLINGS):
        balance = _balance_at_target(inputs, high, target_age)
        if balance <= reserve:
            break
        if balance >= unspent_balance:
            logger.warning(
                f"Base spending has no effect on the balance at age {target_age}; "
                f"keeping planned spending of {inputs.total_base_expenses:,.0f}"
            )
            return inputs.total_base_expenses
        low = high
        high *= 2

    for _ in range(sustainable_spending_iterations):
        mid = (low + high) / 2
        if _balance_at_target(inputs, mid, target_age) > reserve:
            low = mid
        else:
            high = mid

    return low


# =============================================================================
# CLASSIFICATION / MESSAGES
# =============================================================================

def assess_trajectory_status(
    sustainable_annual: float,
    planned_annual: float,
    tolerance_band: float = trajectory_tolerance_band,
) -> str:
    if sustainable_annual <= 0:
        return "overspending" if planned_annual > 0 else "on_track"

    ratio = planned_annual / sustainable_annual
    if ratio <= 1 - tolerance_band:
        return "underspending"
    if ratio >= 1 + tolerance_band:
        return "overspending"
    return "on_track"


def _status_message(status: str, target: DepletionTarget, target_age: int) -> str:
    if status == "on_track":
        return (
            f"You're on track to spend {target.target_percentage_spent:g}% "
            f"of your portfolio by age {target_age}."
        )
    if status == "underspending":
        return (
            "You're spending below your sustainable rate. "
            "You could enjoy more now while still meeting your goals."
        )
    return (
        "Your current spending exceeds what's sustainable for your depletion target. "
        "Consider adjustments to stay on track."
    )


def _warning_messages(
    status: str,
    planned: float,
    sustainable: float,
    projected_reserve: float,
    reserve: float,
    depletion_age: Optional[int],
    target_age: int,
) -> Tuple[str, ...]:
    warnings = []

    if status == "overspending" and sustainable > 0:
        overage_percent = round((planned - sustainable) / sustainable * 100)
        warnings.append(
            f"Current spending exceeds sustainable rate by {overage_percent}%. "
            f"Consider reducing to {format_dollars(sustainable / 12)}/month."
        )

    if status == "underspending" and planned > 0:
        extra_monthly = (sustainable - planned) / 12
        warnings.append(
            f"You could enjoy {format_dollars(extra_monthly)}/month more without risking your goals!"
        )

    if projected_reserve < reserve:
        warnings.append(
            f"Current trajectory shows reserve shortfall of "
            f"{format_dollars(reserve - projected_reserve)} at age {target_age}."
        )

    if depletion_age is not None and depletion_age < target_age:
        warnings.append(
            f"Warning: Portfolio depletes at age {depletion_age}, "
            f"before reaching your target age {target_age}."
        )

    return tuple(warnings)


def _phase_breakdown(
    inputs: ProjectionInput, sustainable: float, target_age: int
) -> Tuple[PhaseSpendingBreakdown, ...]:
    sustainable_inputs = _with_base_spending(inputs, sustainable)
    breakdown = []
    for phase, start, end, years in phase_periods(
        inputs.spending_phase_config, inputs.retirement_age, target_age
    ):
        adjusted = calculate_phase_adjusted_expenses(
            start,
            sustainable_inputs.essential_expenses,
            sustainable_inputs.discretionary_expenses,
            sustainable_inputs.spending_phase_config,
        )
        annual = adjusted.essential + adjusted.discretionary
        breakdown.append(PhaseSpendingBreakdown(
            phase_name=phase.name,
            start_age=start,
            end_age=end,
            annual_spending=annual,
            monthly_spending=annual / 12,
            years_in_phase=years,
        ))
    return tuple(breakdown)


# =============================================================================
# ENTRY POINT
# =============================================================================

def calculate_depletion_feedback(
    inputs: ProjectionInput, records: Optional[Sequence[ProjectionRecord]] = None
) -> Optional[DepletionFeedback]:
    """
    Sustainable spending and trajectory status for the input's depletion target.

    Returns None when no target is enabled, and disabled feedback carrying a
    message when the target is misconfigured. `records` may be passed to
    reuse an existing baseline run.
    """
    target = inputs.depletion_target
    if target is None or not target.enabled:
        return None

    target_age = target.target_age
    if target_age is None:
        return _disabled_feedback("Target age is not configured")
    if target_age <= inputs.retirement_age:
        return _disabled_feedback("Target age must be after retirement", target_age)

    if records is None:
        records = run_projection(inputs).records

    portfolio_value = inputs.balances_by_type.total
    reserve = calculate_reserve_amount(target, portfolio_value)
    search_age = min(target_age, inputs.max_age)

    sustainable = find_sustainable_spending(inputs, search_age, reserve)
    planned = inputs.total_base_expenses
    status = assess_trajectory_status(sustainable, planned)

    projected_reserve = _balance_at(records, search_age)
    depletion_age = next((r.age for r in records if r.depleted), None)

    phase_breakdown = None
    if inputs.phases_enabled:
        phase_breakdown = _phase_breakdown(inputs, sustainable, search_age)

    return DepletionFeedback(
        enabled=True,
        sustainable_annual_spending=sustainable,
        sustainable_monthly_spending=sustainable / 12,
        planned_annual_spending=planned,
        trajectory_status=status,
        status_message=_status_message(status, target, target_age),
        warning_messages=_warning_messages(
            status, planned, sustainable, projected_reserve, reserve, depletion_age, target_age
        ),
        phase_breakdown=phase_breakdown,
        projected_reserve_at_target=projected_reserve,
        projected_depletion_age=depletion_age,
        reserve_amount=reserve,
        reserve_purposes=target.reserve.purposes if target.reserve else (),
        target_age=target_age,
    )
