# projections/validation.py
#
# Fail-fast invariant checks run before any simulation work
#

import math

from models import ProjectionInput, TAX_CATEGORIES
from projections.errors import InvariantViolation
from projections.rmd_tables import RMD_TABLES
from projections.spending import validate_spending_phase_config

ALLOCATION_TOTAL = 100.0
MAX_RMD_START_AGE = 120

RATE_FIELDS = (
    "expected_return",
    "inflation_rate",
    "contribution_growth_rate",
    "healthcare_inflation_rate",
)

AMOUNT_FIELDS = (
    "annual_contribution",
    "annual_expenses",
    "annual_essential_expenses",
    "annual_discretionary_expenses",
    "annual_healthcare_costs",
    "annual_debt_payments",
    "reserve_floor",
)


def _check_finite_non_negative(name: str, value: float) -> None:
    if value is None:
        return
    if not math.isfinite(value):
        raise InvariantViolation(name, f"must be a finite number, got {value}")
    if value < 0:
        raise InvariantViolation(name, f"must be non-negative, got {value}")


def validate_projection_input(inputs: ProjectionInput) -> None:
    """Raise InvariantViolation naming the first broken invariant, else return None."""

    # --- ages ---
    if inputs.current_age >= inputs.max_age:
        raise InvariantViolation(
            "current_age", f"current_age ({inputs.current_age}) must be below max_age ({inputs.max_age})"
        )
    if not inputs.current_age <= inputs.retirement_age <= inputs.max_age:
        raise InvariantViolation(
            "retirement_age",
            f"retirement_age ({inputs.retirement_age}) must be within "
            f"[{inputs.current_age}, {inputs.max_age}]",
        )

    # --- contribution allocation (never silently normalized) ---
    allocation = inputs.contribution_allocation
    for category in TAX_CATEGORIES:
        _check_finite_non_negative(f"contribution_allocation.{category}", allocation.get(category))
    if not math.isclose(allocation.total, ALLOCATION_TOTAL, rel_tol=0.0, abs_tol=1e-9):
        raise InvariantViolation(
            "contribution_allocation",
            f"percentages must sum to 100, got {allocation.total:g}",
        )

    # --- balances ---
    for category in TAX_CATEGORIES:
        _check_finite_non_negative(f"balances_by_type.{category}", inputs.balances_by_type.get(category))

    # --- rates and amounts ---
    for name in RATE_FIELDS + AMOUNT_FIELDS:
        _check_finite_non_negative(name, getattr(inputs, name))

    # --- income streams ---
    for stream in inputs.income_streams:
        _check_finite_non_negative(f"income_streams[{stream.id}].annual_amount", stream.annual_amount)
        if stream.end_age is not None and stream.end_age < stream.start_age:
            raise InvariantViolation(
                f"income_streams[{stream.id}]", "end_age must not precede start_age"
            )

    # --- spending phases ---
    validate_spending_phase_config(inputs.spending_phase_config)

    # --- depletion target ---
    target = inputs.depletion_target
    if target is not None and target.enabled:
        if not 0 <= target.target_percentage_spent <= 100:
            raise InvariantViolation(
                "depletion_target", "target_percentage_spent must be within [0, 100]"
            )
        if target.reserve is not None and target.reserve.amount is not None:
            _check_finite_non_negative("depletion_target.reserve.amount", target.reserve.amount)

    # --- RMD config ---
    rmd = inputs.rmd_config
    if rmd.table_version not in RMD_TABLES:
        raise InvariantViolation(
            "rmd_config.table_version",
            f"unknown table version '{rmd.table_version}', expected one of {sorted(RMD_TABLES)}",
        )
    whole_age = isinstance(rmd.start_age, int) and not isinstance(rmd.start_age, bool)
    if not whole_age or not 0 <= rmd.start_age <= MAX_RMD_START_AGE:
        raise InvariantViolation(
            "rmd_config.start_age", f"must be a whole age within [0, {MAX_RMD_START_AGE}], got {rmd.start_age}"
        )
