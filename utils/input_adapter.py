# utils/input_adapter.py
#
# The one place persisted snapshot data enters the projection engine.
# Snapshot-derived defaults are filled in first; validated overrides win.
#

import logging
from datetime import date
from typing import Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from config.projection_assumptions import (
    account_tax_category,
    debt_payoff_years,
    default_contribution_allocation,
    default_contribution_growth_rate,
    default_debt_interest_rate,
    default_healthcare_inflation_rate,
    default_inflation_rate,
    default_max_age,
    default_return_rates,
    default_risk_tolerance,
    healthcare_costs_by_age,
    max_expense_share_of_income,
)
from models import (
    BalanceByType,
    DepletionTarget,
    IncomeStream,
    ProjectionInput,
    ReserveConfig,
    SpendingPhase,
    SpendingPhaseConfig,
)
from projections.errors import InvariantViolation
from projections.spending import MAX_SPENDING_PHASES
from utils.currency import clean_currency, clean_percent
from utils.ss_utils import default_claiming_age, estimate_social_security_monthly

logger = logging.getLogger(__name__)

LEGACY_SS_STREAM_ID = "ss-auto"


# =============================================================================
# OVERRIDE REQUEST SCHEMA
# =============================================================================

class IncomeStreamOverride(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, description="Income stream name")
    type: Literal["social_security", "pension", "rental", "annuity", "part_time", "other"]
    annual_amount: float = Field(..., ge=0, description="Annual amount in today's dollars")
    start_age: int = Field(..., ge=0, le=120)
    end_age: Optional[int] = Field(None, ge=0, le=120)
    inflation_adjusted: bool = True
    is_guaranteed: Optional[bool] = None
    is_spouse: bool = False

    @model_validator(mode="after")
    def validate_end_age(self):
        if self.end_age is not None and self.end_age < self.start_age:
            raise ValueError("End age must be >= start age")
        return self

    def to_income_stream(self) -> IncomeStream:
        return IncomeStream(**self.model_dump())


class AllocationOverride(BaseModel):
    tax_deferred: float = Field(..., ge=0, le=100)
    tax_free: float = Field(..., ge=0, le=100)
    taxable: float = Field(..., ge=0, le=100)

    @model_validator(mode="after")
    def validate_total_allocation(self):
        total = self.tax_deferred + self.tax_free + self.taxable
        if total != 100:
            raise ValueError(f"Contribution allocation percentages must sum to 100, got {total}")
        return self


class SpendingPhaseOverride(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    start_age: int = Field(..., ge=0, le=120)
    essential_multiplier: float = Field(1.0, ge=0)
    discretionary_multiplier: float = Field(1.0, ge=0)
    absolute_essential: Optional[float] = Field(None, ge=0)
    absolute_discretionary: Optional[float] = Field(None, ge=0)


class SpendingPhaseConfigOverride(BaseModel):
    enabled: bool = False
    phases: List[SpendingPhaseOverride] = Field(default_factory=list, max_length=MAX_SPENDING_PHASES)

    @model_validator(mode="after")
    def validate_phase_order(self):
        if self.enabled and not self.phases:
            raise ValueError("An enabled spending phase config needs at least one phase")
        start_ages = [p.start_age for p in self.phases]
        if any(later <= earlier for earlier, later in zip(start_ages, start_ages[1:])):
            raise ValueError("Spending phase start ages must be strictly ascending")
        return self

    def to_config(self) -> SpendingPhaseConfig:
        return SpendingPhaseConfig(
            enabled=self.enabled,
            phases=tuple(SpendingPhase(**p.model_dump()) for p in self.phases),
        )


class ReserveOverride(BaseModel):
    type: Literal["derived", "percentage", "absolute"] = "derived"
    amount: Optional[float] = Field(None, ge=0)
    purposes: List[Literal["long-term-care", "legacy", "emergency", "healthcare", "peace-of-mind"]] = Field(
        default_factory=list
    )

    @model_validator(mode="after")
    def validate_percentage(self):
        if self.type == "percentage" and self.amount is not None and self.amount > 100:
            raise ValueError("Percentage reserve cannot exceed 100")
        return self


class DepletionTargetOverride(BaseModel):
    enabled: bool = False
    target_percentage_spent: float = Field(80.0, ge=0, le=100)
    target_age: Optional[int] = Field(None, ge=50, le=120)
    reserve: Optional[ReserveOverride] = None

    def to_target(self) -> DepletionTarget:
        reserve = None
        if self.reserve is not None:
            reserve = ReserveConfig(
                type=self.reserve.type,
                amount=self.reserve.amount,
                purposes=tuple(self.reserve.purposes),
            )
        return DepletionTarget(
            enabled=self.enabled,
            target_percentage_spent=self.target_percentage_spent,
            target_age=self.target_age,
            reserve=reserve,
        )


class ProjectionOverrides(BaseModel):
    """Optional per-request overrides; every field falls back to a snapshot-derived default."""
    model_config = ConfigDict(extra="forbid")

    expected_return: Optional[float] = Field(None, ge=0, le=0.30)
    inflation_rate: Optional[float] = Field(None, ge=0, le=0.10)
    max_age: Optional[int] = Field(None, ge=50, le=120)
    contribution_growth_rate: Optional[float] = Field(None, ge=0, le=0.10)
    retirement_age: Optional[int] = Field(None, ge=30, le=80)
    income_streams: Optional[List[IncomeStreamOverride]] = None
    annual_healthcare_costs: Optional[float] = Field(None, ge=0, le=100_000)
    healthcare_inflation_rate: Optional[float] = Field(None, ge=0, le=0.15)
    contribution_allocation: Optional[AllocationOverride] = None
    spending_phase_config: Optional[SpendingPhaseConfigOverride] = None
    depletion_target: Optional[DepletionTargetOverride] = None
    reserve_floor: Optional[float] = Field(None, ge=0)

    # Legacy single Social Security stream
    social_security_age: Optional[int] = Field(None, ge=62, le=70)
    social_security_monthly: Optional[float] = Field(None, ge=0, le=10_000)


# =============================================================================
# SNAPSHOT-DERIVED DEFAULTS
# =============================================================================

def estimate_healthcare_costs(age: int) -> float:
    """Annual healthcare costs in today's dollars for the given age band."""
    if age < 65:
        return healthcare_costs_by_age["under65"]
    if age < 75:
        return healthcare_costs_by_age["65to74"]
    return healthcare_costs_by_age["75plus"]


def derive_annual_expenses(annual_income: float, savings_rate: float) -> float:
    """
    Spending implied by income and savings rate (percent, 0-100), capped at
    max_expense_share_of_income of income.
    """
    spending = annual_income * (1 - savings_rate / 100)
    return max(0.0, min(spending, annual_income * max_expense_share_of_income))


def estimate_annual_debt_payments(debts: List[Mapping[str, Any]]) -> float:
    """
    Annual payments on each debt amortized over debt_payoff_years.
    `interest_rate` is a percent (5 = 5%); missing or zero falls back to
    the default rate.
    """
    total = 0.0
    n_payments = debt_payoff_years * 12
    for debt in debts:
        balance = clean_currency(debt.get("balance"))
        rate = (debt.get("interest_rate") or default_debt_interest_rate * 100) / 100
        monthly_rate = rate / 12
        factor = (1 + monthly_rate) ** n_payments
        monthly_payment = balance * (monthly_rate * factor) / (factor - 1)
        total += monthly_payment * 12
    return total


def _aggregate_accounts(accounts: List[Mapping[str, Any]]):
    balances = {"tax_deferred": 0.0, "tax_free": 0.0, "taxable": 0.0}
    annual_contribution = 0.0

    for account in accounts:
        account_type = account.get("type")
        category = account_tax_category.get(account_type)
        if category is None:
            logger.warning(
                f"Unknown account type '{account_type}' for '{account.get('label', '?')}' - treating as taxable"
            )
            category = "taxable"
        balances[category] += clean_currency(account.get("balance"))
        annual_contribution += clean_currency(account.get("monthly_contribution")) * 12

    return BalanceByType(**balances), annual_contribution


def _income_streams(
    snapshot: Mapping[str, Any], overrides: ProjectionOverrides, birth_year: Optional[int]
) -> tuple:
    if overrides.income_streams:
        return tuple(s.to_income_stream() for s in overrides.income_streams)

    stored = snapshot.get("income_streams") or []
    if stored:
        return tuple(IncomeStreamOverride.model_validate(s).to_income_stream() for s in stored)

    # No streams on file: fall back to one estimated Social Security stream
    ss_age = overrides.social_security_age or default_claiming_age(birth_year)
    ss_monthly = overrides.social_security_monthly
    if ss_monthly is None:
        ss_monthly = estimate_social_security_monthly(clean_currency(snapshot.get("annual_income")))
    if ss_monthly <= 0:
        return ()

    return (IncomeStream(
        id=LEGACY_SS_STREAM_ID,
        name="Social Security",
        type="social_security",
        annual_amount=ss_monthly * 12,
        start_age=ss_age,
        inflation_adjusted=True,
    ),)


def _expenses(snapshot: Mapping[str, Any]) -> Dict[str, Optional[float]]:
    income_expenses = snapshot.get("income_expenses") or {}
    monthly_essential = income_expenses.get("monthly_essential")
    monthly_discretionary = income_expenses.get("monthly_discretionary")

    if monthly_essential or monthly_discretionary:
        essential = clean_currency(monthly_essential) * 12
        discretionary = clean_currency(monthly_discretionary) * 12
        return {
            "annual_expenses": essential + discretionary,
            "annual_essential_expenses": essential,
            "annual_discretionary_expenses": discretionary,
        }

    # Savings rate may be stored as "15", "15%" or 0.15
    savings_rate = (clean_percent(snapshot.get("savings_rate")) or 0.0) * 100
    derived = derive_annual_expenses(clean_currency(snapshot.get("annual_income")), savings_rate)
    logger.info(f"No expense breakdown on file; derived annual expenses {derived:,.0f} from income")
    return {
        "annual_expenses": derived,
        "annual_essential_expenses": None,
        "annual_discretionary_expenses": None,
    }


# =============================================================================
# BUILDER
# =============================================================================

def build_projection_input_from_snapshot(
    snapshot: Mapping[str, Any],
    overrides: Union[ProjectionOverrides, Mapping[str, Any], None] = None,
    today: Optional[date] = None,
) -> ProjectionInput:
    """
    Builds a ProjectionInput from a stored financial snapshot.

    Args:
        snapshot: Mapping with birth_year, target_retirement_age,
            risk_tolerance, investment_accounts, income_expenses, debts,
            income_streams, annual_income and savings_rate.
        overrides: ProjectionOverrides or a raw payload; raw payloads are
            validated and raise pydantic.ValidationError when out of range.
        today: Reference date for ages and the first calendar year.

    Returns:
        ProjectionInput: Ready for run_projection.
    """
    if overrides is None:
        overrides = ProjectionOverrides()
    elif not isinstance(overrides, ProjectionOverrides):
        overrides = ProjectionOverrides.model_validate(overrides)

    today = today or date.today()
    birth_year = snapshot.get("birth_year")
    if not isinstance(birth_year, int) or isinstance(birth_year, bool):
        raise InvariantViolation("birth_year", f"snapshot needs a whole birth year, got {birth_year!r}")
    current_age = today.year - birth_year

    # --- Rates ---
    risk_tolerance = snapshot.get("risk_tolerance") or default_risk_tolerance
    if risk_tolerance not in default_return_rates:
        logger.warning(f"Unknown risk tolerance '{risk_tolerance}' - using '{default_risk_tolerance}' return")
        risk_tolerance = default_risk_tolerance
    expected_return = overrides.expected_return
    if expected_return is None:
        expected_return = default_return_rates[risk_tolerance]

    # --- Horizon ---
    max_age = overrides.max_age or default_max_age
    if max_age <= current_age:
        logger.warning(f"Max age {max_age} is not after current age {current_age} - extending by one year")
        max_age = current_age + 1

    retirement_age = overrides.retirement_age or snapshot.get("target_retirement_age") or current_age
    if retirement_age < current_age:
        logger.warning(
            f"Retirement age {retirement_age} is behind current age {current_age} - projecting from retirement now"
        )
        retirement_age = current_age
    if retirement_age > max_age:
        logger.warning(f"Retirement age {retirement_age} is past max age {max_age} - capping at max age")
        retirement_age = max_age

    # --- Portfolio ---
    balances, annual_contribution = _aggregate_accounts(snapshot.get("investment_accounts") or [])
    if overrides.contribution_allocation is not None:
        allocation = BalanceByType(**overrides.contribution_allocation.model_dump())
    else:
        allocation = BalanceByType(**default_contribution_allocation)

    # --- Debt ---
    annual_debt_payments = estimate_annual_debt_payments(snapshot.get("debts") or [])
    debt_payoff_age = current_age + debt_payoff_years if annual_debt_payments > 0 else None

    # --- Healthcare ---
    annual_healthcare_costs = overrides.annual_healthcare_costs
    if annual_healthcare_costs is None:
        annual_healthcare_costs = estimate_healthcare_costs(retirement_age)

    def _rate(value, default):
        return default if value is None else value

    return ProjectionInput(
        current_age=current_age,
        retirement_age=retirement_age,
        max_age=max_age,
        balances_by_type=balances,
        annual_contribution=annual_contribution,
        contribution_allocation=allocation,
        expected_return=expected_return,
        inflation_rate=_rate(overrides.inflation_rate, default_inflation_rate),
        contribution_growth_rate=_rate(overrides.contribution_growth_rate, default_contribution_growth_rate),
        annual_healthcare_costs=annual_healthcare_costs,
        healthcare_inflation_rate=_rate(overrides.healthcare_inflation_rate, default_healthcare_inflation_rate),
        income_streams=_income_streams(snapshot, overrides, birth_year),
        annual_debt_payments=annual_debt_payments,
        debt_payoff_age=debt_payoff_age,
        spending_phase_config=(
            overrides.spending_phase_config.to_config() if overrides.spending_phase_config else None
        ),
        depletion_target=overrides.depletion_target.to_target() if overrides.depletion_target else None,
        reserve_floor=overrides.reserve_floor,
        start_year=today.year,
        **_expenses(snapshot),
    )
