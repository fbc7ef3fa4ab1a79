# models.py
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Literal, Optional, Tuple

import pandas as pd

TaxCategory = Literal["tax_deferred", "tax_free", "taxable"]
TAX_CATEGORIES: Tuple[str, ...] = ("tax_deferred", "tax_free", "taxable")

IncomeStreamType = Literal[
    "social_security", "pension", "rental", "annuity", "part_time", "other"
]

# Income types that do not depend on market conditions
GUARANTEED_INCOME_TYPES: Tuple[str, ...] = ("social_security", "pension", "annuity")

ReserveType = Literal["derived", "percentage", "absolute"]
ReservePurpose = Literal["long-term-care", "legacy", "emergency", "healthcare", "peace-of-mind"]

ReductionStage = Literal["none", "discretionary_reduced", "essentials_only", "essentials_reduced"]


# =============================================================================
# BALANCES
# =============================================================================

@dataclass(frozen=True)
class BalanceByType:
    """Dollar balances (or allocation percentages) split by tax treatment."""
    tax_deferred: float = 0.0
    tax_free: float = 0.0
    taxable: float = 0.0

    @property
    def total(self) -> float:
        return self.tax_deferred + self.tax_free + self.taxable

    def get(self, category: str) -> float:
        return getattr(self, category)

    def plus(self, other: "BalanceByType") -> "BalanceByType":
        return BalanceByType(
            tax_deferred=self.tax_deferred + other.tax_deferred,
            tax_free=self.tax_free + other.tax_free,
            taxable=self.taxable + other.taxable,
        )

    def minus(self, other: "BalanceByType") -> "BalanceByType":
        # Categories never go below zero
        return BalanceByType(
            tax_deferred=max(0.0, self.tax_deferred - other.tax_deferred),
            tax_free=max(0.0, self.tax_free - other.tax_free),
            taxable=max(0.0, self.taxable - other.taxable),
        )

    def scaled(self, factor: float) -> "BalanceByType":
        return BalanceByType(
            tax_deferred=self.tax_deferred * factor,
            tax_free=self.tax_free * factor,
            taxable=self.taxable * factor,
        )

    def rounded(self, digits: int = 2) -> "BalanceByType":
        return BalanceByType(
            tax_deferred=max(0.0, round(self.tax_deferred, digits)),
            tax_free=max(0.0, round(self.tax_free, digits)),
            taxable=max(0.0, round(self.taxable, digits)),
        )

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


# =============================================================================
# INCOME STREAMS
# =============================================================================

@dataclass(frozen=True)
class IncomeStream:
    id: str
    name: str
    type: str
    annual_amount: float            # today's dollars
    start_age: int
    end_age: Optional[int] = None   # None = lifetime
    inflation_adjusted: bool = True # COLA
    is_guaranteed: Optional[bool] = None
    is_spouse: bool = False

    def __post_init__(self):
        # Guaranteed flag defaults from the stream type
        if self.is_guaranteed is None:
            object.__setattr__(self, "is_guaranteed", self.type in GUARANTEED_INCOME_TYPES)

    def is_active(self, age: int) -> bool:
        return self.start_age <= age and (self.end_age is None or age <= self.end_age)


# =============================================================================
# SPENDING PHASES / DEPLETION TARGET
# =============================================================================

@dataclass(frozen=True)
class SpendingPhase:
    id: str
    name: str
    start_age: int
    essential_multiplier: float = 1.0
    discretionary_multiplier: float = 1.0
    # Today's-dollar overrides, win over the multipliers when set
    absolute_essential: Optional[float] = None
    absolute_discretionary: Optional[float] = None


@dataclass(frozen=True)
class SpendingPhaseConfig:
    enabled: bool = False
    phases: Tuple[SpendingPhase, ...] = ()


@dataclass(frozen=True)
class ReserveConfig:
    type: str = "derived"
    amount: Optional[float] = None  # percent for 'percentage', dollars for 'absolute'
    purposes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DepletionTarget:
    enabled: bool = False
    target_percentage_spent: float = 80.0
    target_age: Optional[int] = None
    reserve: Optional[ReserveConfig] = None


@dataclass(frozen=True)
class RmdConfig:
    enabled: bool = True
    start_age: int = 73
    table_version: str = "2022"


# =============================================================================
# PROJECTION INPUT
# =============================================================================

@dataclass(frozen=True)
class ProjectionInput:
    # Ages
    current_age: int
    retirement_age: int
    max_age: int

    # Portfolio
    balances_by_type: BalanceByType
    annual_contribution: float
    contribution_allocation: BalanceByType  # percentages, must sum to 100

    # Rates
    expected_return: float
    inflation_rate: float
    contribution_growth_rate: float = 0.0

    # Expenses (today's dollars)
    annual_expenses: float = 0.0
    annual_essential_expenses: Optional[float] = None
    annual_discretionary_expenses: Optional[float] = None
    annual_healthcare_costs: float = 0.0
    healthcare_inflation_rate: float = 0.0

    # Income and debt
    income_streams: Tuple[IncomeStream, ...] = ()
    annual_debt_payments: float = 0.0
    debt_payoff_age: Optional[int] = None

    # Optional strategy config
    spending_phase_config: Optional[SpendingPhaseConfig] = None
    depletion_target: Optional[DepletionTarget] = None
    reserve_floor: Optional[float] = None
    rmd_config: RmdConfig = field(default_factory=RmdConfig)

    # Calendar year of the first record (supplied by the caller, never the clock)
    start_year: Optional[int] = None

    @property
    def essential_expenses(self) -> float:
        if self.annual_essential_expenses is None and self.annual_discretionary_expenses is None:
            return self.annual_expenses
        return self.annual_essential_expenses or 0.0

    @property
    def discretionary_expenses(self) -> float:
        if self.annual_essential_expenses is None and self.annual_discretionary_expenses is None:
            return 0.0
        return self.annual_discretionary_expenses or 0.0

    @property
    def total_base_expenses(self) -> float:
        return self.essential_expenses + self.discretionary_expenses

    @property
    def phases_enabled(self) -> bool:
        cfg = self.spending_phase_config
        return bool(cfg and cfg.enabled and cfg.phases)


@dataclass(frozen=True)
class ProjectionAssumptions:
    """Human-readable subset of the inputs stored alongside results."""
    expected_return: float
    inflation_rate: float
    healthcare_inflation_rate: float
    contribution_growth_rate: float
    retirement_age: int
    max_age: int

    @classmethod
    def from_input(cls, inputs: ProjectionInput) -> "ProjectionAssumptions":
        return cls(
            expected_return=inputs.expected_return,
            inflation_rate=inputs.inflation_rate,
            healthcare_inflation_rate=inputs.healthcare_inflation_rate,
            contribution_growth_rate=inputs.contribution_growth_rate,
            retirement_age=inputs.retirement_age,
            max_age=inputs.max_age,
        )


# =============================================================================
# PROJECTION OUTPUT
# =============================================================================

@dataclass(frozen=True)
class RmdDetail:
    rmd_required: float
    rmd_taken: float
    excess_to_taxable: float = 0.0


@dataclass(frozen=True)
class ProjectionRecord:
    age: int
    year: Optional[int]
    starting_balance: float
    balance: float
    balance_by_type: BalanceByType
    inflows: float = 0.0
    outflows: float = 0.0
    contributions: float = 0.0
    withdrawals: float = 0.0
    withdrawals_by_type: Optional[BalanceByType] = None
    rmd: Optional[RmdDetail] = None

    # Retirement-year expense breakdown (planned, nominal)
    essential_expenses: float = 0.0
    discretionary_expenses: float = 0.0
    healthcare_expenses: float = 0.0
    # What was actually funded after any reserve-floor cuts
    actual_essential_spending: float = 0.0
    actual_discretionary_spending: float = 0.0
    active_phase_name: Optional[str] = None

    reserve_constrained: bool = False
    reduction_stage: str = "none"
    depleted: bool = False


@dataclass(frozen=True)
class ProjectionSummary:
    starting_balance: float
    projected_retirement_balance: float
    ending_balance: float
    total_contributions: float
    total_withdrawals: float
    years_until_depletion: Optional[int]
    depletion_age: Optional[int] = None
    reserve_floor: Optional[float] = None
    years_reserve_constrained: int = 0
    first_reserve_constraint_age: Optional[int] = None


@dataclass(frozen=True)
class ProjectionResult:
    records: Tuple[ProjectionRecord, ...]
    summary: ProjectionSummary

    def record_at(self, age: int) -> Optional[ProjectionRecord]:
        for record in self.records:
            if record.age == age:
                return record
        return None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_dataframe(self):
        """One row per simulated year, indexed by age, category balances flattened."""
        rows = []
        for r in self.records:
            row = {
                "age": r.age,
                "year": r.year,
                "starting_balance": r.starting_balance,
                "balance": r.balance,
                "inflows": r.inflows,
                "outflows": r.outflows,
                "contributions": r.contributions,
                "withdrawals": r.withdrawals,
                "essential_expenses": r.essential_expenses,
                "discretionary_expenses": r.discretionary_expenses,
                "healthcare_expenses": r.healthcare_expenses,
                "rmd_required": r.rmd.rmd_required if r.rmd else 0.0,
                "rmd_taken": r.rmd.rmd_taken if r.rmd else 0.0,
                "active_phase_name": r.active_phase_name,
                "reduction_stage": r.reduction_stage,
                "depleted": r.depleted,
            }
            for category in TAX_CATEGORIES:
                row[f"balance_{category}"] = r.balance_by_type.get(category)
            rows.append(row)
        return pd.DataFrame(rows).set_index("age")
