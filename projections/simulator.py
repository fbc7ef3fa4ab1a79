# projections/simulator.py

import math
from typing import List, Optional, Tuple

from models import (
    BalanceByType,
    ProjectionInput,
    ProjectionRecord,
    ProjectionResult,
    ProjectionSummary,
    RmdDetail,
)
from projections.validation import validate_projection_input
from projections.income_calculator import calculate_total_income
from projections.spending import calculate_phase_adjusted_expenses
from projections.rmd_tables import calculate_rmd
from projections.withdrawal_engine import WithdrawalEngine, WithdrawalPolicy

# Balances at or below a cent count as empty
DEPLETION_EPSILON = 0.005


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def _clamp_balances(balances: BalanceByType) -> BalanceByType:
    return BalanceByType(
        tax_deferred=max(0.0, _finite(balances.tax_deferred)),
        tax_free=max(0.0, _finite(balances.tax_free)),
        taxable=max(0.0, _finite(balances.taxable)),
    )


def _cents(value: float) -> float:
    return round(_finite(value), 2)


class ProjectionSimulator:
    """
    Runs a deterministic year-by-year projection of one portfolio across the
    tax-deferred, tax-free and taxable categories, from current age to max age.
    """
    def __init__(self, inputs: ProjectionInput, withdrawal_engine: Optional[WithdrawalPolicy] = None):

        # -----------------------
        # STEP 1: Validate before any arithmetic
        # -----------------------
        validate_projection_input(inputs)
        self.inputs = inputs

        # -----------------------
        # STEP 2: Timeframe
        # -----------------------
        self.ages = list(range(inputs.current_age, inputs.max_age + 1))
        self.num_years = len(self.ages)

        # -----------------------
        # STEP 3: Withdrawal strategy (injectable)
        # -----------------------
        self.withdrawal_engine = withdrawal_engine or WithdrawalEngine()

    # =========================================================================
    # 1. CORE SIMULATION RUNNER
    # =========================================================================
    def run_simulation(self) -> ProjectionResult:
        balances = _clamp_balances(self.inputs.balances_by_type)
        depleted = False
        records: List[ProjectionRecord] = []

        for year_index, age in enumerate(self.ages):
            if age < self.inputs.retirement_age:
                record, balances = self._run_accumulation_year(year_index, age, balances)
            else:
                record, balances, depleted = self._run_decumulation_year(
                    year_index, age, balances, depleted
                )
            records.append(record)

        return ProjectionResult(records=tuple(records), summary=self._summarize_results(records))

    # =========================================================================
    # 2. SINGLE YEAR LOGIC
    # =========================================================================
    def _run_accumulation_year(
        self, year_index: int, age: int, balances: BalanceByType
    ) -> Tuple[ProjectionRecord, BalanceByType]:
        inputs = self.inputs
        starting = balances

        # --- STEP 1: contribution, grown since the first year, net of debt payments ---
        grown_contribution = inputs.annual_contribution * (1 + inputs.contribution_growth_rate) ** year_index
        contribution = max(0.0, _finite(grown_contribution) - self._debt_payment(age))
        balances = balances.plus(inputs.contribution_allocation.scaled(contribution / 100.0))

        # --- STEP 2: RMDs still apply to anyone working past the start age ---
        rmd_detail, balances = self._take_rmd_only(age, starting.tax_deferred, balances)

        # --- STEP 3: end-of-year growth, category by category ---
        balances = self._apply_returns(balances)

        record = ProjectionRecord(
            age=age,
            year=self._calendar_year(year_index),
            starting_balance=_cents(starting.total),
            balance=_cents(balances.total),
            balance_by_type=balances.rounded(),
            inflows=_cents(contribution),
            outflows=0.0,
            contributions=_cents(contribution),
            withdrawals=0.0,
            rmd=rmd_detail,
        )
        return record, balances

    def _run_decumulation_year(
        self, year_index: int, age: int, balances: BalanceByType, depleted: bool
    ) -> Tuple[ProjectionRecord, BalanceByType, bool]:
        inputs = self.inputs
        starting = balances
        years_from_retirement = age - inputs.retirement_age

        # =====================================================================
        # --- STEP 1: PLANNED EXPENSES (nominal) ---
        # =====================================================================
        inflation_multiplier = (1 + inputs.inflation_rate) ** years_from_retirement
        healthcare_multiplier = (1 + inputs.healthcare_inflation_rate) ** years_from_retirement

        phase = calculate_phase_adjusted_expenses(
            age,
            inputs.essential_expenses,
            inputs.discretionary_expenses,
            inputs.spending_phase_config,
        )
        essential = _finite(phase.essential * inflation_multiplier)
        discretionary = _finite(phase.discretionary * inflation_multiplier)
        healthcare = _finite(inputs.annual_healthcare_costs * healthcare_multiplier)
        debt = self._debt_payment(age)
        planned_expenses = essential + discretionary + healthcare + debt

        # =====================================================================
        # --- STEP 2: INCOME AND NET CASH NEED ---
        # =====================================================================
        income = _finite(calculate_total_income(inputs.income_streams, age, inputs.inflation_rate))
        need = planned_expenses - income

        # =====================================================================
        # --- STEP 3: LIMIT THE DRAW TO WHAT THE PORTFOLIO (AND RESERVE) ALLOWS ---
        # =====================================================================
        available = max(0.0, balances.total - (inputs.reserve_floor or 0.0))
        reserve_constrained = inputs.reserve_floor is not None and need > available + DEPLETION_EPSILON
        funded_need, stage, actual_essential, actual_discretionary = self._fund_spending(
            need, available, essential, discretionary
        )

        # =====================================================================
        # --- STEP 4: WITHDRAW (RMD floor enforced by the policy) ---
        # =====================================================================
        rmd_required = self._rmd_required(age, starting.tax_deferred)
        result = self.withdrawal_engine.withdraw(max(0.0, funded_need), balances, rmd_required)
        balances = balances.minus(result.withdrawals)

        # RMD dollars beyond the need cannot stay in the account: move to taxable
        deposit_to_taxable = result.rmd_excess
        if need < 0 and not depleted:
            deposit_to_taxable += -need
        if deposit_to_taxable > 0:
            balances = balances.plus(BalanceByType(taxable=deposit_to_taxable))

        # =====================================================================
        # --- STEP 5: GROWTH ON WHAT REMAINS ---
        # =====================================================================
        balances = self._apply_returns(balances)

        # =====================================================================
        # --- STEP 6: DEPLETION (sticky through max age) ---
        # =====================================================================
        newly_depleted = False
        if depleted or (need > 0 and balances.total <= DEPLETION_EPSILON):
            newly_depleted = not depleted
            depleted = True
            balances = BalanceByType()

        rmd_detail = None
        if self._rmd_applies(age):
            rmd_detail = RmdDetail(
                rmd_required=_cents(rmd_required),
                rmd_taken=_cents(result.rmd_taken),
                excess_to_taxable=_cents(result.rmd_excess),
            )

        record = ProjectionRecord(
            age=age,
            year=self._calendar_year(year_index),
            starting_balance=_cents(starting.total),
            balance=_cents(balances.total),
            balance_by_type=balances.rounded(),
            inflows=_cents(income),
            outflows=_cents(planned_expenses),
            contributions=0.0,
            withdrawals=_cents(result.spent),
            withdrawals_by_type=result.withdrawals.rounded(),
            rmd=rmd_detail,
            essential_expenses=_cents(essential),
            discretionary_expenses=_cents(discretionary),
            healthcare_expenses=_cents(healthcare),
            actual_essential_spending=_cents(actual_essential),
            actual_discretionary_spending=_cents(actual_discretionary),
            active_phase_name=phase.phase_name,
            reserve_constrained=reserve_constrained,
            reduction_stage=stage,
            depleted=newly_depleted or (depleted and balances.total <= DEPLETION_EPSILON),
        )
        return record, balances, depleted

    # =========================================================================
    # 3. UTILITY FUNCTIONS
    # =========================================================================
    def _calendar_year(self, year_index: int) -> Optional[int]:
        if self.inputs.start_year is None:
            return None
        return self.inputs.start_year + year_index

    def _apply_returns(self, balances: BalanceByType) -> BalanceByType:
        # Category-level growth; all categories currently share one rate
        return _clamp_balances(balances.scaled(1 + self.inputs.expected_return))

    def _debt_payment(self, age: int) -> float:
        # No payoff age: payments run through max age
        payoff_age = self.inputs.debt_payoff_age
        if payoff_age is not None and age >= payoff_age:
            return 0.0
        return self.inputs.annual_debt_payments

    def _rmd_applies(self, age: int) -> bool:
        cfg = self.inputs.rmd_config
        return cfg.enabled and age >= cfg.start_age

    def _rmd_required(self, age: int, prior_year_end_tax_deferred: float) -> float:
        if not self._rmd_applies(age):
            return 0.0
        cfg = self.inputs.rmd_config
        return calculate_rmd(prior_year_end_tax_deferred, age, cfg.start_age, cfg.table_version)

    def _take_rmd_only(
        self, age: int, prior_year_end_tax_deferred: float, balances: BalanceByType
    ) -> Tuple[Optional[RmdDetail], BalanceByType]:
        """RMD in a year with no spending need: the whole distribution lands in taxable."""
        if not self._rmd_applies(age):
            return None, balances
        rmd_required = self._rmd_required(age, prior_year_end_tax_deferred)
        result = self.withdrawal_engine.withdraw(0.0, balances, rmd_required)
        balances = balances.minus(result.withdrawals).plus(BalanceByType(taxable=result.rmd_excess))
        detail = RmdDetail(
            rmd_required=_cents(rmd_required),
            rmd_taken=_cents(result.rmd_taken),
            excess_to_taxable=_cents(result.rmd_excess),
        )
        return detail, balances

    def _fund_spending(
        self, need: float, available: float, essential: float, discretionary: float
    ) -> Tuple[float, str, float, float]:
        """
        Caps the portfolio draw at `available`, cutting discretionary spending
        before essentials.

        Returns: (funded_need, reduction_stage, actual_essential, actual_discretionary)
        """
        if need <= available + DEPLETION_EPSILON:
            return need, "none", essential, discretionary

        shortfall = need - available
        if shortfall < discretionary:
            return available, "discretionary_reduced", essential, discretionary - shortfall

        essential_cut = shortfall - discretionary
        if essential_cut <= DEPLETION_EPSILON:
            return available, "essentials_only", essential, 0.0
        return available, "essentials_reduced", max(0.0, essential - essential_cut), 0.0

    # =========================================================================
    # 4. RESULTS SUMMARIZER
    # =========================================================================
    def _summarize_results(self, records: List[ProjectionRecord]) -> ProjectionSummary:
        inputs = self.inputs

        projected_retirement_balance = 0.0
        total_contributions = 0.0
        total_withdrawals = 0.0
        depletion_age = None
        years_constrained = 0
        first_constraint_age = None

        for record in records:
            if record.age == inputs.retirement_age:
                # Balance entering retirement, before the first withdrawal
                projected_retirement_balance = record.starting_balance
            total_contributions += record.contributions
            total_withdrawals += record.withdrawals
            if record.depleted and depletion_age is None:
                depletion_age = record.age
            if record.reserve_constrained:
                years_constrained += 1
                if first_constraint_age is None:
                    first_constraint_age = record.age

        return ProjectionSummary(
            starting_balance=records[0].starting_balance,
            projected_retirement_balance=_cents(projected_retirement_balance),
            ending_balance=records[-1].balance,
            total_contributions=_cents(total_contributions),
            total_withdrawals=_cents(total_withdrawals),
            years_until_depletion=(
                depletion_age - inputs.retirement_age if depletion_age is not None else None
            ),
            depletion_age=depletion_age,
            reserve_floor=inputs.reserve_floor,
            years_reserve_constrained=years_constrained,
            first_reserve_constraint_age=first_constraint_age,
        )


def run_projection(
    inputs: ProjectionInput, withdrawal_engine: Optional[WithdrawalPolicy] = None
) -> ProjectionResult:
    """Validate `inputs` and run the full projection from current age to max age."""
    return ProjectionSimulator(inputs, withdrawal_engine).run_simulation()
