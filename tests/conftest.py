from dataclasses import replace

import pytest

from models import (
    BalanceByType,
    DepletionTarget,
    IncomeStream,
    ProjectionInput,
    SpendingPhase,
    SpendingPhaseConfig,
)

DEFAULT_ALLOCATION = BalanceByType(tax_deferred=60.0, tax_free=30.0, taxable=10.0)


def build_input(**overrides) -> ProjectionInput:
    """A plain, valid, mid-career plan; keyword arguments replace fields."""
    base = ProjectionInput(
        current_age=40,
        retirement_age=65,
        max_age=90,
        balances_by_type=BalanceByType(tax_deferred=150_000.0, tax_free=50_000.0, taxable=100_000.0),
        annual_contribution=15_000.0,
        contribution_allocation=DEFAULT_ALLOCATION,
        expected_return=0.06,
        inflation_rate=0.025,
        contribution_growth_rate=0.0,
        annual_expenses=50_000.0,
        annual_healthcare_costs=5_000.0,
        healthcare_inflation_rate=0.05,
    )
    return replace(base, **overrides)


@pytest.fixture
def make_input():
    return build_input


@pytest.fixture
def base_input():
    return build_input()


@pytest.fixture
def annuity_input():
    """$20k/yr into taxable at 7% from 30 to 65, no spending."""
    return ProjectionInput(
        current_age=30,
        retirement_age=65,
        max_age=90,
        balances_by_type=BalanceByType(),
        annual_contribution=20_000.0,
        contribution_allocation=BalanceByType(taxable=100.0),
        expected_return=0.07,
        inflation_rate=0.025,
        annual_expenses=0.0,
    )


@pytest.fixture
def social_security_stream():
    return IncomeStream(
        id="ss-1",
        name="Social Security",
        type="social_security",
        annual_amount=24_000.0,
        start_age=67,
        inflation_adjusted=True,
    )


@pytest.fixture
def two_phase_config():
    return SpendingPhaseConfig(
        enabled=True,
        phases=(
            SpendingPhase(id="go-go", name="Go-Go", start_age=65,
                          essential_multiplier=1.0, discretionary_multiplier=1.5),
            SpendingPhase(id="slow-go", name="Slow-Go", start_age=75,
                          essential_multiplier=1.0, discretionary_multiplier=0.8),
        ),
    )


@pytest.fixture
def retiree_input(make_input):
    """Already retired, large taxable balance, split expenses, no inflation noise in growth."""
    return make_input(
        current_age=65,
        retirement_age=65,
        max_age=90,
        balances_by_type=BalanceByType(taxable=1_500_000.0),
        annual_contribution=0.0,
        annual_expenses=50_000.0,
        annual_essential_expenses=30_000.0,
        annual_discretionary_expenses=20_000.0,
        annual_healthcare_costs=0.0,
    )


@pytest.fixture
def depletion_target_input(make_input):
    return make_input(
        current_age=65,
        retirement_age=65,
        max_age=95,
        balances_by_type=BalanceByType(taxable=1_000_000.0),
        annual_contribution=0.0,
        annual_expenses=40_000.0,
        annual_healthcare_costs=0.0,
        expected_return=0.05,
        inflation_rate=0.02,
        depletion_target=DepletionTarget(enabled=True, target_percentage_spent=80.0, target_age=85),
    )
