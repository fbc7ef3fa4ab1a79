import logging
from datetime import date

import pytest
from pydantic import ValidationError

from models import BalanceByType
from projections import run_projection
from projections.errors import InvariantViolation
from utils.input_adapter import (
    LEGACY_SS_STREAM_ID,
    ProjectionOverrides,
    build_projection_input_from_snapshot,
    derive_annual_expenses,
    estimate_annual_debt_payments,
    estimate_healthcare_costs,
)

TODAY = date(2025, 1, 1)


@pytest.fixture
def snapshot():
    return {
        "birth_year": 1985,
        "target_retirement_age": 65,
        "risk_tolerance": "moderate",
        "investment_accounts": [
            {"type": "401k", "label": "Work 401k", "balance": "$150,000", "monthly_contribution": 1000},
            {"type": "Roth_IRA", "label": "Roth", "balance": 50_000, "monthly_contribution": 250},
            {"type": "Brokerage", "label": "Brokerage", "balance": 100_000, "monthly_contribution": 0},
        ],
        "income_expenses": {"monthly_essential": 3_000, "monthly_discretionary": 1_000},
        "debts": [],
        "annual_income": 60_000,
        "savings_rate": 15,
    }


def build(snapshot, overrides=None):
    return build_projection_input_from_snapshot(snapshot, overrides, today=TODAY)


def test_snapshot_basics(snapshot):
    inputs = build(snapshot)

    assert inputs.current_age == 40
    assert inputs.retirement_age == 65
    assert inputs.max_age == 90
    assert inputs.start_year == 2025
    assert inputs.expected_return == 0.06
    assert inputs.balances_by_type == BalanceByType(tax_deferred=150_000.0, tax_free=50_000.0, taxable=100_000.0)
    assert inputs.annual_contribution == 15_000
    assert inputs.contribution_allocation == BalanceByType(tax_deferred=60.0, tax_free=30.0, taxable=10.0)


def test_expense_breakdown(snapshot):
    inputs = build(snapshot)
    assert inputs.annual_essential_expenses == 36_000
    assert inputs.annual_discretionary_expenses == 12_000
    assert inputs.annual_expenses == 48_000


def test_expenses_derived_from_income_without_breakdown(snapshot):
    snapshot["income_expenses"] = {}
    inputs = build(snapshot)
    assert inputs.annual_expenses == pytest.approx(60_000 * 0.80)
    assert inputs.annual_essential_expenses is None


def test_legacy_social_security_stream(snapshot):
    (stream,) = build(snapshot).income_streams
    assert stream.id == LEGACY_SS_STREAM_ID
    assert stream.start_age == 67
    assert stream.annual_amount == pytest.approx(1_900 * 12)
    assert stream.is_guaranteed


def test_legacy_social_security_overrides(snapshot):
    (stream,) = build(snapshot, {"social_security_age": 70, "social_security_monthly": 2_500}).income_streams
    assert stream.start_age == 70
    assert stream.annual_amount == 30_000


def test_stored_income_streams_replace_the_estimate(snapshot):
    snapshot["income_streams"] = [
        {"id": "pension", "name": "Pension", "type": "pension", "annual_amount": 18_000, "start_age": 65},
    ]
    (stream,) = build(snapshot).income_streams
    assert stream.id == "pension"


def test_no_income_means_no_streams(snapshot):
    snapshot["annual_income"] = 0
    assert build(snapshot).income_streams == ()


def test_unknown_account_type_is_logged(snapshot, caplog):
    snapshot["investment_accounts"].append({"type": "HSA", "label": "Health", "balance": 5_000})
    with caplog.at_level(logging.WARNING, logger="utils.input_adapter"):
        inputs = build(snapshot)
    assert inputs.balances_by_type.taxable == 105_000
    assert "Unknown account type 'HSA'" in caplog.text


def test_debts_are_amortized(snapshot):
    snapshot["debts"] = [{"balance": 20_000, "interest_rate": 6}]
    inputs = build(snapshot)
    assert inputs.annual_debt_payments > 20_000 / 10
    assert inputs.debt_payoff_age == 50


def test_debt_payment_estimate():
    # $10k at 5% over ten years is about $106/month
    assert estimate_annual_debt_payments([{"balance": 10_000}]) == pytest.approx(106.07 * 12, abs=1.0)
    assert estimate_annual_debt_payments([]) == 0


def test_retirement_behind_current_age_is_clamped(snapshot, caplog):
    snapshot["target_retirement_age"] = 35
    with caplog.at_level(logging.WARNING, logger="utils.input_adapter"):
        inputs = build(snapshot)
    assert inputs.retirement_age == 40
    assert "behind current age" in caplog.text


def test_unknown_risk_tolerance_falls_back(snapshot, caplog):
    snapshot["risk_tolerance"] = "reckless"
    with caplog.at_level(logging.WARNING, logger="utils.input_adapter"):
        assert build(snapshot).expected_return == 0.06
    assert "reckless" in caplog.text


def test_overrides_win(snapshot, two_phase_config):
    inputs = build(snapshot, {
        "expected_return": 0.05,
        "inflation_rate": 0.03,
        "retirement_age": 67,
        "contribution_allocation": {"tax_deferred": 50, "tax_free": 50, "taxable": 0},
        "annual_healthcare_costs": 9_000,
        "reserve_floor": 250_000,
        "spending_phase_config": {
            "enabled": True,
            "phases": [
                {"id": "go-go", "name": "Go-Go", "start_age": 65, "discretionary_multiplier": 1.5},
                {"id": "slow-go", "name": "Slow-Go", "start_age": 75, "discretionary_multiplier": 0.8},
            ],
        },
        "depletion_target": {"enabled": True, "target_age": 85, "reserve": {"type": "absolute", "amount": 100_000}},
    })
    assert inputs.expected_return == 0.05
    assert inputs.inflation_rate == 0.03
    assert inputs.retirement_age == 67
    assert inputs.contribution_allocation.tax_free == 50
    assert inputs.annual_healthcare_costs == 9_000
    assert inputs.reserve_floor == 250_000
    assert inputs.spending_phase_config == two_phase_config
    assert inputs.depletion_target.reserve.amount == 100_000


def test_zero_rate_override_is_kept(snapshot):
    assert build(snapshot, {"inflation_rate": 0.0}).inflation_rate == 0.0


@pytest.mark.parametrize("payload", [
    {"expected_return": 0.5},
    {"retirement_age": 90},
    {"social_security_age": 61},
    {"contribution_allocation": {"tax_deferred": 50, "tax_free": 30, "taxable": 10}},
    {"spending_phase_config": {"enabled": True, "phases": []}},
    {"spending_phase_config": {"enabled": True, "phases": [
        {"id": "a", "name": "A", "start_age": 75},
        {"id": "b", "name": "B", "start_age": 65},
    ]}},
    {"income_streams": [{"id": "x", "name": "X", "type": "pension", "annual_amount": 1, "start_age": 70, "end_age": 60}]},
    {"depletion_target": {"enabled": True, "reserve": {"type": "percentage", "amount": 150}}},
    {"not_a_field": 1},
])
def test_invalid_overrides(payload):
    with pytest.raises(ValidationError):
        ProjectionOverrides.model_validate(payload)


def test_built_input_runs(snapshot):
    result = run_projection(build(snapshot))
    assert result.records[0].year == 2025
    assert len(result.records) == 51


@pytest.mark.parametrize("birth_year", [None, "1985", 1985.5])
def test_snapshot_needs_a_birth_year(snapshot, birth_year):
    if birth_year is None:
        del snapshot["birth_year"]
    else:
        snapshot["birth_year"] = birth_year
    with pytest.raises(InvariantViolation) as excinfo:
        build(snapshot)
    assert excinfo.value.field == "birth_year"


@pytest.mark.parametrize("age, expected", [(60, 8_000), (65, 6_500), (74, 6_500), (80, 12_000)])
def test_healthcare_estimate(age, expected):
    assert estimate_healthcare_costs(age) == expected


def test_derived_expenses_are_capped():
    assert derive_annual_expenses(100_000, 10) == 80_000
    assert derive_annual_expenses(100_000, 40) == 60_000
