import math
from dataclasses import replace

import pytest

from models import IncomeStream, SpendingPhase, SpendingPhaseConfig
from projections import calculate_income_floor


@pytest.fixture
def ss_retiree(retiree_input, social_security_stream):
    return replace(
        retiree_input,
        annual_essential_expenses=20_000.0,
        income_streams=(social_security_stream,),
        start_year=2030,
    )


def test_floor_established_when_social_security_starts(ss_retiree):
    analysis = calculate_income_floor(ss_retiree)
    by_age = {c.age: c for c in analysis.coverage_by_age}

    assert by_age[65].status == "partial"
    assert by_age[66].status == "partial"
    assert by_age[67].status == "fully-covered"
    assert analysis.is_floor_established
    assert analysis.floor_established_age == 67
    assert analysis.status == "partial"
    assert analysis.coverage_ratio_at_retirement == 0
    assert analysis.insight_statement.endswith("Full coverage begins at age 67.")


def test_coverage_runs_through_max_age(ss_retiree):
    analysis = calculate_income_floor(ss_retiree)
    ages = [c.age for c in analysis.coverage_by_age]
    assert ages == list(range(65, 91))
    assert analysis.coverage_by_age[0].year == 2030


def test_essentials_are_inflated(ss_retiree):
    analysis = calculate_income_floor(ss_retiree)
    at_67 = analysis.coverage_by_age[2]
    assert at_67.essential_expenses == pytest.approx(20_000 * 1.025 ** 2, abs=0.01)
    assert at_67.guaranteed_income == pytest.approx(24_000)


def test_fully_covered_from_retirement(retiree_input):
    pension = IncomeStream(id="pension", name="Pension", type="pension", annual_amount=40_000.0,
                           start_age=60, inflation_adjusted=False)
    analysis = calculate_income_floor(replace(retiree_input, income_streams=(pension,)))

    assert analysis.status == "fully-covered"
    assert analysis.floor_established_age == 65
    assert analysis.coverage_ratio_at_retirement == pytest.approx(40_000 / 30_000, abs=0.001)
    assert analysis.insight_statement == (
        "Your essential lifestyle is fully covered by guaranteed income from retirement."
    )
    # Fixed pension loses ground to inflated essentials later on
    assert analysis.coverage_by_age[-1].status == "partial"


def test_income_that_ended_before_retirement(retiree_input):
    pension = IncomeStream(id="p", name="Bridge", type="pension", annual_amount=30_000.0,
                           start_age=55, end_age=60)
    analysis = calculate_income_floor(replace(retiree_input, income_streams=(pension,)))

    assert analysis.status == "insufficient"
    assert not analysis.is_floor_established
    assert all(c.status == "insufficient" for c in analysis.coverage_by_age)
    assert analysis.insight_statement.startswith("Essential expenses exceed guaranteed income")


def test_no_guaranteed_income(retiree_input):
    rental = IncomeStream(id="r", name="Rental", type="rental", annual_amount=50_000.0, start_age=60)
    assert calculate_income_floor(replace(retiree_input, income_streams=(rental,))) is None


def test_no_essential_expenses(retiree_input, social_security_stream):
    inputs = replace(retiree_input, annual_essential_expenses=0.0, income_streams=(social_security_stream,))
    assert calculate_income_floor(inputs) is None


def test_phase_multiplier_applies_to_essentials(ss_retiree):
    config = SpendingPhaseConfig(enabled=True, phases=(
        SpendingPhase(id="late", name="No-Go", start_age=85, essential_multiplier=2.0),
    ))
    analysis = calculate_income_floor(replace(ss_retiree, spending_phase_config=config))
    at_85 = next(c for c in analysis.coverage_by_age if c.age == 85)
    assert at_85.essential_expenses == pytest.approx(40_000 * 1.025 ** 20, abs=0.01)
    assert math.isfinite(at_85.coverage_ratio)
