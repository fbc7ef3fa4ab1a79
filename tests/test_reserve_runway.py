import pytest

from models import IncomeStream
from projections import UNLIMITED_RUNWAY, calculate_reserve_runway
from projections.reserve_runway import calculate_guaranteed_income_total, is_unlimited


def test_gap_without_inflation():
    runway = calculate_reserve_runway(100_000, 30_000, 0, 20_000, inflation_rate=0.0)
    assert runway.years_of_essentials == 10
    assert runway.description == "Reserve covers ~10 years of essential expenses"


def test_full_spending_includes_discretionary():
    runway = calculate_reserve_runway(100_000, 30_000, 10_000, 20_000, inflation_rate=0.0)
    assert runway.years_of_essentials == 10
    assert runway.years_of_full_spending == 5


def test_inflation_shortens_the_runway():
    runway = calculate_reserve_runway(100_000, 30_000, 0, 20_000, inflation_rate=0.05)
    assert runway.years_of_essentials < 10


def test_income_covering_essentials_is_unlimited():
    runway = calculate_reserve_runway(50_000, 30_000, 10_000, 40_000)
    assert runway.years_of_essentials == UNLIMITED_RUNWAY
    assert is_unlimited(runway.years_of_essentials)
    assert runway.years_of_full_spending == 5
    assert runway.description == "Guaranteed income covers all essential expenses"


def test_runway_is_capped():
    runway = calculate_reserve_runway(1e12, 1.0, 0, 0)
    assert runway.years_of_essentials == 100
    assert runway.description == "Reserve provides 30+ years of essential expense coverage"


@pytest.mark.parametrize("reserve, expected", [
    (0, "Reserve covers less than a year of essential expenses"),
    (10_000, "Reserve covers 1 year of essential expenses"),
    (25_000, "Reserve covers 3 years of essential expenses"),
])
def test_short_runway_descriptions(reserve, expected):
    assert calculate_reserve_runway(reserve, 10_000, 0, 0, inflation_rate=0.0).description == expected


def test_guaranteed_income_total(social_security_stream):
    rental = IncomeStream(id="r", name="Rental", type="rental", annual_amount=9_000.0, start_age=60)
    assert calculate_guaranteed_income_total([social_security_stream, rental]) == 24_000
