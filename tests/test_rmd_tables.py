import pytest

from projections.rmd_tables import (
    calculate_rmd,
    get_distribution_period,
    get_rmd_start_age,
)


def test_divisor_at_73():
    assert get_distribution_period(73) == 26.5


def test_no_divisor_below_start_age():
    assert get_distribution_period(72) is None
    assert calculate_rmd(500_000, 72) == 0.0


def test_ages_beyond_table_use_minimum_period():
    assert get_distribution_period(125) == 2.0


def test_pre2022_table():
    assert get_distribution_period(75, start_age=72, table_version="pre2022") == 22.9


def test_early_start_age_uses_first_table_entry():
    # 2022 table starts at 72
    assert get_distribution_period(70, start_age=70) == 27.4


def test_unknown_table_version():
    with pytest.raises(KeyError):
        get_distribution_period(80, table_version="1987")


@pytest.mark.parametrize("birth_year, expected", [
    (1945, 72),
    (1950, 72),
    (1951, 73),
    (1959, 73),
    (1960, 75),
    (1985, 75),
    (None, 73),
])
def test_start_age_by_birth_year(birth_year, expected):
    assert get_rmd_start_age(birth_year) == expected


def test_rmd_amount():
    assert calculate_rmd(265_000, 73) == pytest.approx(10_000)


def test_rmd_on_empty_balance():
    assert calculate_rmd(0, 80) == 0.0
