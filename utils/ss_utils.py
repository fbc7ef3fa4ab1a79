# utils/ss_utils.py

import math

from config.projection_assumptions import (
    default_ss_age,
    ss_conservative_haircut,
    ss_replacement_tiers,
    ssa_max_monthly_benefit,
)


def get_full_retirement_age(birth_year: int, birth_month: int = 1) -> float:
    """
    Calculates the Full Retirement Age (FRA) in years based on the birth year
    and birth month according to US Social Security Administration rules.
    """
    # Persons born on January 1st refer to the FRA of the previous year
    if birth_month == 1:
        year_for_fra_calc = birth_year - 1
    else:
        year_for_fra_calc = birth_year

    if year_for_fra_calc <= 1937:
        return 65.0
    elif 1938 <= year_for_fra_calc <= 1942:
        # 65 plus 2 months for each year after 1937
        return 65.0 + (year_for_fra_calc - 1937) * 2 / 12.0
    elif 1943 <= year_for_fra_calc <= 1954:
        return 66.0
    elif 1955 <= year_for_fra_calc <= 1959:
        # 66 plus 2 months for each year after 1954
        return 66.0 + (year_for_fra_calc - 1954) * 2 / 12.0
    else:
        return 67.0


def default_claiming_age(birth_year: int = None) -> int:
    """First whole age at or after FRA; the configured default when the birth year is unknown."""
    if birth_year is None:
        return default_ss_age
    # Mid-year birthdays avoid the January rule
    return math.ceil(get_full_retirement_age(birth_year, birth_month=7))


def estimate_social_security_monthly(annual_income: float) -> float:
    """
    Rough monthly benefit in today's dollars.

    Marginal replacement tiers on income, a conservative haircut, then the
    SSA maximum benefit cap.
    """
    if annual_income is None or annual_income <= 0:
        return 0.0

    annual_benefit = 0.0
    floor = 0.0
    for ceiling, rate in ss_replacement_tiers:
        if annual_income <= floor:
            break
        annual_benefit += (min(annual_income, ceiling) - floor) * rate
        floor = ceiling

    monthly = annual_benefit * (1 - ss_conservative_haircut) / 12
    return min(monthly, ssa_max_monthly_benefit)
