# projections/rmd_tables.py

"""
RMD divisor lookup supporting:
- Versioned IRS Uniform Lifetime Tables (2022+ and pre-2022)
- SECURE Act 1.0/2.0 start ages (72 → 73 → 75)

Tables are reference data: add a new version to RMD_TABLES when the IRS
publishes one, and select it with RmdConfig.table_version.
"""

from typing import Dict, Optional

# =============================================================================
# 2022+ IRS UNIFORM LIFETIME TABLE (AGES 72-120)
# =============================================================================
UNIFORM_LIFETIME_TABLE_2022: Dict[int, float] = {
    72: 27.4, 73: 26.5, 74: 25.5, 75: 24.6, 76: 23.7, 77: 22.9,
    78: 22.0, 79: 21.1, 80: 20.2, 81: 19.4, 82: 18.5, 83: 17.7,
    84: 16.8, 85: 16.0, 86: 15.2, 87: 14.4, 88: 13.7, 89: 12.9,
    90: 12.2, 91: 11.5, 92: 10.8, 93: 10.1, 94: 9.5, 95: 8.9,
    96: 8.4, 97: 7.8, 98: 7.3, 99: 6.8, 100: 6.4, 101: 6.0,
    102: 5.6, 103: 5.2, 104: 4.9, 105: 4.6, 106: 4.3, 107: 4.1,
    108: 3.9, 109: 3.7, 110: 3.5, 111: 3.4, 112: 3.3, 113: 3.1,
    114: 3.0, 115: 2.9, 116: 2.8, 117: 2.7, 118: 2.5, 119: 2.3,
    120: 2.0,
}

# =============================================================================
# PRE-2022 IRS UNIFORM LIFETIME TABLE (AGES 70-115)
# =============================================================================
UNIFORM_LIFETIME_TABLE_PRE2022: Dict[int, float] = {
    70: 27.4, 71: 26.5, 72: 25.6, 73: 24.7, 74: 23.8, 75: 22.9,
    76: 22.0, 77: 21.2, 78: 20.3, 79: 19.5, 80: 18.7, 81: 17.9,
    82: 17.1, 83: 16.3, 84: 15.5, 85: 14.8, 86: 14.1, 87: 13.4,
    88: 12.7, 89: 12.0, 90: 11.4, 91: 10.8, 92: 10.2, 93: 9.6,
    94: 9.1, 95: 8.6, 96: 8.1, 97: 7.6, 98: 7.1, 99: 6.7,
    100: 6.3, 101: 5.9, 102: 5.5, 103: 5.2, 104: 4.9, 105: 4.5,
    106: 4.2, 107: 3.9, 108: 3.7, 109: 3.4, 110: 3.1, 111: 2.9,
    112: 2.6, 113: 2.4, 114: 2.1, 115: 1.9,
}

RMD_TABLES: Dict[str, Dict[int, float]] = {
    "2022": UNIFORM_LIFETIME_TABLE_2022,
    "pre2022": UNIFORM_LIFETIME_TABLE_PRE2022,
}

DEFAULT_RMD_START_AGE = 73
DEFAULT_TABLE_VERSION = "2022"
MINIMUM_DISTRIBUTION_PERIOD = 2.0  # IRS default beyond the table


def get_rmd_start_age(birth_year: Optional[int] = None) -> int:
    """SECURE 2.0 start age: 75 for 1960+, 73 for 1951-1959, 72 before that."""
    if birth_year is None:
        return DEFAULT_RMD_START_AGE
    if birth_year >= 1960:
        return 75
    if 1951 <= birth_year <= 1959:
        return 73
    return 72


def get_distribution_period(
    age: int,
    start_age: int = DEFAULT_RMD_START_AGE,
    table_version: str = DEFAULT_TABLE_VERSION,
) -> Optional[float]:
    """
    Returns the IRS divisor for RMD calculations.

    Parameters
    ----------
    age : int
        Age in the distribution calendar year.
    start_age : int
        First age at which a distribution is required.
    table_version : str
        Key into RMD_TABLES.

    Returns
    -------
    float | None
        Divisor for the given age, or None below the start age.
    """
    if age < start_age:
        return None

    try:
        table = RMD_TABLES[table_version]
    except KeyError:
        raise KeyError(f"Unknown RMD table version '{table_version}'") from None

    # Lookup in sorted order; ages below the table's first entry use that entry
    for max_age in sorted(table.keys()):
        if age <= max_age:
            return table[max_age]

    return MINIMUM_DISTRIBUTION_PERIOD


def calculate_rmd(
    prior_year_end_balance: float,
    age: int,
    start_age: int = DEFAULT_RMD_START_AGE,
    table_version: str = DEFAULT_TABLE_VERSION,
) -> float:
    """Prior year-end tax-deferred balance / distribution period (0 below start age)."""
    period = get_distribution_period(age, start_age, table_version)
    if period is None or prior_year_end_balance <= 0:
        return 0.0
    return prior_year_end_balance / period


__all__ = [
    "RMD_TABLES",
    "DEFAULT_RMD_START_AGE",
    "get_rmd_start_age",
    "get_distribution_period",
    "calculate_rmd",
]
