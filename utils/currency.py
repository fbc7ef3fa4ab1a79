# utils/currency.py
from typing import Union


# ----------------------------------------------------------------------
# Parsing helpers (snapshot values may arrive as display strings)
# ----------------------------------------------------------------------

def clean_currency(val) -> float:
    """
    Cleans a currency string (e.g., "$140,000.00") into a float (140000.0).
    """
    if val is None or val == "":
        return 0.0
    if isinstance(val, (int, float)):
        return float(val)

    cleaned_val = str(val).replace('$', '').replace(',', '').strip()
    if not cleaned_val:
        return 0.0
    return float(cleaned_val)


def clean_percent(raw_input: Union[str, float, int, None]) -> Union[float, None]:
    """
    Cleans raw input (e.g., '0.23', '23%', '23') and converts it to a float
    where 1.0 represents 100%.
    """
    if raw_input is None:
        return None

    if isinstance(raw_input, (float, int)):
        # Numbers between 1 and 100 are whole percentages
        if 1.0 <= float(raw_input) <= 100.0:
            return float(raw_input) / 100.0
        return float(raw_input)

    s = str(raw_input).replace('%', '').replace(',', '').replace(' ', '').strip()
    if not s:
        return None

    numeric_val = float(s)
    if 1.0 <= numeric_val <= 100.0:
        return numeric_val / 100.0
    return numeric_val


# ----------------------------------------------------------------------
# Display helpers
# ----------------------------------------------------------------------

def format_percent_output(value: Union[float, None], decimal_places: int = 1) -> str:
    """Formats a float (0.23) to a display string ('23.0%')."""
    if value is None:
        return ""
    return f"{float(value) * 100:.{decimal_places}f}%"


def format_currency_output(val, decimals=0):
    """
    Formats a float/int into a clean currency string ($1,234,567).
    """
    if val is None:
        val = 0.0
    return f"${val:,.{decimals}f}"


def format_dollars(val: float) -> str:
    """Whole dollars with thousands separators; negatives keep their sign ($-1,200 -> -$1,200)."""
    rounded = round(val)
    if rounded < 0:
        return f"-${-rounded:,}"
    return f"${rounded:,}"


def format_currency(value: float) -> str:
    """Compact form used in narrative text: $1.2M, $150K, $850."""
    if value >= 1_000_000:
        return f"${value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"${round(value / 1_000)}K"
    return f"${round(value)}"


PERCENT_LEVERS = ("expected_return", "inflation_rate", "healthcare_inflation_rate", "contribution_growth_rate")
AGE_LEVERS = ("retirement_age", "max_age")
DOLLAR_LEVERS = ("annual_contribution", "annual_expenses", "annual_healthcare_costs")


def format_assumption_value(lever: str, value: float) -> str:
    if lever in PERCENT_LEVERS:
        return format_percent_output(value, 1)
    if lever in AGE_LEVERS:
        return f"Age {int(value)}"
    if lever in DOLLAR_LEVERS:
        return format_currency(value)
    return str(value)
