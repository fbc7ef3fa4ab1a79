# projections/warnings.py
#
# Advisory notes for inputs that are valid but unusual
#

from dataclasses import dataclass
from typing import List

from config.projection_assumptions import rmd_warning_balance
from models import ProjectionInput
from utils.currency import format_currency_output

HIGH_INFLATION_RATE = 0.08
LOW_EXPECTED_RETURN = 0.02
SHORT_HORIZON_YEARS = 5
RMD_LEAD_YEARS = 3


@dataclass(frozen=True)
class ProjectionWarning:
    field: str
    message: str
    severity: str  # 'info' | 'warning'


def generate_projection_warnings(inputs: ProjectionInput) -> List[ProjectionWarning]:
    warnings = []

    if inputs.inflation_rate > HIGH_INFLATION_RATE:
        warnings.append(ProjectionWarning(
            field="inflation_rate",
            message=(
                f"Inflation rate of {inputs.inflation_rate * 100:.1f}% is higher than historical "
                "averages. Consider using a more conservative estimate (2-4% is typical)."
            ),
            severity="warning",
        ))

    if 0 <= inputs.expected_return < LOW_EXPECTED_RETURN:
        warnings.append(ProjectionWarning(
            field="expected_return",
            message=(
                f"Expected return of {inputs.expected_return * 100:.1f}% is quite conservative. "
                "Historical stock market returns average 7-10% before inflation."
            ),
            severity="info",
        ))

    if inputs.balances_by_type.total == 0 and inputs.annual_contribution == 0:
        warnings.append(ProjectionWarning(
            field="savings",
            message=(
                "Starting with no savings and no contributions will result in relying "
                "entirely on other income sources in retirement."
            ),
            severity="warning",
        ))

    if 0 < inputs.annual_contribution <= inputs.annual_debt_payments:
        warnings.append(ProjectionWarning(
            field="debt",
            message="Your debt payments exceed your retirement contributions. Consider prioritizing debt reduction.",
            severity="info",
        ))

    years_to_retirement = inputs.retirement_age - inputs.current_age
    if 0 < years_to_retirement <= SHORT_HORIZON_YEARS:
        warnings.append(ProjectionWarning(
            field="retirement_age",
            message=(
                f"You're {years_to_retirement} year{'' if years_to_retirement == 1 else 's'} from "
                "retirement. Focus on preserving capital and finalizing your income strategy."
            ),
            severity="info",
        ))

    rmd_age = inputs.rmd_config.start_age
    tax_deferred = inputs.balances_by_type.tax_deferred
    if (
        inputs.rmd_config.enabled
        and rmd_age - RMD_LEAD_YEARS <= inputs.current_age < rmd_age
        and tax_deferred > rmd_warning_balance
    ):
        warnings.append(ProjectionWarning(
            field="rmd",
            message=(
                f"You're approaching age {rmd_age} when Required Minimum Distributions (RMDs) begin. "
                f"With {format_currency_output(tax_deferred)} in tax-deferred accounts, you'll be "
                f"required to withdraw a minimum amount each year starting at age {rmd_age}."
            ),
            severity="info",
        ))

    return warnings
