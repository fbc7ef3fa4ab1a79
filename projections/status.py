# projections/status.py

from dataclasses import dataclass

from config.projection_assumptions import at_risk_runway_years
from models import ProjectionInput, ProjectionSummary


@dataclass(frozen=True)
class RetirementStatusResult:
    status: str  # 'on-track' | 'needs-adjustment' | 'at-risk'
    label: str
    description: str


def get_retirement_status(summary: ProjectionSummary, inputs: ProjectionInput) -> RetirementStatusResult:
    """
    on-track          : funds last through max age
    needs-adjustment  : depletes, but more than at_risk_runway_years into retirement
    at-risk           : depletes within at_risk_runway_years
    """
    years = summary.years_until_depletion
    if years is None:
        return RetirementStatusResult(
            status="on-track",
            label="On Track",
            description=f"Your retirement savings are projected to last through age {inputs.max_age}.",
        )

    depletion_age = summary.depletion_age
    if depletion_age is None:
        depletion_age = inputs.retirement_age + years

    if years > at_risk_runway_years:
        return RetirementStatusResult(
            status="needs-adjustment",
            label="Needs Adjustment",
            description=f"Funds may run out at age {depletion_age}. Consider increasing savings.",
        )

    return RetirementStatusResult(
        status="at-risk",
        label="At Risk of Shortfall",
        description=f"Funds projected to run out at age {depletion_age}. Action recommended.",
    )
