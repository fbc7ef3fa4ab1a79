# projections/sensitivity.py
#
# What-if analysis: rerun the projection with one assumption nudged at a time
# and rank which levers move the outcome most.
#

from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from models import ProjectionInput, ProjectionResult
from projections.simulator import run_projection
from utils.currency import format_assumption_value, format_currency

METRICS = ("ending_balance", "projected_retirement_balance")
DEFAULT_METRIC = "ending_balance"
TOP_LEVER_COUNT = 3

# Low-friction win thresholds
MATERIALITY_PERCENT = 1.0
MIN_WIN_IMPACT = 5000.0
MIN_EXTRA_YEAR_IMPACT = 10000.0
LATEST_SUGGESTED_RETIREMENT_AGE = 70
MAX_LOW_FRICTION_WINS = 3


@dataclass(frozen=True)
class LeverTest:
    lever: str
    display_name: str
    delta: float
    direction: str  # 'increase' | 'decrease'


# Declaration order is the ranking tie-break
LEVER_TESTS: Tuple[LeverTest, ...] = (
    LeverTest("expected_return", "Expected Return", 0.01, "increase"),
    LeverTest("inflation_rate", "Inflation Rate", 0.01, "decrease"),
    LeverTest("retirement_age", "Retirement Age", 1, "increase"),
    LeverTest("contribution_growth_rate", "Contribution Growth", 0.01, "increase"),
    LeverTest("healthcare_inflation_rate", "Healthcare Inflation", 0.01, "decrease"),
    LeverTest("annual_healthcare_costs", "Healthcare Costs", 1000.0, "decrease"),
)


@dataclass(frozen=True)
class LeverImpact:
    lever: str
    display_name: str
    current_value: float
    test_delta: float
    test_direction: str
    impact_on_balance: float
    impact_on_depletion: Optional[int]
    percent_impact: float


@dataclass(frozen=True)
class SensitivityResult:
    top_levers: Tuple[LeverImpact, ...]
    all_levers: Tuple[LeverImpact, ...]
    baseline_balance: float
    baseline_depletion: Optional[int]
    metric: str = DEFAULT_METRIC


@dataclass(frozen=True)
class LowFrictionWin:
    id: str
    title: str
    description: str
    effort_level: str  # 'minimal' | 'low' | 'moderate'
    potential_impact: float
    percent_impact: float
    impact_description: str
    uncertainty_caveat: str
    lever: str
    delta: float


@dataclass(frozen=True)
class SensitiveAssumption:
    assumption: str
    display_name: str
    current_value: float
    formatted_value: str
    sensitivity_score: int
    explanation: str
    review_suggestion: str


REVIEW_SUGGESTIONS = {
    "expected_return": "Review annually based on portfolio allocation and market conditions",
    "inflation_rate": "Consider updating if inflation trends significantly change",
    "retirement_age": "Revisit as career plans evolve",
    "annual_contribution": "Update when income or expenses change meaningfully",
    "annual_expenses": "Refresh after major life changes or annual budget review",
    "annual_healthcare_costs": "Review as healthcare needs or coverage changes",
    "healthcare_inflation_rate": "Monitor healthcare cost trends periodically",
    "contribution_growth_rate": "Adjust based on expected career trajectory",
    "max_age": "Consider family health history and lifestyle factors",
}

METRIC_LABELS = {
    "ending_balance": "ending balance",
    "projected_retirement_balance": "retirement balance",
}


# =============================================================================
# HELPERS
# =============================================================================

def _metric_value(result: ProjectionResult, metric: str) -> float:
    return getattr(result.summary, metric)


def _check_metric(metric: str) -> None:
    if metric not in METRICS:
        raise ValueError(f"Unknown sensitivity metric '{metric}'. Expected one of {METRICS}")


def _percent_of(impact: float, baseline: float) -> float:
    if baseline == 0:
        return 0.0
    return impact / baseline * 100


def calculate_depletion_delta(
    base_depletion: Optional[int], modified_depletion: Optional[int]
) -> Optional[int]:
    """
    Change in years-until-depletion between two runs.

    None when both runs are sustainable or the change makes the plan
    sustainable; the new depletion year count when a sustainable plan
    starts to deplete; otherwise the signed difference.
    """
    if base_depletion is None:
        return modified_depletion
    if modified_depletion is None:
        return None
    return modified_depletion - base_depletion


def _perturbed_value(inputs: ProjectionInput, test: LeverTest):
    """New lever value, or None when the nudge is impossible for this input."""
    current = getattr(inputs, test.lever)
    if test.direction == "increase":
        new_value = current + test.delta
        if test.lever == "retirement_age":
            new_value = int(new_value)
            if new_value > inputs.max_age:
                return None
    else:
        new_value = max(0.0, current - test.delta)
    if new_value == current:
        return None
    return new_value


def format_delta_value(lever: str, delta: float) -> str:
    if lever in ("expected_return", "inflation_rate", "healthcare_inflation_rate", "contribution_growth_rate"):
        return f"{delta * 100:.1f}%"
    if lever in ("retirement_age", "max_age"):
        delta = int(delta)
        return f"{delta} year{'s' if delta != 1 else ''}"
    if lever in ("annual_contribution", "annual_expenses", "annual_healthcare_costs"):
        return format_currency(delta)
    return str(delta)


# =============================================================================
# LEVER ANALYSIS
# =============================================================================

def analyze_sensitivity(inputs: ProjectionInput, metric: str = DEFAULT_METRIC) -> SensitivityResult:
    """
    Perturbs each lever in LEVER_TESTS independently and measures the change
    in `metric` against a baseline run.

    Parameters
    ----------
    inputs : ProjectionInput
        Baseline inputs; never mutated.
    metric : str
        Summary field compared across runs ("ending_balance" or
        "projected_retirement_balance").

    Returns
    -------
    SensitivityResult
        All evaluated levers plus the top three by absolute impact. Sorting
        is stable, so ties keep declaration order.
    """
    _check_metric(metric)

    baseline = run_projection(inputs)
    baseline_balance = _metric_value(baseline, metric)
    baseline_depletion = baseline.summary.years_until_depletion

    impacts: List[LeverImpact] = []
    for test in LEVER_TESTS:
        new_value = _perturbed_value(inputs, test)
        if new_value is None:
            continue

        current_value = getattr(inputs, test.lever)
        modified = run_projection(replace(inputs, **{test.lever: new_value}))
        impact = _metric_value(modified, metric) - baseline_balance

        impacts.append(LeverImpact(
            lever=test.lever,
            display_name=test.display_name,
            current_value=current_value,
            test_delta=abs(new_value - current_value),
            test_direction=test.direction,
            impact_on_balance=impact,
            impact_on_depletion=calculate_depletion_delta(
                baseline_depletion, modified.summary.years_until_depletion
            ),
            percent_impact=_percent_of(impact, baseline_balance),
        ))

    ranked = sorted(impacts, key=lambda l: abs(l.impact_on_balance), reverse=True)
    return SensitivityResult(
        top_levers=tuple(ranked[:TOP_LEVER_COUNT]),
        all_levers=tuple(ranked),
        baseline_balance=baseline_balance,
        baseline_depletion=baseline_depletion,
        metric=metric,
    )


# =============================================================================
# LOW-FRICTION WINS
# =============================================================================

@dataclass(frozen=True)
class _WinCandidate:
    id: str
    title: str
    description: str
    effort_level: str
    lever: str
    delta: float
    min_impact: float
    impact_template: str
    uncertainty_caveat: str
    modified: ProjectionInput


def _scaled_expenses(inputs: ProjectionInput, factor: float) -> ProjectionInput:
    changes = {"annual_expenses": inputs.annual_expenses * factor}
    if inputs.annual_essential_expenses is not None:
        changes["annual_essential_expenses"] = inputs.annual_essential_expenses * factor
    if inputs.annual_discretionary_expenses is not None:
        changes["annual_discretionary_expenses"] = inputs.annual_discretionary_expenses * factor
    return replace(inputs, **changes)


def _win_candidates(inputs: ProjectionInput) -> List[_WinCandidate]:
    candidates = []

    if inputs.retirement_age < LATEST_SUGGESTED_RETIREMENT_AGE and inputs.retirement_age < inputs.max_age:
        later = inputs.retirement_age + 1
        candidates.append(_WinCandidate(
            id="retire-one-year-later",
            title="One additional working year",
            description=f"Working until age {later} instead of {inputs.retirement_age}",
            effort_level="moderate",
            lever="retirement_age",
            delta=1,
            min_impact=MIN_EXTRA_YEAR_IMPACT,
            impact_template="adds approximately {} to retirement funds",
            uncertainty_caveat="Assumes continued employment and contribution levels",
            modified=replace(inputs, retirement_age=later),
        ))

    expense_reduction = inputs.total_base_expenses * 0.05
    if expense_reduction > 0:
        candidates.append(_WinCandidate(
            id="reduce-expenses-5pct",
            title="Modest expense reduction",
            description=f"Reducing annual expenses by {format_currency(expense_reduction)}/year (5%)",
            effort_level="low",
            lever="annual_expenses",
            delta=expense_reduction,
            min_impact=MIN_WIN_IMPACT,
            impact_template="frees up approximately {} for retirement",
            uncertainty_caveat="Based on current expense levels; actual savings may vary",
            modified=_scaled_expenses(inputs, 0.95),
        ))

    if inputs.annual_contribution > 0:
        increase = inputs.annual_contribution * 0.10
        candidates.append(_WinCandidate(
            id="increase-savings-10pct",
            title="Incremental savings boost",
            description=f"Saving an additional {format_currency(increase)}/year (10% increase)",
            effort_level="low",
            lever="annual_contribution",
            delta=increase,
            min_impact=MIN_WIN_IMPACT,
            impact_template="grows to approximately {} by retirement",
            uncertainty_caveat="Assumes consistent contribution over time; market returns may vary",
            modified=replace(inputs, annual_contribution=inputs.annual_contribution + increase),
        ))

        # Escalation only matters when there are contributions to escalate
        candidates.append(_WinCandidate(
            id="escalate-contributions-1pct",
            title="Automatic contribution escalation",
            description="Raising contributions by an extra 1% each year",
            effort_level="minimal",
            lever="contribution_growth_rate",
            delta=0.01,
            min_impact=MIN_WIN_IMPACT,
            impact_template="compounds to approximately {} over time",
            uncertainty_caveat="Assumes raises keep pace with the higher savings rate",
            modified=replace(inputs, contribution_growth_rate=inputs.contribution_growth_rate + 0.01),
        ))

    return candidates


def identify_low_friction_wins(
    inputs: ProjectionInput, sensitivity_result: Optional[SensitivityResult] = None
) -> List[LowFrictionWin]:
    """
    Small, realistic changes whose effect on the outcome is material.

    Every candidate is a fixed small nudge. It qualifies when its dollar
    impact clears the candidate's minimum and its percent impact clears
    MATERIALITY_PERCENT of the baseline. Returns at most three,
    largest impact first.
    """
    metric = sensitivity_result.metric if sensitivity_result else DEFAULT_METRIC
    _check_metric(metric)

    if sensitivity_result is not None:
        baseline_balance = sensitivity_result.baseline_balance
    else:
        baseline_balance = _metric_value(run_projection(inputs), metric)

    wins: List[LowFrictionWin] = []
    for candidate in _win_candidates(inputs):
        impact = _metric_value(run_projection(candidate.modified), metric) - baseline_balance
        percent = _percent_of(impact, baseline_balance)
        if impact <= candidate.min_impact:
            continue
        # A zero baseline cannot express a percent; the dollar floor decides alone
        if baseline_balance > 0 and percent < MATERIALITY_PERCENT:
            continue

        wins.append(LowFrictionWin(
            id=candidate.id,
            title=candidate.title,
            description=candidate.description,
            effort_level=candidate.effort_level,
            potential_impact=impact,
            percent_impact=percent,
            impact_description=candidate.impact_template.format(format_currency(impact)),
            uncertainty_caveat=candidate.uncertainty_caveat,
            lever=candidate.lever,
            delta=candidate.delta,
        ))

    wins.sort(key=lambda w: w.potential_impact, reverse=True)
    return wins[:MAX_LOW_FRICTION_WINS]


# =============================================================================
# SENSITIVE ASSUMPTIONS
# =============================================================================

def _assumption_explanation(lever: LeverImpact, metric: str) -> str:
    label = METRIC_LABELS.get(metric, metric)
    delta = format_delta_value(lever.lever, lever.test_delta)
    name = lever.display_name.lower()
    if lever.impact_on_balance == 0:
        return f"A {delta} {lever.test_direction} in {name} has no measurable effect on the {label}."
    direction = "higher" if lever.impact_on_balance > 0 else "lower"
    amount = format_currency(abs(lever.impact_on_balance))
    return f"A {delta} {lever.test_direction} in {name} results in approximately {amount} {direction} {label}."


def identify_sensitive_assumptions(
    inputs: ProjectionInput, sensitivity_result: SensitivityResult
) -> List[SensitiveAssumption]:
    """Scores every evaluated lever 0-100 against the largest absolute impact."""
    levers = sensitivity_result.all_levers
    max_impact = max([abs(l.impact_on_balance) for l in levers] + [1.0])

    assumptions = []
    for lever in levers:
        assumptions.append(SensitiveAssumption(
            assumption=lever.lever,
            display_name=lever.display_name,
            current_value=lever.current_value,
            formatted_value=format_assumption_value(lever.lever, lever.current_value),
            sensitivity_score=round(abs(lever.impact_on_balance) / max_impact * 100),
            explanation=_assumption_explanation(lever, sensitivity_result.metric),
            review_suggestion=REVIEW_SUGGESTIONS.get(
                lever.lever, "Review periodically as circumstances change"
            ),
        ))
    return assumptions
