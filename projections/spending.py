# projections/spending.py
#
# Annual essential / discretionary spending for a given age, flat or via a
# multi-phase schedule ("Go-Go / Slow-Go / No-Go").
#

from dataclasses import dataclass
from typing import List, Optional

from models import SpendingPhase, SpendingPhaseConfig
from projections.errors import InvariantViolation

MAX_SPENDING_PHASES = 4


@dataclass(frozen=True)
class PhaseAdjustedExpenses:
    essential: float
    discretionary: float
    phase_name: Optional[str] = None


def sorted_phases(config: Optional[SpendingPhaseConfig]) -> List[SpendingPhase]:
    """Phases in ascending start-age order, regardless of how they were entered."""
    if config is None:
        return []
    return sorted(config.phases, key=lambda p: p.start_age)


def validate_spending_phase_config(config: Optional[SpendingPhaseConfig]) -> None:
    if config is None or not config.enabled:
        return

    phases = sorted_phases(config)
    if not 1 <= len(phases) <= MAX_SPENDING_PHASES:
        raise InvariantViolation(
            "spending_phase_config",
            f"enabled config must have 1-{MAX_SPENDING_PHASES} phases, got {len(phases)}",
        )

    start_ages = [p.start_age for p in phases]
    if len(set(start_ages)) != len(start_ages):
        raise InvariantViolation(
            "spending_phase_config", "phase start ages must be unique"
        )

    for phase in phases:
        if phase.essential_multiplier < 0 or phase.discretionary_multiplier < 0:
            raise InvariantViolation(
                "spending_phase_config", f"phase '{phase.name}' has a negative multiplier"
            )
        for override in (phase.absolute_essential, phase.absolute_discretionary):
            if override is not None and override < 0:
                raise InvariantViolation(
                    "spending_phase_config", f"phase '{phase.name}' has a negative override"
                )


def get_active_phase(age: int, config: Optional[SpendingPhaseConfig]) -> Optional[SpendingPhase]:
    """Last phase whose start age has been reached, or None before the first one."""
    if config is None or not config.enabled:
        return None

    active = None
    for phase in sorted_phases(config):
        if phase.start_age <= age:
            active = phase
        else:
            break
    return active


def calculate_phase_adjusted_expenses(
    age: int,
    base_essential: float,
    base_discretionary: float,
    config: Optional[SpendingPhaseConfig],
) -> PhaseAdjustedExpenses:
    """
    Returns today's-dollar essential and discretionary spending for `age`.

    Absolute dollar overrides on the active phase win over its multipliers.
    With no active phase (disabled config, or age before the first phase)
    the base amounts are returned unchanged.
    """
    phase = get_active_phase(age, config)
    if phase is None:
        return PhaseAdjustedExpenses(base_essential, base_discretionary, None)

    if phase.absolute_essential is not None:
        essential = phase.absolute_essential
    else:
        essential = base_essential * phase.essential_multiplier

    if phase.absolute_discretionary is not None:
        discretionary = phase.absolute_discretionary
    else:
        discretionary = base_discretionary * phase.discretionary_multiplier

    return PhaseAdjustedExpenses(essential, discretionary, phase.name)


def phase_periods(config: Optional[SpendingPhaseConfig], from_age: int, to_age: int) -> list:
    """
    Splits [from_age, to_age) into (phase, start, end, years) periods.
    Phases that fall entirely outside the window are dropped.
    """
    phases = sorted_phases(config)
    periods = []
    for i, phase in enumerate(phases):
        start = max(phase.start_age, from_age)
        end = min(phases[i + 1].start_age, to_age) if i < len(phases) - 1 else to_age
        if start < end:
            periods.append((phase, start, end, end - start))
    return periods
