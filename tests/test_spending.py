import pytest

from models import SpendingPhase, SpendingPhaseConfig
from projections.errors import InvariantViolation
from projections.spending import (
    calculate_phase_adjusted_expenses,
    get_active_phase,
    phase_periods,
    validate_spending_phase_config,
)


def test_no_config_returns_base_amounts():
    expenses = calculate_phase_adjusted_expenses(70, 30_000, 20_000, None)
    assert (expenses.essential, expenses.discretionary, expenses.phase_name) == (30_000, 20_000, None)


def test_disabled_config_is_ignored(two_phase_config):
    disabled = SpendingPhaseConfig(enabled=False, phases=two_phase_config.phases)
    assert get_active_phase(70, disabled) is None


def test_multipliers_apply_in_active_phase(two_phase_config):
    expenses = calculate_phase_adjusted_expenses(80, 30_000, 20_000, two_phase_config)
    assert expenses.phase_name == "Slow-Go"
    assert expenses.essential == 30_000
    assert expenses.discretionary == pytest.approx(16_000)


def test_before_first_phase_uses_base():
    config = SpendingPhaseConfig(enabled=True, phases=(
        SpendingPhase(id="late", name="Late", start_age=80, discretionary_multiplier=0.5),
    ))
    assert calculate_phase_adjusted_expenses(70, 30_000, 20_000, config).discretionary == 20_000


def test_absolute_override_wins():
    config = SpendingPhaseConfig(enabled=True, phases=(
        SpendingPhase(id="p", name="Travel", start_age=65, discretionary_multiplier=3.0,
                      absolute_discretionary=25_000.0),
    ))
    assert calculate_phase_adjusted_expenses(66, 30_000, 20_000, config).discretionary == 25_000


def test_phases_are_sorted_by_start_age(two_phase_config):
    shuffled = SpendingPhaseConfig(enabled=True, phases=tuple(reversed(two_phase_config.phases)))
    assert get_active_phase(70, shuffled).name == "Go-Go"


def test_phase_periods_clip_to_window(two_phase_config):
    periods = phase_periods(two_phase_config, 65, 85)
    assert [(p.name, start, end, years) for p, start, end, years in periods] == [
        ("Go-Go", 65, 75, 10),
        ("Slow-Go", 75, 85, 10),
    ]
    assert phase_periods(two_phase_config, 65, 70)[-1][0].name == "Go-Go"


@pytest.mark.parametrize("phases", [
    (),
    tuple(SpendingPhase(id=str(i), name=str(i), start_age=60 + i) for i in range(5)),
    (SpendingPhase(id="a", name="A", start_age=65), SpendingPhase(id="b", name="B", start_age=65)),
    (SpendingPhase(id="a", name="A", start_age=65, essential_multiplier=-1.0),),
    (SpendingPhase(id="a", name="A", start_age=65, absolute_essential=-10.0),),
])
def test_invalid_enabled_configs(phases):
    with pytest.raises(InvariantViolation):
        validate_spending_phase_config(SpendingPhaseConfig(enabled=True, phases=phases))


def test_disabled_config_skips_validation():
    validate_spending_phase_config(SpendingPhaseConfig(enabled=False, phases=()))
