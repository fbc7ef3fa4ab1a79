# projections/staleness.py
#
# Has anything that feeds the projection changed since it was stored?
#

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Tuple, Union

from models import ProjectionInput
from utils.serialization import canonical_projection_input, projection_input_from_dict


@dataclass(frozen=True)
class StalenessResult:
    is_stale: bool
    changed_fields: Tuple[str, ...]
    # field -> {"previous": ..., "current": ...}, in plain dict form
    changes: Dict[str, Dict[str, Any]] = field(default_factory=dict)


def _phases_equal(previous: Any, current: Any) -> bool:
    if previous is None and current is None:
        return True
    if previous is None or current is None:
        return False
    # Two disabled configs drive the same projection whatever their phases
    if not previous["enabled"] and not current["enabled"]:
        return True
    return previous == current


def check_projection_staleness(
    stored: Union[ProjectionInput, Mapping[str, Any]],
    current: ProjectionInput,
) -> StalenessResult:
    """
    Field-by-field comparison of every ProjectionInput field.

    `stored` may be the dict persisted alongside the projection. Income
    streams and spending phases compare independent of order.
    """
    if not isinstance(stored, ProjectionInput):
        stored = projection_input_from_dict(stored)

    previous_data = canonical_projection_input(stored)
    current_data = canonical_projection_input(current)

    changed = []
    changes = {}
    for f in fields(ProjectionInput):
        previous_value = previous_data[f.name]
        current_value = current_data[f.name]

        if f.name == "spending_phase_config":
            equal = _phases_equal(previous_value, current_value)
        else:
            equal = previous_value == current_value

        if not equal:
            changed.append(f.name)
            changes[f.name] = {"previous": previous_value, "current": current_value}

    return StalenessResult(is_stale=bool(changed), changed_fields=tuple(changed), changes=changes)
