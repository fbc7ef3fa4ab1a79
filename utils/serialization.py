# utils/serialization.py
#
# Stable dict/JSON form of ProjectionInput for storage and cache keys
#

import hashlib
import json
import logging
from dataclasses import asdict, fields
from typing import Any, Dict, Mapping, Optional, Union

from models import (
    BalanceByType,
    DepletionTarget,
    IncomeStream,
    ProjectionAssumptions,
    ProjectionInput,
    ProjectionResult,
    ReserveConfig,
    RmdConfig,
    SpendingPhase,
    SpendingPhaseConfig,
)

logger = logging.getLogger(__name__)

INPUT_FIELD_NAMES = tuple(f.name for f in fields(ProjectionInput))


def _jsonable(value: Any) -> Any:
    # asdict keeps tuples; storage and hashing want plain lists
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def projection_input_to_dict(inputs: ProjectionInput) -> Dict[str, Any]:
    return _jsonable(asdict(inputs))


# Fields that stay whole numbers in the canonical form; every other number is a float
WHOLE_NUMBER_KEYS = frozenset({
    "current_age", "retirement_age", "max_age", "debt_payoff_age", "start_year",
    "start_age", "end_age", "target_age",
})


def _canonical_numbers(value: Any, key: Optional[str] = None) -> Any:
    # 20000 and 20000.0 compare equal but serialize differently
    if isinstance(value, dict):
        return {k: _canonical_numbers(v, k) for k, v in value.items()}
    if isinstance(value, list):
        return [_canonical_numbers(v, key) for v in value]
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, (int, float)):
        if key not in WHOLE_NUMBER_KEYS:
            return float(value)
        if isinstance(value, float) and value.is_integer():
            return int(value)
    return value


def canonical_projection_input(inputs: ProjectionInput) -> Dict[str, Any]:
    """
    Dict form with income streams and spending phases sorted by id, and
    numbers normalized so equal inputs always produce the same JSON.
    """
    data = _canonical_numbers(projection_input_to_dict(inputs))
    data["income_streams"] = sorted(data["income_streams"], key=lambda s: s["id"])
    if data["spending_phase_config"] is not None:
        data["spending_phase_config"]["phases"] = sorted(
            data["spending_phase_config"]["phases"], key=lambda p: p["id"]
        )
    return data


# ----------------------------------------------------------------------
# Rebuild from stored JSON
# ----------------------------------------------------------------------

def _balances(data: Mapping[str, Any]) -> BalanceByType:
    return BalanceByType(**{k: float(v) for k, v in data.items()})


def _spending_phase_config(data: Mapping[str, Any]) -> SpendingPhaseConfig:
    return SpendingPhaseConfig(
        enabled=data.get("enabled", False),
        phases=tuple(SpendingPhase(**p) for p in data.get("phases", ())),
    )


def _depletion_target(data: Mapping[str, Any]) -> DepletionTarget:
    reserve = data.get("reserve")
    if reserve is not None:
        reserve = ReserveConfig(
            type=reserve.get("type", "derived"),
            amount=reserve.get("amount"),
            purposes=tuple(reserve.get("purposes", ())),
        )
    return DepletionTarget(
        enabled=data.get("enabled", False),
        target_percentage_spent=data.get("target_percentage_spent", 80.0),
        target_age=data.get("target_age"),
        reserve=reserve,
    )


def projection_input_from_dict(data: Mapping[str, Any]) -> ProjectionInput:
    """Inverse of projection_input_to_dict; keys it does not know are ignored."""
    unknown = set(data) - set(INPUT_FIELD_NAMES)
    if unknown:
        logger.debug(f"Ignoring unknown projection input keys: {sorted(unknown)}")

    kwargs = {k: v for k, v in data.items() if k in INPUT_FIELD_NAMES}
    kwargs["balances_by_type"] = _balances(kwargs["balances_by_type"])
    kwargs["contribution_allocation"] = _balances(kwargs["contribution_allocation"])
    kwargs["income_streams"] = tuple(IncomeStream(**s) for s in kwargs.get("income_streams", ()))

    if kwargs.get("spending_phase_config") is not None:
        kwargs["spending_phase_config"] = _spending_phase_config(kwargs["spending_phase_config"])
    if kwargs.get("depletion_target") is not None:
        kwargs["depletion_target"] = _depletion_target(kwargs["depletion_target"])
    if kwargs.get("rmd_config") is not None:
        kwargs["rmd_config"] = RmdConfig(**kwargs["rmd_config"])
    else:
        kwargs.pop("rmd_config", None)

    return ProjectionInput(**kwargs)


def hash_projection_input(inputs: Union[ProjectionInput, Mapping[str, Any]]) -> str:
    """
    SHA-256 over the canonical JSON form. Equal for inputs that differ only
    in the order of their income streams or spending phases.
    """
    if not isinstance(inputs, ProjectionInput):
        inputs = projection_input_from_dict(inputs)
    payload = json.dumps(canonical_projection_input(inputs), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def stored_projection(inputs: ProjectionInput, result: ProjectionResult) -> Dict[str, Any]:
    """
    The record persisted for a saved projection: inputs (with their hash for
    cache lookups), the headline assumptions, every yearly record and the summary.
    """
    return {
        "inputs": projection_input_to_dict(inputs),
        "input_hash": hash_projection_input(inputs),
        "assumptions": asdict(ProjectionAssumptions.from_input(inputs)),
        "records": _jsonable([asdict(r) for r in result.records]),
        "summary": asdict(result.summary),
    }
