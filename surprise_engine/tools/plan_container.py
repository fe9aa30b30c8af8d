"""Adapters between persisted plan records and the stop-list core."""
from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from surprise_engine.tools.attributes import is_record


@dataclass
class StopsContainer:
    stops: List[Any]
    is_root: bool


def clone_plan(plan: Any) -> Dict[str, Any]:
    """Deep copy of ``plan`` as a plain dict; pydantic models are dumped first."""
    if hasattr(plan, "model_dump"):
        return copy.deepcopy(plan.model_dump(mode="python"))
    if isinstance(plan, Mapping):
        return copy.deepcopy(dict(plan))
    raise TypeError("Unsupported plan type for surprise enforcement")


def read_stops_container(plan: Mapping[str, Any]) -> StopsContainer:
    """Locate the stop list at ``stops`` or, failing that, ``plan.stops``."""
    root_stops = plan.get("stops")
    if isinstance(root_stops, list):
        return StopsContainer(list(root_stops), True)
    nested = plan.get("plan")
    if is_record(nested) and isinstance(nested.get("stops"), list):
        return StopsContainer(list(nested["stops"]), False)
    return StopsContainer([], True)


def write_stops_container(plan: Dict[str, Any], container: StopsContainer) -> None:
    if container.is_root:
        plan["stops"] = container.stops
        return
    nested = plan.get("plan")
    if not isinstance(nested, dict):
        nested = {}
        plan["plan"] = nested
    nested["stops"] = container.stops


def get_vertical_meta(plan: Mapping[str, Any], vertical_key: str) -> Dict[str, Any] | None:
    meta = plan.get("meta")
    if not is_record(meta):
        return None
    vertical = meta.get(vertical_key)
    return dict(vertical) if is_record(vertical) else None


def set_vertical_meta(plan: Mapping[str, Any], vertical_key: str, partial: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a new plan with ``partial`` merged into ``meta[vertical_key]``.

    Sibling keys at both levels are kept. The input plan is not modified.
    """
    meta = plan.get("meta") if is_record(plan.get("meta")) else {}
    vertical = meta.get(vertical_key) if is_record(meta.get(vertical_key)) else {}
    return {
        **plan,
        "meta": {
            **meta,
            vertical_key: {**vertical, **partial},
        },
    }
