"""Stable plan ids and cache keys per vertical."""
from __future__ import annotations

from typing import Any, Iterable

IDEA_DATE_VERTICAL = "idea-date"


def normalize_refinement(refinement: Any) -> str:
    if hasattr(refinement, "value"):
        refinement = refinement.value
    if not isinstance(refinement, str):
        return "none"
    return refinement.strip() or "none"


def build_vertical_plan_id(vertical_key: str, parts: Iterable[str], refinement: Any = None) -> str:
    return f"{vertical_key}-{'-'.join(parts)}-{normalize_refinement(refinement)}"


def build_vertical_cache_key(parts: Iterable[str], refinement: Any = None) -> str:
    return f"{':'.join(parts)}:{normalize_refinement(refinement)}"


def build_idea_date_plan_id(crew: str, anchor: str, refinement: Any = None) -> str:
    return build_vertical_plan_id(IDEA_DATE_VERTICAL, [crew, anchor], refinement)


def build_idea_date_cache_key(crew: str, anchor: str, refinement: Any = None) -> str:
    return build_vertical_cache_key([crew, anchor], refinement)
