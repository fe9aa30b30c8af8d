"""Backfill descriptive attributes on stops before they are evaluated."""
from __future__ import annotations

from typing import Any, Dict

from surprise_engine.agents.category_inference import infer_category_from_type, infer_energy
from surprise_engine.agents.stop_classifier import (
    DISCOVERY_TAG,
    is_mainstream_token,
    read_stop_types,
)
from surprise_engine.tools.attributes import is_record, read_category_like, read_string_array, unique_tokens


def enrich_stop_for_evaluation(stop: Any) -> Any:
    """Return a shallow copy of ``stop`` with type, category, energy and tags filled in.

    Only keys the caller left out are added; existing values are never
    overwritten. The ``discovery`` tag is appended when any category or type
    token falls outside the food-and-drink vocabulary. Non-mapping stops are
    returned untouched.
    """
    if not is_record(stop):
        return stop
    enriched: Dict[str, Any] = dict(stop)
    types = read_stop_types(enriched)
    normalized_type = read_category_like(enriched.get("type")) or (types[0] if types else "")
    normalized_category = read_category_like(enriched.get("category")) or infer_category_from_type(normalized_type)

    if "type" not in enriched and normalized_type:
        enriched["type"] = normalized_type
    if "category" not in enriched and normalized_category:
        enriched["category"] = normalized_category

    tokens = unique_tokens([normalized_type, normalized_category], types)
    if "energy" not in enriched:
        energy = infer_energy(tokens)
        if energy is not None:
            enriched["energy"] = energy

    existing_tags = read_string_array(enriched.get("tags"))
    if DISCOVERY_TAG not in existing_tags and any(not is_mainstream_token(token) for token in tokens):
        enriched["tags"] = [*existing_tags, DISCOVERY_TAG]

    return enriched
