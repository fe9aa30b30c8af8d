"""Mainstream vs. discovery classification for plan stops and candidates."""
from __future__ import annotations

from typing import Any, List, Tuple

from surprise_engine.schemas import NormalizedCandidate
from surprise_engine.tools.attributes import (
    is_record,
    read_category_like,
    read_string_array,
    unique_tokens,
)

DISCOVERY_TAG = "discovery"

_MAINSTREAM_CATEGORIES = frozenset({"food", "restaurant", "bar", "dessert", "cafe"})
_MAINSTREAM_SUBSTRINGS: Tuple[str, ...] = (
    "restaurant",
    "food",
    "bar",
    "dessert",
    "cafe",
    "coffee",
    "cocktail",
    "tea",
    "bakery",
)


def is_mainstream_token(token: str) -> bool:
    if not token:
        return False
    if token in _MAINSTREAM_CATEGORIES:
        return True
    return any(fragment in token for fragment in _MAINSTREAM_SUBSTRINGS)


def read_stop_types(stop: Any) -> List[str]:
    """Union of every type-like signal carried by a stop record."""
    if not is_record(stop):
        return []
    place_lite = stop.get("placeLite") if is_record(stop.get("placeLite")) else {}
    return unique_tokens(
        read_string_array(stop.get("types")),
        read_string_array(stop.get("categories")),
        [read_category_like(stop.get("type"))],
        [read_category_like(stop.get("category"))],
        read_string_array(place_lite.get("types")),
    )


def stop_tokens(stop: Any) -> List[str]:
    if not is_record(stop):
        return []
    return unique_tokens(
        [read_category_like(stop.get("category")), read_category_like(stop.get("type"))],
        read_stop_types(stop),
    )


def _has_discovery_signal(tags: List[str], tokens: List[str]) -> bool:
    # Without any type information only an explicit tag counts.
    if not tokens:
        return DISCOVERY_TAG in tags
    return DISCOVERY_TAG in tags or any(not is_mainstream_token(token) for token in tokens)


def is_mainstream_like_stop(stop: Any) -> bool:
    return any(is_mainstream_token(token) for token in stop_tokens(stop))


def is_discovery_like_stop(stop: Any) -> bool:
    if not is_record(stop):
        return False
    return _has_discovery_signal(read_string_array(stop.get("tags")), stop_tokens(stop))


def is_discovery_like_candidate(candidate: NormalizedCandidate) -> bool:
    return _has_discovery_signal(list(candidate.tags), candidate.tokens())


def is_non_food_drink_candidate(candidate: NormalizedCandidate) -> bool:
    tokens = candidate.tokens()
    return bool(tokens) and any(not is_mainstream_token(token) for token in tokens)
