"""Candidate pool normalization.

Raw candidates arrive in whatever shape the upstream seed builder or place
search produced. This module folds them into :class:`NormalizedCandidate`
records, picks a single source for the run and removes duplicates.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from surprise_engine.agents.category_inference import infer_category_from_type
from surprise_engine.agents.stop_classifier import read_stop_types
from surprise_engine.schemas import NormalizedCandidate
from surprise_engine.tools.attributes import (
    is_record,
    read_category_like,
    read_numeric_value,
    read_string,
    read_string_array,
    unique_tokens,
)

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("SURPRISE_ENGINE_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

ENERGY_KEYS: Tuple[str, ...] = ("energy", "energyScore", "intensity", "intensityScore")
DISTANCE_KEYS: Tuple[str, ...] = ("travelMinutes", "travelMins", "distanceMeters", "distance", "durationMinutes")
AFFORDABLE_KEYS: Tuple[str, ...] = ("priceLevel", "cost", "estimatedCost", "budget")
UNIQUE_KEYS: Tuple[str, ...] = ("uniqueness", "noveltyScore", "discoveryScore")
SEASONAL_KEYS: Tuple[str, ...] = ("seasonalRelevance", "seasonalScore", "timeRelevance", "eventRelevance")
VISUAL_KEYS: Tuple[str, ...] = ("visualInterest", "visualScore", "sceneryScore")
SIGNAL_KEYS: Tuple[str, ...] = (
    *ENERGY_KEYS,
    *DISTANCE_KEYS,
    *AFFORDABLE_KEYS,
    *UNIQUE_KEYS,
    *SEASONAL_KEYS,
    *VISUAL_KEYS,
)

CANDIDATE_SOURCE_KEYS: Tuple[str, ...] = (
    "seedCandidates",
    "candidatePool",
    "candidates",
    "googleCandidates",
    "googleResults",
    "seedStops",
    "rawSeedStops",
    "searchResults",
)
_NESTED_ARRAY_KEYS: Tuple[str, ...] = ("candidates", "results", "items")

# Generic filler places so a wildcard can always be drawn.
FALLBACK_SEED_CANDIDATES: Tuple[Dict[str, Any], ...] = (
    {"placeId": "local_cedar_court_cafe", "name": "Cedar Court Cafe", "types": ["cafe", "coffee_shop"]},
    {"placeId": "local_booklane_parlor", "name": "Booklane Parlor", "types": ["book_store", "cafe"]},
    {"placeId": "local_mint_bakery_bar", "name": "Mint Bakery Bar", "types": ["bakery", "cafe"]},
    {"placeId": "local_foundry_gallery_hall", "name": "Foundry Gallery Hall", "types": ["art_gallery", "museum"]},
    {"placeId": "local_civic_still_life_museum", "name": "Civic Still Life Museum", "types": ["museum"]},
    {"placeId": "local_oak_row_bistro", "name": "Oak Row Bistro", "types": ["restaurant"]},
    {"placeId": "local_harbor_supper_house", "name": "Harbor Supper House", "types": ["restaurant"]},
    {"placeId": "local_north_beach_jazz_room", "name": "North Beach Jazz Room", "types": ["bar", "music_venue"]},
)

FALLBACK_NOTE = (
    "No candidate arrays found in meta; using deterministic stop+seed fallback for seedCandidates."
)


class CandidateSource(str, Enum):
    METADATA = "metadata"
    STOPS_AND_CATALOG = "stops_and_catalog"


@dataclass
class CandidatePool:
    source: CandidateSource
    candidates: List[NormalizedCandidate] = field(default_factory=list)


def read_candidate_sources(vertical_meta: Mapping[str, Any] | None) -> List[Any]:
    """Collect raw candidate entries from every recognised metadata key."""
    if not is_record(vertical_meta):
        return []
    raw: List[Any] = []
    for key in CANDIDATE_SOURCE_KEYS:
        value = vertical_meta.get(key)
        if isinstance(value, (list, tuple)):
            raw.extend(value)
        elif is_record(value):
            for nested_key in _NESTED_ARRAY_KEYS:
                nested = value.get(nested_key)
                if isinstance(nested, (list, tuple)):
                    raw.extend(nested)
    return raw


def _read_signals(candidate: Mapping[str, Any]) -> Dict[str, float]:
    signals: Dict[str, float] = {}
    for key in SIGNAL_KEYS:
        value = read_numeric_value(candidate.get(key))
        if value is not None:
            signals[key] = value
    return signals


def normalize_candidate_record(candidate: Any) -> NormalizedCandidate | None:
    if not is_record(candidate):
        return None
    place_ref = candidate.get("placeRef") if is_record(candidate.get("placeRef")) else {}
    place_lite = candidate.get("placeLite") if is_record(candidate.get("placeLite")) else {}

    place_id = (
        read_string(candidate.get("placeId"))
        or read_string(candidate.get("place_id"))
        or read_string(place_ref.get("placeId"))
        or read_string(place_lite.get("placeId"))
    )
    name = (
        read_string(candidate.get("name"))
        or read_string(candidate.get("title"))
        or read_string(candidate.get("label"))
        or read_string(place_lite.get("name"))
        or place_id
    )
    if not name:
        return None

    explicit_type = read_category_like(candidate.get("type"))
    explicit_category = read_category_like(candidate.get("category"))
    types = unique_tokens(
        read_string_array(candidate.get("types")),
        read_string_array(candidate.get("categories")),
        read_string_array(candidate.get("includedTypes")),
        read_string_array(place_lite.get("types")),
    )
    if explicit_type and explicit_type not in types:
        types.insert(0, explicit_type)
    if explicit_category and explicit_category not in types:
        types.insert(0, explicit_category)

    first_type = types[0] if types else ""
    return NormalizedCandidate(
        name=name,
        place_id=place_id,
        type=explicit_type or first_type or None,
        category=explicit_category or infer_category_from_type(first_type) or None,
        tags=read_string_array(candidate.get("tags")),
        types=types,
        signals=_read_signals(candidate),
    )


def stop_to_candidate(stop: Any) -> NormalizedCandidate | None:
    if not is_record(stop):
        return None
    place_ref = stop.get("placeRef") if is_record(stop.get("placeRef")) else {}
    place_lite = stop.get("placeLite") if is_record(stop.get("placeLite")) else {}
    record: Dict[str, Any] = {
        key: value for key, value in stop.items() if key in SIGNAL_KEYS
    }
    record.update(
        {
            "name": stop.get("name"),
            "placeId": place_ref.get("placeId") or place_lite.get("placeId"),
            "type": stop.get("type"),
            "category": stop.get("category"),
            "tags": stop.get("tags"),
            "types": read_stop_types(stop),
            "placeRef": place_ref,
            "placeLite": place_lite,
        }
    )
    return normalize_candidate_record(record)


def candidate_identity_key(candidate: NormalizedCandidate) -> str:
    place_id = read_category_like(candidate.place_id)
    if place_id:
        return f"pid:{place_id}"
    return f"name:{read_category_like(candidate.name)}"


def dedupe_candidates(candidates: Iterable[NormalizedCandidate]) -> List[NormalizedCandidate]:
    out: List[NormalizedCandidate] = []
    seen = set()
    for candidate in candidates:
        key = candidate_identity_key(candidate)
        if key in seen:
            logger.debug("Dropping duplicate candidate %s (%s)", candidate.name, key)
            continue
        seen.add(key)
        out.append(candidate)
    return out


def build_fallback_seed_candidates(stops: Sequence[Any]) -> List[NormalizedCandidate]:
    from_stops = [c for c in (stop_to_candidate(stop) for stop in stops) if c is not None]
    from_catalog = [
        c for c in (normalize_candidate_record(row) for row in FALLBACK_SEED_CANDIDATES) if c is not None
    ]
    return [*from_stops, *from_catalog]


def normalize_seed_candidates(
    vertical_meta: Mapping[str, Any] | None,
    stops: Sequence[Any],
    notes: List[str],
) -> CandidatePool:
    """Return the deduplicated candidate pool for this run.

    Metadata arrays win outright when at least one entry normalizes; otherwise
    the pool is rebuilt from the plan's own stops followed by the built-in
    catalog. Sources are never merged.
    """
    raw_meta = read_candidate_sources(vertical_meta)
    from_meta = [c for c in (normalize_candidate_record(raw) for raw in raw_meta) if c is not None]
    if from_meta:
        pool = CandidatePool(CandidateSource.METADATA, dedupe_candidates(from_meta))
        logger.info(
            "Normalized %d metadata candidate(s) from %d raw entries",
            len(pool.candidates),
            len(raw_meta),
        )
        return pool

    if raw_meta:
        logger.warning("None of %d metadata candidate(s) could be normalized", len(raw_meta))
    notes.append(FALLBACK_NOTE)
    pool = CandidatePool(CandidateSource.STOPS_AND_CATALOG, dedupe_candidates(build_fallback_seed_candidates(stops)))
    logger.info("Built %d fallback candidate(s) from stops and seed catalog", len(pool.candidates))
    return pool
