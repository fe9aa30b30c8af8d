"""Wildcard selection and construction of the injected stop."""
from __future__ import annotations

import logging
import os
import re
from typing import Any, Dict, List, Literal, Optional, Sequence, Set, Tuple

from surprise_engine.agents.candidate_normalizer import (
    AFFORDABLE_KEYS,
    DISTANCE_KEYS,
    ENERGY_KEYS,
    SEASONAL_KEYS,
    UNIQUE_KEYS,
    VISUAL_KEYS,
    candidate_identity_key,
)
from surprise_engine.agents.category_inference import infer_energy
from surprise_engine.agents.stop_classifier import (
    DISCOVERY_TAG,
    is_discovery_like_candidate,
    is_non_food_drink_candidate,
)
from surprise_engine.schemas import MagicRefinement, NormalizedCandidate
from surprise_engine.tools.attributes import is_record, read_category_like, read_metric, read_string

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("SURPRISE_ENGINE_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

WILDCARD_ID_PREFIX = "idea-date-wildcard-"
STOP_ENERGY_KEYS: Tuple[str, ...] = ("energy", "energyScore")

Objective = Literal["min", "max"]

# refinement -> (metric keys, objective, note when no candidate carries the metric)
REFINEMENT_METRICS: Dict[MagicRefinement, Tuple[Tuple[str, ...], Objective, str]] = {
    MagicRefinement.MORE_ENERGY: (
        ENERGY_KEYS,
        "max",
        "Magic refinement more_energy requested, but candidate energy fields are unavailable.",
    ),
    MagicRefinement.CLOSER_TOGETHER: (
        DISTANCE_KEYS,
        "min",
        "Magic refinement closer_together requested, but travel/distance fields are unavailable.",
    ),
    MagicRefinement.MORE_AFFORDABLE: (
        AFFORDABLE_KEYS,
        "min",
        "Magic refinement more_affordable requested, but cost fields are unavailable.",
    ),
    MagicRefinement.MORE_UNIQUE: (
        UNIQUE_KEYS,
        "max",
        "Magic refinement more_unique requested, but uniqueness fields are unavailable.",
    ),
}


def read_soft_boost(candidate: NormalizedCandidate) -> Tuple[float, bool]:
    """Sum of seasonal/time relevance and visual interest, plus whether either exists."""
    seasonal = read_metric(candidate.signals, SEASONAL_KEYS)
    visual = read_metric(candidate.signals, VISUAL_KEYS)
    has_any = seasonal is not None or visual is not None
    return (seasonal or 0.0) + (visual or 0.0), has_any


def _pick_by_metric(
    pool: Sequence[NormalizedCandidate],
    keys: Tuple[str, ...],
    objective: Objective,
) -> Optional[NormalizedCandidate]:
    best: Optional[NormalizedCandidate] = None
    best_metric = 0.0
    best_boost = float("-inf")
    for candidate in pool:
        metric = read_metric(candidate.signals, keys)
        if metric is None:
            continue
        boost, _ = read_soft_boost(candidate)
        if best is None:
            best, best_metric, best_boost = candidate, metric, boost
            continue
        beats_primary = metric > best_metric if objective == "max" else metric < best_metric
        beats_boost = metric == best_metric and boost > best_boost
        if beats_primary or beats_boost:
            best, best_metric, best_boost = candidate, metric, boost
    if best is not None:
        logger.debug("Metric %s (%s) selected %s at %.3f", keys[0], objective, best.name, best_metric)
    return best


def pick_candidate(
    candidates: Sequence[NormalizedCandidate],
    refinement: Optional[MagicRefinement],
    notes: List[str],
) -> Optional[NormalizedCandidate]:
    """Choose one wildcard from ``candidates``.

    Discovery-like candidates are preferred when any exist. A metric-bearing
    refinement decides first, with the soft boost breaking ties; then the
    highest soft boost; then the first candidate in pool order. Every path is
    deterministic for a given pool.
    """
    if not candidates:
        return None
    discovery = [c for c in candidates if is_discovery_like_candidate(c)]
    pool = discovery or list(candidates)

    if refinement is MagicRefinement.MORE_CURATED:
        notes.append("Magic refinement more_curated reduced wildcard aggressiveness.")

    metric = REFINEMENT_METRICS.get(refinement) if refinement is not None else None
    if metric is not None:
        keys, objective, missing_note = metric
        chosen = _pick_by_metric(pool, keys, objective)
        if chosen is not None:
            return chosen
        notes.append(missing_note)

    boosted: Optional[NormalizedCandidate] = None
    best_boost = float("-inf")
    for candidate in pool:
        boost, has_any = read_soft_boost(candidate)
        if has_any and (boosted is None or boost > best_boost):
            boosted, best_boost = candidate, boost
    if boosted is not None:
        notes.append("Applied seasonal/time and visual-interest soft bias when selecting wildcard.")
        return boosted

    notes.append("No seasonal/time or visual metadata available for soft bias.")
    return pool[0]


def build_stop_identity_set(stops: Sequence[Any]) -> Set[str]:
    seen: Set[str] = set()
    for stop in stops:
        if not is_record(stop):
            continue
        place_ref = stop.get("placeRef") if is_record(stop.get("placeRef")) else {}
        place_lite = stop.get("placeLite") if is_record(stop.get("placeLite")) else {}
        place_id = read_string(place_ref.get("placeId")) or read_string(place_lite.get("placeId"))
        if place_id:
            seen.add(f"pid:{place_id.lower()}")
        name = read_string(stop.get("name"))
        if name:
            seen.add(f"name:{name.lower()}")
    return seen


def select_wildcard(
    candidates: Sequence[NormalizedCandidate],
    stops: Sequence[Any],
    refinement: Optional[MagicRefinement],
    notes: List[str],
) -> Optional[NormalizedCandidate]:
    """Pick a wildcard that is not already part of the plan."""
    used = build_stop_identity_set(stops)
    available = [c for c in candidates if candidate_identity_key(c) not in used]
    logger.debug("%d of %d candidate(s) remain after excluding plan stops", len(available), len(candidates))
    if not available:
        return None
    # Ranked pick, not a first-non-mainstream scan; refinements must steer injection.
    return pick_candidate(available, refinement, notes)


def make_deterministic_stop_id(candidate: NormalizedCandidate) -> str:
    base = read_category_like(candidate.place_id) or read_category_like(candidate.name) or "candidate"
    slug = re.sub(r"[^a-z0-9]+", "-", base).strip("-")
    return f"{WILDCARD_ID_PREFIX}{slug or 'candidate'}"


def to_injected_wildcard_stop(candidate: NormalizedCandidate) -> Dict[str, Any]:
    stop: Dict[str, Any] = {
        "id": make_deterministic_stop_id(candidate),
        "name": candidate.name,
        "role": "support",
        "optionality": "flexible",
        "category": candidate.category,
        "type": candidate.type,
    }
    if candidate.place_id:
        stop["placeRef"] = {"provider": "google", "placeId": candidate.place_id, "label": candidate.name}
        stop["placeLite"] = {"placeId": candidate.place_id, "name": candidate.name, "types": list(candidate.types)}

    # Intensity scales are unbounded; only 0-1 energy readings carry over.
    energy = read_metric(candidate.signals, STOP_ENERGY_KEYS)
    if energy is not None and not 0.0 <= energy <= 1.0:
        energy = None
    if energy is None:
        energy = infer_energy(candidate.tokens())
    if energy is not None:
        stop["energy"] = energy

    tags = list(candidate.tags)
    if DISCOVERY_TAG not in tags and is_non_food_drink_candidate(candidate):
        tags.append(DISCOVERY_TAG)
    stop["tags"] = tags
    return stop
