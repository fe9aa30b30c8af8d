# surprise_engine/orchestrator.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence

from surprise_engine.agents.candidate_normalizer import CandidatePool, normalize_seed_candidates
from surprise_engine.agents.stop_classifier import (
    is_discovery_like_stop,
    is_mainstream_like_stop,
    is_non_food_drink_candidate,
)
from surprise_engine.agents.stop_enrichment import enrich_stop_for_evaluation
from surprise_engine.agents.wildcard_selector import select_wildcard, to_injected_wildcard_stop
from surprise_engine.schemas import (
    AnchorPolicy,
    CrewPolicy,
    MagicRefinement,
    SurpriseEnforcement,
    SurpriseReport,
)
from surprise_engine.tools.attributes import is_record, read_numeric_value
from surprise_engine.tools.plan_container import (
    clone_plan,
    get_vertical_meta,
    read_stops_container,
    set_vertical_meta,
    write_stops_container,
)

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("SURPRISE_ENGINE_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

DEFAULT_NAMESPACE = "ideaDate"
SAFETY_FLOOR_GUARDRAIL = 0.9
_GAP_KEYS = ("travelMinutes", "travelMins", "distanceMeters", "gapMinutes")


@dataclass
class SurpriseOutcome:
    stops: List[Any]
    pool: CandidatePool
    report: SurpriseReport


def resolve_namespace(namespace: str | None = None) -> str:
    return namespace or os.getenv("SURPRISE_ENGINE_META_NAMESPACE") or DEFAULT_NAMESPACE


def parse_magic_refinement(value: Any, notes: List[str]) -> Optional[MagicRefinement]:
    """Read the refinement directive once; unknown values count as no directive."""
    if value is None:
        return None
    if isinstance(value, MagicRefinement):
        return value
    try:
        return MagicRefinement(value)
    except ValueError:
        logger.warning("Ignoring unrecognized magic refinement %r", value)
        notes.append(f"Ignored unrecognized magic refinement {value!r}.")
        return None


def _coerce_crew_policy(crew_policy: CrewPolicy | Mapping[str, Any]) -> CrewPolicy:
    if isinstance(crew_policy, CrewPolicy):
        return crew_policy
    return CrewPolicy.model_validate(crew_policy)


def _needs_wildcard(
    refinement: Optional[MagicRefinement],
    discovery_count: int,
    mainstream_count: int,
    notes: List[str],
) -> bool:
    needs = discovery_count == 0

    if refinement is MagicRefinement.MORE_UNIQUE:
        if mainstream_count > max(1, discovery_count):
            needs = True
            notes.append("Magic refinement more_unique raised novelty threshold for mainstream-heavy stacks.")
        else:
            notes.append("Magic refinement more_unique checked novelty threshold.")

    if refinement is MagicRefinement.MORE_CURATED:
        if discovery_count > 0:
            needs = False
            notes.append("Magic refinement more_curated avoided extra wildcard injection for a coherent set.")
        else:
            notes.append(
                "Magic refinement more_curated allowed wildcard injection because no discovery stop was present."
            )

    if refinement is not None:
        notes.append("Magic refinement applied without overriding crew safety floor.")
    return needs


def _append_check_notes(stops: Sequence[Any], crew_policy: CrewPolicy, notes: List[str]) -> None:
    has_energy = any(
        is_record(stop)
        and isinstance(stop.get("energy"), (int, float))
        and not isinstance(stop.get("energy"), bool)
        for stop in stops
    )
    if has_energy:
        notes.append("Energy fields detected; cohesive arc check ran (no reorder unless explicit roles exist).")
    else:
        notes.append("No energy fields detected; cohesive arc enforcement skipped.")

    has_gap = any(
        is_record(stop) and any(read_numeric_value(stop.get(key)) is not None for key in _GAP_KEYS)
        for stop in stops
    )
    if has_gap:
        notes.append(
            "Travel/time gap fields detected; dead-air check ran (no reorder without deterministic alternatives)."
        )
    else:
        notes.append("No travel/time gap fields detected; dead-air enforcement skipped.")

    # The floor is advisory for now: noted, never used to filter stops.
    if crew_policy.safety_floor >= SAFETY_FLOOR_GUARDRAIL:
        logger.info("Crew safety floor %.2f noted as guardrail (validation-only)", crew_policy.safety_floor)
        notes.append("Crew safety floor remains a guardrail (validation-only in this version); no stops were filtered.")
    notes.append("Crew guardrail enforcement currently validation-only unless deterministic alternatives are available.")


def apply_surprise_contract(
    stops: Sequence[Any],
    vertical_meta: Mapping[str, Any] | None,
    crew_policy: CrewPolicy | Mapping[str, Any],
) -> SurpriseOutcome:
    """Run the surprise contract over a bare stop list.

    ``vertical_meta`` supplies the refinement directive and raw candidate
    arrays. The returned stops are new records; the inputs are left alone.
    Nothing here raises for a degraded run: every skipped step leaves a note.
    """
    policy = _coerce_crew_policy(crew_policy)
    notes: List[str] = []
    wildcard_injected = 0

    enriched = [enrich_stop_for_evaluation(stop) for stop in stops]
    refinement = parse_magic_refinement((vertical_meta or {}).get("magicRefinement"), notes)

    discovery_count = sum(1 for stop in enriched if is_discovery_like_stop(stop))
    mainstream_count = sum(1 for stop in enriched if is_mainstream_like_stop(stop))
    needs_wildcard = _needs_wildcard(refinement, discovery_count, mainstream_count, notes)
    logger.info(
        "Evaluating %d stop(s): discovery=%d mainstream=%d refinement=%s needs_wildcard=%s",
        len(enriched),
        discovery_count,
        mainstream_count,
        refinement.value if refinement else "none",
        needs_wildcard,
    )

    pool = normalize_seed_candidates(vertical_meta, enriched, notes)

    if needs_wildcard:
        lead = "No discovery stop found" if discovery_count == 0 else "Novelty threshold not met"
        if not pool.candidates:
            notes.append(f"{lead}, and seedCandidates was empty after deterministic normalization.")
        else:
            picked = select_wildcard(pool.candidates, enriched, refinement, notes)
            if picked is None:
                notes.append("Wildcard candidate selection skipped because every candidate is already in the plan.")
                logger.info("Wildcard skipped; %d candidate(s) all present in plan", len(pool.candidates))
            else:
                insert_at = 1 if len(enriched) >= 2 else len(enriched)
                enriched.insert(insert_at, to_injected_wildcard_stop(picked))
                wildcard_injected = 1
                if is_non_food_drink_candidate(picked):
                    notes.append(f"{lead}; injected deterministic non-food wildcard from seedCandidates.")
                else:
                    notes.append(f"{lead}; injected first deterministic fallback wildcard from seedCandidates.")
                logger.info("Injected wildcard %s at index %d (source=%s)", picked.name, insert_at, pool.source.value)

    _append_check_notes(enriched, policy, notes)

    report = SurpriseReport(wildcard_injected=wildcard_injected, notes=notes)
    return SurpriseOutcome(stops=enriched, pool=pool, report=report)


def enforce_surprise_contract(
    plan: Any,
    crew_policy: CrewPolicy | Mapping[str, Any],
    anchor_policy: AnchorPolicy | Mapping[str, Any] | None = None,
    namespace: str | None = None,
) -> SurpriseEnforcement:
    """Return a copy of ``plan`` that satisfies the surprise contract, plus its report.

    The stop list is read from ``stops`` or ``plan.stops`` and written back to
    the same place. ``meta[namespace]`` receives ``seedCandidates`` and
    ``surpriseReport``; its other keys are preserved. ``anchor_policy`` is
    accepted for parity with the other enforcers and is not consulted.
    """
    namespace = resolve_namespace(namespace)
    if anchor_policy is not None:
        logger.debug("Anchor policy supplied but not consulted by the surprise contract")

    next_plan = clone_plan(plan)
    container = read_stops_container(next_plan)
    outcome = apply_surprise_contract(container.stops, get_vertical_meta(next_plan, namespace), crew_policy)

    container.stops = outcome.stops
    write_stops_container(next_plan, container)
    next_plan = set_vertical_meta(
        next_plan,
        namespace,
        {
            "seedCandidates": [candidate.to_meta() for candidate in outcome.pool.candidates],
            "surpriseReport": outcome.report.to_meta(),
        },
    )
    return SurpriseEnforcement(plan=next_plan, report=outcome.report)
