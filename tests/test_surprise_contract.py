import copy
import json

from surprise_engine.agents.candidate_normalizer import FALLBACK_NOTE
from surprise_engine.orchestrator import apply_surprise_contract, enforce_surprise_contract
from surprise_engine.policies import get_anchor_policy, get_crew_policy
from surprise_engine.schemas import CrewPolicy

FRIENDS = {"safetyFloor": 0.6}


def _plan(stops, **idea_date):
    plan = {"id": "idea-date-friends-creative-none", "title": "Idea-Date: Surprise Me", "stops": stops}
    if idea_date:
        plan["meta"] = {"ideaDate": idea_date, "source": "seed"}
    return plan


def test_food_only_plan_gets_catalog_wildcard():
    plan = _plan([{"name": "Oak Row Bistro", "category": "food"}])

    result = enforce_surprise_contract(plan, FRIENDS, get_anchor_policy("creative"))
    stops = result.plan["stops"]

    assert result.report.wildcard_injected == 1
    assert len(stops) == 2
    assert stops[0]["name"] == "Oak Row Bistro"
    assert stops[0]["type"] == "food"
    assert stops[1]["name"] == "Booklane Parlor"
    assert stops[1]["id"] == "idea-date-wildcard-local-booklane-parlor"
    assert stops[1]["category"] == "book_store"
    assert "discovery" in stops[1]["tags"]
    assert FALLBACK_NOTE in result.report.notes
    assert "No discovery stop found; injected deterministic non-food wildcard from seedCandidates." in result.report.notes


def test_discovery_plan_is_left_alone():
    plan = _plan([{"name": "Foundry Gallery Hall", "category": "culture", "tags": ["discovery"]}])

    result = enforce_surprise_contract(plan, FRIENDS)
    stops = result.plan["stops"]

    assert result.report.wildcard_injected == 0
    assert len(stops) == 1
    assert stops[0]["name"] == "Foundry Gallery Hall"
    assert stops[0]["type"] == "culture"
    assert stops[0]["energy"] == 0.5
    assert stops[0]["tags"] == ["discovery"]


def test_more_energy_selects_most_energetic_candidate():
    plan = _plan(
        [{"name": "Oak Row Bistro", "category": "food"}],
        magicRefinement="more_energy",
        seedCandidates=[
            {"name": "Lantern Garden", "placeId": "gp_lantern", "types": ["garden"], "energy": 0.3},
            {"name": "Pulse Arcade", "placeId": "gp_pulse", "types": ["arcade"], "energy": 0.8},
        ],
    )

    result = enforce_surprise_contract(plan, FRIENDS)

    assert result.report.wildcard_injected == 1
    assert result.plan["stops"][1]["name"] == "Pulse Arcade"
    assert result.plan["stops"][1]["energy"] == 0.8
    assert "Magic refinement applied without overriding crew safety floor." in result.report.notes


def test_closer_together_without_distance_fields_notes_and_falls_back():
    plan = _plan(
        [{"name": "Oak Row Bistro", "category": "food"}],
        magicRefinement="closer_together",
        candidates=[
            {"name": "Civic Still Life Museum", "types": ["museum"]},
            {"name": "Rose Garden", "types": ["garden"]},
        ],
    )

    result = enforce_surprise_contract(plan, FRIENDS)
    notes = result.report.notes

    assert "Magic refinement closer_together requested, but travel/distance fields are unavailable." in notes
    assert "No seasonal/time or visual metadata available for soft bias." in notes
    assert result.plan["stops"][1]["name"] == "Civic Still Life Museum"


def test_input_plan_is_never_mutated():
    plan = {
        "plan": {"stops": [{"name": "Oak Row Bistro", "category": "food", "placeRef": {"placeId": "local_oak_row_bistro"}}]},
        "meta": {"ideaDate": {"magicRefinement": "more_unique", "seedCandidates": [{"name": "Rose Garden", "types": ["garden"]}]}},
    }
    snapshot = copy.deepcopy(plan)

    enforce_surprise_contract(plan, FRIENDS)

    assert plan == snapshot


def test_nested_stop_list_is_written_back_in_place():
    plan = {"plan": {"stops": [{"name": "Oak Row Bistro", "category": "food"}], "title": "Date"}}

    result = enforce_surprise_contract(plan, FRIENDS)

    assert "stops" not in result.plan
    assert result.plan["plan"]["title"] == "Date"
    assert len(result.plan["plan"]["stops"]) == 2


def test_repeated_runs_are_byte_identical():
    plan = _plan(
        [{"name": "Oak Row Bistro", "category": "food"}, {"name": "North Beach Jazz Room", "types": ["bar"]}],
        magicRefinement="more_unique",
    )
    family = get_crew_policy("family")

    first = enforce_surprise_contract(plan, family)
    second = enforce_surprise_contract(plan, family)

    assert json.dumps(first.model_dump(), sort_keys=False) == json.dumps(second.model_dump(), sort_keys=False)


def test_seed_candidates_metadata_is_deduplicated_and_siblings_kept():
    plan = _plan(
        [{"name": "Foundry Gallery Hall", "category": "culture"}],
        magicRefinement="more_curated",
        note="keep me",
        seedCandidates=[
            {"name": "Rose Garden", "placeId": "GP_ROSE", "types": ["garden"]},
            {"name": "Rose Garden East", "placeId": "gp_rose", "types": ["garden"]},
            {"name": "Pulse Arcade", "types": ["arcade"], "visualScore": 0.4},
            {"name": "pulse arcade", "types": ["arcade"]},
        ],
    )

    result = enforce_surprise_contract(plan, FRIENDS)
    idea_date = result.plan["meta"]["ideaDate"]

    assert result.plan["meta"]["source"] == "seed"
    assert idea_date["note"] == "keep me"
    assert idea_date["magicRefinement"] == "more_curated"
    assert [c["name"] for c in idea_date["seedCandidates"]] == ["Rose Garden", "Pulse Arcade"]
    assert idea_date["seedCandidates"][0] == {
        "name": "Rose Garden",
        "placeId": "GP_ROSE",
        "category": "outdoors",
        "type": "garden",
        "tags": [],
        "types": ["garden"],
    }
    assert idea_date["seedCandidates"][1]["signals"] == {"visualScore": 0.4}
    assert idea_date["surpriseReport"] == result.report.to_meta()
    assert result.report.wildcard_injected == 0
    assert "Magic refinement more_curated avoided extra wildcard injection for a coherent set." in result.report.notes


def test_more_unique_forces_injection_for_mainstream_heavy_plan():
    plan = _plan(
        [
            {"name": "Oak Row Bistro", "category": "food"},
            {"name": "Civic Still Life Museum", "types": ["museum"]},
            {"name": "Mint Bakery Bar", "types": ["bakery"]},
        ],
        magicRefinement="more_unique",
        seedCandidates=[{"name": "Mural Alley", "types": ["street_art"], "noveltyScore": 0.9}],
    )

    result = enforce_surprise_contract(plan, FRIENDS)
    stops = result.plan["stops"]

    assert result.report.wildcard_injected == 1
    assert len(stops) == 4
    assert stops[1]["name"] == "Mural Alley"
    assert "Magic refinement more_unique raised novelty threshold for mainstream-heavy stacks." in result.report.notes


def test_more_curated_still_injects_when_no_discovery_stop():
    plan = _plan([{"name": "Oak Row Bistro", "category": "food"}], magicRefinement="more_curated")

    result = enforce_surprise_contract(plan, FRIENDS)

    assert result.report.wildcard_injected == 1
    assert (
        "Magic refinement more_curated allowed wildcard injection because no discovery stop was present."
        in result.report.notes
    )


def test_empty_plan_draws_from_catalog():
    result = enforce_surprise_contract({"stops": []}, FRIENDS)

    assert result.report.wildcard_injected == 1
    assert [s["name"] for s in result.plan["stops"]] == ["Booklane Parlor"]
    assert len(result.plan["meta"]["ideaDate"]["seedCandidates"]) == 8


def test_plan_without_stop_list_gets_root_stops():
    result = enforce_surprise_contract({"title": "Blank"}, FRIENDS)
    assert len(result.plan["stops"]) == 1


def test_no_injection_when_every_candidate_is_already_planned():
    plan = _plan(
        [{"name": "Oak Row Bistro", "category": "food"}],
        seedCandidates=[{"name": "Oak Row Bistro", "types": ["restaurant"]}],
    )

    result = enforce_surprise_contract(plan, FRIENDS)

    assert result.report.wildcard_injected == 0
    assert len(result.plan["stops"]) == 1
    assert "Wildcard candidate selection skipped because every candidate is already in the plan." in result.report.notes


def test_wildcard_is_spliced_after_first_stop():
    plan = _plan(
        [
            {"name": "Oak Row Bistro", "category": "food"},
            {"name": "Cedar Court Cafe", "types": ["cafe"]},
            {"name": "Harbor Supper House", "types": ["restaurant"]},
        ]
    )

    result = enforce_surprise_contract(plan, FRIENDS)
    names = [s["name"] for s in result.plan["stops"]]

    assert names == ["Oak Row Bistro", "Booklane Parlor", "Cedar Court Cafe", "Harbor Supper House"]


def test_check_notes_and_safety_floor():
    plan = _plan([{"name": "Foundry Gallery Hall", "types": ["art_gallery"], "travelMinutes": "15"}])

    family = enforce_surprise_contract(plan, get_crew_policy("family")).report.notes
    friends = enforce_surprise_contract(plan, get_crew_policy("friends")).report.notes

    assert "Energy fields detected; cohesive arc check ran (no reorder unless explicit roles exist)." in family
    assert (
        "Travel/time gap fields detected; dead-air check ran (no reorder without deterministic alternatives)."
        in family
    )
    floor_note = "Crew safety floor remains a guardrail (validation-only in this version); no stops were filtered."
    assert floor_note in family
    assert floor_note not in friends
    assert friends[-1].startswith("Crew guardrail enforcement currently validation-only")


def test_skipped_checks_are_noted():
    notes = apply_surprise_contract(
        [{"name": "Mystery Spot", "tags": ["discovery"]}], None, CrewPolicy(safety_floor=0.5)
    ).report.notes

    assert "No energy fields detected; cohesive arc enforcement skipped." in notes
    assert "No travel/time gap fields detected; dead-air enforcement skipped." in notes


def test_unknown_refinement_is_ignored_with_note():
    plan = _plan([{"name": "Foundry Gallery Hall", "category": "culture"}], magicRefinement="more_chaos")

    result = enforce_surprise_contract(plan, FRIENDS)

    assert result.report.wildcard_injected == 0
    assert result.report.notes[0] == "Ignored unrecognized magic refinement 'more_chaos'."
    assert "Magic refinement applied without overriding crew safety floor." not in result.report.notes


def test_custom_namespace(monkeypatch):
    monkeypatch.setenv("SURPRISE_ENGINE_META_NAMESPACE", "localActivation")
    plan = {"stops": [], "meta": {"localActivation": {"candidates": [{"name": "Rose Garden", "types": ["garden"]}]}}}

    result = enforce_surprise_contract(plan, FRIENDS)

    assert result.plan["stops"][0]["name"] == "Rose Garden"
    assert "ideaDate" not in result.plan["meta"]
    assert result.plan["meta"]["localActivation"]["surpriseReport"]["wildcardInjected"] == 1


def test_oversized_numeric_fields_do_not_break_enforcement():
    plan = _plan(
        [{"name": "Oak Row Bistro", "category": "food", "travelMinutes": 10**400}],
        seedCandidates=[{"name": "Rose Garden", "types": ["garden"], "energy": 10**400}],
    )

    result = enforce_surprise_contract(plan, FRIENDS)

    assert result.report.wildcard_injected == 1
    assert result.plan["stops"][1]["name"] == "Rose Garden"
    assert result.plan["stops"][1]["energy"] == 0.6
    assert "signals" not in result.plan["meta"]["ideaDate"]["seedCandidates"][0]
    assert "No travel/time gap fields detected; dead-air enforcement skipped." in result.report.notes
