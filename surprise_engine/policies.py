"""Preset crew and anchor policies for the idea-date vertical."""
from __future__ import annotations

from typing import Any, Dict

from surprise_engine.schemas import AnchorPolicy, CrewPolicy

_CREW_POLICIES: Dict[str, Dict[str, Any]] = {
    "romantic": {
        "frictionTolerance": 0.3,
        "safetyFloor": 0.9,
        "budgetFlexibility": 0.6,
        "logisticsWeight": 0.7,
        "uniquenessTolerance": 0.5,
        "ticketFrictionTolerance": 0.4,
        "arcSoftBias": "gentle",
    },
    "friends": {
        "frictionTolerance": 0.7,
        "safetyFloor": 0.6,
        "budgetFlexibility": 0.8,
        "logisticsWeight": 0.5,
        "uniquenessTolerance": 0.8,
        "ticketFrictionTolerance": 0.7,
        "arcSoftBias": "dynamic",
    },
    "family": {
        "frictionTolerance": 0.2,
        "safetyFloor": 1.0,
        "budgetFlexibility": 0.5,
        "logisticsWeight": 0.9,
        "uniquenessTolerance": 0.3,
        "ticketFrictionTolerance": 0.2,
        "arcSoftBias": "gentle",
    },
}

_ANCHOR_POLICIES: Dict[str, Dict[str, Any]] = {
    "adventurous": {
        "categoryWeights": {"outdoors": 0.9, "games": 0.6, "culture": 0.4},
        "uniquenessBoost": 0.7,
        "eventInjectionBoost": 0.6,
        "indoorBias": 0.2,
        "physicalIntensity": 0.7,
        "seasonalRelevance": 0.6,
    },
    "creative": {
        "categoryWeights": {"arts": 0.9, "culture": 0.7, "food": 0.4},
        "uniquenessBoost": 0.6,
        "eventInjectionBoost": 0.7,
        "indoorBias": 0.7,
        "physicalIntensity": 0.3,
        "seasonalRelevance": 0.6,
    },
    "intellectual": {
        "categoryWeights": {"learning": 0.9, "culture": 0.7, "food": 0.3},
        "uniquenessBoost": 0.4,
        "eventInjectionBoost": 0.4,
        "indoorBias": 0.8,
        "physicalIntensity": 0.2,
        "seasonalRelevance": 0.5,
    },
    "cultured": {
        "categoryWeights": {"culture": 0.9, "arts": 0.7, "food": 0.5},
        "uniquenessBoost": 0.4,
        "eventInjectionBoost": 0.5,
        "indoorBias": 0.7,
        "physicalIntensity": 0.2,
        "seasonalRelevance": 0.6,
    },
    "high_energy": {
        "categoryWeights": {"nightlife": 0.8, "games": 0.7, "food": 0.5},
        "uniquenessBoost": 0.5,
        "eventInjectionBoost": 0.6,
        "indoorBias": 0.5,
        "physicalIntensity": 0.7,
        "seasonalRelevance": 0.5,
    },
    "playful_competitive": {
        "categoryWeights": {"games": 0.95, "food": 0.4, "nightlife": 0.4},
        "uniquenessBoost": 0.6,
        "eventInjectionBoost": 0.5,
        "indoorBias": 0.5,
        "physicalIntensity": 0.6,
        "seasonalRelevance": 0.4,
    },
    "purposeful": {
        "categoryWeights": {"community": 0.9, "culture": 0.5, "food": 0.4, "wellness": 0.4},
        "uniquenessBoost": 0.5,
        "eventInjectionBoost": 0.5,
        "indoorBias": 0.6,
        "physicalIntensity": 0.3,
        "seasonalRelevance": 0.6,
    },
    "culinary": {
        "categoryWeights": {"food": 0.95, "culture": 0.4, "nightlife": 0.3},
        "uniquenessBoost": 0.4,
        "eventInjectionBoost": 0.4,
        "indoorBias": 0.7,
        "physicalIntensity": 0.2,
        "seasonalRelevance": 0.5,
    },
}


def get_crew_policy(crew: str) -> CrewPolicy:
    """Raises ``KeyError`` for crews without a preset."""
    return CrewPolicy.model_validate(_CREW_POLICIES[crew])


def get_anchor_policy(anchor: str) -> AnchorPolicy:
    return AnchorPolicy.model_validate(_ANCHOR_POLICIES[anchor])
