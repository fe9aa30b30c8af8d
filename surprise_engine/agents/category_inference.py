"""Category and energy inference for place type tokens."""
from __future__ import annotations

from typing import Iterable, List, Tuple

# Checked in order; the first bucket with a matching substring wins.
_CATEGORY_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("food", ("restaurant", "food")),
    ("bar", ("bar", "cocktail")),
    ("dessert", ("dessert", "bakery", "cafe", "coffee")),
    ("culture", ("museum", "gallery", "culture")),
    ("games", ("amusement", "games", "arcade")),
    ("outdoors", ("park", "outdoor", "trail", "garden")),
)

# Highest energy first. Ambiguous stops take the livelier reading.
_ENERGY_RULES: Tuple[Tuple[float, Tuple[str, ...]], ...] = (
    (0.8, ("nightlife", "bar", "cocktail", "club", "lounge")),
    (0.7, ("games", "game", "amusement", "arcade", "bowling", "mini_golf")),
    (0.6, ("park", "outdoor", "trail", "garden", "beach")),
    (0.5, ("museum", "gallery", "culture", "cultural")),
    (0.4, ("restaurant", "food")),
    (0.3, ("cafe", "coffee", "dessert", "bakery", "tea")),
)


def infer_category_from_type(type_token: str) -> str:
    """Map a free-text type token to a coarse category.

    Unrecognised tokens are returned unchanged so downstream classification
    still sees the original signal.
    """
    if not type_token:
        return ""
    for category, matchers in _CATEGORY_RULES:
        if any(matcher in type_token for matcher in matchers):
            return category
    return type_token


def infer_energy(types: Iterable[str]) -> float | None:
    tokens: List[str] = [t for t in types if t]
    for energy, matchers in _ENERGY_RULES:
        if any(matcher in token for token in tokens for matcher in matchers):
            return energy
    return None
