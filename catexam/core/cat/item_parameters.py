"""
Default 3PL item parameters for questions that have never been calibrated.

Questions enter the CAT bank with only a coarse difficulty label. Before a
question can be selected it needs (a, b, c); these defaults bootstrap them:

    b = label anchor (Easy -1.0, Medium 0.0, Hard 1.0, other 0.0) + U[-0.25, 0.25)
    a = U[0.8, 1.2)
    c = U[0.20, 0.25)   (roughly 1/4 guessing on four-option items)
"""

import random
from dataclasses import dataclass
from typing import Dict, Optional

from catexam.core.cat.irt import validate_item_parameters

DIFFICULTY_ANCHORS: Dict[str, float] = {
    "easy": -1.0,
    "medium": 0.0,
    "hard": 1.0,
}
DEFAULT_DIFFICULTY_ANCHOR = 0.0
DIFFICULTY_JITTER = 0.25

DISCRIMINATION_RANGE = (0.8, 1.2)
GUESSING_RANGE = (0.20, 0.25)


@dataclass(frozen=True)
class ItemParameterSet:
    """3PL parameters for a single question."""

    discrimination: float  # a
    difficulty: float  # b
    guessing: float  # c

    def __post_init__(self):
        validate_item_parameters(self.discrimination, self.difficulty, self.guessing)


def difficulty_anchor(label: Optional[str]) -> float:
    """Map a difficulty label (case-insensitive) to its anchor on the theta scale."""
    if not label:
        return DEFAULT_DIFFICULTY_ANCHOR
    return DIFFICULTY_ANCHORS.get(label.strip().lower(), DEFAULT_DIFFICULTY_ANCHOR)


def default_item_parameters(
    difficulty_label: Optional[str],
    rng: Optional[random.Random] = None,
) -> ItemParameterSet:
    """
    Draw default parameters for a question from its difficulty label.

    Args:
        difficulty_label: "Easy", "Medium", "Hard" (any case); anything else
            is treated as medium.
        rng: Optional Random instance for deterministic testing.

    Returns:
        ItemParameterSet with jittered difficulty, discrimination and guessing.
    """
    rng = rng or random.Random()

    low_a, high_a = DISCRIMINATION_RANGE
    low_c, high_c = GUESSING_RANGE

    difficulty = difficulty_anchor(difficulty_label) + (
        rng.random() * 2 * DIFFICULTY_JITTER - DIFFICULTY_JITTER
    )

    return ItemParameterSet(
        discrimination=low_a + rng.random() * (high_a - low_a),
        difficulty=difficulty,
        guessing=low_c + rng.random() * (high_c - low_c),
    )
