"""
Tests for default 3PL parameter generation.
"""
import random

import pytest

from catexam.core.cat.item_parameters import (
    DIFFICULTY_JITTER,
    DISCRIMINATION_RANGE,
    GUESSING_RANGE,
    ItemParameterSet,
    default_item_parameters,
    difficulty_anchor,
)


class TestDifficultyAnchor:
    """Tests for difficulty_anchor()."""

    @pytest.mark.parametrize(
        "label,expected",
        [
            ("Easy", -1.0),
            ("easy", -1.0),
            ("MEDIUM", 0.0),
            ("Hard", 1.0),
            (" hard ", 1.0),
            ("Expert", 0.0),
            ("", 0.0),
            (None, 0.0),
        ],
    )
    def test_label_anchors(self, label, expected):
        assert difficulty_anchor(label) == expected


class TestDefaultItemParameters:
    """Tests for default_item_parameters()."""

    @pytest.mark.parametrize("label", ["Easy", "Medium", "Hard", "Unknown"])
    def test_parameters_within_ranges(self, label):
        rng = random.Random(11)
        anchor = difficulty_anchor(label)
        for _ in range(200):
            params = default_item_parameters(label, rng=rng)
            assert anchor - DIFFICULTY_JITTER <= params.difficulty < anchor + DIFFICULTY_JITTER
            assert DISCRIMINATION_RANGE[0] <= params.discrimination < DISCRIMINATION_RANGE[1]
            assert GUESSING_RANGE[0] <= params.guessing < GUESSING_RANGE[1]

    def test_seeded_rng_is_deterministic(self):
        first = default_item_parameters("Hard", rng=random.Random(5))
        second = default_item_parameters("Hard", rng=random.Random(5))
        assert first == second

    def test_hard_items_are_harder_than_easy_items(self):
        rng = random.Random(2)
        easy = [default_item_parameters("Easy", rng=rng).difficulty for _ in range(20)]
        hard = [default_item_parameters("Hard", rng=rng).difficulty for _ in range(20)]
        assert max(easy) < min(hard)


class TestItemParameterSet:
    """Tests for ItemParameterSet validation."""

    def test_valid_parameters(self):
        params = ItemParameterSet(discrimination=1.0, difficulty=0.5, guessing=0.2)
        assert params.difficulty == 0.5

    @pytest.mark.parametrize(
        "a,b,c",
        [
            (0.0, 0.0, 0.2),
            (-1.0, 0.0, 0.2),
            (1.0, float("nan"), 0.2),
            (1.0, 0.0, 1.0),
            (1.0, 0.0, -0.1),
        ],
    )
    def test_invalid_parameters_raise(self, a, b, c):
        with pytest.raises(ValueError):
            ItemParameterSet(discrimination=a, difficulty=b, guessing=c)
