"""
Tests for Newton-Raphson MLE ability estimation.
"""
import pytest

from catexam.core.cat.ability_estimation import (
    THETA_MAX,
    THETA_MIN,
    ability_standard_error,
    estimate_ability_mle,
)
from catexam.core.cat.irt import item_information

MEDIUM = (1.0, 0.0, 0.2)


def _responses(pattern, params=MEDIUM):
    a, b, c = params
    return [(a, b, c, correct) for correct in pattern]


class TestEstimateAbilityMLE:
    """Tests for estimate_ability_mle()."""

    def test_empty_history_returns_prior(self):
        assert estimate_ability_mle([]) == 0.0
        assert estimate_ability_mle([], initial_theta=0.75) == 0.75

    def test_idempotent_on_unchanged_history(self):
        responses = _responses([True, False, True, True, False, False, True])
        first = estimate_ability_mle(responses)
        second = estimate_ability_mle(responses)
        assert second == pytest.approx(first, abs=1e-6)

    def test_single_correct_answer_raises_estimate(self):
        assert estimate_ability_mle(_responses([True])) > 0.0

    def test_single_incorrect_answer_lowers_estimate(self):
        assert estimate_ability_mle(_responses([False])) < 0.0

    def test_all_correct_drives_theta_up_to_upper_bound(self):
        previous = 0.0
        history = []
        for _ in range(10):
            history.append((1.0, 0.0, 0.2, True))
            theta = estimate_ability_mle(history, initial_theta=previous)
            assert theta >= previous
            previous = theta
        assert previous == pytest.approx(THETA_MAX)

    def test_all_incorrect_drives_theta_down_to_lower_bound(self):
        previous = 0.0
        history = []
        for _ in range(10):
            history.append((1.0, 0.0, 0.2, False))
            theta = estimate_ability_mle(history, initial_theta=previous)
            assert theta <= previous
            previous = theta
        assert previous == pytest.approx(THETA_MIN)

    def test_balanced_pattern_centred_on_start_stays_put(self):
        # Derivative is zero at the starting point, so Newton converges at once
        responses = _responses([True, False] * 5, params=(1.0, 0.0, 0.0))
        assert estimate_ability_mle(responses) == pytest.approx(0.0)

    def test_estimate_stays_within_bounds(self):
        hard_items = [(2.0, 3.9, 0.0, True)] * 3 + [(2.0, 3.95, 0.0, True)]
        assert THETA_MIN <= estimate_ability_mle(hard_items) <= THETA_MAX

    def test_zero_curvature_nudges_in_direction_of_first_derivative(self):
        # a^2 underflows to 0, so the second derivative is exactly zero
        up = estimate_ability_mle([(1e-200, 0.0, 0.0, True)], max_iterations=5)
        down = estimate_ability_mle([(1e-200, 0.0, 0.0, False)], max_iterations=5)
        assert up == pytest.approx(0.5)
        assert down == pytest.approx(-0.5)

    def test_iteration_cap_returns_last_theta(self):
        responses = _responses([True, True, False])
        theta = estimate_ability_mle(responses, max_iterations=1)
        assert THETA_MIN <= theta <= THETA_MAX
        assert theta != 0.0

    def test_rejects_non_positive_discrimination(self):
        with pytest.raises(ValueError, match="Discrimination"):
            estimate_ability_mle([(0.0, 0.0, 0.2, True)])


class TestAbilityStandardError:
    """Tests for ability_standard_error()."""

    def test_no_history_has_no_standard_error(self):
        assert ability_standard_error(0.0, []) is None

    def test_matches_test_information(self):
        responses = _responses([True, False, True])
        total = 3 * item_information(0.1, *MEDIUM)
        assert ability_standard_error(0.1, responses) == pytest.approx(total**-0.5)

    def test_shrinks_as_items_accumulate(self):
        few = ability_standard_error(0.0, _responses([True, False]))
        many = ability_standard_error(0.0, _responses([True, False] * 5))
        assert many < few
