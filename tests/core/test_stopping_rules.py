"""
Tests for the CAT stopping rule.
"""
import pytest

from catexam.core.cat.stopping_rules import (
    DECISION_FAILED,
    DECISION_PASSED,
    STOP_CONFIDENT_SEPARATION,
    STOP_MAX_QUESTIONS,
    check_stopping_criteria,
    pass_fail_decision,
)


class TestPassFailDecision:
    """Tests for pass_fail_decision()."""

    def test_at_standard_passes(self):
        assert pass_fail_decision(0.0, 0.0) == DECISION_PASSED

    def test_above_standard_passes(self):
        assert pass_fail_decision(0.5, 0.0) == DECISION_PASSED

    def test_below_standard_fails(self):
        assert pass_fail_decision(-0.01, 0.0) == DECISION_FAILED


class TestCheckStoppingCriteria:
    """Tests for check_stopping_criteria()."""

    def test_stops_at_max_questions(self):
        result = check_stopping_criteria(
            ability=0.2, questions_answered=10, min_questions=5,
            max_questions=10, passing_standard=0.0,
        )
        assert result.should_stop
        assert result.reason == STOP_MAX_QUESTIONS
        assert result.decision == DECISION_PASSED

    def test_max_questions_overrides_min(self):
        # max reached before min: still stops
        result = check_stopping_criteria(
            ability=-0.1, questions_answered=1, min_questions=3,
            max_questions=1, passing_standard=0.0,
        )
        assert result.should_stop
        assert result.reason == STOP_MAX_QUESTIONS
        assert result.decision == DECISION_FAILED

    def test_continues_below_min_even_when_separated(self):
        result = check_stopping_criteria(
            ability=4.0, questions_answered=2, min_questions=5,
            max_questions=10, passing_standard=0.0,
        )
        assert not result.should_stop
        assert result.reason is None
        assert result.decision is None
        assert result.details["min_questions_met"] is False

    def test_confident_pass(self):
        result = check_stopping_criteria(
            ability=1.5, questions_answered=5, min_questions=5,
            max_questions=10, passing_standard=0.0,
        )
        assert result.should_stop
        assert result.reason == STOP_CONFIDENT_SEPARATION
        assert result.decision == DECISION_PASSED

    def test_confident_fail(self):
        result = check_stopping_criteria(
            ability=-1.5, questions_answered=6, min_questions=5,
            max_questions=10, passing_standard=0.0,
        )
        assert result.should_stop
        assert result.decision == DECISION_FAILED

    def test_margin_is_strict(self):
        result = check_stopping_criteria(
            ability=1.0, questions_answered=5, min_questions=5,
            max_questions=10, passing_standard=0.0,
        )
        assert not result.should_stop
        assert result.details["distance"] == pytest.approx(1.0)

    def test_custom_margin(self):
        result = check_stopping_criteria(
            ability=0.6, questions_answered=5, min_questions=5,
            max_questions=10, passing_standard=0.0, confidence_margin=0.5,
        )
        assert result.should_stop
        assert result.reason == STOP_CONFIDENT_SEPARATION

    def test_distance_relative_to_passing_standard(self):
        result = check_stopping_criteria(
            ability=1.5, questions_answered=5, min_questions=5,
            max_questions=10, passing_standard=1.0,
        )
        assert not result.should_stop
        assert result.details["distance"] == pytest.approx(0.5)

    def test_rejects_negative_count(self):
        with pytest.raises(ValueError, match="non-negative"):
            check_stopping_criteria(
                ability=0.0, questions_answered=-1, min_questions=1,
                max_questions=5, passing_standard=0.0,
            )

    def test_details_report_inputs(self):
        result = check_stopping_criteria(
            ability=0.3, questions_answered=3, min_questions=2,
            max_questions=3, passing_standard=0.1,
        )
        assert result.details["ability"] == 0.3
        assert result.details["passing_standard"] == 0.1
        assert result.details["questions_answered"] == 3
        assert result.details["at_max_questions"] is True
