"""
Stopping rule for variable-length pass/fail adaptive tests.

Rules (evaluated in priority order):
    1. Maximum questions: stop once questions_answered >= max_questions
    2. Confident separation: after min_questions, stop once the ability
       estimate is more than ``confidence_margin`` logits away from the
       passing standard
    3. Otherwise continue

Whenever the test stops, the decision is "passed" if
ability >= passing_standard, else "failed".

The separation rule is a fixed logit margin rather than a standard-error
based confidence interval. It is kept as-is for behavioral compatibility
with existing sessions.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_MARGIN = 1.0

# Stop reasons
STOP_MAX_QUESTIONS = "max_questions"
STOP_CONFIDENT_SEPARATION = "confident_separation"
STOP_POOL_EXHAUSTED = "pool_exhausted"
STOP_ABANDONED = "abandoned"

# Terminal decisions
DECISION_PASSED = "passed"
DECISION_FAILED = "failed"


@dataclass
class StoppingDecision:
    """
    Result of evaluating the stopping rule for a CAT session.

    Attributes:
        should_stop: Whether the test should terminate.
        reason: Stop reason (if should_stop=True), or None.
        decision: "passed" or "failed" (if should_stop=True), or None.
        details: Diagnostic values used for the decision.
    """

    should_stop: bool
    reason: Optional[str]
    decision: Optional[str]
    details: Dict[str, Any]


def pass_fail_decision(ability: float, passing_standard: float) -> str:
    """Return "passed" when ability meets the passing standard, else "failed"."""
    return DECISION_PASSED if ability >= passing_standard else DECISION_FAILED


def check_stopping_criteria(
    ability: float,
    questions_answered: int,
    min_questions: int,
    max_questions: int,
    passing_standard: float,
    confidence_margin: float = DEFAULT_CONFIDENCE_MARGIN,
) -> StoppingDecision:
    """
    Evaluate the stopping rule and determine whether the session should stop.

    Args:
        ability: Current ability estimate.
        questions_answered: Number of answered questions.
        min_questions: Minimum answered questions before the separation rule
            may stop the test.
        max_questions: Hard cap on answered questions.
        passing_standard: Cut score on the theta scale.
        confidence_margin: Required |ability - passing_standard| for an early
            stop between min and max questions.

    Returns:
        StoppingDecision with should_stop flag, reason, pass/fail decision
        and diagnostic details.

    Raises:
        ValueError: If questions_answered is negative.
    """
    if questions_answered < 0:
        raise ValueError(
            f"questions_answered must be non-negative, got {questions_answered}"
        )

    distance = abs(ability - passing_standard)
    details: Dict[str, Any] = {
        "ability": ability,
        "passing_standard": passing_standard,
        "distance": distance,
        "questions_answered": questions_answered,
        "min_questions_met": questions_answered >= min_questions,
        "at_max_questions": questions_answered >= max_questions,
    }

    if questions_answered >= max_questions:
        decision = pass_fail_decision(ability, passing_standard)
        logger.info(
            f"Stopping: reached maximum questions ({questions_answered}/{max_questions}), "
            f"decision={decision}"
        )
        return StoppingDecision(
            should_stop=True,
            reason=STOP_MAX_QUESTIONS,
            decision=decision,
            details=details,
        )

    if questions_answered >= min_questions and distance > confidence_margin:
        decision = pass_fail_decision(ability, passing_standard)
        logger.info(
            f"Stopping: confident separation (|{ability:.3f} - {passing_standard:.3f}| "
            f"> {confidence_margin}) after {questions_answered} questions, "
            f"decision={decision}"
        )
        return StoppingDecision(
            should_stop=True,
            reason=STOP_CONFIDENT_SEPARATION,
            decision=decision,
            details=details,
        )

    logger.debug(
        f"Continuing: ability={ability:.3f}, distance={distance:.3f}, "
        f"questions={questions_answered} (min={min_questions}, max={max_questions})"
    )
    return StoppingDecision(should_stop=False, reason=None, decision=None, details=details)
