"""
Format-aware scoring of a single answered question.

Supported formats:

- Single best answer ("Multiple Choice", or no format at all): one selected
  option id; score 1 if it is the option flagged correct, else 0.
- Select All That Apply with partial scoring: per option
      + partial_credit  if correct and selected
      - penalty_value   if incorrect and selected
      - partial_credit  if correct and not selected
  floored at 0; max score is the number of correct options; correct only on
  a full score.
- Any other multi-select (SATA without partial scoring, or any other named
  format): correct only when the selected set equals the correct set
  exactly; score 1 or 0.

Responses are lists of option ids as strings, as submitted by clients.
Persisting the outcome is the Response Store's job, not this module's.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, Sequence, Set

logger = logging.getLogger(__name__)

FORMAT_MULTIPLE_CHOICE = "Multiple Choice"
FORMAT_SELECT_ALL = "Select All That Apply"

_SINGLE_BEST_FORMATS = {"multiple choice"}
_SELECT_ALL_FORMATS = {"select all that apply", "sata"}

# Scores are sums of 2-decimal credits; compare with a tolerance
SCORE_TOLERANCE = 1e-9

SCORING_SINGLE_BEST = "single_best"
SCORING_PARTIAL = "partial"
SCORING_EXACT_SET = "exact_set"


class ScorableOption(Protocol):
    """Protocol for answer options (e.g. AnswerOption rows)."""

    @property
    def id(self) -> int:
        ...

    @property
    def is_correct(self) -> bool:
        ...

    @property
    def partial_credit(self) -> float:
        ...

    @property
    def penalty_value(self) -> float:
        ...


@dataclass(frozen=True)
class ScoreResult:
    """Outcome of scoring one response."""

    is_correct: bool
    score: float
    max_score: float


def scoring_method(question_format: Optional[str], use_partial_scoring: bool) -> str:
    """
    Decide how a question is scored from its format and partial-scoring flag.

    Returns:
        One of SCORING_SINGLE_BEST, SCORING_PARTIAL, SCORING_EXACT_SET.
    """
    normalized = (question_format or "").strip().lower()
    if not normalized or normalized in _SINGLE_BEST_FORMATS:
        return SCORING_SINGLE_BEST
    if normalized in _SELECT_ALL_FORMATS and use_partial_scoring:
        return SCORING_PARTIAL
    return SCORING_EXACT_SET


def _normalize_response(response: Iterable[object]) -> list[str]:
    return [str(value).strip() for value in response if value is not None]


def score_single_best(
    options: Sequence[ScorableOption], response: Sequence[str]
) -> ScoreResult:
    """Score a single-best-answer question. Only the first selection counts."""
    selected = response[0] if response else None
    is_correct = any(
        str(option.id) == selected and option.is_correct for option in options
    )
    score = 1.0 if is_correct else 0.0
    return ScoreResult(is_correct=is_correct, score=score, max_score=1.0)


def score_partial(
    options: Sequence[ScorableOption], response: Sequence[str]
) -> ScoreResult:
    """Score a Select All That Apply question with partial credit and penalties."""
    selected: Set[str] = set(response)
    score = 0.0
    max_score = 0.0
    for option in options:
        is_selected = str(option.id) in selected
        if option.is_correct:
            max_score += 1.0
            if is_selected:
                score += option.partial_credit
            else:
                score -= option.partial_credit
        elif is_selected:
            score -= option.penalty_value

    score = max(score, 0.0)
    is_correct = math.isclose(score, max_score, rel_tol=0.0, abs_tol=SCORE_TOLERANCE)
    return ScoreResult(is_correct=is_correct, score=score, max_score=max_score)


def score_exact_set(
    options: Sequence[ScorableOption], response: Sequence[str]
) -> ScoreResult:
    """Score a multi-select question that requires the exact correct set."""
    selected: Set[str] = set(response)
    correct_ids = {str(option.id) for option in options if option.is_correct}
    incorrect_ids = {str(option.id) for option in options if not option.is_correct}

    # Unknown ids in the response are ignored, matching the option-driven rule
    is_correct = correct_ids <= selected and not (selected & incorrect_ids)
    score = 1.0 if is_correct else 0.0
    return ScoreResult(is_correct=is_correct, score=score, max_score=1.0)


def score_response(
    question_format: Optional[str],
    options: Sequence[ScorableOption],
    response: Iterable[object],
    use_partial_scoring: bool = False,
) -> ScoreResult:
    """
    Score a user's response to one question.

    Args:
        question_format: The question's format label.
        options: All answer options belonging to the question.
        response: Selected option ids (strings or ints).
        use_partial_scoring: Whether the question enables partial credit
            (only honoured for Select All That Apply).

    Returns:
        ScoreResult with correctness, score and maximum score.
    """
    normalized = _normalize_response(response)
    method = scoring_method(question_format, use_partial_scoring)

    if method == SCORING_SINGLE_BEST:
        result = score_single_best(options, normalized)
    elif method == SCORING_PARTIAL:
        result = score_partial(options, normalized)
    else:
        result = score_exact_set(options, normalized)

    logger.debug(
        f"Scored response ({method}, format={question_format!r}): "
        f"selected={normalized} -> score={result.score:.2f}/{result.max_score:.2f}, "
        f"correct={result.is_correct}"
    )
    return result
