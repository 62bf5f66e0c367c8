"""
Response Store backed by SQLAlchemy.

Persists scored answers and keeps each user's per-question history current.
"""
import logging
from typing import Sequence

from sqlalchemy.orm import Session

from catexam.core.datetime_utils import utc_now
from catexam.models import QuestionStatus, TestResult, UserQuestionStatus

logger = logging.getLogger(__name__)


class SqlResponseStore:
    """Writes test results and user question status rows."""

    def __init__(self, db: Session):
        self.db = db

    def record_result(
        self,
        test_id: int,
        user_id: str,
        question_id: int,
        response: Sequence[str],
        is_correct: bool,
        score: float,
        max_score: float,
        time_spent_seconds: int,
    ) -> int:
        """
        Append a scored response to the test's result log.

        A second result for the same (test, question) violates a unique
        constraint when flushed.

        Returns:
            The new result id.
        """
        result = TestResult(
            test_id=test_id,
            user_id=user_id,
            question_id=question_id,
            user_response=[str(value) for value in response],
            is_correct=is_correct,
            score=score,
            max_score=max_score,
            time_spent_seconds=time_spent_seconds,
            is_flagged=False,
            answered_at=utc_now(),
        )
        self.db.add(result)
        self.db.flush()
        return result.id

    def upsert_question_status(
        self, user_id: str, question_id: int, correct: bool
    ) -> UserQuestionStatus:
        """Set the user's status on a question and bump its attempt counter."""
        status = (
            self.db.query(UserQuestionStatus)
            .filter(
                UserQuestionStatus.user_id == user_id,
                UserQuestionStatus.question_id == question_id,
            )
            .first()
        )
        if status is None:
            status = UserQuestionStatus(
                user_id=user_id, question_id=question_id, attempt_count=0
            )
            self.db.add(status)

        status.status = QuestionStatus.CORRECT if correct else QuestionStatus.INCORRECT
        status.attempt_count = (status.attempt_count or 0) + 1
        status.last_seen_at = utc_now()
        self.db.flush()

        logger.debug(
            f"User {user_id} question {question_id}: status={status.status.value}, "
            f"attempts={status.attempt_count}"
        )
        return status
