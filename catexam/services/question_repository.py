"""
Question Repository backed by SQLAlchemy.

Reads question content and answer options, lists pool candidates with the
user's history, and owns the item parameter rows (including bootstrapping
defaults for questions that were never calibrated).

Methods only flush; the caller's unit of work decides when to commit.
"""
import logging
import random
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session, selectinload

from catexam.core.cat.item_parameters import default_item_parameters
from catexam.core.cat.question_pool import PoolCandidate
from catexam.core.error_responses import ErrorMessages
from catexam.core.exceptions import NotFoundError
from catexam.models import (
    ItemParameters,
    Question,
    QuestionStatus,
    UserQuestionStatus,
)

logger = logging.getLogger(__name__)


class SqlQuestionRepository:
    """Question content, pool candidates and 3PL parameters."""

    def __init__(self, db: Session):
        self.db = db

    def get_question(self, question_id: int) -> Question:
        """
        Fetch a question with its answer options.

        Raises:
            NotFoundError: If the question does not exist.
        """
        question = (
            self.db.query(Question)
            .options(selectinload(Question.options))
            .filter(Question.id == question_id)
            .first()
        )
        if question is None:
            raise NotFoundError(f"{ErrorMessages.QUESTION_NOT_FOUND} (ID: {question_id})")
        return question

    def get_pool_candidates(
        self, user_id: str, topics: Optional[Sequence[str]] = None
    ) -> List[PoolCandidate]:
        """
        List questions eligible for a new test, with the user's status on each.

        When topics are given only those topics are eligible, and questions the
        user already answered correctly are left out.
        """
        query = (
            self.db.query(Question.id, UserQuestionStatus.status)
            .outerjoin(
                UserQuestionStatus,
                (UserQuestionStatus.question_id == Question.id)
                & (UserQuestionStatus.user_id == user_id),
            )
        )
        if topics:
            query = query.filter(Question.topic.in_(list(topics))).filter(
                (UserQuestionStatus.status.is_(None))
                | (UserQuestionStatus.status != QuestionStatus.CORRECT)
            )

        candidates = [
            PoolCandidate(
                question_id=question_id,
                user_status=status.value if status is not None else None,
            )
            for question_id, status in query.order_by(Question.id).all()
        ]
        logger.debug(
            f"Found {len(candidates)} pool candidates for user {user_id} "
            f"(topics={list(topics) if topics else 'all'})"
        )
        return candidates

    def get_parameters(self, question_ids: Iterable[int]) -> Dict[int, ItemParameters]:
        """Return the item parameter rows for the given questions, keyed by question id."""
        ids = list(question_ids)
        if not ids:
            return {}
        rows = (
            self.db.query(ItemParameters)
            .filter(ItemParameters.question_id.in_(ids))
            .all()
        )
        return {row.question_id: row for row in rows}

    def initialize_missing_parameters(
        self,
        question_ids: Optional[Iterable[int]] = None,
        rng: Optional[random.Random] = None,
    ) -> int:
        """
        Create default 3PL parameters for questions that have none.

        Args:
            question_ids: Restrict initialization to these questions. None means
                every question in the bank.
            rng: Optional Random instance for deterministic testing.

        Returns:
            Number of parameter rows created.
        """
        query = (
            self.db.query(Question.id, Question.difficulty)
            .outerjoin(ItemParameters, ItemParameters.question_id == Question.id)
            .filter(ItemParameters.id.is_(None))
        )
        if question_ids is not None:
            ids = list(question_ids)
            if not ids:
                return 0
            query = query.filter(Question.id.in_(ids))

        missing = query.order_by(Question.id).all()
        if not missing:
            return 0

        rng = rng or random.Random()
        for question_id, difficulty_label in missing:
            params = default_item_parameters(difficulty_label, rng=rng)
            self.db.add(
                ItemParameters(
                    question_id=question_id,
                    discrimination=params.discrimination,
                    difficulty=params.difficulty,
                    guessing=params.guessing,
                )
            )
        self.db.flush()

        logger.info(f"Initialized default item parameters for {len(missing)} questions")
        return len(missing)
