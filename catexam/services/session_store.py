"""
Persistence for CAT tests, sessions and the selection log.
"""
import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from catexam.core.datetime_utils import utc_now
from catexam.core.error_responses import ErrorMessages
from catexam.core.exceptions import NotFoundError
from catexam.models import (
    CatQuestionSelection,
    CatSession,
    CatSessionStatus,
    ItemParameters,
    Test,
    TestQuestion,
    TestStatus,
)

logger = logging.getLogger(__name__)

# (discrimination, difficulty, guessing, was_correct)
AnsweredItemRow = Tuple[float, float, float, bool]


class SqlSessionStore:
    """Reads and writes Test, TestQuestion, CatSession and selection rows."""

    def __init__(self, db: Session):
        self.db = db

    def create_test(
        self,
        user_id: str,
        title: str,
        topics: Optional[Sequence[str]],
        question_ids: Sequence[int],
    ) -> Test:
        """Create a CAT test and link its fixed question pool in order."""
        now = utc_now()
        test = Test(
            user_id=user_id,
            title=title,
            mode="CAT",
            topics=list(topics) if topics else None,
            question_count=len(question_ids),
            status=TestStatus.IN_PROGRESS,
            created_at=now,
            started_at=now,
        )
        self.db.add(test)
        self.db.flush()

        self.db.add_all(
            TestQuestion(test_id=test.id, question_id=question_id, question_order=order)
            for order, question_id in enumerate(question_ids, start=1)
        )
        self.db.flush()
        return test

    def create_session(
        self,
        test: Test,
        min_questions: int,
        max_questions: int,
        passing_standard: float,
        initial_ability: float = 0.0,
    ) -> CatSession:
        """Open an in-progress CAT session for a test."""
        cat_session = CatSession(
            test_id=test.id,
            user_id=test.user_id,
            initial_ability=initial_ability,
            current_ability=initial_ability,
            passing_standard=passing_standard,
            min_questions=min_questions,
            max_questions=max_questions,
            questions_answered=0,
            status=CatSessionStatus.IN_PROGRESS,
        )
        self.db.add(cat_session)
        self.db.flush()
        return cat_session

    def get_session(self, session_id: int) -> CatSession:
        """
        Load a CAT session.

        Raises:
            NotFoundError: If the session does not exist.
        """
        cat_session = (
            self.db.query(CatSession).filter(CatSession.id == session_id).first()
        )
        if cat_session is None:
            raise NotFoundError(
                f"{ErrorMessages.CAT_SESSION_NOT_FOUND} (ID: {session_id})",
                session_id=session_id,
            )
        return cat_session

    def get_pool_ids(self, test_id: int) -> List[int]:
        """Question ids of a test's pool, in pool order."""
        rows = (
            self.db.query(TestQuestion.question_id)
            .filter(TestQuestion.test_id == test_id)
            .order_by(TestQuestion.question_order)
            .all()
        )
        return [question_id for (question_id,) in rows]

    def get_selections(self, cat_session: CatSession) -> List[CatQuestionSelection]:
        """Selection log of a session, ordered by position."""
        return (
            self.db.query(CatQuestionSelection)
            .filter(CatQuestionSelection.cat_session_id == cat_session.id)
            .order_by(CatQuestionSelection.position)
            .all()
        )

    def get_in_flight_selection(
        self, cat_session: CatSession
    ) -> Optional[CatQuestionSelection]:
        """The most recent selection that has not been answered yet, if any."""
        return (
            self.db.query(CatQuestionSelection)
            .filter(
                CatQuestionSelection.cat_session_id == cat_session.id,
                CatQuestionSelection.was_correct.is_(None),
            )
            .order_by(CatQuestionSelection.position.desc())
            .first()
        )

    def add_selection(
        self,
        cat_session: CatSession,
        question_id: int,
        position: int,
        ability_before: float,
        information: float,
    ) -> CatQuestionSelection:
        """Append a served question to the selection log."""
        selection = CatQuestionSelection(
            cat_session_id=cat_session.id,
            question_id=question_id,
            position=position,
            ability_estimate_before=ability_before,
            ability_estimate_after=None,
            information_value=information,
            was_correct=None,
            created_at=utc_now(),
        )
        self.db.add(selection)
        self.db.flush()
        return selection

    def get_answered_items(self, cat_session: CatSession) -> List[AnsweredItemRow]:
        """
        Parameters and outcomes of every answered selection, in position order.

        Selections whose question has no parameter row are skipped.
        """
        rows = (
            self.db.query(
                ItemParameters.discrimination,
                ItemParameters.difficulty,
                ItemParameters.guessing,
                CatQuestionSelection.was_correct,
            )
            .join(
                ItemParameters,
                ItemParameters.question_id == CatQuestionSelection.question_id,
            )
            .filter(
                CatQuestionSelection.cat_session_id == cat_session.id,
                CatQuestionSelection.was_correct.isnot(None),
            )
            .order_by(CatQuestionSelection.position)
            .all()
        )
        return [(a, b, c, bool(correct)) for a, b, c, correct in rows]

    def finish_test(self, test_id: int, status: TestStatus) -> None:
        """Mark a test completed or abandoned."""
        test = self.db.query(Test).filter(Test.id == test_id).first()
        if test is None:
            raise NotFoundError(f"{ErrorMessages.TEST_NOT_FOUND} (ID: {test_id})")
        test.status = status
        test.finished_at = utc_now()
        self.db.flush()
        logger.debug(f"Test {test_id} marked {status.value}")
