"""
CATSessionManager: orchestrator for adaptive test sessions.

Wires the pure numeric core (MLE ability estimation, maximum-information item
selection, stopping rule, pool tiering, scoring) to the persistence adapters.
All session state lives in the database; the manager itself only holds the
collaborators for one request.

Session lifecycle:
    create_cat_test -> (get_next_question -> submit_answer)* -> passed | failed
    abandon may end an in-progress session at any point.

Exactly one question is in flight per session. Within a process, operations
on the same session are serialized by a per-session lock; across processes
the unique (cat_session_id, position) key on the selection log and the
session's version counter reject the losing writer with OutOfSequenceError.
"""
import logging
import random
import threading
import weakref
from dataclasses import dataclass
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from catexam.core.cat.ability_estimation import (
    ability_standard_error,
    estimate_ability_mle,
)
from catexam.core.cat.item_selection import ItemSelection, select_next_item
from catexam.core.cat.question_pool import build_question_pool
from catexam.core.cat.stopping_rules import (
    STOP_ABANDONED,
    STOP_POOL_EXHAUSTED,
    StoppingDecision,
    check_stopping_criteria,
    pass_fail_decision,
)
from catexam.core.config import Settings, settings
from catexam.core.datetime_utils import utc_now
from catexam.core.db_error_handling import unit_of_work
from catexam.core.error_responses import ErrorMessages
from catexam.core.exceptions import (
    EmptyPoolError,
    OutOfSequenceError,
    SessionClosedError,
    UnauthorizedSessionAccessError,
)
from catexam.core.scoring import score_response
from catexam.models import (
    CatSession,
    CatSessionStatus,
    Question,
    TestStatus,
)
from catexam.services import SqlQuestionRepository, SqlResponseStore, SqlSessionStore

logger = logging.getLogger(__name__)


class SessionLockRegistry:
    """
    Per-session mutexes for the current process.

    Thread-safe. Locks are held weakly: a lock lives only while some
    operation holds a reference to it, so idle sessions (including ones
    left in progress forever) keep nothing in the registry.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[int, threading.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def lock_for(self, session_id: int) -> threading.Lock:
        """Return the lock guarding a session, creating it if none is alive."""
        with self._lock:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[session_id] = lock
            return lock

    def __len__(self) -> int:
        with self._lock:
            return len(self._locks)


session_locks = SessionLockRegistry()


@dataclass
class CreatedTest:
    """Identifiers of a newly created CAT test."""

    test_id: int
    session_id: int
    question_count: int
    max_questions: int


@dataclass
class NextQuestionResult:
    """
    Outcome of asking for the next question.

    While the session is in progress ``question`` and ``serial_number`` are
    set. Once it has terminated they are None and ``status`` carries the
    final state.
    """

    session_id: int
    status: str
    ability: float
    questions_answered: int
    question: Optional[Question] = None
    serial_number: Optional[int] = None
    information: Optional[float] = None
    stop_reason: Optional[str] = None


@dataclass
class AnswerResult:
    """Outcome of a submitted answer, including any termination it caused."""

    session_id: int
    question_id: int
    is_correct: bool
    score: float
    max_score: float
    ability: float
    ability_confidence: Optional[float]
    questions_answered: int
    status: str
    stop_reason: Optional[str] = None


class CATSessionManager:
    """
    Runs CAT operations for one database session.

    Every public method takes the caller's identity and checks that it owns
    the CAT session before reading or writing anything else.
    """

    def __init__(
        self,
        db: Session,
        rng: Optional[random.Random] = None,
        config: Settings = settings,
        locks: SessionLockRegistry = session_locks,
    ):
        """
        Args:
            db: SQLAlchemy session; each operation commits or rolls back on it.
            rng: Optional Random instance for deterministic testing.
            config: Settings providing the CAT defaults.
            locks: Registry of per-session locks.
        """
        self.db = db
        self.rng = rng or random.Random()
        self.config = config
        self.locks = locks
        self.questions = SqlQuestionRepository(db)
        self.responses = SqlResponseStore(db)
        self.sessions = SqlSessionStore(db)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def create_cat_test(
        self,
        caller_id: str,
        topics: Optional[Sequence[str]] = None,
        min_questions: Optional[int] = None,
        max_questions: Optional[int] = None,
        passing_standard: Optional[float] = None,
        title: Optional[str] = None,
    ) -> CreatedTest:
        """
        Build the question pool, create the test and open its CAT session.

        Args:
            caller_id: The test-taker.
            topics: Restrict the pool to these topics (and skip questions the
                caller already answered correctly). None means every topic.
            min_questions: Minimum answers before an early stop.
            max_questions: Hard cap on answers; lowered to the pool size.
            passing_standard: Cut score on the theta scale.
            title: Test title.

        Returns:
            CreatedTest with the test id, session id and pool size.

        Raises:
            ValueError: If a question bound is below 1 or min exceeds max.
            EmptyPoolError: If no question is eligible.
        """
        min_questions = (
            self.config.CAT_DEFAULT_MIN_QUESTIONS if min_questions is None else min_questions
        )
        max_questions = (
            self.config.CAT_DEFAULT_MAX_QUESTIONS if max_questions is None else max_questions
        )
        if passing_standard is None:
            passing_standard = self.config.CAT_DEFAULT_PASSING_STANDARD
        title = title or self.config.CAT_DEFAULT_TEST_TITLE

        if min_questions < 1:
            raise ValueError(f"min_questions must be at least 1, got {min_questions}")
        if max_questions < 1:
            raise ValueError(f"max_questions must be at least 1, got {max_questions}")
        if min_questions > max_questions:
            raise ValueError(
                f"min_questions ({min_questions}) must not exceed "
                f"max_questions ({max_questions})"
            )

        with unit_of_work(self.db, "create CAT test"):
            candidates = self.questions.get_pool_candidates(caller_id, topics)
            if not candidates:
                raise EmptyPoolError(ErrorMessages.NO_QUESTIONS_AVAILABLE)

            pool = build_question_pool(candidates, self.config.CAT_POOL_SIZE, rng=self.rng)
            self.questions.initialize_missing_parameters(pool, rng=self.rng)

            test = self.sessions.create_test(caller_id, title, topics, pool)
            effective_max = min(max_questions, len(pool))
            cat_session = self.sessions.create_session(
                test,
                min_questions=min_questions,
                max_questions=effective_max,
                passing_standard=passing_standard,
            )
            created = CreatedTest(
                test_id=test.id,
                session_id=cat_session.id,
                question_count=len(pool),
                max_questions=effective_max,
            )

        logger.info(
            f"Created CAT test {created.test_id} (session {created.session_id}) "
            f"with {created.question_count} questions, "
            f"min={min_questions}, max={effective_max}, "
            f"passing_standard={passing_standard:.2f}",
            extra={
                "session_id": created.session_id,
                "test_id": created.test_id,
                "user_id": caller_id,
            },
        )
        return created

    def get_session(self, session_id: int, caller_id: str) -> CatSession:
        """
        Load a CAT session owned by the caller, with its selection log.

        Raises:
            NotFoundError: If the session does not exist.
            UnauthorizedSessionAccessError: If the caller does not own it.
        """
        return self._load_owned_session(session_id, caller_id)

    def get_next_question(self, session_id: int, caller_id: str) -> NextQuestionResult:
        """
        Serve the next question, or report the final state.

        A terminated session reports its status (idempotent). An unanswered
        question already in flight is served again with the same serial
        number. Otherwise the stopping rule is evaluated and, if the test
        continues, the most informative unanswered pool item is selected.

        Raises:
            NotFoundError: If the session does not exist.
            UnauthorizedSessionAccessError: If the caller does not own it.
            OutOfSequenceError: If a concurrent request selected first.
        """
        with self.locks.lock_for(session_id):
            with unit_of_work(self.db, "select next CAT question", session_id=session_id):
                cat_session = self._load_owned_session(session_id, caller_id)
                result = self._next_question(cat_session)
        return result

    def submit_answer(
        self,
        session_id: int,
        caller_id: str,
        question_id: int,
        response: Sequence[str],
        time_spent_seconds: int = 0,
    ) -> AnswerResult:
        """
        Score the answer to the in-flight question and update the ability estimate.

        The stopping rule is evaluated right after the update; if it fires
        the session terminates within this call.

        Raises:
            NotFoundError: If the session or question does not exist.
            UnauthorizedSessionAccessError: If the caller does not own it.
            SessionClosedError: If the session is no longer in progress.
            OutOfSequenceError: If question_id is not the in-flight question,
                including a repeated submission for an answered position.
        """
        with self.locks.lock_for(session_id):
            with unit_of_work(self.db, "submit CAT answer", session_id=session_id):
                cat_session = self._load_owned_session(session_id, caller_id)
                result = self._submit_answer(
                    cat_session, question_id, response, time_spent_seconds
                )
        return result

    def abandon(self, session_id: int, caller_id: str) -> CatSession:
        """
        End an in-progress session at the owner's request.

        Raises:
            NotFoundError: If the session does not exist.
            UnauthorizedSessionAccessError: If the caller does not own it.
            SessionClosedError: If the session already terminated.
        """
        with self.locks.lock_for(session_id):
            with unit_of_work(self.db, "abandon CAT session", session_id=session_id):
                cat_session = self._load_owned_session(session_id, caller_id)
                self._require_in_progress(cat_session)

                now = utc_now()
                cat_session.status = CatSessionStatus.ABANDONED
                cat_session.stop_reason = STOP_ABANDONED
                cat_session.completed_at = now
                cat_session.updated_at = now
                self.sessions.finish_test(cat_session.test_id, TestStatus.ABANDONED)

        logger.info(
            f"CAT session {session_id} abandoned after "
            f"{cat_session.questions_answered} questions",
            extra={"session_id": session_id, "user_id": caller_id, "status": "abandoned"},
        )
        return cat_session

    # ------------------------------------------------------------------
    # Internals (run inside the caller's lock and unit of work)
    # ------------------------------------------------------------------

    def _load_owned_session(self, session_id: int, caller_id: str) -> CatSession:
        cat_session = self.sessions.get_session(session_id)
        if cat_session.user_id != caller_id:
            logger.warning(
                f"User {caller_id} attempted to access CAT session {session_id}",
                extra={"session_id": session_id, "user_id": caller_id},
            )
            raise UnauthorizedSessionAccessError(
                ErrorMessages.SESSION_ACCESS_DENIED, session_id=session_id
            )
        return cat_session

    def _require_in_progress(self, cat_session: CatSession) -> None:
        if cat_session.status != CatSessionStatus.IN_PROGRESS:
            raise SessionClosedError(
                ErrorMessages.session_already_completed(cat_session.status.value),
                session_id=cat_session.id,
                status=cat_session.status.value,
            )

    def _next_question(self, cat_session: CatSession) -> NextQuestionResult:
        if cat_session.status != CatSessionStatus.IN_PROGRESS:
            return self._terminal_result(cat_session)

        in_flight = self.sessions.get_in_flight_selection(cat_session)
        if in_flight is not None:
            logger.debug(
                f"Re-serving in-flight question {in_flight.question_id} "
                f"(position {in_flight.position}) for session {cat_session.id}"
            )
            return NextQuestionResult(
                session_id=cat_session.id,
                status=CatSessionStatus.IN_PROGRESS.value,
                ability=cat_session.current_ability,
                questions_answered=cat_session.questions_answered,
                question=self.questions.get_question(in_flight.question_id),
                serial_number=in_flight.position,
                information=in_flight.information_value,
            )

        decision = self._evaluate_stopping_rule(cat_session)
        if decision.should_stop:
            self._terminate(cat_session, decision.reason, decision.decision)
            return self._terminal_result(cat_session)

        selection = self._select_item(cat_session)
        if selection is None:
            self._terminate(
                cat_session,
                STOP_POOL_EXHAUSTED,
                pass_fail_decision(
                    cat_session.current_ability, cat_session.passing_standard
                ),
            )
            return self._terminal_result(cat_session)

        position = cat_session.questions_answered + 1
        self.sessions.add_selection(
            cat_session,
            question_id=selection.question_id,
            position=position,
            ability_before=cat_session.current_ability,
            information=selection.information,
        )
        # Touch the session row so the version counter guards the selection
        cat_session.updated_at = utc_now()
        self.db.flush()

        logger.info(
            f"Served question {selection.question_id} as #{position} in session "
            f"{cat_session.id} (theta={cat_session.current_ability:.3f}, "
            f"info={selection.information:.4f})",
            extra={
                "session_id": cat_session.id,
                "question_id": selection.question_id,
                "position": position,
                "ability": cat_session.current_ability,
            },
        )
        return NextQuestionResult(
            session_id=cat_session.id,
            status=CatSessionStatus.IN_PROGRESS.value,
            ability=cat_session.current_ability,
            questions_answered=cat_session.questions_answered,
            question=self.questions.get_question(selection.question_id),
            serial_number=position,
            information=selection.information,
        )

    def _select_item(self, cat_session: CatSession) -> Optional[ItemSelection]:
        pool_ids = self.sessions.get_pool_ids(cat_session.test_id)
        already_selected = {
            selection.question_id
            for selection in self.sessions.get_selections(cat_session)
        }
        unanswered: List[int] = [qid for qid in pool_ids if qid not in already_selected]
        if not unanswered:
            return None

        created = self.questions.initialize_missing_parameters(unanswered, rng=self.rng)
        if created:
            logger.warning(
                f"Initialized default parameters for {created} pool questions "
                f"during selection in session {cat_session.id}"
            )
        parameters = self.questions.get_parameters(unanswered)
        candidates = [parameters[qid] for qid in unanswered if qid in parameters]

        return select_next_item(
            candidates,
            cat_session.current_ability,
            unanswered_ids=unanswered,
            shortlist_size=self.config.CAT_SELECTION_SHORTLIST_SIZE,
            rng=self.rng,
        )

    def _submit_answer(
        self,
        cat_session: CatSession,
        question_id: int,
        response: Sequence[str],
        time_spent_seconds: int,
    ) -> AnswerResult:
        self._require_in_progress(cat_session)

        in_flight = self.sessions.get_in_flight_selection(cat_session)
        if in_flight is None or in_flight.question_id != question_id:
            expected = in_flight.question_id if in_flight is not None else None
            raise OutOfSequenceError(
                ErrorMessages.question_not_in_flight(question_id, expected),
                session_id=cat_session.id,
                question_id=question_id,
                expected_question_id=expected,
            )

        question = self.questions.get_question(question_id)
        scored = score_response(
            question.question_format,
            question.options,
            response,
            use_partial_scoring=question.use_partial_scoring,
        )

        self.responses.record_result(
            test_id=cat_session.test_id,
            user_id=cat_session.user_id,
            question_id=question_id,
            response=response,
            is_correct=scored.is_correct,
            score=scored.score,
            max_score=scored.max_score,
            time_spent_seconds=time_spent_seconds,
        )
        self.responses.upsert_question_status(
            cat_session.user_id, question_id, scored.is_correct
        )

        in_flight.was_correct = scored.is_correct
        in_flight.answered_at = utc_now()
        self.db.flush()

        answered = self.sessions.get_answered_items(cat_session)
        new_ability = estimate_ability_mle(
            answered, initial_theta=cat_session.current_ability
        )

        in_flight.ability_estimate_after = new_ability
        cat_session.current_ability = new_ability
        cat_session.ability_confidence = ability_standard_error(new_ability, answered)
        cat_session.questions_answered += 1
        cat_session.updated_at = utc_now()

        logger.info(
            f"Session {cat_session.id} answer #{in_flight.position} "
            f"(Q{question_id}): correct={scored.is_correct}, "
            f"score={scored.score:.2f}/{scored.max_score:.2f}, theta={new_ability:.3f}",
            extra={
                "session_id": cat_session.id,
                "question_id": question_id,
                "position": in_flight.position,
                "ability": new_ability,
            },
        )

        decision = self._evaluate_stopping_rule(cat_session)
        if decision.should_stop:
            self._terminate(cat_session, decision.reason, decision.decision)
        self.db.flush()

        return AnswerResult(
            session_id=cat_session.id,
            question_id=question_id,
            is_correct=scored.is_correct,
            score=scored.score,
            max_score=scored.max_score,
            ability=new_ability,
            ability_confidence=cat_session.ability_confidence,
            questions_answered=cat_session.questions_answered,
            status=cat_session.status.value,
            stop_reason=cat_session.stop_reason,
        )

    def _evaluate_stopping_rule(self, cat_session: CatSession) -> StoppingDecision:
        return check_stopping_criteria(
            ability=cat_session.current_ability,
            questions_answered=cat_session.questions_answered,
            min_questions=cat_session.min_questions,
            max_questions=cat_session.max_questions,
            passing_standard=cat_session.passing_standard,
            confidence_margin=self.config.CAT_CONFIDENCE_MARGIN,
        )

    def _terminate(
        self, cat_session: CatSession, reason: Optional[str], decision: Optional[str]
    ) -> None:
        now = utc_now()
        cat_session.status = CatSessionStatus(decision)
        cat_session.stop_reason = reason
        cat_session.completed_at = now
        cat_session.updated_at = now
        self.sessions.finish_test(cat_session.test_id, TestStatus.COMPLETED)

        logger.info(
            f"CAT session {cat_session.id} terminated: {decision} "
            f"(reason={reason}, theta={cat_session.current_ability:.3f}, "
            f"answered={cat_session.questions_answered})",
            extra={
                "session_id": cat_session.id,
                "test_id": cat_session.test_id,
                "status": decision,
                "ability": cat_session.current_ability,
            },
        )

    def _terminal_result(self, cat_session: CatSession) -> NextQuestionResult:
        return NextQuestionResult(
            session_id=cat_session.id,
            status=cat_session.status.value,
            ability=cat_session.current_ability,
            questions_answered=cat_session.questions_answered,
            stop_reason=cat_session.stop_reason,
        )
