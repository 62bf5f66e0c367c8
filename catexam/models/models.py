"""
Database models for the CAT exam service.

Question content (questions, answers) is owned by the content service and is
read-only here. The CAT engine writes tests, results, per-user question
status, sessions and the selection log.
"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Text,
    Enum,
    Float,
    JSON,
    UniqueConstraint,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import enum

from .base import Base


class TestStatus(str, enum.Enum):
    """Test status enumeration."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class QuestionStatus(str, enum.Enum):
    """A user's latest status on a question."""

    UNSEEN = "unseen"
    CORRECT = "correct"
    INCORRECT = "incorrect"
    MARKED = "marked"
    SKIPPED = "skipped"


class CatSessionStatus(str, enum.Enum):
    """CAT session status. Every value except IN_PROGRESS is terminal."""

    IN_PROGRESS = "in_progress"
    PASSED = "passed"
    FAILED = "failed"
    ABANDONED = "abandoned"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Question(Base):
    """Exam question. Format decides how responses are scored."""

    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    topic = Column(String(255), nullable=False, index=True)
    sub_topic = Column(String(255))
    question_format = Column(String(100))  # "Multiple Choice", "Select All That Apply", ...
    difficulty = Column(String(50))  # Coarse label: Easy / Medium / Hard
    question_text = Column(Text, nullable=False)
    explanation = Column(Text)
    use_partial_scoring = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    # Relationships
    options = relationship(
        "AnswerOption",
        back_populates="question",
        order_by="AnswerOption.option_number",
        cascade="all, delete-orphan",
    )
    item_parameters = relationship(
        "ItemParameters",
        back_populates="question",
        uselist=False,
        cascade="all, delete-orphan",
    )


class AnswerOption(Base):
    """Answer option for a question, with SATA credit and penalty weights."""

    __tablename__ = "answers"

    id = Column(Integer, primary_key=True, index=True)
    question_id = Column(
        Integer,
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    option_number = Column(Integer, nullable=False)
    answer_text = Column(Text, nullable=False)
    is_correct = Column(Boolean, default=False, nullable=False)
    partial_credit = Column(Float, default=0.0, nullable=False)  # 0..1
    penalty_value = Column(Float, default=0.0, nullable=False)  # 0..1

    question = relationship("Question", back_populates="options")

    __table_args__ = (
        UniqueConstraint("question_id", "option_number", name="uq_answers_option_number"),
        CheckConstraint(
            "partial_credit >= 0 AND partial_credit <= 1",
            name="ck_answers_partial_credit_range",
        ),
        CheckConstraint(
            "penalty_value >= 0 AND penalty_value <= 1",
            name="ck_answers_penalty_value_range",
        ),
    )


class ItemParameters(Base):
    """3PL IRT parameters for a question (one row per question)."""

    __tablename__ = "question_difficulty_parameters"

    id = Column(Integer, primary_key=True, index=True)
    question_id = Column(
        Integer,
        ForeignKey("questions.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    discrimination = Column(Float, nullable=False)  # a
    difficulty = Column(Float, nullable=False)  # b
    guessing = Column(Float, nullable=False)  # c
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now, nullable=False
    )

    question = relationship("Question", back_populates="item_parameters")

    __table_args__ = (
        CheckConstraint("discrimination > 0", name="ck_item_parameters_discrimination"),
        CheckConstraint(
            "guessing >= 0 AND guessing < 1", name="ck_item_parameters_guessing"
        ),
    )


class Test(Base):
    """A test attempt. CAT tests own exactly one CatSession."""

    __tablename__ = "tests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    mode = Column(String(50), default="CAT", nullable=False)
    topics = Column(JSON)  # List of topic names, or null for all topics
    question_count = Column(Integer, nullable=False)
    status = Column(Enum(TestStatus), default=TestStatus.IN_PROGRESS, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
    started_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
    finished_at = Column(DateTime(timezone=True))

    # Relationships
    questions = relationship(
        "TestQuestion",
        back_populates="test",
        order_by="TestQuestion.question_order",
        cascade="all, delete-orphan",
    )
    results = relationship(
        "TestResult", back_populates="test", cascade="all, delete-orphan"
    )
    cat_session = relationship(
        "CatSession", back_populates="test", uselist=False, cascade="all, delete-orphan"
    )

    __table_args__ = (Index("ix_tests_user_status", "user_id", "status"),)


class TestQuestion(Base):
    """Fixed question pool of a test, in pool order."""

    __tablename__ = "test_questions"

    id = Column(Integer, primary_key=True, index=True)
    test_id = Column(
        Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    question_id = Column(
        Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    question_order = Column(Integer, nullable=False)  # 1-based

    test = relationship("Test", back_populates="questions")

    __table_args__ = (
        UniqueConstraint("test_id", "question_id", name="uq_test_question"),
    )


class TestResult(Base):
    """Scored response to one question of a test."""

    __tablename__ = "test_results"

    id = Column(Integer, primary_key=True, index=True)
    test_id = Column(
        Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String(255), nullable=False, index=True)
    question_id = Column(
        Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    user_response = Column(JSON, nullable=False)  # List of selected option ids
    is_correct = Column(Boolean, nullable=False)
    score = Column(Float, nullable=False)
    max_score = Column(Float, nullable=False)
    time_spent_seconds = Column(Integer, default=0, nullable=False)
    is_flagged = Column(Boolean, default=False, nullable=False)
    answered_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)

    test = relationship("Test", back_populates="results")

    __table_args__ = (
        UniqueConstraint("test_id", "question_id", name="uq_test_result_question"),
    )


class UserQuestionStatus(Base):
    """Per-user history with a question, used to tier the CAT pool."""

    __tablename__ = "user_question_status"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False)
    question_id = Column(
        Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    status = Column(Enum(QuestionStatus), default=QuestionStatus.UNSEEN, nullable=False)
    attempt_count = Column(Integer, default=0, nullable=False)
    last_seen_at = Column(DateTime(timezone=True))

    __table_args__ = (
        UniqueConstraint("user_id", "question_id", name="uq_user_question_status"),
        Index("ix_user_question_status_user_id", "user_id"),
    )


class CatSession(Base):
    """
    Adaptive session state for a CAT test.

    ``version`` is an optimistic concurrency counter: a flush that updates a
    row another transaction already changed raises StaleDataError.
    """

    __tablename__ = "cat_sessions"

    id = Column(Integer, primary_key=True, index=True)
    test_id = Column(
        Integer,
        ForeignKey("tests.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    user_id = Column(String(255), nullable=False, index=True)
    initial_ability = Column(Float, default=0.0, nullable=False)
    current_ability = Column(Float, default=0.0, nullable=False)
    # Standard error of the ability estimate; null until the first answer
    ability_confidence = Column(Float)
    passing_standard = Column(Float, default=0.0, nullable=False)
    min_questions = Column(Integer, nullable=False)
    max_questions = Column(Integer, nullable=False)
    questions_answered = Column(Integer, default=0, nullable=False)
    status = Column(
        Enum(CatSessionStatus),
        default=CatSessionStatus.IN_PROGRESS,
        nullable=False,
        index=True,
    )
    stop_reason = Column(String(50))
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now, nullable=False
    )
    completed_at = Column(DateTime(timezone=True))
    version = Column(Integer, nullable=False)

    # Relationships
    test = relationship("Test", back_populates="cat_session")
    selections = relationship(
        "CatQuestionSelection",
        back_populates="cat_session",
        order_by="CatQuestionSelection.position",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint(
            "questions_answered <= max_questions",
            name="ck_cat_sessions_answered_within_max",
        ),
        CheckConstraint("min_questions >= 1", name="ck_cat_sessions_min_questions"),
    )


class CatQuestionSelection(Base):
    """
    Append-only log of questions served in a CAT session.

    ``ability_estimate_after`` and ``was_correct`` stay null until the
    question is answered. Positions are 1-based and gapless per session.
    """

    __tablename__ = "cat_question_selections"

    id = Column(Integer, primary_key=True, index=True)
    cat_session_id = Column(
        Integer,
        ForeignKey("cat_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    question_id = Column(
        Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False
    )
    position = Column(Integer, nullable=False)
    ability_estimate_before = Column(Float, nullable=False)
    ability_estimate_after = Column(Float)
    information_value = Column(Float, nullable=False)
    was_correct = Column(Boolean)
    created_at = Column(DateTime(timezone=True), default=_utc_now, nullable=False)
    answered_at = Column(DateTime(timezone=True))

    cat_session = relationship("CatSession", back_populates="selections")

    __table_args__ = (
        UniqueConstraint(
            "cat_session_id", "position", name="uq_cat_selection_position"
        ),
        UniqueConstraint(
            "cat_session_id", "question_id", name="uq_cat_selection_question"
        ),
    )
