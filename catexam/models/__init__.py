"""
Database models package.
"""
from .base import Base, engine, get_db, SessionLocal
from .models import (
    AnswerOption,
    CatQuestionSelection,
    CatSession,
    CatSessionStatus,
    ItemParameters,
    Question,
    QuestionStatus,
    Test,
    TestQuestion,
    TestResult,
    TestStatus,
    UserQuestionStatus,
)

__all__ = [
    "Base",
    "engine",
    "get_db",
    "SessionLocal",
    "AnswerOption",
    "CatQuestionSelection",
    "CatSession",
    "CatSessionStatus",
    "ItemParameters",
    "Question",
    "QuestionStatus",
    "Test",
    "TestQuestion",
    "TestResult",
    "TestStatus",
    "UserQuestionStatus",
]
