"""
Pytest configuration and shared fixtures for testing.
"""
import random
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from catexam.main import app
from catexam.models import AnswerOption, Base, Question, get_db


@asynccontextmanager
async def _test_lifespan(app):
    """No-op lifespan for tests."""
    yield


app.router.lifespan_context = _test_lifespan


# Use SQLite for tests; the path is relative to this file so the .db lands
# inside tests/ regardless of the working directory.
_TEST_DB = Path(__file__).parent / "test.db"
SQLALCHEMY_DATABASE_URL = f"sqlite:///{_TEST_DB}"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

USER_ID = "user-123"
OTHER_USER_ID = "user-456"

MULTIPLE_CHOICE = "Multiple Choice"
SELECT_ALL = "Select All That Apply"

# (is_correct, partial_credit, penalty_value)
OptionSpec = Tuple[bool, float, float]

DEFAULT_OPTIONS: List[OptionSpec] = [
    (True, 0.0, 0.0),
    (False, 0.0, 0.0),
    (False, 0.0, 0.0),
    (False, 0.0, 0.0),
]


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    """
    # Create all tables
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        # Drop all tables after test
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database dependency override.
    """

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def user_headers():
    """Caller identity headers for the default test user."""
    return {"X-User-Id": USER_ID}


@pytest.fixture
def rng():
    """Seeded random generator for deterministic selection and parameters."""
    return random.Random(1234)


@pytest.fixture
def make_question(db_session) -> Callable[..., Question]:
    """
    Factory creating a question with answer options.

    Options are given as (is_correct, partial_credit, penalty_value) tuples;
    the default is four single-best-answer options with the first correct.
    """

    def _make_question(
        topic: str = "Cardiovascular",
        difficulty: Optional[str] = "Medium",
        question_format: Optional[str] = MULTIPLE_CHOICE,
        use_partial_scoring: bool = False,
        options: Optional[Sequence[OptionSpec]] = None,
        text: str = "Which finding requires immediate follow-up?",
    ) -> Question:
        question = Question(
            topic=topic,
            sub_topic=None,
            question_format=question_format,
            difficulty=difficulty,
            question_text=text,
            use_partial_scoring=use_partial_scoring,
        )
        for number, (is_correct, partial_credit, penalty_value) in enumerate(
            options or DEFAULT_OPTIONS, start=1
        ):
            question.options.append(
                AnswerOption(
                    option_number=number,
                    answer_text=f"Option {number}",
                    is_correct=is_correct,
                    partial_credit=partial_credit,
                    penalty_value=penalty_value,
                )
            )
        db_session.add(question)
        db_session.commit()
        db_session.refresh(question)
        return question

    return _make_question


@pytest.fixture
def medium_questions(make_question) -> List[Question]:
    """Five unseen medium-difficulty single-best-answer questions."""
    return [
        make_question(text=f"Medium question {index}") for index in range(1, 6)
    ]


def correct_response(question: Question) -> List[str]:
    """Option ids (as strings) of every correct option of a question."""
    return [str(option.id) for option in question.options if option.is_correct]


def incorrect_response(question: Question) -> List[str]:
    """A single incorrect option id (as a string)."""
    return [str(next(option.id for option in question.options if not option.is_correct))]
