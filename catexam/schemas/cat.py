"""
Pydantic schemas for CAT test endpoints.
"""
from datetime import datetime
from typing import List, Optional, Self

from pydantic import BaseModel, Field, field_validator, model_validator

from catexam.core.config import settings
from catexam.models import CatSessionStatus


class CreateCatTestRequest(BaseModel):
    """Request to create a CAT test and open its session."""

    title: Optional[str] = Field(
        None, max_length=255, description="Test title (defaults to the configured title)"
    )
    topics: Optional[List[str]] = Field(
        None,
        description="Restrict the pool to these topics; omit for all topics",
    )
    min_questions: int = Field(
        default_factory=lambda: settings.CAT_DEFAULT_MIN_QUESTIONS,
        ge=1,
        description="Minimum answers before the test may stop early",
    )
    max_questions: int = Field(
        default_factory=lambda: settings.CAT_DEFAULT_MAX_QUESTIONS,
        ge=1,
        description="Maximum answers (lowered to the pool size if larger)",
    )
    passing_standard: float = Field(
        default_factory=lambda: settings.CAT_DEFAULT_PASSING_STANDARD,
        ge=-4.0,
        le=4.0,
        description="Cut score on the logit (theta) scale",
    )

    @field_validator("topics")
    @classmethod
    def clean_topics(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return None
        cleaned = []
        for topic in v:
            topic = topic.strip()
            if topic and topic not in cleaned:
                cleaned.append(topic)
        return cleaned or None

    @model_validator(mode="after")
    def validate_question_bounds(self) -> Self:
        if self.min_questions > self.max_questions:
            raise ValueError(
                f"min_questions ({self.min_questions}) must not exceed "
                f"max_questions ({self.max_questions})"
            )
        return self


class CreateCatTestResponse(BaseModel):
    """Identifiers of the created test and session."""

    test_id: int = Field(..., description="Test ID")
    session_id: int = Field(..., description="CAT session ID")
    question_count: int = Field(..., description="Number of questions in the pool")
    max_questions: int = Field(..., description="Effective maximum question count")


class AnswerOptionResponse(BaseModel):
    """Answer option as shown to the test-taker (correctness is never exposed)."""

    id: int
    option_number: int
    answer_text: str

    model_config = {"from_attributes": True}


class CatQuestionResponse(BaseModel):
    """Question content served during a CAT session."""

    id: int
    topic: str
    sub_topic: Optional[str] = None
    question_format: Optional[str] = None
    question_text: str
    options: List[AnswerOptionResponse]

    model_config = {"from_attributes": True}


class NextQuestionResponse(BaseModel):
    """Next question, or the final state once the session terminated."""

    session_id: int
    status: CatSessionStatus
    ability: float = Field(..., description="Current ability estimate (theta)")
    questions_answered: int
    serial_number: Optional[int] = Field(
        None, description="1-based position of the served question"
    )
    question: Optional[CatQuestionResponse] = None
    stop_reason: Optional[str] = None


class SubmitAnswerRequest(BaseModel):
    """Answer to the question currently in flight."""

    question_id: int = Field(..., gt=0, description="ID of the in-flight question")
    response: List[str] = Field(
        default_factory=list,
        max_length=50,
        description="Selected answer option IDs (empty selects nothing)",
    )
    time_spent_seconds: int = Field(0, ge=0, description="Time spent on the question")

    @field_validator("response")
    @classmethod
    def strip_response(cls, v: List[str]) -> List[str]:
        return [value.strip() for value in v]


class SubmitAnswerResponse(BaseModel):
    """Scored answer and the session state after it."""

    session_id: int
    question_id: int
    is_correct: bool
    score: float
    max_score: float
    ability: float = Field(..., description="Updated ability estimate (theta)")
    ability_confidence: Optional[float] = Field(
        None, description="Standard error of the ability estimate"
    )
    questions_answered: int
    status: CatSessionStatus
    stop_reason: Optional[str] = None


class CatSelectionResponse(BaseModel):
    """One entry of the session's selection log."""

    question_id: int
    position: int
    ability_estimate_before: float
    ability_estimate_after: Optional[float] = None
    information_value: float
    was_correct: Optional[bool] = None
    created_at: datetime
    answered_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CatSessionResponse(BaseModel):
    """CAT session state with its selection log."""

    id: int
    test_id: int
    user_id: str
    initial_ability: float
    current_ability: float
    ability_confidence: Optional[float] = None
    passing_standard: float
    min_questions: int
    max_questions: int
    questions_answered: int
    status: CatSessionStatus
    stop_reason: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    selections: List[CatSelectionResponse] = []

    model_config = {"from_attributes": True}


class InitializeParametersRequest(BaseModel):
    """Admin request to bootstrap default item parameters."""

    question_ids: Optional[List[int]] = Field(
        None, description="Restrict to these questions; omit for the whole bank"
    )


class InitializeParametersResponse(BaseModel):
    """Number of item parameter rows created."""

    initialized: int
