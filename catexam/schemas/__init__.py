"""
Pydantic schemas for request/response validation.
"""
from .cat import (
    CatSessionResponse,
    CreateCatTestRequest,
    CreateCatTestResponse,
    InitializeParametersRequest,
    InitializeParametersResponse,
    NextQuestionResponse,
    SubmitAnswerRequest,
    SubmitAnswerResponse,
)

__all__ = [
    "CatSessionResponse",
    "CreateCatTestRequest",
    "CreateCatTestResponse",
    "InitializeParametersRequest",
    "InitializeParametersResponse",
    "NextQuestionResponse",
    "SubmitAnswerRequest",
    "SubmitAnswerResponse",
]
