"""
Computerized Adaptive Testing endpoints.

CAT domain errors raised by the engine (EmptyPoolError, OutOfSequenceError,
NotFoundError, ...) are translated to HTTP responses by the application-level
exception handler in catexam.main.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from catexam.core.auth import get_caller_id, verify_admin_token
from catexam.core.cat.engine import CATSessionManager
from catexam.core.db_error_handling import unit_of_work
from catexam.models import get_db
from catexam.schemas.cat import (
    CatSessionResponse,
    CreateCatTestRequest,
    CreateCatTestResponse,
    InitializeParametersRequest,
    InitializeParametersResponse,
    NextQuestionResponse,
    SubmitAnswerRequest,
    SubmitAnswerResponse,
)
from catexam.services import SqlQuestionRepository

logger = logging.getLogger(__name__)

router = APIRouter()


def get_cat_manager(db: Session = Depends(get_db)) -> CATSessionManager:
    """Dependency providing a CATSessionManager bound to the request's session."""
    return CATSessionManager(db)


@router.post("/tests", response_model=CreateCatTestResponse, status_code=201)
def create_cat_test(
    request: CreateCatTestRequest,
    caller_id: str = Depends(get_caller_id),
    manager: CATSessionManager = Depends(get_cat_manager),
):
    """
    Create a CAT test for the caller and open its adaptive session.

    Returns 404 when no question matches the requested topics.
    """
    created = manager.create_cat_test(
        caller_id,
        topics=request.topics,
        min_questions=request.min_questions,
        max_questions=request.max_questions,
        passing_standard=request.passing_standard,
        title=request.title,
    )
    return CreateCatTestResponse(
        test_id=created.test_id,
        session_id=created.session_id,
        question_count=created.question_count,
        max_questions=created.max_questions,
    )


@router.get("/sessions/{session_id}", response_model=CatSessionResponse)
def get_cat_session(
    session_id: int,
    caller_id: str = Depends(get_caller_id),
    manager: CATSessionManager = Depends(get_cat_manager),
):
    """
    Get a CAT session with its selection log.

    Unanswered selections report null ability_estimate_after and was_correct.
    """
    cat_session = manager.get_session(session_id, caller_id)
    return CatSessionResponse.model_validate(cat_session)


@router.get("/sessions/{session_id}/next", response_model=NextQuestionResponse)
def get_next_question(
    session_id: int,
    caller_id: str = Depends(get_caller_id),
    manager: CATSessionManager = Depends(get_cat_manager),
):
    """
    Get the question to answer next.

    Repeats the in-flight question until it is answered. Once the session has
    terminated, returns its final status without a question.
    """
    result = manager.get_next_question(session_id, caller_id)
    return NextQuestionResponse(
        session_id=result.session_id,
        status=result.status,
        ability=result.ability,
        questions_answered=result.questions_answered,
        serial_number=result.serial_number,
        question=result.question,
        stop_reason=result.stop_reason,
    )


@router.post("/sessions/{session_id}/answers", response_model=SubmitAnswerResponse)
def submit_answer(
    session_id: int,
    answer: SubmitAnswerRequest,
    caller_id: str = Depends(get_caller_id),
    manager: CATSessionManager = Depends(get_cat_manager),
):
    """
    Submit the answer to the in-flight question.

    Returns 409 if the question is not the one in flight (including a repeated
    submission) or the session already terminated.
    """
    result = manager.submit_answer(
        session_id,
        caller_id,
        question_id=answer.question_id,
        response=answer.response,
        time_spent_seconds=answer.time_spent_seconds,
    )
    return SubmitAnswerResponse(
        session_id=result.session_id,
        question_id=result.question_id,
        is_correct=result.is_correct,
        score=result.score,
        max_score=result.max_score,
        ability=result.ability,
        ability_confidence=result.ability_confidence,
        questions_answered=result.questions_answered,
        status=result.status,
        stop_reason=result.stop_reason,
    )


@router.post("/sessions/{session_id}/abandon", response_model=CatSessionResponse)
def abandon_cat_session(
    session_id: int,
    caller_id: str = Depends(get_caller_id),
    manager: CATSessionManager = Depends(get_cat_manager),
):
    """Abandon an in-progress CAT session."""
    cat_session = manager.abandon(session_id, caller_id)
    return CatSessionResponse.model_validate(cat_session)


@router.post(
    "/admin/item-parameters/initialize",
    response_model=InitializeParametersResponse,
)
def initialize_item_parameters(
    request: InitializeParametersRequest,
    _: bool = Depends(verify_admin_token),
    db: Session = Depends(get_db),
):
    """
    Create default 3PL parameters for questions that have none.

    Requires the X-Admin-Token header.
    """
    with unit_of_work(db, "initialize item parameters"):
        initialized = SqlQuestionRepository(db).initialize_missing_parameters(
            request.question_ids
        )
    logger.info(f"Admin initialized item parameters for {initialized} questions")
    return InitializeParametersResponse(initialized=initialized)
