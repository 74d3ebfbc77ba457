"""
Quiz and question management API endpoints, plus the student take view
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
import logging

from quizhub.api.deps import get_identity
from quizhub.database import get_db
from quizhub.schemas.common import MessageResponse
from quizhub.schemas.quiz import (
    AvailableQuiz,
    QuestionCreate,
    QuestionImportRequest,
    QuestionImportResponse,
    QuestionResponse,
    QuizCreate,
    QuizDetail,
    QuizSummary,
    QuizUpdate,
    TakeView,
)
from quizhub.services.attempt_service import attempt_service
from quizhub.services.enrollment_service import enrollment_service
from quizhub.services.quiz_service import quiz_service
from quizhub.utils.security import Identity

router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])
logger = logging.getLogger(__name__)


@router.post("", response_model=QuizDetail, status_code=201)
async def create_quiz(
    payload: QuizCreate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """
    Create a quiz with an auto-generated enrollment code

    - Approved educators and admins only
    - Questions may be included and are created in the same transaction
    """
    return quiz_service.create_quiz(db, identity, payload)


@router.get("", response_model=List[QuizSummary])
async def list_quizzes(
    created_by: Optional[UUID] = Query(None, alias="createdBy"),
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Educators get their own quizzes; admins get all, or one creator's"""
    return quiz_service.list_quizzes(db, identity, created_by)


@router.get("/available", response_model=List[AvailableQuiz])
async def list_available_quizzes(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    """Active quizzes with the calling student's enrollment and attempt usage"""
    return enrollment_service.list_available(db, identity)


@router.get("/{quiz_id}", response_model=QuizDetail)
async def get_quiz(quiz_id: UUID, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return quiz_service.get_quiz(db, identity, quiz_id)


@router.patch("/{quiz_id}", response_model=QuizDetail)
async def update_quiz(
    quiz_id: UUID,
    changes: QuizUpdate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """
    Update quiz settings

    Only title, description, timeLimit, maxAttempts, isActive and
    materialUrl may change; any other field is rejected.
    """
    return quiz_service.update_quiz(db, identity, quiz_id, changes)


@router.delete("/{quiz_id}", response_model=MessageResponse)
async def delete_quiz(quiz_id: UUID, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    """Delete a quiz with all its questions, enrollments, attempts and answers"""
    quiz_service.delete_quiz(db, identity, quiz_id)
    return MessageResponse(message="Quiz deleted")


@router.get("/{quiz_id}/take", response_model=TakeView)
async def take_quiz(quiz_id: UUID, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    """Questions for an enrolled student, without answers"""
    return attempt_service.get_take_view(db, identity, quiz_id)


@router.post("/{quiz_id}/questions", response_model=QuestionResponse, status_code=201)
async def add_question(
    quiz_id: UUID,
    payload: QuestionCreate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    return quiz_service.add_question(db, identity, quiz_id, payload)


@router.post("/{quiz_id}/questions/import", response_model=QuestionImportResponse, status_code=201)
async def import_questions(
    quiz_id: UUID,
    payload: QuestionImportRequest,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Bulk-add questions; one invalid question rejects the whole batch"""
    created = quiz_service.import_questions(db, identity, quiz_id, payload.questions)
    return QuestionImportResponse(
        message=f"Successfully imported {len(created)} questions",
        questions=[QuestionResponse.model_validate(question) for question in created],
    )


@router.patch("/{quiz_id}/questions/{question_id}", response_model=QuestionResponse)
async def update_question(
    quiz_id: UUID,
    question_id: UUID,
    payload: QuestionCreate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    return quiz_service.update_question(db, identity, quiz_id, question_id, payload)


@router.delete("/{quiz_id}/questions/{question_id}", response_model=MessageResponse)
async def delete_question(
    quiz_id: UUID,
    question_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    quiz_service.delete_question(db, identity, quiz_id, question_id)
    return MessageResponse(message="Question deleted")
