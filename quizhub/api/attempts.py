"""
Attempt lifecycle API endpoints: start, submit, results
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
import logging

from quizhub.api.deps import get_identity
from quizhub.database import get_db
from quizhub.schemas.attempt import (
    AttemptResult,
    AttemptSummary,
    StartAttemptRequest,
    StartAttemptResponse,
    SubmitAttemptRequest,
)
from quizhub.services.attempt_service import attempt_service
from quizhub.utils.security import Identity

router = APIRouter(prefix="/api/attempts", tags=["attempts"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[AttemptSummary])
async def list_my_attempts(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    """The calling student's attempts, newest first"""
    return attempt_service.list_attempts(db, identity)


@router.post("/start", response_model=StartAttemptResponse, status_code=201)
async def start_attempt(
    payload: StartAttemptRequest,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """
    Start a new attempt

    Requires an enrollment and an active quiz; refused once maxAttempts
    attempts exist. The time limit is returned for the client countdown.
    """
    attempt = attempt_service.start_attempt(db, identity, payload.quiz_id)

    return StartAttemptResponse(
        attempt_id=attempt.id,
        quiz_id=attempt.quiz_id,
        attempt_number=attempt.attempt_number,
        started_at=attempt.started_at,
        time_limit=attempt.quiz.time_limit,
    )


@router.post("/submit", response_model=AttemptResult)
async def submit_attempt(
    submission: SubmitAttemptRequest,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """
    Submit and score an attempt

    Scoring:
    - Every question counts; unanswered questions score zero
    - Trimmed, case-insensitive exact match for all question types
    - A second submission of the same attempt fails with already_submitted
    """
    return attempt_service.submit_attempt(
        db,
        identity,
        submission.attempt_id,
        submission.quiz_id,
        submission.answers,
    )


@router.get("/{attempt_id}/result", response_model=AttemptResult)
async def get_result(
    attempt_id: UUID,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Read back a completed attempt; same values the submission returned"""
    return attempt_service.get_result(db, identity, attempt_id)
