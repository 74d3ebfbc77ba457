"""
Enrollment API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from quizhub.api.deps import get_identity
from quizhub.database import get_db
from quizhub.schemas.enrollment import EnrollRequest, EnrollResponse
from quizhub.services.enrollment_service import enrollment_service
from quizhub.utils.security import Identity

router = APIRouter(prefix="/api/enrollments", tags=["enrollments"])
logger = logging.getLogger(__name__)


@router.post("", response_model=EnrollResponse, status_code=201)
async def enroll(
    payload: EnrollRequest,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """
    Enroll in a quiz by its code

    - Code is case-insensitive
    - Fails with not_found, quiz_inactive or already_enrolled
    """
    enrollment = enrollment_service.enroll(db, identity, payload.code)
    return EnrollResponse(quiz_id=enrollment.quiz_id, title=enrollment.quiz.title)
