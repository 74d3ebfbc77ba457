"""
Educator dashboard API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quizhub.api.deps import get_identity
from quizhub.database import get_db
from quizhub.schemas.admin import EducatorStats
from quizhub.services.quiz_service import quiz_service
from quizhub.utils.security import Identity

router = APIRouter(prefix="/api/educator", tags=["educator"])


@router.get("/stats", response_model=EducatorStats)
async def get_stats(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    """
    Totals over the caller's quizzes

    Pending or rejected educators receive not_approved (403).
    """
    return quiz_service.get_educator_stats(db, identity)
