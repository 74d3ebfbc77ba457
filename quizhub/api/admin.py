"""
Admin API endpoints: users and educator approval
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
import logging

from quizhub.api.deps import get_identity
from quizhub.database import get_db
from quizhub.schemas.admin import EducatorStatusUpdate, RoleUpdate
from quizhub.schemas.auth import UserResponse
from quizhub.schemas.common import MessageResponse
from quizhub.services.user_service import user_service
from quizhub.utils.security import Identity

router = APIRouter(prefix="/api/admin", tags=["admin"])
logger = logging.getLogger(__name__)


@router.get("/users", response_model=List[UserResponse])
async def list_users(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return user_service.list_users(db, identity)


@router.patch("/users/{user_id}", response_model=UserResponse)
async def update_user_role(
    user_id: UUID,
    payload: RoleUpdate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    return user_service.update_role(db, identity, user_id, payload.role)


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(user_id: UUID, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    """
    Delete a user

    Removes their answers, attempts and enrollments, and every quiz they
    created together with that quiz's data, in one transaction.
    """
    user_service.delete_user(db, identity, user_id)
    return MessageResponse(message="User deleted")


@router.get("/educators/pending", response_model=List[UserResponse])
async def list_pending_educators(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return user_service.list_pending_educators(db, identity)


@router.patch("/educators/{user_id}/status", response_model=UserResponse)
async def set_educator_status(
    user_id: UUID,
    payload: EducatorStatusUpdate,
    identity: Identity = Depends(get_identity),
    db: Session = Depends(get_db)
):
    """Approve or reject an educator account"""
    return user_service.set_educator_status(db, identity, user_id, payload.status)
