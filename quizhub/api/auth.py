"""
Registration and login API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from quizhub.api.deps import get_identity
from quizhub.database import get_db
from quizhub.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from quizhub.services.user_service import user_service
from quizhub.utils.security import Identity

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    """
    Create a student or educator account

    - Educators start with status PENDING until an admin approves them
    - Admin accounts cannot be self-registered
    """
    return user_service.register(db, payload)


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email and password for a Bearer access token"""
    user, token = user_service.authenticate(db, payload.email, payload.password)
    return TokenResponse(access_token=token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
async def me(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return user_service.get_profile(db, identity)
