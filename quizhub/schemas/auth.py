"""
Pydantic schemas for registration, login and the current user
"""
from pydantic import EmailStr, Field
from typing import Literal, Optional
from uuid import UUID
from datetime import datetime

from quizhub.schemas.common import APIModel


class RegisterRequest(APIModel):
    """Self-registration; admins are never self-registered"""
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    name: str = Field(..., min_length=2, max_length=255)
    role: Literal["STUDENT", "EDUCATOR"] = "STUDENT"
    bio: Optional[str] = None
    qualification: Optional[str] = Field(None, max_length=255)


class LoginRequest(APIModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserResponse(APIModel):
    id: UUID
    email: str
    name: str
    role: str
    educator_status: Optional[str] = None
    bio: Optional[str] = None
    qualification: Optional[str] = None
    created_at: datetime


class TokenResponse(APIModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
