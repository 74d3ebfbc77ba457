"""
Pydantic schemas for enrollment by code
"""
from pydantic import Field
from uuid import UUID

from quizhub.schemas.common import APIModel


class EnrollRequest(APIModel):
    code: str = Field(..., min_length=1, max_length=16, description="Quiz enrollment code")


class EnrollResponse(APIModel):
    quiz_id: UUID
    title: str
