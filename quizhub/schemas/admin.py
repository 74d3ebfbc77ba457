"""
Pydantic schemas for admin user management and educator stats
"""
from typing import Literal

from quizhub.models.enums import Role
from quizhub.schemas.common import APIModel


class RoleUpdate(APIModel):
    role: Role


class EducatorStatusUpdate(APIModel):
    status: Literal["APPROVED", "REJECTED"]


class EducatorStats(APIModel):
    total_quizzes: int
    total_enrollments: int
    total_attempts: int
    average_percentage: float
