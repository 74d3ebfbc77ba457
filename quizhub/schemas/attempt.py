"""
Pydantic schemas for starting, submitting and reviewing attempts
"""
from pydantic import Field
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from quizhub.schemas.common import APIModel


class StartAttemptRequest(APIModel):
    quiz_id: UUID


class StartAttemptResponse(APIModel):
    attempt_id: UUID
    quiz_id: UUID
    attempt_number: int
    started_at: datetime
    time_limit: Optional[int] = None


class SubmittedAnswer(APIModel):
    question_id: UUID
    answer: str = ""


class SubmitAttemptRequest(APIModel):
    attempt_id: UUID
    quiz_id: UUID
    answers: List[SubmittedAnswer] = Field(default_factory=list)


class QuestionResult(APIModel):
    question_id: UUID
    answer: str
    is_correct: bool
    points_awarded: int
    max_points: int
    correct_answer: str
    explanation: Optional[str] = None


class AttemptResult(APIModel):
    """Scored attempt; identical whether returned by submit or result read"""
    attempt_id: UUID
    quiz_id: UUID
    attempt_number: int
    score: int
    total_points: int
    percentage: float
    time_spent: int
    started_at: datetime
    completed_at: datetime
    per_question: List[QuestionResult]


class AttemptSummary(APIModel):
    attempt_id: UUID
    quiz_id: UUID
    quiz_title: str
    attempt_number: int
    started_at: datetime
    completed_at: Optional[datetime] = None
    score: Optional[int] = None
    total_points: Optional[int] = None
    percentage: Optional[float] = None
    time_spent: Optional[int] = None
