"""
Pydantic schemas for quiz and question management
"""
from pydantic import ConfigDict, Field, field_validator, model_validator
from typing import List, Optional
from uuid import UUID
from datetime import datetime

from quizhub.models.enums import QuestionType
from quizhub.schemas.common import APIModel
from quizhub.services.scoring_service import normalize_answer


class QuestionCreate(APIModel):
    """Question payload, used for create, update and import"""
    prompt: str = Field(..., min_length=1)
    type: QuestionType
    options: Optional[List[str]] = None  # MULTIPLE_CHOICE only
    correct_answer: str = Field(..., min_length=1)
    explanation: Optional[str] = None
    points: int = Field(1, ge=1)

    @field_validator("options")
    @classmethod
    def strip_options(cls, options):
        if options is None:
            return None
        stripped = [option.strip() for option in options]
        if any(not option for option in stripped):
            raise ValueError("Options must not be blank")
        return stripped

    @model_validator(mode="after")
    def check_type_rules(self):
        answer = normalize_answer(self.correct_answer)

        if self.type == QuestionType.MULTIPLE_CHOICE:
            if not self.options or len(self.options) < 2:
                raise ValueError("Multiple choice questions need at least two options")
            if answer not in {normalize_answer(o) for o in self.options}:
                raise ValueError("Correct answer must be one of the options")
        elif self.type == QuestionType.TRUE_FALSE:
            if answer not in ("true", "false"):
                raise ValueError("True/false questions need 'True' or 'False' as the correct answer")
            self.options = None
        else:
            self.options = None

        return self


class QuestionImportRequest(APIModel):
    questions: List[QuestionCreate] = Field(..., min_length=1)


class QuestionResponse(APIModel):
    id: UUID
    quiz_id: UUID
    prompt: str
    type: str
    options: Optional[List[str]] = None
    correct_answer: str
    explanation: Optional[str] = None
    points: int
    created_at: datetime


class QuestionImportResponse(APIModel):
    message: str
    questions: List[QuestionResponse]


class TakeQuestion(APIModel):
    """Question as shown to a student: no answer, no explanation"""
    id: UUID
    prompt: str
    type: str
    options: Optional[List[str]] = None
    points: int


class QuizCreate(APIModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    material_url: Optional[str] = Field(None, max_length=2048)
    time_limit: Optional[int] = Field(None, ge=1, description="Minutes")
    max_attempts: Optional[int] = Field(None, ge=1)
    is_active: bool = True
    questions: Optional[List[QuestionCreate]] = None


class QuizUpdate(APIModel):
    """Allow-listed mutable quiz fields; anything else is rejected"""
    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    material_url: Optional[str] = Field(None, max_length=2048)
    time_limit: Optional[int] = Field(None, ge=1)
    max_attempts: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def check_required_not_nulled(self):
        for name in ("title", "is_active"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class QuizSummary(APIModel):
    id: UUID
    title: str
    description: Optional[str] = None
    code: str
    material_url: Optional[str] = None
    time_limit: Optional[int] = None
    max_attempts: Optional[int] = None
    is_active: bool
    created_by_id: UUID
    created_at: datetime
    question_count: int = 0
    enrollment_count: int = 0
    attempt_count: int = 0


class QuizDetail(QuizSummary):
    questions: List[QuestionResponse] = []


class TakeView(APIModel):
    id: UUID
    title: str
    description: Optional[str] = None
    material_url: Optional[str] = None
    time_limit: Optional[int] = None
    max_attempts: Optional[int] = None
    questions: List[TakeQuestion]


class AvailableQuiz(APIModel):
    id: UUID
    title: str
    description: Optional[str] = None
    time_limit: Optional[int] = None
    max_attempts: Optional[int] = None
    question_count: int
    is_enrolled: bool
    attempts_used: int
