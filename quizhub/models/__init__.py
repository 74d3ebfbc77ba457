"""
Database models package
"""
from quizhub.models.enums import Role, EducatorStatus, QuestionType
from quizhub.models.user import User
from quizhub.models.quiz import Quiz
from quizhub.models.question import Question
from quizhub.models.enrollment import Enrollment
from quizhub.models.attempt import Attempt
from quizhub.models.answer import Answer

__all__ = [
    "Role", "EducatorStatus", "QuestionType",
    "User", "Quiz", "Question", "Enrollment", "Attempt", "Answer",
]
