"""
Enumerations shared by models, schemas and services
"""
import enum


class Role(str, enum.Enum):
    STUDENT = "STUDENT"
    EDUCATOR = "EDUCATOR"
    ADMIN = "ADMIN"


class EducatorStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class QuestionType(str, enum.Enum):
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    TRUE_FALSE = "TRUE_FALSE"
    SHORT_ANSWER = "SHORT_ANSWER"
