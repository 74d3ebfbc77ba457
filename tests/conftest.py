import os

# Settings are read at import time; configure before quizhub is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-long-enough-for-hs256-signing-0123456789"
os.environ["CACHE_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import timedelta
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from quizhub.database import Base, get_db, utcnow
from quizhub.main import app
from quizhub.models import (
    Answer, Attempt, EducatorStatus, Enrollment, Question, QuestionType, Quiz, Role, User,
)
from quizhub.utils.codes import generate_quiz_code
from quizhub.utils.security import Identity, create_access_token, hash_password

PASSWORD = "secret123"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def identity_for(user: User) -> Identity:
    return Identity(user_id=user.id, role=Role(user.role))


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, Role(user.role))}"}


@pytest.fixture
def make_user(db):
    def _make(role=Role.STUDENT, status=None, email=None, name="Test User"):
        if role == Role.EDUCATOR and status is None:
            status = EducatorStatus.APPROVED
        user = User(
            email=email or f"{uuid4().hex[:10]}@example.com",
            password_hash=hash_password(PASSWORD),
            name=name,
            role=role.value,
            educator_status=status.value if status else None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_quiz(db):
    def _make(owner, questions=None, **fields):
        quiz = Quiz(
            title=fields.pop("title", "Geography"),
            code=fields.pop("code", generate_quiz_code()),
            created_by_id=owner.id,
            **fields,
        )
        db.add(quiz)
        db.flush()

        base = utcnow()
        for position, item in enumerate(questions or []):
            db.add(Question(
                quiz_id=quiz.id,
                prompt=item.get("prompt", f"Question {position + 1}"),
                type=item.get("type", QuestionType.SHORT_ANSWER).value,
                options=item.get("options"),
                correct_answer=item["correct_answer"],
                explanation=item.get("explanation"),
                points=item.get("points", 1),
                created_at=base + timedelta(seconds=position),
            ))

        db.commit()
        db.refresh(quiz)
        return quiz

    return _make


@pytest.fixture
def enroll(db):
    def _enroll(user, quiz):
        enrollment = Enrollment(user_id=user.id, quiz_id=quiz.id)
        db.add(enrollment)
        db.commit()
        return enrollment

    return _enroll


@pytest.fixture
def student(make_user):
    return make_user(Role.STUDENT)


@pytest.fixture
def educator(make_user):
    return make_user(Role.EDUCATOR)


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN)


CAPITALS = [
    {"prompt": "Capital of France?", "correct_answer": "Paris", "points": 1},
    {
        "prompt": "The Seine flows through Berlin.",
        "type": QuestionType.TRUE_FALSE,
        "correct_answer": "False",
        "points": 2,
        "explanation": "It flows through Paris.",
    },
]


@pytest.fixture
def capitals_quiz(make_quiz, educator):
    return make_quiz(educator, CAPITALS)


def questions_of(db, quiz):
    return (
        db.query(Question)
        .filter(Question.quiz_id == quiz.id)
        .order_by(Question.created_at, Question.id)
        .all()
    )


def row_counts(db, quiz_id):
    attempt_ids = [a.id for a in db.query(Attempt).filter(Attempt.quiz_id == quiz_id).all()]
    return {
        "quizzes": db.query(Quiz).filter(Quiz.id == quiz_id).count(),
        "questions": db.query(Question).filter(Question.quiz_id == quiz_id).count(),
        "enrollments": db.query(Enrollment).filter(Enrollment.quiz_id == quiz_id).count(),
        "attempts": len(attempt_ids),
        "answers": db.query(Answer).filter(Answer.attempt_id.in_(attempt_ids)).count() if attempt_ids else 0,
    }
