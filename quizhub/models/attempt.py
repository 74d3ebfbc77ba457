"""
Attempt model - one student's run through a quiz
"""
from sqlalchemy import Column, Integer, TIMESTAMP, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from quizhub.database import Base, utcnow
import uuid


class Attempt(Base):
    """
    Attempts table - completion fields stay NULL while in progress

    attempt_number is 1-based per (user, quiz); the unique constraint keeps
    concurrent starts from both taking the same slot under max_attempts.
    """
    __tablename__ = "attempts"
    __table_args__ = (
        UniqueConstraint("user_id", "quiz_id", "attempt_number", name="uq_attempts_user_quiz_number"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    quiz_id = Column(Uuid(as_uuid=True), ForeignKey("quizzes.id"), nullable=False, index=True)
    attempt_number = Column(Integer, nullable=False)
    started_at = Column(TIMESTAMP, default=utcnow, nullable=False)
    completed_at = Column(TIMESTAMP)
    time_spent = Column(Integer)  # seconds
    score = Column(Integer)  # points earned
    total_points = Column(Integer)

    quiz = relationship("Quiz")

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    def __repr__(self):
        return f"<Attempt(id={self.id}, user_id={self.user_id}, quiz_id={self.quiz_id}, score={self.score})>"
