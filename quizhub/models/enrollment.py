"""
Enrollment model - a student's right to attempt a quiz
"""
from sqlalchemy import Column, TIMESTAMP, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from quizhub.database import Base, utcnow
import uuid


class Enrollment(Base):
    """
    Enrollments table - the unique index closes the concurrent enroll race
    """
    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("user_id", "quiz_id", name="uq_enrollments_user_quiz"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    quiz_id = Column(Uuid(as_uuid=True), ForeignKey("quizzes.id"), nullable=False, index=True)
    enrolled_at = Column(TIMESTAMP, default=utcnow, nullable=False)

    quiz = relationship("Quiz")

    def __repr__(self):
        return f"<Enrollment(user_id={self.user_id}, quiz_id={self.quiz_id})>"
