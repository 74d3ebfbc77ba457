"""
Question model - one scored item of a quiz
"""
from sqlalchemy import Column, String, Text, Integer, TIMESTAMP, ForeignKey, JSON, CheckConstraint, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from quizhub.database import Base, utcnow
import uuid


class Question(Base):
    """
    Questions table - options only present for MULTIPLE_CHOICE
    """
    __tablename__ = "questions"
    __table_args__ = (
        CheckConstraint("points >= 1", name="ck_questions_points_positive"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    quiz_id = Column(Uuid(as_uuid=True), ForeignKey("quizzes.id"), nullable=False, index=True)
    prompt = Column(Text, nullable=False)
    type = Column(String(20), nullable=False)
    options = Column(JSON().with_variant(JSONB, "postgresql"))  # ["Paris", "London", ...]
    correct_answer = Column(Text, nullable=False)
    explanation = Column(Text)
    points = Column(Integer, nullable=False, default=1)
    created_at = Column(TIMESTAMP, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Question(id={self.id}, quiz_id={self.quiz_id}, type={self.type})>"
