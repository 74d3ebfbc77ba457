"""
Answer model - the scored response to one question within an attempt
"""
from sqlalchemy import Column, Text, Integer, Boolean, ForeignKey, UniqueConstraint, Uuid
from quizhub.database import Base
import uuid


class Answer(Base):
    """
    Answers table - written once, as a batch, when an attempt is submitted
    """
    __tablename__ = "answers"
    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id", name="uq_answers_attempt_question"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    attempt_id = Column(Uuid(as_uuid=True), ForeignKey("attempts.id"), nullable=False, index=True)
    question_id = Column(Uuid(as_uuid=True), ForeignKey("questions.id"), nullable=False, index=True)
    answer = Column(Text, nullable=False, default="")
    is_correct = Column(Boolean, nullable=False, default=False)
    points = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<Answer(attempt_id={self.attempt_id}, question_id={self.question_id}, correct={self.is_correct})>"
