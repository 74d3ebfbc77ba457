"""
Quiz model - a set of questions students enroll in by code
"""
from sqlalchemy import Column, String, Text, Integer, Boolean, TIMESTAMP, ForeignKey, Uuid
from quizhub.database import Base, utcnow
import uuid


class Quiz(Base):
    """
    Quizzes table - code is stored upper-cased and unique across all quizzes
    """
    __tablename__ = "quizzes"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    code = Column(String(16), unique=True, nullable=False, index=True)
    material_url = Column(String(2048))
    time_limit = Column(Integer)  # minutes, None = untimed
    max_attempts = Column(Integer)  # None = unbounded
    is_active = Column(Boolean, nullable=False, default=True)
    created_by_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(TIMESTAMP, default=utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Quiz(id={self.id}, code={self.code}, title={self.title})>"
