"""
User model - accounts for students, educators and admins
"""
from sqlalchemy import Column, String, Text, TIMESTAMP, Uuid
from quizhub.database import Base, utcnow
import uuid


class User(Base):
    """
    Users table - role and educator approval status drive authorization
    """
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="STUDENT")
    educator_status = Column(String(20), nullable=True)  # only meaningful for EDUCATOR
    bio = Column(Text)
    qualification = Column(String(255))
    created_at = Column(TIMESTAMP, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
