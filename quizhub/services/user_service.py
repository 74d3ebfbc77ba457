"""
User accounts: registration, login, educator approval and admin management
"""
import logging
from typing import List, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from quizhub.exceptions import (
    EmailTakenError, InternalError, InvalidInputError, NotFoundError, UnauthorizedError,
)
from quizhub.models import EducatorStatus, Role, User
from quizhub.schemas.auth import RegisterRequest
from quizhub.services import cascade
from quizhub.services.authorization import require_role
from quizhub.utils.security import Identity, create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    """Accounts and the educator approval workflow"""

    def _get_user(self, db: Session, user_id) -> User:
        user = db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def _commit(self, db: Session, action: str) -> None:
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to {action}: {str(e)}", exc_info=True)
            raise InternalError(f"Failed to {action}")

    def register(self, db: Session, data: RegisterRequest) -> User:
        """
        Self-register a student or educator

        Educators start PENDING and cannot create quizzes until approved.
        """
        email = normalize_email(data.email)
        if db.query(User.id).filter(User.email == email).first():
            raise EmailTakenError()

        user = User(
            email=email,
            password_hash=hash_password(data.password),
            name=data.name,
            role=data.role,
        )
        if data.role == Role.EDUCATOR.value:
            user.educator_status = EducatorStatus.PENDING.value
            user.bio = data.bio
            user.qualification = data.qualification

        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise EmailTakenError()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Registration failed for {email}: {str(e)}", exc_info=True)
            raise InternalError("Failed to create account")

        db.refresh(user)
        logger.info(f"User registered: {user.id} ({user.role})")
        return user

    def authenticate(self, db: Session, email: str, password: str) -> Tuple[User, str]:
        """
        Check credentials and issue an access token

        Raises:
            UnauthorizedError: unknown email or wrong password (same message)
        """
        user = db.query(User).filter(User.email == normalize_email(email)).first()
        if not user or not verify_password(password, user.password_hash):
            raise UnauthorizedError("Invalid email or password")

        token = create_access_token(user.id, Role(user.role))
        logger.info(f"User logged in: {user.id}")
        return user, token

    def get_profile(self, db: Session, identity: Identity) -> User:
        user = db.get(User, identity.user_id)
        if not user:
            raise UnauthorizedError("Account no longer exists")
        return user

    def ensure_admin(self, db: Session, email: str, password: str, name: str = "Administrator") -> Tuple[User, bool]:
        """Create the bootstrap admin unless an account with that email exists"""
        email = normalize_email(email)
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            return existing, False

        admin = User(
            email=email,
            password_hash=hash_password(password),
            name=name,
            role=Role.ADMIN.value,
        )
        db.add(admin)
        self._commit(db, "create admin")
        db.refresh(admin)
        logger.info(f"Admin account created: {admin.email}")
        return admin, True

    def list_users(self, db: Session, identity: Identity) -> List[User]:
        require_role(identity, Role.ADMIN)
        return db.query(User).order_by(User.created_at.desc()).all()

    def list_pending_educators(self, db: Session, identity: Identity) -> List[User]:
        require_role(identity, Role.ADMIN)
        return (
            db.query(User)
            .filter(User.role == Role.EDUCATOR.value, User.educator_status == EducatorStatus.PENDING.value)
            .order_by(User.created_at)
            .all()
        )

    def set_educator_status(self, db: Session, identity: Identity, user_id, status: EducatorStatus) -> User:
        """Approve or reject an educator; only admins decide"""
        require_role(identity, Role.ADMIN)

        status = EducatorStatus(status)
        if status == EducatorStatus.PENDING:
            raise InvalidInputError("Status must be APPROVED or REJECTED")

        educator = db.get(User, user_id)
        if not educator or educator.role != Role.EDUCATOR.value:
            raise NotFoundError("Educator not found")

        educator.educator_status = status.value
        self._commit(db, "update educator status")
        db.refresh(educator)

        logger.info(f"Educator {educator.id} {status.value.lower()} by {identity.user_id}")
        return educator

    def update_role(self, db: Session, identity: Identity, user_id, role: Role) -> User:
        """
        Change a user's role

        Becoming an EDUCATOR starts a fresh approval (PENDING) unless a status
        is already recorded; leaving the role clears it.
        """
        require_role(identity, Role.ADMIN)
        role = Role(role)

        if user_id == identity.user_id and role != Role.ADMIN:
            raise InvalidInputError("Cannot change your own role")

        user = self._get_user(db, user_id)
        user.role = role.value
        if role == Role.EDUCATOR:
            user.educator_status = user.educator_status or EducatorStatus.PENDING.value
        else:
            user.educator_status = None

        self._commit(db, "update role")
        db.refresh(user)
        logger.info(f"User {user.id} role set to {role.value}")
        return user

    def delete_user(self, db: Session, identity: Identity, user_id) -> dict:
        """
        Delete a user and everything owned by or recorded for them

        Answers -> attempts -> enrollments of the user, then the user's
        quizzes with their own dependents, then the user row; one transaction.
        """
        require_role(identity, Role.ADMIN)

        if user_id == identity.user_id:
            raise InvalidInputError("Cannot delete your own account")

        self._get_user(db, user_id)

        try:
            counts = cascade.delete_user(db, user_id)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to delete user {user_id}: {str(e)}", exc_info=True)
            raise InternalError("Failed to delete user")

        db.expire_all()
        logger.info(f"User deleted: {user_id} ({counts})")
        return counts


# Global instance
user_service = UserService()
