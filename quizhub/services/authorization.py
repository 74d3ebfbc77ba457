"""
Role, ownership and educator-approval guards shared by the services
"""
from sqlalchemy.orm import Session

from quizhub.exceptions import ForbiddenError, NotApprovedError, UnauthorizedError
from quizhub.models import Quiz, User, Role, EducatorStatus
from quizhub.utils.security import Identity


def require_role(identity: Identity, *roles: Role) -> None:
    """Raise ForbiddenError unless the caller holds one of the roles"""
    if identity.role not in roles:
        raise ForbiddenError()


def require_approved_educator(db: Session, identity: Identity) -> User:
    """
    Allow APPROVED educators and admins

    The approval status is re-read from the store rather than trusted from
    the token, so an admin decision takes effect on the next request.
    """
    require_role(identity, Role.EDUCATOR, Role.ADMIN)

    user = db.get(User, identity.user_id)
    if user is None:
        raise UnauthorizedError("Account no longer exists")

    if identity.role == Role.EDUCATOR and user.educator_status != EducatorStatus.APPROVED.value:
        raise NotApprovedError()

    return user


def require_quiz_owner(db: Session, identity: Identity, quiz: Quiz) -> None:
    """Only the owning (approved) educator or an admin may mutate a quiz"""
    require_approved_educator(db, identity)
    if identity.role == Role.ADMIN:
        return
    if quiz.created_by_id != identity.user_id:
        raise ForbiddenError("You can only manage quizzes you created")
