"""
Enrollment service: redeeming a quiz code for the right to attempt it
"""
import logging
from typing import Any, Dict, List

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from quizhub.exceptions import (
    AlreadyEnrolledError, InternalError, InvalidInputError, NotFoundError, QuizInactiveError,
)
from quizhub.models import Attempt, Enrollment, Question, Quiz, Role
from quizhub.services.authorization import require_role
from quizhub.utils.codes import normalize_code
from quizhub.utils.security import Identity

logger = logging.getLogger(__name__)


class EnrollmentService:
    """Creates enrollments; never touches attempt or score state"""

    def enroll(self, db: Session, identity: Identity, code: str) -> Enrollment:
        """
        Enroll the calling student in the quiz identified by code

        Raises:
            InvalidInputError: blank code
            NotFoundError: no quiz with this code
            QuizInactiveError: quiz exists but is deactivated
            AlreadyEnrolledError: enrollment already exists
        """
        require_role(identity, Role.STUDENT)

        normalized = normalize_code(code)
        if not normalized:
            raise InvalidInputError("Quiz code is required")

        quiz = db.query(Quiz).filter(Quiz.code == normalized).first()
        if not quiz:
            raise NotFoundError("Quiz not found. Please check the code and try again.")

        if not quiz.is_active:
            raise QuizInactiveError()

        existing = db.query(Enrollment).filter(
            Enrollment.user_id == identity.user_id,
            Enrollment.quiz_id == quiz.id
        ).first()
        if existing:
            raise AlreadyEnrolledError()

        enrollment = Enrollment(user_id=identity.user_id, quiz_id=quiz.id)
        db.add(enrollment)

        try:
            db.commit()
        except IntegrityError:
            # Lost the race against a concurrent enroll for the same pair
            db.rollback()
            raise AlreadyEnrolledError()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to enroll user {identity.user_id} in quiz {quiz.id}: {str(e)}", exc_info=True)
            raise InternalError("Failed to enroll in quiz")

        db.refresh(enrollment)
        logger.info(f"Enrollment created: user={identity.user_id}, quiz={quiz.id}")
        return enrollment

    def list_available(self, db: Session, identity: Identity) -> List[Dict[str, Any]]:
        """Active quizzes with the caller's enrollment and attempt usage"""
        require_role(identity, Role.STUDENT)

        quizzes = db.query(Quiz).filter(Quiz.is_active.is_(True)).order_by(Quiz.created_at.desc()).all()

        question_counts = dict(
            db.query(Question.quiz_id, func.count(Question.id)).group_by(Question.quiz_id).all()
        )
        attempts_used = dict(
            db.query(Attempt.quiz_id, func.count(Attempt.id))
            .filter(Attempt.user_id == identity.user_id)
            .group_by(Attempt.quiz_id)
            .all()
        )
        enrolled = {
            quiz_id for (quiz_id,) in
            db.query(Enrollment.quiz_id).filter(Enrollment.user_id == identity.user_id).all()
        }

        return [
            {
                "id": quiz.id,
                "title": quiz.title,
                "description": quiz.description,
                "time_limit": quiz.time_limit,
                "max_attempts": quiz.max_attempts,
                "question_count": question_counts.get(quiz.id, 0),
                "is_enrolled": quiz.id in enrolled,
                "attempts_used": attempts_used.get(quiz.id, 0),
            }
            for quiz in quizzes
        ]


# Global instance
enrollment_service = EnrollmentService()
