"""
Quiz and question aggregate management
Creation with unique codes, allow-listed updates, ordered cascade deletes
"""
from datetime import datetime, timedelta
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from quizhub.config import settings
from quizhub.database import utcnow
from quizhub.exceptions import ConflictError, InternalError, NotFoundError
from quizhub.models import Attempt, Enrollment, Question, Quiz, Role
from quizhub.schemas.quiz import QuestionCreate, QuizCreate, QuizUpdate
from quizhub.services import cascade
from quizhub.services.authorization import require_approved_educator, require_quiz_owner, require_role
from quizhub.services.scoring_service import percentage
from quizhub.utils.cache import cache_service
from quizhub.utils.codes import generate_unique_code
from quizhub.utils.security import Identity

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "time_limit", "max_attempts", "is_active", "material_url")


class QuizService:
    """Service for quizzes and their questions; owner or admin only"""

    def _get_quiz(self, db: Session, quiz_id) -> Quiz:
        quiz = db.get(Quiz, quiz_id)
        if not quiz:
            raise NotFoundError("Quiz not found")
        return quiz

    def _get_question(self, db: Session, quiz_id, question_id) -> Question:
        question = db.get(Question, question_id)
        if not question or question.quiz_id != quiz_id:
            raise NotFoundError("Question not found")
        return question

    def _commit(self, db: Session, action: str) -> None:
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to {action}: {str(e)}", exc_info=True)
            raise InternalError(f"Failed to {action}")

    def _new_question(self, quiz_id, data: QuestionCreate, created_at: Optional[datetime] = None) -> Question:
        return Question(
            quiz_id=quiz_id,
            prompt=data.prompt,
            type=data.type.value,
            options=data.options,
            correct_answer=data.correct_answer,
            explanation=data.explanation,
            points=data.points,
            created_at=created_at or utcnow(),
        )

    def _new_questions(self, quiz_id, batch: List[QuestionCreate]) -> List[Question]:
        """Questions of one batch, timestamped apart so they keep submission order"""
        base = utcnow()
        return [
            self._new_question(quiz_id, data, base + timedelta(microseconds=position))
            for position, data in enumerate(batch)
        ]

    def _counts(self, db: Session, quiz_ids: List[UUID]) -> Dict[str, Dict[UUID, int]]:
        """Questions, enrollments and attempts per quiz"""
        if not quiz_ids:
            return {"question_count": {}, "enrollment_count": {}, "attempt_count": {}}

        def grouped(column):
            return dict(
                db.query(column, func.count())
                .filter(column.in_(quiz_ids))
                .group_by(column)
                .all()
            )

        return {
            "question_count": grouped(Question.quiz_id),
            "enrollment_count": grouped(Enrollment.quiz_id),
            "attempt_count": grouped(Attempt.quiz_id),
        }

    def _summary(self, quiz: Quiz, counts: Dict[str, Dict[UUID, int]]) -> Dict[str, Any]:
        summary = {
            "id": quiz.id,
            "title": quiz.title,
            "description": quiz.description,
            "code": quiz.code,
            "material_url": quiz.material_url,
            "time_limit": quiz.time_limit,
            "max_attempts": quiz.max_attempts,
            "is_active": quiz.is_active,
            "created_by_id": quiz.created_by_id,
            "created_at": quiz.created_at,
        }
        for name, per_quiz in counts.items():
            summary[name] = per_quiz.get(quiz.id, 0)
        return summary

    def code_in_use(self, db: Session, code: str) -> bool:
        return db.query(Quiz.id).filter(Quiz.code == code).first() is not None

    def create_quiz(self, db: Session, identity: Identity, data: QuizCreate) -> Dict[str, Any]:
        """
        Create a quiz, optionally with its first questions, in one transaction
        """
        require_approved_educator(db, identity)

        for _ in range(settings.MAX_CODE_RETRIES):
            code = generate_unique_code(lambda candidate: self.code_in_use(db, candidate))

            quiz = Quiz(
                title=data.title,
                description=data.description,
                material_url=data.material_url or None,
                time_limit=data.time_limit,
                max_attempts=data.max_attempts,
                is_active=data.is_active,
                code=code,
                created_by_id=identity.user_id,
            )

            try:
                db.add(quiz)
                db.flush()
                db.add_all(self._new_questions(quiz.id, data.questions or []))
                db.commit()
            except IntegrityError as e:
                db.rollback()
                if not self.code_in_use(db, code):
                    logger.error(f"Failed to create quiz: {str(e)}", exc_info=True)
                    raise InternalError("Failed to create quiz")
                logger.warning(f"Quiz code {code} taken concurrently; generating another")
                continue
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Failed to create quiz: {str(e)}", exc_info=True)
                raise InternalError("Failed to create quiz")

            db.refresh(quiz)
            logger.info(f"Quiz created: {quiz.id} (code {quiz.code}) by {identity.user_id}")
            return self.get_quiz(db, identity, quiz.id)

        raise ConflictError("Could not allocate a quiz code, please retry")

    def list_quizzes(self, db: Session, identity: Identity, created_by: Optional[UUID] = None) -> List[Dict[str, Any]]:
        """Admins see every quiz (or one creator's); educators see their own"""
        require_role(identity, Role.EDUCATOR, Role.ADMIN)

        query = db.query(Quiz)
        if identity.role == Role.EDUCATOR:
            query = query.filter(Quiz.created_by_id == identity.user_id)
        elif created_by is not None:
            query = query.filter(Quiz.created_by_id == created_by)

        quizzes = query.order_by(Quiz.created_at.desc()).all()
        counts = self._counts(db, [quiz.id for quiz in quizzes])
        return [self._summary(quiz, counts) for quiz in quizzes]

    def get_quiz(self, db: Session, identity: Identity, quiz_id) -> Dict[str, Any]:
        """Full quiz with questions and answers, for its owner or an admin"""
        quiz = self._get_quiz(db, quiz_id)
        require_quiz_owner(db, identity, quiz)

        detail = self._summary(quiz, self._counts(db, [quiz.id]))
        detail["questions"] = (
            db.query(Question)
            .filter(Question.quiz_id == quiz.id)
            .order_by(Question.created_at, Question.id)
            .all()
        )
        return detail

    def update_quiz(self, db: Session, identity: Identity, quiz_id, changes: QuizUpdate) -> Dict[str, Any]:
        """Apply only allow-listed fields the caller actually sent"""
        quiz = self._get_quiz(db, quiz_id)
        require_quiz_owner(db, identity, quiz)

        for name, value in changes.model_dump(exclude_unset=True).items():
            if name in UPDATABLE_FIELDS:
                setattr(quiz, name, value)

        self._commit(db, "update quiz")
        cache_service.invalidate_quiz(quiz.id)

        logger.info(f"Quiz updated: {quiz.id}")
        return self.get_quiz(db, identity, quiz.id)

    def delete_quiz(self, db: Session, identity: Identity, quiz_id) -> Dict[str, int]:
        """
        Delete a quiz with its answers, attempts, enrollments and questions

        All-or-nothing: any failure rolls back every statement.
        """
        quiz = self._get_quiz(db, quiz_id)
        require_quiz_owner(db, identity, quiz)

        try:
            counts = cascade.delete_quizzes(db, [quiz.id])
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to delete quiz {quiz_id}: {str(e)}", exc_info=True)
            raise InternalError("Failed to delete quiz")

        db.expire_all()
        cache_service.invalidate_quiz(quiz_id)
        logger.info(f"Quiz deleted: {quiz_id} ({counts})")
        return counts

    def add_question(self, db: Session, identity: Identity, quiz_id, data: QuestionCreate) -> Question:
        quiz = self._get_quiz(db, quiz_id)
        require_quiz_owner(db, identity, quiz)

        question = self._new_question(quiz.id, data)
        db.add(question)
        self._commit(db, "create question")
        db.refresh(question)

        cache_service.invalidate_quiz(quiz.id)
        return question

    def import_questions(self, db: Session, identity: Identity, quiz_id, questions: List[QuestionCreate]) -> List[Question]:
        """Add a batch of questions; either all of them are stored or none"""
        quiz = self._get_quiz(db, quiz_id)
        require_quiz_owner(db, identity, quiz)

        created = self._new_questions(quiz.id, questions)
        db.add_all(created)
        self._commit(db, "import questions")
        for question in created:
            db.refresh(question)

        cache_service.invalidate_quiz(quiz.id)
        logger.info(f"Imported {len(created)} questions into quiz {quiz.id}")
        return created

    def update_question(self, db: Session, identity: Identity, quiz_id, question_id, data: QuestionCreate) -> Question:
        """
        Replace a question's content

        Past attempts keep their stored score and total; only future
        submissions see the new answer or points.
        """
        quiz = self._get_quiz(db, quiz_id)
        require_quiz_owner(db, identity, quiz)
        question = self._get_question(db, quiz.id, question_id)

        question.prompt = data.prompt
        question.type = data.type.value
        question.options = data.options
        question.correct_answer = data.correct_answer
        question.explanation = data.explanation
        question.points = data.points

        self._commit(db, "update question")
        db.refresh(question)

        cache_service.invalidate_quiz(quiz.id)
        return question

    def delete_question(self, db: Session, identity: Identity, quiz_id, question_id) -> None:
        quiz = self._get_quiz(db, quiz_id)
        require_quiz_owner(db, identity, quiz)
        question = self._get_question(db, quiz.id, question_id)

        try:
            cascade.delete_question(db, question.id)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to delete question {question_id}: {str(e)}", exc_info=True)
            raise InternalError("Failed to delete question")

        db.expire_all()
        cache_service.invalidate_quiz(quiz.id)
        logger.info(f"Question deleted: {question_id} from quiz {quiz.id}")

    def get_educator_stats(self, db: Session, identity: Identity) -> Dict[str, Any]:
        """Totals over the calling educator's own quizzes"""
        require_role(identity, Role.EDUCATOR)
        require_approved_educator(db, identity)

        own_quiz_ids = select(Quiz.id).where(Quiz.created_by_id == identity.user_id)

        total_quizzes = db.query(func.count(Quiz.id)).filter(Quiz.created_by_id == identity.user_id).scalar()
        total_enrollments = db.query(func.count(Enrollment.id)).filter(Enrollment.quiz_id.in_(own_quiz_ids)).scalar()
        total_attempts = db.query(func.count(Attempt.id)).filter(Attempt.quiz_id.in_(own_quiz_ids)).scalar()

        completed = db.query(Attempt.score, Attempt.total_points).filter(
            Attempt.quiz_id.in_(own_quiz_ids),
            Attempt.completed_at.isnot(None)
        ).all()
        average = (
            sum(percentage(score, total) for score, total in completed) / len(completed)
            if completed else 0.0
        )

        return {
            "total_quizzes": total_quizzes or 0,
            "total_enrollments": total_enrollments or 0,
            "total_attempts": total_attempts or 0,
            "average_percentage": round(average, 2),
        }


# Global instance
quiz_service = QuizService()
