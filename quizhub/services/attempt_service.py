"""
Attempt lifecycle service
NOT_STARTED -> IN_PROGRESS -> COMPLETED, with no way back

Guards:
- start: enrolled, quiz active, attempt cap not reached
- submit: own attempt, still in progress; completion and answers are one write
"""
import logging
from typing import Any, Dict, Iterable, List

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from quizhub.config import settings
from quizhub.database import utcnow
from quizhub.exceptions import (
    AlreadySubmittedError, ConflictError, ForbiddenError, InternalError, MaxAttemptsReachedError,
    NotCompletedError, NotEnrolledError, NotFoundError, QuizHubError, QuizInactiveError,
)
from quizhub.models import Answer, Attempt, Enrollment, Question, Quiz, Role
from quizhub.services.authorization import require_quiz_owner, require_role
from quizhub.services.scoring_service import percentage, scoring_service
from quizhub.utils.cache import cache_service
from quizhub.utils.security import Identity

logger = logging.getLogger(__name__)


class AttemptService:
    """
    Service for the attempt state machine

    The attempt cap is enforced by the store: every attempt takes the next
    attempt_number for its (user, quiz) and the unique constraint on that
    triple rejects a second insert of the same number. A start that loses
    the race rolls back and re-reads, so the cap can never be overshot.
    """

    def ordered_questions(self, db: Session, quiz_id) -> List[Question]:
        return (
            db.query(Question)
            .filter(Question.quiz_id == quiz_id)
            .order_by(Question.created_at, Question.id)
            .all()
        )

    def _next_attempt_number(self, db: Session, user_id, quiz_id) -> int:
        current = db.query(func.max(Attempt.attempt_number)).filter(
            Attempt.user_id == user_id,
            Attempt.quiz_id == quiz_id
        ).scalar()
        return (current or 0) + 1

    def _load_startable_quiz(self, db: Session, identity: Identity, quiz_id, lock: bool = False) -> Quiz:
        """Check the start preconditions other than the attempt cap"""
        quiz = db.get(Quiz, quiz_id)
        if not quiz:
            raise NotFoundError("Quiz not found")

        enrollment_query = db.query(Enrollment).filter(
            Enrollment.user_id == identity.user_id,
            Enrollment.quiz_id == quiz_id
        )
        if lock:
            # Serializes concurrent starts on backends with row locks
            enrollment_query = enrollment_query.with_for_update()
        if not enrollment_query.first():
            raise NotEnrolledError()

        if not quiz.is_active:
            raise QuizInactiveError()

        return quiz

    def get_take_view(self, db: Session, identity: Identity, quiz_id) -> Dict[str, Any]:
        """
        Quiz as presented to a student, without answers or explanations

        Allowed while the student can still start an attempt or has one in
        progress.
        """
        require_role(identity, Role.STUDENT)
        quiz = self._load_startable_quiz(db, identity, quiz_id)

        in_progress = db.query(Attempt.id).filter(
            Attempt.user_id == identity.user_id,
            Attempt.quiz_id == quiz.id,
            Attempt.completed_at.is_(None)
        ).first()
        if not in_progress and quiz.max_attempts is not None:
            if self._next_attempt_number(db, identity.user_id, quiz.id) > quiz.max_attempts:
                raise MaxAttemptsReachedError(
                    f"You have reached the maximum number of attempts ({quiz.max_attempts}) for this quiz"
                )

        cache_key = cache_service.take_view_key(quiz.id)
        cached = cache_service.get(cache_key)
        if cached:
            return cached

        view = {
            "id": str(quiz.id),
            "title": quiz.title,
            "description": quiz.description,
            "material_url": quiz.material_url,
            "time_limit": quiz.time_limit,
            "max_attempts": quiz.max_attempts,
            "questions": [
                {
                    "id": str(question.id),
                    "prompt": question.prompt,
                    "type": question.type,
                    "options": question.options,
                    "points": question.points,
                }
                for question in self.ordered_questions(db, quiz.id)
            ],
        }
        cache_service.set(cache_key, view)
        return view

    def start_attempt(self, db: Session, identity: Identity, quiz_id) -> Attempt:
        """
        Start a new attempt for the calling student

        Raises:
            NotFoundError: quiz does not exist
            NotEnrolledError: no enrollment for (student, quiz)
            QuizInactiveError: quiz is deactivated
            MaxAttemptsReachedError: all allowed attempts are used
        """
        require_role(identity, Role.STUDENT)

        for _ in range(settings.MAX_START_RETRIES):
            try:
                quiz = self._load_startable_quiz(db, identity, quiz_id, lock=True)

                number = self._next_attempt_number(db, identity.user_id, quiz.id)
                if quiz.max_attempts is not None and number > quiz.max_attempts:
                    raise MaxAttemptsReachedError(
                        f"You have reached the maximum number of attempts ({quiz.max_attempts}) for this quiz"
                    )
            except QuizHubError:
                db.rollback()
                raise

            attempt = Attempt(
                user_id=identity.user_id,
                quiz_id=quiz.id,
                attempt_number=number,
                started_at=utcnow(),
            )
            db.add(attempt)

            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.warning(
                    f"Attempt slot {number} taken concurrently: user={identity.user_id}, quiz={quiz_id}; re-checking"
                )
                continue
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Failed to start attempt for quiz {quiz_id}: {str(e)}", exc_info=True)
                raise InternalError("Failed to start quiz attempt")

            db.refresh(attempt)
            logger.info(f"Attempt started: {attempt.id} (#{number}) user={identity.user_id}, quiz={quiz_id}")
            return attempt

        raise ConflictError("Too many concurrent attempt starts, please retry")

    def submit_attempt(
        self,
        db: Session,
        identity: Identity,
        attempt_id,
        quiz_id,
        answers: Iterable
    ) -> Dict[str, Any]:
        """
        Score and complete an attempt

        Every question of the quiz is scored; unanswered ones count as wrong.
        The conditional update on completed_at and the answer inserts commit
        together, so a duplicate submission can neither double-write nor
        leave a completed attempt without answers.

        Raises:
            NotFoundError: attempt does not exist
            ForbiddenError: attempt belongs to someone else or another quiz
            AlreadySubmittedError: attempt already completed
        """
        attempt = db.get(Attempt, attempt_id)
        if not attempt:
            raise NotFoundError("Quiz attempt not found")

        if attempt.user_id != identity.user_id or str(attempt.quiz_id) != str(quiz_id):
            raise ForbiddenError("Invalid attempt")

        if attempt.completed_at is not None:
            raise AlreadySubmittedError()

        questions = self.ordered_questions(db, attempt.quiz_id)
        sheet = scoring_service.score(questions, answers)

        completed_at = utcnow()
        time_spent = max(int((completed_at - attempt.started_at).total_seconds()), 0)

        try:
            result = db.execute(
                update(Attempt)
                .where(Attempt.id == attempt.id, Attempt.completed_at.is_(None))
                .values(
                    completed_at=completed_at,
                    time_spent=time_spent,
                    score=sheet.score,
                    total_points=sheet.total_points,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise AlreadySubmittedError()

            db.add_all([
                Answer(
                    attempt_id=attempt.id,
                    question_id=item.question_id,
                    answer=item.answer,
                    is_correct=item.is_correct,
                    points=item.points_awarded,
                )
                for item in sheet.items
            ])
            db.commit()
        except AlreadySubmittedError:
            db.rollback()
            logger.warning(f"Duplicate submission rejected for attempt {attempt_id}")
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to submit attempt {attempt_id}: {str(e)}", exc_info=True)
            raise InternalError("Failed to submit quiz")

        db.refresh(attempt)
        logger.info(
            f"Attempt submitted: {attempt.id}, score: {sheet.score}/{sheet.total_points}, "
            f"time spent: {time_spent}s"
        )
        return self._load_result(db, attempt)

    def get_result(self, db: Session, identity: Identity, attempt_id) -> Dict[str, Any]:
        """
        Read back a completed attempt

        Students read their own attempts; the quiz's educator and admins may
        read any attempt of the quiz.
        """
        attempt = db.get(Attempt, attempt_id)
        if not attempt:
            raise NotFoundError("Quiz attempt not found")

        if identity.role == Role.STUDENT:
            if attempt.user_id != identity.user_id:
                raise ForbiddenError()
        else:
            quiz = db.get(Quiz, attempt.quiz_id)
            require_quiz_owner(db, identity, quiz)

        if attempt.completed_at is None:
            raise NotCompletedError()

        return self._load_result(db, attempt)

    def list_attempts(self, db: Session, identity: Identity) -> List[Dict[str, Any]]:
        """The calling student's attempts, newest first"""
        require_role(identity, Role.STUDENT)

        rows = (
            db.query(Attempt, Quiz.title)
            .join(Quiz, Attempt.quiz_id == Quiz.id)
            .filter(Attempt.user_id == identity.user_id)
            .order_by(Attempt.started_at.desc())
            .all()
        )

        return [
            {
                "attempt_id": attempt.id,
                "quiz_id": attempt.quiz_id,
                "quiz_title": title,
                "attempt_number": attempt.attempt_number,
                "started_at": attempt.started_at,
                "completed_at": attempt.completed_at,
                "score": attempt.score,
                "total_points": attempt.total_points,
                "percentage": percentage(attempt.score, attempt.total_points) if attempt.is_completed else None,
                "time_spent": attempt.time_spent,
            }
            for attempt, title in rows
        ]

    def _load_result(self, db: Session, attempt: Attempt) -> Dict[str, Any]:
        """Build the scored result from committed rows only"""
        rows = (
            db.query(Answer, Question)
            .join(Question, Answer.question_id == Question.id)
            .filter(Answer.attempt_id == attempt.id)
            .order_by(Question.created_at, Question.id)
            .all()
        )

        return {
            "attempt_id": attempt.id,
            "quiz_id": attempt.quiz_id,
            "attempt_number": attempt.attempt_number,
            "score": attempt.score,
            "total_points": attempt.total_points,
            "percentage": percentage(attempt.score, attempt.total_points),
            "time_spent": attempt.time_spent,
            "started_at": attempt.started_at,
            "completed_at": attempt.completed_at,
            "per_question": [
                {
                    "question_id": question.id,
                    "answer": answer.answer,
                    "is_correct": answer.is_correct,
                    "points_awarded": answer.points,
                    "max_points": question.points,
                    "correct_answer": question.correct_answer,
                    "explanation": question.explanation,
                }
                for answer, question in rows
            ],
        }


# Global instance
attempt_service = AttemptService()
