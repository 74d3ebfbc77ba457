"""
Ordered cascade deletes

Rows are removed children-first: Answers -> Attempts -> Enrollments ->
Questions -> owning row. The functions only issue statements; the caller
owns the transaction and commits or rolls back all of them together.
"""
import logging

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session

from quizhub.models import Answer, Attempt, Enrollment, Question, Quiz, User

logger = logging.getLogger(__name__)


def _delete(db: Session, statement) -> int:
    result = db.execute(statement.execution_options(synchronize_session=False))
    return result.rowcount or 0


def delete_quizzes(db: Session, quiz_ids) -> dict:
    """
    Delete quizzes and everything that only exists in relation to them

    Args:
        db: Session with an open transaction
        quiz_ids: A select() of quiz ids or a list of ids

    Returns:
        Number of rows removed per table
    """
    attempt_ids = select(Attempt.id).where(Attempt.quiz_id.in_(quiz_ids))
    question_ids = select(Question.id).where(Question.quiz_id.in_(quiz_ids))

    counts = {
        "answers": _delete(db, delete(Answer).where(
            or_(Answer.attempt_id.in_(attempt_ids), Answer.question_id.in_(question_ids))
        )),
        "attempts": _delete(db, delete(Attempt).where(Attempt.quiz_id.in_(quiz_ids))),
        "enrollments": _delete(db, delete(Enrollment).where(Enrollment.quiz_id.in_(quiz_ids))),
        "questions": _delete(db, delete(Question).where(Question.quiz_id.in_(quiz_ids))),
    }
    counts["quizzes"] = _delete(db, delete(Quiz).where(Quiz.id.in_(quiz_ids)))
    return counts


def delete_user(db: Session, user_id) -> dict:
    """
    Delete a user, their attempts and enrollments, and the quizzes they own
    """
    own_attempt_ids = select(Attempt.id).where(Attempt.user_id == user_id)

    counts = {
        "answers": _delete(db, delete(Answer).where(Answer.attempt_id.in_(own_attempt_ids))),
        "attempts": _delete(db, delete(Attempt).where(Attempt.user_id == user_id)),
        "enrollments": _delete(db, delete(Enrollment).where(Enrollment.user_id == user_id)),
    }

    owned = delete_quizzes(db, select(Quiz.id).where(Quiz.created_by_id == user_id))
    for table, removed in owned.items():
        counts[table] = counts.get(table, 0) + removed

    counts["users"] = _delete(db, delete(User).where(User.id == user_id))
    return counts


def delete_question(db: Session, question_id) -> dict:
    """Delete one question and the recorded answers to it"""
    return {
        "answers": _delete(db, delete(Answer).where(Answer.question_id == question_id)),
        "questions": _delete(db, delete(Question).where(Question.id == question_id)),
    }
