"""
Quiz scoring service
Deterministic exact-match scoring, identical for every question type
"""
from dataclasses import dataclass, field
import logging
from typing import Dict, Iterable, List, Optional, Sequence
from uuid import UUID

from quizhub.models import Question

logger = logging.getLogger(__name__)


def as_uuid(value) -> Optional[UUID]:
    """UUID for a UUID or its string form, None when it is neither"""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


@dataclass
class ScoredQuestion:
    """Outcome for a single question of the quiz"""
    question_id: object
    answer: str
    is_correct: bool
    points_awarded: int
    max_points: int


@dataclass
class ScoreSheet:
    """Aggregated outcome of a submission"""
    score: int = 0
    total_points: int = 0
    items: List[ScoredQuestion] = field(default_factory=list)

    @property
    def percentage(self) -> float:
        return percentage(self.score, self.total_points)


def percentage(score: Optional[int], total_points: Optional[int]) -> float:
    """Score as a percentage of total points, 0.0 for a quiz worth nothing"""
    if not total_points:
        return 0.0
    return round((score or 0) / total_points * 100, 2)


def normalize_answer(value: Optional[str]) -> str:
    return (value or "").strip().lower()


class ScoringService:
    """
    Service for scoring quiz submissions

    Strategy:
    - Every question of the quiz is scored, answered or not
    - Correct means trimmed, case-insensitive equality with correct_answer
    - No partial credit: full points or zero
    """

    def index_answers(self, answers: Iterable) -> Dict[UUID, str]:
        """
        Map question id -> submitted text

        Accepts objects with ``question_id``/``answer`` attributes or dicts
        with the same keys. Ids may be UUIDs or any string form of one
        (case and hyphens do not matter); anything else is ignored.
        The first answer for a question wins.
        """
        indexed: Dict[UUID, str] = {}
        for item in answers:
            if isinstance(item, dict):
                question_id, text = item.get("question_id"), item.get("answer")
            else:
                question_id, text = item.question_id, item.answer
            key = as_uuid(question_id)
            if key is not None and key not in indexed:
                indexed[key] = text if text is not None else ""
        return indexed

    def is_correct(self, question: Question, answer: Optional[str]) -> bool:
        return normalize_answer(answer) == normalize_answer(question.correct_answer)

    def score(self, questions: Sequence[Question], answers: Iterable) -> ScoreSheet:
        """
        Score a submission against the quiz's current questions

        Args:
            questions: All questions of the quiz, in display order
            answers: Submitted answers (see index_answers)

        Returns:
            ScoreSheet with one item per question, in the same order
        """
        submitted = self.index_answers(answers)
        sheet = ScoreSheet()

        for question in questions:
            text = submitted.get(as_uuid(question.id))

            if text is None:
                # Unanswered: recorded as an empty, incorrect answer
                item = ScoredQuestion(question.id, "", False, 0, question.points)
            else:
                correct = self.is_correct(question, text)
                item = ScoredQuestion(
                    question.id,
                    text,
                    correct,
                    question.points if correct else 0,
                    question.points,
                )

            sheet.items.append(item)
            sheet.total_points += question.points
            sheet.score += item.points_awarded

        ignored = set(submitted) - {as_uuid(q.id) for q in questions}
        if ignored:
            logger.info(f"Ignored {len(ignored)} answers for questions outside the quiz")

        logger.debug(f"Scored submission: {sheet.score}/{sheet.total_points}")
        return sheet


# Global instance
scoring_service = ScoringService()
