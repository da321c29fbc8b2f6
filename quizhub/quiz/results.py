"""Read-only projections over quizzes, assignments and attempts."""
from typing import List

from sqlalchemy import and_, func

from quizhub import db
from quizhub.auth.models import User
from quizhub.common.timeutils import to_iso, utcnow
from quizhub.quiz import policy
from quizhub.quiz.models import Question, Quiz, QuizAssignment, QuizAttempt
from quizhub.quiz.policy import Actor
from quizhub.quiz.store import get_quiz


class ResultAggregator:
    """Service class for result views. Nothing here writes."""

    @staticmethod
    def results_for(actor: Actor) -> List[dict]:
        """
        One row per quiz assigned to the caller with the most recent attempt.

        Every assigned quiz is listed whatever its status, deleted ones
        included, so past attempts stay visible.
        Rows are ordered by quiz creation time, newest first.
        """
        policy.authorize(actor, policy.VIEW_OWN_RESULTS)
        now = utcnow()

        question_counts = (
            db.session.query(Question.quiz_id, func.count(Question.id).label('question_count'))
            .group_by(Question.quiz_id)
            .subquery()
        )
        latest = (
            db.session.query(QuizAttempt.quiz_id, func.max(QuizAttempt.attempt_number).label('attempt_number'))
            .filter(QuizAttempt.user_id == actor.user_id)
            .group_by(QuizAttempt.quiz_id)
            .subquery()
        )

        rows = (
            db.session.query(Quiz, func.coalesce(question_counts.c.question_count, 0), QuizAttempt)
            .join(QuizAssignment, and_(QuizAssignment.quiz_id == Quiz.id, QuizAssignment.user_id == actor.user_id))
            .outerjoin(question_counts, question_counts.c.quiz_id == Quiz.id)
            .outerjoin(latest, latest.c.quiz_id == Quiz.id)
            .outerjoin(QuizAttempt, and_(
                QuizAttempt.quiz_id == Quiz.id,
                QuizAttempt.user_id == actor.user_id,
                QuizAttempt.attempt_number == latest.c.attempt_number,
            ))
            .order_by(Quiz.created_at.desc(), Quiz.id.desc())
            .all()
        )

        results = []
        for quiz, question_count, attempt in rows:
            results.append({
                'id': quiz.id,
                'name': quiz.name,
                'status': quiz.effective_status(now),
                'expires_at': to_iso(quiz.expires_at),
                'max_score': int(question_count),
                'latest_score': attempt.score_obtained if attempt else None,
                'score_total': attempt.score_total if attempt else None,
                'attempt_number': attempt.attempt_number if attempt else None,
                'completed_at': to_iso(attempt.completed_at) if attempt else None,
                'attempted': attempt is not None,
            })
        return results

    @staticmethod
    def attempts_for_quiz(actor: Actor, quiz_id: int) -> List[dict]:
        """Full attempt ledger of a quiz for admins, ordered by user then attempt."""
        policy.authorize(actor, policy.VIEW_ATTEMPT_LEDGER)
        get_quiz(quiz_id)

        rows = (
            db.session.query(QuizAttempt, User.email)
            .join(User, User.id == QuizAttempt.user_id)
            .filter(QuizAttempt.quiz_id == quiz_id)
            .order_by(QuizAttempt.user_id, QuizAttempt.attempt_number)
            .all()
        )
        ledger = []
        for attempt, email in rows:
            entry = attempt.to_dict()
            entry['user_email'] = email
            ledger.append(entry)
        return ledger
