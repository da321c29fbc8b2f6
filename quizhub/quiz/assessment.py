"""
Assessment engine: which quizzes a participant may attempt, scoring of a
submission, and the append-only attempt ledger.
"""
from typing import Iterable, List, Tuple

from flask import current_app

from quizhub import db
from quizhub.common.timeutils import utcnow
from quizhub.quiz import policy
from quizhub.quiz.errors import ConflictError, NotFoundError, ValidationError
from quizhub.quiz.models import Question, QuestionOption, Quiz, QuizAssignment, QuizAttempt
from quizhub.quiz.policy import Actor
from quizhub.quiz.store import atomic


class AssessmentEngine:
    """Service class for the participant side of a quiz."""

    @staticmethod
    def list_available_quizzes(actor: Actor) -> List[Quiz]:
        """Live quizzes assigned to the caller, newest first."""
        policy.authorize(actor, policy.ATTEMPT_QUIZ)
        return (
            AssessmentEngine._eligible_query(actor.user_id)
            .order_by(Quiz.created_at.desc(), Quiz.id.desc())
            .all()
        )

    @staticmethod
    def get_quiz_for_attempt(actor: Actor, quiz_id: int) -> Quiz:
        """
        Load a quiz the caller may attempt right now.

        Raises:
            NotFoundError: if the quiz does not exist, is not live, has expired
                or is not assigned to the caller
        """
        policy.authorize(actor, policy.ATTEMPT_QUIZ)
        quiz = AssessmentEngine._eligible_query(actor.user_id).filter(Quiz.id == quiz_id).first()
        if quiz is None:
            raise NotFoundError("Quiz not found, expired, or not accessible")
        return quiz

    @staticmethod
    def submit_answers(actor: Actor, quiz_id: int, answers: List[dict]) -> dict:
        """
        Score a submission and append it to the attempt ledger.

        Args:
            actor: Caller; must be a participant assigned to the quiz
            quiz_id: Quiz being attempted
            answers: ``[{"question_id": int, "option_id": int}, ...]``

        Returns:
            ``{"score": int, "total": int}``

        Raises:
            AuthorizationError, ValidationError, NotFoundError, ConflictError,
            StorageFailure
        """
        policy.authorize(actor, policy.ATTEMPT_QUIZ)
        if not answers:
            raise ValidationError("No answers provided")

        retries = current_app.config.get("ATTEMPT_CONFLICT_RETRIES", 1)
        attempt = 0
        while True:
            try:
                return AssessmentEngine._record_attempt(actor, quiz_id, answers)
            except ConflictError:
                if attempt >= retries:
                    current_app.logger.error(
                        f"Attempt number collision not resolved: quiz_id={quiz_id}, user_id={actor.user_id}"
                    )
                    raise
                attempt += 1
                current_app.logger.warning(
                    f"Attempt number collision, recomputing: quiz_id={quiz_id}, "
                    f"user_id={actor.user_id}, retry={attempt}"
                )

    @staticmethod
    def score(correct_options: Iterable[Tuple[int, int]], answers: Iterable[dict]) -> Tuple[int, int]:
        """
        Count matching answers against the correct options of a quiz.

        A submitted pair is correct iff a correct option with the same
        question id and option id exists. Pairs are checked independently,
        so repeating a correct pair counts it again. The total is the number
        of correct options.
        """
        correct = list(correct_options)
        lookup = set(correct)
        obtained = sum(1 for a in answers if (a['question_id'], a['option_id']) in lookup)
        return obtained, len(correct)

    @staticmethod
    def _record_attempt(actor: Actor, quiz_id: int, answers: List[dict]) -> dict:
        now = utcnow()
        with atomic(conflict="Another submission for this quiz was recorded at the same time"):
            # The assignment row lock serializes submissions per (quiz, user)
            assignment = (
                QuizAssignment.query
                .join(Quiz, Quiz.id == QuizAssignment.quiz_id)
                .filter(
                    QuizAssignment.quiz_id == quiz_id,
                    QuizAssignment.user_id == actor.user_id,
                    Quiz.live_clause(now),
                )
                .with_for_update(of=QuizAssignment)
                .first()
            )
            if assignment is None:
                raise NotFoundError("You are not assigned to this quiz or it has expired")

            obtained, total = AssessmentEngine.score(AssessmentEngine._correct_options(quiz_id), answers)
            attempt_number = AssessmentEngine._next_attempt_number(quiz_id, actor.user_id)

            db.session.add(QuizAttempt(
                user_id=actor.user_id,
                quiz_id=quiz_id,
                score_obtained=obtained,
                score_total=total,
                attempt_number=attempt_number,
                completed_at=now,
            ))
            db.session.flush()

        current_app.logger.info(
            f"Quiz submitted: quiz_id={quiz_id}, user_id={actor.user_id}, "
            f"attempt={attempt_number}, score={obtained}/{total}"
        )
        return {'score': obtained, 'total': total}

    @staticmethod
    def _correct_options(quiz_id: int) -> List[Tuple[int, int]]:
        rows = (
            db.session.query(QuestionOption.question_id, QuestionOption.id)
            .join(Question, Question.id == QuestionOption.question_id)
            .filter(Question.quiz_id == quiz_id, QuestionOption.is_correct.is_(True))
            .all()
        )
        return [(row.question_id, row.id) for row in rows]

    @staticmethod
    def _next_attempt_number(quiz_id: int, user_id: int) -> int:
        prior = QuizAttempt.query.filter_by(quiz_id=quiz_id, user_id=user_id).count()
        return prior + 1

    @staticmethod
    def _eligible_query(user_id: int):
        return (
            Quiz.query
            .join(QuizAssignment, QuizAssignment.quiz_id == Quiz.id)
            .filter(QuizAssignment.user_id == user_id, Quiz.live_clause(utcnow()))
        )
