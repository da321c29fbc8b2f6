"""
Quiz lifecycle management.

Admins author quizzes, move them between DRAFT and LIVE, and soft delete
them. Every mutation runs inside a single transaction: nested questions,
options and assignments are written together with the quiz or not at all.
"""
from datetime import datetime
from typing import List, Optional

from flask import current_app

from quizhub import db
from quizhub.auth.models import Role, User
from quizhub.common.timeutils import utcnow, to_iso
from quizhub.quiz import policy
from quizhub.quiz.errors import NotFoundError, ValidationError
from quizhub.quiz.models import Question, QuestionOption, Quiz, QuizAssignment, QuizStatus
from quizhub.quiz.policy import Actor
from quizhub.quiz.store import atomic, get_quiz, resolve_participants


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


# Marks "expires_at was not supplied", as opposed to None ("never expires")
UNSET = _Unset()

TRANSITION_TARGETS = (QuizStatus.LIVE.value, QuizStatus.DRAFT.value)


class QuizLifecycleManager:
    """Service class for the admin side of the quiz lifecycle."""

    @staticmethod
    def create_quiz(actor: Actor, name: str, questions: List[dict], assigned_user_ids: List[int]) -> Quiz:
        """
        Create a DRAFT quiz with its questions, options and assignments.

        Args:
            actor: Caller; must be an admin
            name: Quiz name, unique among non-deleted quizzes
            questions: ``[{"question_text": str, "options": [{"value": str, "is_correct": bool}]}]``
            assigned_user_ids: Participants allowed to see and attempt the quiz

        Returns:
            The created Quiz

        Raises:
            AuthorizationError, ValidationError, ConflictError, StorageFailure
        """
        policy.authorize(actor, policy.CREATE_QUIZ)

        with atomic(conflict=f'Quiz with name "{name}" already exists'):
            user_ids = resolve_participants(assigned_user_ids)

            quiz = Quiz(creator_id=actor.user_id, status=QuizStatus.DRAFT.value, expires_at=None)
            quiz.rename(name)
            db.session.add(quiz)
            # Flush first so a name collision is reported before children are built
            db.session.flush()

            for question_data in questions:
                QuizLifecycleManager._add_question(quiz, question_data)
            for user_id in user_ids:
                db.session.add(QuizAssignment(quiz_id=quiz.id, user_id=user_id))

        current_app.logger.info(
            f"Quiz created: ID={quiz.id}, Name={quiz.name}, Creator={actor.user_id}, "
            f"Questions={len(questions)}, Assigned={len(user_ids)}"
        )
        return quiz

    @staticmethod
    def set_status(actor: Actor, quiz_id: int, status: str, expires_at=UNSET) -> Quiz:
        """
        Move a quiz to LIVE or back to DRAFT.

        Args:
            actor: Caller; must be an admin
            quiz_id: Target quiz
            status: ``LIVE`` or ``DRAFT``
            expires_at: Deadline for LIVE. ``None`` means the quiz never
                expires; leaving it out is an error for LIVE. Ignored for DRAFT.
        """
        policy.authorize(actor, policy.PUBLISH_QUIZ)

        with atomic():
            quiz = get_quiz(quiz_id, lock=True)
            previous = quiz.status
            QuizLifecycleManager._apply_status(quiz, status, expires_at, utcnow())

        current_app.logger.info(
            f"Quiz status changed: ID={quiz.id}, {previous} -> {quiz.status}, "
            f"expires_at={to_iso(quiz.expires_at)}"
        )
        return quiz

    @staticmethod
    def delete_quiz(actor: Actor, quiz_id: int) -> Quiz:
        """Soft delete a quiz. Deleted is terminal; attempts are kept."""
        policy.authorize(actor, policy.DELETE_QUIZ)

        with atomic():
            quiz = get_quiz(quiz_id, lock=True)
            if quiz.is_deleted:
                raise ValidationError("Quiz is already deleted")
            quiz.mark_deleted()

        current_app.logger.info(f"Quiz deleted: ID={quiz.id}, Name={quiz.name}")
        return quiz

    @staticmethod
    def update_quiz(actor: Actor, quiz_id: int, changes: dict) -> Quiz:
        """
        Patch scalar fields, replace assignments and upsert questions in one
        transaction.

        Supported keys of ``changes`` (all optional):
            name, status, expires_at: scalar patch, same rules as set_status
            assigned_user_ids: full replacement of the assignment set
            questions: list of ``{"id"?, "question_text"?, "options"?}``; with an
                id the question is updated and, when options are given, its
                options are replaced; without an id a new question is created
        """
        policy.authorize(actor, policy.UPDATE_QUIZ)

        new_name = changes.get('name')
        conflict = f'Quiz with name "{new_name}" already exists' if new_name else "Quiz update conflicts with existing data"

        with atomic(conflict=conflict):
            quiz = get_quiz(quiz_id, lock=True)
            if quiz.is_deleted:
                raise ValidationError("Deleted quizzes cannot be modified")

            now = utcnow()
            if new_name:
                quiz.rename(new_name)
            if 'status' in changes:
                if changes['status'] == QuizStatus.DRAFT.value and changes.get('expires_at') is not None:
                    raise ValidationError("expires_at can only be set while the quiz is LIVE")
                QuizLifecycleManager._apply_status(quiz, changes['status'], changes.get('expires_at', UNSET), now)
            elif 'expires_at' in changes:
                if quiz.status != QuizStatus.LIVE.value:
                    raise ValidationError("expires_at can only be set while the quiz is LIVE")
                QuizLifecycleManager._apply_status(quiz, QuizStatus.LIVE.value, changes['expires_at'], now)
            quiz.updated_at = now
            db.session.flush()

            if 'assigned_user_ids' in changes:
                QuizLifecycleManager._replace_assignments(quiz, changes['assigned_user_ids'])

            for question_data in changes.get('questions') or []:
                QuizLifecycleManager._upsert_question(quiz, question_data)

        current_app.logger.info(f"Quiz updated: ID={quiz.id}, Fields={sorted(changes)}")
        return quiz

    @staticmethod
    def get_quiz(actor: Actor, quiz_id: int) -> Quiz:
        """Admin view of a single quiz, deleted ones included."""
        policy.authorize(actor, policy.VIEW_ALL_QUIZZES)
        return get_quiz(quiz_id)

    @staticmethod
    def list_quizzes(actor: Actor, status: Optional[str] = None) -> List[Quiz]:
        """
        All quizzes, newest first. Deleted quizzes only when asked for by status.

        EXPIRED selects LIVE quizzes past their deadline; LIVE selects the rest.
        """
        policy.authorize(actor, policy.VIEW_ALL_QUIZZES)
        query = Quiz.query
        if status == QuizStatus.EXPIRED.value:
            query = query.filter(Quiz.expired_clause(utcnow()))
        elif status == QuizStatus.LIVE.value:
            query = query.filter(Quiz.live_clause(utcnow()))
        elif status:
            query = query.filter(Quiz.status == status)
        else:
            query = query.filter(Quiz.status != QuizStatus.DELETED.value)
        return query.order_by(Quiz.created_at.desc(), Quiz.id.desc()).all()

    @staticmethod
    def list_participants(actor: Actor) -> List[User]:
        """Users that can be assigned to quizzes."""
        policy.authorize(actor, policy.LIST_PARTICIPANTS)
        return User.query.filter_by(role=Role.PARTICIPANT).order_by(User.id).all()

    @staticmethod
    def _apply_status(quiz: Quiz, status: str, expires_at, now: datetime) -> None:
        if quiz.is_deleted:
            raise ValidationError("Deleted quizzes cannot change status")
        if status not in TRANSITION_TARGETS:
            raise ValidationError(f"Status is required {' | '.join(TRANSITION_TARGETS)}")

        if status == QuizStatus.LIVE.value:
            if expires_at is UNSET:
                raise ValidationError("Expiration date is required to make the quiz live")
            if expires_at is not None and expires_at <= now:
                raise ValidationError("Expiration date must be in the future")
            quiz.status = QuizStatus.LIVE.value
            quiz.expires_at = expires_at
        else:
            quiz.status = QuizStatus.DRAFT.value
            quiz.expires_at = None

    @staticmethod
    def _add_question(quiz: Quiz, data: dict) -> Question:
        question = Question(quiz_id=quiz.id, question_text=data['question_text'])
        db.session.add(question)
        db.session.flush()
        QuizLifecycleManager._insert_options(question, data.get('options') or [])
        return question

    @staticmethod
    def _upsert_question(quiz: Quiz, data: dict) -> Question:
        question_id = data.get('id')
        if question_id is None:
            return QuizLifecycleManager._add_question(quiz, data)

        question = Question.query.filter_by(id=question_id, quiz_id=quiz.id).first()
        if question is None:
            raise NotFoundError(f"Question {question_id} not found in quiz {quiz.id}")

        if data.get('question_text'):
            question.question_text = data['question_text']
        if data.get('options') is not None:
            # Replace semantics: the submitted set becomes the full option set
            QuestionOption.query.filter_by(question_id=question.id).delete()
            db.session.flush()
            QuizLifecycleManager._insert_options(question, data['options'])
        return question

    @staticmethod
    def _insert_options(question: Question, options: List[dict]) -> None:
        for opt in options:
            db.session.add(QuestionOption(
                question_id=question.id,
                value=opt['value'],
                is_correct=bool(opt.get('is_correct', False)),
            ))

    @staticmethod
    def _replace_assignments(quiz: Quiz, user_ids: List[int]) -> None:
        valid_ids = resolve_participants(user_ids)
        QuizAssignment.query.filter_by(quiz_id=quiz.id).delete()
        db.session.flush()
        for user_id in valid_ids:
            db.session.add(QuizAssignment(quiz_id=quiz.id, user_id=user_id))
