"""
Database models for quiz functionality.

A quiz owns its questions, their options and its assignments. Attempts
belong to the (quiz, user) pair and form an append-only ledger.
"""
import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.dialects import mysql

from quizhub import db
from quizhub.common.timeutils import utcnow, to_iso


class QuizStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    LIVE = "LIVE"
    # Never stored; read projections report it for LIVE quizzes past their deadline
    EXPIRED = "EXPIRED"
    DELETED = "DELETED"


# MySQL collations default to case-insensitive comparison; quiz names are case-sensitive
QuizName = db.String(255).with_variant(mysql.VARCHAR(255, collation="utf8mb4_bin"), "mysql")


class Quiz(db.Model):
    """
    Model for quizzes.

    ``active_name`` mirrors ``name`` while the quiz is not deleted and is
    NULL afterwards, so the unique constraint on it only covers
    non-deleted quizzes.
    """
    __tablename__ = "quizzes"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    active_name = db.Column(QuizName, nullable=True)
    creator_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False, default=QuizStatus.DRAFT.value, index=True)
    expires_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, nullable=True, onupdate=utcnow)

    # Relationships
    creator = db.relationship("User", foreign_keys=[creator_id])
    questions = db.relationship("Question", backref="quiz", lazy="dynamic", cascade="all, delete-orphan", order_by="Question.id")
    assignments = db.relationship("QuizAssignment", backref="quiz", lazy="dynamic", cascade="all, delete-orphan")
    attempts = db.relationship("QuizAttempt", backref="quiz", lazy="dynamic")

    __table_args__ = (
        db.UniqueConstraint('active_name', name='uq_quizzes_active_name'),
        db.Index('ix_quizzes_status_expires', 'status', 'expires_at'),
    )

    def __repr__(self) -> str:
        return f"<Quiz {self.id}: {self.name} ({self.status})>"

    @property
    def is_deleted(self) -> bool:
        return self.status == QuizStatus.DELETED.value

    def rename(self, name: str) -> None:
        self.name = name
        if not self.is_deleted:
            self.active_name = name

    def mark_deleted(self) -> None:
        """Soft delete: the row stays for audit, the name is released."""
        self.status = QuizStatus.DELETED.value
        self.expires_at = None
        self.active_name = None

    def is_live(self, now: Optional[datetime] = None) -> bool:
        """Liveness predicate evaluated in Python."""
        now = now or utcnow()
        return self.status == QuizStatus.LIVE.value and (self.expires_at is None or self.expires_at > now)

    def effective_status(self, now: Optional[datetime] = None) -> str:
        """Stored status, with EXPIRED for a LIVE quiz whose deadline has passed."""
        if self.status == QuizStatus.LIVE.value and not self.is_live(now):
            return QuizStatus.EXPIRED.value
        return self.status

    @classmethod
    def live_clause(cls, now: datetime):
        """Liveness predicate as a SQL expression."""
        return and_(
            cls.status == QuizStatus.LIVE.value,
            or_(cls.expires_at.is_(None), cls.expires_at > now),
        )

    @classmethod
    def expired_clause(cls, now: datetime):
        return and_(cls.status == QuizStatus.LIVE.value, cls.expires_at <= now)

    def get_question_count(self) -> int:
        return self.questions.count()

    def to_dict(self, include_answers: bool = False, include_assignments: bool = False) -> dict:
        """
        Convert quiz to dictionary.

        Args:
            include_answers: Include ``is_correct`` on options (admin views only)
            include_assignments: Include assigned user ids
        """
        data = {
            'id': self.id,
            'name': self.name,
            'status': self.effective_status(),
            'expires_at': to_iso(self.expires_at),
            'creator_id': self.creator_id,
            'created_at': to_iso(self.created_at),
            'updated_at': to_iso(self.updated_at),
            'questions': [q.to_dict(include_answers=include_answers) for q in self.questions.all()],
        }
        if include_assignments:
            data['assigned_user_ids'] = sorted(a.user_id for a in self.assignments.all())
        return data

    def to_summary(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'status': self.effective_status(),
            'expires_at': to_iso(self.expires_at),
            'created_at': to_iso(self.created_at),
            'updated_at': to_iso(self.updated_at),
            'question_count': self.get_question_count(),
            'assignment_count': self.assignments.count(),
        }


class Question(db.Model):
    """Model for quiz questions. Every question is multiple choice."""
    __tablename__ = "questions"

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id", ondelete='CASCADE'), nullable=False, index=True)
    question_text = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    options = db.relationship("QuestionOption", backref="question", lazy="dynamic", cascade="all, delete-orphan", order_by="QuestionOption.id")

    def __repr__(self) -> str:
        return f"<Question {self.id} (quiz={self.quiz_id})>"

    def to_dict(self, include_answers: bool = False) -> dict:
        return {
            'id': self.id,
            'question_text': self.question_text,
            'options': [opt.to_dict(include_answers=include_answers) for opt in self.options.all()],
        }


class QuestionOption(db.Model):
    """Model for multiple choice options."""
    __tablename__ = "options"

    id = db.Column(db.Integer, primary_key=True)
    question_id = db.Column(db.Integer, db.ForeignKey("questions.id", ondelete='CASCADE'), nullable=False, index=True)
    value = db.Column(db.Text, nullable=False)
    is_correct = db.Column(db.Boolean, default=False, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<QuestionOption {self.id}: {self.value[:50]}>"

    def to_dict(self, include_answers: bool = False) -> dict:
        data = {'id': self.id, 'value': self.value}
        if include_answers:
            data['is_correct'] = self.is_correct
        return data


class QuizAssignment(db.Model):
    """Grant linking a participant to a quiz they may view and attempt."""
    __tablename__ = "quiz_assignments"

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id", ondelete='CASCADE'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    user = db.relationship("User", foreign_keys=[user_id])

    __table_args__ = (
        db.UniqueConstraint('quiz_id', 'user_id', name='uq_quiz_assignment'),
    )

    def __repr__(self) -> str:
        return f"<QuizAssignment quiz={self.quiz_id} user={self.user_id}>"


class QuizAttempt(db.Model):
    """
    One scored submission. Rows are written once and never updated.
    """
    __tablename__ = "quiz_attempts"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey("quizzes.id"), nullable=False, index=True)
    score_obtained = db.Column(db.Integer, nullable=False)
    score_total = db.Column(db.Integer, nullable=False)
    attempt_number = db.Column(db.Integer, nullable=False)
    completed_at = db.Column(db.DateTime, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    user = db.relationship("User", foreign_keys=[user_id])

    __table_args__ = (
        db.UniqueConstraint('quiz_id', 'user_id', 'attempt_number', name='uq_attempt_number'),
        db.Index('ix_quiz_attempts_quiz_user', 'quiz_id', 'user_id'),
    )

    def __repr__(self) -> str:
        return f"<QuizAttempt {self.id}: user={self.user_id} quiz={self.quiz_id} #{self.attempt_number}>"

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'user_id': self.user_id,
            'quiz_id': self.quiz_id,
            'score_obtained': self.score_obtained,
            'score_total': self.score_total,
            'attempt_number': self.attempt_number,
            'completed_at': to_iso(self.completed_at),
        }
