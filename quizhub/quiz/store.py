"""
Quiz store helpers: the transaction scope and the lookups shared by the
lifecycle manager, the assessment engine and the result aggregator.
"""
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from quizhub import db
from quizhub.auth.models import Role, User
from quizhub.quiz.errors import ConflictError, NotFoundError, StorageFailure, ValidationError
from quizhub.quiz.models import Quiz


@contextmanager
def atomic(conflict: Optional[str] = None) -> Iterator:
    """
    Run a block of store operations as one all-or-nothing transaction.

    Commits when the block finishes; on any failure the session is rolled
    back so that no partial change is ever visible.

    Args:
        conflict: Message for ``ConflictError`` when a uniqueness constraint
            rejects the write. Without it integrity errors surface as
            ``StorageFailure``.
    """
    try:
        yield db.session
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        if conflict:
            current_app.logger.info(f"Write rejected by constraint: {e.orig}")
            raise ConflictError(conflict) from e
        current_app.logger.exception("Transaction aborted by integrity error")
        raise StorageFailure("The change could not be saved") from e
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.exception("Transaction aborted")
        raise StorageFailure("The quiz store is unavailable") from e
    except Exception:
        db.session.rollback()
        raise


def get_quiz(quiz_id: int, lock: bool = False) -> Quiz:
    """
    Load a quiz by id, including deleted ones.

    Raises:
        NotFoundError: if no quiz has this id
    """
    query = Quiz.query.filter_by(id=quiz_id)
    if lock:
        query = query.with_for_update()
    quiz = query.first()
    if quiz is None:
        raise NotFoundError(f"Quiz {quiz_id} not found")
    return quiz


def resolve_participants(user_ids: Iterable[int]) -> List[int]:
    """
    Check that every id names an existing participant.

    Duplicates are collapsed, keeping the first occurrence.

    Raises:
        ValidationError: if any id is unknown or not a participant
    """
    unique_ids = list(dict.fromkeys(user_ids))
    if not unique_ids:
        return []
    found = {
        row.id for row in db.session.query(User.id)
        .filter(User.id.in_(unique_ids), User.role == Role.PARTICIPANT)
        .all()
    }
    missing = [uid for uid in unique_ids if uid not in found]
    if missing:
        raise ValidationError(
            "Some assigned users do not exist or are not PARTICIPANT role",
            details=[f"user {uid} cannot be assigned" for uid in missing],
        )
    return unique_ids
