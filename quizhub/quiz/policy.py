"""
Access policy for the quiz core.

The identity layer hands the core an ``Actor``; every service operation
calls ``authorize`` with the action it is about to perform before touching
the store.
"""
from dataclasses import dataclass

from flask import current_app

from quizhub.auth.models import Role
from quizhub.quiz.errors import AuthorizationError


@dataclass(frozen=True)
class Actor:
    """Authenticated caller as supplied by the identity layer."""
    user_id: int
    role: str


# Actions
CREATE_QUIZ = "quiz:create"
UPDATE_QUIZ = "quiz:update"
DELETE_QUIZ = "quiz:delete"
PUBLISH_QUIZ = "quiz:publish"
VIEW_ALL_QUIZZES = "quiz:view_all"
VIEW_ATTEMPT_LEDGER = "quiz:view_attempts"
LIST_PARTICIPANTS = "users:list_participants"
ATTEMPT_QUIZ = "quiz:attempt"
VIEW_OWN_RESULTS = "results:view_own"

PERMISSIONS = {
    Role.ADMIN: frozenset({
        CREATE_QUIZ,
        UPDATE_QUIZ,
        DELETE_QUIZ,
        PUBLISH_QUIZ,
        VIEW_ALL_QUIZZES,
        VIEW_ATTEMPT_LEDGER,
        LIST_PARTICIPANTS,
    }),
    Role.PARTICIPANT: frozenset({
        ATTEMPT_QUIZ,
        VIEW_OWN_RESULTS,
    }),
}

_DENIAL_MESSAGES = {
    CREATE_QUIZ: "Only admins can create quizzes",
    UPDATE_QUIZ: "Only admins can update quizzes",
    DELETE_QUIZ: "Only admins can delete quizzes",
    PUBLISH_QUIZ: "Only admins can change the quiz status",
    VIEW_ALL_QUIZZES: "Only admins can browse all quizzes",
    VIEW_ATTEMPT_LEDGER: "Only admins can view quiz attempts",
    LIST_PARTICIPANTS: "Only admins can list participants",
    ATTEMPT_QUIZ: "Only participants can attempt quizzes",
    VIEW_OWN_RESULTS: "Only participants have quiz results",
}


def is_allowed(actor: Actor, action: str) -> bool:
    return action in PERMISSIONS.get(actor.role, frozenset())


def authorize(actor: Actor, action: str) -> None:
    """
    Raise ``AuthorizationError`` unless the actor's role grants the action.

    Args:
        actor: Caller identity
        action: One of the action constants of this module
    """
    if is_allowed(actor, action):
        return
    current_app.logger.warning(
        f"SECURITY: Unauthorized access - User ID: {actor.user_id}, "
        f"Role: {actor.role}, Action: {action}"
    )
    raise AuthorizationError(_DENIAL_MESSAGES.get(action, "Unauthorized"))
