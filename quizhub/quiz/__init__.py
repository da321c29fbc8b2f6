"""
Quiz module: lifecycle management for admins, attempts and results for
participants.
"""
from flask import Blueprint, jsonify
from quizhub.config import config
from quizhub.quiz.errors import QuizError

quiz_bp = Blueprint('quiz', __name__, url_prefix=config.QUIZ_API_PREFIX)


@quiz_bp.errorhandler(QuizError)
def handle_quiz_error(e):
    """Render core failures as the JSON error envelope."""
    return jsonify(e.to_dict()), e.status_code


from quizhub.quiz import admin_routes  # noqa: E402,F401
from quizhub.quiz import participant_routes  # noqa: E402,F401
