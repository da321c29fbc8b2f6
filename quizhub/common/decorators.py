from functools import wraps
from flask import jsonify
from flask_login import current_user

from quizhub.quiz.policy import Actor


def api_login_required(f):
    """Decorator to require login for a JSON API route."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({'success': False, 'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function


def current_actor() -> Actor:
    """Build the core Actor for the logged in user."""
    return Actor(user_id=current_user.id, role=current_user.role)

