"""
Pytest configuration and fixtures for testing.

The application runs against an in-memory SQLite database. Tables are
created before and dropped after every test. Factory fixtures open their
own application context and return detached objects or plain dicts, so
they can be used both by service level tests (which push ``ctx``) and by
HTTP tests (which must not hold an application context while requests are
made, since Flask-Login caches the user on ``g``).
"""
import os
from datetime import timedelta

import pytest

# Set test environment variables BEFORE importing the app package
os.environ['FLASK_ENV'] = 'testing'
os.environ['SECRET_KEY'] = 'test-secret-key-for-quizhub'
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['AUTH_API_PREFIX'] = '/api/v1/auth'
os.environ['QUIZ_API_PREFIX'] = '/api/v1/quizzes'
os.environ['LOG_LEVEL'] = 'WARNING'

from flask_login import FlaskLoginClient  # noqa: E402

from quizhub import create_app, db  # noqa: E402
from quizhub.auth.models import Role, User  # noqa: E402
from quizhub.auth.utils import hash_password  # noqa: E402
from quizhub.common.timeutils import utcnow  # noqa: E402
from quizhub.quiz.lifecycle import QuizLifecycleManager, UNSET  # noqa: E402
from quizhub.quiz.models import Quiz  # noqa: E402
from quizhub.quiz.policy import Actor  # noqa: E402

PASSWORD = 'password123'

QUIZ_API = '/api/v1/quizzes'
AUTH_API = '/api/v1/auth'


def sample_questions():
    """Two questions, one correct option each."""
    return [
        {
            'question_text': 'What is 2 + 2?',
            'options': [
                {'value': '3', 'is_correct': False},
                {'value': '4', 'is_correct': True},
            ],
        },
        {
            'question_text': 'What is the capital of France?',
            'options': [
                {'value': 'Paris', 'is_correct': True},
                {'value': 'Lyon', 'is_correct': False},
                {'value': 'Nice', 'is_correct': False},
            ],
        },
    ]


def correct_answers(quiz_data):
    """Answer pairs selecting every correct option of a quiz snapshot."""
    return [
        {'question_id': q['id'], 'option_id': opt['id']}
        for q in quiz_data['questions']
        for opt in q['options']
        if opt['is_correct']
    ]


def wrong_answers(quiz_data):
    return [
        {'question_id': q['id'], 'option_id': next(o['id'] for o in q['options'] if not o['is_correct'])}
        for q in quiz_data['questions']
    ]


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({'TESTING': True})
    app.test_client_class = FlaskLoginClient
    yield app


@pytest.fixture(autouse=True)
def database(app):
    """Fresh schema for every test."""
    with app.app_context():
        db.create_all()
    yield
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    """Application context for tests that call the services directly."""
    with app.app_context():
        yield
        db.session.remove()


@pytest.fixture(scope='session')
def password_hash():
    return hash_password(PASSWORD)


@pytest.fixture
def make_user(app, password_hash):
    """Factory creating verified users."""
    counter = {'n': 0}

    def _make_user(role=Role.PARTICIPANT, email=None, verified=True):
        counter['n'] += 1
        with app.app_context():
            user = User(
                email=email or f"{role.lower()}{counter['n']}@example.com",
                password_hash=password_hash,
                full_name=f"{role.title()} {counter['n']}",
                role=role,
                is_verified=verified,
            )
            db.session.add(user)
            db.session.commit()
            db.session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN, email='admin@example.com')


@pytest.fixture
def participant(make_user):
    return make_user(Role.PARTICIPANT, email='alice@example.com')


@pytest.fixture
def other_participant(make_user):
    return make_user(Role.PARTICIPANT, email='bob@example.com')


@pytest.fixture
def admin_actor(admin):
    return Actor(user_id=admin.id, role=Role.ADMIN)


@pytest.fixture
def participant_actor(participant):
    return Actor(user_id=participant.id, role=Role.PARTICIPANT)


@pytest.fixture
def other_actor(other_participant):
    return Actor(user_id=other_participant.id, role=Role.PARTICIPANT)


@pytest.fixture
def make_quiz(app, admin_actor):
    """
    Factory creating a quiz through the lifecycle manager.

    Returns the admin snapshot of the quiz (answers and assignments included).
    """
    counter = {'n': 0}

    def _make_quiz(name=None, questions=None, assigned=(), live=False, expires_at=UNSET):
        counter['n'] += 1
        with app.app_context():
            quiz = QuizLifecycleManager.create_quiz(
                admin_actor,
                name or f"Quiz {counter['n']}",
                questions if questions is not None else sample_questions(),
                list(assigned),
            )
            if live:
                if expires_at is UNSET:
                    expires_at = utcnow() + timedelta(days=1)
                quiz = QuizLifecycleManager.set_status(admin_actor, quiz.id, 'LIVE', expires_at)
            return quiz.to_dict(include_answers=True, include_assignments=True)

    return _make_quiz


@pytest.fixture
def expire_quiz(app):
    """Move a quiz's deadline into the past without going through validation."""
    def _expire_quiz(quiz_id):
        with app.app_context():
            quiz = db.session.get(Quiz, quiz_id)
            quiz.expires_at = utcnow() - timedelta(minutes=1)
            db.session.commit()

    return _expire_quiz


@pytest.fixture
def client(app):
    """Anonymous test client."""
    return app.test_client()


@pytest.fixture
def admin_client(app, admin):
    return app.test_client(user=admin)


@pytest.fixture
def participant_client(app, participant):
    return app.test_client(user=participant)


@pytest.fixture
def other_client(app, other_participant):
    return app.test_client(user=other_participant)
