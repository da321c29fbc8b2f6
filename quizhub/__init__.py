import logging
from typing import Optional

from flask import Flask, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from dotenv import load_dotenv
from flask_migrate import Migrate
from flask_compress import Compress

# Load environment variables early so config is available for blueprint creation
load_dotenv()

from quizhub.config import config

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
compress = Compress()


def create_app(overrides: Optional[dict] = None) -> Flask:
    """
    Application factory for the Flask app.
    Loads environment variables, configures the database,
    and registers blueprints.

    Args:
        overrides: Optional mapping applied on top of the environment
            configuration (used by tests and scripts).
    """
    # Re-initialize config to ensure latest .env values are loaded
    from quizhub.config import Config
    global config
    config = Config()

    # Validate configuration
    config.validate()

    app = Flask(__name__)

    app.config["SECRET_KEY"] = config.SECRET_KEY
    app.config["SQLALCHEMY_DATABASE_URI"] = config.SQLALCHEMY_DATABASE_URI
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = config.SQLALCHEMY_TRACK_MODIFICATIONS
    app.config["SQLALCHEMY_ECHO"] = config.SQLALCHEMY_ECHO
    if not config.is_sqlite:
        # Connection pooling for server databases; SQLite keeps the driver defaults
        app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {
            "pool_size": 10,
            "pool_recycle": 3600,
            "pool_pre_ping": True,
            "max_overflow": 20,
        }

    # Response compression settings
    app.config["COMPRESS_MIMETYPES"] = ['application/json']
    app.config["COMPRESS_LEVEL"] = 6
    app.config["COMPRESS_MIN_SIZE"] = 500
    app.config["SESSION_COOKIE_SECURE"] = config.SESSION_COOKIE_SECURE
    app.config["SESSION_COOKIE_HTTPONLY"] = config.SESSION_COOKIE_HTTPONLY
    app.config["SESSION_COOKIE_SAMESITE"] = config.SESSION_COOKIE_SAMESITE

    # Quiz rules read by the services through current_app.config
    app.config["ATTEMPT_CONFLICT_RETRIES"] = config.ATTEMPT_CONFLICT_RETRIES
    app.config["QUIZ_NAME_MIN_LENGTH"] = config.QUIZ_NAME_MIN_LENGTH
    app.config["QUIZ_NAME_MAX_LENGTH"] = config.QUIZ_NAME_MAX_LENGTH
    app.config["QUESTION_TEXT_MIN_LENGTH"] = config.QUESTION_TEXT_MIN_LENGTH

    if overrides:
        app.config.update(overrides)

    app.logger.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    compress.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        from quizhub.auth.models import User
        try:
            return db.session.get(User, int(user_id))
        except (ValueError, TypeError):
            return None

    @login_manager.unauthorized_handler
    def handle_unauthorized():
        return jsonify({'success': False, 'error': 'Authentication required'}), 401

    # Register blueprints
    from quizhub.auth import auth_bp
    app.register_blueprint(auth_bp)

    from quizhub.quiz import quiz_bp
    app.register_blueprint(quiz_bp)

    @app.errorhandler(404)
    def handle_404(e):
        """Return JSON for unknown routes."""
        app.logger.warning(f"404 error: {request.method} {request.path}")
        return jsonify({
            'success': False,
            'error': f'Route not found: {request.method} {request.path}',
            'path': request.path,
            'method': request.method
        }), 404

    @app.errorhandler(405)
    def handle_405(e):
        """Handle 405 Method Not Allowed with a JSON body."""
        app.logger.warning(f"405 error: {request.method} {request.path}")
        return jsonify({
            'success': False,
            'error': f'Method not allowed: {request.method} {request.path}',
            'path': request.path,
            'method': request.method
        }), 405

    # Create tables if they do not exist
    with app.app_context():
        from quizhub.auth.models import User  # noqa: F401
        from quizhub.quiz import models  # noqa: F401
        db.create_all()

    return app
