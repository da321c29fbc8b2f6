"""
Configuration module for the application.
All configuration values are read from environment variables.
Values that the quiz core depends on carry safe defaults.
"""
import os
import secrets
import warnings


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self):
        """Initialize configuration from environment variables."""
        # Flask Configuration
        self.SECRET_KEY: str = os.getenv("SECRET_KEY", "")
        self.FLASK_ENV: str = os.getenv("FLASK_ENV", "")
        self.FLASK_DEBUG: bool = os.getenv("FLASK_DEBUG", "").lower() == "true"

        # Generate a development SECRET_KEY if not set and in development mode
        if not self.SECRET_KEY and self.FLASK_ENV != "production":
            self.SECRET_KEY = secrets.token_urlsafe(32)
            warnings.warn(
                "SECRET_KEY not set. Generated a temporary key for development. "
                "Set SECRET_KEY in your .env file for production!",
                UserWarning
            )

        # Database Configuration
        # DATABASE_URL wins over the individual DB_* values when set
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "")
        self.DB_USER: str = os.getenv("DB_USER", "")
        self.DB_PASSWORD: str = os.getenv("DB_PASSWORD", "")
        self.DB_HOST: str = os.getenv("DB_HOST", "")
        self.DB_PORT: str = os.getenv("DB_PORT", "")
        self.DB_NAME: str = os.getenv("DB_NAME", "")

        # API Configuration
        self.AUTH_API_PREFIX: str = os.getenv("AUTH_API_PREFIX", "/api/v1/auth")
        self.QUIZ_API_PREFIX: str = os.getenv("QUIZ_API_PREFIX", "/api/v1/quizzes")

        # Session Configuration
        session_secure = os.getenv("SESSION_COOKIE_SECURE", "")
        self.SESSION_COOKIE_SECURE: bool = session_secure.lower() == "true" if session_secure else False
        session_httponly = os.getenv("SESSION_COOKIE_HTTPONLY", "")
        self.SESSION_COOKIE_HTTPONLY: bool = session_httponly.lower() == "true" if session_httponly else True
        self.SESSION_COOKIE_SAMESITE: str = os.getenv("SESSION_COOKIE_SAMESITE", "Lax")

        # SQLAlchemy Configuration
        self.SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
        sqlalchemy_echo = os.getenv("SQLALCHEMY_ECHO", "")
        self.SQLALCHEMY_ECHO: bool = sqlalchemy_echo.lower() == "true" if sqlalchemy_echo else False

        # Logging
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

        # Quiz rules
        retries = os.getenv("ATTEMPT_CONFLICT_RETRIES", "")
        self.ATTEMPT_CONFLICT_RETRIES: int = int(retries) if retries else 1
        name_min = os.getenv("QUIZ_NAME_MIN_LENGTH", "")
        self.QUIZ_NAME_MIN_LENGTH: int = int(name_min) if name_min else 3
        name_max = os.getenv("QUIZ_NAME_MAX_LENGTH", "")
        self.QUIZ_NAME_MAX_LENGTH: int = int(name_max) if name_max else 255
        question_min = os.getenv("QUESTION_TEXT_MIN_LENGTH", "")
        self.QUESTION_TEXT_MIN_LENGTH: int = int(question_min) if question_min else 5

    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        """Construct database URI from environment variables."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    @property
    def is_sqlite(self) -> bool:
        return self.SQLALCHEMY_DATABASE_URI.startswith("sqlite")

    def validate(self) -> None:
        """
        Validate required configuration values.
        Only enforces SECRET_KEY in production environment.
        """
        if not self.SECRET_KEY:
            if self.FLASK_ENV == "production":
                raise ValueError(
                    "SECRET_KEY environment variable is required in production. "
                    "Set it in your .env file or environment variables."
                )
        if self.ATTEMPT_CONFLICT_RETRIES < 0:
            raise ValueError("ATTEMPT_CONFLICT_RETRIES must not be negative")


# Global config instance - will be re-initialized after load_dotenv()
config = Config()
