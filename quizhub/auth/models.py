from flask_login import UserMixin

from quizhub import db
from quizhub.common.timeutils import utcnow


class Role:
    """Roles issued by the identity layer."""
    ADMIN = "ADMIN"
    PARTICIPANT = "PARTICIPANT"


class User(db.Model, UserMixin):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(255), nullable=True)
    role = db.Column(db.String(20), nullable=False, default=Role.PARTICIPANT, index=True)
    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, nullable=True, onupdate=utcnow)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<User {self.email} ({self.role})>"

    @property
    def is_active(self) -> bool:
        # Flask-Login refuses to log in inactive users
        return bool(self.is_verified)

    def to_dict(self):
        """Convert user to dictionary."""
        return {
            'id': self.id,
            'email': self.email,
            'full_name': self.full_name,
            'role': self.role,
            'is_verified': self.is_verified,
        }
