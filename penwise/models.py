# penwise/models.py
from datetime import datetime, timezone
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from . import db


def _utcnow():
    return datetime.now(timezone.utc)


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(150), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    profile = db.relationship('Profile', backref='user', uselist=False, cascade='all, delete-orphan')
    contents = db.relationship('SavedContent', backref='author', lazy='dynamic', cascade='all, delete-orphan')
    sessions = db.relationship('AuthSession', backref='user', lazy='dynamic', cascade='all, delete-orphan')

    def set_password(self, password):
        if not password:
            raise ValueError("Password cannot be empty")
        self.password_hash = generate_password_hash(password, method='pbkdf2:sha256')

    def check_password(self, password):
        if not self.password_hash or not password:
            return False
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class Profile(db.Model):
    """Metering row for a user. The relay reads and decrements `credits`."""
    __tablename__ = 'profiles'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True, nullable=False)
    credits = db.Column(db.Integer, nullable=False, default=10)
    plan = db.Column(db.String(50), nullable=False, default='free')

    __table_args__ = (db.CheckConstraint('credits >= 0', name='ck_profiles_credits_non_negative'),)

    def to_dict(self):
        return {'credits': self.credits, 'plan': self.plan}


class AuthSession(db.Model):
    __tablename__ = 'auth_sessions'

    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(db.String(128), unique=True, nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    revoked = db.Column(db.Boolean, nullable=False, default=False)

    def is_live(self, now=None):
        now = now or _utcnow()
        expires_at = self.expires_at
        # SQLite hands back naive datetimes
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return not self.revoked and expires_at > now


class SavedContent(db.Model):
    __tablename__ = 'generated_content'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    content = db.Column(db.Text, nullable=False)
    content_type = db.Column(db.String(50), nullable=False)
    tone = db.Column(db.String(100))
    style = db.Column(db.String(100))
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, index=True)

    def to_dict(self, include_content=True):
        data = {
            'id': self.id,
            'title': self.title,
            'content_type': self.content_type,
            'tone': self.tone,
            'style': self.style,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'user_id': self.user_id,
        }
        if include_content:
            data['content'] = self.content
        return data
