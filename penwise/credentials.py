# penwise/credentials.py
"""Bearer-token sessions: issuing, resolving and revoking them.

The same resolution backs two entry points. The generation relay calls
`authenticate_request` directly so it can stop before touching the ledger,
and every other blueprint relies on Flask-Login's `request_loader`.
"""
import logging
import secrets
from datetime import datetime, timedelta, timezone
from functools import wraps
from flask import current_app, request
from . import db, login_manager
from .errors import Unauthenticated, error_response
from .models import AuthSession, User

logger = logging.getLogger(__name__)

BEARER_PREFIX = 'Bearer '


def parse_bearer(header):
    """Return the token from an `Authorization: Bearer <token>` header value."""
    if not header or not header.startswith(BEARER_PREFIX):
        raise Unauthenticated('Missing Authorization header')
    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise Unauthenticated('Missing Authorization header')
    return token


def resolve_token(token):
    session = AuthSession.query.filter_by(token=token).first()
    if session is None or not session.is_live():
        return None
    return db.session.get(User, session.user_id)


def authenticate_request(req=None):
    req = req or request
    token = parse_bearer(req.headers.get('Authorization'))
    user = resolve_token(token)
    if user is None:
        logger.warning("Auth error: token did not resolve to a live session")
        raise Unauthenticated('User not authenticated')
    return user


def issue_token(user):
    ttl = timedelta(seconds=current_app.config['TOKEN_TTL_SECONDS'])
    session = AuthSession(
        token=secrets.token_urlsafe(32),
        user_id=user.id,
        expires_at=datetime.now(timezone.utc) + ttl,
    )
    db.session.add(session)
    db.session.commit()
    return session


def revoke_token(token):
    session = AuthSession.query.filter_by(token=token).first()
    if session is None:
        return False
    session.revoked = True
    db.session.commit()
    return True


def require_token(func):
    """Resolve the bearer token and pass the user as the first argument."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        user = authenticate_request()
        return func(user, *args, **kwargs)
    return wrapper


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


@login_manager.request_loader
def load_user_from_request(req):
    try:
        token = parse_bearer(req.headers.get('Authorization'))
    except Unauthenticated:
        return None
    return resolve_token(token)


@login_manager.unauthorized_handler
def unauthorized():
    return error_response('User not authenticated', 401)
