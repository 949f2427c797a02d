# penwise/blueprints/auth.py
import logging
from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required
from penwise import db
from penwise.credentials import issue_token, parse_bearer, revoke_token
from penwise.errors import BadRequest, Unauthenticated
from penwise.models import Profile, User
from penwise.schemas import CredentialsRequest, parse_body

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


def _session_payload(user, session):
    return {
        'access_token': session.token,
        'token_type': 'bearer',
        'expires_at': session.expires_at.isoformat(),
        'user': user.to_dict(),
    }


@auth_bp.route('/register', methods=['POST'])
def register():
    body = parse_body(CredentialsRequest)
    if User.query.filter_by(email=body.email).first():
        raise BadRequest('Email address is already registered.')

    new_user = User(email=body.email)
    new_user.set_password(body.password)
    new_user.profile = Profile(credits=current_app.config['SIGNUP_CREDITS'], plan='free')
    db.session.add(new_user)
    db.session.commit()
    logger.info(f"Registered user {new_user.id}")

    session = issue_token(new_user)
    return jsonify(_session_payload(new_user, session)), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    body = parse_body(CredentialsRequest)
    user = User.query.filter_by(email=body.email).first()
    if not user or not user.check_password(body.password):
        raise Unauthenticated('Invalid email or password.')
    session = issue_token(user)
    return jsonify(_session_payload(user, session))


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    revoke_token(parse_bearer(request.headers.get('Authorization')))
    return jsonify({'status': 'signed_out'})


@auth_bp.route('/me')
@login_required
def me():
    profile = current_user.profile
    return jsonify({
        'user': current_user.to_dict(),
        'profile': profile.to_dict() if profile else None,
    })
