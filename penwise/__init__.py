# penwise/__init__.py
import os
import logging
from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS
from flask_sqlalchemy import SQLAlchemy
from flask_socketio import SocketIO
from flask_login import LoginManager

logger = logging.getLogger(__name__)

db = SQLAlchemy()
socketio = SocketIO()
login_manager = LoginManager()

CORS_ALLOW_HEADERS = ['authorization', 'x-client-info', 'apikey', 'content-type']
CORS_METHODS = ['GET', 'POST', 'DELETE', 'OPTIONS']


def create_app(test_config=None):
    load_dotenv()
    app = Flask(__name__, instance_relative_config=True)

    app.config.from_mapping({
        'SECRET_KEY': os.getenv('SECRET_KEY', 'a-super-secret-key-that-you-should-change'),
        'SQLALCHEMY_DATABASE_URI': os.getenv(
            'DATABASE_URL', f"sqlite:///{os.path.join(app.instance_path, 'penwise.db')}"),
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'UPSTREAM_API_URL': os.getenv(
            'UPSTREAM_API_URL', 'https://ai.gateway.lovable.dev/v1/chat/completions'),
        'UPSTREAM_API_KEY': os.getenv('UPSTREAM_API_KEY'),
        'UPSTREAM_MODEL': os.getenv('UPSTREAM_MODEL', 'google/gemini-2.5-flash'),
        'UPSTREAM_TIMEOUT': float(os.getenv('UPSTREAM_TIMEOUT')) if os.getenv('UPSTREAM_TIMEOUT') else None,
        'SIGNUP_CREDITS': int(os.getenv('SIGNUP_CREDITS', 10)),
        'TOKEN_TTL_SECONDS': int(os.getenv('TOKEN_TTL_SECONDS', 7 * 24 * 3600)),
        'STREAM_DONE_RECORD': os.getenv('STREAM_DONE_RECORD', 'false').lower() in ('1', 'true', 'yes'),
        'LOG_LEVEL': os.getenv('LOG_LEVEL', 'INFO'),
    })
    if test_config:
        app.config.from_mapping(test_config)

    logging.basicConfig(level=app.config['LOG_LEVEL'])

    # Fix for Render-style PostgreSQL URLs
    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('postgres://'):
        app.config['SQLALCHEMY_DATABASE_URI'] = app.config['SQLALCHEMY_DATABASE_URI'].replace(
            'postgres://', 'postgresql://', 1)

    # Ensure instance folder exists
    os.makedirs(app.instance_path, exist_ok=True)

    if not app.config['UPSTREAM_API_KEY']:
        logger.warning("UPSTREAM_API_KEY is not set; generation requests will be rejected upstream")

    db.init_app(app)
    socketio.init_app(app, cors_allowed_origins='*')
    login_manager.init_app(app)
    CORS(app, resources={r"/*": {"origins": "*"}},
         allow_headers=CORS_ALLOW_HEADERS, methods=CORS_METHODS)

    from .upstream import UpstreamClient
    from .ledger import CreditLedger

    app.extensions['penwise.upstream'] = UpstreamClient(
        app.config['UPSTREAM_API_URL'],
        app.config['UPSTREAM_API_KEY'],
        app.config['UPSTREAM_MODEL'],
        timeout=app.config['UPSTREAM_TIMEOUT'],
    )
    app.extensions['penwise.ledger'] = CreditLedger()

    from . import credentials, events  # noqa: F401  (registers loaders and socket handlers)
    from .errors import register_error_handlers
    register_error_handlers(app)

    from .blueprints.main import main_bp
    from .blueprints.auth import auth_bp
    from .blueprints.content import content_bp
    from .blueprints.generate import generate_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(content_bp, url_prefix='/content')
    app.register_blueprint(generate_bp, url_prefix='/functions/v1')

    with app.app_context():
        db.create_all()

    return app
