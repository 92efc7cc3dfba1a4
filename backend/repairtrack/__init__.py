from flask import Flask
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from typing import Optional, Dict, Any
import os

load_dotenv()

db_engine = None
SessionLocal = None
jwt = JWTManager()


def create_app(config: Optional[Dict[str, Any]] = None):
    global db_engine, SessionLocal
    app = Flask(__name__)

    from .config.tracking import load_tracking_config
    app.config['JWT_SECRET_KEY'] = os.getenv('JWT_SECRET_KEY', 'dev-secret')
    app.config['DATABASE_URL'] = os.getenv('DATABASE_URL', 'sqlite:///dev.db')
    app.config['LOG_LEVEL'] = os.getenv('LOG_LEVEL', 'INFO')
    app.config.update(load_tracking_config(os.environ))

    if config:
        # allow tests or callers to override default config values
        app.config.update(config)

    app.logger.setLevel(app.config['LOG_LEVEL'])

    # Database
    db_url = app.config['DATABASE_URL']
    if db_url.endswith(':memory:'):
        # Ensure a single shared in-memory SQLite database across all sessions
        db_engine = create_engine(
            db_url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        db_engine = create_engine(db_url, echo=False, future=True)
    SessionLocal = scoped_session(sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False))

    @app.teardown_appcontext
    def remove_session(exc=None):  # type: ignore
        # ends the request's transaction and drops its identity map
        SessionLocal.remove()

    jwt.init_app(app)

    # One limiter per process, shared by every request this app handles
    from .services.rate_limiter import SlidingWindowRateLimiter
    app.extensions['tracking_rate_limiter'] = SlidingWindowRateLimiter(
        window_seconds=app.config['TRACKING_RATE_LIMIT_WINDOW'],
        max_requests=app.config['TRACKING_RATE_LIMIT_MAX'],
        cleanup_probability=app.config['TRACKING_RATE_LIMIT_CLEANUP_PROBABILITY'],
    )

    from .routes.tracking import tracking_bp  # public customer tracking
    from .routes.kva_admin import kva_admin_bp  # staff-side KVA tooling
    app.register_blueprint(tracking_bp, url_prefix='/tracking')
    app.register_blueprint(kva_admin_bp, url_prefix='/tracking/admin')

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    # Unified error handler producing standardized JSON shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            payload = {
                'error': {
                    'status': e.code,
                    'title': e.name,
                    'detail': e.description,
                }
            }
            return payload, e.code
        # Unhandled exception
        app.logger.exception('Unhandled exception')
        return {
            'error': {
                'status': 500,
                'title': 'Internal Server Error',
                'detail': 'Unexpected error'
            }
        }, 500

    return app


def get_db():
    return SessionLocal()
