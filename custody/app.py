import logging

import click
from flask import Flask, json, jsonify
from flask.cli import with_appcontext
from werkzeug.exceptions import HTTPException

from .audit import SQLAlchemyAuditSink
from .auth import hash_password, jwt
from .config import Settings
from .database import db
from .encryption import CipherService
from .errors import CustodyError
from .extensions import cors, limiter, migrate
from .keys import KeyGenerator
from .models import Admin
from .policy import Role
from .routes import bp
from .service import CustodyService

logger = logging.getLogger(__name__)


def create_app(settings=None, audit_sink=None):
    """Build the custody API.

    ``settings`` defaults to ``Settings.from_env()``; a ConfigurationError from
    it propagates so the process never starts with bad secrets. ``audit_sink``
    defaults to the database-backed sink.
    """
    if settings is None:
        settings = Settings.from_env()
    logging.getLogger('custody').setLevel(settings.log_level)

    app = Flask(__name__)
    app.config["JWT_SECRET_KEY"] = settings.jwt_secret_key.get_secret_value()
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = settings.token_ttl
    app.config["JWT_TOKEN_LOCATION"] = ["headers"]
    app.config['SQLALCHEMY_DATABASE_URI'] = settings.database_uri
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config["RATELIMIT_ENABLED"] = settings.ratelimit_enabled
    app.config["RATELIMIT_DEFAULT"] = settings.ratelimit_default
    app.config["RATELIMIT_STORAGE_URI"] = "memory://"
    app.config["CUSTODY_SETTINGS"] = settings

    jwt.init_app(app)
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors.init_app(app, resources={r"/*": {"origins": settings.cors_origins}})

    app.extensions['custody'] = CustodyService(
        db=db,
        cipher=CipherService(settings.encryption_key.get_secret_value()),
        keys=KeyGenerator(),
        audit=audit_sink if audit_sink is not None else SQLAlchemyAuditSink(db),
    )
    app.register_blueprint(bp)
    register_error_handlers(app)
    app.after_request(add_security_headers)
    app.cli.add_command(create_admin_command)

    with app.app_context():
        db.create_all()
        if settings.admin_password is not None:
            ensure_admin(settings.admin_email, settings.admin_password.get_secret_value())

    logger.info("Custody API ready (database=%s, cors=%s)",
                settings.database_uri.split('://', 1)[0], settings.cors_origins)
    return app


def ensure_admin(email, password):
    """Create the bootstrap admin unless one with ``email`` already exists."""
    if Admin.query.filter_by(email=email).first() is not None:
        return False
    db.session.add(Admin(email=email, password_hash=hash_password(password), role=Role.ADMIN.value))
    db.session.commit()
    logger.warning("Default admin %s created; change its password immediately", email)
    return True


@click.command('create-admin')
@click.option('--email', required=True, help='Admin email address.')
@click.password_option()
@with_appcontext
def create_admin_command(email, password):
    """Create an admin account if it does not exist yet."""
    if ensure_admin(email.strip().lower(), password):
        click.echo(f"Admin {email} created")
    else:
        click.echo(f"Admin {email} already exists")


def register_error_handlers(app):
    @app.errorhandler(CustodyError)
    def handle_custody_error(e):
        return jsonify({'error': e.message}), e.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        if isinstance(e, HTTPException):
            # Keep the headers werkzeug and the limiter set (Allow, Retry-After).
            response = e.get_response()
            response.data = json.dumps({'error': e.description})
            response.content_type = 'application/json'
            return response
        logger.exception("Unhandled error")
        return jsonify({'error': 'Internal server error'}), 500


def add_security_headers(response):
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains; preload"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "no-referrer"
    response.headers["Cache-Control"] = "no-store"
    # JSON only; nothing to load.
    response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
    return response
