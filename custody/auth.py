"""
Bearer token authentication.

Tokens are JWTs signed with JWT_SECRET_KEY through Flask-JWT-Extended. They
carry only the caller's email (``sub``) and role, expire after the configured
TTL and are not revocable server-side.
"""
import logging
from functools import wraps

from flask import jsonify
from flask_jwt_extended import JWTManager, create_access_token, get_jwt, get_jwt_identity, verify_jwt_in_request
from werkzeug.security import check_password_hash, generate_password_hash

from .errors import AuthenticationError, NotFound
from .models import Admin, Employee
from .policy import Caller, Role

logger = logging.getLogger(__name__)

jwt = JWTManager()


@jwt.unauthorized_loader
def _missing_token(reason):
    return jsonify({'error': 'Access token required'}), 401


@jwt.invalid_token_loader
def _invalid_token(reason):
    return jsonify({'error': 'Invalid token'}), 403


@jwt.expired_token_loader
def _expired_token(jwt_header, jwt_payload):
    return jsonify({'error': 'Invalid token'}), 403


def issue_token(email, role):
    return create_access_token(identity=email, additional_claims={'role': Role(role).value})


def current_caller():
    """Return the Caller for the verified token of the current request."""
    try:
        role = Role(get_jwt().get('role'))
    except ValueError:
        raise AuthenticationError('Invalid token') from None
    return Caller(email=get_jwt_identity(), role=role)


def authenticated(fn):
    """Require a valid bearer token and pass the resolved Caller as first argument."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        return fn(current_caller(), *args, **kwargs)
    return wrapper


def hash_password(password):
    return generate_password_hash(password)


def login_admin(email, password):
    """Check admin credentials and return a token with the admin record.

    Raises:
        AuthenticationError: Unknown email or wrong password; both give the same message.
    """
    admin = Admin.query.filter_by(email=email).first()
    if admin is None or not check_password_hash(admin.password_hash, password):
        logger.warning("Failed admin login for %s", email)
        raise AuthenticationError('Invalid credentials')
    return issue_token(admin.email, admin.role), admin


def login_employee(email):
    employee = Employee.query.filter_by(email=email).first()
    if employee is None:
        raise NotFound('Employee wallet not found')
    return issue_token(employee.email, Role.EMPLOYEE), employee
