"""
Shared fixtures: an in-memory app per test, an inspectable audit sink and
helpers for obtaining tokens.
"""
import pytest

from custody import Settings, create_app
from custody.audit import MemoryAuditSink
from custody.auth import issue_token
from custody.database import db
from custody.policy import Role

MASTER_KEY = b'0123456789abcdef0123456789abcdef'
ADMIN_EMAIL = 'admin@x.com'
ADMIN_PASSWORD = 'correct-horse-battery'


class FailingAuditSink(MemoryAuditSink):
    """Sink whose storage always fails."""

    def _write(self, entry):
        raise RuntimeError('audit store unavailable')


@pytest.fixture
def settings():
    return Settings.build(
        encryption_key=MASTER_KEY,
        jwt_secret_key='test-signing-secret',
        database_uri='sqlite://',
        admin_email=ADMIN_EMAIL,
        admin_password=ADMIN_PASSWORD,
        ratelimit_enabled=False,
    )


@pytest.fixture
def audit_sink():
    return MemoryAuditSink()


@pytest.fixture
def app(settings, audit_sink):
    app = create_app(settings, audit_sink=audit_sink)
    app.config['TESTING'] = True
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def service(app):
    return app.extensions['custody']


@pytest.fixture
def token_for(app):
    """Mint a bearer token for (email, role) without going through login."""
    def _token(email, role=Role.EMPLOYEE):
        with app.app_context():
            return issue_token(email, role)
    return _token


@pytest.fixture
def admin_headers(client):
    resp = client.post('/admin/login', json={'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD})
    assert resp.status_code == 200
    return {'Authorization': f"Bearer {resp.get_json()['token']}"}


def bearer(token):
    return {'Authorization': f"Bearer {token}"}
