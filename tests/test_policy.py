"""Tests for the pure authorization policy."""
import pytest

from custody.errors import AuthorizationError
from custody.policy import Action, Caller, Decision, Role, admin_only, authorize, decide, self_or_admin

ADMIN = Caller('admin@x.com', Role.ADMIN)
ALICE = Caller('alice@x.com', Role.EMPLOYEE)


class TestPolicyFunctions:

    def test_admin_only(self):
        assert admin_only(ADMIN) is Decision.ALLOW
        assert admin_only(ALICE) is Decision.DENY
        assert admin_only(ALICE, 'alice@x.com') is Decision.DENY

    def test_self_or_admin(self):
        assert self_or_admin(ALICE, 'alice@x.com') is Decision.ALLOW
        assert self_or_admin(ALICE, 'bob@x.com') is Decision.DENY
        assert self_or_admin(ALICE, None) is Decision.DENY
        assert self_or_admin(ADMIN, 'bob@x.com') is Decision.ALLOW


@pytest.mark.parametrize('action,caller,subject,expected', [
    (Action.READ_WALLET, ALICE, 'alice@x.com', Decision.ALLOW),
    (Action.READ_WALLET, ALICE, 'bob@x.com', Decision.DENY),
    (Action.LIST_WALLETS, ALICE, None, Decision.DENY),
    (Action.CREATE_WALLET, ALICE, 'alice@x.com', Decision.DENY),
    (Action.EXPORT_KEY, ALICE, 'alice@x.com', Decision.DENY),
    (Action.READ_AUDIT_LOG, ALICE, None, Decision.DENY),
    (Action.READ_WALLET, ADMIN, 'bob@x.com', Decision.ALLOW),
    (Action.LIST_WALLETS, ADMIN, None, Decision.ALLOW),
    (Action.CREATE_WALLET, ADMIN, 'bob@x.com', Decision.ALLOW),
    (Action.EXPORT_KEY, ADMIN, 'bob@x.com', Decision.ALLOW),
    (Action.READ_AUDIT_LOG, ADMIN, None, Decision.ALLOW),
])
def test_decision_matrix(action, caller, subject, expected):
    assert decide(action, caller, subject) is expected


def test_every_action_has_a_policy():
    for action in Action:
        decide(action, ADMIN)


def test_authorize_raises_on_deny():
    with pytest.raises(AuthorizationError) as exc_info:
        authorize(Action.EXPORT_KEY, ALICE, 'alice@x.com')
    assert exc_info.value.status_code == 403
    assert exc_info.value.message == 'Admin access required'


def test_authorize_allows_silently():
    assert authorize(Action.READ_WALLET, ALICE, 'alice@x.com') is None


def test_role_is_closed():
    with pytest.raises(ValueError):
        Role('superuser')
