"""
Authorization policy.

Each action maps to a pure function of (caller, target subject) returning
ALLOW or DENY, so policy can be checked without a request context.
"""
import enum
from dataclasses import dataclass
from typing import Optional

from .errors import AuthorizationError


class Role(str, enum.Enum):
    ADMIN = 'admin'
    EMPLOYEE = 'employee'


class Decision(enum.Enum):
    ALLOW = 'allow'
    DENY = 'deny'


class Action(str, enum.Enum):
    CREATE_WALLET = 'wallet:create'
    READ_WALLET = 'wallet:read'
    LIST_WALLETS = 'wallet:list'
    EXPORT_KEY = 'wallet:export'
    READ_AUDIT_LOG = 'audit:read'


@dataclass(frozen=True)
class Caller:
    """Authenticated identity attached to a request."""
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


def admin_only(caller: Caller, subject: Optional[str] = None) -> Decision:
    return Decision.ALLOW if caller.is_admin else Decision.DENY


def self_or_admin(caller: Caller, subject: Optional[str] = None) -> Decision:
    if caller.is_admin or (subject is not None and caller.email == subject):
        return Decision.ALLOW
    return Decision.DENY


POLICIES = {
    Action.CREATE_WALLET: admin_only,
    Action.READ_WALLET: self_or_admin,
    Action.LIST_WALLETS: admin_only,
    Action.EXPORT_KEY: admin_only,
    Action.READ_AUDIT_LOG: admin_only,
}

DENIAL_MESSAGES = {
    Action.READ_WALLET: 'Access denied',
}


def decide(action: Action, caller: Caller, subject: Optional[str] = None) -> Decision:
    return POLICIES[action](caller, subject)


def authorize(action: Action, caller: Caller, subject: Optional[str] = None) -> None:
    """Raise AuthorizationError unless ``caller`` may perform ``action`` on ``subject``.

    The check never consults storage, so a denial says nothing about whether
    the subject exists.
    """
    if decide(action, caller, subject) is Decision.DENY:
        raise AuthorizationError(DENIAL_MESSAGES.get(action, 'Admin access required'))
