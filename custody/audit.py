"""
Append-only audit trail of privileged actions.

Audit logging is best effort: ``AuditSink.record`` never raises. A failed
write is reported on the ``custody.audit`` logger and the triggering action
continues. Entries have no update or delete path.
"""
import enum
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

from .errors import AuditWriteFailure
from .models import AuditLog

logger = logging.getLogger(__name__)


class AuditAction(str, enum.Enum):
    WALLET_CREATED = 'WALLET_CREATED'
    PRIVATE_KEY_EXPORTED = 'PRIVATE_KEY_EXPORTED'


@dataclass(frozen=True)
class AuditEntry:
    action: str
    employee_email: Optional[str] = None
    admin_email: Optional[str] = None
    ip_address: Optional[str] = None
    details: Optional[str] = None
    timestamp: Optional[datetime] = field(default=None, compare=False)

    def to_dict(self):
        return {
            'action': self.action,
            'employeeEmail': self.employee_email,
            'adminEmail': self.admin_email,
            'ipAddress': self.ip_address,
            'details': self.details,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
        }


class AuditSink:
    """Base class for audit storage backends.

    Subclasses implement ``_write`` and ``list``; ``record`` wraps ``_write``
    so that no storage failure ever reaches the caller.
    """

    def record(self, entry: AuditEntry) -> None:
        try:
            action = getattr(entry.action, 'value', entry.action)
            entry = replace(entry, action=action, timestamp=datetime.utcnow())
            self._write(entry)
        except Exception as e:
            logger.error("Failed to write audit entry %s: %s",
                         getattr(entry, 'action', entry), e, exc_info=True)
            return
        logger.info("%s employee=%s admin=%s ip=%s",
                    entry.action, entry.employee_email, entry.admin_email, entry.ip_address)

    def _write(self, entry: AuditEntry) -> None:
        raise NotImplementedError

    def list(self, limit: int = 100) -> list[AuditEntry]:
        raise NotImplementedError


class MemoryAuditSink(AuditSink):
    """Keeps entries in process memory. Intended for tests and local runs."""

    def __init__(self):
        self._entries: list[AuditEntry] = []

    def _write(self, entry):
        self._entries.append(entry)

    def list(self, limit=100):
        return list(reversed(self._entries))[:limit]


class SQLAlchemyAuditSink(AuditSink):
    """Stores entries in the ``audit_log`` table through Flask-SQLAlchemy."""

    def __init__(self, db):
        self.db = db

    def _write(self, entry):
        try:
            self.db.session.add(AuditLog(
                action=entry.action,
                employee_email=entry.employee_email,
                admin_email=entry.admin_email,
                ip_address=entry.ip_address,
                details=entry.details,
                timestamp=entry.timestamp,
            ))
            self.db.session.commit()
        except Exception as e:
            self.db.session.rollback()
            raise AuditWriteFailure(str(e)) from e

    def list(self, limit=100):
        rows = (AuditLog.query
                .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
                .limit(limit)
                .all())
        return [AuditEntry(
            action=row.action,
            employee_email=row.employee_email,
            admin_email=row.admin_email,
            ip_address=row.ip_address,
            details=row.details,
            timestamp=row.timestamp,
        ) for row in rows]
