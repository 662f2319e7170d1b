"""Tests for audit sinks: ordering, durability and the no-throw contract."""
import logging

from custody.audit import AuditAction, AuditEntry, MemoryAuditSink, SQLAlchemyAuditSink
from custody.database import db
from custody.models import AuditLog

from conftest import FailingAuditSink


def entry(action=AuditAction.WALLET_CREATED, employee='alice@x.com'):
    return AuditEntry(action=action, employee_email=employee, admin_email='admin@x.com', ip_address='127.0.0.1')


class TestMemorySink:

    def test_records_are_timestamped(self):
        sink = MemoryAuditSink()
        sink.record(entry())
        [stored] = sink.list()
        assert stored.timestamp is not None
        assert stored.action == 'WALLET_CREATED'

    def test_newest_first_with_limit(self):
        sink = MemoryAuditSink()
        for name in ('a', 'b', 'c'):
            sink.record(entry(employee=f"{name}@x.com"))
        assert [e.employee_email for e in sink.list()] == ['c@x.com', 'b@x.com', 'a@x.com']
        assert [e.employee_email for e in sink.list(limit=2)] == ['c@x.com', 'b@x.com']

    def test_to_dict(self):
        sink = MemoryAuditSink()
        sink.record(entry(AuditAction.PRIVATE_KEY_EXPORTED))
        data = sink.list()[0].to_dict()
        assert data['action'] == 'PRIVATE_KEY_EXPORTED'
        assert data['employeeEmail'] == 'alice@x.com'
        assert data['adminEmail'] == 'admin@x.com'
        assert data['timestamp']


class TestFailureIsSwallowed:

    def test_record_never_raises(self, caplog):
        sink = FailingAuditSink()
        with caplog.at_level(logging.ERROR, logger='custody.audit'):
            assert sink.record(entry()) is None
        assert 'Failed to write audit entry WALLET_CREATED' in caplog.text
        assert sink.list() == []


class TestSQLAlchemySink:

    def test_persists_newest_first(self, app):
        with app.app_context():
            sink = SQLAlchemyAuditSink(db)
            sink.record(entry(employee='first@x.com'))
            sink.record(entry(AuditAction.PRIVATE_KEY_EXPORTED, employee='second@x.com'))
            entries = sink.list()
            assert [e.employee_email for e in entries] == ['second@x.com', 'first@x.com']
            assert entries[0].action == 'PRIVATE_KEY_EXPORTED'
            assert AuditLog.query.count() == 2
            assert len(sink.list(limit=1)) == 1

    def test_storage_failure_is_swallowed(self, app, caplog):
        with app.app_context():
            AuditLog.__table__.drop(db.engine)
            sink = SQLAlchemyAuditSink(db)
            with caplog.at_level(logging.ERROR, logger='custody.audit'):
                sink.record(entry())
            assert 'Failed to write audit entry' in caplog.text
            # The session is usable again after the failed write.
            AuditLog.__table__.create(db.engine)
            sink.record(entry())
            assert AuditLog.query.count() == 1


class TestMalformedInput:

    def test_non_entry_does_not_raise(self, caplog):
        sink = MemoryAuditSink()
        with caplog.at_level(logging.ERROR, logger='custody.audit'):
            assert sink.record(None) is None
            assert sink.record({'action': 'WALLET_CREATED'}) is None
        assert caplog.text.count('Failed to write audit entry') == 2
        assert sink.list() == []
