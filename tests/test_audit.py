"""Tests for the audit log."""

from datetime import date, datetime, timedelta, timezone

from gms.extensions import db
from gms.models import AuditLog
from gms.services import audit
from gms.services.audit import AuditAction
from gms.services.context import ActorContext


def _entry(action, when, user_id=None):
    entry = AuditLog(action=action, timestamp=when, user_id=user_id, details=f'{action} at {when}')
    db.session.add(entry)
    db.session.commit()
    return entry


class TestRecording:
    def test_record_does_not_commit(self, app):
        audit.record(None, AuditAction.LOGOUT, 'pending')
        db.session.rollback()
        assert AuditLog.query.count() == 0

    def test_log_event_commits_and_uses_context_ip(self, owner_ctx):
        assert audit.log_event(owner_ctx, AuditAction.REPORT_EXPORT, 'Exported 0 members to CSV')
        entry = AuditLog.query.one()
        assert entry.user_id == owner_ctx.user_id
        assert entry.ip_address == '127.0.0.1'
        assert entry.action == 'REPORT_EXPORT'

    def test_explicit_ip_and_plain_user_id(self, owner):
        audit.log_event(owner.id, 'CUSTOM', ip_address='192.168.1.5')
        entry = AuditLog.query.one()
        assert entry.user_id == owner.id
        assert entry.ip_address == '192.168.1.5'

    def test_system_actor_has_no_user(self, app):
        audit.log_event(ActorContext.system('1.2.3.4'), AuditAction.DATA_IMPORT)
        assert AuditLog.query.one().user_id is None


class TestSearch:
    def test_newest_first_with_filters(self, owner):
        base = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)
        _entry('LOGIN_SUCCESS', base, owner.id)
        _entry('LOGIN_FAILED', base + timedelta(hours=1))
        _entry('LOGIN_SUCCESS', base + timedelta(days=2), owner.id)

        assert [e.timestamp.day for e in audit.search()] == [12, 10, 10]
        assert len(audit.logs_by_user(owner.id)) == 2
        assert len(audit.logs_by_action(AuditAction.LOGIN_FAILED)) == 1

    def test_date_range_is_inclusive(self, app):
        _entry('A', datetime(2024, 6, 10, 0, 0, tzinfo=timezone.utc))
        _entry('B', datetime(2024, 6, 11, 23, 59, tzinfo=timezone.utc))
        _entry('C', datetime(2024, 6, 12, 0, 0, 1, tzinfo=timezone.utc))

        found = audit.logs_by_date_range(date(2024, 6, 10), date(2024, 6, 11))
        assert sorted(e.action for e in found) == ['A', 'B']

    def test_limit_is_capped(self, app):
        app.config['AUDIT_SEARCH_LIMIT'] = 2
        for i in range(4):
            _entry('X', datetime(2024, 6, 10, i, tzinfo=timezone.utc))
        assert len(audit.search()) == 2
        assert len(audit.search(limit=100)) == 2
        assert len(audit.search(limit=1)) == 1
