"""Tests for runtime system settings."""

from decimal import Decimal

from gms.models import AuditLog
from gms.services import settings
from gms.services.results import ErrorKind


class TestSettings:
    def test_defaults_when_missing(self, app):
        assert settings.get('missing') is None
        assert settings.get('missing', 'fallback') == 'fallback'
        assert settings.get_int('missing', 7) == 7
        assert settings.get_bool('missing', True) is True
        assert settings.monthly_price() == Decimal('150.00')

    def test_owner_sets_and_reads_back(self, owner_ctx):
        result = settings.set('reports.expiring_days', '10', owner_ctx, 'Days before expiry to warn')
        assert result.ok
        assert settings.get_int('reports.expiring_days', 7) == 10
        assert result.value.updated_by == owner_ctx.user_id
        entry = AuditLog.query.filter_by(action='SETTINGS_CHANGE').one()
        assert entry.details == 'Updated setting reports.expiring_days = 10'

    def test_update_existing_key(self, owner_ctx):
        settings.set('email.enabled', 'false', owner_ctx)
        settings.set('email.enabled', 'yes', owner_ctx)
        assert settings.get_bool('email.enabled', False) is True
        assert len(settings.all_settings()) == 1

    def test_monthly_price_override_and_validation(self, owner_ctx):
        assert settings.set(settings.MONTHLY_PRICE_KEY, '0', owner_ctx).error is ErrorKind.VALIDATION
        assert settings.set(settings.MONTHLY_PRICE_KEY, 'cheap', owner_ctx).error is ErrorKind.VALIDATION
        assert settings.set(settings.MONTHLY_PRICE_KEY, '200.50', owner_ctx).ok
        assert settings.monthly_price() == Decimal('200.50')

    def test_bad_numbers_fall_back(self, owner_ctx):
        settings.set('limits.count', 'many', owner_ctx)
        assert settings.get_int('limits.count', 3) == 3
        assert settings.get_decimal('limits.count', Decimal('1')) == Decimal('1')

    def test_secret_values_are_masked_in_audit(self, owner_ctx):
        settings.set('email.smtp_password', 'hunter2', owner_ctx)
        entry = AuditLog.query.filter_by(action='SETTINGS_CHANGE').one()
        assert 'hunter2' not in entry.details
        assert settings.get('email.smtp_password') == 'hunter2'

    def test_only_owner_may_change(self, admin_ctx, coach_ctx):
        assert settings.set('x', '1', admin_ctx).error is ErrorKind.PERMISSION
        assert settings.set('x', '1', coach_ctx).error is ErrorKind.PERMISSION

    def test_delete(self, owner_ctx, admin_ctx):
        settings.set('temp.key', 'v', owner_ctx)
        assert settings.delete('temp.key', admin_ctx).error is ErrorKind.PERMISSION
        assert settings.delete('temp.key', owner_ctx).ok
        assert settings.get('temp.key') is None
        assert settings.delete('temp.key', owner_ctx).error is ErrorKind.NOT_FOUND
