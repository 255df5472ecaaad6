"""Tests for login, logout, password change and owner recovery."""

from conftest import PASSWORD, make_user

from gms.models import AuditLog, UserRole
from gms.security.passwords import verify_password
from gms.services.auth import ACCOUNT_DEACTIVATED, INVALID_CREDENTIALS, AuthenticationService
from gms.services.emailer import OWNER_RESET_SUBJECT
from gms.services.results import ErrorKind


class TestLogin:
    def test_successful_login(self, coach):
        result = AuthenticationService().login('coach', PASSWORD, '10.1.1.1')
        assert result
        assert result.user is coach
        assert coach.last_login_at is not None

        entry = AuditLog.query.filter_by(action='LOGIN_SUCCESS').one()
        assert entry.user_id == coach.id
        assert entry.ip_address == '10.1.1.1'
        assert entry.details == 'User logged in successfully: coach (Role: COACH)'

    def test_username_is_case_insensitive(self, coach):
        assert AuthenticationService().login('  CoAcH ', PASSWORD)

    def test_unknown_user_and_bad_password_share_a_message(self, coach):
        service = AuthenticationService()
        unknown = service.login('ghost', PASSWORD)
        wrong = service.login('coach', 'Wrong!Pass1')
        assert not unknown and not wrong
        assert unknown.message == wrong.message == INVALID_CREDENTIALS
        assert AuditLog.query.filter_by(action='LOGIN_FAILED').count() == 2

    def test_non_text_credentials_fail_cleanly(self, coach):
        service = AuthenticationService()
        assert service.login(123, PASSWORD).message == 'Username cannot be empty'
        assert service.login('coach', 12345678).message == 'Password cannot be empty'
        assert service.owner_forgot_password({'u': 1}).error is ErrorKind.VALIDATION
        assert AuditLog.query.filter_by(action='LOGIN_SUCCESS').count() == 0

    def test_deactivation_revealed_only_with_correct_password(self, branch):
        make_user('sleeper', UserRole.COACH, branch, active=False)
        service = AuthenticationService()
        assert service.login('sleeper', 'Wrong!Pass1').message == INVALID_CREDENTIALS
        assert service.login('sleeper', PASSWORD).message == ACCOUNT_DEACTIVATED

    def test_empty_inputs(self):
        service = AuthenticationService()
        assert service.login('', 'x').message == 'Username cannot be empty'
        assert service.login('coach', '').message == 'Password cannot be empty'

    def test_logout_is_audited(self, coach_ctx):
        assert AuthenticationService().logout(coach_ctx)
        assert AuditLog.query.filter_by(action='LOGOUT').one().details == 'User logged out: coach'


class TestChangePassword:
    def test_coach_changes_password(self, coach, coach_ctx):
        result = AuthenticationService().change_password(coach_ctx, PASSWORD, 'Brand!New123')
        assert result.ok
        assert verify_password('Brand!New123', coach.password_hash)
        assert AuditLog.query.filter_by(action='PASSWORD_CHANGE_SUCCESS').count() == 1

    def test_admin_cannot_change_own_password(self, admin, admin_ctx):
        result = AuthenticationService().change_password(admin_ctx, PASSWORD, 'Brand!New123')
        assert result.error is ErrorKind.PERMISSION
        assert verify_password(PASSWORD, admin.password_hash)

    def test_wrong_old_password(self, coach_ctx):
        result = AuthenticationService().change_password(coach_ctx, 'Nope!Nope12', 'Brand!New123')
        assert result.message == 'Current password is incorrect'

    def test_complexity_and_reuse(self, coach_ctx):
        service = AuthenticationService()
        assert service.change_password(coach_ctx, PASSWORD, 'weak').message == \
            'Password must be at least 10 characters long'
        assert service.change_password(coach_ctx, PASSWORD, PASSWORD).message == \
            'New password must be different from the current password'


class TestOwnerRecovery:
    def test_owner_password_is_reset_and_mailed(self, owner, email_dir):
        result = AuthenticationService().owner_forgot_password('owner', '10.2.2.2')
        assert result.ok
        assert not verify_password(PASSWORD, owner.password_hash)
        content = next(email_dir.glob('email_*.txt')).read_text(encoding='utf-8')
        assert OWNER_RESET_SUBJECT in content
        assert 'To: owner@gym.test' in content
        assert AuditLog.query.filter_by(action='PASSWORD_RESET_SUCCESS').count() == 1

    def test_recovery_address_overrides_owner_email(self, app, owner, email_dir):
        app.config['OWNER_RECOVERY_EMAIL'] = 'vault@gym.test'
        AuthenticationService().owner_forgot_password('owner')
        content = next(email_dir.glob('email_*.txt')).read_text(encoding='utf-8')
        assert 'To: vault@gym.test' in content

    def test_non_owner_is_refused(self, coach):
        result = AuthenticationService().owner_forgot_password('coach')
        assert result.error is ErrorKind.PERMISSION
        assert verify_password(PASSWORD, coach.password_hash)

    def test_unknown_username(self, app):
        assert AuthenticationService().owner_forgot_password('nobody').error is ErrorKind.NOT_FOUND

    def test_delivery_failure_is_a_warning(self, app, owner, monkeypatch):
        from gms.services.emailer import EmailService
        monkeypatch.setattr(EmailService, 'send', lambda self, *args, **kwargs: False)
        result = AuthenticationService().owner_forgot_password('owner')
        assert result.ok
        assert result.warnings
        assert not verify_password(PASSWORD, owner.password_hash)
        assert AuditLog.query.filter_by(action='PASSWORD_RESET_WARNING').count() == 1
