"""Authentication: login, logout, password change and owner recovery."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import NamedTuple

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from gms.extensions import db
from gms.models import User, UserRole
from gms.security.passwords import (
    generate_secure_password,
    hash_password,
    validate_password_complexity,
    verify_password,
)
from gms.services import audit
from gms.services.audit import AuditAction
from gms.services.context import ActorContext
from gms.services.emailer import EmailService
from gms.services.results import ErrorKind, ServiceResult
from gms.services.users import UserService

INVALID_CREDENTIALS = "Invalid username or password"
ACCOUNT_DEACTIVATED = "Your account has been deactivated. Please contact an administrator."


class LoginResult(NamedTuple):
    success: bool
    message: str
    user: User | None = None

    def __bool__(self) -> bool:
        return self.success


class AuthenticationService:
    """Credential checks and password lifecycle; every outcome is audited."""

    def __init__(self, users: UserService | None = None):
        self.users = users or UserService()

    def login(self, username: str | None, password: str | None, ip_address: str | None = None) -> LoginResult:
        if not isinstance(username, str) or not username.strip():
            return LoginResult(False, "Username cannot be empty")
        if not isinstance(password, str) or not password:
            return LoginResult(False, "Password cannot be empty")
        username = username.strip()

        user = self.users.find_by_username(username)
        if user is None:
            audit.log_event(None, AuditAction.LOGIN_FAILED,
                            f"Login attempt with unknown username: {username}", ip_address)
            return LoginResult(False, INVALID_CREDENTIALS)

        if not verify_password(password, user.password_hash):
            audit.log_event(user.id, AuditAction.LOGIN_FAILED,
                            f"Login attempt with incorrect password for user: {username}", ip_address,
                            entity_type="user", entity_id=user.id)
            return LoginResult(False, INVALID_CREDENTIALS)

        # Deactivation is only revealed to callers who know the password
        if not user.active:
            audit.log_event(user.id, AuditAction.LOGIN_FAILED,
                            f"Login attempt by inactive user: {username}", ip_address,
                            entity_type="user", entity_id=user.id)
            return LoginResult(False, ACCOUNT_DEACTIVATED)

        try:
            user.last_login_at = datetime.now(timezone.utc)
            audit.record(user.id, AuditAction.LOGIN_SUCCESS,
                         f"User logged in successfully: {user.username} (Role: {user.role.name})", ip_address,
                         entity_type="user", entity_id=user.id)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to record login for {username}: {e}")
            audit.log_event(None, AuditAction.LOGIN_ERROR,
                            f"System error during login attempt for username: {username}", ip_address)
            return LoginResult(False, "System error during login. Please try again.")

        return LoginResult(True, "Login successful", user)

    def logout(self, ctx: ActorContext) -> bool:
        if ctx.is_system:
            return False
        user = self.users.get(ctx.user_id)
        name = user.username if user else ctx.user_id
        return audit.log_event(ctx, AuditAction.LOGOUT, f"User logged out: {name}",
                               entity_type="user", entity_id=ctx.user_id)

    def change_password(self, ctx: ActorContext, old_password: str, new_password: str) -> ServiceResult[User]:
        """
        Change the acting user's own password.

        Admin accounts cannot change their own password; the owner resets it
        for them instead.
        """
        user = self.users.get(ctx.user_id)
        if user is None or not user.active:
            return ServiceResult.denied("You must be logged in to change your password")

        if user.role is UserRole.ADMIN:
            audit.log_event(ctx, AuditAction.PASSWORD_CHANGE_FAILED,
                            f"Admin attempted to change own password: {user.username}",
                            entity_type="user", entity_id=user.id)
            return ServiceResult.denied("Admins cannot change their own password. Please ask the owner to reset it.")

        if not verify_password(old_password, user.password_hash):
            audit.log_event(ctx, AuditAction.PASSWORD_CHANGE_FAILED,
                            f"Incorrect old password provided by user: {user.username}",
                            entity_type="user", entity_id=user.id)
            return ServiceResult.invalid("Current password is incorrect")

        complexity = validate_password_complexity(new_password)
        if not complexity:
            audit.log_event(ctx, AuditAction.PASSWORD_CHANGE_FAILED,
                            f"New password does not meet complexity requirements for user: {user.username}",
                            entity_type="user", entity_id=user.id)
            return ServiceResult.invalid(complexity.message)

        if verify_password(new_password, user.password_hash):
            return ServiceResult.invalid("New password must be different from the current password")

        username = user.username
        try:
            user.password_hash = hash_password(new_password)
            audit.record(ctx, AuditAction.PASSWORD_CHANGE_SUCCESS,
                         f"User changed password successfully: {username}",
                         entity_type="user", entity_id=user.id)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to change password for {username}: {e}")
            audit.log_event(ctx, AuditAction.PASSWORD_CHANGE_ERROR,
                            f"System error during password change for user: {username}",
                            entity_type="user", entity_id=ctx.user_id)
            return ServiceResult.failure(ErrorKind.PERSISTENCE, "Failed to change password")

        return ServiceResult.success(user, "Password changed successfully")

    def owner_forgot_password(self, username: str | None, ip_address: str | None = None) -> ServiceResult[User]:
        """
        Reset the owner's password and e-mail the new one.

        The message goes to ``OWNER_RECOVERY_EMAIL`` when configured, otherwise
        to the owner's own address. A delivery failure leaves the new password
        in place and is reported as a warning.
        """
        if not isinstance(username, str) or not username.strip():
            return ServiceResult.invalid("Username is required")
        username = username.strip()

        user = self.users.find_by_username(username)
        if user is None:
            audit.log_event(None, AuditAction.PASSWORD_RESET_FAILED,
                            f"Password reset attempt for unknown username: {username}", ip_address)
            return ServiceResult.not_found("Username not found")

        if user.role is not UserRole.OWNER:
            audit.log_event(user.id, AuditAction.PASSWORD_RESET_FAILED,
                            f"Password reset attempt by non-owner user: {username}", ip_address,
                            entity_type="user", entity_id=user.id)
            return ServiceResult.denied("Only the owner can use forgot password. Please contact the owner.")

        new_password = generate_secure_password(12)
        try:
            user.password_hash = hash_password(new_password)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"Failed to reset owner password for {username}: {e}")
            audit.log_event(user.id, AuditAction.PASSWORD_RESET_ERROR,
                            f"System error during password reset for username: {username}", ip_address,
                            entity_type="user", entity_id=user.id)
            return ServiceResult.failure(ErrorKind.PERSISTENCE, "Failed to reset password")

        recipient = current_app.config.get("OWNER_RECOVERY_EMAIL") or user.email
        sent = EmailService.from_app().send_owner_password_reset_email(recipient, user.username, new_password)
        if not sent:
            current_app.logger.warning(f"Owner password reset e-mail to {recipient} failed")
            audit.log_event(user.id, AuditAction.PASSWORD_RESET_WARNING,
                            f"Password reset successful but email delivery failed for owner: {username}",
                            ip_address, entity_type="user", entity_id=user.id)
            result = ServiceResult.success(user, "Password was reset")
            result.warnings.append("The new password could not be e-mailed; contact your system administrator")
            return result

        audit.log_event(user.id, AuditAction.PASSWORD_RESET_SUCCESS,
                        f"Owner password reset successfully and email sent: {username}", ip_address,
                        entity_type="user", entity_id=user.id)
        return ServiceResult.success(user, f"A new password has been sent to {recipient}")


__all__ = ["AuthenticationService", "LoginResult", "INVALID_CREDENTIALS", "ACCOUNT_DEACTIVATED"]
