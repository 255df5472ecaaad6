"""Staff account management (owners, admins and coaches)."""

from __future__ import annotations

from typing import Any, NamedTuple

from flask import current_app
from sqlalchemy import func, select

from gms.extensions import db
from gms.models import Branch, User, UserRole
from gms.security.passwords import (
    generate_secure_password,
    hash_password,
    validate_password_complexity,
)
from gms.services import audit
from gms.services.audit import AuditAction
from gms.services.context import ActorContext
from gms.services.crud import CRUDService
from gms.services.emailer import EmailService, dispatch_in_background
from gms.services.results import ServiceResult
from gms.services.validation import (
    normalize_mobile,
    validate_email,
    validate_mobile,
    validate_name,
    validate_username,
)

_PROFILE_FIELDS = ("first_name", "last_name", "email", "mobile", "role", "branch_id")


class PasswordReset(NamedTuple):
    user: User
    temporary_password: str
    email_sent: bool


def _send_welcome(user_info: dict[str, Any], password: str) -> bool:
    return EmailService.from_app().send_welcome_email(user_info, password)


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class UserService(CRUDService[User]):
    model = User
    entity_type = "user"

    # Lookups

    def find_by_username(self, username: str | None) -> User | None:
        if not isinstance(username, str) or not username.strip():
            return None
        stmt = select(User).where(func.lower(User.username) == username.strip().lower())
        return db.session.execute(stmt).scalar_one_or_none()

    def find_by_email(self, email: str | None) -> User | None:
        if not isinstance(email, str) or not email.strip():
            return None
        stmt = select(User).where(func.lower(User.email) == email.strip().lower())
        return db.session.execute(stmt).scalar_one_or_none()

    def username_exists(self, username: str, exclude_id: str | None = None) -> bool:
        user = self.find_by_username(username)
        return user is not None and user.id != exclude_id

    def email_exists(self, email: str, exclude_id: str | None = None) -> bool:
        user = self.find_by_email(email)
        return user is not None and user.id != exclude_id

    def list_users(
        self,
        role: UserRole | str | None = None,
        branch_id: str | None = None,
        active_only: bool = False,
    ) -> list[User]:
        stmt = select(User)
        parsed = UserRole.parse(role)
        if parsed is not None:
            stmt = stmt.where(User.role == parsed)
        if branch_id:
            stmt = stmt.where(User.branch_id == branch_id)
        if active_only:
            stmt = stmt.where(User.active.is_(True))
        stmt = stmt.order_by(User.last_name, User.first_name)
        return list(db.session.execute(stmt).scalars())

    def list_coaches(self, branch_id: str | None = None) -> list[User]:
        return self.list_users(role=UserRole.COACH, branch_id=branch_id, active_only=True)

    def list_visible_to(self, ctx: ActorContext) -> list[User]:
        """Owners see every account, admins see their branch, coaches only themselves."""
        if ctx.is_owner:
            return self.list_users()
        if ctx.is_admin:
            return self.list_users(branch_id=ctx.branch_id)
        user = self.get(ctx.user_id)
        return [user] if user else []

    # Rules

    def _can_manage(self, ctx: ActorContext, role: UserRole, branch_id: str | None) -> str | None:
        """Return a denial message when ``ctx`` may not manage an account of this shape."""
        if ctx.is_owner:
            return None
        if ctx.is_coach:
            return "Coaches cannot manage user accounts"
        if role is UserRole.OWNER:
            return "Only the owner can manage owner accounts"
        if ctx.is_admin:
            if role is not UserRole.COACH:
                return "Admins can only manage coach accounts"
            if branch_id != ctx.branch_id:
                return "Admins can only manage coaches of their own branch"
            return None
        return "You do not have permission to manage user accounts"

    def _check_branch(self, role: UserRole, branch_id: str | None) -> str | None:
        if role is UserRole.OWNER:
            if branch_id:
                return "Owner accounts cannot be assigned to a branch"
            return None
        if not branch_id:
            return f"{role.display_name} accounts must be assigned to a branch"
        branch = db.session.get(Branch, branch_id)
        if branch is None:
            return "Branch not found"
        if not branch.is_active:
            return f"Branch {branch.name} is inactive"
        return None

    def _validate_profile(self, data: dict[str, Any]) -> str | None:
        for field, label in (("first_name", "First name"), ("last_name", "Last name")):
            result = validate_name(data.get(field), label)
            if not result:
                return result.message
        result = validate_email(data.get("email"))
        if not result:
            return result.message
        mobile = _clean(data.get("mobile"))
        if mobile:
            result = validate_mobile(mobile, current_app.config.get("MOBILE_COUNTRY_CODE", "20"))
            if not result:
                return result.message
        return None

    # Mutators

    def create(self, data: dict[str, Any], ctx: ActorContext) -> ServiceResult[User]:
        """
        Create a staff account and e-mail the credentials.

        A missing password is generated. The welcome e-mail is dispatched
        after commit; its failure is logged and never undoes the account.
        """
        role = UserRole.parse(data.get("role"))
        if role is None:
            return ServiceResult.invalid("A valid role (owner, admin or coach) is required")
        branch_id = _clean(data.get("branch_id"))

        denial = self._can_manage(ctx, role, branch_id)
        if denial:
            return ServiceResult.denied(denial)

        result = validate_username(data.get("username"))
        if not result:
            return ServiceResult.invalid(result.message)
        error = self._validate_profile(data)
        if error:
            return ServiceResult.invalid(error)

        password = data.get("password") or generate_secure_password(12)
        result = validate_password_complexity(password)
        if not result:
            return ServiceResult.invalid(result.message)

        error = self._check_branch(role, branch_id)
        if error:
            return ServiceResult.invalid(error)

        username = data["username"].strip()
        email = data["email"].strip()
        if self.username_exists(username):
            return ServiceResult.conflict(f"Username already exists: {username}")
        if self.email_exists(email):
            return ServiceResult.conflict(f"Email already exists: {email}")

        mobile = _clean(data.get("mobile"))
        user = User(
            username=username,
            password_hash=hash_password(password),
            first_name=data["first_name"].strip(),
            last_name=data["last_name"].strip(),
            email=email,
            mobile=normalize_mobile(mobile, current_app.config.get("MOBILE_COUNTRY_CODE", "20")) if mobile else None,
            role=role,
            branch_id=branch_id,
            active=True,
        )
        saved = self._save(
            user, ctx, AuditAction.USER_CREATE, f"Created new user: {username} (Role: {role.name})", "create"
        )
        if not saved:
            return saved

        user_info = {
            "first_name": user.first_name,
            "last_name": user.last_name,
            "username": user.username,
            "email": user.email,
            "role": role.display_name,
        }
        dispatch_in_background(_send_welcome, user_info, password)
        return saved

    def update(self, user_id: str, data: dict[str, Any], ctx: ActorContext) -> ServiceResult[User]:
        user = self.get(user_id)
        if user is None:
            return self._not_found()

        denial = self._can_manage(ctx, user.role, user.branch_id)
        if denial:
            return ServiceResult.denied(denial)

        requested = data.get("username")
        if requested and (not isinstance(requested, str) or requested.strip() != user.username):
            return ServiceResult.invalid("Username cannot be changed")

        merged = {field: getattr(user, field) for field in _PROFILE_FIELDS}
        merged.update({k: v for k, v in data.items() if k in _PROFILE_FIELDS})

        role = UserRole.parse(merged.get("role"))
        if role is None:
            return ServiceResult.invalid("A valid role (owner, admin or coach) is required")
        if user.id == ctx.user_id and role is not user.role:
            return ServiceResult.denied("You cannot change your own role")
        branch_id = None if role is UserRole.OWNER and "branch_id" not in data else _clean(merged.get("branch_id"))

        # The new shape must also be manageable by the actor
        denial = self._can_manage(ctx, role, branch_id)
        if denial:
            return ServiceResult.denied(denial)

        error = self._validate_profile(merged)
        if error:
            return ServiceResult.invalid(error)
        error = self._check_branch(role, branch_id)
        if error:
            return ServiceResult.invalid(error)

        email = merged["email"].strip()
        if self.email_exists(email, exclude_id=user.id):
            return ServiceResult.conflict(f"Email already exists: {email}")

        if "is_active" in data and data["is_active"] is not None:
            if not data["is_active"] and user.id == ctx.user_id:
                return ServiceResult.denied("You cannot deactivate your own account")
            user.active = bool(data["is_active"])

        mobile = _clean(merged.get("mobile"))
        user.first_name = merged["first_name"].strip()
        user.last_name = merged["last_name"].strip()
        user.email = email
        user.mobile = normalize_mobile(mobile, current_app.config.get("MOBILE_COUNTRY_CODE", "20")) if mobile else None
        user.role = role
        user.branch_id = branch_id

        return self._save(
            user, ctx, AuditAction.USER_UPDATE, f"Updated user: {user.username} (ID: {user.id})", "update"
        )

    def delete(self, user_id: str, ctx: ActorContext) -> ServiceResult[User]:
        user = self.get(user_id)
        if user is None:
            return self._not_found()
        if user.id == ctx.user_id:
            return ServiceResult.denied("You cannot delete your own account")

        denial = self._can_manage(ctx, user.role, user.branch_id)
        if denial:
            return ServiceResult.denied(denial)

        user.active = False
        return self._save(
            user, ctx, AuditAction.USER_DELETE, f"Deleted user: {user.username} (ID: {user.id})", "delete"
        )

    def reset_password(self, user_id: str, ctx: ActorContext) -> ServiceResult[PasswordReset]:
        """Administrator-driven reset: a new password is generated and e-mailed to the account holder."""
        user = self.get(user_id)
        if user is None:
            return self._not_found()

        denial = self._can_manage(ctx, user.role, user.branch_id)
        if denial:
            audit.log_event(ctx, AuditAction.PASSWORD_RESET_FAILED,
                            f"Password reset denied for user: {user.username}",
                            entity_type="user", entity_id=user.id)
            return ServiceResult.denied(denial)

        new_password = generate_secure_password(12)
        user.password_hash = hash_password(new_password)
        saved = self._save(
            user, ctx, AuditAction.PASSWORD_RESET,
            f"Password reset for user: {user.username} (ID: {user.id})", "reset password for",
        )
        if not saved:
            return saved

        sent = EmailService.from_app().send_password_reset_email(user.email, user.username, new_password)
        result = ServiceResult.success(
            PasswordReset(user, new_password, sent),
            f"Password reset for {user.username}",
        )
        if not sent:
            current_app.logger.warning(f"Password reset e-mail to {user.email} failed")
            audit.log_event(ctx, AuditAction.PASSWORD_RESET_WARNING,
                            f"Password reset for {user.username} but e-mail delivery failed",
                            entity_type="user", entity_id=user.id)
            result.warnings.append("Password was reset but the notification e-mail could not be sent")
        return result

    def reset_password_by_email(self, username: str, email: str, ip_address: str | None = None) -> ServiceResult[User]:
        """Self-service reset: the username and registered e-mail must match an active account."""
        user = self.find_by_username(username)
        if user is None:
            audit.log_event(None, AuditAction.PASSWORD_RESET_FAILED,
                            f"Password reset attempt with unknown username: {username}", ip_address)
            return ServiceResult.not_found("Username not found. Please check your username and try again.")

        if not isinstance(email, str) or email.strip().lower() != user.email.lower():
            audit.log_event(user.id, AuditAction.PASSWORD_RESET_FAILED,
                            f"Password reset e-mail mismatch for user: {user.username}", ip_address,
                            entity_type="user", entity_id=user.id)
            return ServiceResult.invalid("Email address does not match our records. Please check and try again.")

        if not user.active:
            audit.log_event(user.id, AuditAction.PASSWORD_RESET_FAILED,
                            f"Password reset attempt for inactive user: {user.username}", ip_address,
                            entity_type="user", entity_id=user.id)
            return ServiceResult.denied("This account is inactive. Please contact the system administrator.")

        new_password = generate_secure_password(10)
        user.password_hash = hash_password(new_password)
        ctx = ActorContext(user_id=user.id, role=user.role, branch_id=user.branch_id, ip_address=ip_address)
        saved = self._save(
            user, ctx, AuditAction.PASSWORD_RESET_BY_EMAIL,
            "Password reset via email verification. New password generated and emailed to user.",
            "reset password for",
        )
        if not saved:
            return saved

        result = ServiceResult.success(user, "A new password has been sent to your email address.")
        if not EmailService.from_app().send_password_reset_email(user.email, user.username, new_password):
            current_app.logger.warning(f"Self-service reset e-mail to {user.email} failed")
            audit.log_event(ctx, AuditAction.PASSWORD_RESET_WARNING,
                            f"Password reset for {user.username} but e-mail delivery failed",
                            entity_type="user", entity_id=user.id)
            result.warnings.append("Password was reset but the e-mail could not be sent")
        return result


__all__ = ["UserService", "PasswordReset"]
