"""Audit logging service for security and administrative events."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import TYPE_CHECKING

from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from gms.extensions import db
from gms.models import AuditLog

if TYPE_CHECKING:
    from gms.services.context import ActorContext


class AuditAction(str, Enum):
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOGIN_ERROR = "LOGIN_ERROR"
    LOGOUT = "LOGOUT"

    PASSWORD_RESET = "PASSWORD_RESET"
    PASSWORD_RESET_SUCCESS = "PASSWORD_RESET_SUCCESS"
    PASSWORD_RESET_FAILED = "PASSWORD_RESET_FAILED"
    PASSWORD_RESET_WARNING = "PASSWORD_RESET_WARNING"
    PASSWORD_RESET_ERROR = "PASSWORD_RESET_ERROR"
    PASSWORD_RESET_BY_EMAIL = "PASSWORD_RESET_BY_EMAIL"
    PASSWORD_CHANGE_SUCCESS = "PASSWORD_CHANGE_SUCCESS"
    PASSWORD_CHANGE_FAILED = "PASSWORD_CHANGE_FAILED"
    PASSWORD_CHANGE_ERROR = "PASSWORD_CHANGE_ERROR"

    USER_CREATE = "USER_CREATE"
    USER_UPDATE = "USER_UPDATE"
    USER_DELETE = "USER_DELETE"
    MEMBER_CREATE = "MEMBER_CREATE"
    MEMBER_UPDATE = "MEMBER_UPDATE"
    MEMBER_DELETE = "MEMBER_DELETE"
    BRANCH_CREATE = "BRANCH_CREATE"
    BRANCH_UPDATE = "BRANCH_UPDATE"
    BRANCH_DELETE = "BRANCH_DELETE"
    TRAINING_CREATE = "TRAINING_CREATE"
    TRAINING_UPDATE = "TRAINING_UPDATE"
    TRAINING_DELETE = "TRAINING_DELETE"

    REPORT_EXPORT = "REPORT_EXPORT"
    DATA_IMPORT = "DATA_IMPORT"
    SETTINGS_CHANGE = "SETTINGS_CHANGE"

    def __str__(self) -> str:
        return self.value


def _actor_id(actor: ActorContext | str | None) -> str | None:
    if actor is None or isinstance(actor, str):
        return actor
    return actor.user_id


def _actor_ip(actor: ActorContext | str | None, ip_address: str | None) -> str | None:
    if ip_address is not None:
        return ip_address
    return getattr(actor, "ip_address", None)


def record(
    actor: ActorContext | str | None,
    action: AuditAction | str,
    details: str | None = None,
    ip_address: str | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
) -> AuditLog:
    """
    Add an audit entry to the current session without committing.

    The entry becomes durable together with whatever the caller commits
    next, so an entity change and its audit row land in one transaction.

    Args:
        actor: ActorContext, user id, or None for the system actor
        action: Action code
        details: Human-readable description
        ip_address: Overrides the context's IP address
        entity_type: Kind of entity affected (e.g., "member")
        entity_id: Id of the entity affected
    """
    entry = AuditLog(
        user_id=_actor_id(actor),
        action=str(action),
        entity_type=entity_type,
        entity_id=entity_id,
        details=details,
        ip_address=_actor_ip(actor, ip_address),
        timestamp=datetime.now(timezone.utc),
    )
    db.session.add(entry)
    return entry


def log_event(
    actor: ActorContext | str | None,
    action: AuditAction | str,
    details: str | None = None,
    ip_address: str | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
) -> bool:
    """Record and commit a standalone audit event (login attempts, exports)."""
    try:
        record(actor, action, details, ip_address, entity_type, entity_id)
        db.session.commit()
        return True
    except SQLAlchemyError as e:
        # Don't fail the request if audit logging fails
        db.session.rollback()
        current_app.logger.error(f"Failed to log audit event {action}: {e}")
        return False


def _as_start(value: date | datetime | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def _as_end(value: date | datetime | None) -> datetime | None:
    """Dates are inclusive: a plain date covers the whole day."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime.combine(value + timedelta(days=1), time.min, tzinfo=timezone.utc)


def search(
    user_id: str | None = None,
    action: AuditAction | str | None = None,
    start: date | datetime | None = None,
    end: date | datetime | None = None,
    limit: int | None = None,
) -> list[AuditLog]:
    """Search audit entries, newest first.

    All filters are optional and combined with AND. The result size never
    exceeds ``AUDIT_SEARCH_LIMIT``.
    """
    cap = current_app.config.get("AUDIT_SEARCH_LIMIT", 1000)
    limit = cap if limit is None or limit <= 0 else min(limit, cap)

    stmt = select(AuditLog)
    if user_id:
        stmt = stmt.where(AuditLog.user_id == user_id)
    if action:
        stmt = stmt.where(AuditLog.action == str(action))
    start_at = _as_start(start)
    if start_at is not None:
        stmt = stmt.where(AuditLog.timestamp >= start_at)
    end_at = _as_end(end)
    if end_at is not None:
        if isinstance(end, datetime):
            stmt = stmt.where(AuditLog.timestamp <= end_at)
        else:
            stmt = stmt.where(AuditLog.timestamp < end_at)

    stmt = stmt.order_by(AuditLog.timestamp.desc()).limit(limit)
    return list(db.session.execute(stmt).scalars())


def logs_by_user(user_id: str, limit: int | None = None) -> list[AuditLog]:
    return search(user_id=user_id, limit=limit)


def logs_by_action(action: AuditAction | str, limit: int | None = None) -> list[AuditLog]:
    return search(action=action, limit=limit)


def logs_by_date_range(start: date | datetime, end: date | datetime, limit: int | None = None) -> list[AuditLog]:
    return search(start=start, end=end, limit=limit)


__all__ = [
    "AuditAction",
    "record",
    "log_event",
    "search",
    "logs_by_user",
    "logs_by_action",
    "logs_by_date_range",
]
