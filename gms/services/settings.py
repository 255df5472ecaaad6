"""Runtime-editable system settings stored in the ``system_settings`` table."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from gms.extensions import db
from gms.models import SystemSetting
from gms.services import audit
from gms.services.audit import AuditAction
from gms.services.context import ActorContext
from gms.services.crud import save_with_audit
from gms.services.results import ErrorKind, ServiceResult

MONTHLY_PRICE_KEY = "membership.monthly_price"

_TRUE_VALUES = {"1", "true", "yes", "on"}

# Values never echoed back into audit details
_SECRET_KEYS = {"email.smtp_password"}


def _find(key: str) -> SystemSetting | None:
    return db.session.execute(
        select(SystemSetting).where(SystemSetting.key == key)
    ).scalar_one_or_none()


def get(key: str, default: str | None = None) -> str | None:
    setting = _find(key)
    if setting is None or setting.value is None:
        return default
    return setting.value


def get_int(key: str, default: int) -> int:
    value = get(key)
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        current_app.logger.warning(f"Setting {key} is not an integer: {value!r}")
        return default


def get_bool(key: str, default: bool) -> bool:
    value = get(key)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def get_decimal(key: str, default: Decimal) -> Decimal:
    value = get(key)
    if value is None:
        return default
    try:
        return Decimal(value.strip())
    except InvalidOperation:
        current_app.logger.warning(f"Setting {key} is not a number: {value!r}")
        return default


def all_settings() -> list[SystemSetting]:
    return list(db.session.execute(select(SystemSetting).order_by(SystemSetting.key)).scalars())


def monthly_price() -> Decimal:
    """Configured price of one membership month; the stored setting wins."""
    fallback = Decimal(str(current_app.config.get("MONTHLY_PRICE", "150.00")))
    price = get_decimal(MONTHLY_PRICE_KEY, fallback)
    return price if price > 0 else fallback


def set(key: str, value, ctx: ActorContext, description: str | None = None) -> ServiceResult[SystemSetting]:
    if not ctx.is_owner:
        return ServiceResult.denied("Only the owner can change system settings")
    key = (key or "").strip()
    if not key:
        return ServiceResult.invalid("Setting key is required")
    if description is not None and not isinstance(description, str):
        return ServiceResult.invalid("Setting description must be text")
    text = None if value is None else str(value)

    if key == MONTHLY_PRICE_KEY:
        try:
            price = Decimal(text or "")
        except InvalidOperation:
            return ServiceResult.invalid("Monthly price must be a valid number")
        if not price.is_finite() or price <= 0:
            return ServiceResult.invalid("Monthly price must be greater than zero")

    setting = _find(key) or SystemSetting(key=key)
    setting.value = text
    if description is not None:
        setting.description = description
    setting.updated_by = ctx.user_id

    shown = "********" if key in _SECRET_KEYS else text
    return save_with_audit(
        setting,
        ctx,
        AuditAction.SETTINGS_CHANGE,
        f"Updated setting {key} = {shown}",
        "setting",
        f"Failed to save setting {key}",
    )


def delete(key: str, ctx: ActorContext) -> ServiceResult[None]:
    if not ctx.is_owner:
        return ServiceResult.denied("Only the owner can change system settings")
    setting = _find(key)
    if setting is None:
        return ServiceResult.not_found(f"Setting {key} not found")

    db.session.delete(setting)
    audit.record(ctx, AuditAction.SETTINGS_CHANGE, f"Removed setting {key}",
                 entity_type="setting", entity_id=setting.id)
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to remove setting {key}: {e}")
        return ServiceResult.failure(ErrorKind.PERSISTENCE, "Failed to remove setting")
    return ServiceResult.success(None, f"Setting {key} removed")


__all__ = [
    "MONTHLY_PRICE_KEY",
    "get",
    "get_int",
    "get_bool",
    "get_decimal",
    "set",
    "delete",
    "all_settings",
    "monthly_price",
]
