"""Shared persistence plumbing for the entity services."""

from __future__ import annotations

from typing import Any, Generic, Type, TypeVar

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from gms.extensions import db
from gms.services import audit
from gms.services.audit import AuditAction
from gms.services.context import ActorContext
from gms.services.results import ErrorKind, ServiceResult

Model = TypeVar("Model", bound=db.Model)

# Substrings of unique-constraint names / columns mapped to friendly messages
_INTEGRITY_MESSAGES = {
    "username": "Username already exists",
    "email": "Email already exists",
    "mobile": "Mobile number already exists",
    "random_id": "Member ID collision, please try again",
    "name": "Branch name already exists",
    "key": "Setting already exists",
}


def handle_integrity_error(error: IntegrityError) -> str:
    text = str(getattr(error, "orig", error)).lower()
    for needle, message in _INTEGRITY_MESSAGES.items():
        if needle in text:
            return message
    return "A record with these details already exists"


def save_with_audit(
    instance: Any,
    ctx: ActorContext,
    action: AuditAction,
    details: str | Any,
    entity_type: str,
    failure_message: str,
) -> ServiceResult:
    """
    Persist an entity change and its audit entry in one transaction.

    Args:
        instance: Model instance that was created or modified
        ctx: Actor performing the change
        action: Audit action code
        details: Detail string, or a callable receiving the flushed instance
        entity_type: Audit entity type label
        failure_message: Message returned on a storage failure

    Returns:
        ServiceResult carrying the instance on success
    """
    try:
        db.session.add(instance)
        db.session.flush()  # Get ID before writing the audit row
        text = details(instance) if callable(details) else details
        audit.record(ctx, action, text, entity_type=entity_type, entity_id=instance.id)
        db.session.commit()
        return ServiceResult.success(instance, text)

    except IntegrityError as e:
        db.session.rollback()
        return ServiceResult.conflict(handle_integrity_error(e))

    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"{failure_message}: {e}")
        return ServiceResult.failure(ErrorKind.PERSISTENCE, failure_message)


class CRUDService(Generic[Model]):
    """Base service with lookups shared by every entity."""

    model: Type[Model]
    entity_type: str = ""

    @property
    def model_name(self) -> str:
        return self.entity_type or self.model.__tablename__

    def get(self, object_id: str | None) -> Model | None:
        """Direct lookup by id, regardless of the active flag."""
        if not object_id:
            return None
        return db.session.get(self.model, object_id)

    def _not_found(self) -> ServiceResult:
        return ServiceResult.not_found(f"{self.model_name.replace('_', ' ').capitalize()} not found")

    def _save(self, instance: Model, ctx: ActorContext, action: AuditAction, details, verb: str) -> ServiceResult:
        return save_with_audit(
            instance,
            ctx,
            action,
            details,
            self.model_name,
            f"Failed to {verb} {self.model_name.replace('_', ' ')}",
        )


__all__ = ["CRUDService", "save_with_audit", "handle_integrity_error"]
