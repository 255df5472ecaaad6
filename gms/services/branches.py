"""Branch management."""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select

from gms.extensions import db
from gms.models import Branch, Member, User
from gms.services.audit import AuditAction
from gms.services.context import ActorContext
from gms.services.crud import CRUDService
from gms.services.results import ServiceResult
from gms.services.validation import validate_name, validate_required

_EDITABLE = ("name", "location", "contact_number")


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class BranchService(CRUDService[Branch]):
    model = Branch
    entity_type = "branch"

    def list_all(self) -> list[Branch]:
        return list(db.session.execute(select(Branch).order_by(Branch.name)).scalars())

    def list_active(self) -> list[Branch]:
        stmt = select(Branch).where(Branch.is_active.is_(True)).order_by(Branch.name)
        return list(db.session.execute(stmt).scalars())

    def find_by_name(self, name: str) -> Branch | None:
        stmt = select(Branch).where(func.lower(Branch.name) == name.strip().lower())
        return db.session.execute(stmt).scalar_one_or_none()

    def name_taken(self, name: str, exclude_id: str | None = None) -> bool:
        existing = self.find_by_name(name)
        return existing is not None and existing.id != exclude_id

    def _dependents_conflict(self, branch: Branch) -> ServiceResult | None:
        active_users = db.session.scalar(
            select(func.count(User.id)).where(User.branch_id == branch.id, User.active.is_(True))
        )
        active_members = db.session.scalar(
            select(func.count(Member.id)).where(Member.branch_id == branch.id, Member.is_active.is_(True))
        )
        if active_users or active_members:
            return ServiceResult.conflict(
                f"Branch {branch.name} still has {active_users} active staff and "
                f"{active_members} active members; reassign or deactivate them first"
            )
        return None

    def _validate(self, data: dict[str, Any]) -> str | None:
        result = validate_name(data.get("name"), "Branch name")
        if not result:
            return result.message
        result = validate_required(data.get("location"), "Branch location")
        if not result:
            return result.message
        contact = _clean(data.get("contact_number"))
        if contact and len(contact) > 20:
            return "Contact number must be at most 20 characters"
        return None

    def create(self, data: dict[str, Any], ctx: ActorContext) -> ServiceResult[Branch]:
        if not ctx.is_owner:
            return ServiceResult.denied("Only the owner can manage branches")

        error = self._validate(data)
        if error:
            return ServiceResult.invalid(error)

        name = data["name"].strip()
        if self.name_taken(name):
            return ServiceResult.conflict(f"Branch name already exists: {name}")

        branch = Branch(
            name=name,
            location=data["location"].strip(),
            contact_number=_clean(data.get("contact_number")),
            is_active=True,
        )
        return self._save(branch, ctx, AuditAction.BRANCH_CREATE, f"Created new branch: {name}", "create")

    def update(self, branch_id: str, data: dict[str, Any], ctx: ActorContext) -> ServiceResult[Branch]:
        if not ctx.is_owner:
            return ServiceResult.denied("Only the owner can manage branches")

        branch = self.get(branch_id)
        if branch is None:
            return self._not_found()

        merged = {field: getattr(branch, field) for field in _EDITABLE}
        merged.update({k: v for k, v in data.items() if k in _EDITABLE})
        error = self._validate(merged)
        if error:
            return ServiceResult.invalid(error)

        name = merged["name"].strip()
        if self.name_taken(name, exclude_id=branch.id):
            return ServiceResult.conflict(f"Branch name already exists: {name}")

        activate = branch.is_active
        if "is_active" in data and data["is_active"] is not None:
            activate = bool(data["is_active"])
        if branch.is_active and not activate:
            conflict = self._dependents_conflict(branch)
            if conflict is not None:
                return conflict

        branch.name = name
        branch.location = merged["location"].strip()
        branch.contact_number = _clean(merged.get("contact_number"))
        branch.is_active = activate

        return self._save(
            branch, ctx, AuditAction.BRANCH_UPDATE, f"Updated branch: {name} (ID: {branch.id})", "update"
        )

    def delete(self, branch_id: str, ctx: ActorContext) -> ServiceResult[Branch]:
        """Deactivate a branch; refused while active staff or members still reference it."""
        if not ctx.is_owner:
            return ServiceResult.denied("Only the owner can manage branches")

        branch = self.get(branch_id)
        if branch is None:
            return self._not_found()

        conflict = self._dependents_conflict(branch)
        if conflict is not None:
            return conflict

        branch.is_active = False
        return self._save(
            branch, ctx, AuditAction.BRANCH_DELETE, f"Deleted branch: {branch.name} (ID: {branch.id})", "delete"
        )


__all__ = ["BranchService"]
