"""Membership statistics and branch reports."""

from __future__ import annotations

from collections import Counter
from datetime import date
from decimal import Decimal
from typing import Any

from flask import current_app
from sqlalchemy import select

from gms.extensions import db
from gms.models import Branch, Member, MembershipStatus, User, UserRole
from gms.services.context import ActorContext
from gms.services.periods import is_expiring_soon, membership_status
from gms.services.results import ServiceResult


def _member_stats(members: list[Member], today: date, threshold: int) -> dict[str, Any]:
    counts = Counter(membership_status(m.end_date, m.is_active, today) for m in members)
    active = [m for m in members if membership_status(m.end_date, m.is_active, today) is MembershipStatus.ACTIVE]
    return {
        "total_members": len(members),
        "active_members": counts[MembershipStatus.ACTIVE],
        "expired_members": counts[MembershipStatus.EXPIRED],
        "inactive_members": counts[MembershipStatus.INACTIVE],
        "expiring_soon": sum(1 for m in active if is_expiring_soon(m.end_date, today, threshold)),
        "active_revenue": str(sum((m.payment for m in active), Decimal("0.00"))),
    }


def summary(ctx: ActorContext, today: date | None = None) -> ServiceResult[dict[str, Any]]:
    """Headline numbers; admins only see their own branch."""
    if ctx.is_coach:
        return ServiceResult.denied("Coaches cannot view statistics")
    if not ctx.is_owner and not ctx.is_admin:
        return ServiceResult.denied("You do not have permission to view statistics")

    today = today or date.today()
    threshold = current_app.config.get("EXPIRING_SOON_DAYS", 7)

    member_stmt = select(Member)
    user_stmt = select(User).where(User.active.is_(True))
    branch_stmt = select(Branch)
    if ctx.is_admin:
        member_stmt = member_stmt.where(Member.branch_id == ctx.branch_id)
        user_stmt = user_stmt.where(User.branch_id == ctx.branch_id)
        branch_stmt = branch_stmt.where(Branch.id == ctx.branch_id)

    members = list(db.session.execute(member_stmt).scalars())
    staff = list(db.session.execute(user_stmt).scalars())
    branches = list(db.session.execute(branch_stmt).scalars())

    data = _member_stats(members, today, threshold)
    staff_roles = Counter(u.role for u in staff)
    data.update(
        total_branches=len(branches),
        active_branches=sum(1 for b in branches if b.is_active),
        owners=staff_roles[UserRole.OWNER],
        admins=staff_roles[UserRole.ADMIN],
        coaches=staff_roles[UserRole.COACH],
        period_distribution=dict(Counter(m.period for m in members if m.is_active)),
        as_of=today.isoformat(),
    )
    return ServiceResult.success(data)


def branch_report(branch_id: str, ctx: ActorContext, today: date | None = None) -> ServiceResult[dict[str, Any]]:
    """Per-branch member status counts, revenue and coach load."""
    if ctx.is_coach:
        return ServiceResult.denied("Coaches cannot view branch reports")
    if ctx.is_admin and branch_id != ctx.branch_id:
        return ServiceResult.denied("Admins can only view their own branch")
    if not ctx.is_owner and not ctx.is_admin:
        return ServiceResult.denied("You do not have permission to view branch reports")

    branch = db.session.get(Branch, branch_id)
    if branch is None:
        return ServiceResult.not_found("Branch not found")

    today = today or date.today()
    threshold = current_app.config.get("EXPIRING_SOON_DAYS", 7)
    members = list(db.session.execute(select(Member).where(Member.branch_id == branch.id)).scalars())
    coaches = list(db.session.execute(
        select(User).where(
            User.branch_id == branch.id,
            User.role == UserRole.COACH,
            User.active.is_(True),
        ).order_by(User.last_name, User.first_name)
    ).scalars())

    load = Counter(m.coach_id for m in members if m.is_active and m.coach_id)
    data = _member_stats(members, today, threshold)
    data.update(
        branch_id=branch.id,
        branch_name=branch.name,
        location=branch.location,
        is_active=branch.is_active,
        coach_count=len(coaches),
        unassigned_members=sum(1 for m in members if m.is_active and not m.coach_id),
        coaches=[
            {"id": c.id, "name": c.full_name, "members": load.get(c.id, 0)}
            for c in coaches
        ],
        as_of=today.isoformat(),
    )
    return ServiceResult.success(data)


__all__ = ["summary", "branch_report"]
