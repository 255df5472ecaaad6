"""Gym member management, including membership period and random-id allocation."""

from __future__ import annotations

import secrets
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from flask import current_app
from sqlalchemy import func, or_, select

from gms.extensions import db
from gms.models import Branch, Gender, Member, MembershipStatus, User, UserRole
from gms.services import settings
from gms.services.audit import AuditAction
from gms.services.context import ActorContext
from gms.services.crud import CRUDService
from gms.services.periods import MembershipTerm, calculate_membership, membership_status
from gms.services.results import ErrorKind, ServiceResult
from gms.services.validation import (
    normalize_mobile,
    validate_email,
    validate_mobile,
    validate_name,
    validate_positive_number,
)

RANDOM_ID_MIN = 10_000_000
RANDOM_ID_MAX = 99_999_999
PAYMENT_MAX = Decimal("99999999.99")

_FIELDS = (
    "first_name", "last_name", "mobile", "email", "height", "weight", "gender",
    "date_of_birth", "payment", "start_date", "coach_id", "branch_id", "notes",
)


def default_random_id() -> int:
    return RANDOM_ID_MIN + secrets.randbelow(RANDOM_ID_MAX - RANDOM_ID_MIN + 1)


def parse_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def _as_random_id(value: Any) -> int | None:
    """Parse a member id; anything outside the 8-digit range is not one."""
    text = str(value).strip()
    if not (text.isascii() and text.isdigit()) or len(text) > len(str(RANDOM_ID_MAX)):
        return None
    number = int(text)
    return number if RANDOM_ID_MIN <= number <= RANDOM_ID_MAX else None


def _decimal(value: Any) -> Decimal | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return Decimal(str(value).strip())


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class MemberService(CRUDService[Member]):
    model = Member
    entity_type = "member"

    def __init__(self, id_generator: Callable[[], int] | None = None):
        self.id_generator = id_generator or default_random_id

    @property
    def country_code(self) -> str:
        return current_app.config.get("MOBILE_COUNTRY_CODE", "20")

    # Lookups

    def get_by_random_id(self, random_id: int | str) -> Member | None:
        value = _as_random_id(random_id)
        if value is None:
            return None
        return db.session.execute(select(Member).where(Member.random_id == value)).scalar_one_or_none()

    def find_by_mobile(self, mobile: str) -> Member | None:
        normalized = normalize_mobile(mobile, self.country_code)
        return db.session.execute(select(Member).where(Member.mobile == normalized)).scalar_one_or_none()

    def mobile_taken(self, mobile: str, exclude_id: str | None = None) -> bool:
        existing = self.find_by_mobile(mobile)
        return existing is not None and existing.id != exclude_id

    def status_of(self, member: Member, today: date | None = None) -> MembershipStatus:
        return membership_status(member.end_date, member.is_active, today)

    def can_view(self, ctx: ActorContext, member: Member) -> bool:
        if ctx.is_owner:
            return True
        if ctx.is_admin:
            return member.branch_id == ctx.branch_id
        if ctx.is_coach:
            return member.coach_id == ctx.user_id
        return False

    def list_members(
        self,
        ctx: ActorContext,
        branch_id: str | None = None,
        status: MembershipStatus | str | None = None,
        today: date | None = None,
    ) -> list[Member]:
        """Members visible to ``ctx``, optionally narrowed by branch and derived status."""
        stmt = select(Member)
        if ctx.is_owner:
            if branch_id:
                stmt = stmt.where(Member.branch_id == branch_id)
        elif ctx.is_admin:
            stmt = stmt.where(Member.branch_id == ctx.branch_id)
        elif ctx.is_coach:
            stmt = stmt.where(Member.coach_id == ctx.user_id)
            if branch_id:
                stmt = stmt.where(Member.branch_id == branch_id)
        else:
            return []

        members = list(db.session.execute(stmt.order_by(Member.last_name, Member.first_name)).scalars())
        if status:
            wanted = status if isinstance(status, MembershipStatus) else MembershipStatus(str(status).lower())
            members = [m for m in members if self.status_of(m, today) is wanted]
        return members

    def list_by_branch(self, branch_id: str, active_only: bool = False) -> list[Member]:
        stmt = select(Member).where(Member.branch_id == branch_id)
        if active_only:
            stmt = stmt.where(Member.is_active.is_(True))
        return list(db.session.execute(stmt.order_by(Member.last_name, Member.first_name)).scalars())

    def list_by_coach(self, coach_id: str, active_only: bool = False) -> list[Member]:
        stmt = select(Member).where(Member.coach_id == coach_id)
        if active_only:
            stmt = stmt.where(Member.is_active.is_(True))
        return list(db.session.execute(stmt.order_by(Member.last_name, Member.first_name)).scalars())

    def search(self, keyword: str | None, branch_id: str | None = None) -> list[Member]:
        """Match first name, last name or mobile by substring, or the exact member id."""
        stmt = select(Member)
        keyword = (keyword or "").strip()
        if keyword:
            pattern = f"%{keyword}%"
            clauses = [
                Member.first_name.ilike(pattern),
                Member.last_name.ilike(pattern),
                Member.mobile.like(pattern),
            ]
            normalized = normalize_mobile(keyword, self.country_code)
            if normalized and normalized != keyword:
                clauses.append(Member.mobile.like(f"%{normalized}%"))
            random_id = _as_random_id(keyword)
            if random_id is not None:
                clauses.append(Member.random_id == random_id)
            stmt = stmt.where(or_(*clauses))
        if branch_id:
            stmt = stmt.where(Member.branch_id == branch_id)
        return list(db.session.execute(stmt.order_by(Member.last_name, Member.first_name)).scalars())

    def count_by_branch(self, branch_id: str, active_only: bool = True) -> int:
        stmt = select(func.count(Member.id)).where(Member.branch_id == branch_id)
        if active_only:
            stmt = stmt.where(Member.is_active.is_(True))
        return db.session.scalar(stmt) or 0

    # Rules

    def allocate_random_id(self) -> int | None:
        """Find a free 8-digit member id; None when every attempt collides."""
        attempts = current_app.config.get("RANDOM_ID_MAX_ATTEMPTS", 10)
        for _ in range(attempts):
            candidate = self.id_generator()
            exists = db.session.scalar(select(func.count(Member.id)).where(Member.random_id == candidate))
            if not exists:
                return candidate
        current_app.logger.error(f"Failed to generate unique random ID after {attempts} attempts")
        return None

    def _parse(self, data: dict[str, Any]) -> tuple[dict[str, Any] | None, str | None]:
        """Validate raw input and convert it to column values."""
        for field, label in (("first_name", "First name"), ("last_name", "Last name")):
            result = validate_name(data.get(field), label)
            if not result:
                return None, result.message

        result = validate_mobile(data.get("mobile"), self.country_code)
        if not result:
            return None, result.message

        email = _clean(data.get("email"))
        if email:
            result = validate_email(email)
            if not result:
                return None, result.message

        result = validate_positive_number(data.get("payment"), "Payment")
        if not result:
            return None, result.message
        if _decimal(data.get("payment")) > PAYMENT_MAX:
            return None, f"Payment must not exceed {PAYMENT_MAX}"

        gender = Gender.parse(data.get("gender"))
        if gender is None:
            return None, "Gender must be one of: male, female, other"

        try:
            start_date = parse_date(data.get("start_date"))
            date_of_birth = parse_date(data.get("date_of_birth"))
        except ValueError:
            return None, "Dates must use the YYYY-MM-DD format"
        if start_date is None:
            return None, "Start date is required"
        if date_of_birth is not None and date_of_birth > date.today():
            return None, "Date of birth cannot be in the future"

        values: dict[str, Any] = {}
        for field, label in (("height", "Height"), ("weight", "Weight")):
            raw = data.get(field)
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                values[field] = None
                continue
            result = validate_positive_number(raw, label)
            if not result:
                return None, result.message
            values[field] = _decimal(raw)

        values.update(
            first_name=data["first_name"].strip(),
            last_name=data["last_name"].strip(),
            mobile=normalize_mobile(data["mobile"], self.country_code),
            email=email,
            gender=gender,
            date_of_birth=date_of_birth,
            payment=_decimal(data["payment"]),
            start_date=start_date,
            coach_id=_clean(data.get("coach_id")),
            branch_id=_clean(data.get("branch_id")),
            notes=_clean(data.get("notes")),
        )
        return values, None

    def _check_assignment(self, ctx: ActorContext, branch_id: str | None, coach_id: str | None) -> ServiceResult | None:
        if ctx.is_coach:
            return ServiceResult.denied("Coaches cannot modify members")
        if not ctx.is_owner and not ctx.is_admin:
            return ServiceResult.denied("You do not have permission to modify members")
        if not branch_id:
            return ServiceResult.invalid("Branch is required")
        if ctx.is_admin and branch_id != ctx.branch_id:
            return ServiceResult.denied("Admins can only manage members of their own branch")

        branch = db.session.get(Branch, branch_id)
        if branch is None:
            return ServiceResult.invalid("Branch not found")
        if not branch.is_active:
            return ServiceResult.invalid(f"Branch {branch.name} is inactive")

        if coach_id:
            coach = db.session.get(User, coach_id)
            if coach is None or coach.role is not UserRole.COACH or not coach.active:
                return ServiceResult.invalid("Assigned coach must be an active coach")
            if coach.branch_id != branch_id:
                return ServiceResult.invalid("Assigned coach must belong to the member's branch")
        return None

    def _term(self, payment: Decimal, start_date: date) -> tuple[MembershipTerm | None, str | None]:
        try:
            term = calculate_membership(payment, start_date, settings.monthly_price())
        except ValueError:
            return None, "Payment covers a membership that ends beyond the supported calendar range"
        if term.months == 0 and term.days == 0:
            return None, "Payment is too small to cover a single day of membership"
        return term, None

    # Mutators

    def create(self, data: dict[str, Any], ctx: ActorContext) -> ServiceResult[Member]:
        if ctx.is_coach:
            return ServiceResult.denied("Coaches cannot modify members")
        data = dict(data)
        if ctx.is_admin and not data.get("branch_id"):
            data["branch_id"] = ctx.branch_id

        values, error = self._parse(data)
        if error:
            return ServiceResult.invalid(error)

        problem = self._check_assignment(ctx, values["branch_id"], values["coach_id"])
        if problem is not None:
            return problem

        if self.mobile_taken(values["mobile"]):
            return ServiceResult.conflict(f"Mobile number already exists: {values['mobile']}")

        term, error = self._term(values["payment"], values["start_date"])
        if error:
            return ServiceResult.invalid(error)

        random_id = self.allocate_random_id()
        if random_id is None:
            return ServiceResult.failure(ErrorKind.PERSISTENCE, "Failed to generate unique member ID")

        member = Member(random_id=random_id, period=term.label, end_date=term.end_date, is_active=True, **values)
        return self._save(
            member, ctx, AuditAction.MEMBER_CREATE,
            f"Created new member: {member.first_name} {member.last_name} (ID: {random_id})", "create",
        )

    def update(self, member_id: str, data: dict[str, Any], ctx: ActorContext) -> ServiceResult[Member]:
        member = self.get(member_id)
        if member is None:
            return self._not_found()
        if ctx.is_coach:
            return ServiceResult.denied("Coaches cannot modify members")
        if ctx.is_admin and member.branch_id != ctx.branch_id:
            return ServiceResult.denied("Admins can only manage members of their own branch")

        merged = {field: getattr(member, field) for field in _FIELDS}
        merged["gender"] = member.gender.value
        merged.update({k: v for k, v in data.items() if k in _FIELDS})

        values, error = self._parse(merged)
        if error:
            return ServiceResult.invalid(error)

        problem = self._check_assignment(ctx, values["branch_id"], values["coach_id"])
        if problem is not None:
            return problem

        if self.mobile_taken(values["mobile"], exclude_id=member.id):
            return ServiceResult.conflict(f"Mobile number already exists: {values['mobile']}")

        term, error = self._term(values["payment"], values["start_date"])
        if error:
            return ServiceResult.invalid(error)

        for field, value in values.items():
            setattr(member, field, value)
        member.period = term.label
        member.end_date = term.end_date
        if "is_active" in data and data["is_active"] is not None:
            member.is_active = bool(data["is_active"])

        return self._save(
            member, ctx, AuditAction.MEMBER_UPDATE,
            f"Updated member: {member.first_name} {member.last_name} (ID: {member.random_id})", "update",
        )

    def delete(self, member_id: str, ctx: ActorContext) -> ServiceResult[Member]:
        member = self.get(member_id)
        if member is None:
            return self._not_found()
        if ctx.is_coach:
            return ServiceResult.denied("Coaches cannot modify members")
        if not ctx.is_owner and not ctx.is_admin:
            return ServiceResult.denied("You do not have permission to modify members")
        if ctx.is_admin and member.branch_id != ctx.branch_id:
            return ServiceResult.denied("Admins can only manage members of their own branch")

        member.is_active = False
        return self._save(
            member, ctx, AuditAction.MEMBER_DELETE,
            f"Deleted member: {member.first_name} {member.last_name} (ID: {member.random_id})", "delete",
        )


__all__ = ["MemberService", "default_random_id", "parse_date", "RANDOM_ID_MIN", "RANDOM_ID_MAX"]
