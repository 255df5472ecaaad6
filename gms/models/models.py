from __future__ import annotations

import uuid
from datetime import datetime, date, timezone
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from gms.extensions import db


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampedBase(db.Model):
    """Abstract base providing id/created/updated columns."""

    __abstract__ = True

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
        nullable=False,
    )


class UserRole(Enum):
    OWNER = "owner"
    ADMIN = "admin"
    COACH = "coach"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, value: "UserRole | str | None") -> "UserRole | None":
        if isinstance(value, cls):
            return value
        if value is None:
            return None
        text = str(value).strip().lower()
        for role in cls:
            if role.value == text or role.name.lower() == text:
                return role
        return None


class Gender(Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"

    @classmethod
    def parse(cls, value: "Gender | str | None") -> "Gender | None":
        if isinstance(value, cls):
            return value
        if value is None:
            return None
        text = str(value).strip().lower()
        for gender in cls:
            if gender.value == text:
                return gender
        return None


class MembershipStatus(Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    INACTIVE = "inactive"


class Branch(TimestampedBase):
    __tablename__ = "branches"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_number: Mapped[str | None] = mapped_column(String(20))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    users: Mapped[list["User"]] = relationship(back_populates="branch")
    members: Mapped[list["Member"]] = relationship(back_populates="branch")

    def __repr__(self) -> str:
        return f"<Branch {self.name!r}>"


# Branch names are unique regardless of case
Index("uq_branches_name_lower", func.lower(Branch.name), unique=True)


class User(TimestampedBase):
    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    mobile: Mapped[str | None] = mapped_column(String(20))
    role: Mapped[UserRole] = mapped_column(
        SqlEnum(UserRole, name="user_role", native_enum=False),
        nullable=False,
    )
    branch_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("branches.id", ondelete="RESTRICT"),
        index=True,
    )
    active: Mapped[bool] = mapped_column('is_active', Boolean, nullable=False, default=True)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    branch: Mapped[Branch | None] = relationship(back_populates="users")
    assigned_members: Mapped[list["Member"]] = relationship(back_populates="coach")
    audit_logs: Mapped[list["AuditLog"]] = relationship(back_populates="user")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def has_role(self, *roles: UserRole | str) -> bool:
        role_value = self.role.value if isinstance(self.role, UserRole) else str(self.role)
        allowed = {r.value if isinstance(r, UserRole) else str(r).lower() for r in roles}
        return role_value in allowed

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def is_active(self) -> bool:  # Flask-Login compatibility
        return bool(self.active)

    @property
    def is_anonymous(self) -> bool:
        return False

    def get_id(self) -> str:
        return self.id

    def __repr__(self) -> str:
        return f"<User {self.username!r} {self.role.value}>"


class Member(TimestampedBase):
    __tablename__ = "members"

    random_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    mobile: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    email: Mapped[str | None] = mapped_column(String(255))
    height: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    weight: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    gender: Mapped[Gender] = mapped_column(
        SqlEnum(Gender, name="gender", native_enum=False),
        nullable=False,
    )
    date_of_birth: Mapped[date | None] = mapped_column(Date)
    payment: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    period: Mapped[str] = mapped_column(String(50), nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    coach_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        index=True,
    )
    branch_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("branches.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    notes: Mapped[str | None] = mapped_column(Text)

    branch: Mapped[Branch] = relationship(back_populates="members")
    coach: Mapped[User | None] = relationship(back_populates="assigned_members")
    training_sessions: Mapped[list["TrainingProgress"]] = relationship(back_populates="member")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<Member {self.random_id} {self.full_name!r}>"


class TrainingProgress(TimestampedBase):
    __tablename__ = "training_progress"

    member_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    coach_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    session_date: Mapped[date] = mapped_column(Date, nullable=False)
    notes: Mapped[str] = mapped_column(Text, nullable=False)
    rating: Mapped[int | None] = mapped_column(Integer)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    member: Mapped[Member] = relationship(back_populates="training_sessions")
    coach: Mapped[User] = relationship()


class AuditLog(db.Model):
    """Append-only record of who did what; rows are never updated."""

    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    user_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        index=True,
    )
    action: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    entity_type: Mapped[str | None] = mapped_column(String(64))
    entity_id: Mapped[str | None] = mapped_column(String(36))
    details: Mapped[str | None] = mapped_column(Text)
    ip_address: Mapped[str | None] = mapped_column(String(45))
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False,
        index=True,
    )

    user: Mapped[User | None] = relationship(back_populates="audit_logs")


class SystemSetting(TimestampedBase):
    __tablename__ = "system_settings"

    key: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    value: Mapped[str | None] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(String(255))
    updated_by: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
    )


__all__ = [
    "TimestampedBase",
    "UserRole",
    "Gender",
    "MembershipStatus",
    "Branch",
    "User",
    "Member",
    "TrainingProgress",
    "AuditLog",
    "SystemSetting",
]
