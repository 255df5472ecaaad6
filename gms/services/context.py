"""Who is performing a service call."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from gms.models import UserRole

if TYPE_CHECKING:
    from gms.models import User


@dataclass(frozen=True)
class ActorContext:
    """Identity of the caller, passed explicitly into every service call.

    A context without ``user_id`` is the system actor (CLI bootstrap, seed
    data, batch jobs). It may perform any mutation and is recorded in the
    audit log with a null user.
    """

    user_id: str | None = None
    role: UserRole | None = None
    branch_id: str | None = None
    ip_address: str | None = None

    @classmethod
    def for_user(cls, user: User, ip_address: str | None = None) -> "ActorContext":
        return cls(
            user_id=user.id,
            role=user.role,
            branch_id=user.branch_id,
            ip_address=ip_address,
        )

    @classmethod
    def system(cls, ip_address: str | None = None) -> "ActorContext":
        return cls(ip_address=ip_address)

    @property
    def is_system(self) -> bool:
        return self.user_id is None

    @property
    def is_owner(self) -> bool:
        return self.is_system or self.role is UserRole.OWNER

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN

    @property
    def is_coach(self) -> bool:
        return self.role is UserRole.COACH


__all__ = ["ActorContext"]
