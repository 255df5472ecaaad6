"""Coach-recorded training sessions for members."""

from __future__ import annotations

from datetime import date
from typing import Any

from flask import current_app
from sqlalchemy import select

from gms.extensions import db
from gms.models import Member, TrainingProgress, User, UserRole
from gms.services.audit import AuditAction
from gms.services.context import ActorContext
from gms.services.crud import CRUDService
from gms.services.members import parse_date
from gms.services.results import ServiceResult
from gms.services.validation import validate_required


class TrainingProgressService(CRUDService[TrainingProgress]):
    model = TrainingProgress
    entity_type = "training_progress"

    @property
    def rating_range(self) -> tuple[int, int]:
        return (
            current_app.config.get("TRAINING_RATING_MIN", 1),
            current_app.config.get("TRAINING_RATING_MAX", 5),
        )

    def list_by_member(self, member_id: str, active_only: bool = True) -> list[TrainingProgress]:
        stmt = select(TrainingProgress).where(TrainingProgress.member_id == member_id)
        if active_only:
            stmt = stmt.where(TrainingProgress.is_active.is_(True))
        stmt = stmt.order_by(TrainingProgress.session_date.desc())
        return list(db.session.execute(stmt).scalars())

    def list_by_coach(self, coach_id: str, active_only: bool = True) -> list[TrainingProgress]:
        stmt = select(TrainingProgress).where(TrainingProgress.coach_id == coach_id)
        if active_only:
            stmt = stmt.where(TrainingProgress.is_active.is_(True))
        stmt = stmt.order_by(TrainingProgress.session_date.desc())
        return list(db.session.execute(stmt).scalars())

    def _check_rating(self, rating: Any) -> tuple[int | None, str | None]:
        if rating is None or rating == "":
            return None, None
        low, high = self.rating_range
        try:
            value = int(rating)
        except (TypeError, ValueError):
            return None, f"Rating must be between {low} and {high}"
        if isinstance(rating, float) and not rating.is_integer():
            return None, f"Rating must be between {low} and {high}"
        if value < low or value > high:
            return None, f"Rating must be between {low} and {high}"
        return value, None

    def _check_member_access(self, ctx: ActorContext, member: Member) -> str | None:
        if ctx.is_owner:
            return None
        if ctx.is_admin:
            if member.branch_id != ctx.branch_id:
                return "Admins can only record training for members of their own branch"
            return None
        if ctx.is_coach:
            if member.coach_id != ctx.user_id:
                return "Coaches can only record training for their assigned members"
            return None
        return "You do not have permission to record training"

    def create(self, data: dict[str, Any], ctx: ActorContext, today: date | None = None) -> ServiceResult[TrainingProgress]:
        today = today or date.today()

        member_id = data.get("member_id")
        member = db.session.get(Member, member_id) if isinstance(member_id, str) and member_id else None
        if member is None:
            return ServiceResult.not_found("Member not found")
        if not member.is_active:
            return ServiceResult.invalid("Cannot record training for an inactive member")

        denial = self._check_member_access(ctx, member)
        if denial:
            return ServiceResult.denied(denial)

        try:
            session_date = parse_date(data.get("session_date"))
        except ValueError:
            return ServiceResult.invalid("Session date must use the YYYY-MM-DD format")
        if session_date is None:
            return ServiceResult.invalid("Session date is required")
        if session_date > today:
            return ServiceResult.invalid("Session date cannot be in the future")

        result = validate_required(data.get("notes"), "Training notes")
        if not result:
            return ServiceResult.invalid(result.message)

        rating, error = self._check_rating(data.get("rating"))
        if error:
            return ServiceResult.invalid(error)

        # The acting coach records their own sessions; staff record on behalf of the assigned coach
        coach_id = ctx.user_id if ctx.is_coach else (data.get("coach_id") or member.coach_id)
        if not coach_id:
            return ServiceResult.invalid("Member has no assigned coach")
        coach = db.session.get(User, coach_id) if isinstance(coach_id, str) else None
        if coach is None or coach.role is not UserRole.COACH:
            return ServiceResult.invalid("Training must be recorded against a coach")

        progress = TrainingProgress(
            member_id=member.id,
            coach_id=coach.id,
            session_date=session_date,
            notes=data["notes"].strip(),
            rating=rating,
            is_active=True,
        )
        return self._save(
            progress, ctx, AuditAction.TRAINING_CREATE,
            f"Recorded training session for member ID: {member.random_id} by coach ID: {coach.id}", "create",
        )

    def update(self, progress_id: str, data: dict[str, Any], ctx: ActorContext, today: date | None = None) -> ServiceResult[TrainingProgress]:
        today = today or date.today()

        progress = self.get(progress_id)
        if progress is None:
            return self._not_found()

        denial = self._check_member_access(ctx, progress.member)
        if denial:
            return ServiceResult.denied(denial)
        if ctx.is_coach and progress.coach_id != ctx.user_id:
            return ServiceResult.denied("Coaches can only edit their own training records")

        changes: dict[str, Any] = {}
        if "session_date" in data:
            try:
                session_date = parse_date(data.get("session_date"))
            except ValueError:
                return ServiceResult.invalid("Session date must use the YYYY-MM-DD format")
            if session_date is None:
                return ServiceResult.invalid("Session date is required")
            if session_date > today:
                return ServiceResult.invalid("Session date cannot be in the future")
            changes["session_date"] = session_date

        if "notes" in data:
            result = validate_required(data.get("notes"), "Training notes")
            if not result:
                return ServiceResult.invalid(result.message)
            changes["notes"] = data["notes"].strip()

        if "rating" in data:
            rating, error = self._check_rating(data.get("rating"))
            if error:
                return ServiceResult.invalid(error)
            changes["rating"] = rating

        for field, value in changes.items():
            setattr(progress, field, value)

        return self._save(
            progress, ctx, AuditAction.TRAINING_UPDATE,
            f"Updated training session record (ID: {progress.id})", "update",
        )

    def delete(self, progress_id: str, ctx: ActorContext) -> ServiceResult[TrainingProgress]:
        progress = self.get(progress_id)
        if progress is None:
            return self._not_found()

        denial = self._check_member_access(ctx, progress.member)
        if denial:
            return ServiceResult.denied(denial)
        if ctx.is_coach and progress.coach_id != ctx.user_id:
            return ServiceResult.denied("Coaches can only delete their own training records")

        progress.is_active = False
        return self._save(
            progress, ctx, AuditAction.TRAINING_DELETE,
            f"Deleted training session record (ID: {progress.id})", "delete",
        )


__all__ = ["TrainingProgressService"]
