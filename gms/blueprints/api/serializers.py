"""JSON serializers for API responses."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from gms.models import AuditLog, Branch, Member, SystemSetting, TrainingProgress, User
from gms.services.periods import days_remaining, membership_status


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value else None


def _num(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


def serialize_branch(branch: Branch) -> dict:
    return {
        'id': branch.id,
        'name': branch.name,
        'location': branch.location,
        'contact_number': branch.contact_number,
        'is_active': branch.is_active,
        'created_at': _iso(branch.created_at),
    }


def serialize_user(user: User) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'email': user.email,
        'mobile': user.mobile,
        'role': user.role.value,
        'branch_id': user.branch_id,
        'is_active': user.active,
        'last_login_at': _iso(user.last_login_at),
        'created_at': _iso(user.created_at),
    }


def serialize_member(member: Member, today: date | None = None) -> dict:
    return {
        'id': member.id,
        'random_id': member.random_id,
        'first_name': member.first_name,
        'last_name': member.last_name,
        'mobile': member.mobile,
        'email': member.email,
        'height': _num(member.height),
        'weight': _num(member.weight),
        'gender': member.gender.value if member.gender else None,
        'date_of_birth': _iso(member.date_of_birth),
        'payment': _num(member.payment),
        'period': member.period,
        'start_date': _iso(member.start_date),
        'end_date': _iso(member.end_date),
        'coach_id': member.coach_id,
        'branch_id': member.branch_id,
        'is_active': member.is_active,
        'status': membership_status(member.end_date, member.is_active, today).value,
        'days_remaining': days_remaining(member.end_date, today),
        'notes': member.notes,
    }


def serialize_training(progress: TrainingProgress) -> dict:
    return {
        'id': progress.id,
        'member_id': progress.member_id,
        'coach_id': progress.coach_id,
        'session_date': _iso(progress.session_date),
        'notes': progress.notes,
        'rating': progress.rating,
        'is_active': progress.is_active,
    }


def serialize_audit_log(entry: AuditLog) -> dict:
    return {
        'id': entry.id,
        'user_id': entry.user_id,
        'action': entry.action,
        'entity_type': entry.entity_type,
        'entity_id': entry.entity_id,
        'details': entry.details,
        'ip_address': entry.ip_address,
        'timestamp': _iso(entry.timestamp),
    }


def serialize_setting(setting: SystemSetting) -> dict[str, Any]:
    secret = setting.key == 'email.smtp_password'
    return {
        'key': setting.key,
        'value': '********' if secret and setting.value else setting.value,
        'description': setting.description,
        'updated_by': setting.updated_by,
        'updated_at': _iso(setting.updated_at),
    }
