"""Security package for the gym management system."""

from __future__ import annotations

from functools import wraps

from flask import abort
from flask_login import current_user

from gms.models import UserRole


def roles_required(*roles: UserRole | str):
    """Ensure the current user is signed in, active and has one of the roles."""

    def decorator(view_func):
        @wraps(view_func)
        def wrapped(*args, **kwargs):
            if not current_user.is_authenticated:
                abort(401)

            if not current_user.is_active:
                abort(403)

            if roles and not current_user.has_role(*roles):
                abort(403)

            return view_func(*args, **kwargs)

        return wrapped

    return decorator


__all__ = ["roles_required"]
