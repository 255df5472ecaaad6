"""Authentication blueprint."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user

from gms.blueprints.api.serializers import serialize_user
from gms.blueprints.common import current_actor, json_body, respond
from gms.extensions import limiter
from gms.services.auth import AuthenticationService
from gms.services.users import UserService

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/login", methods=["POST"])
@limiter.limit("5 per minute")
def login():
    if current_user.is_authenticated:
        return jsonify({'message': 'Already logged in', 'item': serialize_user(current_user)})

    data = json_body()
    result = AuthenticationService().login(data.get('username'), data.get('password'), request.remote_addr)
    if not result:
        return jsonify({'error': 'authentication', 'message': result.message}), 401

    login_user(result.user, remember=bool(data.get('remember_me')))
    return jsonify({'message': result.message, 'item': serialize_user(result.user)})


@auth_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    AuthenticationService().logout(current_actor())
    logout_user()
    return jsonify({'message': 'Logged out'})


@auth_bp.route("/me", methods=["GET"])
@login_required
def me():
    return jsonify({'item': serialize_user(current_user)})


@auth_bp.route("/change-password", methods=["POST"])
@login_required
def change_password():
    data = json_body()
    result = AuthenticationService().change_password(
        current_actor(), data.get('old_password') or '', data.get('new_password') or ''
    )
    return respond(result, serialize_user)


@auth_bp.route("/forgot-password", methods=["POST"])
@limiter.limit("3 per minute")
def forgot_password():
    """Owner account recovery; the new password is e-mailed, never returned."""
    data = json_body()
    result = AuthenticationService().owner_forgot_password(data.get('username'), request.remote_addr)
    if result.ok:
        result.value = None
    return respond(result)


@auth_bp.route("/reset-password", methods=["POST"])
@limiter.limit("3 per minute")
def reset_password():
    data = json_body()
    result = UserService().reset_password_by_email(
        data.get('username') or '', data.get('email') or '', request.remote_addr
    )
    if result.ok:
        result.value = None
    return respond(result)
