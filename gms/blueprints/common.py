"""Helpers shared by the JSON blueprints."""

from __future__ import annotations

from typing import Any, Callable

from flask import jsonify, request
from flask_login import current_user

from gms.services.context import ActorContext
from gms.services.results import ErrorKind, ServiceResult

ERROR_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.PERMISSION: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.PERSISTENCE: 500,
    ErrorKind.EXTERNAL: 502,
}


def current_actor() -> ActorContext:
    return ActorContext.for_user(current_user, request.remote_addr)


def json_body() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def error_response(kind: ErrorKind, message: str):
    return jsonify({'error': kind.value, 'message': message}), ERROR_STATUS[kind]


def respond(result: ServiceResult, serializer: Callable[[Any], Any] | None = None, status: int = 200):
    """Render a service result as JSON, mapping failures to HTTP status codes."""
    if not result.ok:
        return error_response(result.error, result.message)
    body: dict[str, Any] = {'message': result.message}
    if result.value is not None:
        body['item'] = serializer(result.value) if serializer else result.value
    if result.warnings:
        body['warnings'] = result.warnings
    return jsonify(body), status
