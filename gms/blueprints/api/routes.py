"""JSON API blueprint over the gym services."""

from __future__ import annotations

from datetime import date

from flask import Blueprint, Response, jsonify, request
from flask_login import login_required

from gms.blueprints.api.serializers import (
    serialize_audit_log,
    serialize_branch,
    serialize_member,
    serialize_setting,
    serialize_training,
    serialize_user,
)
from gms.blueprints.common import current_actor, error_response, json_body, respond
from gms.models import UserRole
from gms.security import roles_required
from gms.services import audit, reports, settings
from gms.services.branches import BranchService
from gms.services.export_import import ExportImportService
from gms.services.members import MemberService, parse_date
from gms.services.results import ErrorKind
from gms.services.training import TrainingProgressService
from gms.services.users import UserService

api_bp = Blueprint('api', __name__)

STAFF = (UserRole.OWNER, UserRole.ADMIN)


def _query_date(name: str) -> date | None:
    value = request.args.get(name)
    return parse_date(value) if value else None


def _flag(name: str) -> bool:
    return request.args.get(name, '').lower() in ('1', 'true', 'yes')


# Branches

@api_bp.route('/branches', methods=['GET'])
@login_required
def list_branches():
    service = BranchService()
    branches = service.list_active() if _flag('active') else service.list_all()
    return jsonify({'items': [serialize_branch(b) for b in branches]})


@api_bp.route('/branches', methods=['POST'])
@roles_required(UserRole.OWNER)
def create_branch():
    return respond(BranchService().create(json_body(), current_actor()), serialize_branch, 201)


@api_bp.route('/branches/<branch_id>', methods=['GET'])
@login_required
def get_branch(branch_id):
    branch = BranchService().get(branch_id)
    if branch is None:
        return error_response(ErrorKind.NOT_FOUND, 'Branch not found')
    return jsonify({'item': serialize_branch(branch)})


@api_bp.route('/branches/<branch_id>', methods=['PATCH'])
@roles_required(UserRole.OWNER)
def update_branch(branch_id):
    return respond(BranchService().update(branch_id, json_body(), current_actor()), serialize_branch)


@api_bp.route('/branches/<branch_id>', methods=['DELETE'])
@roles_required(UserRole.OWNER)
def delete_branch(branch_id):
    return respond(BranchService().delete(branch_id, current_actor()), serialize_branch)


@api_bp.route('/branches/<branch_id>/report', methods=['GET'])
@roles_required(*STAFF)
def branch_report(branch_id):
    return respond(reports.branch_report(branch_id, current_actor()))


# Users

@api_bp.route('/users', methods=['GET'])
@login_required
def list_users():
    ctx = current_actor()
    service = UserService()
    if ctx.is_owner:
        users = service.list_users(
            role=request.args.get('role'),
            branch_id=request.args.get('branch_id'),
            active_only=_flag('active'),
        )
    else:
        users = service.list_visible_to(ctx)
    return jsonify({'items': [serialize_user(u) for u in users]})


@api_bp.route('/users', methods=['POST'])
@roles_required(*STAFF)
def create_user():
    return respond(UserService().create(json_body(), current_actor()), serialize_user, 201)


@api_bp.route('/users/<user_id>', methods=['GET'])
@login_required
def get_user(user_id):
    ctx = current_actor()
    user = UserService().get(user_id)
    if user is None:
        return error_response(ErrorKind.NOT_FOUND, 'User not found')
    if user not in UserService().list_visible_to(ctx):
        return error_response(ErrorKind.PERMISSION, 'You cannot view this user')
    return jsonify({'item': serialize_user(user)})


@api_bp.route('/users/<user_id>', methods=['PATCH'])
@roles_required(*STAFF)
def update_user(user_id):
    return respond(UserService().update(user_id, json_body(), current_actor()), serialize_user)


@api_bp.route('/users/<user_id>', methods=['DELETE'])
@roles_required(*STAFF)
def delete_user(user_id):
    return respond(UserService().delete(user_id, current_actor()), serialize_user)


@api_bp.route('/users/<user_id>/reset-password', methods=['POST'])
@roles_required(*STAFF)
def reset_user_password(user_id):
    result = UserService().reset_password(user_id, current_actor())
    return respond(result, lambda reset: {
        'user': serialize_user(reset.user),
        'temporary_password': reset.temporary_password,
        'email_sent': reset.email_sent,
    })


# Members

@api_bp.route('/members', methods=['GET'])
@login_required
def list_members():
    ctx = current_actor()
    service = MemberService()
    keyword = request.args.get('q')
    if keyword:
        members = [m for m in service.search(keyword, request.args.get('branch_id')) if service.can_view(ctx, m)]
    else:
        try:
            members = service.list_members(ctx, request.args.get('branch_id'), request.args.get('status'))
        except ValueError:
            return error_response(ErrorKind.VALIDATION, 'Unknown membership status')
    return jsonify({'items': [serialize_member(m) for m in members]})


@api_bp.route('/members', methods=['POST'])
@roles_required(*STAFF)
def create_member():
    return respond(MemberService().create(json_body(), current_actor()), serialize_member, 201)


@api_bp.route('/members/<member_id>', methods=['GET'])
@login_required
def get_member(member_id):
    service = MemberService()
    member = service.get(member_id)
    if member is None:
        return error_response(ErrorKind.NOT_FOUND, 'Member not found')
    if not service.can_view(current_actor(), member):
        return error_response(ErrorKind.PERMISSION, 'You cannot view this member')
    return jsonify({'item': serialize_member(member)})


@api_bp.route('/members/by-random-id/<random_id>', methods=['GET'])
@login_required
def get_member_by_random_id(random_id):
    service = MemberService()
    member = service.get_by_random_id(random_id)
    if member is None or not service.can_view(current_actor(), member):
        return error_response(ErrorKind.NOT_FOUND, 'Member not found')
    return jsonify({'item': serialize_member(member)})


@api_bp.route('/members/<member_id>', methods=['PATCH'])
@roles_required(*STAFF)
def update_member(member_id):
    return respond(MemberService().update(member_id, json_body(), current_actor()), serialize_member)


@api_bp.route('/members/<member_id>', methods=['DELETE'])
@roles_required(*STAFF)
def delete_member(member_id):
    return respond(MemberService().delete(member_id, current_actor()), serialize_member)


# Training progress

@api_bp.route('/members/<member_id>/training', methods=['GET'])
@login_required
def list_member_training(member_id):
    members = MemberService()
    member = members.get(member_id)
    if member is None:
        return error_response(ErrorKind.NOT_FOUND, 'Member not found')
    if not members.can_view(current_actor(), member):
        return error_response(ErrorKind.PERMISSION, 'You cannot view this member')
    records = TrainingProgressService().list_by_member(member.id)
    return jsonify({'items': [serialize_training(r) for r in records]})


@api_bp.route('/training', methods=['GET'])
@login_required
def list_training():
    ctx = current_actor()
    coach_id = ctx.user_id if ctx.is_coach else request.args.get('coach_id')
    if not coach_id:
        return error_response(ErrorKind.VALIDATION, 'coach_id is required')
    records = TrainingProgressService().list_by_coach(coach_id)
    return jsonify({'items': [serialize_training(r) for r in records]})


@api_bp.route('/training', methods=['POST'])
@login_required
def create_training():
    return respond(TrainingProgressService().create(json_body(), current_actor()), serialize_training, 201)


@api_bp.route('/training/<progress_id>', methods=['PATCH'])
@login_required
def update_training(progress_id):
    return respond(TrainingProgressService().update(progress_id, json_body(), current_actor()), serialize_training)


@api_bp.route('/training/<progress_id>', methods=['DELETE'])
@login_required
def delete_training(progress_id):
    return respond(TrainingProgressService().delete(progress_id, current_actor()), serialize_training)


# Audit log

@api_bp.route('/audit-logs', methods=['GET'])
@roles_required(UserRole.OWNER)
def list_audit_logs():
    try:
        start = _query_date('start')
        end = _query_date('end')
        limit = request.args.get('limit', type=int)
    except ValueError:
        return error_response(ErrorKind.VALIDATION, 'Dates must use the YYYY-MM-DD format')
    entries = audit.search(
        user_id=request.args.get('user_id'),
        action=request.args.get('action'),
        start=start,
        end=end,
        limit=limit,
    )
    return jsonify({'items': [serialize_audit_log(e) for e in entries]})


# Settings

@api_bp.route('/settings', methods=['GET'])
@roles_required(UserRole.OWNER)
def list_settings():
    return jsonify({'items': [serialize_setting(s) for s in settings.all_settings()]})


@api_bp.route('/settings/<key>', methods=['PUT'])
@roles_required(UserRole.OWNER)
def put_setting(key):
    data = json_body()
    result = settings.set(key, data.get('value'), current_actor(), data.get('description'))
    return respond(result, serialize_setting)


@api_bp.route('/settings/<key>', methods=['DELETE'])
@roles_required(UserRole.OWNER)
def delete_setting(key):
    return respond(settings.delete(key, current_actor()))


# Reports and interchange

@api_bp.route('/reports/summary', methods=['GET'])
@roles_required(*STAFF)
def report_summary():
    return respond(reports.summary(current_actor()))


@api_bp.route('/export/members.csv', methods=['GET'])
@roles_required(*STAFF)
def export_members_csv():
    text = ExportImportService().export_members_csv(current_actor())
    return Response(text, mimetype='text/csv',
                    headers={'Content-Disposition': 'attachment; filename=members.csv'})


@api_bp.route('/export/members.xlsx', methods=['GET'])
@roles_required(*STAFF)
def export_members_xlsx():
    data = ExportImportService().export_members_xlsx(current_actor())
    return Response(
        data,
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        headers={'Content-Disposition': 'attachment; filename=members.xlsx'},
    )


@api_bp.route('/export/users.csv', methods=['GET'])
@roles_required(*STAFF)
def export_users_csv():
    text = ExportImportService().export_users_csv(current_actor())
    return Response(text, mimetype='text/csv',
                    headers={'Content-Disposition': 'attachment; filename=users.csv'})


@api_bp.route('/import/members', methods=['POST'])
@roles_required(*STAFF)
def import_members():
    upload = request.files.get('file')
    if upload is not None:
        text = upload.read().decode('utf-8-sig')
    else:
        text = request.get_data(as_text=True)
    if not text.strip():
        return error_response(ErrorKind.VALIDATION, 'CSV content is required')

    result = ExportImportService().import_members_csv(
        text, current_actor(), request.args.get('branch_id')
    )
    return respond(result, lambda outcome: {
        'success_count': outcome.success_count,
        'errors': [{'line': line, 'message': message} for line, message in outcome.errors],
    })
