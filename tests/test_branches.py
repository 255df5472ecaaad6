"""Tests for branch management."""

from conftest import make_member, make_user

from gms.models import AuditLog, UserRole
from gms.services.branches import BranchService
from gms.services.context import ActorContext
from gms.services.results import ErrorKind


class TestBranchCreate:
    def test_owner_creates_branch_with_audit(self, owner_ctx):
        result = BranchService().create(
            {'name': '  Heliopolis ', 'location': 'Korba', 'contact_number': '0226667777'}, owner_ctx
        )
        assert result.ok
        assert result.value.name == 'Heliopolis'
        assert result.value.is_active

        entry = AuditLog.query.filter_by(action='BRANCH_CREATE').one()
        assert entry.user_id == owner_ctx.user_id
        assert entry.details == 'Created new branch: Heliopolis'
        assert entry.entity_id == result.value.id
        assert entry.ip_address == '127.0.0.1'

    def test_system_actor_may_create(self, app):
        result = BranchService().create({'name': 'Zamalek', 'location': 'Zamalek'}, ActorContext.system())
        assert result.ok
        assert AuditLog.query.filter_by(action='BRANCH_CREATE').one().user_id is None

    def test_admin_is_denied(self, admin_ctx):
        result = BranchService().create({'name': 'Zamalek', 'location': 'Zamalek'}, admin_ctx)
        assert result.error is ErrorKind.PERMISSION

    def test_name_is_unique_ignoring_case(self, owner_ctx, branch):
        result = BranchService().create({'name': 'DOWNTOWN', 'location': 'Elsewhere'}, owner_ctx)
        assert result.error is ErrorKind.CONFLICT
        assert 'already exists' in result.message

    def test_requires_name_and_location(self, owner_ctx):
        service = BranchService()
        assert service.create({'location': 'X'}, owner_ctx).message == 'Branch name is required'
        assert service.create({'name': 'Valid'}, owner_ctx).message == 'Branch location is required'


class TestBranchUpdateDelete:
    def test_update_merges_fields(self, owner_ctx, branch):
        result = BranchService().update(branch.id, {'location': 'Talaat Harb'}, owner_ctx)
        assert result.ok
        assert branch.name == 'Downtown'
        assert branch.location == 'Talaat Harb'
        assert AuditLog.query.filter_by(action='BRANCH_UPDATE').one().details == \
            f'Updated branch: Downtown (ID: {branch.id})'

    def test_rename_to_existing_name_conflicts(self, owner_ctx, branch, other_branch):
        result = BranchService().update(other_branch.id, {'name': 'downtown'}, owner_ctx)
        assert result.error is ErrorKind.CONFLICT

    def test_update_missing_branch(self, owner_ctx):
        assert BranchService().update('missing', {}, owner_ctx).error is ErrorKind.NOT_FOUND

    def test_delete_empty_branch_soft_deletes(self, owner_ctx, other_branch):
        result = BranchService().delete(other_branch.id, owner_ctx)
        assert result.ok
        assert other_branch.is_active is False
        assert BranchService().list_active() == []

    def test_delete_refused_while_staff_or_members_remain(self, owner_ctx, branch):
        make_user('coachx', UserRole.COACH, branch)
        result = BranchService().delete(branch.id, owner_ctx)
        assert result.error is ErrorKind.CONFLICT
        assert branch.is_active is True

    def test_delete_refused_with_active_member(self, owner_ctx, other_branch):
        make_member(other_branch)
        assert BranchService().delete(other_branch.id, owner_ctx).error is ErrorKind.CONFLICT

    def test_listing_orders_by_name(self, branch, other_branch):
        assert [b.name for b in BranchService().list_all()] == ['Downtown', 'Maadi']
        assert BranchService().find_by_name('maadi').id == other_branch.id

    def test_deactivating_through_update_is_refused_while_members_remain(self, owner_ctx, other_branch):
        make_member(other_branch)
        result = BranchService().update(other_branch.id, {'is_active': False, 'location': 'Road 9'}, owner_ctx)
        assert result.error is ErrorKind.CONFLICT
        assert other_branch.is_active is True
        assert other_branch.location != 'Road 9'

    def test_deactivating_empty_branch_through_update(self, owner_ctx, other_branch):
        assert BranchService().update(other_branch.id, {'is_active': False}, owner_ctx).ok
        assert other_branch.is_active is False
        assert BranchService().update(other_branch.id, {'is_active': True}, owner_ctx).ok
        assert other_branch.is_active is True

    def test_non_text_fields_are_rejected(self, owner_ctx, branch):
        service = BranchService()
        assert service.create({'name': 123, 'location': 'x'}, owner_ctx).message == 'Branch name must be text'
        assert service.create({'name': 'Giza', 'location': ['x']}, owner_ctx).message == \
            'Branch location must be text'
        assert service.update(branch.id, {'name': {'a': 1}}, owner_ctx).error is ErrorKind.VALIDATION
