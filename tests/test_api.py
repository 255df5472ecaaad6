"""HTTP tests for the auth and JSON API blueprints."""

import io

from conftest import PASSWORD, login, make_member

from gms.models import AuditLog


class TestAuthRoutes:
    def test_login_me_logout(self, client, coach):
        response = login(client, 'coach')
        assert response.status_code == 200
        assert response.get_json()['item']['username'] == 'coach'

        me = client.get('/auth/me')
        assert me.status_code == 200
        assert me.get_json()['item']['role'] == 'coach'
        assert me.headers['Cache-Control'] == 'no-store'
        assert me.headers['X-Content-Type-Options'] == 'nosniff'

        assert client.post('/auth/logout').status_code == 200
        assert client.get('/auth/me').status_code == 401

    def test_bad_credentials(self, client, coach):
        response = login(client, 'coach', 'Wrong!Pass1')
        assert response.status_code == 401
        assert response.get_json()['message'] == 'Invalid username or password'

    def test_unauthenticated_api_is_json_401(self, client, app):
        response = client.get('/api/v1/members')
        assert response.status_code == 401
        assert response.get_json()['error'] == 'authentication'

    def test_change_password(self, client, coach):
        login(client, 'coach')
        response = client.post('/auth/change-password',
                               json={'old_password': PASSWORD, 'new_password': 'Fresh!Pass2024'})
        assert response.status_code == 200
        client.post('/auth/logout')
        assert login(client, 'coach', 'Fresh!Pass2024').status_code == 200

    def test_forgot_password_never_returns_password(self, client, owner):
        response = client.post('/auth/forgot-password', json={'username': 'owner'})
        assert response.status_code == 200
        assert 'item' not in response.get_json()

    def test_reset_password_mismatch(self, client, coach):
        response = client.post('/auth/reset-password', json={'username': 'coach', 'email': 'x@gym.test'})
        assert response.status_code == 400


class TestBranchAndUserRoutes:
    def test_owner_manages_branches(self, client, owner):
        login(client, 'owner')
        created = client.post('/api/v1/branches', json={'name': 'Nasr City', 'location': 'Abbas El Akkad'})
        assert created.status_code == 201
        branch_id = created.get_json()['item']['id']

        duplicate = client.post('/api/v1/branches', json={'name': 'nasr city', 'location': 'X'})
        assert duplicate.status_code == 409

        patched = client.patch(f'/api/v1/branches/{branch_id}', json={'contact_number': '0224445555'})
        assert patched.get_json()['item']['contact_number'] == '0224445555'

        assert client.delete(f'/api/v1/branches/{branch_id}').status_code == 200
        assert client.get('/api/v1/branches?active=1').get_json()['items'] == []

    def test_non_text_json_values_are_400(self, client, owner):
        login(client, 'owner')
        response = client.post('/api/v1/branches', json={'name': 123, 'location': 'x'})
        assert response.status_code == 400
        assert response.get_json()['message'] == 'Branch name must be text'

    def test_login_with_non_text_credentials(self, client, owner):
        response = client.post('/auth/login', json={'username': ['owner'], 'password': 42})
        assert response.status_code == 401
        assert client.get('/auth/me').status_code == 401

    def test_admin_cannot_create_branch(self, client, admin):
        login(client, 'admin')
        response = client.post('/api/v1/branches', json={'name': 'Nasr City', 'location': 'X'})
        assert response.status_code == 403

    def test_admin_creates_coach_and_resets_password(self, client, admin, branch):
        login(client, 'admin')
        response = client.post('/api/v1/users', json={
            'username': 'fresh_coach', 'first_name': 'Dina', 'last_name': 'Khaled',
            'email': 'dina@gym.test', 'role': 'coach', 'branch_id': branch.id,
        })
        assert response.status_code == 201, response.get_json()
        user_id = response.get_json()['item']['id']

        reset = client.post(f'/api/v1/users/{user_id}/reset-password')
        assert reset.status_code == 200
        body = reset.get_json()['item']
        assert body['email_sent'] is True
        assert len(body['temporary_password']) == 12

    def test_coach_only_sees_self(self, client, coach, admin):
        login(client, 'coach')
        items = client.get('/api/v1/users').get_json()['items']
        assert [u['username'] for u in items] == ['coach']
        assert client.get(f'/api/v1/users/{admin.id}').status_code == 403


class TestMemberRoutes:
    def test_member_lifecycle(self, client, admin, branch, coach):
        login(client, 'admin')
        response = client.post('/api/v1/members', json={
            'first_name': 'Hassan', 'last_name': 'Ali', 'mobile': '01234567890', 'gender': 'male',
            'payment': '150', 'start_date': '2024-06-01', 'coach_id': coach.id,
        })
        assert response.status_code == 201, response.get_json()
        item = response.get_json()['item']
        assert item['period'] == '1 month'
        assert item['end_date'] == '2024-07-01'
        assert item['branch_id'] == branch.id
        assert item['status'] in ('active', 'expired')

        by_random = client.get(f"/api/v1/members/by-random-id/{item['random_id']}")
        assert by_random.get_json()['item']['id'] == item['id']

        search = client.get('/api/v1/members?q=Hassan').get_json()['items']
        assert [m['id'] for m in search] == [item['id']]

        patched = client.patch(f"/api/v1/members/{item['id']}", json={'payment': '300'})
        assert patched.get_json()['item']['period'] == '2 months'

        assert client.delete(f"/api/v1/members/{item['id']}").get_json()['item']['status'] == 'inactive'

    def test_validation_errors_are_400(self, client, owner, branch):
        login(client, 'owner')
        response = client.post('/api/v1/members', json={'first_name': 'A', 'branch_id': branch.id})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'validation'

    def test_unknown_status_filter(self, client, owner):
        login(client, 'owner')
        assert client.get('/api/v1/members?status=frozen').status_code == 400

    def test_coach_records_training(self, client, coach, member):
        login(client, 'coach')
        response = client.post('/api/v1/training', json={
            'member_id': member.id, 'session_date': '2024-06-10', 'notes': 'Cardio intervals', 'rating': 3,
        })
        assert response.status_code == 201, response.get_json()
        listing = client.get(f'/api/v1/members/{member.id}/training').get_json()['items']
        assert len(listing) == 1
        assert client.get('/api/v1/training').get_json()['items'][0]['notes'] == 'Cardio intervals'

    def test_coach_cannot_create_members(self, client, coach, branch):
        login(client, 'coach')
        assert client.post('/api/v1/members', json={}).status_code == 403


class TestOwnerRoutes:
    def test_audit_log_listing(self, client, owner):
        login(client, 'owner')
        items = client.get('/api/v1/audit-logs?action=LOGIN_SUCCESS').get_json()['items']
        assert len(items) == 1
        assert items[0]['user_id'] == owner.id
        assert client.get('/api/v1/audit-logs?start=yesterday').status_code == 400

    def test_admin_cannot_read_audit_log(self, client, admin):
        login(client, 'admin')
        assert client.get('/api/v1/audit-logs').status_code == 403

    def test_settings_roundtrip_masks_secrets(self, client, owner):
        login(client, 'owner')
        assert client.put('/api/v1/settings/email.smtp_password', json={'value': 'hunter2'}).status_code == 200
        items = client.get('/api/v1/settings').get_json()['items']
        assert items[0]['value'] == '********'
        assert client.delete('/api/v1/settings/email.smtp_password').status_code == 200

    def test_reports(self, client, owner, branch):
        make_member(branch)
        login(client, 'owner')
        summary = client.get('/api/v1/reports/summary').get_json()['item']
        assert summary['total_members'] == 1
        report = client.get(f'/api/v1/branches/{branch.id}/report').get_json()['item']
        assert report['branch_name'] == 'Downtown'


class TestInterchangeRoutes:
    def test_exports(self, client, owner, branch):
        make_member(branch)
        login(client, 'owner')
        csv_response = client.get('/api/v1/export/members.csv')
        assert csv_response.mimetype == 'text/csv'
        assert csv_response.data.decode().startswith('Random ID,First Name')
        xlsx = client.get('/api/v1/export/members.xlsx')
        assert xlsx.data[:2] == b'PK'
        assert client.get('/api/v1/export/users.csv').status_code == 200
        assert AuditLog.query.filter_by(action='REPORT_EXPORT').count() == 3

    def test_import_upload(self, client, owner, branch):
        login(client, 'owner')
        text = (
            'Random ID,First Name,Last Name,Mobile,Email,Height,Weight,Gender,Date of Birth,Payment,'
            'Period,Start Date,End Date,Assigned Coach ID,Branch ID,Active\n'
            f',Laila,Samir,01555550000,,,,female,,150,,2024-06-01,,,{branch.id},true\n'
        )
        response = client.post(
            '/api/v1/import/members',
            data={'file': (io.BytesIO(text.encode('utf-8')), 'members.csv')},
            content_type='multipart/form-data',
        )
        assert response.status_code == 200
        assert response.get_json()['item'] == {'success_count': 1, 'errors': []}

    def test_import_requires_content(self, client, owner):
        login(client, 'owner')
        response = client.post('/api/v1/import/members', data='', content_type='text/csv')
        assert response.status_code == 400
