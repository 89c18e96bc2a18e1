import pytest

from diabetic_care.services.activity_logger import ActionType, get_activity_logs
from diabetic_care.services.auth_service import MAX_FAILED_ATTEMPTS, AuthService, LoginError


class TestLoginPage:
    def test_login_form(self, client):
        response = client.get('/admin')
        assert response.status_code == 200
        assert 'name="password"' in response.get_data(as_text=True)

    def test_correct_password(self, client):
        response = client.post('/admin', data={'password': 'test-password'})
        assert response.status_code == 302
        assert response.headers['Location'].endswith('/admin/patients')
        with client.session_transaction() as sess:
            assert sess['admin'] is True

    def test_wrong_password(self, client):
        response = client.post('/admin', data={'password': 'nope'})
        assert response.status_code == 200
        assert 'رمز عبور نادرست است' in response.get_data(as_text=True)
        with client.session_transaction() as sess:
            assert 'admin' not in sess

    def test_logged_in_admin_is_redirected(self, admin_client):
        response = admin_client.get('/admin')
        assert response.status_code == 302
        assert response.headers['Location'].endswith('/admin/patients')

    def test_logout(self, admin_client):
        response = admin_client.post('/admin/logout')
        assert response.status_code == 302
        assert admin_client.get('/admin/patients').status_code == 302

    @pytest.mark.parametrize('url', ['/admin/patients', '/admin/patients/new', '/admin/patients/1'])
    def test_pages_redirect_anonymous(self, client, url):
        response = client.get(url)
        assert response.status_code == 302
        assert response.headers['Location'].endswith('/admin')


class TestLoginApi:
    def test_json_login(self, client):
        response = client.post('/api/auth/login', json={'password': 'test-password'})
        assert response.get_json() == {'success': True}
        assert client.get('/api/patients').status_code == 200

    def test_form_login(self, client):
        response = client.post('/api/auth/login', data={'password': 'test-password'})
        assert response.status_code == 200

    def test_wrong_password(self, client):
        response = client.post('/api/auth/login', json={'password': 'wrong'})
        assert response.status_code == 401
        assert response.get_json() == {'error': 'رمز عبور نادرست است'}

    def test_missing_password(self, client):
        response = client.post('/api/auth/login', json={})
        assert response.status_code == 400
        assert response.get_json() == {'error': 'رمز عبور الزامی است'}

    def test_logout(self, client):
        client.post('/api/auth/login', json={'password': 'test-password'})
        assert client.post('/api/auth/logout').get_json() == {'success': True}
        assert client.get('/api/patients').status_code == 401

    def test_attempts_are_logged(self, app, client):
        client.post('/api/auth/login', json={'password': 'wrong'})
        client.post('/api/auth/login', json={'password': 'test-password'})
        client.post('/api/auth/logout')
        with app.app_context():
            actions = [log['action_type'] for log in get_activity_logs()]
        assert actions == [ActionType.LOGOUT, ActionType.LOGIN, ActionType.LOGIN_FAILED]


class TestLockout:
    def test_locked_after_repeated_failures(self, client):
        for _ in range(MAX_FAILED_ATTEMPTS):
            assert client.post('/api/auth/login', json={'password': 'wrong'}).status_code == 401

        response = client.post('/api/auth/login', json={'password': 'test-password'})
        assert response.status_code == 401
        assert 'قفل' in response.get_json()['error']

    def test_success_resets_counter(self, app, client):
        for _ in range(MAX_FAILED_ATTEMPTS - 1):
            client.post('/api/auth/login', json={'password': 'wrong'})
        client.post('/api/auth/login', json={'password': 'test-password'})
        with app.app_context():
            assert AuthService().ensure_admin()['failed_attempts'] == 0


class TestAuthService:
    def test_admin_seeded_from_config(self, app):
        with app.app_context():
            service = AuthService()
            admin = service.validate_admin('test-password')
            assert admin['id'] == 1

    def test_set_password(self, app):
        with app.app_context():
            service = AuthService()
            service.set_password('a-new-password')
            with pytest.raises(LoginError):
                service.validate_admin('test-password')
            service.validate_admin('a-new-password')


class TestCli:
    def test_set_admin_password(self, app, client):
        result = app.test_cli_runner().invoke(args=['set-admin-password', 'changed-secret'])
        assert result.exit_code == 0
        assert 'Admin password updated.' in result.output
        assert client.post('/api/auth/login', json={'password': 'changed-secret'}).status_code == 200

    def test_short_password_rejected(self, app):
        result = app.test_cli_runner().invoke(args=['set-admin-password', 'short'])
        assert result.exit_code != 0

    def test_init_db(self, app):
        result = app.test_cli_runner().invoke(args=['init-db'])
        assert 'Initialized the database.' in result.output
