from datetime import datetime, timedelta, timezone

import pytest

from conftest import bearer, signup
from utils.errors import NotFoundError


def test_signup_then_login_returns_verifiable_token(client, services):
    response = signup(client, email='a@b.com', password='secret1', firstName='Ada', lastName='Lovelace')
    assert response.status_code == 201
    body = response.get_json()
    assert body['user']['email'] == 'a@b.com'
    assert body['user']['firstName'] == 'Ada'
    assert body['user']['isAdmin'] is False
    assert 'password' not in str(body['user']).lower()
    assert services.token_service.verify(body['token']) == body['user']['id']

    response = client.post('/api/auth/login', json={'email': 'a@b.com', 'password': 'secret1'})
    assert response.status_code == 200
    login_body = response.get_json()
    assert services.token_service.verify(login_body['token']) == body['user']['id']


def test_duplicate_signup_is_a_conflict_and_creates_no_row(client, services):
    assert signup(client, email='dup@example.com').status_code == 201
    before = len(services.users.list_users())

    response = signup(client, email='dup@example.com', password='another1')
    assert response.status_code == 409
    assert response.get_json()['message'] == 'User already exists'
    assert len(services.users.list_users()) == before


def test_signup_email_is_case_insensitive(client):
    assert signup(client, email='Mixed@Example.com').status_code == 201
    assert signup(client, email='mixed@example.COM').status_code == 409

    response = client.post('/api/auth/login', json={'email': 'MIXED@example.com', 'password': 'secret1'})
    assert response.status_code == 200
    assert response.get_json()['user']['email'] == 'mixed@example.com'


def test_signup_validation_reports_fields(client):
    response = client.post('/api/auth/signup', json={'email': 'not-an-email', 'password': '123'})
    assert response.status_code == 400
    errors = response.get_json()['errors']
    assert set(errors) == {'email', 'password'}


def test_signup_requires_json_body(client):
    response = client.post('/api/auth/signup', data='email=a@b.com')
    assert response.status_code == 400


def test_login_with_wrong_password_is_unauthorized(client):
    signup(client, email='a@b.com', password='secret1')
    response = client.post('/api/auth/login', json={'email': 'a@b.com', 'password': 'wrong-password'})
    assert response.status_code == 401
    assert response.get_json()['message'] == 'Invalid credentials'


def test_login_unknown_email_is_unauthorized(client):
    response = client.post('/api/auth/login', json={'email': 'ghost@b.com', 'password': 'secret1'})
    assert response.status_code == 401


def test_current_user_profile(client, user_headers):
    response = client.get('/api/auth/user', headers=user_headers)
    assert response.status_code == 200
    assert response.get_json()['email'] == 'student@example.com'


def test_protected_route_without_token(client):
    response = client.get('/api/auth/user')
    assert response.status_code == 401
    assert response.get_json()['message'] == 'Access token required'


def test_protected_route_with_garbage_token(client):
    response = client.get('/api/auth/user', headers=bearer('garbage'))
    assert response.status_code == 401
    assert response.get_json()['message'] == 'Invalid or expired token'


def test_protected_route_with_expired_token(client, services, user_token):
    user_id = services.token_service.verify(user_token)
    expired = services.token_service.issue(user_id, now=datetime.now(timezone.utc) - timedelta(days=8))
    response = client.get('/api/auth/user', headers=bearer(expired))
    assert response.status_code == 401


def test_token_of_deleted_user_is_rejected(client, services, user_token):
    user_id = services.token_service.verify(user_token)
    services.users.delete_user(user_id)
    response = client.get('/api/auth/user', headers=bearer(user_token))
    assert response.status_code == 401
    assert response.get_json()['message'] == 'User not found'


def test_non_admin_is_forbidden_from_admin_routes(client, user_headers):
    response = client.get('/api/admin/stats', headers=user_headers)
    assert response.status_code == 403
    assert response.get_json()['message'] == 'Admin access required'


def test_admin_route_without_token_is_unauthorized(client):
    assert client.get('/api/admin/stats').status_code == 401


def test_auth_rate_limit(app, client):
    app.config['RATE_LIMIT_ENABLED'] = True
    statuses = [
        client.post('/api/auth/login', json={'email': 'x@y.com', 'password': 'secret1'}).status_code
        for _ in range(6)
    ]
    assert statuses[:5] == [401] * 5
    assert statuses[5] == 429


def test_update_user_changes_profile_fields_only(client, services):
    user_id = signup(client, email='rename@example.com').get_json()['user']['id']

    updated = services.users.update_user(user_id, {'first_name': 'Grace', 'is_admin': 1})
    assert updated['first_name'] == 'Grace'
    assert updated['is_admin'] == 0

    with pytest.raises(NotFoundError):
        services.users.update_user(99999, {'first_name': 'Nobody'})
