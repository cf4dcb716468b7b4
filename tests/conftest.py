"""Shared fixtures: a fresh app on a temporary SQLite database per test."""

import pytest

from app import close_app, create_app
from storage import get_services

ADMIN_EMAIL = 'admin@learnhub.test'
ADMIN_PASSWORD = 'admin-password'
TEST_JWT_SECRET = 'test-jwt-secret-with-enough-length-for-hs256'


@pytest.fixture
def app(tmp_path):
    application = create_app({
        'TESTING': True,
        'APP_ENV': 'testing',
        'DATABASE_PATH': str(tmp_path / 'learnhub-test.db'),
        'DB_POOL_SIZE': 2,
        'RATE_LIMIT_ENABLED': False,
        'JWT_SECRET': TEST_JWT_SECRET,
        'SEED_ADMIN_EMAIL': ADMIN_EMAIL,
        'SEED_ADMIN_PASSWORD': ADMIN_PASSWORD,
    })
    yield application
    close_app(application)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return get_services(app)


def bearer(token):
    return {'Authorization': f'Bearer {token}'}


def signup(client, email='student@example.com', password='secret1', **extra):
    payload = {'email': email, 'password': password}
    payload.update(extra)
    return client.post('/api/auth/signup', json=payload)


@pytest.fixture
def user_token(client):
    response = signup(client)
    assert response.status_code == 201
    return response.get_json()['token']


@pytest.fixture
def user_headers(user_token):
    return bearer(user_token)


@pytest.fixture
def admin_headers(client):
    response = client.post('/api/auth/login', json={'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD})
    assert response.status_code == 200
    return bearer(response.get_json()['token'])


@pytest.fixture
def make_course(client, admin_headers):
    def _make_course(**fields):
        payload = {'title': 'Intro to Python', 'category': 'programming', 'isPublished': True}
        payload.update(fields)
        response = client.post('/api/admin/courses', json=payload, headers=admin_headers)
        assert response.status_code == 201, response.get_json()
        return response.get_json()
    return _make_course


@pytest.fixture
def make_lesson(client, admin_headers):
    def _make_lesson(course_id, order, **fields):
        payload = {'courseId': course_id, 'title': f'Lesson {order}', 'order': order}
        payload.update(fields)
        response = client.post('/api/admin/lessons', json=payload, headers=admin_headers)
        assert response.status_code == 201, response.get_json()
        return response.get_json()
    return _make_lesson
