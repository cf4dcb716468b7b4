def test_health_check(client):
    response = client.get('/health')
    assert response.status_code == 200
    body = response.get_json()
    assert body['status'] == 'healthy'
    assert body['database'] == 'ok'


def test_security_headers_are_set(client):
    response = client.get('/api/courses')
    assert response.headers['X-Frame-Options'] == 'DENY'
    assert response.headers['X-Content-Type-Options'] == 'nosniff'
    assert 'Strict-Transport-Security' in response.headers


def test_scanner_user_agent_is_blocked(client):
    response = client.get('/api/courses', headers={'User-Agent': 'sqlmap/1.7'})
    assert response.status_code == 403


def test_suspicious_pattern_in_path_is_blocked(client):
    response = client.get('/api/courses/%3Cscript%3Ealert(1)')
    assert response.status_code == 403


def test_search_text_is_not_screened_by_middleware(client, make_course):
    make_course(title='How to drop table rows safely')
    response = client.get('/api/courses?search=drop%20table')
    assert response.status_code == 200
    assert [course['title'] for course in response.get_json()] == ['How to drop table rows safely']
    assert client.get('/api/courses?search=union%20select').status_code == 200


def test_unknown_route_returns_json_404(client):
    response = client.get('/api/does-not-exist')
    assert response.status_code == 404
    assert 'message' in response.get_json()


def test_wrong_method_returns_json_405(client):
    response = client.delete('/api/courses')
    assert response.status_code == 405


def test_unexpected_error_is_hidden(app, client):
    @app.route('/boom')
    def boom():
        raise RuntimeError('secret internals')

    response = client.get('/boom')
    assert response.status_code == 500
    assert response.get_json() == {'message': 'Internal server error'}


def test_seeded_admin_is_admin(client, admin_headers):
    response = client.get('/api/auth/user', headers=admin_headers)
    assert response.get_json()['isAdmin'] is True
