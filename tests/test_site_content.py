def _put(client, headers, **payload):
    return client.put('/api/admin/site-content', json=payload, headers=headers)


def test_upsert_get_delete_round_trip(client, admin_headers):
    response = _put(client, admin_headers, section='homepage', key='main_title', value='X')
    assert response.status_code == 200
    assert response.get_json()['type'] == 'text'

    entries = client.get('/api/site-content?section=homepage').get_json()
    assert [(entry['key'], entry['value']) for entry in entries] == [('main_title', 'X')]

    response = client.delete('/api/admin/site-content?section=homepage&key=main_title', headers=admin_headers)
    assert response.status_code == 204
    assert client.get('/api/site-content?section=homepage').get_json() == []


def test_upsert_updates_in_place(client, admin_headers, services):
    first = _put(client, admin_headers, section='about', key='hero', value='old').get_json()
    second = _put(client, admin_headers, section='about', key='hero', value='/img/hero.png', type='image').get_json()

    assert second['id'] == first['id']
    assert second['value'] == '/img/hero.png'
    assert second['type'] == 'image'
    assert services.db.fetch_one('SELECT COUNT(*) FROM site_content')[0] == 1


def test_sections_are_independent(client, admin_headers):
    _put(client, admin_headers, section='homepage', key='title', value='Home')
    _put(client, admin_headers, section='contact', key='title', value='Contact us')

    everything = client.get('/api/admin/site-content', headers=admin_headers).get_json()
    assert len(everything) == 2
    contact = client.get('/api/site-content?section=contact').get_json()
    assert [entry['value'] for entry in contact] == ['Contact us']


def test_delete_with_json_body_and_missing_entry(client, admin_headers):
    _put(client, admin_headers, section='homepage', key='tagline', value='Learn anything')
    response = client.delete('/api/admin/site-content', json={'section': 'homepage', 'key': 'tagline'},
                             headers=admin_headers)
    assert response.status_code == 204

    response = client.delete('/api/admin/site-content', json={'section': 'homepage', 'key': 'tagline'},
                             headers=admin_headers)
    assert response.status_code == 404


def test_site_content_validation(client, admin_headers):
    response = _put(client, admin_headers, section='homepage', type='video')
    assert response.status_code == 400
    assert set(response.get_json()['errors']) == {'key', 'value', 'type'}


def test_site_content_editing_requires_admin(client, user_headers):
    response = _put(client, user_headers, section='homepage', key='title', value='Hacked')
    assert response.status_code == 403
