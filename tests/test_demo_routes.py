from reselltrack.services import record_store

from .conftest import bearer


def test_start_generates_once(client):
    first = client.post('/demo/start')
    assert first.status_code == 200
    body = first.get_json()
    assert body['session']['kind'] == 'demo'
    assert body['created'] == {'products': 10, 'meetings': 5, 'analytics': 5}

    second = client.post('/demo/start').get_json()
    assert second['created'] is None
    products, _ = record_store.list_products('demo-user')
    assert len(products) == 10


def test_status_reports_mode_and_data(client, demo_headers):
    assert client.get('/demo/status', headers=demo_headers).get_json() == {'active': True, 'data_exists': True}
    assert client.get('/demo/status').get_json() == {'active': False, 'data_exists': True}


def test_stop_removes_demo_data(client, demo_headers):
    resp = client.post('/demo/stop', headers=demo_headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['removed'] == {'products': 10, 'meetings': 5, 'analytics': 5}
    assert body['session']['kind'] == 'anonymous'
    assert client.get('/demo/status').get_json()['data_exists'] is False


def test_signing_out_of_demo_cleans_up(client, demo_headers):
    resp = client.post('/auth/logout', headers=demo_headers)
    assert resp.status_code == 200
    assert resp.get_json()['removed']['products'] == 10
    assert client.get('/demo/status').get_json()['data_exists'] is False


def test_stop_without_demo_is_a_conflict(client, auth_headers):
    assert client.post('/demo/stop').status_code == 409
    assert client.post('/demo/stop', headers=auth_headers).status_code == 409


def test_real_users_cannot_start_demo(client, auth_headers):
    assert client.post('/demo/start', headers=auth_headers).status_code == 409


def test_cleanup_failure_is_reported(client, demo_headers, monkeypatch):
    def failing_delete(event_id):
        return None, {'message': 'Error deleting analytics event', 'error': 'locked'}

    monkeypatch.setattr(record_store, 'delete_analytics_event', failing_delete)
    resp = client.post('/demo/stop', headers=demo_headers)
    assert resp.status_code == 500
    body = resp.get_json()
    assert len(body['failures']) == 5
    assert all(f['kind'] == 'analytics event' for f in body['failures'])
    # products and meetings were still removed
    assert record_store.list_products('demo-user')[0] == []


def test_demo_token_survives_for_reads_only(client):
    token = client.post('/demo/start').get_json()['access_token']
    resp = client.post('/meetings', json={'title': 'x'}, headers=bearer(token))
    assert resp.get_json() == {
        'message': 'Demo mode: Scheduling meetings is disabled. Upgrade to manage your real data.',
        'restricted': True,
    }
