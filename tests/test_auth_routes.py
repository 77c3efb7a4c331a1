from datetime import datetime, timedelta

from flask_jwt_extended import create_access_token

from reselltrack import db
from reselltrack.models import Subscription, User

from .conftest import bearer


def login(client, email='seller@example.com', password='secret123'):
    return client.post('/auth/login', json={'email': email, 'password': password})


def test_register_starts_trial(client, register_user):
    data = register_user()
    assert data['session']['tier'] == 'trial'
    assert data['user']['subscription_tier'] == 'trial'
    trial_end = datetime.fromisoformat(data['session']['trial_ends_at'])
    assert timedelta(days=13) < trial_end - datetime.utcnow() <= timedelta(days=14)

    me = client.get('/auth/me', headers=data['headers']).get_json()
    assert me['session']['kind'] == 'real'
    assert me['user']['email'] == 'seller@example.com'


def test_register_validation(client, register_user):
    resp = client.post('/auth/register', json={'email': 'nope', 'password': '123', 'full_name': 'A'})
    assert resp.status_code == 400
    assert set(resp.get_json()['errors']) == {'email', 'password', 'full_name'}

    register_user()
    resp = client.post('/auth/register', json={
        'email': 'Seller@Example.com', 'password': 'secret123', 'full_name': 'Sam Again'})
    assert resp.status_code == 400
    assert 'email' in resp.get_json()['errors']


def test_login(client, register_user):
    register_user()
    assert login(client, password='wrong-password').status_code == 401
    assert login(client, email='ghost@example.com').status_code == 401

    resp = login(client)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['session']['tier'] == 'trial'
    assert client.get('/auth/me', headers=bearer(body['access_token'])).status_code == 200


def test_login_after_trial_falls_back_to_free(client, register_user):
    data = register_user()
    user = db.session.get(User, data['user']['id'])
    user.created_at = datetime.utcnow() - timedelta(days=30)
    user.trial_ends_at = datetime.utcnow() - timedelta(days=16)
    db.session.commit()

    body = login(client).get_json()
    assert body['session']['tier'] == 'free'
    assert body['session']['trial_ends_at'] is None
    assert db.session.get(User, data['user']['id']).subscription_tier == 'free'


def test_login_with_active_subscription_is_pro(client, register_user):
    data = register_user()
    db.session.add(Subscription(user_id=data['user']['id'], tier='pro', status='active',
                                provider_customer_id='cus_123'))
    db.session.commit()

    body = login(client).get_json()
    assert body['session']['tier'] == 'pro'
    assert body['user']['subscription_tier'] == 'pro'


def test_profile_and_password_updates(client, register_user):
    headers = register_user()['headers']

    resp = client.put('/auth/profile', json={'business_name': 'Thrift Kings', 'currency': 'EUR'}, headers=headers)
    assert resp.status_code == 200
    assert resp.get_json()['user']['business_name'] == 'Thrift Kings'
    assert client.put('/auth/profile', json={'currency': 'EURO'}, headers=headers).status_code == 400

    resp = client.put('/auth/password', json={'current_password': 'bad', 'new_password': 'newsecret1'},
                      headers=headers)
    assert resp.status_code == 400
    resp = client.put('/auth/password', json={'current_password': 'secret123', 'new_password': 'newsecret1'},
                      headers=headers)
    assert resp.status_code == 200
    assert login(client, password='newsecret1').status_code == 200


def test_password_reset_flow(client, register_user):
    user_id = register_user()['user']['id']

    resp = client.post('/auth/password-reset', json={'email': 'seller@example.com'})
    assert resp.status_code == 200
    unknown = client.post('/auth/password-reset', json={'email': 'ghost@example.com'})
    assert unknown.get_json() == resp.get_json()

    token = create_access_token(identity=str(user_id), additional_claims={'purpose': 'password_reset'})
    # a reset token never works as a bearer token
    assert client.get('/auth/me', headers=bearer(token)).status_code == 401

    resp = client.post('/auth/password-reset/confirm', json={'token': token, 'new_password': 'reset-pass1'})
    assert resp.status_code == 200
    assert login(client, password='reset-pass1').status_code == 200


def test_password_reset_rejects_session_tokens(client, register_user):
    data = register_user()
    resp = client.post('/auth/password-reset/confirm',
                       json={'token': data['access_token'], 'new_password': 'reset-pass1'})
    assert resp.status_code == 400
    resp = client.post('/auth/password-reset/confirm', json={'token': 'garbage', 'new_password': 'reset-pass1'})
    assert resp.status_code == 400


def test_tutorial_flag(client, register_user):
    data = register_user()
    resp = client.put('/auth/tutorial', headers=data['headers'])
    assert resp.get_json() == {'tutorial_completed': True, 'persisted': True}
    assert client.get('/auth/me', headers=data['headers']).get_json()['user']['tutorial_completed'] is True


def test_logout(client, auth_headers):
    resp = client.post('/auth/logout', headers=auth_headers)
    assert resp.status_code == 200
    assert resp.get_json()['session'] == {'kind': 'anonymous', 'authenticated': False}
    assert client.post('/auth/logout').status_code == 401


def test_demo_profile_is_restricted(client, demo_headers):
    resp = client.put('/auth/profile', json={'full_name': 'Demo Person'}, headers=demo_headers)
    assert resp.status_code == 200
    assert resp.get_json()['restricted'] is True
    me = client.get('/auth/me', headers=demo_headers).get_json()
    assert me['session']['tier'] == 'demo'
    assert me['user'] is None
