"""Shared test fixtures and utilities."""

import pytest

from reselltrack import create_app, db
from reselltrack.config import TestConfig
from reselltrack.services.record_store import seed_categories


@pytest.fixture(scope="session")
def app():
    """One application per test session; the flask-restx Api is module level."""
    return create_app(TestConfig)


@pytest.fixture
def app_ctx(app):
    """Fresh tables and seeded categories inside a pushed app context."""
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.create_all()
        seed_categories(app.config['DEFAULT_CATEGORIES'])
        yield app
        db.session.remove()


@pytest.fixture
def client(app_ctx):
    return app_ctx.test_client()


def bearer(token):
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def register_user(client):
    """Register a user and return the response payload with ready-made headers."""
    def _register(email='seller@example.com', password='secret123', full_name='Sam Seller'):
        resp = client.post('/auth/register', json={
            'email': email,
            'password': password,
            'full_name': full_name,
        })
        assert resp.status_code == 201, resp.get_json()
        data = resp.get_json()
        data['headers'] = bearer(data['access_token'])
        return data
    return _register


@pytest.fixture
def auth_headers(register_user):
    return register_user()['headers']


@pytest.fixture
def demo_headers(client):
    resp = client.post('/demo/start')
    assert resp.status_code == 200, resp.get_json()
    return bearer(resp.get_json()['access_token'])
