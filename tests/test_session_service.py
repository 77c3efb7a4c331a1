from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
from flask_jwt_extended import decode_token

from reselltrack.services import session_service as sessions
from reselltrack.services.session_service import (
    AnonymousSession,
    DemoSession,
    RealSession,
    SessionTransitionError,
)

NOW = datetime(2024, 6, 1, 12, 0)


def make_user(**overrides):
    fields = {
        'id': 7,
        'email': 'seller@example.com',
        'subscription_tier': 'trial',
        'trial_ends_at': None,
        'created_at': NOW - timedelta(days=3),
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_sign_up_starts_a_trial():
    trial_end = NOW + timedelta(days=14)
    session = sessions.transition(AnonymousSession(), sessions.SIGNED_UP, now=NOW,
                                  user=make_user(), trial_ends_at=trial_end)
    assert isinstance(session, RealSession)
    assert session.tier == 'trial'
    assert session.trial_ends_at == trial_end
    assert session.owner_id == '7'
    assert session.can_mutate


def test_sign_up_rejects_a_trial_in_the_past():
    with pytest.raises(SessionTransitionError):
        sessions.transition(AnonymousSession(), sessions.SIGNED_UP, now=NOW,
                            user=make_user(), trial_ends_at=NOW - timedelta(seconds=1))


def test_demo_and_real_identities_are_exclusive():
    real = sessions.transition(AnonymousSession(), sessions.SIGNED_IN, user=make_user(), tier='pro')
    with pytest.raises(SessionTransitionError):
        sessions.transition(real, sessions.DEMO_STARTED, owner_id='demo-user', email='demo@reselltrack.com')

    demo = sessions.transition(AnonymousSession(), sessions.DEMO_STARTED,
                               owner_id='demo-user', email='demo@reselltrack.com')
    assert isinstance(demo, DemoSession)
    assert demo.tier == 'demo'
    assert demo.is_demo and not demo.can_mutate

    # signing in from a demo session replaces the synthetic identity
    assert isinstance(sessions.transition(demo, sessions.SIGNED_IN, user=make_user()), RealSession)


def test_demo_can_only_end_from_demo():
    with pytest.raises(SessionTransitionError):
        sessions.transition(AnonymousSession(), sessions.DEMO_ENDED)
    demo = DemoSession('demo-user', 'demo@reselltrack.com')
    assert sessions.transition(demo, sessions.DEMO_ENDED) == AnonymousSession()


def test_sign_out_always_ends_anonymous():
    real = RealSession(7, 'seller@example.com', 'pro')
    assert sessions.transition(real, sessions.SIGNED_OUT) == AnonymousSession()


def test_subscription_resolution_needs_a_real_session():
    with pytest.raises(SessionTransitionError):
        sessions.transition(DemoSession('demo-user', 'demo@reselltrack.com'),
                            sessions.SUBSCRIPTION_RESOLVED, tier='pro')
    real = RealSession(7, 'seller@example.com', 'trial', NOW + timedelta(days=2))
    resolved = sessions.transition(real, sessions.SUBSCRIPTION_RESOLVED, now=NOW, tier='free')
    assert resolved.tier == 'free' and resolved.trial_ends_at is None
    with pytest.raises(SessionTransitionError):
        sessions.transition(real, sessions.SUBSCRIPTION_RESOLVED, now=NOW, tier='trial', trial_ends_at=None)


def test_unknown_event_is_rejected():
    with pytest.raises(SessionTransitionError):
        sessions.transition(AnonymousSession(), 'teleported')


def test_resolve_subscription_prefers_subscription_row():
    user = make_user()
    active = SimpleNamespace(tier='pro', status='active')
    cancelled = SimpleNamespace(tier='pro', status='cancelled')
    assert sessions.resolve_subscription(user, active, now=NOW) == ('pro', None)
    assert sessions.resolve_subscription(user, cancelled, now=NOW) == ('free', None)


def test_resolve_subscription_trial_window():
    fresh = make_user(created_at=NOW - timedelta(days=3))
    assert sessions.resolve_subscription(fresh, now=NOW) == ('trial', fresh.created_at + timedelta(days=14))

    expired = make_user(created_at=NOW - timedelta(days=20))
    assert sessions.resolve_subscription(expired, now=NOW) == ('free', None)

    explicit_end = NOW + timedelta(hours=1)
    extended = make_user(created_at=NOW - timedelta(days=30), trial_ends_at=explicit_end)
    assert sessions.resolve_subscription(extended, now=NOW) == ('trial', explicit_end)


def test_session_from_token():
    users = {7: make_user(subscription_tier='pro')}
    load = users.get
    assert sessions.session_from_token(None, {}, load, 'demo@x.com') == AnonymousSession()
    assert sessions.session_from_token('demo-user', {'demo': True}, load, 'demo@x.com') == \
        DemoSession('demo-user', 'demo@x.com')
    assert sessions.session_from_token('not-a-number', {}, load, 'demo@x.com') == AnonymousSession()
    assert sessions.session_from_token('99', {}, load, 'demo@x.com') == AnonymousSession()

    session = sessions.session_from_token('7', {'demo': False}, load, 'demo@x.com')
    assert isinstance(session, RealSession)
    assert session.tier == 'pro' and session.trial_ends_at is None


def test_issue_token_carries_demo_claim(app_ctx):
    token = sessions.issue_token(DemoSession('demo-user', 'demo@reselltrack.com'))
    claims = decode_token(token)
    assert claims['sub'] == 'demo-user'
    assert claims['demo'] is True
    assert claims['tier'] == 'demo'

    with pytest.raises(SessionTransitionError):
        sessions.issue_token(AnonymousSession())
