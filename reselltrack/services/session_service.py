"""Per-request session context.

A request runs as exactly one of three sessions: anonymous, a real signed-in
user, or the synthetic demo identity. Routes consume them through the same
attributes (``owner_id``, ``tier``, ``is_demo``, ``can_mutate``) and the state
only moves through :func:`transition`.
"""
import logging
from datetime import datetime, timedelta

from flask_jwt_extended import create_access_token

from ..models import SubscriptionTier

logger = logging.getLogger(__name__)

SIGNED_IN = 'signed_in'
SIGNED_UP = 'signed_up'
SIGNED_OUT = 'signed_out'
DEMO_STARTED = 'demo_started'
DEMO_ENDED = 'demo_ended'
SUBSCRIPTION_RESOLVED = 'subscription_resolved'

ACTIVE_SUBSCRIPTION_STATUSES = ('active', 'trialing')


class SessionTransitionError(Exception):
    pass


class AnonymousSession:
    kind = 'anonymous'
    owner_id = None
    email = None
    tier = None
    trial_ends_at = None
    is_authenticated = False
    is_demo = False
    can_mutate = False

    def to_dict(self):
        return {'kind': self.kind, 'authenticated': False}

    def __eq__(self, other):
        return isinstance(other, AnonymousSession)

    def __repr__(self):
        return '<AnonymousSession>'


class RealSession:
    kind = 'real'
    is_authenticated = True
    is_demo = False
    can_mutate = True

    def __init__(self, user_id, email, tier, trial_ends_at=None):
        self.user_id = user_id
        self.email = email
        self.tier = tier
        self.trial_ends_at = trial_ends_at

    @property
    def owner_id(self):
        return str(self.user_id)

    def to_dict(self):
        return {
            'kind': self.kind,
            'authenticated': True,
            'owner_id': self.owner_id,
            'email': self.email,
            'tier': self.tier,
            'trial_ends_at': self.trial_ends_at.isoformat() if self.trial_ends_at else None,
        }

    def __eq__(self, other):
        return isinstance(other, RealSession) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f'<RealSession {self.email} ({self.tier})>'


class DemoSession:
    kind = 'demo'
    tier = SubscriptionTier.DEMO.value
    trial_ends_at = None
    is_authenticated = True
    is_demo = True
    can_mutate = False

    def __init__(self, owner_id, email):
        self.owner_id = owner_id
        self.email = email

    def to_dict(self):
        return {
            'kind': self.kind,
            'authenticated': True,
            'owner_id': self.owner_id,
            'email': self.email,
            'tier': self.tier,
            'trial_ends_at': None,
        }

    def __eq__(self, other):
        return isinstance(other, DemoSession) and self.owner_id == other.owner_id

    def __repr__(self):
        return f'<DemoSession {self.owner_id}>'


def resolve_subscription(user, subscription=None, now=None, trial_days=14):
    """Return ``(tier, trial_ends_at)`` for a real user."""
    now = now or datetime.utcnow()
    if subscription is not None:
        if subscription.status in ACTIVE_SUBSCRIPTION_STATUSES:
            return subscription.tier, None
        return SubscriptionTier.FREE.value, None

    trial_end = user.trial_ends_at or (user.created_at + timedelta(days=trial_days))
    if now > trial_end:
        return SubscriptionTier.FREE.value, None
    return SubscriptionTier.TRIAL.value, trial_end


def transition(state, event, now=None, **payload):
    now = now or datetime.utcnow()

    if event in (SIGNED_OUT, DEMO_ENDED):
        if event == DEMO_ENDED and not state.is_demo:
            raise SessionTransitionError('No demo session is active')
        return AnonymousSession()

    if event == SIGNED_IN:
        user = payload['user']
        return RealSession(user.id, user.email, payload.get('tier', user.subscription_tier),
                           payload.get('trial_ends_at'))

    if event == SIGNED_UP:
        user = payload['user']
        trial_ends_at = payload['trial_ends_at']
        if trial_ends_at is None or trial_ends_at <= now:
            raise SessionTransitionError('A trial must end in the future')
        return RealSession(user.id, user.email, SubscriptionTier.TRIAL.value, trial_ends_at)

    if event == DEMO_STARTED:
        if isinstance(state, RealSession):
            raise SessionTransitionError('Sign out before starting the demo')
        return DemoSession(payload['owner_id'], payload['email'])

    if event == SUBSCRIPTION_RESOLVED:
        if not isinstance(state, RealSession):
            raise SessionTransitionError('Only signed-in users have a subscription')
        tier = payload['tier']
        trial_ends_at = payload.get('trial_ends_at')
        if tier == SubscriptionTier.TRIAL.value and (trial_ends_at is None or trial_ends_at <= now):
            raise SessionTransitionError('A trial must end in the future')
        return RealSession(state.user_id, state.email, tier, trial_ends_at)

    raise SessionTransitionError(f'Unknown session event: {event}')


def issue_token(session):
    if not session.is_authenticated:
        raise SessionTransitionError('Cannot issue a token for an anonymous session')
    claims = {'demo': session.is_demo, 'tier': session.tier}
    identity = session.owner_id
    return create_access_token(identity=identity, additional_claims=claims)


def session_from_token(identity, claims, load_user, demo_email):
    """Rebuild the session for a verified token; ``load_user`` maps an id to a User."""
    if identity is None:
        return AnonymousSession()
    if claims.get('demo'):
        return DemoSession(identity, demo_email)
    if not str(identity).isdigit():
        logger.warning(f"Token identity {identity} is not a user id")
        return AnonymousSession()
    user = load_user(int(identity))
    if user is None:
        logger.warning(f"Token refers to missing user {identity}")
        return AnonymousSession()
    trial_ends_at = user.trial_ends_at if user.subscription_tier == SubscriptionTier.TRIAL.value else None
    return RealSession(user.id, user.email, user.subscription_tier, trial_ends_at)
