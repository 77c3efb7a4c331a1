"""Subscription plans and the hosted payment provider (Stripe REST API).

Calls go out with httpx using form-encoded bodies. When no secret key is
configured nothing is sent and a "not configured" error is returned.
"""
import logging

import httpx
from flask import current_app

logger = logging.getLogger(__name__)

PRO_FEATURES = [
    'Unlimited products',
    'Advanced analytics',
    'Priority support',
    'All premium features',
    'Data export (PDF/Excel)',
    'Custom branding',
    'API access',
    'Team collaboration',
]

PLANS = [
    {
        'id': 'free',
        'name': 'Free',
        'description': 'Perfect for getting started',
        'price': 0,
        'currency': 'USD',
        'interval': 'month',
        'features': ['Up to 25 products', 'Basic analytics', 'Email support', 'Mobile access', 'Data export (CSV)'],
        'popular': False,
        'price_config_key': None,
    },
    {
        'id': 'pro',
        'name': 'Pro',
        'description': 'For serious resellers',
        'price': 29,
        'currency': 'USD',
        'interval': 'month',
        'features': PRO_FEATURES,
        'popular': True,
        'price_config_key': 'PRICE_PRO_MONTHLY',
    },
    {
        'id': 'pro-yearly',
        'name': 'Pro Annual',
        'description': 'Save 20% with annual billing',
        'price': 290,
        'currency': 'USD',
        'interval': 'year',
        'features': PRO_FEATURES + ['2 months free'],
        'popular': False,
        'price_config_key': 'PRICE_PRO_YEARLY',
    },
]

HANDLED_WEBHOOK_EVENTS = (
    'checkout.session.completed',
    'customer.subscription.updated',
    'customer.subscription.deleted',
)

TIMEOUT = httpx.Timeout(30.0, connect=10.0)


def list_plans():
    return [{k: v for k, v in plan.items() if k != 'price_config_key'} for plan in PLANS]


def get_plan(plan_id):
    return next((plan for plan in PLANS if plan['id'] == plan_id), None)


def _not_configured():
    logger.warning("Payment provider not configured, skipping call")
    return None, {'message': 'Payment provider not configured', 'error': 'PAYMENT_SECRET_KEY is not set'}


def _post(path, data):
    config = current_app.config
    url = f"{config['PAYMENT_API_BASE'].rstrip('/')}{path}"
    headers = {'Authorization': f"Bearer {config['PAYMENT_SECRET_KEY']}"}
    try:
        with httpx.Client(timeout=TIMEOUT) as client:
            resp = client.post(url, data=data, headers=headers)
    except httpx.HTTPError as e:
        logger.error(f"HTTP error talking to payment provider at {path}: {str(e)}")
        return None, {'message': 'Payment provider unreachable', 'error': str(e)}

    if resp.status_code != 200:
        logger.error(f"Payment provider error on {path}: status={resp.status_code} body={resp.text}")
        return None, {'message': 'Payment provider request failed', 'error': resp.text}
    return resp.json(), None


def create_checkout_session(plan_id, customer_email=None):
    plan = get_plan(plan_id)
    if plan is None:
        return None, {'message': 'Unknown plan', 'error': f'No plan with ID {plan_id}'}
    if plan['price_config_key'] is None:
        return None, {'message': 'The free plan does not need checkout', 'error': 'free plan'}
    if not current_app.config.get('PAYMENT_SECRET_KEY'):
        return _not_configured()

    app_url = current_app.config['APP_URL'].rstrip('/')
    data = {
        'mode': 'subscription',
        'line_items[0][price]': current_app.config[plan['price_config_key']],
        'line_items[0][quantity]': 1,
        'success_url': f'{app_url}/payment-success',
        'cancel_url': f'{app_url}/pricing',
    }
    if customer_email:
        data['customer_email'] = customer_email

    logger.info(f"Creating checkout session for plan {plan_id}")
    payload, error = _post('/v1/checkout/sessions', data)
    if error:
        return None, error
    return {'session_id': payload.get('id'), 'url': payload.get('url')}, None


def create_portal_session(customer_id):
    if not customer_id:
        return None, {'message': 'No billing customer on file', 'error': 'missing customer id'}
    if not current_app.config.get('PAYMENT_SECRET_KEY'):
        return _not_configured()

    data = {
        'customer': customer_id,
        'return_url': f"{current_app.config['APP_URL'].rstrip('/')}/settings",
    }
    logger.info(f"Creating billing portal session for customer {customer_id}")
    payload, error = _post('/v1/billing_portal/sessions', data)
    if error:
        return None, error
    return {'url': payload.get('url')}, None


def handle_webhook(event):
    event_type = (event or {}).get('type')
    if event_type not in HANDLED_WEBHOOK_EVENTS:
        logger.warning(f"Unhandled payment event type: {event_type}")
        return {'received': True, 'handled': False}
    data = event.get('data') if isinstance(event.get('data'), dict) else {}
    obj = data.get('object') if isinstance(data.get('object'), dict) else {}
    logger.info(f"Payment event {event_type} for {obj.get('id')}")
    return {'received': True, 'handled': True, 'type': event_type}
