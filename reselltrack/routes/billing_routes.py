from flask_restx import Namespace, Resource, fields
from flask import g, request
from .. import db
from ..models import Subscription, User
from ..services import billing_service
from ..utils import demo_restricted, session_required
from .product_routes import validation_failed

billing_ns = Namespace('billing', description='Plans, checkout and the billing portal')

checkout_model = billing_ns.model('Checkout', {
    'plan_id': fields.String(required=True, enum=['pro', 'pro-yearly']),
})


@billing_ns.route('/plans')
class Plans(Resource):
    def get(self):
        """Available subscription plans (public)"""
        return billing_service.list_plans(), 200


@billing_ns.route('/checkout')
class Checkout(Resource):
    @session_required
    @demo_restricted('Upgrading')
    @billing_ns.expect(checkout_model)
    @billing_ns.doc('create_checkout', security='BearerAuth')
    def post(self):
        """Create a hosted checkout session for a paid plan"""
        data = request.get_json(silent=True) or {}
        plan = billing_service.get_plan(data.get('plan_id'))
        if plan is None or plan['price_config_key'] is None:
            return validation_failed({'plan_id': 'Choose a paid plan'})

        session, error = billing_service.create_checkout_session(plan['id'], g.session.email)
        if error:
            return error, 502
        return session, 200


@billing_ns.route('/portal')
class Portal(Resource):
    @session_required
    @demo_restricted('Managing billing')
    @billing_ns.doc('create_portal', security='BearerAuth')
    def post(self):
        """Create a hosted billing portal session for the current customer"""
        user = db.session.get(User, g.session.user_id)
        subscription = Subscription.query.filter_by(user_id=user.id).order_by(Subscription.created_at.desc()).first()
        if subscription is None or not subscription.provider_customer_id:
            return {'message': 'No billing account found. Upgrade to a paid plan first.'}, 404

        session, error = billing_service.create_portal_session(subscription.provider_customer_id)
        if error:
            return error, 502
        return session, 200


@billing_ns.route('/webhook')
class Webhook(Resource):
    def post(self):
        """Receive payment provider events"""
        event = request.get_json(silent=True)
        if not isinstance(event, dict) or 'type' not in event:
            return validation_failed({'type': 'Event type is required'})
        return billing_service.handle_webhook(event), 200
