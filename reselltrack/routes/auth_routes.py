from flask_restx import Namespace, Resource, fields
from flask import current_app, g, request
from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from sqlalchemy.exc import IntegrityError
from datetime import datetime, timedelta
import logging
from .. import db, bcrypt
from ..models import Subscription, SubscriptionTier, User
from ..services import session_service
from ..utils import demo_restricted, session_required
from ..utils.auth_middleware import PASSWORD_RESET_PURPOSE
from ..utils.validators import EMAIL_REGEX, PASSWORD_REGEX
from .demo_routes import end_demo
from .product_routes import validation_failed

auth_ns = Namespace('auth', description='Sign-up, sign-in and account settings')

logger = logging.getLogger(__name__)

register_model = auth_ns.model('Register', {
    'email': fields.String(required=True, description='Email address'),
    'password': fields.String(required=True, description='At least 6 characters'),
    'full_name': fields.String(required=True, description='At least 2 characters'),
    'business_name': fields.String(description='Optional business name'),
})

login_model = auth_ns.model('Login', {
    'email': fields.String(required=True),
    'password': fields.String(required=True),
})

profile_model = auth_ns.model('Profile', {
    'full_name': fields.String(),
    'business_name': fields.String(),
    'avatar_url': fields.String(),
    'phone': fields.String(),
    'currency': fields.String(description='ISO 4217 code'),
    'timezone': fields.String(),
})

password_model = auth_ns.model('PasswordUpdate', {
    'current_password': fields.String(required=True),
    'new_password': fields.String(required=True),
})

reset_request_model = auth_ns.model('PasswordResetRequest', {
    'email': fields.String(required=True),
})

reset_confirm_model = auth_ns.model('PasswordResetConfirm', {
    'token': fields.String(required=True),
    'new_password': fields.String(required=True),
})

PROFILE_LIMITS = {
    'full_name': 120,
    'business_name': 120,
    'avatar_url': 255,
    'phone': 20,
    'currency': 3,
    'timezone': 64,
}


def format_user(user):
    return {
        'id': user.id,
        'email': user.email,
        'full_name': user.full_name,
        'business_name': user.business_name,
        'avatar_url': user.avatar_url,
        'phone': user.phone,
        'currency': user.currency,
        'timezone': user.timezone,
        'subscription_tier': user.subscription_tier,
        'trial_ends_at': user.trial_ends_at.isoformat() if user.trial_ends_at else None,
        'tutorial_completed': user.tutorial_completed,
        'created_at': user.created_at.isoformat() if user.created_at else None,
    }


def current_user():
    return db.session.get(User, g.session.user_id)


def latest_subscription(user):
    return Subscription.query.filter_by(user_id=user.id).order_by(Subscription.created_at.desc()).first()


@auth_ns.route('/register')
class Register(Resource):
    @auth_ns.expect(register_model)
    def post(self):
        """Create an account that starts on a free trial"""
        data = request.get_json(silent=True) or {}
        errors = {}
        email = (data.get('email') or '').strip().lower()
        if not EMAIL_REGEX.match(email):
            errors['email'] = 'Please enter a valid email address'
        if not PASSWORD_REGEX.match(data.get('password') or ''):
            errors['password'] = 'Password must be at least 6 characters'
        full_name = (data.get('full_name') or '').strip()
        if len(full_name) < 2:
            errors['full_name'] = 'Full name must be at least 2 characters'
        if errors:
            return validation_failed(errors)

        if User.query.filter_by(email=email).first():
            return validation_failed({'email': 'Email is already registered'})

        now = datetime.utcnow()
        trial_ends_at = now + timedelta(days=current_app.config['TRIAL_DAYS'])
        user = User(
            email=email,
            password=bcrypt.generate_password_hash(data['password']).decode('utf-8'),
            full_name=full_name,
            business_name=data.get('business_name') or None,
            subscription_tier=SubscriptionTier.TRIAL.value,
            trial_ends_at=trial_ends_at,
            created_at=now,
        )
        try:
            db.session.add(user)
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            logger.error(f"Could not register {email}: {str(e)}")
            return {'message': 'Database error: could not register user', 'error': str(e)}, 500

        session = session_service.transition(g.session, session_service.SIGNED_UP,
                                             now=now, user=user, trial_ends_at=trial_ends_at)
        logger.info(f"User registered: ID {user.id} on trial until {trial_ends_at.isoformat()}")
        return {
            'message': 'Account created successfully',
            'access_token': session_service.issue_token(session),
            'session': session.to_dict(),
            'user': format_user(user),
        }, 201


@auth_ns.route('/login')
class Login(Resource):
    @auth_ns.expect(login_model)
    def post(self):
        """Sign in and resolve the current subscription tier"""
        data = request.get_json(silent=True) or {}
        email = (data.get('email') or '').strip().lower()
        if not email or not data.get('password'):
            return validation_failed({'email': 'Email and password are required'})

        user = User.query.filter_by(email=email).first()
        if not user or not bcrypt.check_password_hash(user.password, data['password']):
            logger.warning(f"Failed sign-in for {email}")
            return {'message': 'Invalid email or password'}, 401

        tier, trial_ends_at = session_service.resolve_subscription(
            user, latest_subscription(user), trial_days=current_app.config['TRIAL_DAYS'])
        if user.subscription_tier != tier:
            user.subscription_tier = tier
            db.session.commit()

        session = session_service.transition(g.session, session_service.SIGNED_IN, user=user)
        session = session_service.transition(session, session_service.SUBSCRIPTION_RESOLVED,
                                             tier=tier, trial_ends_at=trial_ends_at)
        logger.info(f"User signed in: ID {user.id} ({tier})")
        return {
            'message': 'Signed in successfully',
            'access_token': session_service.issue_token(session),
            'session': session.to_dict(),
            'user': format_user(user),
        }, 200


@auth_ns.route('/logout')
class Logout(Resource):
    @session_required
    @auth_ns.doc('logout', security='BearerAuth')
    def post(self):
        """Sign out; leaving a demo session also removes the demo dataset"""
        if g.session.is_demo:
            session = session_service.transition(g.session, session_service.DEMO_ENDED)
            return end_demo(g.session.owner_id, session)
        session = session_service.transition(g.session, session_service.SIGNED_OUT)
        return {'message': 'Signed out', 'session': session.to_dict()}, 200


@auth_ns.route('/me')
class Me(Resource):
    @session_required
    @auth_ns.doc('current_session', security='BearerAuth')
    def get(self):
        """Current session and, for real users, the account"""
        user = None if g.session.is_demo else current_user()
        return {
            'session': g.session.to_dict(),
            'user': format_user(user) if user else None,
        }, 200


@auth_ns.route('/profile')
class Profile(Resource):
    @session_required
    @demo_restricted('Updating your profile')
    @auth_ns.expect(profile_model)
    @auth_ns.doc('update_profile', security='BearerAuth')
    def put(self):
        """Update profile fields"""
        data = request.get_json(silent=True) or {}
        errors = {}
        for field, limit in PROFILE_LIMITS.items():
            value = data.get(field)
            if value is not None and (not isinstance(value, str) or len(value) > limit):
                errors[field] = f'Must be a string of at most {limit} characters'
        if errors:
            return validation_failed(errors)

        user = current_user()
        for field in PROFILE_LIMITS:
            if field in data:
                setattr(user, field, data[field])
        try:
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error updating profile for user {user.id}: {str(e)}")
            return {'message': 'Error updating profile', 'error': str(e)}, 500
        return {'message': 'Profile updated', 'user': format_user(user)}, 200


@auth_ns.route('/password')
class Password(Resource):
    @session_required
    @demo_restricted('Changing the password')
    @auth_ns.expect(password_model)
    @auth_ns.doc('update_password', security='BearerAuth')
    def put(self):
        """Change the password of the signed-in user"""
        data = request.get_json(silent=True) or {}
        user = current_user()
        if not bcrypt.check_password_hash(user.password, data.get('current_password') or ''):
            return validation_failed({'current_password': 'Current password is incorrect'})
        if not PASSWORD_REGEX.match(data.get('new_password') or ''):
            return validation_failed({'new_password': 'Password must be at least 6 characters'})

        user.password = bcrypt.generate_password_hash(data['new_password']).decode('utf-8')
        db.session.commit()
        logger.info(f"Password changed for user {user.id}")
        return {'message': 'Password updated'}, 200


@auth_ns.route('/password-reset')
class PasswordResetRequest(Resource):
    @auth_ns.expect(reset_request_model)
    def post(self):
        """Issue a short-lived reset token; the answer never reveals whether the email exists"""
        data = request.get_json(silent=True) or {}
        email = (data.get('email') or '').strip().lower()
        if not EMAIL_REGEX.match(email):
            return validation_failed({'email': 'Please enter a valid email address'})

        user = User.query.filter_by(email=email).first()
        if user:
            token = create_access_token(
                identity=str(user.id),
                additional_claims={'purpose': PASSWORD_RESET_PURPOSE},
                expires_delta=current_app.config['PASSWORD_RESET_EXPIRES'],
            )
            reset_url = f"{current_app.config['APP_URL'].rstrip('/')}/reset-password?token={token}"
            logger.debug(f"Password reset link for user {user.id}: {reset_url}")
        return {'message': 'If the address is registered, a reset link has been sent'}, 200


@auth_ns.route('/password-reset/confirm')
class PasswordResetConfirm(Resource):
    @auth_ns.expect(reset_confirm_model)
    def post(self):
        """Set a new password using a reset token"""
        data = request.get_json(silent=True) or {}
        if not PASSWORD_REGEX.match(data.get('new_password') or ''):
            return validation_failed({'new_password': 'Password must be at least 6 characters'})
        try:
            claims = decode_token(data.get('token') or '')
        except (JWTExtendedException, PyJWTError) as e:
            logger.warning(f"Rejected password reset token: {str(e)}")
            return validation_failed({'token': 'Reset link is invalid or has expired'})
        if claims.get('purpose') != PASSWORD_RESET_PURPOSE:
            return validation_failed({'token': 'Reset link is invalid or has expired'})

        user = db.session.get(User, int(claims['sub']))
        if user is None:
            return validation_failed({'token': 'Reset link is invalid or has expired'})
        user.password = bcrypt.generate_password_hash(data['new_password']).decode('utf-8')
        db.session.commit()
        logger.info(f"Password reset for user {user.id}")
        return {'message': 'Password has been reset'}, 200


@auth_ns.route('/tutorial')
class Tutorial(Resource):
    @session_required
    @auth_ns.doc('complete_tutorial', security='BearerAuth')
    def put(self):
        """Record that the onboarding tutorial was completed"""
        if g.session.is_demo:
            return {'tutorial_completed': True, 'persisted': False}, 200
        user = current_user()
        user.tutorial_completed = True
        db.session.commit()
        return {'tutorial_completed': True, 'persisted': True}, 200
