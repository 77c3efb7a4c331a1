import logging
from flask import current_app, g, jsonify, request
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from .. import db
from ..models import User
from ..services.session_service import AnonymousSession, session_from_token

logger = logging.getLogger(__name__)

PUBLIC_PREFIXES = ('/docs', '/swagger', '/static/')
PASSWORD_RESET_PURPOSE = 'password_reset'


def _load_user(user_id):
    return db.session.get(User, user_id)


def setup_auth_middleware(app):
    @app.before_request
    def before_request():
        g.session = AnonymousSession()
        if request.method == 'OPTIONS' or request.path.startswith(PUBLIC_PREFIXES):
            return None
        try:
            verify_jwt_in_request(optional=True)
        except (JWTExtendedException, PyJWTError) as e:
            logger.warning(f"Rejected bearer token on {request.path}: {str(e)}")
            return jsonify({'message': 'Invalid or expired token', 'error': str(e)}), 401

        identity = get_jwt_identity()
        if identity is None:
            return None
        if get_jwt().get('purpose') == PASSWORD_RESET_PURPOSE:
            logger.warning(f"Password reset token used as bearer on {request.path}")
            return jsonify({'message': 'Invalid or expired token'}), 401
        g.session = session_from_token(identity, get_jwt(), _load_user,
                                       current_app.config['DEMO_USER_EMAIL'])
        return None
