from flask_restx import Namespace, Resource
from flask import current_app, g
import logging
from ..services import demo_service, session_service
from ..services.session_service import SessionTransitionError

demo_ns = Namespace('demo', description='Explore the app with a synthetic dataset')

logger = logging.getLogger(__name__)


@demo_ns.route('/start')
class DemoStart(Resource):
    @demo_ns.doc('start_demo')
    def post(self):
        """Start a demo session, generating the demo dataset when it is missing"""
        owner_id = current_app.config['DEMO_USER_ID']
        try:
            session = session_service.transition(
                g.session, session_service.DEMO_STARTED,
                owner_id=owner_id, email=current_app.config['DEMO_USER_EMAIL'])
        except SessionTransitionError as e:
            return {'message': str(e)}, 409

        created = None
        if not demo_service.exists(owner_id):
            generated = demo_service.generate(owner_id)
            created = {kind: len(rows) for kind, rows in generated.items()}

        logger.info(f"Demo session started for {owner_id}")
        return {
            'message': 'Demo mode started',
            'access_token': session_service.issue_token(session),
            'session': session.to_dict(),
            'created': created,
        }, 200


@demo_ns.route('/stop')
class DemoStop(Resource):
    @demo_ns.doc('stop_demo', security='BearerAuth')
    def post(self):
        """End the demo session and remove the demo dataset"""
        try:
            session = session_service.transition(g.session, session_service.DEMO_ENDED)
        except SessionTransitionError as e:
            return {'message': str(e)}, 409
        return end_demo(g.session.owner_id, session)


@demo_ns.route('/status')
class DemoStatus(Resource):
    @demo_ns.doc('demo_status')
    def get(self):
        """Whether this request runs in demo mode and whether demo data exists"""
        return {
            'active': g.session.is_demo,
            'data_exists': demo_service.exists(current_app.config['DEMO_USER_ID']),
        }, 200


def end_demo(owner_id, next_session):
    try:
        removed = demo_service.cleanup(owner_id)
    except demo_service.DemoCleanupError as e:
        return {'message': 'Demo data could not be fully removed', 'error': str(e), 'failures': e.failures}, 500
    except demo_service.DemoDataError as e:
        return {'message': 'Demo data could not be read', 'error': str(e)}, 500
    return {
        'message': 'Demo mode ended',
        'removed': removed,
        'session': next_session.to_dict(),
    }, 200
