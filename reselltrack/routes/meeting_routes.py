from flask_restx import Namespace, Resource, fields, reqparse
from flask import g, request
from ..services import filter_service, record_store
from ..utils import demo_restricted, session_required
from ..utils.validators import parse_date, validate_meeting
from .product_routes import validation_failed

meeting_ns = Namespace('meetings', description='Buyer and seller meetings', path='/meetings')

meeting_model = meeting_ns.model('Meeting', {
    'id': fields.Integer(readonly=True),
    'owner_id': fields.String(readonly=True),
    'product_id': fields.Integer(),
    'title': fields.String(required=True),
    'client_name': fields.String(required=True),
    'client_email': fields.String(),
    'client_phone': fields.String(),
    'scheduled_date': fields.Date(required=True),
    'scheduled_time': fields.String(required=True, description='HH:MM'),
    'scheduled_at': fields.DateTime(readonly=True),
    'duration': fields.Integer(description='Minutes'),
    'location': fields.String(),
    'meeting_type': fields.String(enum=['pickup', 'drop_off', 'viewing', 'negotiation', 'other']),
    'status': fields.String(enum=['scheduled', 'completed', 'cancelled', 'no_show']),
    'notes': fields.String(),
    'reminder_sent': fields.Boolean(readonly=True),
})

list_parser = reqparse.RequestParser()
list_parser.add_argument('status', type=str, location='args', help='scheduled, completed, cancelled, no_show or all')
list_parser.add_argument('search', type=str, location='args', help='Matches title, client name, email or location')
list_parser.add_argument('date_range', type=str, location='args', help='all, today, week or month')
list_parser.add_argument('date_from', type=str, location='args', help='Inclusive lower bound (YYYY-MM-DD)')
list_parser.add_argument('date_to', type=str, location='args', help='Inclusive upper bound (YYYY-MM-DD)')
list_parser.add_argument('sort_by', type=str, location='args', help='Field to sort by')
list_parser.add_argument('sort_order', type=str, location='args', help='asc or desc')


def load_owned_meeting(meeting_id):
    meeting, error = record_store.get_meeting(meeting_id)
    if error:
        return None, (error, 500)
    if meeting is None or meeting['owner_id'] != g.session.owner_id:
        return None, ({'message': f'Meeting {meeting_id} not found'}, 404)
    return meeting, None


def check_product_link(cleaned):
    """A meeting may only point at a live product of the same owner."""
    product_id = cleaned.get('product_id')
    if product_id is None:
        return None
    product, error = record_store.get_product(product_id)
    if error:
        return error, 500
    if product is None or product['owner_id'] != g.session.owner_id:
        return validation_failed({'product_id': 'Unknown product'})
    return None


@meeting_ns.route('')
class MeetingList(Resource):
    @session_required
    @meeting_ns.expect(list_parser)
    @meeting_ns.doc('list_meetings', security='BearerAuth')
    def get(self):
        """List live meetings, soonest first unless another order is requested"""
        args = list_parser.parse_args()
        bounds, errors = {}, {}
        for key in ('date_from', 'date_to'):
            if args[key]:
                try:
                    bounds[key] = parse_date(args[key])
                except (TypeError, ValueError):
                    errors[key] = 'Must be a date in YYYY-MM-DD format'
        if errors:
            return validation_failed(errors)

        meetings, error = record_store.list_meetings(g.session.owner_id, bounds)
        if error:
            return error, 500

        sort = None
        if args['sort_by']:
            sort = (args['sort_by'], args['sort_order'] or 'asc')
        try:
            filtered = filter_service.apply(meetings, dict(bounds, **{
                'status': args['status'],
                'search': args['search'],
                'date_range': args['date_range'],
            }), sort=sort, kind=filter_service.MEETING)
        except filter_service.FilterError as e:
            return validation_failed({'query': str(e)})

        return {'meetings': filtered, 'total': len(filtered)}, 200

    @session_required
    @demo_restricted('Scheduling meetings')
    @meeting_ns.expect(meeting_model)
    @meeting_ns.doc('create_meeting', security='BearerAuth')
    def post(self):
        """Schedule a meeting"""
        cleaned, errors = validate_meeting(request.get_json(silent=True))
        if errors:
            return validation_failed(errors)
        failure = check_product_link(cleaned)
        if failure:
            return failure
        cleaned['owner_id'] = g.session.owner_id

        meeting, error = record_store.create_meeting(cleaned)
        if error:
            return error, 500
        return meeting, 201


@meeting_ns.route('/<int:meeting_id>')
class MeetingResource(Resource):
    @session_required
    @meeting_ns.doc('get_meeting', security='BearerAuth')
    def get(self, meeting_id):
        """Get a meeting by ID"""
        meeting, failure = load_owned_meeting(meeting_id)
        if failure:
            return failure
        return meeting, 200

    @session_required
    @demo_restricted('Editing meetings')
    @meeting_ns.expect(meeting_model)
    @meeting_ns.doc('update_meeting', security='BearerAuth')
    def put(self, meeting_id):
        """Update the provided meeting fields; any status may follow any other"""
        _, failure = load_owned_meeting(meeting_id)
        if failure:
            return failure
        cleaned, errors = validate_meeting(request.get_json(silent=True), partial=True)
        if errors:
            return validation_failed(errors)
        failure = check_product_link(cleaned)
        if failure:
            return failure

        meeting, error = record_store.update_meeting(meeting_id, cleaned)
        if error:
            return error, 500
        return meeting, 200

    @session_required
    @demo_restricted('Deleting meetings')
    @meeting_ns.doc('delete_meeting', security='BearerAuth')
    def delete(self, meeting_id):
        """Soft-delete a meeting"""
        _, failure = load_owned_meeting(meeting_id)
        if failure:
            return failure
        _, error = record_store.soft_delete_meeting(meeting_id)
        if error:
            return error, 500
        return {'message': 'Meeting deleted successfully'}, 200
