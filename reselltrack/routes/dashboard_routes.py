from flask_restx import Namespace, Resource, reqparse
from flask import g
from ..services import metrics_service, record_store
from ..utils import session_required

dashboard_ns = Namespace('dashboard', description='Dashboard statistics and analytics')

ANALYTICS_PERIODS = ('weekly', 'monthly', 'yearly')

analytics_parser = reqparse.RequestParser()
analytics_parser.add_argument('period', type=str, location='args', default='monthly',
                              choices=ANALYTICS_PERIODS, help='weekly, monthly or yearly')


def load_collections(owner_id):
    products, error = record_store.list_products(owner_id)
    if error:
        return None, None, error
    meetings, error = record_store.list_meetings(owner_id)
    if error:
        return None, None, error
    return products, meetings, None


@dashboard_ns.route('/stats')
class DashboardStats(Resource):
    @session_required
    @dashboard_ns.doc('dashboard_stats', security='BearerAuth')
    def get(self):
        """Dashboard metrics computed from the session's products and meetings"""
        products, meetings, error = load_collections(g.session.owner_id)
        if error:
            return error, 500
        return metrics_service.dashboard_metrics(products, meetings), 200


@dashboard_ns.route('/weekly-activity')
class WeeklyActivity(Resource):
    @session_required
    @dashboard_ns.doc('weekly_activity', security='BearerAuth')
    def get(self):
        """Listed, sold and meeting counts for the trailing six weeks"""
        products, meetings, error = load_collections(g.session.owner_id)
        if error:
            return error, 500
        return metrics_service.weekly_activity(products, meetings), 200


@dashboard_ns.route('/summary')
class DashboardSummary(Resource):
    @session_required
    @dashboard_ns.doc('dashboard_summary', security='BearerAuth')
    def get(self):
        """Store-side counts plus recent products and upcoming meetings"""
        owner_id = g.session.owner_id
        counts, error = record_store.get_dashboard_data(owner_id)
        if error:
            return error, 500
        products, error = record_store.list_products(owner_id)
        if error:
            return error, 500
        upcoming, error = record_store.list_meetings(owner_id, {'status': 'scheduled'})
        if error:
            return error, 500
        return dict(counts,
                    recent_products=metrics_service.recent_products(products),
                    upcoming_meetings=upcoming[:5]), 200


@dashboard_ns.route('/analytics')
class AnalyticsSummary(Resource):
    @session_required
    @dashboard_ns.expect(analytics_parser)
    @dashboard_ns.doc('analytics_summary', security='BearerAuth')
    def get(self):
        """Revenue, profit and inventory summary with a six-period trend"""
        args = analytics_parser.parse_args()
        summary, error = record_store.get_analytics_summary(g.session.owner_id, args['period'])
        if error:
            return error, 500
        return summary, 200
