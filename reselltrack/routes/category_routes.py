from flask_restx import Namespace, Resource, fields
from ..services import record_store

category_ns = Namespace('categories', description='Product categories (reference data)')

category_model = category_ns.model('Category', {
    'id': fields.Integer(readonly=True),
    'name': fields.String(description='Category name'),
    'icon': fields.String(),
    'color': fields.String(),
    'is_active': fields.Boolean(),
})


@category_ns.route('')
class CategoryList(Resource):
    @category_ns.doc('list_categories')
    @category_ns.response(200, 'Active categories', category_model)
    def get(self):
        """Get all active categories (public)"""
        categories, error = record_store.list_categories()
        if error:
            return error, 500
        return categories, 200
