from datetime import date
from flask_restx import Namespace, Resource, fields, reqparse
from flask import g, request
import logging
from ..services import filter_service, metrics_service, record_store
from ..services.product_service import mark_sold_fields
from ..utils import demo_restricted, session_required
from ..utils.validators import validate_product, validate_sale

product_ns = Namespace('products', description='Inventory tracked by the current session', path='/products')

logger = logging.getLogger(__name__)

# Swagger models
product_model = product_ns.model('Product', {
    'id': fields.Integer(readonly=True),
    'owner_id': fields.String(readonly=True),
    'name': fields.String(required=True),
    'description': fields.String(),
    'category': fields.String(),
    'category_id': fields.Integer(),
    'listing_price': fields.Float(),
    'purchase_price': fields.Float(),
    'sold_price': fields.Float(),
    'sold_at': fields.Date(),
    'profit': fields.Float(readonly=True),
    'platform': fields.String(),
    'status': fields.String(enum=['listed', 'pending', 'sold', 'expired']),
    'condition': fields.String(enum=['new', 'like_new', 'good', 'fair', 'poor']),
    'tags': fields.List(fields.String),
    'notes': fields.String(),
    'seller_name': fields.String(),
    'buyer_name': fields.String(),
    'created_at': fields.DateTime(readonly=True),
    'updated_at': fields.DateTime(readonly=True),
})

sale_model = product_ns.model('Sale', {
    'sold_price': fields.Float(required=True),
    'sold_at': fields.Date(),
    'notes': fields.String(),
})

list_parser = reqparse.RequestParser()
list_parser.add_argument('status', type=str, location='args', help='listed, pending, sold, expired or all')
list_parser.add_argument('category', type=str, location='args', help='Category name or all')
list_parser.add_argument('search', type=str, location='args', help='Matches name, description or category')
list_parser.add_argument('sort_by', type=str, location='args', help='Field to sort by')
list_parser.add_argument('sort_order', type=str, location='args', help='asc or desc')


def validation_failed(errors):
    return {'message': 'Validation failed', 'errors': errors}, 400


def load_owned_product(product_id):
    """Return ``(product, error_response)`` for a live product owned by the session."""
    product, error = record_store.get_product(product_id)
    if error:
        return None, (error, 500)
    if product is None or product['owner_id'] != g.session.owner_id:
        return None, ({'message': f'Product {product_id} not found'}, 404)
    return product, None


def fill_sale_defaults(fields, current=None):
    """Sold products without a sold price sell at their listing price."""
    current = current or {}
    if fields.get('status', current.get('status')) != 'sold':
        return fields
    if fields.get('sold_price', current.get('sold_price')) is None:
        fields['sold_price'] = fields.get('listing_price', current.get('listing_price'))
    if fields.get('sold_at', current.get('sold_at')) is None:
        fields['sold_at'] = date.today()
    return fields


@product_ns.route('')
class ProductList(Resource):
    @session_required
    @product_ns.expect(list_parser)
    @product_ns.doc('list_products', security='BearerAuth')
    def get(self):
        """List live products with the products-page overview"""
        args = list_parser.parse_args()
        products, error = record_store.list_products(g.session.owner_id)
        if error:
            return error, 500

        sort = None
        if args['sort_by']:
            sort = (args['sort_by'], args['sort_order'] or 'desc')
        try:
            filtered = filter_service.apply(products, {
                'status': args['status'],
                'category': args['category'],
                'search': args['search'],
            }, sort=sort, kind=filter_service.PRODUCT)
        except filter_service.FilterError as e:
            return validation_failed({'sort_by': str(e)})

        return {
            'products': filtered,
            'total': len(filtered),
            'overview': metrics_service.product_overview(products),
        }, 200

    @session_required
    @demo_restricted('Adding products')
    @product_ns.expect(product_model)
    @product_ns.doc('create_product', security='BearerAuth')
    def post(self):
        """Create a product"""
        cleaned, errors = validate_product(request.get_json(silent=True))
        if errors:
            return validation_failed(errors)
        cleaned = fill_sale_defaults(cleaned)
        cleaned['owner_id'] = g.session.owner_id

        product, error = record_store.create_product(cleaned)
        if error:
            return error, 500
        return product, 201


@product_ns.route('/<int:product_id>')
class ProductResource(Resource):
    @session_required
    @product_ns.doc('get_product', security='BearerAuth')
    def get(self, product_id):
        """Get a product by ID"""
        product, failure = load_owned_product(product_id)
        if failure:
            return failure
        return product, 200

    @session_required
    @demo_restricted('Editing products')
    @product_ns.expect(product_model)
    @product_ns.doc('update_product', security='BearerAuth')
    def put(self, product_id):
        """Update the provided product fields"""
        product, failure = load_owned_product(product_id)
        if failure:
            return failure
        cleaned, errors = validate_product(request.get_json(silent=True), partial=True)
        if errors:
            return validation_failed(errors)

        updated, error = record_store.update_product(product_id, fill_sale_defaults(cleaned, product))
        if error:
            return error, 500
        return updated, 200

    @session_required
    @demo_restricted('Deleting products')
    @product_ns.doc('delete_product', security='BearerAuth')
    def delete(self, product_id):
        """Soft-delete a product"""
        product, failure = load_owned_product(product_id)
        if failure:
            return failure
        _, error = record_store.soft_delete_product(product_id)
        if error:
            return error, 500
        return {'message': 'Product deleted successfully'}, 200


@product_ns.route('/<int:product_id>/sold')
class ProductSale(Resource):
    @session_required
    @demo_restricted('Marking products as sold')
    @product_ns.expect(sale_model)
    @product_ns.doc('mark_product_sold', security='BearerAuth')
    def post(self, product_id):
        """Mark a product as sold and recompute its profit"""
        product, failure = load_owned_product(product_id)
        if failure:
            return failure
        cleaned, errors = validate_sale(request.get_json(silent=True))
        if errors:
            return validation_failed(errors)

        fields = mark_sold_fields(product, cleaned['sold_price'], cleaned.get('sold_at'), cleaned.get('notes'))
        updated, error = record_store.update_product(product_id, fields)
        if error:
            return error, 500
        logger.info(f"Product {product_id} marked as sold for {fields['sold_price']}")
        return updated, 200
