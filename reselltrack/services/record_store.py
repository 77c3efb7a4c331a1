"""Row-level access to products, meetings, categories and analytics events.

Every operation returns a ``(data, error)`` pair. ``error`` is ``None`` on
success, otherwise a ``{'message': ..., 'error': ...}`` dict. Failures are
logged and the session is rolled back; nothing is retried.

Products and meetings are never removed: deletion stamps ``deleted_at`` and
every listing query skips stamped rows. Analytics events are hard deleted.
"""
import logging
from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta
from sqlalchemy import func, or_

from .. import db
from ..models import AnalyticsEvent, Category, Meeting, MeetingStatus, Product, ProductStatus
from .product_service import compute_profit

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = (
    'owner_id', 'name', 'description', 'category', 'category_id', 'listing_price',
    'purchase_price', 'sold_price', 'sold_at', 'platform', 'status', 'condition',
    'tags', 'notes', 'seller_name', 'buyer_name', 'created_at',
)
MEETING_FIELDS = (
    'owner_id', 'product_id', 'title', 'client_name', 'client_email', 'client_phone',
    'scheduled_date', 'scheduled_time', 'duration', 'location', 'meeting_type',
    'status', 'notes', 'reminder_sent', 'created_at',
)
PRODUCT_SEARCH_COLUMNS = ('name', 'description', 'seller_name', 'buyer_name')
MEETING_SEARCH_COLUMNS = ('title', 'client_name', 'client_email', 'location')
PRODUCT_SORT_COLUMNS = (
    'name', 'created_at', 'updated_at', 'listing_price', 'purchase_price',
    'sold_price', 'sold_at', 'profit', 'status',
)
TREND_BUCKETS = 6


def escape_like(term):
    """Escape LIKE wildcards so ``%`` and ``_`` match literally."""
    return term.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def _iso(value):
    return value.isoformat() if value is not None else None


def _failure(message, exc):
    db.session.rollback()
    logger.error(f"{message}: {str(exc)}")
    return None, {'message': message, 'error': str(exc)}


def format_product(product):
    return {
        'id': product.id,
        'owner_id': product.owner_id,
        'name': product.name,
        'description': product.description,
        'category': product.category,
        'category_id': product.category_id,
        'listing_price': product.listing_price,
        'purchase_price': product.purchase_price,
        'sold_price': product.sold_price,
        'sold_at': _iso(product.sold_at),
        'profit': product.profit,
        'platform': product.platform,
        'status': product.status,
        'condition': product.condition,
        'tags': list(product.tags or []),
        'notes': product.notes,
        'seller_name': product.seller_name,
        'buyer_name': product.buyer_name,
        'created_at': _iso(product.created_at),
        'updated_at': _iso(product.updated_at),
        'deleted_at': _iso(product.deleted_at),
    }


def format_meeting(meeting):
    return {
        'id': meeting.id,
        'owner_id': meeting.owner_id,
        'product_id': meeting.product_id,
        'title': meeting.title,
        'client_name': meeting.client_name,
        'client_email': meeting.client_email,
        'client_phone': meeting.client_phone,
        'scheduled_date': _iso(meeting.scheduled_date),
        'scheduled_time': meeting.scheduled_time,
        'scheduled_at': _iso(meeting.scheduled_at),
        'duration': meeting.duration,
        'location': meeting.location,
        'meeting_type': meeting.meeting_type,
        'status': meeting.status,
        'notes': meeting.notes,
        'reminder_sent': meeting.reminder_sent,
        'created_at': _iso(meeting.created_at),
        'updated_at': _iso(meeting.updated_at),
        'deleted_at': _iso(meeting.deleted_at),
    }


def format_category(category):
    return {
        'id': category.id,
        'name': category.name,
        'icon': category.icon,
        'color': category.color,
        'is_active': category.is_active,
    }


def format_event(event):
    return {
        'id': event.id,
        'owner_id': event.owner_id,
        'event_type': event.event_type,
        'event_data': event.event_data,
        'created_at': _iso(event.created_at),
    }


# Products

def list_products(owner_id, filters=None):
    filters = filters or {}
    try:
        query = Product.query.filter(Product.owner_id == owner_id, Product.deleted_at.is_(None))

        status = filters.get('status')
        if status and status != 'all':
            query = query.filter(Product.status == status)

        category = filters.get('category')
        if category and category != 'all':
            query = query.filter(Product.category == category)

        search = filters.get('search')
        if search:
            term = f"%{escape_like(search)}%"
            query = query.filter(or_(*[
                getattr(Product, col).ilike(term, escape='\\') for col in PRODUCT_SEARCH_COLUMNS
            ]))

        sort_by = filters.get('sort_by')
        column = getattr(Product, sort_by) if sort_by in PRODUCT_SORT_COLUMNS else Product.created_at
        if sort_by and filters.get('sort_order') != 'desc':
            query = query.order_by(column.asc())
        else:
            query = query.order_by(column.desc())

        products = query.all()
        logger.debug(f"Retrieved {len(products)} products for owner {owner_id}")
        return [format_product(p) for p in products], None
    except Exception as e:
        return _failure('Error retrieving products', e)


def get_product(product_id, include_deleted=False):
    try:
        product = db.session.get(Product, product_id)
        if product is None or (product.deleted_at is not None and not include_deleted):
            return None, None
        return format_product(product), None
    except Exception as e:
        return _failure('Error retrieving product', e)


def create_product(fields):
    try:
        product = Product(**{k: v for k, v in fields.items() if k in PRODUCT_FIELDS})
        product.profit = compute_profit(product.status, product.sold_price, product.purchase_price)
        db.session.add(product)
        db.session.commit()
        logger.info(f"Product created: ID {product.id} for owner {product.owner_id}")
        return format_product(product), None
    except Exception as e:
        return _failure('Error creating product', e)


def update_product(product_id, fields):
    try:
        product = db.session.get(Product, product_id)
        if product is None:
            return None, {'message': 'Product not found', 'error': f'No product with ID {product_id}'}
        for key, value in fields.items():
            if key in PRODUCT_FIELDS and key != 'owner_id':
                setattr(product, key, value)
        product.profit = compute_profit(product.status, product.sold_price, product.purchase_price)
        product.updated_at = datetime.utcnow()
        db.session.commit()
        logger.info(f"Product updated: ID {product_id}")
        return format_product(product), None
    except Exception as e:
        return _failure('Error updating product', e)


def soft_delete_product(product_id):
    try:
        product = db.session.get(Product, product_id)
        if product is None:
            return None, {'message': 'Product not found', 'error': f'No product with ID {product_id}'}
        product.deleted_at = datetime.utcnow()
        db.session.commit()
        logger.info(f"Product soft-deleted: ID {product_id}")
        return format_product(product), None
    except Exception as e:
        return _failure('Error deleting product', e)


# Meetings

def list_meetings(owner_id, filters=None):
    filters = filters or {}
    try:
        query = Meeting.query.filter(Meeting.owner_id == owner_id, Meeting.deleted_at.is_(None))

        status = filters.get('status')
        if status and status != 'all':
            query = query.filter(Meeting.status == status)

        search = filters.get('search')
        if search:
            term = f"%{escape_like(search)}%"
            query = query.filter(or_(*[
                getattr(Meeting, col).ilike(term, escape='\\') for col in MEETING_SEARCH_COLUMNS
            ]))

        if filters.get('date_from'):
            query = query.filter(Meeting.scheduled_date >= filters['date_from'])
        if filters.get('date_to'):
            query = query.filter(Meeting.scheduled_date <= filters['date_to'])

        meetings = query.order_by(Meeting.scheduled_date.asc(), Meeting.scheduled_time.asc()).all()
        logger.debug(f"Retrieved {len(meetings)} meetings for owner {owner_id}")
        return [format_meeting(m) for m in meetings], None
    except Exception as e:
        return _failure('Error retrieving meetings', e)


def get_meeting(meeting_id, include_deleted=False):
    try:
        meeting = db.session.get(Meeting, meeting_id)
        if meeting is None or (meeting.deleted_at is not None and not include_deleted):
            return None, None
        return format_meeting(meeting), None
    except Exception as e:
        return _failure('Error retrieving meeting', e)


def create_meeting(fields):
    try:
        meeting = Meeting(**{k: v for k, v in fields.items() if k in MEETING_FIELDS})
        db.session.add(meeting)
        db.session.commit()
        logger.info(f"Meeting created: ID {meeting.id} for owner {meeting.owner_id}")
        return format_meeting(meeting), None
    except Exception as e:
        return _failure('Error creating meeting', e)


def update_meeting(meeting_id, fields):
    try:
        meeting = db.session.get(Meeting, meeting_id)
        if meeting is None:
            return None, {'message': 'Meeting not found', 'error': f'No meeting with ID {meeting_id}'}
        for key, value in fields.items():
            if key in MEETING_FIELDS and key != 'owner_id':
                setattr(meeting, key, value)
        meeting.updated_at = datetime.utcnow()
        db.session.commit()
        logger.info(f"Meeting updated: ID {meeting_id}")
        return format_meeting(meeting), None
    except Exception as e:
        return _failure('Error updating meeting', e)


def soft_delete_meeting(meeting_id):
    try:
        meeting = db.session.get(Meeting, meeting_id)
        if meeting is None:
            return None, {'message': 'Meeting not found', 'error': f'No meeting with ID {meeting_id}'}
        meeting.deleted_at = datetime.utcnow()
        db.session.commit()
        logger.info(f"Meeting soft-deleted: ID {meeting_id}")
        return format_meeting(meeting), None
    except Exception as e:
        return _failure('Error deleting meeting', e)


# Categories

def list_categories():
    try:
        categories = Category.query.filter_by(is_active=True).order_by(Category.name).all()
        return [format_category(c) for c in categories], None
    except Exception as e:
        return _failure('Error retrieving categories', e)


def seed_categories(names):
    if Category.query.count():
        return
    for name in names:
        db.session.add(Category(name=name))
    db.session.commit()
    logger.info(f"Seeded {len(names)} categories")


# Analytics events

def create_analytics_event(fields):
    try:
        event = AnalyticsEvent(
            owner_id=fields['owner_id'],
            event_type=fields['event_type'],
            event_data=fields.get('event_data') or {},
        )
        if fields.get('created_at'):
            event.created_at = fields['created_at']
        db.session.add(event)
        db.session.commit()
        return format_event(event), None
    except Exception as e:
        return _failure('Error creating analytics event', e)


def list_analytics_events(owner_id):
    try:
        events = AnalyticsEvent.query.filter_by(owner_id=owner_id).order_by(AnalyticsEvent.created_at.desc()).all()
        return [format_event(e) for e in events], None
    except Exception as e:
        return _failure('Error retrieving analytics events', e)


def delete_analytics_event(event_id):
    try:
        event = db.session.get(AnalyticsEvent, event_id)
        if event is None:
            return None, {'message': 'Analytics event not found', 'error': f'No analytics event with ID {event_id}'}
        db.session.delete(event)
        db.session.commit()
        return {'id': event_id}, None
    except Exception as e:
        return _failure('Error deleting analytics event', e)


# Aggregates

def get_dashboard_data(owner_id):
    try:
        live_products = Product.query.filter(Product.owner_id == owner_id, Product.deleted_at.is_(None))
        total_revenue = db.session.query(func.sum(Product.sold_price)).filter(
            Product.owner_id == owner_id,
            Product.deleted_at.is_(None),
            Product.status == ProductStatus.SOLD.value,
        ).scalar() or 0
        active_meetings = Meeting.query.filter(
            Meeting.owner_id == owner_id,
            Meeting.deleted_at.is_(None),
            Meeting.status == MeetingStatus.SCHEDULED.value,
        ).count()
        return {
            'total_products': live_products.count(),
            'sold_products': live_products.filter(Product.status == ProductStatus.SOLD.value).count(),
            'active_meetings': active_meetings,
            'total_revenue': float(total_revenue),
        }, None
    except Exception as e:
        return _failure('Error retrieving dashboard data', e)


def _trend_buckets(period, now):
    if period == 'weekly':
        first = now - timedelta(days=7 * TREND_BUCKETS)
        starts = [first + timedelta(days=7 * i) for i in range(TREND_BUCKETS + 1)]
        labels = [f"{s.strftime('%b')} {s.day}" for s in starts]
    elif period == 'yearly':
        first = datetime(now.year, 1, 1) - relativedelta(years=TREND_BUCKETS - 1)
        starts = [first + relativedelta(years=i) for i in range(TREND_BUCKETS + 1)]
        labels = [str(s.year) for s in starts]
    else:
        first = datetime(now.year, now.month, 1) - relativedelta(months=TREND_BUCKETS - 1)
        starts = [first + relativedelta(months=i) for i in range(TREND_BUCKETS + 1)]
        labels = [s.strftime('%b %Y') for s in starts]
    return [(labels[i], starts[i], starts[i + 1]) for i in range(TREND_BUCKETS)]


def _sold_moment(product):
    if product.sold_at is not None:
        return datetime.combine(product.sold_at, datetime.min.time())
    return product.updated_at or product.created_at


def get_analytics_summary(owner_id, period='monthly', now=None):
    now = now or datetime.utcnow()
    try:
        products = Product.query.filter(Product.owner_id == owner_id, Product.deleted_at.is_(None)).all()
        sold = [p for p in products if p.status == ProductStatus.SOLD.value]
        unsold = [p for p in products if p.status in (ProductStatus.LISTED.value, ProductStatus.PENDING.value)]

        total_revenue = sum(p.sold_price or 0 for p in sold)
        total_profit = sum(p.profit or 0 for p in sold)
        days_to_sell = [max((_sold_moment(p) - p.created_at).days, 0) for p in sold]

        trend = []
        for label, start, end in _trend_buckets(period, now):
            sold_in_bucket = [p for p in sold if start <= _sold_moment(p) < end]
            trend.append({
                'period': label,
                'revenue': round(sum(p.sold_price or 0 for p in sold_in_bucket), 2),
                'profit': round(sum(p.profit or 0 for p in sold_in_bucket), 2),
                'products': len([p for p in products if start <= p.created_at < end]),
            })

        return {
            'period': period,
            'total_products': len(products),
            'sold_products': len(sold),
            'total_revenue': round(total_revenue, 2),
            'total_profit': round(total_profit, 2),
            'avg_profit': round(total_profit / len(sold), 2) if sold else 0,
            'avg_days_to_sell': round(sum(days_to_sell) / len(days_to_sell), 1) if days_to_sell else 0,
            'current_inventory': len(unsold),
            'inventory_value': round(sum(p.listing_price or 0 for p in unsold), 2),
            'trend': trend,
        }, None
    except Exception as e:
        return _failure('Error retrieving analytics summary', e)
