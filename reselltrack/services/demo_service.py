"""Synthetic dataset backing demo mode.

``generate`` writes a fixed catalog for an owner, ``exists`` reports whether
that owner still has live rows, and ``cleanup`` tears the dataset down.
Every row is written or removed by its own store call; a failed insert is
logged and left out of the result, a failed deletion is collected and
reported once every deletion has been attempted.
"""
import logging
from datetime import datetime, timedelta

from . import record_store

logger = logging.getLogger(__name__)

DEMO_PRODUCTS = [
    {
        'name': 'Vintage Nike Air Jordan 1',
        'description': 'Classic 1985 release in excellent condition. Original box included.',
        'category': 'Clothing',
        'listing_price': 450.00,
        'purchase_price': 150.00,
        'platform': 'eBay',
        'status': 'sold',
        'condition': 'good',
        'tags': ['vintage', 'nike', 'jordan', 'sneakers', 'collectible'],
        'notes': 'Sold within 3 days of listing. Great profit margin!',
    },
    {
        'name': 'iPhone 13 Pro Max 256GB',
        'description': 'Like new condition, no scratches or dents. Comes with original accessories.',
        'category': 'Electronics',
        'listing_price': 850.00,
        'purchase_price': 650.00,
        'platform': 'Facebook Marketplace',
        'status': 'listed',
        'condition': 'like_new',
        'tags': ['iphone', 'apple', 'smartphone', '256gb'],
        'notes': 'High demand item, expecting quick sale',
    },
    {
        'name': "Vintage Levi's 501 Jeans",
        'description': "1990s vintage Levi's 501 in classic blue. Size 32x32.",
        'category': 'Clothing',
        'listing_price': 120.00,
        'purchase_price': 25.00,
        'platform': 'Depop',
        'status': 'sold',
        'condition': 'good',
        'tags': ['vintage', 'levis', '501', 'jeans', '90s'],
        'notes': 'Vintage clothing is trending well',
    },
    {
        'name': 'MacBook Air M1 256GB',
        'description': 'Perfect condition, barely used. Still under Apple warranty.',
        'category': 'Electronics',
        'listing_price': 750.00,
        'purchase_price': 550.00,
        'platform': 'eBay',
        'status': 'pending',
        'condition': 'like_new',
        'tags': ['macbook', 'apple', 'm1', 'laptop'],
        'notes': 'Multiple interested buyers',
    },
    {
        'name': 'Vintage Polaroid Camera',
        'description': 'Working vintage Polaroid camera from the 1980s. Includes film.',
        'category': 'Electronics',
        'listing_price': 180.00,
        'purchase_price': 45.00,
        'platform': 'Etsy',
        'status': 'listed',
        'condition': 'fair',
        'tags': ['vintage', 'polaroid', 'camera', 'film', '80s'],
        'notes': 'Retro photography is very popular',
    },
    {
        'name': 'Nintendo Switch Console',
        'description': 'Barely used Nintendo Switch with 3 games included. Original box.',
        'category': 'Electronics',
        'listing_price': 280.00,
        'purchase_price': 200.00,
        'platform': 'OfferUp',
        'status': 'sold',
        'condition': 'like_new',
        'tags': ['nintendo', 'switch', 'gaming', 'console'],
        'notes': 'Gaming consoles always sell well',
    },
    {
        'name': 'Vintage Band T-Shirt - Nirvana',
        'description': 'Authentic 1990s Nirvana tour t-shirt. Size L. Rare find!',
        'category': 'Clothing',
        'listing_price': 95.00,
        'purchase_price': 15.00,
        'platform': 'Depop',
        'status': 'listed',
        'condition': 'good',
        'tags': ['vintage', 'nirvana', 'tshirt', '90s', 'band'],
        'notes': 'Band merch is always in demand',
    },
    {
        'name': 'Dyson V8 Vacuum Cleaner',
        'description': 'Excellent condition, fully functional. All attachments included.',
        'category': 'Home & Garden',
        'listing_price': 220.00,
        'purchase_price': 120.00,
        'platform': 'Facebook Marketplace',
        'status': 'sold',
        'condition': 'good',
        'tags': ['dyson', 'vacuum', 'v8', 'cleaning'],
        'notes': 'Home appliances sell quickly locally',
    },
    {
        'name': 'Vintage Vinyl Records Collection',
        'description': 'Collection of 20 classic rock vinyl records from the 70s-80s.',
        'category': 'Collectibles',
        'listing_price': 350.00,
        'purchase_price': 100.00,
        'platform': 'eBay',
        'status': 'listed',
        'condition': 'good',
        'tags': ['vinyl', 'records', 'classic rock', '70s', '80s'],
        'notes': 'Vinyl collecting is making a comeback',
    },
    {
        'name': 'Apple Watch Series 7 45mm',
        'description': 'Perfect condition, no scratches. Includes sport band and charger.',
        'category': 'Electronics',
        'listing_price': 320.00,
        'purchase_price': 250.00,
        'platform': 'Mercari',
        'status': 'pending',
        'condition': 'like_new',
        'tags': ['apple', 'watch', 'series7', 'smartwatch'],
        'notes': 'Smartwatches are popular gift items',
    },
]

# 'product_index' points into DEMO_PRODUCTS; resolved to a real id after insertion
DEMO_MEETINGS = [
    {
        'title': 'iPhone 13 Pro Max Pickup',
        'client_name': 'Sarah Johnson',
        'client_email': 'sarah.j@email.com',
        'client_phone': '(555) 123-4567',
        'days_ahead': 1,
        'scheduled_time': '14:00',
        'duration': 30,
        'location': 'Starbucks on Main St',
        'meeting_type': 'pickup',
        'status': 'scheduled',
        'notes': 'Client confirmed, bringing cash. Meeting at public location for safety.',
        'product_index': 1,
    },
    {
        'title': 'MacBook Air Viewing',
        'client_name': 'Mike Chen',
        'client_email': 'mike.chen@email.com',
        'client_phone': '(555) 987-6543',
        'days_ahead': 2,
        'scheduled_time': '16:30',
        'duration': 45,
        'location': 'Local coffee shop',
        'meeting_type': 'viewing',
        'status': 'scheduled',
        'notes': 'Potential buyer wants to test the laptop before purchasing.',
        'product_index': 3,
    },
    {
        'title': 'Vintage Jeans Negotiation',
        'client_name': 'Emma Wilson',
        'client_email': 'emma.w@email.com',
        'days_ahead': 3,
        'scheduled_time': '18:00',
        'duration': 30,
        'location': 'My apartment',
        'meeting_type': 'negotiation',
        'status': 'scheduled',
        'notes': 'Client interested in multiple vintage items. Good opportunity for bundle deal.',
    },
    {
        'title': 'Nintendo Switch Drop-off',
        'client_name': 'Alex Rodriguez',
        'client_email': 'alex.r@email.com',
        'client_phone': '(555) 456-7890',
        'days_ahead': 4,
        'scheduled_time': '12:00',
        'duration': 20,
        'location': "Client's workplace",
        'meeting_type': 'drop_off',
        'status': 'scheduled',
        'notes': "Delivering to client's office during lunch break.",
    },
    {
        'title': 'Dyson Vacuum Pickup',
        'client_name': 'Lisa Thompson',
        'client_email': 'lisa.t@email.com',
        'client_phone': '(555) 234-5678',
        'days_ahead': 5,
        'scheduled_time': '10:00',
        'duration': 25,
        'location': 'Target parking lot',
        'meeting_type': 'pickup',
        'status': 'scheduled',
        'notes': 'Public meeting place for safety. Client confirmed availability.',
    },
]

DEMO_EVENTS = [
    {'event_type': 'product_view', 'event_data': {'product_id': 'demo-1', 'source': 'dashboard'}},
    {'event_type': 'product_created', 'event_data': {'product_id': 'demo-2', 'category': 'Electronics'}},
    {'event_type': 'meeting_scheduled', 'event_data': {'meeting_id': 'demo-1', 'type': 'pickup'}},
    {'event_type': 'sale_completed', 'event_data': {'product_id': 'demo-3', 'sale_price': 120.00, 'profit': 95.00}},
    {'event_type': 'product_view', 'event_data': {'product_id': 'demo-4', 'source': 'products_page'}},
]


class DemoDataError(Exception):
    pass


class DemoCleanupError(DemoDataError):
    def __init__(self, owner_id, failures):
        self.owner_id = owner_id
        self.failures = failures
        super().__init__(f"{len(failures)} demo rows could not be removed for {owner_id}")


def _collect(results, label):
    created = []
    for data, error in results:
        if error is not None:
            logger.error(f"Error creating demo {label}: {error['error']}")
            continue
        created.append(data)
    logger.info(f"Created demo {label}s: {len(created)}")
    return created


def generate(owner_id, now=None):
    """Insert the demo catalog for ``owner_id`` and return the rows that made it."""
    now = now or datetime.utcnow()
    today = now.date()
    logger.info(f"Generating demo data for owner {owner_id}")

    product_results = []
    for index, template in enumerate(DEMO_PRODUCTS):
        fields = dict(template, owner_id=owner_id, created_at=now - timedelta(days=index + 1))
        if fields['status'] == 'sold':
            fields['sold_price'] = fields['listing_price']
            fields['sold_at'] = today
        product_results.append(record_store.create_product(fields))

    # Positions are kept so meetings can point at the product created at that slot
    products_by_position = [data for data, _ in product_results]
    products = _collect(product_results, 'product')

    meeting_results = []
    for index, template in enumerate(DEMO_MEETINGS):
        fields = {k: v for k, v in template.items() if k not in ('days_ahead', 'product_index')}
        fields.update(
            owner_id=owner_id,
            scheduled_date=today + timedelta(days=template['days_ahead']),
            created_at=now - timedelta(hours=(index + 1) * 12),
        )
        product_index = template.get('product_index')
        if product_index is not None and products_by_position[product_index] is not None:
            fields['product_id'] = products_by_position[product_index]['id']
        meeting_results.append(record_store.create_meeting(fields))
    meetings = _collect(meeting_results, 'meeting')

    event_results = []
    for index, template in enumerate(DEMO_EVENTS):
        fields = dict(template, owner_id=owner_id, created_at=now - timedelta(hours=(index + 1) * 2))
        event_results.append(record_store.create_analytics_event(fields))
    events = _collect(event_results, 'analytics event')

    return {'products': products, 'meetings': meetings, 'analytics': events}


def exists(owner_id):
    products, error = record_store.list_products(owner_id)
    if error is not None:
        logger.error(f"Error checking demo data: {error['error']}")
        return False
    meetings, error = record_store.list_meetings(owner_id)
    if error is not None:
        logger.error(f"Error checking demo data: {error['error']}")
        return False
    return bool(products) or bool(meetings)


def cleanup(owner_id):
    """Remove every live demo row for ``owner_id``.

    All deletions are attempted; if any fail, :class:`DemoCleanupError` is
    raised afterwards with the failures.
    """
    products, error = record_store.list_products(owner_id)
    if error is None:
        meetings, error = record_store.list_meetings(owner_id)
    if error is None:
        events, error = record_store.list_analytics_events(owner_id)
    if error is not None:
        raise DemoDataError(f"Could not read demo data for {owner_id}: {error['error']}")

    deletions = (
        [('product', p['id'], record_store.soft_delete_product) for p in products]
        + [('meeting', m['id'], record_store.soft_delete_meeting) for m in meetings]
        + [('analytics event', e['id'], record_store.delete_analytics_event) for e in events]
    )
    failures = []
    for label, row_id, delete in deletions:
        _, error = delete(row_id)
        if error is not None:
            logger.error(f"Error deleting demo {label} {row_id}: {error['error']}")
            failures.append({'kind': label, 'id': row_id, 'error': error['error']})

    if failures:
        raise DemoCleanupError(owner_id, failures)

    logger.info(f"Demo data cleaned up for owner {owner_id}")
    return {
        'products': len(products),
        'meetings': len(meetings),
        'analytics': len(events),
    }


def restriction_message(action):
    return f"Demo mode: {action} is disabled. Upgrade to manage your real data."
