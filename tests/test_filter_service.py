from datetime import date, datetime

import pytest

from reselltrack.services import filter_service
from reselltrack.services.filter_service import MEETING, PRODUCT, FilterError


@pytest.fixture
def products():
    return [
        {'id': 1, 'name': 'Vintage Lamp', 'description': 'Brass', 'category': 'Home & Garden',
         'status': 'listed', 'listing_price': 40, 'created_at': '2024-01-01T10:00:00'},
        {'id': 2, 'name': 'iPhone 12', 'description': 'Unlocked', 'category': 'Electronics',
         'status': 'sold', 'listing_price': 300, 'created_at': '2024-01-03T10:00:00'},
        {'id': 3, 'name': 'camera bag', 'description': 'Vintage leather', 'category': 'Electronics',
         'status': 'listed', 'listing_price': None, 'created_at': '2024-01-02T10:00:00'},
        {'id': 4, 'name': 'Denim Jacket', 'description': None, 'category': 'Vintage Clothing',
         'status': 'pending', 'listing_price': 55, 'created_at': '2024-01-04T10:00:00'},
    ]


@pytest.fixture
def meetings():
    return [
        {'id': 1, 'title': 'Lamp pickup', 'client_name': 'Ana', 'client_email': 'ana@example.com',
         'location': 'Cafe', 'status': 'scheduled', 'scheduled_date': '2024-02-10', 'scheduled_time': '15:00'},
        {'id': 2, 'title': 'Phone viewing', 'client_name': 'Ben', 'client_email': None,
         'location': 'Library', 'status': 'completed', 'scheduled_date': '2024-02-01', 'scheduled_time': '09:00'},
        {'id': 3, 'title': 'Jacket drop-off', 'client_name': 'Cleo', 'client_email': 'cleo@example.com',
         'location': None, 'status': 'scheduled', 'scheduled_date': '2024-02-10', 'scheduled_time': '08:00'},
    ]


def ids(records):
    return [r['id'] for r in records]


def test_default_product_order_is_newest_first(products):
    assert ids(filter_service.apply(products)) == [4, 2, 3, 1]


def test_all_disables_filters(products):
    result = filter_service.apply(products, {'status': 'all', 'category': 'all', 'search': ''})
    assert len(result) == 4


def test_search_is_case_insensitive_across_fields(products):
    result = filter_service.apply(products, {'search': 'VINTAGE'})
    # name, description and category each match once
    assert sorted(ids(result)) == [1, 3, 4]


def test_filters_compose_in_any_order(products):
    status_then_search = filter_service.apply(
        filter_service.apply(products, {'status': 'listed'}), {'search': 'vintage'})
    search_then_status = filter_service.apply(
        filter_service.apply(products, {'search': 'vintage'}), {'status': 'listed'})
    combined = filter_service.apply(products, {'status': 'listed', 'search': 'vintage'})
    assert ids(status_then_search) == ids(search_then_status) == ids(combined) == [3, 1]


def test_category_filter_is_exact(products):
    assert ids(filter_service.apply(products, {'category': 'Electronics'})) == [2, 3]


def test_string_sort_ignores_case(products):
    result = filter_service.apply(products, sort=('name', 'asc'))
    assert ids(result) == [3, 4, 2, 1]


def test_missing_values_sort_last(products):
    assert ids(filter_service.apply(products, sort=('listing_price', 'asc'))) == [1, 4, 2, 3]
    assert ids(filter_service.apply(products, sort=('listing_price', 'desc'))) == [2, 4, 1, 3]


def test_unknown_sort_field_is_rejected(products):
    with pytest.raises(FilterError):
        filter_service.apply(products, sort=('password', 'asc'))
    with pytest.raises(FilterError):
        filter_service.apply(products, sort=('name', 'sideways'))


def test_date_bounds_do_not_apply_to_products(products):
    result = filter_service.apply(products, {'date_from': date(2030, 1, 1)}, kind=PRODUCT)
    assert len(result) == 4


def test_unfiltered_meetings_come_back_date_ascending(meetings):
    result = filter_service.apply(meetings, {'status': 'all', 'search': '', 'date_range': 'all'}, kind=MEETING)
    assert ids(result) == [2, 3, 1]


def test_meeting_search_covers_email_and_location(meetings):
    assert ids(filter_service.apply(meetings, {'search': 'cleo@'}, kind=MEETING)) == [3]
    assert ids(filter_service.apply(meetings, {'search': 'library'}, kind=MEETING)) == [2]


def test_meeting_date_bounds_are_inclusive(meetings):
    result = filter_service.apply(meetings, {'date_from': '2024-02-10', 'date_to': date(2024, 2, 10)}, kind=MEETING)
    assert ids(result) == [3, 1]
    result = filter_service.apply(meetings, {'date_to': '2024-02-01'}, kind=MEETING)
    assert ids(result) == [2]


def test_meeting_date_range_preset(meetings):
    now = datetime(2024, 2, 12, 9, 0)
    result = filter_service.apply(meetings, {'date_range': 'week', 'now': now}, kind=MEETING)
    assert ids(result) == [3, 1]
    result = filter_service.apply(meetings, {'date_range': 'today', 'now': datetime(2024, 2, 1, 20, 0)}, kind=MEETING)
    assert ids(result) == [2]


def test_resolve_date_range():
    now = datetime(2024, 3, 31, 12, 0)
    assert filter_service.resolve_date_range('all', now) == (None, None)
    assert filter_service.resolve_date_range('today', now) == (date(2024, 3, 31), date(2024, 3, 31))
    assert filter_service.resolve_date_range('week', now) == (date(2024, 3, 24), None)
    assert filter_service.resolve_date_range('month', now) == (date(2024, 2, 29), None)
    with pytest.raises(FilterError):
        filter_service.resolve_date_range('fortnight', now)


def test_meeting_sort_descending(meetings):
    result = filter_service.apply(meetings, sort=('scheduled_at', 'desc'), kind=MEETING)
    assert ids(result) == [1, 3, 2]
