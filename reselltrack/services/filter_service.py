"""In-memory filtering and ordering for product and meeting list views.

Filters are AND-ed. ``'all'`` (or an empty value) disables a filter. Search is
a case-insensitive substring match that succeeds when any designated field
contains the term. Date bounds apply to meetings only and are inclusive.
"""
from datetime import datetime

from dateutil.relativedelta import relativedelta

from .metrics_service import meeting_scheduled_at, to_datetime

PRODUCT = 'product'
MEETING = 'meeting'

SEARCH_FIELDS = {
    PRODUCT: ('name', 'description', 'category'),
    MEETING: ('title', 'client_name', 'client_email', 'location'),
}
SORT_FIELDS = {
    PRODUCT: ('name', 'created_at', 'updated_at', 'listing_price', 'purchase_price',
              'sold_price', 'profit', 'status', 'category'),
    MEETING: ('scheduled_at', 'title', 'client_name', 'created_at', 'status', 'meeting_type'),
}
DEFAULT_SORT = {
    PRODUCT: ('created_at', 'desc'),
    MEETING: ('scheduled_at', 'asc'),
}
DATE_RANGE_PRESETS = ('all', 'today', 'week', 'month')


class FilterError(ValueError):
    pass


def _is_active(value):
    return value not in (None, '', 'all')


def matches_search(record, term, kind):
    term = term.lower()
    for field in SEARCH_FIELDS[kind]:
        value = record.get(field)
        if isinstance(value, str) and term in value.lower():
            return True
    return False


def resolve_date_range(preset, now=None):
    """Turn a meetings-page preset into inclusive ``(date_from, date_to)`` bounds."""
    if preset not in DATE_RANGE_PRESETS:
        raise FilterError(f"Unknown date range '{preset}'. Allowed: {', '.join(DATE_RANGE_PRESETS)}")
    now = now or datetime.utcnow()
    if preset == 'today':
        return now.date(), now.date()
    if preset == 'week':
        return (now - relativedelta(days=7)).date(), None
    if preset == 'month':
        return (now - relativedelta(months=1)).date(), None
    return None, None


def _in_date_range(meeting, date_from, date_to):
    moment = meeting_scheduled_at(meeting)
    if moment is None:
        return False
    day = moment.date()
    if date_from is not None and day < to_datetime(date_from).date():
        return False
    if date_to is not None and day > to_datetime(date_to).date():
        return False
    return True


def _sort_value(record, field, kind):
    if kind == MEETING and field == 'scheduled_at':
        return meeting_scheduled_at(record)
    value = record.get(field)
    if field.endswith('_at') and value is not None:
        return to_datetime(value)
    if isinstance(value, str):
        return value.lower()
    return value


def apply(records, filters=None, sort=None, kind=PRODUCT):
    filters = filters or {}
    field, direction = sort or DEFAULT_SORT[kind]
    if field not in SORT_FIELDS[kind]:
        raise FilterError(f"Cannot sort {kind}s by '{field}'. Allowed: {', '.join(SORT_FIELDS[kind])}")
    if direction not in ('asc', 'desc'):
        raise FilterError("Sort direction must be 'asc' or 'desc'")

    result = list(records)
    if _is_active(filters.get('status')):
        result = [r for r in result if r.get('status') == filters['status']]
    if _is_active(filters.get('category')):
        result = [r for r in result if r.get('category') == filters['category']]
    if _is_active(filters.get('search')):
        result = [r for r in result if matches_search(r, filters['search'], kind)]

    if kind == MEETING:
        date_from, date_to = filters.get('date_from'), filters.get('date_to')
        if _is_active(filters.get('date_range')):
            date_from, date_to = resolve_date_range(filters['date_range'], filters.get('now'))
        if date_from is not None or date_to is not None:
            result = [r for r in result if _in_date_range(r, date_from, date_to)]

    # None sorts after every value when ascending
    present = [r for r in result if _sort_value(r, field, kind) is not None]
    missing = [r for r in result if _sort_value(r, field, kind) is None]
    present.sort(key=lambda r: _sort_value(r, field, kind), reverse=direction == 'desc')
    return present + missing
