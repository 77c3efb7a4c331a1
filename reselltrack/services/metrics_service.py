"""Dashboard and analytics roll-ups computed from raw product and meeting rows.

All functions are pure. Rows are dicts as produced by the record store;
timestamps may be ``datetime`` objects or ISO-8601 strings. Every ratio is
defined as 0 for an empty collection.
"""
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP

from dateutil.parser import isoparse

from ..models import MeetingStatus, ProductStatus

SOLD = ProductStatus.SOLD.value
LISTED = ProductStatus.LISTED.value
SCHEDULED = MeetingStatus.SCHEDULED.value
SECONDS_PER_DAY = 24 * 60 * 60


def round_half_up(value, places=0):
    exponent = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)
    return int(rounded) if places == 0 else float(rounded)


def to_datetime(value):
    """Coerce a row timestamp to a naive UTC datetime (None passes through)."""
    if value is None or value == '':
        return None
    if isinstance(value, str):
        value = isoparse(value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    raise TypeError(f"Unsupported timestamp value: {value!r}")


def meeting_scheduled_at(meeting):
    if meeting.get('scheduled_at'):
        return to_datetime(meeting['scheduled_at'])
    scheduled = to_datetime(meeting.get('scheduled_date'))
    if scheduled is None:
        return None
    if meeting.get('scheduled_time'):
        hours, minutes = (int(part) for part in meeting['scheduled_time'].split(':')[:2])
        scheduled = scheduled.replace(hour=hours, minute=minutes)
    return scheduled


def _percentage(part, whole):
    if not whole:
        return 0.0
    return 100.0 * part / whole


def _sold(products):
    return [p for p in products if p.get('status') == SOLD]


def sold_count(products):
    return len(_sold(products))


def status_counts(products):
    counts = {status.value: 0 for status in ProductStatus}
    for product in products:
        if product.get('status') in counts:
            counts[product['status']] += 1
    return counts


def meeting_status_counts(meetings):
    counts = {status.value: 0 for status in MeetingStatus}
    for meeting in meetings:
        if meeting.get('status') in counts:
            counts[meeting['status']] += 1
    return counts


def sell_through_rate(products):
    """Whole-number percentage of products that reached sold status."""
    return round_half_up(_percentage(sold_count(products), len(products)))


def conversion_rate(products):
    """Same ratio as sell-through, kept to one decimal place."""
    return round_half_up(_percentage(sold_count(products), len(products)), 1)


def total_revenue(products):
    return round(sum(p.get('sold_price') or 0 for p in _sold(products)), 2)


def total_profit(products):
    return round(sum(p.get('profit') or 0 for p in _sold(products)), 2)


def inventory_value(products):
    return round(sum(p.get('listing_price') or 0 for p in products), 2)


def active_meetings(meetings):
    return len([m for m in meetings if m.get('status') == SCHEDULED])


def average_turnaround_days(products):
    durations = []
    for product in _sold(products):
        created = to_datetime(product.get('created_at'))
        updated = to_datetime(product.get('updated_at'))
        if created is None or updated is None:
            continue
        durations.append(max((updated - created).total_seconds() / SECONDS_PER_DAY, 0))
    if not durations:
        return 0
    return round_half_up(sum(durations) / len(durations))


def pipeline_health(products):
    listed = len([p for p in products if p.get('status') == LISTED])
    return round_half_up(_percentage(listed + sold_count(products), len(products)))


def weekly_activity(products, meetings, now=None, weeks=6):
    """Trailing ``weeks`` seven-day buckets ending at ``now``, oldest first."""
    now = to_datetime(now) or datetime.utcnow()
    first_start = now - timedelta(days=7 * weeks)

    buckets = []
    for index in range(weeks):
        start = first_start + timedelta(days=7 * index)
        end = start + timedelta(days=7)
        last = index == weeks - 1

        def in_range(moment, start=start, end=end, last=last):
            if moment is None:
                return False
            return start <= moment < end or (last and moment == end)

        buckets.append({
            'label': f"{start.strftime('%b')} {start.day}",
            'start': start.isoformat(),
            'end': end.isoformat(),
            'listed': len([p for p in products if in_range(to_datetime(p.get('created_at')))]),
            'sold': len([
                p for p in _sold(products)
                if in_range(to_datetime(p.get('updated_at') or p.get('created_at')))
            ]),
            'meetings': len([
                m for m in meetings
                if m.get('status') == SCHEDULED and in_range(meeting_scheduled_at(m))
            ]),
        })
    return buckets


def recent_products(products, limit=5):
    ordered = sorted(products, key=lambda p: to_datetime(p.get('created_at')) or datetime.min, reverse=True)
    return ordered[:limit]


def upcoming_meetings(meetings, limit=5):
    scheduled = [m for m in meetings if m.get('status') == SCHEDULED]
    scheduled.sort(key=lambda m: meeting_scheduled_at(m) or datetime.max)
    return scheduled[:limit]


def dashboard_metrics(products, meetings, now=None):
    return {
        'total_products': len(products),
        'sold_count': sold_count(products),
        'active_meetings': active_meetings(meetings),
        'total_revenue': total_revenue(products),
        'total_profit': total_profit(products),
        'conversion_rate': conversion_rate(products),
        'sell_through_rate': sell_through_rate(products),
        'pipeline_health': pipeline_health(products),
        'average_turnaround_days': average_turnaround_days(products),
        'status_counts': status_counts(products),
        'meeting_status_counts': meeting_status_counts(meetings),
        'weekly_activity': weekly_activity(products, meetings, now=now),
        'recent_products': recent_products(products),
        'upcoming_meetings': upcoming_meetings(meetings),
    }


def product_overview(products):
    return {
        'inventory_value': inventory_value(products),
        'sold_count': sold_count(products),
        'total_profit': total_profit(products),
        'conversion_rate': conversion_rate(products),
        'active_listings': len([p for p in products if p.get('status') == LISTED]),
    }
