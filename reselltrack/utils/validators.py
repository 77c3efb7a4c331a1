# Request payload validation for products, meetings and sales.
# Each validator returns (cleaned, errors); errors maps field -> reason.
import math
import re
from dateutil.parser import isoparse
from ..models import MeetingStatus, MeetingType, ProductCondition, ProductStatus

EMAIL_REGEX = re.compile(r'^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$')
PASSWORD_REGEX = re.compile(r'^.{6,}$')
TIME_REGEX = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')

PRODUCT_TEXT_LIMITS = {
    'description': 500,
    'category': 60,
    'platform': 60,
    'notes': 1000,
    'seller_name': 120,
    'buyer_name': 120,
}
MEETING_TEXT_LIMITS = {
    'client_phone': 20,
    'location': 200,
    'notes': 1000,
}


def _blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def _text(data, field, limit, errors, cleaned):
    value = data[field]
    if value is None:
        cleaned[field] = None
        return
    if not isinstance(value, str):
        errors[field] = 'Must be a string'
    elif len(value) > limit:
        errors[field] = f'Must be at most {limit} characters'
    else:
        cleaned[field] = value


def _required_text(data, field, limit, errors, cleaned, partial):
    if field not in data:
        if not partial:
            errors[field] = 'This field is required'
        return
    if _blank(data[field]):
        errors[field] = 'This field is required'
        return
    _text(data, field, limit, errors, cleaned)


def _price(data, field, errors, cleaned):
    value = data[field]
    if _blank(value):
        cleaned[field] = None
        return
    try:
        amount = float(value)
    except (TypeError, ValueError):
        errors[field] = 'Must be a number'
        return
    if not math.isfinite(amount):
        errors[field] = 'Must be a number'
        return
    if amount <= 0:
        errors[field] = 'Must be positive'
        return
    cleaned[field] = round(amount, 2)


def _enum(data, field, enum_cls, errors, cleaned):
    allowed = [member.value for member in enum_cls]
    if data[field] not in allowed:
        errors[field] = f"Must be one of: {', '.join(allowed)}"
    else:
        cleaned[field] = data[field]


def parse_date(value):
    if hasattr(value, 'isoformat') and not isinstance(value, str):
        return value
    return isoparse(value).date()


def _date(data, field, errors, cleaned, required=False):
    value = data.get(field)
    if _blank(value):
        if required:
            errors[field] = 'This field is required'
        else:
            cleaned[field] = None
        return
    try:
        cleaned[field] = parse_date(value)
    except (TypeError, ValueError):
        errors[field] = 'Must be a date in YYYY-MM-DD format'


def parse_tags(value):
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(',')
    return [str(tag).strip() for tag in value if str(tag).strip()]


def validate_product(data, partial=False):
    data = data or {}
    cleaned, errors = {}, {}

    _required_text(data, 'name', 120, errors, cleaned, partial)
    for field, limit in PRODUCT_TEXT_LIMITS.items():
        if field in data:
            _text(data, field, limit, errors, cleaned)
    for field in ('listing_price', 'purchase_price', 'sold_price'):
        if field in data:
            _price(data, field, errors, cleaned)

    if 'status' in data:
        _enum(data, 'status', ProductStatus, errors, cleaned)
    elif not partial:
        cleaned['status'] = ProductStatus.LISTED.value
    if 'condition' in data:
        _enum(data, 'condition', ProductCondition, errors, cleaned)
    elif not partial:
        cleaned['condition'] = ProductCondition.GOOD.value

    if 'tags' in data:
        if data['tags'] is not None and not isinstance(data['tags'], (str, list)):
            errors['tags'] = 'Must be a comma-separated string or a list'
        else:
            cleaned['tags'] = parse_tags(data['tags'])
    if 'sold_at' in data:
        _date(data, 'sold_at', errors, cleaned)
    if 'category_id' in data and data['category_id'] is not None:
        if not isinstance(data['category_id'], int):
            errors['category_id'] = 'Must be an integer'
        else:
            cleaned['category_id'] = data['category_id']

    return cleaned, errors


def validate_meeting(data, partial=False):
    data = data or {}
    cleaned, errors = {}, {}

    _required_text(data, 'title', 100, errors, cleaned, partial)
    _required_text(data, 'client_name', 100, errors, cleaned, partial)
    for field, limit in MEETING_TEXT_LIMITS.items():
        if field in data:
            _text(data, field, limit, errors, cleaned)

    if 'client_email' in data:
        email = data['client_email']
        if _blank(email):
            cleaned['client_email'] = None
        elif not isinstance(email, str) or not EMAIL_REGEX.match(email):
            errors['client_email'] = 'Invalid email address'
        else:
            cleaned['client_email'] = email

    if 'scheduled_date' in data or not partial:
        _date(data, 'scheduled_date', errors, cleaned, required=True)
    if 'scheduled_time' in data or not partial:
        value = data.get('scheduled_time')
        if _blank(value):
            errors['scheduled_time'] = 'This field is required'
        elif not isinstance(value, str) or not TIME_REGEX.match(value):
            errors['scheduled_time'] = 'Must be a time in HH:MM format'
        else:
            cleaned['scheduled_time'] = value

    if 'duration' in data and data['duration'] is not None:
        duration = data['duration']
        if isinstance(duration, bool) or not isinstance(duration, int):
            errors['duration'] = 'Must be a whole number of minutes'
        elif duration <= 0:
            errors['duration'] = 'Must be positive'
        else:
            cleaned['duration'] = duration

    if 'meeting_type' in data:
        _enum(data, 'meeting_type', MeetingType, errors, cleaned)
    elif not partial:
        cleaned['meeting_type'] = MeetingType.PICKUP.value
    if 'status' in data:
        _enum(data, 'status', MeetingStatus, errors, cleaned)
    elif not partial:
        cleaned['status'] = MeetingStatus.SCHEDULED.value

    if 'product_id' in data:
        product_id = data['product_id']
        if _blank(product_id):
            cleaned['product_id'] = None
        elif not str(product_id).isdigit():
            errors['product_id'] = 'Must be a product ID'
        else:
            cleaned['product_id'] = int(product_id)

    return cleaned, errors


def validate_sale(data):
    data = data or {}
    cleaned, errors = {}, {}
    if _blank(data.get('sold_price')):
        errors['sold_price'] = 'This field is required'
    else:
        _price(data, 'sold_price', errors, cleaned)
    _date(data, 'sold_at', errors, cleaned)
    if not _blank(data.get('notes')):
        _text(data, 'notes', 1000, errors, cleaned)
    return cleaned, errors
