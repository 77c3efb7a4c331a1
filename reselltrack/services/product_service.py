# Product business rules shared by the store and the routes
from datetime import date

from ..models import ProductStatus


def compute_profit(status, sold_price, purchase_price):
    """Profit exists only for sold products that carry both prices."""
    if status != ProductStatus.SOLD.value:
        return None
    if sold_price is None or purchase_price is None:
        return None
    return round(float(sold_price) - float(purchase_price), 2)


def mark_sold_fields(product, sold_price, sold_at=None, notes=None):
    """Build the update applied when a product is marked as sold."""
    fields = {
        'status': ProductStatus.SOLD.value,
        'sold_price': float(sold_price),
        'sold_at': sold_at or date.today(),
    }
    if notes is not None and notes.strip():
        fields['notes'] = notes
    fields['profit'] = compute_profit(fields['status'], fields['sold_price'], product.get('purchase_price'))
    return fields
