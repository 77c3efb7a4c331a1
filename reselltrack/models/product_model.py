import enum
from datetime import datetime
from reselltrack import db


class ProductStatus(enum.Enum):
    LISTED = 'listed'
    PENDING = 'pending'
    SOLD = 'sold'
    EXPIRED = 'expired'


class ProductCondition(enum.Enum):
    NEW = 'new'
    LIKE_NEW = 'like_new'
    GOOD = 'good'
    FAIR = 'fair'
    POOR = 'poor'


class Product(db.Model):
    __tablename__ = 'product'
    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.String(64), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.String(500))
    category = db.Column(db.String(60))
    category_id = db.Column(db.Integer, db.ForeignKey('category.id'), nullable=True)
    listing_price = db.Column(db.Float)
    purchase_price = db.Column(db.Float)
    sold_price = db.Column(db.Float)
    sold_at = db.Column(db.Date)
    profit = db.Column(db.Float)
    platform = db.Column(db.String(60))
    status = db.Column(db.String(10), nullable=False, default=ProductStatus.LISTED.value)
    condition = db.Column(db.String(10), nullable=False, default=ProductCondition.GOOD.value)
    tags = db.Column(db.JSON, nullable=False, default=list)
    notes = db.Column(db.String(1000))
    seller_name = db.Column(db.String(120))
    buyer_name = db.Column(db.String(120))
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    deleted_at = db.Column(db.DateTime, nullable=True)
    meetings = db.relationship('Meeting', backref='product', lazy=True)

    def __repr__(self):
        return f'<Product {self.name} ({self.status})>'
