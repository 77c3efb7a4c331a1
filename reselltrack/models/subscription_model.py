from datetime import datetime
from reselltrack import db


class Subscription(db.Model):
    __tablename__ = 'subscription'
    VALID_TIERS = ('free', 'pro')
    VALID_STATUSES = ('active', 'cancelled', 'past_due', 'trialing')

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    provider_subscription_id = db.Column(db.String(255))
    provider_customer_id = db.Column(db.String(255))
    tier = db.Column(db.String(10), nullable=False, default='free')
    status = db.Column(db.String(20), nullable=False, default='active')
    current_period_start = db.Column(db.DateTime)
    current_period_end = db.Column(db.DateTime)
    cancel_at_period_end = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<Subscription {self.tier} ({self.status}) for User {self.user_id}>'
