import enum
from datetime import datetime
from reselltrack import db


class SubscriptionTier(enum.Enum):
    FREE = 'free'
    TRIAL = 'trial'
    PRO = 'pro'
    DEMO = 'demo'


class User(db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password = db.Column(db.String(200), nullable=False)
    full_name = db.Column(db.String(120))
    business_name = db.Column(db.String(120))
    avatar_url = db.Column(db.String(255))
    phone = db.Column(db.String(20))
    currency = db.Column(db.String(3), nullable=False, default='USD')
    timezone = db.Column(db.String(64))
    subscription_tier = db.Column(db.String(10), nullable=False, default=SubscriptionTier.FREE.value)
    trial_ends_at = db.Column(db.DateTime)
    tutorial_completed = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
    subscriptions = db.relationship('Subscription', backref='user', lazy=True)

    @property
    def owner_id(self):
        return str(self.id)

    def __repr__(self):
        return f'<User {self.email} ({self.subscription_tier})>'
