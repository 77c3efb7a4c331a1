from .user_model import User, SubscriptionTier
from .subscription_model import Subscription
from .category_model import Category
from .product_model import Product, ProductStatus, ProductCondition
from .meeting_model import Meeting, MeetingType, MeetingStatus
from .analytics_model import AnalyticsEvent
