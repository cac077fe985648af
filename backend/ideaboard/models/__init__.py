"""
Database models package.
"""
from ideaboard.models.base import Base
from ideaboard.models.profile import UserProfile
from ideaboard.models.subscription import Subscription, SubscriptionStatus
from ideaboard.models.payment import PaymentRecord, PaymentStatus

__all__ = [
    "Base",
    "UserProfile",
    "Subscription",
    "SubscriptionStatus",
    "PaymentRecord",
    "PaymentStatus",
]
