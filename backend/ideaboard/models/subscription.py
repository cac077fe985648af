"""
Subscription model.
One row per user; a user without an active row is on the free plan.
"""
from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Enum
import enum

from ideaboard.models.base import Base, generate_uuid, utcnow


class SubscriptionStatus(enum.Enum):
    """Lifecycle state of a subscription."""
    ACTIVE = "active"
    CANCELING = "canceling"
    SUSPENDED = "suspended"
    NONE = "none"


class Subscription(Base):
    """Plan subscription for a user, created or updated by the billing webhook."""

    __tablename__ = "subscriptions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(128), ForeignKey("profiles.id"), nullable=False, unique=True, index=True)

    plan_id = Column(String(50), nullable=False, default="free")
    status = Column(
        Enum(SubscriptionStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=SubscriptionStatus.NONE
    )

    # Validity window (outer bound; quota refresh is monthly)
    current_period_start = Column(DateTime, nullable=True)
    current_period_end = Column(DateTime, nullable=True)
    cancel_at_period_end = Column(Boolean, nullable=False, default=False)

    payment_method = Column(String(50), nullable=True)  # e.g., "razorpay"
    external_payment_reference = Column(String(255), nullable=True)  # Razorpay payment/subscription id

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == SubscriptionStatus.ACTIVE

    def __repr__(self):
        return f"<Subscription(user_id={self.user_id}, plan_id={self.plan_id}, status={self.status})>"
