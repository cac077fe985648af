"""
PaymentRecord model for tracking Razorpay payments.
external_payment_id is unique and serves as the webhook idempotency key.
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Enum, Index
import enum

from ideaboard.models.base import Base, generate_uuid, utcnow


class PaymentStatus(enum.Enum):
    """Status of a payment transaction."""
    CAPTURED = "captured"
    FAILED = "failed"
    PENDING = "pending"


class PaymentRecord(Base):
    """
    Payment record for plan purchases via Razorpay.

    Used for:
    - Idempotency: a duplicate webhook delivery cannot insert a second row
    - Audit trail and payment history
    """

    __tablename__ = "payment_records"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(128), ForeignKey("profiles.id"), nullable=False)

    # Razorpay identifiers
    external_payment_id = Column(String(255), nullable=False, unique=True)
    external_order_id = Column(String(255), nullable=True)

    # Payment details
    amount = Column(Integer, nullable=False, default=0)  # Minor units (paise)
    currency = Column(String(3), nullable=False, default="INR")
    plan_id = Column(String(50), nullable=True)
    payment_method = Column(String(50), nullable=True)  # card, upi, netbanking...

    status = Column(
        Enum(PaymentStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=PaymentStatus.PENDING
    )

    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("idx_payment_record_user_id", "user_id"),
    )

    def __repr__(self):
        return (
            f"<PaymentRecord(id={self.id}, user_id={self.user_id}, "
            f"external_payment_id={self.external_payment_id}, status={self.status})>"
        )
