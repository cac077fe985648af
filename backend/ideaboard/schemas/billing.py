"""
Pydantic schemas for plans, subscriptions, payments and webhooks.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

from ideaboard.models.payment import PaymentStatus
from ideaboard.models.subscription import SubscriptionStatus


class PlanResponse(BaseModel):
    """A plan as shown on the pricing page."""
    id: str
    name: str
    monthly_quota: int
    price: int
    price_formatted: str
    currency: str
    description: Optional[str] = None


class PlansListResponse(BaseModel):
    plans: List[PlanResponse]


class CreateSubscriptionRequest(BaseModel):
    """Request schema for starting a plan subscription."""
    plan_id: str = Field(..., description="Paid plan to subscribe to (basic or premium)")


class CreateSubscriptionResponse(BaseModel):
    """Data for opening Razorpay checkout on the client."""
    subscription_id: str
    razorpay_plan_id: str
    key_id: str
    plan_id: str


class SubscriptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    plan_id: str
    status: SubscriptionStatus
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool


class CancelSubscriptionResponse(BaseModel):
    success: bool
    message: str
    subscription: SubscriptionResponse


class PaymentHistoryItem(BaseModel):
    """Schema for a single payment in history."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    external_payment_id: str
    amount: int
    currency: str
    status: PaymentStatus
    plan_id: Optional[str] = None
    payment_method: Optional[str] = None
    created_at: datetime


class PaymentHistoryResponse(BaseModel):
    """Response schema for payment history."""
    payments: List[PaymentHistoryItem]
    total_paid: int


class WebhookAckResponse(BaseModel):
    """Acknowledgement returned to the payment provider."""
    status: str
    event_type: Optional[str] = None
    reason: Optional[str] = None
    user_id: Optional[str] = None
    payment_id: Optional[str] = None
