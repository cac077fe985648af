"""
Webhook endpoints for external services.
Handles Razorpay payment webhooks for plan purchases.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Request, Header
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging

from ideaboard.database import get_db
from ideaboard.config import settings
from ideaboard.schemas.billing import WebhookAckResponse
from ideaboard.services.billing_service import BillingEventReconciler
from ideaboard.services.notification_service import NotificationService, get_notification_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/razorpay", response_model=WebhookAckResponse, response_model_exclude_none=True)
async def razorpay_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notification_service),
    razorpay_signature: Optional[str] = Header(None, alias="x-razorpay-signature"),
):
    """
    Razorpay webhook endpoint for processing payment events.

    Handles:
    - payment.authorized / payment.captured: records the payment, activates
      the plan and resets the month's usage
    - payment.failed: records the failed payment

    Security:
    - Validates the HMAC-SHA256 signature of the raw body
    - Idempotent by Razorpay payment id (duplicate deliveries are acknowledged
      without changing anything)

    Expected notes on the payment entity:
    {
        "user_id": "<firebase uid>",
        "plan_id": "basic" | "premium"
    }
    """
    if not settings.razorpay_webhook_secret:
        logger.error("Razorpay webhook secret not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook not configured"
        )

    # Signature is computed over the exact bytes received
    body = await request.body()

    ack = await BillingEventReconciler.handle_webhook(
        db,
        body,
        razorpay_signature,
        settings.razorpay_webhook_secret,
        notifier=notifier,
    )
    return WebhookAckResponse(**ack.to_dict())
