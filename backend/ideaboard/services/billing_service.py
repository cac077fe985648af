"""
Billing service for Razorpay.
Verifies and reconciles payment webhooks, and handles subscription
checkout, cancellation and payment history.
"""
import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Union

import razorpay
from razorpay.errors import BadRequestError, GatewayError, ServerError, SignatureVerificationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ideaboard.config import settings
from ideaboard.exceptions import (
    InvalidSignature,
    PaymentProviderError,
    SubscriptionNotFound,
)
from ideaboard.models.base import utcnow
from ideaboard.models.payment import PaymentRecord, PaymentStatus
from ideaboard.models.profile import UserProfile
from ideaboard.models.subscription import Subscription, SubscriptionStatus
from ideaboard.services.notification_service import NotificationKind, NotificationService
from ideaboard.services.plan_registry import is_paid_plan
from ideaboard.utils.logging import log_webhook_processed
from ideaboard.utils.metrics import webhook_events_total

logger = logging.getLogger(__name__)

SUCCEEDED_EVENTS = ("payment.authorized", "payment.captured")
FAILED_EVENTS = ("payment.failed",)

# Razorpay subscriptions are created for a year of monthly cycles
SUBSCRIPTION_TOTAL_COUNT = 12


# ============= Webhook events =============

@dataclass(frozen=True)
class PaymentSucceeded:
    event_type: str
    payment_id: str
    user_id: Optional[str]
    plan_id: Optional[str]
    order_id: Optional[str] = None
    amount: int = 0
    currency: str = "INR"
    method: Optional[str] = None


@dataclass(frozen=True)
class PaymentFailed:
    event_type: str
    payment_id: str
    user_id: Optional[str]
    plan_id: Optional[str]
    order_id: Optional[str] = None
    amount: int = 0
    currency: str = "INR"
    method: Optional[str] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class UnknownEvent:
    event_type: str


BillingEvent = Union[PaymentSucceeded, PaymentFailed, UnknownEvent]


@dataclass
class WebhookAck:
    """Acknowledgement returned to Razorpay. Every ack is an HTTP 200."""
    status: str  # processed, already_processed, ignored
    event_type: Optional[str] = None
    reason: Optional[str] = None
    user_id: Optional[str] = None
    payment_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in self.__dict__.items() if v is not None}


def verify_signature(raw_body: bytes, signature: Optional[str], secret: str) -> None:
    """
    Verify a Razorpay webhook signature.

    Razorpay signs the raw request body with the webhook secret and
    sends the digest in X-Razorpay-Signature.

    Raises:
        InvalidSignature: If the signature is missing or does not match
    """
    if not signature:
        raise InvalidSignature("Missing webhook signature")

    try:
        body = raw_body.decode("utf-8")
    except UnicodeDecodeError:
        raise InvalidSignature("Webhook body is not valid UTF-8")

    try:
        razorpay.Utility().verify_webhook_signature(body, signature.strip(), secret)
    except SignatureVerificationError as e:
        logger.warning(f"Invalid webhook signature: {e}")
        raise InvalidSignature()


def parse_event(event: Dict[str, Any]) -> BillingEvent:
    """Map a decoded webhook payload onto one of the billing event variants."""
    event_type = event.get("event") or "unknown"

    if event_type not in SUCCEEDED_EVENTS + FAILED_EVENTS:
        return UnknownEvent(event_type=event_type)

    payment = ((event.get("payload") or {}).get("payment") or {}).get("entity") or {}
    notes = payment.get("notes") or {}
    if not isinstance(notes, dict):
        # Razorpay sends an empty list when a payment has no notes
        notes = {}

    try:
        amount = int(payment.get("amount") or 0)
    except (TypeError, ValueError):
        amount = 0

    common = dict(
        event_type=event_type,
        payment_id=payment.get("id") or "",
        user_id=notes.get("user_id") or None,
        plan_id=notes.get("plan_id") or None,
        order_id=payment.get("order_id"),
        amount=amount,
        currency=payment.get("currency") or "INR",
        method=payment.get("method"),
    )

    if event_type in SUCCEEDED_EVENTS:
        return PaymentSucceeded(**common)
    return PaymentFailed(reason=payment.get("error_description"), **common)


class BillingEventReconciler:
    """Applies verified Razorpay events to payments, subscriptions and usage."""

    @staticmethod
    async def handle_webhook(
        db: AsyncSession,
        raw_body: bytes,
        signature: Optional[str],
        secret: str,
        notifier: Optional[NotificationService] = None,
        now: Optional[datetime] = None,
    ) -> WebhookAck:
        """
        Verify, decode and apply one webhook delivery.

        Args:
            db: Database session
            raw_body: Request body exactly as received
            signature: X-Razorpay-Signature header value
            secret: Webhook signing secret
            notifier: Notification trigger for payment emails/push
            now: Current time (naive UTC), defaults to utcnow()

        Returns:
            WebhookAck (processed, already_processed or ignored)

        Raises:
            InvalidSignature: Signature missing or invalid; nothing is changed
            SQLAlchemyError: Persistence failure other than a duplicate delivery
        """
        verify_signature(raw_body, signature, secret)

        try:
            payload = json.loads(raw_body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Webhook body is not valid JSON: {e}")
            return BillingEventReconciler._ack(WebhookAck(status="ignored", reason="invalid_json"))

        if not isinstance(payload, dict):
            return BillingEventReconciler._ack(WebhookAck(status="ignored", reason="invalid_payload"))

        event = parse_event(payload)
        now = now or utcnow()
        notifier = notifier or NotificationService()

        if isinstance(event, PaymentSucceeded):
            ack = await BillingEventReconciler._apply_payment_succeeded(db, event, now)
            if ack.status == "processed":
                await notifier.notify(
                    NotificationKind.PAYMENT_SUCCEEDED, event.user_id, {"plan_id": event.plan_id}
                )
        elif isinstance(event, PaymentFailed):
            ack = await BillingEventReconciler._apply_payment_failed(db, event)
            if ack.status == "processed":
                await notifier.notify(
                    NotificationKind.PAYMENT_FAILED, event.user_id, {"plan_id": event.plan_id}
                )
        else:
            logger.info(f"Unhandled webhook event type: {event.event_type}")
            ack = WebhookAck(status="ignored", event_type=event.event_type, reason="unhandled_event")

        return BillingEventReconciler._ack(ack)

    @staticmethod
    def _ack(ack: WebhookAck) -> WebhookAck:
        event_type = ack.event_type or "unknown"
        webhook_events_total.labels(event_type=event_type, outcome=ack.status).inc()
        log_webhook_processed(
            logger,
            event_type=event_type,
            outcome=ack.status,
            user_id=ack.user_id,
            payment_id=ack.payment_id,
            reason=ack.reason,
        )
        return ack

    @staticmethod
    async def _precheck(
        db: AsyncSession,
        event: Union[PaymentSucceeded, PaymentFailed],
    ) -> Optional[WebhookAck]:
        """Common validation; returns an ack when the event must not be applied."""
        ack = WebhookAck(
            status="ignored",
            event_type=event.event_type,
            user_id=event.user_id,
            payment_id=event.payment_id or None,
        )

        if not event.payment_id:
            logger.warning(f"{event.event_type} event without payment id")
            ack.reason = "missing_payment_id"
            return ack

        if not event.user_id or (isinstance(event, PaymentSucceeded) and not event.plan_id):
            logger.warning(
                f"Missing metadata in payment {event.payment_id}: "
                f"user_id={event.user_id}, plan_id={event.plan_id}"
            )
            ack.reason = "missing_metadata"
            return ack

        profile = await db.get(UserProfile, event.user_id)
        if profile is None:
            logger.warning(f"User {event.user_id} not found for payment {event.payment_id}")
            ack.reason = "user_not_found"
            return ack

        result = await db.execute(
            select(PaymentRecord.id).where(PaymentRecord.external_payment_id == event.payment_id)
        )
        if result.scalar_one_or_none() is not None:
            logger.info(f"Payment {event.payment_id} already processed")
            ack.status = "already_processed"
            return ack

        return None

    @staticmethod
    async def _commit_once(db: AsyncSession, event: Union[PaymentSucceeded, PaymentFailed]) -> bool:
        """
        Commit; False if a concurrent delivery already inserted this payment.

        Raises:
            IntegrityError: Any other constraint violation, so Razorpay retries the delivery
        """
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            result = await db.execute(
                select(PaymentRecord.id).where(PaymentRecord.external_payment_id == event.payment_id)
            )
            if result.scalar_one_or_none() is None:
                logger.error(f"Constraint violation applying payment {event.payment_id}, not a duplicate delivery")
                raise
            logger.info(f"Payment {event.payment_id} inserted concurrently, treating as duplicate")
            return False
        return True

    @staticmethod
    async def _apply_payment_succeeded(
        db: AsyncSession,
        event: PaymentSucceeded,
        now: datetime,
    ) -> WebhookAck:
        skip = await BillingEventReconciler._precheck(db, event)
        if skip is not None:
            return skip

        db.add(PaymentRecord(
            user_id=event.user_id,
            external_payment_id=event.payment_id,
            external_order_id=event.order_id,
            amount=event.amount,
            currency=event.currency,
            plan_id=event.plan_id,
            payment_method=event.method,
            status=PaymentStatus.CAPTURED,
        ))

        profile = await db.get(UserProfile, event.user_id)
        profile.generation_count = 0
        profile.last_generation_reset = now

        subscription = await BillingService.get_subscription(db, event.user_id)
        if subscription is None:
            subscription = Subscription(user_id=event.user_id)
            db.add(subscription)

        subscription.plan_id = event.plan_id
        subscription.status = SubscriptionStatus.ACTIVE
        subscription.current_period_start = now
        subscription.current_period_end = now + timedelta(days=settings.subscription_validity_days)
        subscription.cancel_at_period_end = False
        subscription.payment_method = "razorpay"
        subscription.external_payment_reference = event.payment_id
        subscription.updated_at = now

        ack = WebhookAck(
            status="processed",
            event_type=event.event_type,
            user_id=event.user_id,
            payment_id=event.payment_id,
        )
        if not await BillingEventReconciler._commit_once(db, event):
            ack.status = "already_processed"
            return ack

        logger.info(
            f"Activated {event.plan_id} plan for user {event.user_id} "
            f"(payment {event.payment_id}, amount {event.amount} {event.currency})"
        )
        return ack

    @staticmethod
    async def _apply_payment_failed(db: AsyncSession, event: PaymentFailed) -> WebhookAck:
        skip = await BillingEventReconciler._precheck(db, event)
        if skip is not None:
            return skip

        db.add(PaymentRecord(
            user_id=event.user_id,
            external_payment_id=event.payment_id,
            external_order_id=event.order_id,
            amount=event.amount,
            currency=event.currency,
            plan_id=event.plan_id,
            payment_method=event.method,
            status=PaymentStatus.FAILED,
        ))

        ack = WebhookAck(
            status="processed",
            event_type=event.event_type,
            user_id=event.user_id,
            payment_id=event.payment_id,
        )
        if not await BillingEventReconciler._commit_once(db, event):
            ack.status = "already_processed"
            return ack

        logger.warning(f"Payment {event.payment_id} failed for user {event.user_id}: {event.reason}")
        return ack


# ============= Checkout & self-service =============

@dataclass
class CheckoutSubscription:
    """Data the client needs to open Razorpay checkout."""
    subscription_id: str
    razorpay_plan_id: str
    key_id: str
    plan_id: str
    notes: Dict[str, str] = field(default_factory=dict)


class BillingService:
    """Subscription checkout, cancellation and payment history."""

    @staticmethod
    def razorpay_plan_id(plan_id: str) -> Optional[str]:
        """Razorpay plan id configured for one of our paid plans."""
        return {
            "basic": settings.razorpay_plan_basic,
            "premium": settings.razorpay_plan_premium,
        }.get(plan_id)

    @staticmethod
    async def create_subscription(
        user_id: str,
        plan_id: str,
        client: Optional[razorpay.Client] = None,
    ) -> CheckoutSubscription:
        """
        Create a Razorpay subscription for a paid plan.

        Args:
            user_id: Authenticated user ID (stored in notes for the webhook)
            plan_id: Our plan id (basic or premium)
            client: Optional Razorpay client

        Returns:
            CheckoutSubscription

        Raises:
            ValueError: If plan_id is not a paid plan
            PaymentProviderError: 503 if Razorpay is not configured, 502 if it rejects the request
        """
        if not is_paid_plan(plan_id):
            raise ValueError(f"Invalid plan: {plan_id}")

        if not settings.razorpay_key_id or not settings.razorpay_key_secret:
            logger.error("Razorpay credentials not configured")
            raise PaymentProviderError("Payment system not configured", status_code=503)

        razorpay_plan_id = BillingService.razorpay_plan_id(plan_id)
        if not razorpay_plan_id:
            logger.error(f"Razorpay plan id not configured for: {plan_id}")
            raise PaymentProviderError(
                "Subscription plan not configured. Please contact support.", status_code=503
            )

        notes = {"user_id": user_id, "plan_id": plan_id}
        data = {
            "plan_id": razorpay_plan_id,
            "total_count": SUBSCRIPTION_TOTAL_COUNT,
            "customer_notify": 1,
            "notes": notes,
        }
        client = client or razorpay.Client(auth=(settings.razorpay_key_id, settings.razorpay_key_secret))

        try:
            # The SDK is synchronous
            subscription = await asyncio.to_thread(client.subscription.create, data)
        except (BadRequestError, GatewayError, ServerError) as e:
            logger.error(f"Razorpay error creating subscription for user {user_id}: {e}")
            raise PaymentProviderError("Failed to create subscription", original_error=e)
        except Exception as e:
            logger.error(f"Razorpay request failed for user {user_id}: {e}", exc_info=True)
            raise PaymentProviderError("Failed to create subscription", original_error=e)

        subscription_id = subscription.get("id")
        if not subscription_id:
            raise PaymentProviderError("Razorpay response missing subscription id")

        logger.info(f"Razorpay subscription {subscription_id} created for user {user_id} ({plan_id})")
        return CheckoutSubscription(
            subscription_id=subscription_id,
            razorpay_plan_id=razorpay_plan_id,
            key_id=settings.razorpay_key_id,
            plan_id=plan_id,
            notes=notes,
        )

    @staticmethod
    async def get_subscription(db: AsyncSession, user_id: str) -> Optional[Subscription]:
        result = await db.execute(select(Subscription).where(Subscription.user_id == user_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def cancel_subscription(db: AsyncSession, user_id: str) -> Subscription:
        """
        Mark the user's subscription to cancel at period end.

        The subscription stops granting its plan's quota immediately
        (only active subscriptions do).

        Raises:
            SubscriptionNotFound: If the user has no subscription row
        """
        subscription = await BillingService.get_subscription(db, user_id)
        if subscription is None:
            raise SubscriptionNotFound(user_id)

        subscription.status = SubscriptionStatus.CANCELING
        subscription.cancel_at_period_end = True
        await db.commit()
        await db.refresh(subscription)

        logger.info(f"Subscription marked for cancellation: user {user_id} ({subscription.plan_id})")
        return subscription

    @staticmethod
    async def get_user_payments(
        db: AsyncSession,
        user_id: str,
        limit: int = 20,
    ) -> List[PaymentRecord]:
        """
        Get payment history for a user, newest first.

        Args:
            db: Database session
            user_id: User ID
            limit: Maximum number of records

        Returns:
            List of PaymentRecord rows
        """
        result = await db.execute(
            select(PaymentRecord)
            .where(PaymentRecord.user_id == user_id)
            .order_by(PaymentRecord.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
