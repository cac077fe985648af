"""
Notification trigger.

Fire-and-forget side channel for user-facing notifications. A notify()
call is awaited for at most `notification_timeout_seconds` and never
raises: every failure is logged and counted, nothing reaches the
caller's critical path.
"""
import asyncio
import enum
import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ideaboard.config import settings
from ideaboard.models.profile import UserProfile
from ideaboard.services.email_service import (
    EmailService,
    low_credits_email,
    payment_failed_email,
    payment_succeeded_email,
)
from ideaboard.services.fcm_service import FCMService, low_credits_push, payment_push
from ideaboard.services.plan_registry import get_plan
from ideaboard.utils.metrics import notifications_total

logger = logging.getLogger(__name__)

# Low-credit warnings fire when this many generations (or fewer) remain
LOW_CREDIT_THRESHOLD = 2


class NotificationKind(enum.Enum):
    LOW_CREDITS = "low_credits"
    PAYMENT_SUCCEEDED = "payment_succeeded"
    PAYMENT_FAILED = "payment_failed"


class NotificationService:
    """Sends email and push notifications without ever raising."""

    def __init__(
        self,
        session_factory: Optional[Callable[[], AsyncSession]] = None,
        timeout: Optional[float] = None,
    ):
        if session_factory is None:
            from ideaboard.database import AsyncSessionLocal
            session_factory = AsyncSessionLocal
        self._session_factory = session_factory
        self._timeout = timeout if timeout is not None else settings.notification_timeout_seconds

    async def notify(self, kind: NotificationKind, user_id: str, payload: Dict[str, Any]) -> None:
        """
        Send a notification to a user.

        Args:
            kind: Notification kind
            user_id: Recipient user ID
            payload: Template data (remaining/limit/plan_id...)
        """
        try:
            await asyncio.wait_for(self._dispatch(kind, user_id, payload), timeout=self._timeout)
        except asyncio.TimeoutError:
            notifications_total.labels(kind=kind.value, channel="any", outcome="timeout").inc()
            logger.warning(f"Notification {kind.value} for user {user_id} timed out after {self._timeout}s")
        except Exception as e:
            notifications_total.labels(kind=kind.value, channel="any", outcome="error").inc()
            logger.error(f"Notification {kind.value} for user {user_id} failed: {e}", exc_info=True)

    async def _dispatch(self, kind: NotificationKind, user_id: str, payload: Dict[str, Any]) -> None:
        async with self._session_factory() as db:
            profile = await db.get(UserProfile, user_id)
            if profile is None:
                logger.warning(f"User {user_id} not found for {kind.value} notification")
                return

            plan = get_plan(payload.get("plan_id"))

            if kind == NotificationKind.LOW_CREDITS:
                remaining = int(payload.get("remaining", 0))
                limit = int(payload.get("limit", plan.monthly_quota))
                subject, html_body = low_credits_email(profile.full_name, remaining, limit, plan.name)
                title, body = low_credits_push(remaining)
                data = {"type": kind.value, "remaining": str(remaining)}
            elif kind == NotificationKind.PAYMENT_SUCCEEDED:
                subject, html_body = payment_succeeded_email(profile.full_name, plan.name, plan.monthly_quota)
                title, body = payment_push(True, plan.name)
                data = {"type": kind.value, "plan_id": plan.plan_id}
            else:
                subject, html_body = payment_failed_email(profile.full_name, plan.name)
                title, body = payment_push(False, plan.name)
                data = {"type": kind.value, "plan_id": plan.plan_id}

            if profile.email:
                sent = await EmailService.send_email(profile.email, subject, html_body)
                notifications_total.labels(
                    kind=kind.value, channel="email", outcome="sent" if sent else "skipped"
                ).inc()

            pushed = await FCMService.send_to_profile(db, profile, title, body, data)
            notifications_total.labels(
                kind=kind.value, channel="push", outcome="sent" if pushed else "skipped"
            ).inc()


def get_notification_service() -> NotificationService:
    """FastAPI dependency for the notification trigger."""
    return NotificationService()
