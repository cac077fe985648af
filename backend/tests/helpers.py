"""
Test doubles and data builders shared by the test modules.
"""
import hashlib
import hmac
import json
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from ideaboard.ai.base import LLMProvider
from ideaboard.ai.prompts import get_analysis_strategy
from ideaboard.models.profile import UserProfile
from ideaboard.models.subscription import Subscription, SubscriptionStatus
from ideaboard.services.notification_service import NotificationKind
from ideaboard.services.plan_registry import PromptTier


WEBHOOK_SECRET = "test_webhook_secret"

# Mid-month, so "now" and last month never collide
NOW = datetime(2024, 5, 15, 12, 0, 0)
LAST_MONTH = datetime(2024, 4, 20, 9, 30, 0)


class FakeProvider(LLMProvider):
    """AI provider double returning the fields each tier requires."""

    name = "fake"

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls: List[Tuple[PromptTier, str]] = []
        self.build_plan_calls: List[Tuple[str, Dict[str, Any], str]] = []
        # Runs inside analyze_idea, to simulate work done by concurrent requests
        self.during_call: Optional[Callable[[], Awaitable[None]]] = None

    async def analyze_idea(self, tier: PromptTier, idea: str) -> Dict[str, Any]:
        self.calls.append((tier, idea))
        if self.during_call is not None:
            await self.during_call()
        if self.error is not None:
            raise self.error
        return {field: f"{field} for {idea}" for field in get_analysis_strategy(tier).required_fields}

    async def generate_build_plan(self, idea: str, research: Dict[str, Any], platform: str) -> Dict[str, Any]:
        self.build_plan_calls.append((idea, research, platform))
        if self.error is not None:
            raise self.error
        return {
            "summary": f"Build {idea} on {platform}",
            "features": ["Auth", "Dashboard"],
            "phases": [
                {"phase": 1, "title": "Foundation", "features": ["Auth"], "prompt": "Create the app shell"},
                {"phase": 2, "title": "Core", "features": ["Dashboard"], "prompt": "Add the dashboard"},
            ],
        }

    def is_configured(self) -> bool:
        return True


class RecordingNotifier:
    """Notification trigger double that records calls."""

    def __init__(self):
        self.sent: List[Tuple[NotificationKind, str, Dict[str, Any]]] = []

    async def notify(self, kind: NotificationKind, user_id: str, payload: Dict[str, Any]) -> None:
        self.sent.append((kind, user_id, payload))


def sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    """Razorpay-style signature of a webhook body."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def payment_event(
    event: str,
    payment_id: str,
    user_id: Optional[str] = None,
    plan_id: Optional[str] = None,
    amount: int = 7500,
) -> bytes:
    """Razorpay payment webhook body."""
    notes: Dict[str, str] = {}
    if user_id:
        notes["user_id"] = user_id
    if plan_id:
        notes["plan_id"] = plan_id
    return json.dumps({
        "entity": "event",
        "event": event,
        "payload": {
            "payment": {
                "entity": {
                    "id": payment_id,
                    "order_id": f"order_{payment_id}",
                    "amount": amount,
                    "currency": "INR",
                    "status": "captured" if event != "payment.failed" else "failed",
                    "method": "upi",
                    "notes": notes,
                }
            }
        },
    }).encode("utf-8")


async def make_profile(
    db: AsyncSession,
    user_id: str,
    generation_count: int = 0,
    last_generation_reset: Optional[datetime] = None,
    email: Optional[str] = None,
) -> UserProfile:
    profile = UserProfile(
        id=user_id,
        email=email or f"{user_id}@example.com",
        full_name="Test User",
        generation_count=generation_count,
        last_generation_reset=last_generation_reset,
    )
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    return profile


async def make_subscription(
    db: AsyncSession,
    user_id: str,
    plan_id: str,
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
) -> Subscription:
    subscription = Subscription(
        user_id=user_id,
        plan_id=plan_id,
        status=status,
        current_period_start=LAST_MONTH,
        payment_method="razorpay",
    )
    db.add(subscription)
    await db.commit()
    await db.refresh(subscription)
    return subscription


