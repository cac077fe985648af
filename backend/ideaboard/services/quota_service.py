"""
Quota tracker for monthly generation limits.

Pure decision logic: given a profile, its subscription and the current
time, decide whether one more generation may be admitted. Usage windows
are calendar months, compared as (year, month) tuples.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ideaboard.models.profile import UserProfile
from ideaboard.models.subscription import Subscription
from ideaboard.services.plan_registry import FREE_PLAN_ID, quota_for

# Fraction of the quota at which the user is considered close to the limit
NEAR_LIMIT_THRESHOLD = 0.8


@dataclass(frozen=True)
class QuotaDecision:
    """Outcome of evaluating one generation request."""
    admitted: bool
    effective_count: int
    window_reset: bool
    remaining: int
    plan_id: str
    limit: int


@dataclass(frozen=True)
class UsageSnapshot:
    """Current usage, without the pending request taken into account."""
    plan_id: str
    used: int
    limit: int
    remaining: int
    is_near_limit: bool
    is_at_limit: bool


class QuotaTracker:
    """Stateless quota decisions over profile and subscription rows."""

    @staticmethod
    def effective_plan_id(subscription: Optional[Subscription]) -> str:
        """Subscribed plan if the subscription is active, otherwise free."""
        if subscription is not None and subscription.is_active:
            return subscription.plan_id or FREE_PLAN_ID
        return FREE_PLAN_ID

    @staticmethod
    def is_new_window(last_reset: Optional[datetime], now: datetime) -> bool:
        """True when now falls in a different calendar month than last_reset."""
        if last_reset is None:
            return True
        return (now.year, now.month) != (last_reset.year, last_reset.month)

    @staticmethod
    def evaluate(
        profile: UserProfile,
        subscription: Optional[Subscription],
        now: datetime,
    ) -> QuotaDecision:
        """
        Decide whether the user may consume one generation now.

        Args:
            profile: User profile with generation_count / last_generation_reset
            subscription: User's subscription row, if any
            now: Current time (naive UTC)

        Returns:
            QuotaDecision; has no side effects
        """
        plan_id = QuotaTracker.effective_plan_id(subscription)
        limit = quota_for(plan_id)

        window_reset = QuotaTracker.is_new_window(profile.last_generation_reset, now)
        effective_count = 0 if window_reset else (profile.generation_count or 0)

        admitted = effective_count < limit
        remaining = max(0, limit - effective_count - (1 if admitted else 0))

        return QuotaDecision(
            admitted=admitted,
            effective_count=effective_count,
            window_reset=window_reset,
            remaining=remaining,
            plan_id=plan_id,
            limit=limit,
        )

    @staticmethod
    def usage_snapshot(
        profile: UserProfile,
        subscription: Optional[Subscription],
        now: datetime,
    ) -> UsageSnapshot:
        """Usage for display (credits indicator, usage endpoint)."""
        plan_id = QuotaTracker.effective_plan_id(subscription)
        limit = quota_for(plan_id)

        if QuotaTracker.is_new_window(profile.last_generation_reset, now):
            used = 0
        else:
            used = profile.generation_count or 0

        return UsageSnapshot(
            plan_id=plan_id,
            used=used,
            limit=limit,
            remaining=max(0, limit - used),
            is_near_limit=used >= limit * NEAR_LIMIT_THRESHOLD,
            is_at_limit=used >= limit,
        )
