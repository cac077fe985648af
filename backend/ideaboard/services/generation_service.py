"""
Generation gate: the only entry point that consumes generation quota.

Order of operations per request:
1. Load profile + subscription, evaluate the quota
2. Call the AI provider (quota untouched if it fails)
3. Record usage with a conditional UPDATE so concurrent requests
   cannot both consume the last generation
4. Fire a low-credit notification when few generations remain
"""
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ideaboard.ai.base import LLMProvider
from ideaboard.ai.prompts import BUILD_PLATFORMS
from ideaboard.exceptions import ProfileNotFound, QuotaExceeded
from ideaboard.models.base import utcnow
from ideaboard.models.profile import UserProfile
from ideaboard.models.subscription import Subscription
from ideaboard.services.notification_service import (
    LOW_CREDIT_THRESHOLD,
    NotificationKind,
    NotificationService,
)
from ideaboard.services.plan_registry import PromptTier, get_plan
from ideaboard.services.quota_service import QuotaDecision, QuotaTracker
from ideaboard.utils.logging import log_generation_admitted, log_quota_exceeded
from ideaboard.utils.metrics import generations_admitted_total, generations_rejected_total

logger = logging.getLogger(__name__)

# One write plus one retry after a concurrent modification
MAX_WRITE_ATTEMPTS = 2


@dataclass
class GenerationResult:
    """Analysis returned to the caller along with the updated usage."""
    analysis: Dict[str, Any]
    plan_id: str
    tier: PromptTier
    generation_count: int
    limit: int
    remaining: int


async def load_subscription(db: AsyncSession, user_id: str) -> Optional[Subscription]:
    result = await db.execute(select(Subscription).where(Subscription.user_id == user_id))
    return result.scalar_one_or_none()


class GenerationGate:
    """Quota-metered idea analysis."""

    @staticmethod
    async def request_generation(
        db: AsyncSession,
        provider: LLMProvider,
        user_id: str,
        idea_text: str,
        now: Optional[datetime] = None,
        notifier: Optional[NotificationService] = None,
    ) -> GenerationResult:
        """
        Analyze an idea if the user's plan allows one more generation.

        Args:
            db: Database session
            provider: Configured AI provider
            user_id: Authenticated user ID
            idea_text: Free-text idea
            now: Current time (naive UTC), defaults to utcnow()
            notifier: Notification trigger for low-credit warnings

        Returns:
            GenerationResult with the analysis and post-request usage

        Raises:
            ProfileNotFound: If the user has no profile row
            QuotaExceeded: If the monthly limit is reached (before or after the AI call)
            UpstreamAIError: If the provider fails; usage is not recorded
        """
        start_time = time.time()
        now = now or utcnow()

        profile = await db.get(UserProfile, user_id)
        if profile is None:
            logger.error(f"Profile missing for authenticated user {user_id}")
            raise ProfileNotFound(user_id)

        subscription = await load_subscription(db, user_id)
        decision = QuotaTracker.evaluate(profile, subscription, now)
        if not decision.admitted:
            GenerationGate._reject(user_id, decision, reason="quota")

        tier = get_plan(decision.plan_id).prompt_tier
        analysis = await provider.analyze_idea(tier, idea_text)

        decision, generation_count = await GenerationGate._record_usage(
            db, profile, subscription, decision, now
        )
        remaining = max(0, decision.limit - generation_count)

        generations_admitted_total.labels(plan_id=decision.plan_id).inc()
        log_generation_admitted(
            logger,
            user_id=user_id,
            plan_id=decision.plan_id,
            generation_count=generation_count,
            remaining=remaining,
            window_reset=decision.window_reset,
            duration_ms=(time.time() - start_time) * 1000,
        )

        if remaining <= LOW_CREDIT_THRESHOLD:
            notifier = notifier or NotificationService()
            await notifier.notify(
                NotificationKind.LOW_CREDITS,
                user_id,
                {"remaining": remaining, "limit": decision.limit, "plan_id": decision.plan_id},
            )

        return GenerationResult(
            analysis=analysis,
            plan_id=decision.plan_id,
            tier=tier,
            generation_count=generation_count,
            limit=decision.limit,
            remaining=remaining,
        )

    @staticmethod
    async def _record_usage(
        db: AsyncSession,
        profile: UserProfile,
        subscription: Optional[Subscription],
        decision: QuotaDecision,
        now: datetime,
    ) -> Tuple[QuotaDecision, int]:
        """
        Persist one generation against the observed profile state.

        Returns:
            (decision the write was made under, new generation_count)

        Raises:
            QuotaExceeded: If a concurrent request consumed the last generation
        """
        user_id = profile.id

        for attempt in range(MAX_WRITE_ATTEMPTS):
            if await GenerationGate._try_increment(db, profile, decision, now):
                await db.commit()
                # Conditional UPDATE bypasses the identity map; the stored count
                # includes increments made by other requests during the AI call
                await db.refresh(profile)
                return decision, profile.generation_count

            logger.info(
                f"Concurrent usage update for user {user_id} "
                f"(attempt {attempt + 1}), re-evaluating quota"
            )
            await db.refresh(profile)
            result = await db.execute(
                select(Subscription)
                .where(Subscription.user_id == user_id)
                .execution_options(populate_existing=True)
            )
            subscription = result.scalar_one_or_none()
            decision = QuotaTracker.evaluate(profile, subscription, now)
            if not decision.admitted:
                break

        await db.rollback()
        GenerationGate._reject(user_id, decision, reason="conflict")

    @staticmethod
    async def _try_increment(
        db: AsyncSession,
        profile: UserProfile,
        decision: QuotaDecision,
        now: datetime,
    ) -> bool:
        """Conditional UPDATE; False when the row no longer matches what was observed."""
        observed_reset = profile.last_generation_reset

        if decision.window_reset:
            if observed_reset is None:
                reset_matches = UserProfile.last_generation_reset.is_(None)
            else:
                reset_matches = UserProfile.last_generation_reset == observed_reset
            stmt = (
                update(UserProfile)
                .where(UserProfile.id == profile.id)
                .where(UserProfile.generation_count == profile.generation_count)
                .where(reset_matches)
                .values(generation_count=1, last_generation_reset=now)
            )
        else:
            stmt = (
                update(UserProfile)
                .where(UserProfile.id == profile.id)
                .where(UserProfile.generation_count < decision.limit)
                .where(UserProfile.last_generation_reset == observed_reset)
                .values(generation_count=UserProfile.generation_count + 1)
            )

        result = await db.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount > 0

    @staticmethod
    def _reject(user_id: str, decision: QuotaDecision, reason: str):
        generations_rejected_total.labels(plan_id=decision.plan_id, reason=reason).inc()
        log_quota_exceeded(logger, user_id=user_id, plan_id=decision.plan_id, limit=decision.limit, reason=reason)
        raise QuotaExceeded(decision.plan_id, decision.limit)

    @staticmethod
    async def generate_build_plan(
        provider: LLMProvider,
        idea: str,
        research: Dict[str, Any],
        platform: str,
    ) -> Dict[str, Any]:
        """
        Generate a build plan for an analyzed idea. Not metered.

        Raises:
            ValueError: If the platform is not supported
            UpstreamAIError: If the provider fails
        """
        if platform not in BUILD_PLATFORMS:
            raise ValueError(f"Unsupported platform: {platform}. Must be one of: {', '.join(BUILD_PLATFORMS)}")

        return await provider.generate_build_plan(idea, research, platform)
