"""
Tests for plan registry and quota decisions.
These are pure functions; no database needed.
"""
import pytest
from datetime import datetime

from ideaboard.models.profile import UserProfile
from ideaboard.models.subscription import Subscription, SubscriptionStatus
from ideaboard.services import plan_registry
from ideaboard.services.plan_registry import (
    FREE_PLAN_ID,
    PromptTier,
    get_plan,
    is_paid_plan,
    list_plans,
    quota_for,
)
from ideaboard.services.quota_service import QuotaTracker


NOW = datetime(2024, 5, 15, 12, 0, 0)


def profile(count: int, last_reset=None) -> UserProfile:
    return UserProfile(id="user-1", generation_count=count, last_generation_reset=last_reset)


def subscription(plan_id: str, status: SubscriptionStatus = SubscriptionStatus.ACTIVE) -> Subscription:
    return Subscription(user_id="user-1", plan_id=plan_id, status=status)


class TestPlanRegistry:
    """Tests for plan definitions."""

    def test_known_quotas(self):
        assert quota_for("free") == 3
        assert quota_for("basic") == 5
        assert quota_for("premium") == 10

    @pytest.mark.parametrize("plan_id", [None, "", "enterprise", "FREE", "premium "])
    def test_unknown_plan_falls_back_to_free(self, plan_id):
        assert quota_for(plan_id) == quota_for(FREE_PLAN_ID)
        assert get_plan(plan_id).plan_id == FREE_PLAN_ID

    def test_prompt_tiers(self):
        assert get_plan("free").prompt_tier == PromptTier.BASIC
        assert get_plan("basic").prompt_tier == PromptTier.STANDARD
        assert get_plan("premium").prompt_tier == PromptTier.ADVANCED

    def test_paid_plans(self):
        assert not is_paid_plan("free")
        assert is_paid_plan("basic")
        assert is_paid_plan("premium")
        assert not is_paid_plan("enterprise")

    def test_list_plans_cheapest_first(self):
        prices = [p.price for p in list_plans()]
        assert prices == sorted(prices)
        assert [p.plan_id for p in list_plans()] == ["free", "basic", "premium"]


class TestQuotaTracker:
    """Tests for QuotaTracker.evaluate."""

    def test_no_subscription_is_free(self):
        decision = QuotaTracker.evaluate(profile(0, NOW), None, NOW)
        assert decision.plan_id == "free"
        assert decision.limit == 3

    @pytest.mark.parametrize("status", [
        SubscriptionStatus.CANCELING,
        SubscriptionStatus.SUSPENDED,
        SubscriptionStatus.NONE,
    ])
    def test_inactive_subscription_is_free(self, status):
        decision = QuotaTracker.evaluate(profile(0, NOW), subscription("premium", status), NOW)
        assert decision.plan_id == "free"
        assert decision.limit == 3

    def test_active_subscription_uses_plan(self):
        decision = QuotaTracker.evaluate(profile(0, NOW), subscription("premium"), NOW)
        assert decision.plan_id == "premium"
        assert decision.limit == 10

    def test_active_unknown_plan_gets_free_quota(self):
        decision = QuotaTracker.evaluate(profile(0, NOW), subscription("enterprise"), NOW)
        assert decision.limit == quota_for("free")

    def test_admitted_under_limit(self):
        decision = QuotaTracker.evaluate(profile(4, NOW.replace(day=1)), subscription("basic"), NOW)
        assert decision.admitted
        assert not decision.window_reset
        assert decision.effective_count == 4
        assert decision.remaining == 0

    def test_rejected_at_limit(self):
        decision = QuotaTracker.evaluate(profile(5, NOW.replace(day=1)), subscription("basic"), NOW)
        assert not decision.admitted
        assert decision.remaining == 0

    def test_count_above_limit_after_downgrade(self):
        decision = QuotaTracker.evaluate(profile(8, NOW.replace(day=2)), None, NOW)
        assert not decision.admitted
        assert decision.remaining == 0

    def test_never_reset_is_new_window(self):
        decision = QuotaTracker.evaluate(profile(3, None), None, NOW)
        assert decision.window_reset
        assert decision.effective_count == 0
        assert decision.admitted
        assert decision.remaining == 2

    def test_previous_month_resets(self):
        decision = QuotaTracker.evaluate(profile(3, datetime(2024, 4, 30, 23, 59, 59)), None, NOW)
        assert decision.window_reset
        assert decision.admitted

    def test_same_month_previous_year_resets(self):
        decision = QuotaTracker.evaluate(profile(3, datetime(2023, 5, 20)), None, NOW)
        assert decision.window_reset
        assert decision.admitted

    def test_month_boundary(self):
        last_reset = datetime(2024, 5, 31, 23, 59, 59)
        assert not QuotaTracker.is_new_window(last_reset, datetime(2024, 5, 31, 23, 59, 59))
        assert QuotaTracker.is_new_window(last_reset, datetime(2024, 6, 1, 0, 0, 0))

    def test_year_boundary(self):
        assert QuotaTracker.is_new_window(datetime(2024, 12, 31, 23, 0), datetime(2025, 1, 1, 0, 0))

    def test_zero_limit_never_admits(self, monkeypatch):
        zero_plan = plan_registry.PlanDefinition(
            plan_id="frozen",
            name="Frozen",
            monthly_quota=0,
            prompt_tier=PromptTier.BASIC,
        )
        monkeypatch.setitem(plan_registry.PLANS, "frozen", zero_plan)

        decision = QuotaTracker.evaluate(profile(0, None), subscription("frozen"), NOW)
        assert not decision.admitted
        assert decision.remaining == 0

    @pytest.mark.parametrize("count", range(0, 7))
    def test_remaining_never_negative(self, count):
        decision = QuotaTracker.evaluate(profile(count, NOW), subscription("basic"), NOW)
        assert decision.remaining >= 0
        assert decision.admitted == (count < 5)

    def test_evaluate_is_pure(self):
        p = profile(2, NOW.replace(day=3))
        first = QuotaTracker.evaluate(p, None, NOW)
        second = QuotaTracker.evaluate(p, None, NOW)
        assert first == second
        assert p.generation_count == 2
        assert p.last_generation_reset == NOW.replace(day=3)


class TestUsageSnapshot:
    """Tests for QuotaTracker.usage_snapshot."""

    def test_near_limit(self):
        snapshot = QuotaTracker.usage_snapshot(profile(4, NOW), subscription("basic"), NOW)
        assert snapshot.used == 4
        assert snapshot.remaining == 1
        assert snapshot.is_near_limit
        assert not snapshot.is_at_limit

    def test_at_limit(self):
        snapshot = QuotaTracker.usage_snapshot(profile(3, NOW), None, NOW)
        assert snapshot.is_at_limit
        assert snapshot.remaining == 0

    def test_stale_window_shows_zero_used(self):
        snapshot = QuotaTracker.usage_snapshot(profile(3, datetime(2024, 4, 1)), None, NOW)
        assert snapshot.used == 0
        assert snapshot.remaining == 3
        assert not snapshot.is_near_limit
