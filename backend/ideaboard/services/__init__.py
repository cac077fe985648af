"""
Business logic services.
"""
from ideaboard.services.plan_registry import PLANS, PlanDefinition, PromptTier, get_plan, quota_for
from ideaboard.services.quota_service import QuotaDecision, QuotaTracker, UsageSnapshot

__all__ = [
    "PLANS",
    "PlanDefinition",
    "PromptTier",
    "get_plan",
    "quota_for",
    "QuotaDecision",
    "QuotaTracker",
    "UsageSnapshot",
]
