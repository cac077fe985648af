"""
Plan registry: static plan definitions and monthly generation quotas.
Unknown or missing plan ids fall back to the free plan.
"""
import enum
from dataclasses import dataclass
from typing import Dict, List, Optional


FREE_PLAN_ID = "free"


class PromptTier(enum.Enum):
    """Depth of the idea analysis a plan is entitled to."""
    BASIC = "basic"
    STANDARD = "standard"
    ADVANCED = "advanced"


@dataclass(frozen=True)
class PlanDefinition:
    """A purchasable (or free) plan."""
    plan_id: str
    name: str
    monthly_quota: int
    prompt_tier: PromptTier
    price: int = 0  # Minor units (paise), per month
    currency: str = "INR"
    description: Optional[str] = None


PLANS: Dict[str, PlanDefinition] = {
    plan.plan_id: plan
    for plan in (
        PlanDefinition(
            plan_id=FREE_PLAN_ID,
            name="Free",
            monthly_quota=3,
            prompt_tier=PromptTier.BASIC,
            description="3 idea generations/month, basic analysis",
        ),
        PlanDefinition(
            plan_id="basic",
            name="Basic",
            monthly_quota=5,
            prompt_tier=PromptTier.STANDARD,
            price=5000,
            description="5 idea generations/month, standard analysis",
        ),
        PlanDefinition(
            plan_id="premium",
            name="Premium",
            monthly_quota=10,
            prompt_tier=PromptTier.ADVANCED,
            price=7500,
            description="10 idea generations/month, advanced analysis",
        ),
    )
}


def get_plan(plan_id: Optional[str]) -> PlanDefinition:
    """Return the plan for plan_id, or the free plan for unknown/None ids."""
    return PLANS.get(plan_id or FREE_PLAN_ID, PLANS[FREE_PLAN_ID])


def quota_for(plan_id: Optional[str]) -> int:
    """Monthly generation quota for a plan (free quota for unknown ids)."""
    return get_plan(plan_id).monthly_quota


def is_known_plan(plan_id: Optional[str]) -> bool:
    return plan_id in PLANS


def is_paid_plan(plan_id: Optional[str]) -> bool:
    return is_known_plan(plan_id) and PLANS[plan_id].price > 0


def list_plans() -> List[PlanDefinition]:
    """All plans, cheapest first."""
    return sorted(PLANS.values(), key=lambda p: p.price)
