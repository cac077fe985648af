"""
Pydantic schemas for API request/response validation.
"""
from ideaboard.schemas.idea import (
    AnalyzeIdeaRequest,
    GenerationResponse,
    BuildPlanRequest,
    BuildPlanResponse,
    UsageResponse,
)
from ideaboard.schemas.billing import (
    PlanResponse,
    PlansListResponse,
    CreateSubscriptionRequest,
    CreateSubscriptionResponse,
    CancelSubscriptionResponse,
    PaymentHistoryResponse,
    WebhookAckResponse,
)

__all__ = [
    "AnalyzeIdeaRequest",
    "GenerationResponse",
    "BuildPlanRequest",
    "BuildPlanResponse",
    "UsageResponse",
    "PlanResponse",
    "PlansListResponse",
    "CreateSubscriptionRequest",
    "CreateSubscriptionResponse",
    "CancelSubscriptionResponse",
    "PaymentHistoryResponse",
    "WebhookAckResponse",
]
