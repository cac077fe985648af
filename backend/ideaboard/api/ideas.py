"""
Idea endpoints.
Metered market analysis and (unmetered) build plan generation.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ideaboard.ai.base import LLMProvider
from ideaboard.ai.factory import get_llm_provider
from ideaboard.auth.dependencies import get_current_user
from ideaboard.database import get_db
from ideaboard.models.profile import UserProfile
from ideaboard.schemas.idea import (
    AnalyzeIdeaRequest,
    BuildPlanRequest,
    BuildPlanResponse,
    GenerationResponse,
)
from ideaboard.services.generation_service import GenerationGate
from ideaboard.services.notification_service import NotificationService, get_notification_service

router = APIRouter()
logger = logging.getLogger(__name__)


def get_ai_provider() -> LLMProvider:
    """Configured AI provider, or 503 when none is usable."""
    try:
        return get_llm_provider()
    except ValueError as e:
        logger.error(f"AI provider unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="AI service not configured"
        )


@router.post("/analyze", response_model=GenerationResponse)
async def analyze_idea(
    request: AnalyzeIdeaRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
    provider: LLMProvider = Depends(get_ai_provider),
    notifier: NotificationService = Depends(get_notification_service),
):
    """
    Analyze an idea, consuming one generation from the monthly quota.

    Returns 403 when the plan's monthly limit is reached and 502 when
    the AI provider fails (no generation is consumed in that case).
    """
    result = await GenerationGate.request_generation(
        db,
        provider,
        current_user.id,
        request.idea.strip(),
        notifier=notifier,
    )
    return GenerationResponse(
        analysis=result.analysis,
        plan_id=result.plan_id,
        tier=result.tier,
        generation_count=result.generation_count,
        limit=result.limit,
        remaining=result.remaining,
    )


@router.post("/build-plan", response_model=BuildPlanResponse)
async def build_plan(
    request: BuildPlanRequest,
    current_user: UserProfile = Depends(get_current_user),
    provider: LLMProvider = Depends(get_ai_provider),
):
    """Generate a phased build plan for a builder platform."""
    try:
        plan = await GenerationGate.generate_build_plan(
            provider,
            request.idea.strip(),
            request.research,
            request.platform,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    logger.info(f"Build plan generated for user {current_user.id} ({request.platform})")
    return BuildPlanResponse(
        platform=request.platform,
        summary=plan["summary"],
        features=plan["features"],
        phases=plan["phases"],
    )
