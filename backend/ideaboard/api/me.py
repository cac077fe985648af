"""
User profile endpoints.
Returns usage information about the authenticated user.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel

from ideaboard.database import get_db
from ideaboard.models.base import utcnow
from ideaboard.models.profile import UserProfile
from ideaboard.auth.dependencies import get_current_user
from ideaboard.schemas.idea import UsageResponse
from ideaboard.services.generation_service import load_subscription
from ideaboard.services.plan_registry import get_plan
from ideaboard.services.quota_service import QuotaTracker

router = APIRouter()


@router.get("/usage", response_model=UsageResponse)
async def get_usage(
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user)
):
    """
    Get this month's generation usage for the authenticated user.
    Requires valid Firebase JWT token.
    """
    subscription = await load_subscription(db, current_user.id)
    snapshot = QuotaTracker.usage_snapshot(current_user, subscription, utcnow())

    return UsageResponse(
        plan_id=snapshot.plan_id,
        plan_name=get_plan(snapshot.plan_id).name,
        used=snapshot.used,
        limit=snapshot.limit,
        remaining=snapshot.remaining,
        is_near_limit=snapshot.is_near_limit,
        is_at_limit=snapshot.is_at_limit,
    )


class FCMTokenRequest(BaseModel):
    """Request schema for FCM token endpoint."""
    token: str


class FCMTokenResponse(BaseModel):
    """Response schema for FCM token endpoint."""
    success: bool
    message: str


@router.post("/fcm-token", response_model=FCMTokenResponse)
async def update_fcm_token(
    request: FCMTokenRequest,
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user)
):
    """
    Register the device token used for push notifications.
    Called when FCM initializes on the client or the token changes.
    """
    if not request.token or len(request.token.strip()) == 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Token cannot be empty"
        )

    current_user.fcm_token = request.token.strip()
    await db.commit()

    return FCMTokenResponse(
        success=True,
        message="FCM token updated successfully"
    )
