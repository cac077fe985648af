"""
Payment API endpoints.
Handles plan listing, Razorpay subscription checkout, cancellation and history.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ideaboard.auth.dependencies import get_current_user
from ideaboard.database import get_db
from ideaboard.models.payment import PaymentStatus
from ideaboard.models.profile import UserProfile
from ideaboard.schemas.billing import (
    CancelSubscriptionResponse,
    CreateSubscriptionRequest,
    CreateSubscriptionResponse,
    PaymentHistoryItem,
    PaymentHistoryResponse,
    PlanResponse,
    PlansListResponse,
    SubscriptionResponse,
)
from ideaboard.services.billing_service import BillingService
from ideaboard.services.plan_registry import list_plans

router = APIRouter()


@router.get("/plans", response_model=PlansListResponse)
async def get_plans():
    """
    Get the list of plans.

    No authentication required - pricing is public information.
    """
    plans = [
        PlanResponse(
            id=plan.plan_id,
            name=plan.name,
            monthly_quota=plan.monthly_quota,
            price=plan.price,
            price_formatted=f"₹{plan.price / 100:.0f}",
            currency=plan.currency,
            description=plan.description,
        )
        for plan in list_plans()
    ]
    return PlansListResponse(plans=plans)


@router.post("/subscription", response_model=CreateSubscriptionResponse)
async def create_subscription(
    request: CreateSubscriptionRequest,
    current_user: UserProfile = Depends(get_current_user),
):
    """
    Create a Razorpay subscription for a paid plan.

    The plan is activated by the payment webhook, not by this call.
    """
    try:
        checkout = await BillingService.create_subscription(current_user.id, request.plan_id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    return CreateSubscriptionResponse(
        subscription_id=checkout.subscription_id,
        razorpay_plan_id=checkout.razorpay_plan_id,
        key_id=checkout.key_id,
        plan_id=checkout.plan_id,
    )


@router.post("/cancel", response_model=CancelSubscriptionResponse)
async def cancel_subscription(
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
):
    """Cancel the current subscription at the end of the period."""
    subscription = await BillingService.cancel_subscription(db, current_user.id)
    return CancelSubscriptionResponse(
        success=True,
        message="Subscription will be cancelled at the end of the current period",
        subscription=SubscriptionResponse.model_validate(subscription),
    )


@router.get("/history", response_model=PaymentHistoryResponse)
async def get_payment_history(
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
    limit: int = Query(20, ge=1, le=100),
):
    """
    Get payment history for the authenticated user.

    Returns past payments (newest first) and the total captured amount.
    """
    payments = await BillingService.get_user_payments(db, current_user.id, limit=limit)

    total_paid = sum(p.amount for p in payments if p.status == PaymentStatus.CAPTURED)

    return PaymentHistoryResponse(
        payments=[PaymentHistoryItem.model_validate(p) for p in payments],
        total_paid=total_paid,
    )
