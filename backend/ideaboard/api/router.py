"""
API router aggregator.
Includes all route modules.
"""
from fastapi import APIRouter
from ideaboard.api import health, ideas, me, payments, webhooks

api_router = APIRouter()

# Include route modules
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(ideas.router, prefix="/ideas", tags=["ideas"])
api_router.include_router(me.router, prefix="/me", tags=["me"])
api_router.include_router(payments.router, prefix="/payments", tags=["payments"])
api_router.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
