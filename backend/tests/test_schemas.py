"""
Tests for Pydantic schemas validation.
"""
import pytest
from datetime import datetime
from pydantic import ValidationError

from ideaboard.models.payment import PaymentRecord, PaymentStatus
from ideaboard.models.subscription import Subscription, SubscriptionStatus
from ideaboard.schemas.billing import (
    CreateSubscriptionRequest,
    PaymentHistoryItem,
    SubscriptionResponse,
    WebhookAckResponse,
)
from ideaboard.schemas.idea import AnalyzeIdeaRequest, BuildPlanRequest, BuildPlanResponse, GenerationResponse
from ideaboard.services.plan_registry import PromptTier


class TestIdeaSchemas:
    """Tests for idea schemas."""

    def test_analyze_request_valid(self):
        schema = AnalyzeIdeaRequest(idea="A marketplace for used lab gear")
        assert schema.idea == "A marketplace for used lab gear"

    def test_analyze_request_too_short(self):
        with pytest.raises(ValidationError):
            AnalyzeIdeaRequest(idea="short")

    def test_analyze_request_missing_idea(self):
        with pytest.raises(ValidationError):
            AnalyzeIdeaRequest()

    def test_build_plan_request_requires_research(self):
        with pytest.raises(ValidationError):
            BuildPlanRequest(idea="A habit tracker for teams", platform="Lovable")

    def test_generation_response_serializes_tier(self):
        schema = GenerationResponse(
            analysis={"problem": "p"},
            plan_id="basic",
            tier=PromptTier.STANDARD,
            generation_count=2,
            limit=5,
            remaining=3,
        )
        assert schema.model_dump(mode="json")["tier"] == "standard"

    def test_build_plan_response_accepts_string_phase(self):
        schema = BuildPlanResponse(
            platform="Bolt",
            summary="s",
            features=["Auth"],
            phases=[{"phase": "1", "title": "Setup", "features": ["Auth"], "prompt": "Do it"}],
        )
        assert schema.phases[0].title == "Setup"

    def test_build_plan_response_missing_prompt(self):
        with pytest.raises(ValidationError):
            BuildPlanResponse(
                platform="Bolt",
                summary="s",
                features=[],
                phases=[{"phase": 1, "title": "Setup", "features": []}],
            )


class TestBillingSchemas:
    """Tests for billing schemas."""

    def test_create_subscription_request_missing_plan(self):
        with pytest.raises(ValidationError):
            CreateSubscriptionRequest()

    def test_subscription_response_from_model(self):
        subscription = Subscription(
            user_id="u1",
            plan_id="premium",
            status=SubscriptionStatus.CANCELING,
            cancel_at_period_end=True,
        )
        schema = SubscriptionResponse.model_validate(subscription)
        assert schema.status == SubscriptionStatus.CANCELING
        assert schema.current_period_end is None

    def test_payment_history_item_from_model(self):
        now = datetime(2024, 5, 15, 12, 0, 0)
        record = PaymentRecord(
            id="rec-1",
            user_id="u1",
            external_payment_id="pay_1",
            amount=5000,
            currency="INR",
            plan_id="basic",
            status=PaymentStatus.CAPTURED,
            created_at=now,
        )
        schema = PaymentHistoryItem.model_validate(record)
        assert schema.external_payment_id == "pay_1"
        assert schema.model_dump(mode="json")["status"] == "captured"

    def test_webhook_ack_excludes_nothing_by_default(self):
        schema = WebhookAckResponse(status="ignored")
        assert schema.model_dump() == {
            "status": "ignored",
            "event_type": None,
            "reason": None,
            "user_id": None,
            "payment_id": None,
        }
