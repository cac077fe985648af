"""
Domain exceptions for IdeaBoard.

Each exception carries a user-safe message plus structured details,
and is mapped to an HTTP status by the handlers registered in main.py.
"""
from typing import Optional, Dict, Any


class IdeaBoardError(Exception):
    """Base exception for all IdeaBoard errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class QuotaExceeded(IdeaBoardError):
    """Plan generation limit reached for the current month. Expected, user-facing."""

    status_code = 403

    def __init__(self, plan_id: str, limit: int):
        super().__init__(
            f"Monthly generation limit reached for the {plan_id} plan ({limit} per month)",
            details={"plan_id": plan_id, "limit": limit},
        )
        self.plan_id = plan_id
        self.limit = limit


class InvalidSignature(IdeaBoardError):
    """Webhook signature missing or not matching the payload."""

    status_code = 400

    def __init__(self, message: str = "Invalid webhook signature"):
        super().__init__(message)


class UpstreamAIError(IdeaBoardError):
    """AI provider failed or returned an unusable response. Retryable."""

    status_code = 502

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {"retryable": True}
        if provider:
            details["provider"] = provider
        if operation:
            details["operation"] = operation
        super().__init__(message, details, original_error)


class ProfileNotFound(IdeaBoardError):
    """No profile row for an authenticated user: broken account state."""

    status_code = 404

    def __init__(self, user_id: str):
        super().__init__("User profile not found", details={"user_id": user_id})
        self.user_id = user_id


class SubscriptionNotFound(IdeaBoardError):
    """User has no subscription row."""

    status_code = 404

    def __init__(self, user_id: str):
        super().__init__("No subscription found", details={"user_id": user_id})


class PaymentProviderError(IdeaBoardError):
    """Payment gateway unavailable, misconfigured or rejecting a request."""

    def __init__(
        self,
        message: str,
        status_code: int = 502,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message, original_error=original_error)
        self.status_code = status_code
