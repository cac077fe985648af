"""
OpenAI provider implementation.
Uses the async OpenAI SDK with JSON-mode chat completions.
"""
from typing import Any, Dict, Optional
import json
import logging
import time
from openai import AsyncOpenAI

from ideaboard.ai.base import LLMProvider
from ideaboard.ai.prompts import (
    BUILD_PHASE_FIELDS,
    BUILD_PLAN_FIELDS,
    analysis_user_prompt,
    build_plan_system_prompt,
    build_plan_user_prompt,
    get_analysis_strategy,
    missing_fields,
)
from ideaboard.config import settings
from ideaboard.exceptions import UpstreamAIError
from ideaboard.services.plan_registry import PromptTier
from ideaboard.utils.logging import log_provider_request, log_provider_failure
from ideaboard.utils.metrics import (
    ai_provider_requests_total,
    ai_provider_failures_total,
    ai_provider_latency_seconds,
    ai_provider_tokens_total
)

logger = logging.getLogger(__name__)

# Ideas longer than this are truncated before being sent to the model
MAX_IDEA_CHARS = 4000


class OpenAIProvider(LLMProvider):
    """
    OpenAI LLM provider implementation.

    Every call requests a JSON object response and validates the fields
    the caller expects; anything else is reported as UpstreamAIError.

    API keys are stored in environment variables and never exposed to clients.
    """

    name = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        """Initialize provider with API key from settings."""
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.chat_model = model or settings.openai_model
        self.base_url = base_url

        if self.api_key:
            self.client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=settings.ai_request_timeout_seconds,
                max_retries=0,  # Retry policy belongs to the caller
            )
        else:
            self.client = None

    def is_configured(self) -> bool:
        """Check if API key is configured."""
        return bool(self.api_key)

    async def _complete_json(
        self,
        operation: str,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        temperature: float = 0.4,
    ) -> Dict[str, Any]:
        """Run a JSON-mode chat completion and decode the object."""
        if not self.is_configured() or not self.client:
            logger.error(f"{self.name} API key not configured")
            raise UpstreamAIError(
                "AI provider not configured",
                provider=self.name,
                operation=operation,
            )

        start_time = time.time()
        ai_provider_requests_total.labels(provider=self.name, operation=operation).inc()

        try:
            response = await self.client.chat.completions.create(
                model=self.chat_model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                response_format={"type": "json_object"},
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except Exception as e:
            duration = time.time() - start_time
            ai_provider_failures_total.labels(provider=self.name, operation=operation).inc()
            ai_provider_latency_seconds.labels(provider=self.name, operation=operation).observe(duration)
            log_provider_failure(logger, self.name, operation, str(e), duration_ms=duration * 1000)
            raise UpstreamAIError(
                "AI provider request failed",
                provider=self.name,
                operation=operation,
                original_error=e,
            )

        duration = time.time() - start_time
        ai_provider_latency_seconds.labels(provider=self.name, operation=operation).observe(duration)

        usage = getattr(response, "usage", None)
        if usage:
            if getattr(usage, "prompt_tokens", None):
                ai_provider_tokens_total.labels(
                    provider=self.name, operation=operation, token_type="prompt"
                ).inc(usage.prompt_tokens)
            if getattr(usage, "completion_tokens", None):
                ai_provider_tokens_total.labels(
                    provider=self.name, operation=operation, token_type="completion"
                ).inc(usage.completion_tokens)

        log_provider_request(logger, self.name, operation, duration_ms=duration * 1000)

        content = response.choices[0].message.content if response.choices else None
        if not content:
            ai_provider_failures_total.labels(provider=self.name, operation=operation).inc()
            raise UpstreamAIError("No content in AI response", provider=self.name, operation=operation)

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            ai_provider_failures_total.labels(provider=self.name, operation=operation).inc()
            log_provider_failure(logger, self.name, operation, f"invalid JSON: {e}")
            raise UpstreamAIError(
                "AI response was not valid JSON",
                provider=self.name,
                operation=operation,
                original_error=e,
            )

        if not isinstance(data, dict):
            ai_provider_failures_total.labels(provider=self.name, operation=operation).inc()
            raise UpstreamAIError("AI response was not a JSON object", provider=self.name, operation=operation)

        return data

    async def analyze_idea(self, tier: PromptTier, idea: str) -> Dict[str, Any]:
        """
        Generate market research for an idea at the given tier.

        Args:
            tier: Prompt tier (basic, standard, advanced)
            idea: Free-text product idea

        Returns:
            Analysis object containing at least the tier's required fields

        Raises:
            UpstreamAIError: If the call fails or fields are missing
        """
        strategy = get_analysis_strategy(tier)

        if len(idea) > MAX_IDEA_CHARS:
            idea = idea[:MAX_IDEA_CHARS]
            logger.warning(f"Idea truncated to {MAX_IDEA_CHARS} characters for analysis")

        data = await self._complete_json(
            operation="analyze_idea",
            system_prompt=strategy.system_prompt,
            user_prompt=analysis_user_prompt(idea),
            max_tokens=strategy.max_tokens,
        )

        missing = missing_fields(data, strategy.required_fields)
        if missing:
            ai_provider_failures_total.labels(provider=self.name, operation="analyze_idea").inc()
            log_provider_failure(logger, self.name, "analyze_idea", f"missing fields: {', '.join(missing)}")
            raise UpstreamAIError(
                "AI response was incomplete",
                provider=self.name,
                operation="analyze_idea",
            )

        return data

    async def generate_build_plan(
        self,
        idea: str,
        research: Dict[str, Any],
        platform: str,
    ) -> Dict[str, Any]:
        """
        Generate a phased build plan optimized for a builder platform.

        Raises:
            UpstreamAIError: If the call fails or the plan shape is wrong
        """
        data = await self._complete_json(
            operation="generate_build_plan",
            system_prompt=build_plan_system_prompt(platform),
            user_prompt=build_plan_user_prompt(idea, research, platform),
            max_tokens=3000,
        )

        missing = missing_fields(data, BUILD_PLAN_FIELDS)
        phases = data.get("phases")
        if not missing and (
            not isinstance(phases, list)
            or not all(isinstance(p, dict) and not missing_fields(p, BUILD_PHASE_FIELDS) for p in phases)
        ):
            missing = ["phases"]
        if missing:
            ai_provider_failures_total.labels(provider=self.name, operation="generate_build_plan").inc()
            log_provider_failure(logger, self.name, "generate_build_plan", f"missing fields: {', '.join(missing)}")
            raise UpstreamAIError(
                "AI build plan was incomplete",
                provider=self.name,
                operation="generate_build_plan",
            )

        return data
