"""
Base class for LLM providers.
All providers must implement this interface to ensure compatibility.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict

from ideaboard.services.plan_registry import PromptTier


class LLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    This interface lets the generation gate use any provider without
    knowing which one is configured.

    All providers must implement:
    - analyze_idea(): Market research for an idea at a given prompt tier
    - generate_build_plan(): Phased build plan for a chosen platform
    """

    name: str = "unknown"

    @abstractmethod
    async def analyze_idea(self, tier: PromptTier, idea: str) -> Dict[str, Any]:
        """
        Generate a structured market analysis for an idea.

        Args:
            tier: Prompt tier selected from the user's plan
            idea: Free-text product idea

        Returns:
            JSON object whose fields depend on the tier

        Raises:
            UpstreamAIError: If the provider fails or the response is malformed
        """
        pass

    @abstractmethod
    async def generate_build_plan(
        self,
        idea: str,
        research: Dict[str, Any],
        platform: str,
    ) -> Dict[str, Any]:
        """
        Generate a phased build plan with copy/paste prompts.

        Args:
            idea: Free-text product idea
            research: Analysis previously returned by analyze_idea
            platform: Target builder platform (e.g., "Lovable")

        Returns:
            JSON object with summary, features and phases

        Raises:
            UpstreamAIError: If the provider fails or the response is malformed
        """
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """
        Check if provider is properly configured (API key present, etc.).

        Returns:
            True if provider can be used, False otherwise
        """
        pass
