"""
AI provider abstraction module.
Provides a unified interface for multiple LLM providers.
"""
from ideaboard.ai.factory import get_llm_provider, get_provider_name
from ideaboard.ai.base import LLMProvider

__all__ = ["get_llm_provider", "get_provider_name", "LLMProvider"]
