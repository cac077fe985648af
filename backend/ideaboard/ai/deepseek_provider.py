"""
DeepSeek provider implementation.
DeepSeek exposes an OpenAI-compatible API, so the OpenAI SDK is reused
with a different base URL and model.
"""
from typing import Optional

from ideaboard.ai.openai_provider import OpenAIProvider
from ideaboard.config import settings


class DeepSeekProvider(OpenAIProvider):
    """DeepSeek LLM provider (deepseek-chat via the OpenAI-compatible endpoint)."""

    name = "deepseek"
    base_url = "https://api.deepseek.com"

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        super().__init__(
            api_key=api_key if api_key is not None else settings.deepseek_api_key,
            model=model or settings.deepseek_model,
            base_url=self.base_url,
        )
