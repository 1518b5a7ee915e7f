"""Provider adapters translating neutral prompts to vendor wire formats.

Every adapter exposes the same ``async generate(prompt) -> LLMResult`` call.
"""

from __future__ import annotations

from .anthropic import AnthropicProvider
from .base import BaseProvider, Credentials, ModelConfig, build_http_client
from .gemini import GeminiProvider
from .huggingface import HuggingFaceProvider
from .openai import CerebrasProvider, GroqProvider, OpenAIProvider

__all__ = [
    "AnthropicProvider",
    "BaseProvider",
    "CerebrasProvider",
    "Credentials",
    "GeminiProvider",
    "GroqProvider",
    "HuggingFaceProvider",
    "ModelConfig",
    "OpenAIProvider",
    "build_http_client",
]
