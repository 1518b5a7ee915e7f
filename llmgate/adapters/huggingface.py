"""Hugging Face text-generation-inference adapter (placeholder)."""
from llmgate.adapters.base import BaseProvider, PromptType
from llmgate.result import LLMResult

PLACEHOLDER_MESSAGE = "Static!"


class HuggingFaceProvider(BaseProvider):
    """Stub provider that can be wired to a TGI endpoint later. Sends no request."""

    name = "huggingface"

    async def generate(self, prompt: PromptType) -> LLMResult:
        return LLMResult.text(PLACEHOLDER_MESSAGE, model=self.model or None)
