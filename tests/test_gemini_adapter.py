"""Tests for the Gemini adapter and the Hugging Face placeholder."""
import pytest

from llmgate.adapters import GeminiProvider, HuggingFaceProvider, ModelConfig
from llmgate.core.config import GatewayConfig
from llmgate.core.errors import ErrorCode, GenerationError
from llmgate.prompt import MessagesPrompt, SimplePrompt, UserMessage
from llmgate.result import NO_RESPONSE_MESSAGE, ResultKind


class TestGeminiProvider:

    @pytest.mark.asyncio
    async def test_generate(self, gemini_gateway, make_client):
        client = make_client({
            "candidates": [{"content": {"role": "model", "parts": [{"text": "Bonjour"}]}, "finishReason": "STOP"}],
            "usageMetadata": {"promptTokenCount": 4, "candidatesTokenCount": 1, "totalTokenCount": 5},
        })
        provider = GeminiProvider(gemini_gateway, client=client)

        result = await provider.generate(SimplePrompt(system="Translate to French.", user="Hello"))

        assert result.message == "Bonjour"
        assert result.result_kind == ResultKind.TEXT
        assert result.usage.total_tokens == 5

        args, kwargs = client.post.call_args
        assert args[0] == "https://gemini.test/v1beta/models/gemini-pro:generateContent"
        assert kwargs["params"] == {"key": "gemini-key"}
        assert kwargs["json"]["contents"] == [{"parts": [{"text": "Translate to French.\nHello"}]}]
        assert kwargs["json"]["generationConfig"] == {"temperature": 1.0, "maxOutputTokens": 500, "topP": 1.0}

    @pytest.mark.asyncio
    async def test_model_override_in_endpoint(self, gemini_gateway, make_client):
        client = make_client({"candidates": [{"content": {"parts": [{"text": "ok"}]}}]})
        provider = GeminiProvider(gemini_gateway, ModelConfig(model="gemini-1.5-flash", max_tokens=32), client=client)

        await provider.generate(SimplePrompt(system="s", user="u"))

        args, kwargs = client.post.call_args
        assert args[0].endswith("/models/gemini-1.5-flash:generateContent")
        assert kwargs["json"]["generationConfig"]["maxOutputTokens"] == 32

    @pytest.mark.asyncio
    async def test_messages_prompt_rejected_before_send(self, gemini_gateway, make_client):
        client = make_client()
        provider = GeminiProvider(gemini_gateway, client=client)

        with pytest.raises(GenerationError) as excinfo:
            await provider.generate(MessagesPrompt(system="s", messages=[UserMessage.from_text("hi")]))

        assert excinfo.value.code == ErrorCode.UNSUPPORTED_PROMPT
        client.post.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {},
        {"candidates": []},
        {"candidates": [{"finishReason": "SAFETY"}]},
        {"candidates": [{"content": {"parts": []}}]},
    ])
    async def test_missing_text_yields_sentinel(self, gemini_gateway, make_client, payload):
        provider = GeminiProvider(gemini_gateway, client=make_client(payload))
        result = await provider.generate(SimplePrompt(system="s", user="u"))
        assert result.message == NO_RESPONSE_MESSAGE
        assert result.result_kind == ResultKind.ERROR


class TestHuggingFaceProvider:

    @pytest.mark.asyncio
    async def test_returns_placeholder_without_request(self, make_client):
        client = make_client()
        provider = HuggingFaceProvider(GatewayConfig(base_url=""), client=client)

        result = await provider.generate(SimplePrompt(system="s", user="u"))

        assert result.message == "Static!"
        assert result.result_kind == ResultKind.TEXT
        client.post.assert_not_called()
