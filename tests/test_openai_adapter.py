"""Tests for the OpenAI-compatible adapters."""
import json

import httpx
import pytest

from llmgate.adapters import CerebrasProvider, Credentials, GroqProvider, ModelConfig, OpenAIProvider
from llmgate.core.config import GatewayConfig
from llmgate.core.errors import ErrorCode, GenerationError, ToolArgumentError
from llmgate.prompt import (
    AssistantMessage,
    AssistantToolCall,
    ImageContent,
    MessagesPrompt,
    SimplePrompt,
    SystemMessage,
    TextContent,
    Tool,
    ToolChoiceAny,
    ToolChoiceAuto,
    ToolChoiceTool,
    ToolFunctionCall,
    ToolMessage,
    UserMessage,
)
from llmgate.result import NO_RESPONSE_MESSAGE, ResultKind


def _hello_response():
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "model": "gpt-4o-mini",
        "choices": [{"index": 0, "message": {"content": "hello", "role": "assistant"}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 9, "completion_tokens": 1, "total_tokens": 10},
    }


@pytest.fixture
def weather_tool(weather_tool_schema):
    return Tool(name="get_weather", description="Get the weather", input_schema=weather_tool_schema)


class TestOpenAIRequest:
    """Lowering of neutral prompts into chat-completions payloads."""

    def test_simple_prompt_has_system_then_user(self, openai_gateway, make_client):
        provider = OpenAIProvider(openai_gateway, client=make_client())
        payload = provider.build_request(SimplePrompt(system="You are terse.", user="Hi")).to_payload()

        assert payload["messages"] == [
            {"role": "system", "content": "You are terse."},
            {"role": "user", "content": [{"type": "text", "text": "Hi"}]},
        ]
        assert payload["model"] == "gpt-4o-mini"
        assert payload["stream"] is False
        assert payload["temperature"] == 1.0
        assert payload["max_tokens"] == 500
        assert payload["seed"] == 0
        assert payload["top_p"] == 1.0
        assert "tools" not in payload
        assert "tool_choice" not in payload

    def test_model_config_overrides_sampling(self, openai_gateway, make_client):
        config = ModelConfig(model="gpt-4o", temperature=0.2, max_tokens=64, seed=7, top_p=0.9)
        provider = OpenAIProvider(openai_gateway, config, client=make_client())
        payload = provider.build_request(SimplePrompt(system="s", user="u")).to_payload()

        assert payload["model"] == "gpt-4o"
        assert payload["temperature"] == 0.2
        assert payload["max_tokens"] == 64
        assert payload["seed"] == 7
        assert payload["top_p"] == 0.9

    def test_messages_are_lowered_in_order(self, openai_gateway, make_client):
        prompt = MessagesPrompt(system="sys", messages=[
            UserMessage(content=[
                TextContent(text="What is in this image?"),
                ImageContent(url="https://img.test/cat.png"),
            ]),
            AssistantMessage(tool_calls=[
                AssistantToolCall(id="call_1", function=ToolFunctionCall(name="lookup", arguments='{"q": "cat"}')),
            ]),
            ToolMessage(content=["a cat", "sitting"], name="lookup", tool_call_id="call_1"),
            SystemMessage(content="answer briefly"),
        ])
        provider = OpenAIProvider(GatewayConfig(base_url="https://x.test"), client=make_client())
        messages = provider.build_request(prompt).to_payload()["messages"]

        assert [m["role"] for m in messages] == ["system", "user", "assistant", "tool", "system"]
        assert messages[1]["content"][1] == {"type": "image_url", "image_url": {"url": "https://img.test/cat.png"}}
        assert messages[2]["tool_calls"] == [
            {"id": "call_1", "type": "function", "function": {"name": "lookup", "arguments": '{"q": "cat"}'}}
        ]
        assert messages[3] == {"role": "tool", "content": "a cat\nsitting", "name": "lookup", "tool_call_id": "call_1"}

    def test_tools_are_declared_as_functions(self, openai_gateway, make_client, weather_tool, weather_tool_schema):
        provider = OpenAIProvider(openai_gateway, client=make_client())
        payload = provider.build_request(SimplePrompt(system="s", user="u", tools=[weather_tool])).to_payload()

        assert payload["tools"] == [{
            "type": "function",
            "function": {"name": "get_weather", "description": "Get the weather", "parameters": weather_tool_schema},
        }]
        # Auto is the vendor default and is left out
        assert "tool_choice" not in payload

    def test_tool_choice_without_tools_is_dropped(self, openai_gateway, make_client):
        provider = OpenAIProvider(openai_gateway, client=make_client())
        prompt = SimplePrompt(system="s", user="u", tool_choice=ToolChoiceTool(name="get_weather"))
        payload = provider.build_request(prompt).to_payload()
        assert "tool_choice" not in payload
        assert "parallel_tool_calls" not in payload

    def test_tool_choice_mapping(self, openai_gateway, make_client, weather_tool):
        provider = OpenAIProvider(openai_gateway, client=make_client())

        required = provider.build_request(SimplePrompt(
            system="s", user="u", tools=[weather_tool], tool_choice=ToolChoiceAny(),
        )).to_payload()
        assert required["tool_choice"] == "required"

        named = provider.build_request(SimplePrompt(
            system="s", user="u", tools=[weather_tool], tool_choice=ToolChoiceTool(name="get_weather"),
        )).to_payload()
        assert named["tool_choice"] == {"type": "function", "function": {"name": "get_weather"}}

    def test_disable_parallel_tool_use(self, openai_gateway, make_client, weather_tool):
        provider = OpenAIProvider(openai_gateway, client=make_client())
        payload = provider.build_request(SimplePrompt(
            system="s", user="u", tools=[weather_tool],
            tool_choice=ToolChoiceAuto(disable_parallel_tool_use=True),
        )).to_payload()
        assert payload["parallel_tool_calls"] is False


class TestOpenAIGenerate:
    """End-to-end generate calls against a mocked HTTP client."""

    @pytest.mark.asyncio
    async def test_hello(self, openai_gateway, make_client):
        client = make_client(_hello_response())
        provider = OpenAIProvider(openai_gateway, client=client)

        result = await provider.generate(SimplePrompt(system="s", user="Say hello"))

        assert result.message == "hello"
        assert result.tool_calls == []
        assert result.result_kind == ResultKind.TEXT
        assert result.usage.total_tokens == 10
        assert result.model == "gpt-4o-mini"
        client.post.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_endpoint_and_headers(self, openai_gateway, make_client):
        client = make_client(_hello_response())
        config = ModelConfig(credentials=Credentials(api_key="call-key"), base_url="https://proxy.test/")
        provider = OpenAIProvider(openai_gateway, config, client=client)

        await provider.generate(SimplePrompt(system="s", user="u"))

        args, kwargs = client.post.call_args
        assert args[0] == "https://proxy.test/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer call-key"
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert kwargs["headers"]["User-Agent"] == "llmgate"

    @pytest.mark.asyncio
    async def test_gateway_key_used_without_credentials(self, openai_gateway, make_client):
        client = make_client(_hello_response())
        provider = OpenAIProvider(openai_gateway, client=client)
        await provider.generate(SimplePrompt(system="s", user="u"))
        assert client.post.call_args.kwargs["headers"]["Authorization"] == "Bearer global-key"

    @pytest.mark.asyncio
    async def test_tool_calls_are_parsed(self, openai_gateway, make_client):
        client = make_client({
            "choices": [{"message": {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {"id": "call_1", "type": "function", "function": {"name": "get_weather", "arguments": '{"location": "Paris"}'}},
                    {"id": "call_2", "type": "function", "function": {"arguments": "{}"}},
                ],
            }}],
        })
        provider = OpenAIProvider(openai_gateway, client=client)

        result = await provider.generate(SimplePrompt(system="s", user="Weather in Paris?"))

        assert result.result_kind == ResultKind.TOOL_CALLS
        assert len(result.tool_calls) == 1
        assert result.tool_calls[0].name == "get_weather"
        assert result.tool_calls[0].input == {"location": "Paris"}

    @pytest.mark.asyncio
    async def test_malformed_tool_arguments_fail_the_call(self, openai_gateway, make_client):
        client = make_client({
            "choices": [{"message": {"tool_calls": [
                {"id": "call_1", "type": "function", "function": {"name": "f", "arguments": "{oops"}},
            ]}}],
        })
        provider = OpenAIProvider(openai_gateway, client=client)

        with pytest.raises(ToolArgumentError) as excinfo:
            await provider.generate(SimplePrompt(system="s", user="u"))
        assert excinfo.value.provider == "openai"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tool_call", [
        {"id": 7, "type": "function", "function": {"name": "f", "arguments": "{}"}},
        {"id": "call_1", "type": "function", "function": {"name": ["f"], "arguments": "{}"}},
        {"id": "call_1", "type": "function", "function": {"name": "f", "arguments": {"a": 1}}},
    ])
    async def test_mistyped_tool_call_fields_are_decode_errors(self, openai_gateway, make_client, tool_call):
        client = make_client({"choices": [{"message": {"role": "assistant", "tool_calls": [tool_call]}}]})
        provider = OpenAIProvider(openai_gateway, client=client)

        with pytest.raises(GenerationError) as excinfo:
            await provider.generate(SimplePrompt(system="s", user="u"))

        assert excinfo.value.code == ErrorCode.DECODE
        assert excinfo.value.provider == "openai"

    @pytest.mark.asyncio
    async def test_empty_choices_yield_sentinel(self, openai_gateway, make_client):
        provider = OpenAIProvider(openai_gateway, client=make_client({"choices": []}))
        result = await provider.generate(SimplePrompt(system="s", user="u"))
        assert result.message == NO_RESPONSE_MESSAGE
        assert result.result_kind == ResultKind.ERROR

    @pytest.mark.asyncio
    async def test_null_content_yields_sentinel(self, openai_gateway, make_client):
        provider = OpenAIProvider(openai_gateway, client=make_client({"choices": [{"message": {"content": None}}]}))
        result = await provider.generate(SimplePrompt(system="s", user="u"))
        assert result.message == NO_RESPONSE_MESSAGE

    @pytest.mark.asyncio
    async def test_http_error_status(self, openai_gateway, make_client):
        provider = OpenAIProvider(openai_gateway, client=make_client({"error": "bad"}, status_code=500))
        with pytest.raises(GenerationError) as excinfo:
            await provider.generate(SimplePrompt(system="s", user="u"))
        assert excinfo.value.code == ErrorCode.HTTP_STATUS
        assert excinfo.value.provider == "openai"

    @pytest.mark.asyncio
    async def test_transport_error(self, openai_gateway, make_client):
        provider = OpenAIProvider(openai_gateway, client=make_client(exc=httpx.ConnectError("connection refused")))
        with pytest.raises(GenerationError) as excinfo:
            await provider.generate(SimplePrompt(system="s", user="u"))
        assert excinfo.value.code == ErrorCode.TRANSPORT

    @pytest.mark.asyncio
    async def test_non_json_body(self, openai_gateway, make_client):
        client = make_client()
        client.post.return_value.json.side_effect = json.JSONDecodeError("Expecting value", "<html>", 0)
        provider = OpenAIProvider(openai_gateway, client=client)
        with pytest.raises(GenerationError) as excinfo:
            await provider.generate(SimplePrompt(system="s", user="u"))
        assert excinfo.value.code == ErrorCode.DECODE

    @pytest.mark.asyncio
    async def test_unexpected_schema(self, openai_gateway, make_client):
        provider = OpenAIProvider(openai_gateway, client=make_client({"object": "chat.completion"}))
        with pytest.raises(GenerationError) as excinfo:
            await provider.generate(SimplePrompt(system="s", user="u"))
        assert excinfo.value.code == ErrorCode.DECODE


class TestCompatibleVendors:
    """Groq and Cerebras share the OpenAI wire format."""

    @pytest.mark.asyncio
    async def test_groq_endpoint(self, make_client):
        client = make_client(_hello_response())
        gateway = GatewayConfig(base_url="https://api.groq.test", api_key="groq-key", default_model="llama-3.1-8b-instant")
        provider = GroqProvider(gateway, client=client)

        result = await provider.generate(SimplePrompt(system="s", user="u"))

        assert result.message == "hello"
        args, kwargs = client.post.call_args
        assert args[0] == "https://api.groq.test/openai/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer groq-key"
        assert kwargs["json"]["model"] == "llama-3.1-8b-instant"

    @pytest.mark.asyncio
    async def test_cerebras_endpoint(self, make_client):
        client = make_client(_hello_response())
        provider = CerebrasProvider(GatewayConfig(base_url="https://api.cerebras.test"), client=client)

        await provider.generate(SimplePrompt(system="s", user="u"))

        assert client.post.call_args.args[0] == "https://api.cerebras.test/v1/chat/completions"
