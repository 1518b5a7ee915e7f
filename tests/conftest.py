"""Shared fixtures for llmgate tests."""
from typing import Any, Optional
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from llmgate.core.config import GatewayConfig, GatewaysConfig


def _build_client(payload: Any = None, status_code: int = 200, exc: Optional[Exception] = None) -> AsyncMock:
    """AsyncMock standing in for httpx.AsyncClient; ``post`` returns a canned response."""
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload

    if status_code >= 400:
        request = httpx.Request("POST", "https://gateway.test")
        real_response = httpx.Response(status_code, request=request)
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            f"HTTP {status_code}", request=request, response=real_response
        )
    else:
        response.raise_for_status = Mock()

    client = AsyncMock()
    if exc is not None:
        client.post.side_effect = exc
    else:
        client.post.return_value = response
    return client


@pytest.fixture
def make_client():
    """Factory fixture building mock HTTP clients."""
    return _build_client


@pytest.fixture
def openai_gateway():
    return GatewayConfig(base_url="https://api.openai.test", api_key="global-key", default_model="gpt-4o-mini")


@pytest.fixture
def anthropic_gateway():
    return GatewayConfig(base_url="https://api.anthropic.test/", api_key="anthropic-key", default_model="claude-3-5-sonnet-20240620")


@pytest.fixture
def gemini_gateway():
    return GatewayConfig(base_url="https://gemini.test", api_key="gemini-key", default_model="gemini-pro")


@pytest.fixture
def gateways(openai_gateway, anthropic_gateway, gemini_gateway):
    """Registry with every vendor configured."""
    return GatewaysConfig(registry={
        "openai_gateway": openai_gateway,
        "anthropic_gateway": anthropic_gateway,
        "gemini_gateway": gemini_gateway,
        "groq_gateway": GatewayConfig(base_url="https://api.groq.test", api_key="groq-key", default_model="llama-3.1-8b-instant"),
        "cerebras_gateway": GatewayConfig(base_url="https://api.cerebras.test", api_key="cerebras-key", default_model="llama3.1-8b"),
    })


@pytest.fixture
def weather_tool_schema():
    return {
        "type": "object",
        "properties": {"location": {"type": "string", "description": "City and state"}},
        "required": ["location"],
    }
