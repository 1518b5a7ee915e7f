"""llmgate - one prompt model, many LLM backends."""

from llmgate.adapters import BaseProvider, Credentials, ModelConfig
from llmgate.core.errors import (
    ConfigError,
    ErrorCode,
    FactoryError,
    GatewayError,
    GenerationError,
    ToolArgumentError,
)
from llmgate.factory import ProviderFactory, ProviderRegistry, create_provider
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
    ToolChoiceRequired,
    ToolChoiceTool,
    ToolFunctionCall,
    ToolMessage,
    UserMessage,
    parse_prompt,
)
from llmgate.result import NO_RESPONSE_MESSAGE, LLMResult, ResultKind, ToolCall, Usage

__all__ = [
    "AssistantMessage",
    "AssistantToolCall",
    "BaseProvider",
    "ConfigError",
    "Credentials",
    "ErrorCode",
    "FactoryError",
    "GatewayError",
    "GenerationError",
    "ImageContent",
    "LLMResult",
    "MessagesPrompt",
    "ModelConfig",
    "NO_RESPONSE_MESSAGE",
    "ProviderFactory",
    "ProviderRegistry",
    "ResultKind",
    "SimplePrompt",
    "SystemMessage",
    "TextContent",
    "Tool",
    "ToolArgumentError",
    "ToolCall",
    "ToolChoiceAny",
    "ToolChoiceAuto",
    "ToolChoiceRequired",
    "ToolChoiceTool",
    "ToolFunctionCall",
    "ToolMessage",
    "Usage",
    "UserMessage",
    "create_provider",
    "parse_prompt",
]
