"""Anthropic Messages API adapter."""
import json
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, JsonValue, ValidationError

from llmgate.adapters.base import BaseProvider, PromptType
from llmgate.core.errors import ErrorCode, GenerationError, ToolArgumentError
from llmgate.core.logging import logger
from llmgate.prompt import (
    AssistantMessage,
    ImageContent,
    SimplePrompt,
    SystemMessage,
    TextContent,
    ToolChoiceAny,
    ToolChoiceTool,
    ToolMessage,
    UserMessage,
)
from llmgate.result import LLMResult, Usage

ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_TEMPERATURE = 1.0
DEFAULT_MAX_TOKENS = 500
DEFAULT_TOP_P = 1.0

STOP_REASONS = {"end_turn", "max_tokens", "stop_sequence", "tool_use"}


# === Request wire format ===

class AnthropicTextBlock(BaseModel):
    type: Literal["text"] = "text"
    text: str


class AnthropicImageSource(BaseModel):
    type: Literal["url", "base64"] = "url"
    url: Optional[str] = None
    media_type: Optional[str] = None
    data: Optional[str] = None


class AnthropicImageBlock(BaseModel):
    type: Literal["image"] = "image"
    source: AnthropicImageSource


class AnthropicToolUseBlock(BaseModel):
    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: JsonValue = None


class AnthropicToolResultBlock(BaseModel):
    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: Optional[str] = None


AnthropicContentBlock = Annotated[
    Union[AnthropicTextBlock, AnthropicImageBlock, AnthropicToolUseBlock, AnthropicToolResultBlock],
    Field(discriminator="type"),
]


class AnthropicMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: List[AnthropicContentBlock]


class AnthropicTool(BaseModel):
    name: str
    description: str
    input_schema: JsonValue


class AnthropicToolChoice(BaseModel):
    type: Literal["auto", "any", "tool"]
    name: Optional[str] = None
    disable_parallel_tool_use: Optional[bool] = None


class AnthropicRequest(BaseModel):
    model: str
    system: str
    messages: List[AnthropicMessage]
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    top_p: float = DEFAULT_TOP_P
    stream: bool = False
    tools: Optional[List[AnthropicTool]] = None
    tool_choice: Optional[AnthropicToolChoice] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


def _image_block(part: ImageContent) -> AnthropicImageBlock:
    # data:<media_type>;base64,<data>
    if part.url.startswith("data:") and ";base64," in part.url:
        header, data = part.url[len("data:"):].split(";base64,", 1)
        return AnthropicImageBlock(source=AnthropicImageSource(
            type="base64",
            media_type=header or part.content_type,
            data=data,
        ))
    return AnthropicImageBlock(source=AnthropicImageSource(type="url", url=part.url))


def _content_blocks(parts: Optional[List[Union[TextContent, ImageContent]]]) -> List[Any]:
    blocks: List[Any] = []
    for part in parts or []:
        if isinstance(part, ImageContent):
            blocks.append(_image_block(part))
        else:
            blocks.append(AnthropicTextBlock(text=part.text))
    return blocks


def _tool_use_blocks(message: AssistantMessage, provider: str) -> List[AnthropicToolUseBlock]:
    blocks = []
    for call in message.tool_calls or []:
        try:
            arguments = json.loads(call.function.arguments)
        except json.JSONDecodeError as e:
            raise ToolArgumentError(
                f"Tool call '{call.function.name}' has malformed arguments: {e}",
                raw_arguments=call.function.arguments,
                provider=provider,
            ) from e
        blocks.append(AnthropicToolUseBlock(id=call.id, name=call.function.name, input=arguments))
    return blocks


# === Response wire format ===

class AnthropicResponseContent(BaseModel):
    type: str
    text: Optional[str] = None
    id: Optional[str] = None
    name: Optional[str] = None
    input: Optional[JsonValue] = None


class AnthropicUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0


class AnthropicGenerateResponse(BaseModel):
    id: Optional[str] = None
    type: Optional[str] = None
    role: Optional[str] = None
    model: Optional[str] = None
    content: List[AnthropicResponseContent]
    stop_reason: Optional[str] = None
    stop_sequence: Optional[str] = None
    usage: Optional[AnthropicUsage] = None

    def to_result(self) -> LLMResult:
        """
        Normalize the first content block into an LLMResult.

        Every stop reason, ``tool_use`` included, extracts the text of the
        first block. ``tool_use`` blocks are not turned into tool calls.
        """
        usage = None
        if self.usage is not None:
            usage = Usage(
                input_tokens=self.usage.input_tokens,
                output_tokens=self.usage.output_tokens,
                total_tokens=self.usage.input_tokens + self.usage.output_tokens,
            )

        if not self.content:
            return LLMResult.no_response(usage=usage, model=self.model)

        if self.stop_reason is not None and self.stop_reason not in STOP_REASONS:
            logger.warning(f"Unknown Anthropic stop_reason '{self.stop_reason}'")
        elif self.stop_reason == "tool_use":
            logger.debug("Anthropic stopped for tool_use; returning text of the first content block")

        return LLMResult.from_parts(self.content[0].text, usage=usage, model=self.model)


# === Provider ===

class AnthropicProvider(BaseProvider):
    """Anthropic Messages API (Claude models)."""

    name = "anthropic"
    path = "/v1/messages"

    def build_request(self, prompt: PromptType) -> AnthropicRequest:
        """Lower a neutral prompt into a Messages API request."""
        system_parts = [prompt.system]
        messages: List[AnthropicMessage] = []

        if isinstance(prompt, SimplePrompt):
            messages.append(AnthropicMessage(role="user", content=[AnthropicTextBlock(text=prompt.user)]))
        else:
            for message in prompt.messages:
                if isinstance(message, SystemMessage):
                    # Anthropic takes no system role inside messages
                    system_parts.append(message.content)
                elif isinstance(message, UserMessage):
                    messages.append(AnthropicMessage(role="user", content=_content_blocks(message.content)))
                elif isinstance(message, AssistantMessage):
                    blocks = _content_blocks(message.content) + _tool_use_blocks(message, self.name)
                    if not blocks:
                        logger.debug("Dropping empty assistant message")
                        continue
                    messages.append(AnthropicMessage(role="assistant", content=blocks))
                elif isinstance(message, ToolMessage):
                    messages.append(AnthropicMessage(role="user", content=[AnthropicToolResultBlock(
                        tool_use_id=message.tool_call_id or message.name,
                        content="\n".join(message.content),
                    )]))

        tools = None
        tool_choice = None
        if prompt.has_tools:
            tools = [
                AnthropicTool(name=tool.name, description=tool.description, input_schema=tool.input_schema)
                for tool in prompt.tools
            ]
            choice = prompt.effective_tool_choice
            if choice is not None:
                parallel = choice.disable_parallel_tool_use
                if isinstance(choice, ToolChoiceTool):
                    tool_choice = AnthropicToolChoice(type="tool", name=choice.name, disable_parallel_tool_use=parallel)
                elif isinstance(choice, ToolChoiceAny):
                    tool_choice = AnthropicToolChoice(type="any", disable_parallel_tool_use=parallel)
                else:
                    tool_choice = AnthropicToolChoice(type="auto", disable_parallel_tool_use=parallel)

        return AnthropicRequest(
            model=self.model,
            system="\n".join(system_parts),
            messages=messages,
            max_tokens=self._sampling("max_tokens", DEFAULT_MAX_TOKENS),
            temperature=self._sampling("temperature", DEFAULT_TEMPERATURE),
            top_p=self._sampling("top_p", DEFAULT_TOP_P),
            stream=self._sampling("stream", False),
            tools=tools,
            tool_choice=tool_choice,
        )

    def _auth_headers(self) -> Dict[str, str]:
        return {
            **self._default_headers(),
            "x-api-key": self.api_key,
            "anthropic-version": self.config.version or ANTHROPIC_VERSION,
        }

    async def generate(self, prompt: PromptType) -> LLMResult:
        try:
            request = self.build_request(prompt)
        except (ValidationError, TypeError) as e:
            logger.error(f"Could not build {self.name} request: {e}")
            raise GenerationError(f"Could not build {self.name} request", ErrorCode.REQUEST_BUILD, self.name) from e

        data = await self._post_json(self.endpoint, request.to_payload(), headers=self._auth_headers())
        response = self._parse_response(AnthropicGenerateResponse, data)
        return response.to_result()
