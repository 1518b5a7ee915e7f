"""OpenAI-compatible chat completion adapters (OpenAI, Groq, Cerebras)."""
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, JsonValue, ValidationError

from llmgate.adapters.base import BaseProvider, PromptType
from llmgate.core.errors import ErrorCode, GenerationError
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
from llmgate.result import LLMResult, Usage, parse_tool_calls

DEFAULT_TEMPERATURE = 1.0
DEFAULT_MAX_TOKENS = 500
DEFAULT_SEED = 0
DEFAULT_TOP_P = 1.0


# === Request wire format ===

class OpenAITextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class OpenAIImageUrl(BaseModel):
    url: str


class OpenAIImagePart(BaseModel):
    type: Literal["image_url"] = "image_url"
    image_url: OpenAIImageUrl


OpenAIContentPart = Annotated[Union[OpenAITextPart, OpenAIImagePart], Field(discriminator="type")]


class OpenAIFunctionCall(BaseModel):
    name: str
    arguments: str


class OpenAIToolCallRef(BaseModel):
    id: str
    type: Literal["function"] = "function"
    function: OpenAIFunctionCall


class OpenAISystemMessage(BaseModel):
    role: Literal["system"] = "system"
    content: str
    name: Optional[str] = None


class OpenAIUserMessage(BaseModel):
    role: Literal["user"] = "user"
    content: List[OpenAIContentPart]
    name: Optional[str] = None


class OpenAIAssistantMessage(BaseModel):
    role: Literal["assistant"] = "assistant"
    content: Optional[List[OpenAIContentPart]] = None
    refusal: Optional[str] = None
    name: Optional[str] = None
    tool_calls: Optional[List[OpenAIToolCallRef]] = None


class OpenAIToolMessage(BaseModel):
    role: Literal["tool"] = "tool"
    content: str
    name: Optional[str] = None
    tool_call_id: Optional[str] = None


OpenAIRequestMessage = Annotated[
    Union[OpenAISystemMessage, OpenAIUserMessage, OpenAIAssistantMessage, OpenAIToolMessage],
    Field(discriminator="role"),
]


class OpenAIToolFunction(BaseModel):
    name: str
    description: str
    parameters: JsonValue


class OpenAITool(BaseModel):
    type: Literal["function"] = "function"
    function: OpenAIToolFunction


class OpenAIToolChoiceName(BaseModel):
    name: str


class OpenAIToolChoiceFunction(BaseModel):
    type: Literal["function"] = "function"
    function: OpenAIToolChoiceName


class OpenAIRequest(BaseModel):
    model: str
    stream: bool = False
    messages: List[OpenAIRequestMessage]
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    seed: int = DEFAULT_SEED
    top_p: float = DEFAULT_TOP_P
    tools: Optional[List[OpenAITool]] = None
    tool_choice: Optional[Union[Literal["required"], OpenAIToolChoiceFunction]] = None
    parallel_tool_calls: Optional[bool] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


def _lower_part(part: Union[TextContent, ImageContent]) -> Union[OpenAITextPart, OpenAIImagePart]:
    if isinstance(part, ImageContent):
        return OpenAIImagePart(image_url=OpenAIImageUrl(url=part.url))
    return OpenAITextPart(text=part.text)


def _lower_message(
    message: Union[SystemMessage, UserMessage, AssistantMessage, ToolMessage],
) -> Union[OpenAISystemMessage, OpenAIUserMessage, OpenAIAssistantMessage, OpenAIToolMessage]:
    """Translate one neutral message into its chat-completions counterpart."""
    if isinstance(message, SystemMessage):
        return OpenAISystemMessage(content=message.content, name=message.name)
    if isinstance(message, UserMessage):
        return OpenAIUserMessage(content=[_lower_part(p) for p in message.content], name=message.name)
    if isinstance(message, AssistantMessage):
        content = None
        if message.content is not None:
            content = [_lower_part(p) for p in message.content]
        tool_calls = None
        if message.tool_calls:
            tool_calls = [
                OpenAIToolCallRef(
                    id=call.id,
                    function=OpenAIFunctionCall(name=call.function.name, arguments=call.function.arguments),
                )
                for call in message.tool_calls
            ]
        return OpenAIAssistantMessage(
            content=content,
            refusal=message.refusal,
            name=message.name,
            tool_calls=tool_calls,
        )
    if isinstance(message, ToolMessage):
        return OpenAIToolMessage(
            content="\n".join(message.content),
            name=message.name,
            tool_call_id=message.tool_call_id or message.name,
        )
    raise TypeError(f"Unsupported message type: {type(message).__name__}")


# === Response wire format ===

class OpenAIResponseFunction(BaseModel):
    name: Optional[str] = None
    arguments: Optional[str] = None


class OpenAIResponseToolCall(BaseModel):
    id: Optional[str] = None
    type: Optional[str] = None
    function: Optional[OpenAIResponseFunction] = None


class OpenAIResponseMessage(BaseModel):
    role: str = "assistant"
    content: Optional[str] = None
    refusal: Optional[str] = None
    tool_calls: Optional[List[OpenAIResponseToolCall]] = None


class OpenAIResponseChoice(BaseModel):
    index: int = 0
    finish_reason: Optional[str] = None
    message: OpenAIResponseMessage


class OpenAIResponseUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class OpenAIGenerateResponse(BaseModel):
    id: Optional[str] = None
    object: Optional[str] = None
    created: Optional[int] = None
    model: Optional[str] = None
    system_fingerprint: Optional[str] = None
    choices: List[OpenAIResponseChoice]
    usage: Optional[OpenAIResponseUsage] = None
    time_info: Optional[Dict[str, Any]] = None

    def to_result(self, provider: Optional[str] = None) -> LLMResult:
        """Normalize the first choice into an LLMResult."""
        usage = None
        if self.usage is not None:
            usage = Usage(
                input_tokens=self.usage.prompt_tokens,
                output_tokens=self.usage.completion_tokens,
                total_tokens=self.usage.total_tokens,
            )

        if not self.choices:
            return LLMResult.no_response(usage=usage, model=self.model)

        message = self.choices[0].message
        raw_calls = [call.model_dump() for call in message.tool_calls or []]
        tool_calls = parse_tool_calls(raw_calls, provider)
        return LLMResult.from_parts(message.content, tool_calls, usage=usage, model=self.model)


# === Providers ===

class OpenAIProvider(BaseProvider):
    """OpenAI chat completions API."""

    name = "openai"
    path = "/v1/chat/completions"

    def build_request(self, prompt: PromptType) -> OpenAIRequest:
        """Lower a neutral prompt into a chat-completions request."""
        messages: List[Any] = [OpenAISystemMessage(content=prompt.system)]
        if isinstance(prompt, SimplePrompt):
            messages.append(OpenAIUserMessage(content=[OpenAITextPart(text=prompt.user)]))
        else:
            messages.extend(_lower_message(m) for m in prompt.messages)

        tools = None
        tool_choice = None
        parallel_tool_calls = None
        if prompt.has_tools:
            tools = [
                OpenAITool(function=OpenAIToolFunction(
                    name=tool.name,
                    description=tool.description,
                    parameters=tool.input_schema,
                ))
                for tool in prompt.tools
            ]
            choice = prompt.effective_tool_choice
            if choice is not None:
                if isinstance(choice, ToolChoiceAny):
                    tool_choice = "required"
                elif isinstance(choice, ToolChoiceTool):
                    tool_choice = OpenAIToolChoiceFunction(function=OpenAIToolChoiceName(name=choice.name))
                if choice.disable_parallel_tool_use is not None:
                    parallel_tool_calls = not choice.disable_parallel_tool_use

        return OpenAIRequest(
            model=self.model,
            stream=self._sampling("stream", False),
            messages=messages,
            temperature=self._sampling("temperature", DEFAULT_TEMPERATURE),
            max_tokens=self._sampling("max_tokens", DEFAULT_MAX_TOKENS),
            seed=self._sampling("seed", DEFAULT_SEED),
            top_p=self._sampling("top_p", DEFAULT_TOP_P),
            tools=tools,
            tool_choice=tool_choice,
            parallel_tool_calls=parallel_tool_calls,
        )

    def _auth_headers(self) -> Dict[str, str]:
        return {
            **self._default_headers(),
            "Authorization": f"Bearer {self.api_key}",
        }

    async def generate(self, prompt: PromptType) -> LLMResult:
        try:
            request = self.build_request(prompt)
        except (ValidationError, TypeError) as e:
            logger.error(f"Could not build {self.name} request: {e}")
            raise GenerationError(f"Could not build {self.name} request", ErrorCode.REQUEST_BUILD, self.name) from e

        data = await self._post_json(self.endpoint, request.to_payload(), headers=self._auth_headers())
        response = self._parse_response(OpenAIGenerateResponse, data)
        return response.to_result(self.name)


class GroqProvider(OpenAIProvider):
    """Groq's OpenAI-compatible endpoint."""

    name = "groq"
    path = "/openai/v1/chat/completions"


class CerebrasProvider(OpenAIProvider):
    """Cerebras inference, OpenAI-compatible."""

    name = "cerebras"
    path = "/v1/chat/completions"
