"""Vendor-neutral prompt, message and tool model."""
import json
from typing import Annotated, Any, List, Literal, Optional, Type, Union

from pydantic import (
    BaseModel,
    Field,
    JsonValue,
    TypeAdapter,
    field_validator,
    model_validator,
)


# === Content parts ===

class TextContent(BaseModel):
    """Plain text part of a message."""
    type: Literal["text"] = "text"
    text: str


class ImageContent(BaseModel):
    """Image part referenced by URL (http(s) or data: URI)."""
    type: Literal["image"] = "image"
    content_type: str = Field("image/png", description="MIME type of the image")
    url: str


UserContent = Annotated[Union[TextContent, ImageContent], Field(discriminator="type")]
AssistantContent = Annotated[Union[TextContent, ImageContent], Field(discriminator="type")]


# === Tool calls made by the assistant earlier in a conversation ===

class ToolFunctionCall(BaseModel):
    name: str
    arguments: str = Field("{}", description="JSON-encoded arguments as returned by the vendor")

    @field_validator("arguments", mode="before")
    @classmethod
    def _encode_arguments(cls, value: Any) -> Any:
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return value


class AssistantToolCall(BaseModel):
    """A tool invocation previously requested by the assistant."""
    id: str
    type: Literal["function"] = "function"
    function: ToolFunctionCall


# === Messages ===

class SystemMessage(BaseModel):
    role: Literal["system"] = "system"
    content: str
    name: Optional[str] = None


class UserMessage(BaseModel):
    role: Literal["user"] = "user"
    content: List[UserContent]
    name: Optional[str] = None

    @classmethod
    def from_text(cls, text: str) -> "UserMessage":
        return cls(content=[TextContent(text=text)])


class AssistantMessage(BaseModel):
    role: Literal["assistant"] = "assistant"
    content: Optional[List[AssistantContent]] = None
    tool_calls: Optional[List[AssistantToolCall]] = None
    refusal: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_text(cls, text: str) -> "AssistantMessage":
        return cls(content=[TextContent(text=text)])


class ToolMessage(BaseModel):
    """Result of a tool execution, fed back to the model."""
    role: Literal["tool"] = "tool"
    content: List[str]
    name: str
    tool_call_id: Optional[str] = None


PromptMessage = Annotated[
    Union[SystemMessage, UserMessage, AssistantMessage, ToolMessage],
    Field(discriminator="role"),
]


# === Tools ===

class Tool(BaseModel):
    """A callable function offered to the model."""
    name: str
    description: str
    input_schema: JsonValue

    @classmethod
    def from_model(
        cls,
        model_class: Type[BaseModel],
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> "Tool":
        """
        Build a tool declaration from a Pydantic model.

        Args:
            model_class: Pydantic model describing the tool input
            name: Optional tool name (defaults to the lowercased class name)
            description: Optional description (defaults to the class docstring)

        Returns:
            Tool whose input_schema is the model's JSON object schema
        """
        name = name or model_class.__name__.lower()
        description = description or (model_class.__doc__ or "").strip() or f"Function for {name}"

        schema = model_class.model_json_schema()
        input_schema = {
            "type": "object",
            "properties": schema.get("properties", {}),
            "required": schema.get("required", []),
        }
        # Nested models are referenced through $defs
        if "$defs" in schema:
            input_schema["$defs"] = schema["$defs"]

        return cls(name=name, description=description, input_schema=input_schema)


class ToolChoiceAuto(BaseModel):
    """Let the backend decide whether to call a tool."""
    type: Literal["auto"] = "auto"
    disable_parallel_tool_use: Optional[bool] = None


class ToolChoiceAny(BaseModel):
    """Force the model to call some tool."""
    type: Literal["any", "required"] = "any"
    disable_parallel_tool_use: Optional[bool] = None


ToolChoiceRequired = ToolChoiceAny


class ToolChoiceTool(BaseModel):
    """Force the model to call the named tool."""
    type: Literal["tool"] = "tool"
    name: str
    disable_parallel_tool_use: Optional[bool] = None


ToolChoice = Annotated[
    Union[ToolChoiceAuto, ToolChoiceAny, ToolChoiceTool],
    Field(discriminator="type"),
]


# === Prompts ===

class _PromptBase(BaseModel):
    system: str
    tools: Optional[List[Tool]] = None
    tool_choice: Optional[ToolChoice] = None

    @property
    def has_tools(self) -> bool:
        return bool(self.tools)

    @property
    def effective_tool_choice(self) -> Optional[Union[ToolChoiceAuto, ToolChoiceAny, ToolChoiceTool]]:
        """The tool choice, or None when no tools are declared."""
        return self.tool_choice if self.has_tools else None


class SimplePrompt(_PromptBase):
    """Single-turn prompt: one system instruction and one user turn."""
    kind: Literal["simple"] = "simple"
    user: str


class MessagesPrompt(_PromptBase):
    """Full conversation history."""
    kind: Literal["messages"] = "messages"
    messages: List[PromptMessage] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _check_first_role(self) -> "MessagesPrompt":
        first = self.messages[0]
        if first.role not in ("user", "system"):
            raise ValueError(f"conversation must start with a user or system message, got '{first.role}'")
        return self


Prompt = Annotated[Union[SimplePrompt, MessagesPrompt], Field(discriminator="kind")]

_prompt_adapter: TypeAdapter = TypeAdapter(Prompt)


def parse_prompt(data: Union[str, bytes, dict]) -> Union[SimplePrompt, MessagesPrompt]:
    """Validate a dict or JSON document into a Prompt variant."""
    if isinstance(data, (str, bytes)):
        return _prompt_adapter.validate_json(data)
    return _prompt_adapter.validate_python(data)
