"""Vendor-neutral generation result and tool-call normalization."""
import json
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, JsonValue

from llmgate.core.errors import ToolArgumentError
from llmgate.core.logging import logger

NO_RESPONSE_MESSAGE = "No response received."


class ResultKind(str, Enum):
    """What a generation call produced."""
    TEXT = "text"
    TOOL_CALLS = "tool_calls"
    ERROR = "error"


class ToolCall(BaseModel):
    """Tool invocation requested by the model."""
    id: str = ""
    kind: str = "function"
    name: str
    input: JsonValue = None


class Usage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0


class LLMResult(BaseModel):
    """Normalized response of any provider."""
    message: str
    result_kind: ResultKind = ResultKind.TEXT
    tool_calls: List[ToolCall] = Field(default_factory=list)
    usage: Optional[Usage] = None
    model: Optional[str] = None

    @classmethod
    def text(cls, message: str, **kwargs: Any) -> "LLMResult":
        return cls(message=message, result_kind=ResultKind.TEXT, **kwargs)

    @classmethod
    def no_response(cls, **kwargs: Any) -> "LLMResult":
        """Degenerate result for a call that succeeded but carried no content."""
        return cls(message=NO_RESPONSE_MESSAGE, result_kind=ResultKind.ERROR, tool_calls=[], **kwargs)

    @classmethod
    def from_parts(
        cls,
        text: Optional[str],
        tool_calls: Optional[List[ToolCall]] = None,
        **kwargs: Any,
    ) -> "LLMResult":
        """Build a result from extracted text and tool calls, falling back to the sentinel."""
        tool_calls = tool_calls or []
        if tool_calls:
            return cls(message=text or "", result_kind=ResultKind.TOOL_CALLS, tool_calls=tool_calls, **kwargs)
        if not text:
            return cls.no_response(**kwargs)
        return cls.text(text, **kwargs)

    @property
    def is_error(self) -> bool:
        return self.result_kind == ResultKind.ERROR


def parse_tool_calls(
    raw_calls: Optional[List[Dict[str, Any]]],
    provider: Optional[str] = None,
) -> List[ToolCall]:
    """
    Convert vendor tool-call entries into ToolCall objects.

    Entries without a function name or an arguments string are skipped.
    Arguments that are not valid JSON abort the whole call.

    Args:
        raw_calls: Entries shaped ``{id, type, function: {name, arguments}}``
        provider: Provider key, attached to raised errors

    Returns:
        List of parsed ToolCall objects

    Raises:
        ToolArgumentError: if an entry's arguments cannot be decoded
    """
    tool_calls: List[ToolCall] = []
    for entry in raw_calls or []:
        if not isinstance(entry, dict):
            continue
        function = entry.get("function")
        if not isinstance(function, dict):
            continue
        name = function.get("name")
        arguments = function.get("arguments")
        if not name or arguments is None:
            logger.debug(f"Skipping tool call without name or arguments: {entry.get('id')}")
            continue

        try:
            parsed = json.loads(arguments)
        except (TypeError, json.JSONDecodeError) as e:
            logger.error(f"Malformed arguments for tool '{name}': {e}")
            raise ToolArgumentError(
                f"Tool call '{name}' has malformed arguments: {e}",
                raw_arguments=str(arguments),
                provider=provider,
            ) from e

        tool_calls.append(ToolCall(
            id=entry.get("id") or "",
            kind=entry.get("type") or "function",
            name=name,
            input=parsed,
        ))
    return tool_calls
