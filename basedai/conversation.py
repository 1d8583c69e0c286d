"""Messages exchanged during a single question-to-answer run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

RawArguments = Union[str, dict[str, Any], None]


@dataclass(frozen=True)
class UserMessage:
    text: str


@dataclass(frozen=True)
class AssistantMessage:
    text: str


@dataclass(frozen=True)
class ToolCallRequest:
    """A tool call emitted by the model, arguments exactly as the model produced them."""

    call_id: str
    tool_name: str
    raw_arguments: RawArguments = None


@dataclass(frozen=True)
class ToolResult:
    """Text returned to the model for the request with the same ``call_id``."""

    call_id: str
    tool_name: str
    text: str
    is_error: bool = False


Message = Union[UserMessage, AssistantMessage, ToolCallRequest, ToolResult]
Conversation = list[Message]

__all__ = [
    "AssistantMessage",
    "Conversation",
    "Message",
    "RawArguments",
    "ToolCallRequest",
    "ToolResult",
    "UserMessage",
]
