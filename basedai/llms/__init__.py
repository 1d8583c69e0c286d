from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Union

from basedai.conversation import AssistantMessage, Message, ToolCallRequest
from basedai.tools.base import ToolDescriptor

ModelDecision = Union[AssistantMessage, list[ToolCallRequest]]


class PortError(RuntimeError):
    pass


class RoundLimitExceededError(PortError):
    pass


class LLMPort(ABC):
    @abstractmethod
    async def request(self, conversation: Sequence[Message], tools: Sequence[ToolDescriptor]) -> ModelDecision:
        """Return either the final assistant message or the tool calls the model wants made."""
