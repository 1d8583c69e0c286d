from __future__ import annotations

from collections.abc import Sequence
from itertools import groupby

from pydantic_ai.direct import model_request
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelRequestPart,
    ModelResponse,
    ModelResponsePart,
    SystemPromptPart,
    TextPart,
    ToolCallPart,
    ToolReturnPart,
    UserPromptPart,
)
from pydantic_ai.models import Model, ModelRequestParameters
from pydantic_ai.settings import ModelSettings
from pydantic_ai.tools import ToolDefinition

from basedai.conversation import AssistantMessage, Message, ToolCallRequest, ToolResult, UserMessage
from basedai.llms import LLMPort, ModelDecision, PortError
from basedai.log import logger
from basedai.tools.base import ToolDescriptor


def get_tool_definitions(tools: Sequence[ToolDescriptor]) -> list[ToolDefinition]:
    return [
        ToolDefinition(
            name=tool.name,
            description=tool.description,
            parameters_json_schema=tool.json_schema(),
        )
        for tool in tools
    ]


def _request_part(message: Message) -> ModelRequestPart:
    if isinstance(message, UserMessage):
        return UserPromptPart(content=message.text)
    return ToolReturnPart(tool_name=message.tool_name, content=message.text, tool_call_id=message.call_id)


def _response_part(message: Message) -> ModelResponsePart:
    if isinstance(message, AssistantMessage):
        return TextPart(content=message.text)
    return ToolCallPart(tool_name=message.tool_name, args=message.raw_arguments, tool_call_id=message.call_id)


def to_model_messages(conversation: Sequence[Message], system_prompt: str | None = None) -> list[ModelMessage]:
    """
    Group the conversation into alternating model requests and responses.

    User messages and tool results are sent by us; assistant text and tool calls come from the model.
    """
    messages: list[ModelMessage] = []
    for from_model, group in groupby(conversation, key=lambda m: isinstance(m, (AssistantMessage, ToolCallRequest))):
        if from_model:
            messages.append(ModelResponse(parts=[_response_part(m) for m in group]))
        else:
            messages.append(ModelRequest(parts=[_request_part(m) for m in group]))

    if system_prompt:
        if messages and isinstance(messages[0], ModelRequest):
            messages[0] = ModelRequest(parts=[SystemPromptPart(content=system_prompt), *messages[0].parts])
        else:
            messages.insert(0, ModelRequest(parts=[SystemPromptPart(content=system_prompt)]))
    return messages


def to_decision(response: ModelResponse) -> ModelDecision:
    tool_calls = [
        ToolCallRequest(call_id=part.tool_call_id, tool_name=part.tool_name, raw_arguments=part.args)
        for part in response.parts
        if isinstance(part, ToolCallPart)
    ]
    if tool_calls:
        return tool_calls

    texts = [part.content for part in response.parts if isinstance(part, TextPart)]
    if texts:
        return AssistantMessage(text="".join(texts))

    raise PortError(f"Model response contained neither text nor tool calls: {response.parts!r}")


class PydanticAIPort(LLMPort):
    def __init__(
        self,
        model: Model,
        system_prompt: str | None = None,
        model_settings: ModelSettings | None = None,
    ) -> None:
        self.model = model
        self.system_prompt = system_prompt
        self.model_settings = model_settings

    async def request(self, conversation: Sequence[Message], tools: Sequence[ToolDescriptor]) -> ModelDecision:
        messages = to_model_messages(conversation, self.system_prompt)
        parameters = ModelRequestParameters(function_tools=get_tool_definitions(tools))
        try:
            response = await model_request(
                self.model,
                messages,
                model_settings=self.model_settings,
                model_request_parameters=parameters,
            )
        except Exception as e:
            logger.exception(f"Model request failed: {e}")
            raise PortError(f"Model request failed: {e}") from e

        return to_decision(response)
