from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from basedai.config import Config
from basedai.conversation import AssistantMessage, Conversation, ToolCallRequest, ToolResult, UserMessage
from basedai.llms import LLMPort, PortError, RoundLimitExceededError
from basedai.log import logger
from basedai.tools.base import ToolValidationError, error_text, is_error_text
from basedai.tools.registry import ToolNotFoundError, ToolRegistry


class RunPhase(str, Enum):
    AWAITING_MODEL = "awaiting_model"
    EXECUTING_TOOLS = "executing_tools"
    FINISHED = "finished"


@dataclass
class RunState:
    conversation: Conversation
    pending_calls: list[ToolCallRequest] = field(default_factory=list)
    phase: RunPhase = RunPhase.AWAITING_MODEL
    tool_rounds: int = 0

    @classmethod
    def start(cls, question: str) -> RunState:
        return cls(conversation=[UserMessage(text=question)])

    @property
    def pending_call_ids(self) -> set[str]:
        return {call.call_id for call in self.pending_calls}

    @property
    def terminal(self) -> bool:
        return self.phase is RunPhase.FINISHED

    @property
    def answer(self) -> str:
        for message in reversed(self.conversation):
            if isinstance(message, AssistantMessage):
                return message.text
        raise PortError("Run finished without an assistant message")


class Orchestrator:
    """
    Drives one question through the model until it answers.

    The model either answers (the run finishes) or asks for tool calls; every tool call gets exactly one
    result appended before the model is asked again. Tool problems are turned into error results for the
    model to read, only model problems abort the run.
    """

    def __init__(
        self,
        port: LLMPort,
        registry: ToolRegistry,
        *,
        max_tool_rounds: int = 10,
        tool_timeout: float | None = 30.0,
        parallel_tool_calls: bool = True,
    ) -> None:
        self.port = port
        self.registry = registry
        self.max_tool_rounds = max_tool_rounds
        self.tool_timeout = tool_timeout
        self.parallel_tool_calls = parallel_tool_calls

    @classmethod
    def from_config(cls, config: Config, port: LLMPort, registry: ToolRegistry) -> Orchestrator:
        return cls(
            port,
            registry,
            max_tool_rounds=config.max_tool_rounds,
            tool_timeout=config.tool_timeout_seconds,
            parallel_tool_calls=config.parallel_tool_calls,
        )

    async def run(self, question: str) -> str:
        state = await self.run_state(question)
        return state.answer

    async def run_state(self, question: str) -> RunState:
        state = RunState.start(question)
        while not state.terminal:
            if state.phase is RunPhase.AWAITING_MODEL:
                await self._request_model(state)
            else:
                await self._execute_tools(state)
        logger.info(f"Run finished after {state.tool_rounds} tool round(s)")
        return state

    async def _request_model(self, state: RunState) -> None:
        logger.debug(f"Requesting model with {len(state.conversation)} message(s)")
        decision = await self.port.request(state.conversation, self.registry.descriptors())

        if isinstance(decision, AssistantMessage):
            state.conversation.append(decision)
            state.phase = RunPhase.FINISHED
            return

        if (
            not isinstance(decision, Sequence)
            or not decision
            or not all(isinstance(call, ToolCallRequest) for call in decision)
        ):
            raise PortError(f"Unrecognized model decision: {decision!r}")

        if state.tool_rounds >= self.max_tool_rounds:
            raise RoundLimitExceededError(
                f"Model still requested tools after {self.max_tool_rounds} tool round(s)"
            )

        state.conversation.extend(decision)
        state.pending_calls = list(decision)
        state.phase = RunPhase.EXECUTING_TOOLS

    async def _execute_tools(self, state: RunState) -> None:
        state.tool_rounds += 1
        if self.parallel_tool_calls:
            results = await asyncio.gather(*(self.call_tool(call) for call in state.pending_calls))
        else:
            results = [await self.call_tool(call) for call in state.pending_calls]

        state.conversation.extend(results)
        state.pending_calls = []
        state.phase = RunPhase.AWAITING_MODEL

    async def call_tool(self, call: ToolCallRequest) -> ToolResult:
        logger.info(f"Tool call: {call.tool_name}({call.raw_arguments!r})")
        try:
            tool = self.registry.resolve(call.tool_name)
        except ToolNotFoundError:
            logger.warning(f"Tool call failed: unknown tool {call.tool_name}")
            available = ", ".join(self.registry.names())
            return self._result(
                call, error_text(f"tool '{call.tool_name}' not found. Available tools: {available}.")
            )

        try:
            invocation = tool.validate(call.raw_arguments)
        except ToolValidationError as e:
            logger.warning(f"Tool call failed: {call.tool_name}: {e}")
            return self._result(call, error_text(str(e)))

        try:
            text = await asyncio.wait_for(tool.execute(invocation), timeout=self.tool_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Tool call failed: {call.tool_name} timed out after {self.tool_timeout}s")
            text = error_text(f"tool '{call.tool_name}' timed out after {self.tool_timeout} seconds.")
        except Exception as e:
            logger.exception(f"Tool call failed: {call.tool_name}: {e}")
            text = error_text(f"tool '{call.tool_name}' failed: {e}")

        return self._result(call, text)

    @staticmethod
    def _result(call: ToolCallRequest, text: str) -> ToolResult:
        return ToolResult(call_id=call.call_id, tool_name=call.tool_name, text=text, is_error=is_error_text(text))
