from __future__ import annotations

from collections.abc import Callable

from basedai.log import logger
from basedai.tools.base import Tool, ToolDescriptor, ToolInvocation, ToolParameter

ACKNOWLEDGEMENT = "Message Sent."


class SpeakTool(Tool):
    descriptor = ToolDescriptor(
        name="speak_to_user",
        description="Service tool, used by the agent to talk.",
        required_parameters=(ToolParameter(name="message", description="Message from the agent"),),
    )

    def __init__(self, character_name: str, output: Callable[[str], object] | None = None) -> None:
        self.character_name = character_name
        self.output = output or logger.info

    async def execute(self, invocation: ToolInvocation) -> str:
        self.output(f"{self.character_name} says: {invocation.arguments['message']}")
        return ACKNOWLEDGEMENT
