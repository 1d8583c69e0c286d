from __future__ import annotations

import os

os.environ["LOGURU_LEVEL"] = "DEBUG"

import asyncio
from collections.abc import Callable, Iterable, Sequence

import httpx
import pytest

from basedai.config import Config
from basedai.conversation import Message
from basedai.llms import LLMPort, ModelDecision, PortError
from basedai.tools.base import ParameterType, Tool, ToolDescriptor, ToolInvocation, ToolParameter


class ScriptedPort(LLMPort):
    """Returns prepared decisions in order and records what it was asked."""

    def __init__(self, decisions: Iterable[ModelDecision | Exception]):
        self.decisions = list(decisions)
        self.requests: list[tuple[list[Message], list[ToolDescriptor]]] = []

    async def request(self, conversation: Sequence[Message], tools: Sequence[ToolDescriptor]) -> ModelDecision:
        self.requests.append((list(conversation), list(tools)))
        if not self.decisions:
            raise PortError("No more scripted decisions")
        decision = self.decisions.pop(0)
        if isinstance(decision, Exception):
            raise decision
        return decision


class EchoTool(Tool):
    descriptor = ToolDescriptor(
        name="echo_text",
        description="Echo the input text",
        required_parameters=(ToolParameter(name="text", description="Text to echo"),),
        optional_parameters=(
            ToolParameter(name="delay", description="Seconds to wait first", type=ParameterType.NUMBER, default=0),
            ToolParameter(name="shout", description="Upper-case the text", type=ParameterType.BOOLEAN, default=False),
        ),
    )

    def __init__(self):
        self.finished: list[str] = []

    async def execute(self, invocation: ToolInvocation) -> str:
        await asyncio.sleep(invocation.arguments["delay"])
        text = invocation.arguments["text"]
        self.finished.append(text)
        return text.upper() if invocation.arguments["shout"] else text


class BrokenTool(Tool):
    descriptor = ToolDescriptor(name="raise_error", description="Raise an error")

    async def execute(self, invocation: ToolInvocation) -> str:
        raise RuntimeError("An error occurred")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in list(os.environ):
        if name.upper().startswith("BASEDAI_") or name.upper() == "BRAVE_API_KEY":
            monkeypatch.delenv(name)


@pytest.fixture
def config() -> Config:
    return Config(model_name="test")


@pytest.fixture
def scripted_port() -> Callable[..., ScriptedPort]:
    return lambda *decisions: ScriptedPort(decisions)


@pytest.fixture
def echo_tool() -> EchoTool:
    return EchoTool()


@pytest.fixture
def broken_tool() -> BrokenTool:
    return BrokenTool()


@pytest.fixture
async def mock_http():
    """
    Build an ``httpx.AsyncClient`` answering from ``handler``; every request it sees is kept in ``requests``.
    """
    clients: list[httpx.AsyncClient] = []
    requests: list[httpx.Request] = []

    def build(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        def record(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(record))
        clients.append(client)
        return client

    build.requests = requests
    yield build
    for client in clients:
        await client.aclose()


@pytest.fixture
def client(monkeypatch):
    from fastapi.testclient import TestClient

    from basedai.app import app

    monkeypatch.setenv("BASEDAI_MODEL_NAME", "test")
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
