from __future__ import annotations

import asyncio

import click
import uvicorn

from basedai.app import init_http_client
from basedai.config import Config, ConfigurationError, get_config
from basedai.conversation import ToolCallRequest, ToolResult
from basedai.llms import PortError
from basedai.llms.models import init_model
from basedai.llms.pydantic_ai_port import PydanticAIPort
from basedai.orchestrator import Orchestrator, RunState
from basedai.tools import build_registry


def _load_config() -> Config:
    try:
        return get_config()
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e


@click.group()
def cli():
    pass


@cli.command()
@click.option("--host", default=None, help="Interface to bind, defaults to BASEDAI_HOST.")
@click.option("--port", type=int, default=None, help="Port to listen on, defaults to BASEDAI_PORT.")
def serve(host: str | None, port: int | None):
    """Run the HTTP service."""
    config = _load_config()
    uvicorn.run("basedai.app:app", host=host or config.host, port=port or config.port)


async def _ask(config: Config, question: str) -> RunState:
    async with init_http_client(config) as client:
        registry = build_registry(config, client, speak_output=click.echo)
        port = PydanticAIPort(init_model(config), system_prompt=config.system_prompt)
        return await Orchestrator.from_config(config, port, registry).run_state(question)


def _echo_transcript(state: RunState) -> None:
    for message in state.conversation:
        if isinstance(message, ToolCallRequest):
            click.echo(f"-> {message.tool_name}({message.raw_arguments})", err=True)
        elif isinstance(message, ToolResult):
            click.echo(f"<- {message.tool_name}: {message.text}", err=True)


@cli.command()
@click.argument("question")
@click.option("--verbose", "-v", is_flag=True, help="Print tool calls and results to stderr.")
def ask(question: str, verbose: bool):
    """Answer a single question and exit."""
    config = _load_config()
    try:
        state = asyncio.run(_ask(config, question))
    except (ConfigurationError, PortError) as e:
        raise click.ClickException(str(e)) from e

    if verbose:
        _echo_transcript(state)
    click.echo(state.answer)


if __name__ == "__main__":
    cli()
