"""Tool registry for the BasedAI agent."""

from __future__ import annotations

from collections.abc import Callable

import httpx

from basedai.config import Config
from basedai.tools.base import Tool
from basedai.tools.browse_page import BrowsePageTool
from basedai.tools.date_time import DateTimeTool
from basedai.tools.registry import ToolRegistry
from basedai.tools.speak import SpeakTool
from basedai.tools.weather import WeatherTool
from basedai.tools.web_search import WebSearchTool


def get_registered_tools(
    config: Config,
    client: httpx.AsyncClient,
    speak_output: Callable[[str], object] | None = None,
) -> list[Tool]:
    """Return all tools available to the agent."""

    return [
        SpeakTool(config.ai_character_name, output=speak_output),
        DateTimeTool(default_timezone=config.default_timezone),
        WeatherTool(client),
        WebSearchTool(client, api_key=config.brave_api_key),
        BrowsePageTool(client, max_chars=config.browse_max_chars),
    ]


def build_registry(
    config: Config,
    client: httpx.AsyncClient,
    speak_output: Callable[[str], object] | None = None,
) -> ToolRegistry:
    return ToolRegistry(get_registered_tools(config, client, speak_output))


__all__ = [
    "build_registry",
    "get_registered_tools",
]
