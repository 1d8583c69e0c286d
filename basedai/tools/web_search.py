from __future__ import annotations

import json
from typing import Any

import httpx

from basedai.log import logger
from basedai.tools.base import ParameterType, Tool, ToolDescriptor, ToolInvocation, ToolParameter, error_text

SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"

MIN_RESULTS = 1
MAX_RESULTS = 20
DEFAULT_RESULTS = 5

WRAPPER_START = "<|python_start|>"
WRAPPER_END = "<|python_end|>"

# Sub-fields tried, in order, when an upstream field arrives as an object
NESTED_TEXT_FIELDS = ("rawTitle", "content", "description")


def _unwrap_once(query: str) -> str:
    text = query.strip()
    if text.startswith(WRAPPER_START) and text.endswith(WRAPPER_END) and len(text) >= len(WRAPPER_START + WRAPPER_END):
        text = text[len(WRAPPER_START) : -len(WRAPPER_END)].strip()
    if '"parameters"' not in text:
        return query
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return query
    if not isinstance(payload, dict) or not isinstance(payload.get("parameters"), dict):
        return query
    nested = payload["parameters"].get("query")
    return nested if isinstance(nested, str) else query


def repair_query(query: str) -> str:
    """
    Undo the tool-call wrapper some models put around the query, e.g.
    ``<|python_start|>{"name": "search_the_web", "parameters": {"query": "..."}}<|python_end|>``.

    Any other text is returned unchanged.
    """
    repaired = _unwrap_once(query)
    while repaired != query:
        query, repaired = repaired, _unwrap_once(repaired)
    return repaired


def clamp_result_count(count: int) -> int:
    return max(MIN_RESULTS, min(MAX_RESULTS, count))


def coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        for field in NESTED_TEXT_FIELDS:
            if value.get(field) is not None:
                return coerce_text(value[field])
    return json.dumps(value)


def format_results(query: str, count: int, payload: dict[str, Any]) -> str:
    web = payload.get("web")
    results = web.get("results") if isinstance(web, dict) else None
    if not isinstance(results, list) or not results:
        body = "No results found."
    else:
        blocks = []
        for result in results[:count]:
            if not isinstance(result, dict):
                continue
            title = coerce_text(result.get("title"))
            url = coerce_text(result.get("url"))
            snippet = coerce_text(result.get("description"))
            blocks.append(f"{title}\nURL: {url}\nSnippet: {snippet}\n---")
        body = "\n".join(blocks) or "No results found."
    return f"Top {count} results for '{query}':\n\n{body}"


class WebSearchTool(Tool):
    descriptor = ToolDescriptor(
        name="search_the_web",
        description=(
            "Searches the web for information on a given query using Brave Search API. "
            "Returns top results with titles, descriptions, and URLs. "
            "Use this when you need real-time or external knowledge. Max 20 results."
        ),
        required_parameters=(
            ToolParameter(name="query", description="The search query (e.g., 'Browns preseason score today')."),
        ),
        optional_parameters=(
            ToolParameter(
                name="num_results",
                description="Optional number of results (1-20, default 5).",
                type=ParameterType.INTEGER,
                default=DEFAULT_RESULTS,
            ),
        ),
    )

    def __init__(self, client: httpx.AsyncClient, api_key: str | None) -> None:
        self.client = client
        self.api_key = api_key

    async def execute(self, invocation: ToolInvocation) -> str:
        query = repair_query(invocation.arguments["query"])
        count = clamp_result_count(invocation.arguments["num_results"])

        if not self.api_key:
            return error_text(
                "Brave Search API key is not configured. Get a free one at "
                "https://api.search.brave.com/register and set the BRAVE_API_KEY environment variable."
            )

        try:
            response = await self.client.get(
                SEARCH_URL,
                params={"q": query, "count": count, "search_lang": "en"},
                headers={
                    "Accept": "application/json",
                    "Authorization": f"Bearer {self.api_key}",
                    "X-Subscription-Token": self.api_key,
                },
            )
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Web search for {query!r} failed: {e}")
            return error_text(f"web search failed: {e}. Check your API key or connectivity.")

        if not isinstance(payload, dict):
            return error_text("web search returned an unexpected response.")

        upstream_error = coerce_text(payload.get("error"))
        if upstream_error:
            logger.warning(f"Brave Search API error: {upstream_error}")
            return error_text(f"Brave Search API error: {upstream_error}")

        if response.is_error:
            return error_text(f"web search failed with HTTP {response.status_code}.")

        return format_results(query, count, payload)
