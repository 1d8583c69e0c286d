import json

import httpx
import pytest

from basedai.conversation import AssistantMessage, ToolCallRequest, ToolResult
from basedai.orchestrator import Orchestrator
from basedai.tools.registry import ToolRegistry
from basedai.tools.web_search import WebSearchTool, clamp_result_count, coerce_text, repair_query

WRAPPED_QUERY = (
    '<|python_start|>{"type": "function", "name": "search_the_web", '
    '"parameters": {"query": "today\'s news"}}<|python_end|>'
)

BRAVE_RESULTS = {
    "web": {
        "results": [
            {"title": {"rawTitle": "Morning briefing"}, "url": "https://news.example/1", "description": "Top stories."},
            {"title": "Evening briefing", "url": "https://news.example/2", "description": {"content": "More stories."}},
        ]
    }
}


def brave(payload, status_code=200):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=payload)

    return handler


def unreachable(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected request to {request.url}")


@pytest.mark.parametrize(
    "query, repaired",
    [
        (WRAPPED_QUERY, "today's news"),
        ('{"parameters": {"query": "weather in Paris"}}', "weather in Paris"),
        ("today's news", "today's news"),
        ("  spaced query ", "  spaced query "),
        ('<|python_start|>{"parameters": {"query": <|python_end|>', '<|python_start|>{"parameters": {"query": <|python_end|>'),
        ('{"parameters": {"limit": 3}}', '{"parameters": {"limit": 3}}'),
        ('what does "parameters" mean', 'what does "parameters" mean'),
        (
            json.dumps({"parameters": {"query": json.dumps({"parameters": {"query": "inner"}})}}),
            "inner",
        ),
    ],
)
def test_repair_query(query, repaired):
    assert repair_query(query) == repaired
    assert repair_query(repair_query(query)) == repair_query(query)


@pytest.mark.parametrize("requested, effective", [(0, 1), (-4, 1), (1, 1), (7, 7), (20, 20), (50, 20)])
def test_clamp_result_count(requested, effective):
    assert clamp_result_count(requested) == effective


@pytest.mark.parametrize(
    "value, text",
    [
        (None, ""),
        ("plain", "plain"),
        ({"rawTitle": "Raw", "content": "Content"}, "Raw"),
        ({"content": {"description": "Deep"}}, "Deep"),
        ({"description": "Described"}, "Described"),
        ({"other": 1}, '{"other": 1}'),
        (3, "3"),
        (True, "true"),
        (["a"], '["a"]'),
    ],
)
def test_coerce_text(value, text):
    assert coerce_text(value) == text


async def test_missing_api_key_makes_no_request(mock_http):
    tool = WebSearchTool(mock_http(unreachable), api_key=None)

    result = await tool.execute(tool.validate({"query": "today's news"}))

    assert result.startswith("Error:")
    assert "API key" in result
    assert mock_http.requests == []


async def test_repaired_query_is_sent_upstream(mock_http):
    tool = WebSearchTool(mock_http(brave(BRAVE_RESULTS)), api_key="secret")

    result = await tool.execute(tool.validate({"query": WRAPPED_QUERY}))

    [request] = mock_http.requests
    assert request.url.params["q"] == "today's news"
    assert request.url.params["count"] == "5"
    assert request.url.params["search_lang"] == "en"
    assert request.headers["X-Subscription-Token"] == "secret"
    assert request.headers["Authorization"] == "Bearer secret"
    assert result == (
        "Top 5 results for 'today's news':\n\n"
        "Morning briefing\nURL: https://news.example/1\nSnippet: Top stories.\n---\n"
        "Evening briefing\nURL: https://news.example/2\nSnippet: More stories.\n---"
    )


async def test_result_count_is_clamped(mock_http):
    tool = WebSearchTool(mock_http(brave(BRAVE_RESULTS)), api_key="secret")

    result = await tool.execute(tool.validate({"query": "news", "num_results": 1}))

    assert mock_http.requests[-1].url.params["count"] == "1"
    assert "Morning briefing" in result
    assert "Evening briefing" not in result

    await tool.execute(tool.validate({"query": "news", "num_results": 50}))
    assert mock_http.requests[-1].url.params["count"] == "20"


async def test_upstream_error_field_short_circuits(mock_http):
    payload = {"error": {"description": "Rate limit exceeded"}, **BRAVE_RESULTS}
    tool = WebSearchTool(mock_http(brave(payload, status_code=429)), api_key="secret")

    result = await tool.execute(tool.validate({"query": "news"}))

    assert result == "Error: Brave Search API error: Rate limit exceeded"


async def test_http_error_without_error_field(mock_http):
    tool = WebSearchTool(mock_http(brave({"type": "ErrorResponse"}, status_code=500)), api_key="secret")

    result = await tool.execute(tool.validate({"query": "news"}))

    assert result == "Error: web search failed with HTTP 500."


async def test_no_results(mock_http):
    tool = WebSearchTool(mock_http(brave({"web": {"results": []}})), api_key="secret")

    result = await tool.execute(tool.validate({"query": "zxqv"}))

    assert result == "Top 5 results for 'zxqv':\n\nNo results found."


async def test_non_json_response(mock_http):
    tool = WebSearchTool(mock_http(lambda request: httpx.Response(200, text="<html>oops</html>")), api_key="secret")

    result = await tool.execute(tool.validate({"query": "news"}))

    assert result.startswith("Error: web search failed:")


async def test_wrapped_query_through_orchestrator_without_key(scripted_port, mock_http):
    port = scripted_port(
        [ToolCallRequest(call_id="call-1", tool_name="search_the_web", raw_arguments=json.dumps({"query": WRAPPED_QUERY}))],
        AssistantMessage(text="I could not search."),
    )
    orchestrator = Orchestrator(port, ToolRegistry([WebSearchTool(mock_http(unreachable), api_key=None)]))

    state = await orchestrator.run_state("What is today's news?")

    [result] = [m for m in state.conversation if isinstance(m, ToolResult)]
    assert result.is_error
    assert result.text.startswith("Error:")
    assert mock_http.requests == []
    assert state.answer == "I could not search."
