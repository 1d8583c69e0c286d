from __future__ import annotations

import asyncio
import re
from urllib.parse import urlparse

import httpx
from bs4 import BeautifulSoup

from basedai.log import logger
from basedai.tools.base import Tool, ToolDescriptor, ToolInvocation, ToolParameter, error_text

DEFAULT_MAX_CHARS = 2000
MAX_PAGE_BYTES = 1_000_000
TRUNCATION_MARKER = "..."

NON_CONTENT_TAGS = ["script", "style", "nav", "footer", "header", "iframe", "noscript"]
CONTENT_SELECTOR = "h1, h2, h3, h4, h5, h6, p, li, pre, blockquote"

_WHITESPACE_RE = re.compile(r"\s+")


def is_valid_url(value: str) -> bool:
    try:
        parsed = urlparse(value.strip())
    except ValueError:
        return False
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def extract_text(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(NON_CONTENT_TAGS):
        tag.decompose()

    elements = soup.select(CONTENT_SELECTOR)
    if elements:
        text = "\n".join(element.get_text(" ") for element in elements)
    else:
        text = (soup.body or soup).get_text(" ")
    return _WHITESPACE_RE.sub(" ", text).strip()


def truncate(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


class BrowsePageTool(Tool):
    descriptor = ToolDescriptor(
        name="browse_page",
        description=(
            "Fetches and analyzes the content of a webpage. "
            "Returns the main text content from the page's body (e.g., paragraphs, headings, articles). "
            "If instructions are provided, focuses the output based on them (e.g., 'extract product prices'). "
            "Use this to get detailed information from a specific webpage URL."
        ),
        required_parameters=(
            ToolParameter(name="url", description="The URL of the webpage (e.g., 'https://example.com')."),
        ),
        optional_parameters=(
            ToolParameter(
                name="instructions",
                description=(
                    "Optional instructions for analysis (e.g., 'extract product prices'). "
                    "If none, returns cleaned text content."
                ),
            ),
        ),
    )

    def __init__(
        self,
        client: httpx.AsyncClient,
        max_chars: int = DEFAULT_MAX_CHARS,
        max_page_bytes: int = MAX_PAGE_BYTES,
    ) -> None:
        self.client = client
        self.max_chars = max_chars
        self.max_page_bytes = max_page_bytes

    async def fetch(self, url: str) -> str:
        """Download at most ``max_page_bytes`` of the page body."""
        body = bytearray()
        async with self.client.stream("GET", url) as response:
            response.raise_for_status()
            async for chunk in response.aiter_bytes():
                body.extend(chunk)
                if len(body) >= self.max_page_bytes:
                    break
            encoding = response.encoding or "utf-8"
        return bytes(body[: self.max_page_bytes]).decode(encoding, errors="replace")

    async def execute(self, invocation: ToolInvocation) -> str:
        url = invocation.arguments["url"].strip()
        instructions = invocation.arguments.get("instructions")

        if not is_valid_url(url):
            return error_text(f"cannot browse '{url}'. The URL must start with http:// or https://.")

        try:
            html = await self.fetch(url)
            # parsing is CPU bound, keep it off the event loop
            text = await asyncio.to_thread(extract_text, html)
        except (httpx.HTTPError, httpx.InvalidURL, LookupError, ValueError) as e:
            logger.warning(f"Browsing {url} failed: {e}")
            return error_text(
                f"could not browse page: {e}. Ensure the URL is valid, accessible, and starts with http:// or https://."
            )

        text = truncate(text, self.max_chars) or "(no readable content)"
        if instructions:
            return f"Analyzed content from {url} (focused on '{instructions}'):\n{text}"
        return f"Content from {url}:\n{text}"
