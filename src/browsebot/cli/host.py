"""Headless collaborators for running the assistant from a terminal."""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from typing import Any
from urllib.parse import quote_plus

import click
import httpx
from bs4 import BeautifulSoup

from browsebot.prefs import Preferences
from browsebot.tools.host import OpenTarget, SplitOrientation

logger = logging.getLogger(__name__)

SEARCH_ENGINES: dict[str, str] = {
    "Google": "https://www.google.com/search?q={}",
    "DuckDuckGo": "https://duckduckgo.com/?q={}",
    "Bing": "https://www.bing.com/search?q={}",
    "Wikipedia (en)": "https://en.wikipedia.org/wiki/Special:Search?search={}",
}

_HEADLESS_UNSUPPORTED = "Not supported when running headless."


class HeadlessBrowserHost:
    """Opens URLs with the system browser; no glance or split view."""

    def __init__(
        self,
        engines: dict[str, str] | None = None,
        default_engine: str = "Google",
    ) -> None:
        self.engines = dict(engines or SEARCH_ENGINES)
        self.default_engine = default_engine

    async def visible_search_engines(self) -> list[str]:
        return list(self.engines)

    async def default_search_engine(self) -> str:
        return self.default_engine

    async def search_url(self, engine_name: str, term: str) -> str | None:
        template = self.engines.get(engine_name)
        if template is None:
            lowered = engine_name.lower()
            template = next(
                (value for key, value in self.engines.items() if key.lower() == lowered), None
            )
        if template is None:
            return None
        return template.format(quote_plus(term))

    async def open_url(self, url: str, target: OpenTarget) -> None:
        if target is OpenTarget.CURRENT_TAB:
            opener = webbrowser.open
        elif target is OpenTarget.NEW_TAB:
            opener = webbrowser.open_new_tab
        else:
            opener = webbrowser.open_new
        opened = await asyncio.to_thread(opener, url)
        if not opened:
            raise RuntimeError(f"no browser available to open {url}")
        logger.info("Opened %s (%s)", url, target.value)

    def supports_glance(self) -> bool:
        return False

    async def open_glance(self, url: str) -> None:
        raise RuntimeError(_HEADLESS_UNSUPPORTED)

    def supports_split_view(self) -> bool:
        return False

    async def split_with_current(self, url: str, orientation: SplitOrientation) -> None:
        raise RuntimeError(_HEADLESS_UNSUPPORTED)

    async def split_new(
        self, first_url: str, second_url: str, orientation: SplitOrientation
    ) -> None:
        raise RuntimeError(_HEADLESS_UNSUPPORTED)


_SKIPPED_TAGS = ("script", "style", "noscript", "template")


def extract_text(html: str, trim_whitespace: bool = True) -> tuple[str, str]:
    """Return ``(title, text)`` for an HTML document."""
    soup = BeautifulSoup(html, "html.parser")
    title = ""
    if soup.title is not None:
        title = soup.title.get_text(strip=True)
        soup.title.decompose()
    for tag in soup(list(_SKIPPED_TAGS)):
        tag.decompose()
    text = soup.get_text()
    if trim_whitespace:
        text = " ".join(text.split())
    return title, text


class HttpPageBridge:
    """Treats a fetched URL as the current page. Without a URL every read reports an error."""

    def __init__(
        self,
        url: str | None = None,
        *,
        timeout_seconds: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self._timeout = timeout_seconds
        self._transport = transport
        self._html: str | None = None

    async def _fetch(self) -> str:
        if self._html is None:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport, follow_redirects=True
            ) as client:
                response = await client.get(self.url or "")
                response.raise_for_status()
                self._html = response.text
        return self._html

    async def page_context(self) -> dict[str, Any]:
        if not self.url:
            return {}
        page = await self.get_page_text_content()
        return {"url": self.url, "title": page.get("title", "")}

    async def get_page_text_content(self, trim_whitespace: bool = True) -> dict[str, Any]:
        if not self.url:
            return {"error": "No page is open."}
        try:
            html = await self._fetch()
        except httpx.HTTPError as exc:
            logger.warning("Failed to fetch %s: %s", self.url, exc)
            return {"url": self.url, "error": f"Failed to fetch page: {exc}"}
        title, text = extract_text(html, trim_whitespace)
        return {"url": self.url, "title": title, "textContent": text}

    async def get_html_content(self) -> dict[str, Any]:
        if not self.url:
            return {"error": "No page is open."}
        try:
            html = await self._fetch()
        except httpx.HTTPError as exc:
            logger.warning("Failed to fetch %s: %s", self.url, exc)
            return {"url": self.url, "error": f"Failed to fetch page: {exc}"}
        title, _ = extract_text(html)
        return {"url": self.url, "title": title, "htmlContent": html}

    async def get_selected_text(self) -> dict[str, Any]:
        return {"hasSelection": False, "selectedText": ""}

    async def get_youtube_transcript(self) -> dict[str, Any]:
        return {"error": _HEADLESS_UNSUPPORTED}

    async def click_element(self, selector: str) -> dict[str, Any]:
        return {"error": f"Cannot click {selector}: {_HEADLESS_UNSUPPORTED}"}

    async def fill_form(self, selector: str, value: str) -> dict[str, Any]:
        return {"error": f"Cannot fill {selector}: {_HEADLESS_UNSUPPORTED}"}


class PromptConfirmationGate:
    """Asks on the terminal before running tools.

    Answering ``always`` turns confirmation off for the rest of the session.
    """

    def __init__(self, prefs: Preferences) -> None:
        self.prefs = prefs

    async def confirm(self, tool_names: list[str]) -> bool:
        click.echo(f"The assistant wants to run: {', '.join(tool_names)}")
        answer = await asyncio.to_thread(
            click.prompt,
            "Allow? [y]es / [n]o / [a]lways",
            default="n",
            type=click.Choice(["y", "n", "a", "yes", "no", "always"], case_sensitive=False),
            show_choices=False,
        )
        answer = answer.lower()
        if answer in {"a", "always"}:
            self.prefs.confirm_tool_calls = False
            return True
        return answer in {"y", "yes"}
