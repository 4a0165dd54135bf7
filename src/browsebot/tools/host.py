"""Collaborator protocols the browser embedding provides to the tools."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal, Protocol, runtime_checkable

SplitOrientation = Literal["vertical", "horizontal"]


class OpenTarget(StrEnum):
    CURRENT_TAB = "current"
    NEW_TAB = "tab"
    NEW_WINDOW = "window"
    PRIVATE_WINDOW = "private"


@runtime_checkable
class BrowserHost(Protocol):
    """Navigation primitives of the host browser."""

    async def visible_search_engines(self) -> list[str]: ...

    async def default_search_engine(self) -> str: ...

    async def search_url(self, engine_name: str, term: str) -> str | None:
        """Submission URL for ``term`` on the named engine, or None if it does not exist."""
        ...

    async def open_url(self, url: str, target: OpenTarget) -> None: ...

    def supports_glance(self) -> bool: ...

    async def open_glance(self, url: str) -> None: ...

    def supports_split_view(self) -> bool: ...

    async def split_with_current(self, url: str, orientation: SplitOrientation) -> None:
        """Open ``url`` in a new tab and split it with the currently selected tab."""
        ...

    async def split_new(self, first_url: str, second_url: str, orientation: SplitOrientation) -> None: ...


@runtime_checkable
class PageBridge(Protocol):
    """Content-process bridge to the current page.

    Every method resolves; failures come back as ``{"error": ...}`` payloads
    or url/title fallbacks rather than exceptions.
    """

    async def get_page_text_content(self, trim_whitespace: bool = True) -> dict[str, Any]: ...

    async def get_html_content(self) -> dict[str, Any]: ...

    async def get_selected_text(self) -> dict[str, Any]: ...

    async def get_youtube_transcript(self) -> dict[str, Any]: ...

    async def click_element(self, selector: str) -> dict[str, Any]: ...

    async def fill_form(self, selector: str, value: str) -> dict[str, Any]: ...
