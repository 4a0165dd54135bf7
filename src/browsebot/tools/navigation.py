"""Navigation tools: web search, opening links, split views."""

from __future__ import annotations

import logging
from typing import Any

from browsebot.tools.host import BrowserHost, OpenTarget

logger = logging.getLogger(__name__)

WHERE_OPTIONS = (
    "Options: 'current tab', 'new tab', 'new window', 'incognito', 'glance', 'vsplit', 'hsplit'. "
    "Defaults to 'new tab'. Note that 'glance', 'vsplit' and 'hsplit' are special to zen browser. "
    "'glance' opens in small popup and 'vsplit' and 'hsplit' opens in vertical and horizontal "
    "split respectively. When user says open in split and don't specify 'vsplit' or 'hsplit' "
    "default to 'vsplit'."
)

_SIMPLE_TARGETS = {
    "current tab": OpenTarget.CURRENT_TAB,
    "new tab": OpenTarget.NEW_TAB,
    "new window": OpenTarget.NEW_WINDOW,
    "incognito": OpenTarget.PRIVATE_WINDOW,
    "private": OpenTarget.PRIVATE_WINDOW,
}


class NavigationTools:
    def __init__(self, host: BrowserHost) -> None:
        self.host = host

    async def _search_url(self, engine_name: str, term: str) -> str | None:
        try:
            return await self.host.search_url(engine_name, term.strip())
        except Exception:
            logger.exception("Error getting search URL for engine %r", engine_name)
            return None

    async def search(self, args: dict[str, Any]) -> dict[str, Any]:
        search_term = args.get("searchTerm")
        if not search_term:
            return {"error": "Search tool requires a searchTerm."}
        engine_name = args.get("engineName") or await self.host.default_search_engine()
        url = await self._search_url(engine_name, str(search_term))
        if not url:
            return {"error": f"Could not find search engine named '{engine_name}'."}
        return await self.open_link({"link": url, "where": args.get("where")})

    async def open_link(self, args: dict[str, Any]) -> dict[str, Any]:
        link = args.get("link")
        where = args.get("where") or "new tab"
        if not link:
            return {"error": "openLink requires a link."}
        location = str(where).strip().lower()
        try:
            if location in _SIMPLE_TARGETS:
                await self.host.open_url(link, _SIMPLE_TARGETS[location])
            elif location == "glance":
                if not self.host.supports_glance():
                    await self.host.open_url(link, OpenTarget.NEW_TAB)
                    return {"result": "Glance not available. Opened in a new tab."}
                await self.host.open_glance(link)
            elif location in {"vsplit", "hsplit"}:
                if not self.host.supports_split_view():
                    return {"error": "Split view is not available."}
                orientation = "vertical" if location == "vsplit" else "horizontal"
                await self.host.split_with_current(link, orientation)
            else:
                await self.host.open_url(link, OpenTarget.NEW_TAB)
                return {"result": f'Unknown location "{where}". Opened in a new tab as fallback.'}
        except Exception:
            logger.exception("Failed to open link %r in %r", link, where)
            return {"error": "Failed to open link."}
        return {"result": f"Successfully opened {link} in {where}."}

    async def new_split(self, args: dict[str, Any]) -> dict[str, Any]:
        link1 = args.get("link1")
        link2 = args.get("link2")
        split_type = str(args.get("type") or "vertical")
        if not self.host.supports_split_view():
            return {"error": "Split view function is not available."}
        if not link1 or not link2:
            return {"error": "newSplit requires two links."}
        orientation = "vertical" if split_type.lower() == "vertical" else "horizontal"
        try:
            await self.host.split_new(link1, link2, orientation)
        except Exception:
            logger.exception("Failed to create split view")
            return {"error": "Failed to create split view."}
        return {"result": f"Successfully created {split_type} split view with the provided links."}


SEARCH_DECLARATION: dict[str, object] = {
    "type": "OBJECT",
    "properties": {
        "searchTerm": {"type": "STRING", "description": "The term to search for."},
        "engineName": {
            "type": "STRING",
            "description": "Optional. The name of the search engine to use.",
        },
        "where": {
            "type": "STRING",
            "description": f"Optional. Where to open the search results. {WHERE_OPTIONS}",
        },
    },
    "required": ["searchTerm"],
}

OPEN_LINK_DECLARATION: dict[str, object] = {
    "type": "OBJECT",
    "properties": {
        "link": {"type": "STRING", "description": "The URL to open."},
        "where": {
            "type": "STRING",
            "description": f"Optional. Where to open the link. {WHERE_OPTIONS}",
        },
    },
    "required": ["link"],
}

NEW_SPLIT_DECLARATION: dict[str, object] = {
    "type": "OBJECT",
    "properties": {
        "link1": {"type": "STRING", "description": "The URL for the first new tab."},
        "link2": {"type": "STRING", "description": "The URL for the second new tab."},
        "type": {
            "type": "STRING",
            "description": (
                "Optional, The split type: 'horizontal' or 'vertical'. Defaults to 'vertical'."
            ),
        },
    },
    "required": ["link1", "link2"],
}
