"""Page interaction tools delegated to the content-process bridge."""

from typing import Any

from browsebot.tools.host import PageBridge


class PageTools:
    def __init__(self, bridge: PageBridge) -> None:
        self.bridge = bridge

    async def get_page_text_content(self, args: dict[str, Any]) -> dict[str, Any]:
        del args
        return await self.bridge.get_page_text_content(True)

    async def get_html_content(self, args: dict[str, Any]) -> dict[str, Any]:
        del args
        return await self.bridge.get_html_content()

    async def get_youtube_transcript(self, args: dict[str, Any]) -> dict[str, Any]:
        del args
        return await self.bridge.get_youtube_transcript()

    async def click_element(self, args: dict[str, Any]) -> dict[str, Any]:
        selector = args.get("selector")
        if not selector:
            return {"error": "clickElement requires a selector."}
        return await self.bridge.click_element(str(selector))

    async def fill_form(self, args: dict[str, Any]) -> dict[str, Any]:
        selector = args.get("selector")
        value = args.get("value")
        if not selector:
            return {"error": "fillForm requires a selector."}
        if not value:
            return {"error": "fillForm requires a value."}
        return await self.bridge.fill_form(str(selector), str(value))


CLICK_ELEMENT_DECLARATION: dict[str, object] = {
    "type": "OBJECT",
    "properties": {
        "selector": {
            "type": "STRING",
            "description": "The CSS selector of the element to click.",
        },
    },
    "required": ["selector"],
}

FILL_FORM_DECLARATION: dict[str, object] = {
    "type": "OBJECT",
    "properties": {
        "selector": {
            "type": "STRING",
            "description": "The CSS selector of the input element to fill.",
        },
        "value": {"type": "STRING", "description": "The value to fill the input with."},
    },
    "required": ["selector", "value"],
}
