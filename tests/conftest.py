from collections.abc import Callable
from typing import Any

import pytest

from browsebot.config import get_settings
from browsebot.logging import clear_context
from browsebot.parts import Turn
from browsebot.prefs import MemoryPreferenceStore, Preferences
from browsebot.providers.base import ProviderDescriptor, RequestEnvelope
from browsebot.providers.queue import reset_shared_queues
from browsebot.tools.host import OpenTarget

_ENV_KEYS = (
    "APP_ENV",
    "BROWSE_BOT_LLM_PROVIDER",
    "BROWSE_BOT_GOD_MODE",
    "BROWSE_BOT_CITATIONS_ENABLED",
    "BROWSE_BOT_MAX_TOOL_CALLS",
    "BROWSE_BOT_CONFIRM_TOOL_CALLS",
    "BROWSE_BOT_TOOL_FOLLOWUP",
    "BROWSE_BOT_DEBUG_MODE",
    "GEMINI_API_KEY",
    "MISTRAL_API_KEY",
    "PERPLEXITY_API_KEY",
)


@pytest.fixture(autouse=True)
def test_env(monkeypatch: pytest.MonkeyPatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("MISTRAL_MIN_REQUEST_INTERVAL_SECONDS", "0")
    get_settings.cache_clear()
    reset_shared_queues()
    yield
    get_settings.cache_clear()
    reset_shared_queues()
    clear_context()


@pytest.fixture
def prefs() -> Preferences:
    store = MemoryPreferenceStore()
    prefs = Preferences(store, settings=get_settings())
    prefs.seed_defaults()
    return prefs


class FakeBrowserHost:
    def __init__(
        self,
        engines: dict[str, str] | None = None,
        *,
        glance: bool = False,
        split_view: bool = True,
    ) -> None:
        self.engines = engines or {
            "Google": "https://www.google.com/search?q={}",
            "DuckDuckGo": "https://duckduckgo.com/?q={}",
        }
        self.glance = glance
        self.split_view = split_view
        self.opened: list[tuple[str, OpenTarget]] = []
        self.glances: list[str] = []
        self.splits: list[tuple[str, ...]] = []
        self.fail_open = False

    async def visible_search_engines(self) -> list[str]:
        return list(self.engines)

    async def default_search_engine(self) -> str:
        return next(iter(self.engines))

    async def search_url(self, engine_name: str, term: str) -> str | None:
        template = self.engines.get(engine_name)
        if template is None:
            return None
        return template.format(term.replace(" ", "+"))

    async def open_url(self, url: str, target: OpenTarget) -> None:
        if self.fail_open:
            raise RuntimeError("tab creation failed")
        self.opened.append((url, target))

    def supports_glance(self) -> bool:
        return self.glance

    async def open_glance(self, url: str) -> None:
        self.glances.append(url)

    def supports_split_view(self) -> bool:
        return self.split_view

    async def split_with_current(self, url: str, orientation: str) -> None:
        self.splits.append((url, orientation))

    async def split_new(self, first_url: str, second_url: str, orientation: str) -> None:
        self.splits.append((first_url, second_url, orientation))


class FakePageBridge:
    def __init__(self, text: str = "Example page text.") -> None:
        self.text = text
        self.trim_calls: list[bool] = []
        self.clicked: list[str] = []
        self.filled: list[tuple[str, str]] = []

    async def get_page_text_content(self, trim_whitespace: bool = True) -> dict[str, Any]:
        self.trim_calls.append(trim_whitespace)
        return {"url": "https://example.com", "title": "Example", "textContent": self.text}

    async def get_html_content(self) -> dict[str, Any]:
        return {"url": "https://example.com", "title": "Example", "htmlContent": "<p>hi</p>"}

    async def get_selected_text(self) -> dict[str, Any]:
        return {"hasSelection": False, "selectedText": ""}

    async def get_youtube_transcript(self) -> dict[str, Any]:
        return {"error": "Not a YouTube video page."}

    async def click_element(self, selector: str) -> dict[str, Any]:
        self.clicked.append(selector)
        return {"result": f"Clicked element with selector {selector}"}

    async def fill_form(self, selector: str, value: str) -> dict[str, Any]:
        self.filled.append((selector, value))
        return {"result": f"Filled element with selector {selector} with value {value}"}


Step = Turn | None | BaseException | Callable[[RequestEnvelope], Turn | None]


class ScriptedProvider:
    """Replays a fixed list of responses and records every envelope it receives."""

    descriptor = ProviderDescriptor(name="scripted", label="Scripted", api_key_url="")

    def __init__(self, steps: list[Step]) -> None:
        self.steps = list(steps)
        self.envelopes: list[RequestEnvelope] = []
        self.api_key = "test-key"
        self.model = "scripted-1"

    async def send_message(self, envelope: RequestEnvelope) -> Turn | None:
        self.envelopes.append(envelope)
        if not self.steps:
            raise AssertionError("unexpected provider call")
        step = self.steps.pop(0)
        if isinstance(step, BaseException):
            raise step
        if callable(step):
            return step(envelope)
        return step


class RecordingGate:
    def __init__(self, answer: bool = True) -> None:
        self.answer = answer
        self.asked: list[list[str]] = []

    async def confirm(self, tool_names: list[str]) -> bool:
        self.asked.append(list(tool_names))
        return self.answer


@pytest.fixture
def host() -> FakeBrowserHost:
    return FakeBrowserHost()


@pytest.fixture
def bridge() -> FakePageBridge:
    return FakePageBridge()
