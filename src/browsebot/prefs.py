"""Preference store contract and typed accessors.

The host persists named preferences (``extension.browse-bot.*``); everything in
the conversation core reads them live through :class:`Preferences`, so a change
made in a settings view applies to the next message without rebuilding anything.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from browsebot.config import Settings, get_settings

logger = logging.getLogger(__name__)

ENABLED = "extension.browse-bot.enabled"
MINIMAL = "extension.browse-bot.minimal"
PERSIST = "extension.browse-bot.persist-chat"
DND_ENABLED = "extension.browse-bot.dnd-enabled"
POSITION = "extension.browse-bot.position"
DEBUG_MODE = "extension.browse-bot.debug-mode"

GOD_MODE = "extension.browse-bot.god-mode"
CITATIONS_ENABLED = "extension.browse-bot.citations-enabled"
MAX_TOOL_CALLS = "extension.browse-bot.max-tool-calls"
CONFIRM_TOOL_CALLS = "extension.browse-bot.conform-before-tool-call"
TOOL_FOLLOWUP = "extension.browse-bot.tool-followup"

CONTEXT_MENU_ENABLED = "extension.browse-bot.context-menu-enabled"
CONTEXT_MENU_AUTOSEND = "extension.browse-bot.context-menu-autosend"

LLM_PROVIDER = "extension.browse-bot.llm-provider"
GEMINI_API_KEY = "extension.browse-bot.gemini-api-key"
GEMINI_MODEL = "extension.browse-bot.gemini-model"
MISTRAL_API_KEY = "extension.browse-bot.mistral-api-key"
MISTRAL_MODEL = "extension.browse-bot.mistral-model"
PERPLEXITY_API_KEY = "extension.browse-bot.perplexity-api-key"
PERPLEXITY_MODEL = "extension.browse-bot.perplexity-model"


def default_values(settings: Settings) -> dict[str, Any]:
    return {
        ENABLED: settings.enabled,
        MINIMAL: settings.minimal,
        GOD_MODE: settings.god_mode,
        DEBUG_MODE: settings.debug_mode,
        PERSIST: settings.persist_chat,
        CITATIONS_ENABLED: settings.citations_enabled,
        CONTEXT_MENU_ENABLED: settings.context_menu_enabled,
        CONTEXT_MENU_AUTOSEND: settings.context_menu_autosend,
        LLM_PROVIDER: settings.llm_provider,
        GEMINI_API_KEY: settings.gemini_api_key,
        GEMINI_MODEL: settings.gemini_model,
        MISTRAL_API_KEY: settings.mistral_api_key,
        MISTRAL_MODEL: settings.mistral_model,
        PERPLEXITY_API_KEY: settings.perplexity_api_key,
        PERPLEXITY_MODEL: settings.perplexity_model,
        DND_ENABLED: settings.dnd_enabled,
        POSITION: settings.position,
        MAX_TOOL_CALLS: settings.max_tool_calls,
        CONFIRM_TOOL_CALLS: settings.confirm_tool_calls,
        TOOL_FOLLOWUP: settings.tool_followup,
    }


class PreferenceStore(Protocol):
    """Host-side persistence for named preferences."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def has(self, key: str) -> bool: ...


class MemoryPreferenceStore:
    """Dict-backed store; used headless and in tests."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any | None:
        return self._values.get(key)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def has(self, key: str) -> bool:
        return key in self._values


class Preferences:
    def __init__(
        self,
        store: PreferenceStore | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.store: PreferenceStore = store if store is not None else MemoryPreferenceStore()
        self.defaults = default_values(settings or get_settings())

    def seed_defaults(self) -> None:
        """Write every default whose key is not yet set. Existing values are kept."""
        for key, value in self.defaults.items():
            if not self.store.has(key):
                self.store.set(key, value)

    def get(self, key: str) -> Any:
        try:
            value = self.store.get(key)
        except Exception:
            logger.exception("Preference read failed for %s", key)
            return self.defaults.get(key)
        if value is None:
            return self.defaults.get(key)
        return value

    def set(self, key: str, value: Any) -> None:
        self.store.set(key, value)

    @property
    def enabled(self) -> bool:
        return bool(self.get(ENABLED))

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self.set(ENABLED, value)

    @property
    def minimal(self) -> bool:
        return bool(self.get(MINIMAL))

    @minimal.setter
    def minimal(self, value: bool) -> None:
        self.set(MINIMAL, value)

    @property
    def debug_mode(self) -> bool:
        return bool(self.get(DEBUG_MODE))

    @property
    def god_mode(self) -> bool:
        return bool(self.get(GOD_MODE))

    @god_mode.setter
    def god_mode(self, value: bool) -> None:
        self.set(GOD_MODE, value)

    @property
    def citations_enabled(self) -> bool:
        return bool(self.get(CITATIONS_ENABLED))

    @citations_enabled.setter
    def citations_enabled(self, value: bool) -> None:
        self.set(CITATIONS_ENABLED, value)

    @property
    def max_tool_calls(self) -> int:
        raw = self.get(MAX_TOOL_CALLS)
        try:
            return int(raw)
        except (TypeError, ValueError):
            return 0

    @max_tool_calls.setter
    def max_tool_calls(self, value: int) -> None:
        self.set(MAX_TOOL_CALLS, int(value))

    @property
    def confirm_tool_calls(self) -> bool:
        return bool(self.get(CONFIRM_TOOL_CALLS))

    @confirm_tool_calls.setter
    def confirm_tool_calls(self, value: bool) -> None:
        self.set(CONFIRM_TOOL_CALLS, value)

    @property
    def tool_followup(self) -> bool:
        return bool(self.get(TOOL_FOLLOWUP))

    @tool_followup.setter
    def tool_followup(self, value: bool) -> None:
        self.set(TOOL_FOLLOWUP, value)

    @property
    def persist_chat(self) -> bool:
        return bool(self.get(PERSIST))

    @persist_chat.setter
    def persist_chat(self, value: bool) -> None:
        self.set(PERSIST, value)

    @property
    def context_menu_enabled(self) -> bool:
        return bool(self.get(CONTEXT_MENU_ENABLED))

    @property
    def context_menu_autosend(self) -> bool:
        return bool(self.get(CONTEXT_MENU_AUTOSEND))

    @property
    def dnd_enabled(self) -> bool:
        return bool(self.get(DND_ENABLED))

    @property
    def position(self) -> str:
        return str(self.get(POSITION) or "top-right")

    @property
    def llm_provider(self) -> str:
        return str(self.get(LLM_PROVIDER) or "")

    @llm_provider.setter
    def llm_provider(self, value: str) -> None:
        self.set(LLM_PROVIDER, value)
