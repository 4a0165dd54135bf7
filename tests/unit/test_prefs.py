from typing import Any

from browsebot.config import get_settings
from browsebot.ids import TOOL_CALL_ID_LENGTH, new_id, new_tool_call_id
from browsebot.prefs import (
    CONFIRM_TOOL_CALLS,
    GOD_MODE,
    LLM_PROVIDER,
    MAX_TOOL_CALLS,
    MemoryPreferenceStore,
    Preferences,
)


def test_seed_defaults_keeps_existing_values() -> None:
    store = MemoryPreferenceStore({GOD_MODE: True})
    prefs = Preferences(store, settings=get_settings())

    prefs.seed_defaults()

    assert store.get(GOD_MODE) is True
    assert store.get(LLM_PROVIDER) == "gemini"
    assert store.get(MAX_TOOL_CALLS) == 5
    assert store.get(CONFIRM_TOOL_CALLS) is True


def test_unset_values_fall_back_to_defaults() -> None:
    prefs = Preferences(MemoryPreferenceStore(), settings=get_settings())

    assert prefs.god_mode is False
    assert prefs.confirm_tool_calls is True
    assert prefs.llm_provider == "gemini"
    assert prefs.position == "top-right"


def test_setters_write_through_to_store() -> None:
    store = MemoryPreferenceStore()
    prefs = Preferences(store, settings=get_settings())

    prefs.confirm_tool_calls = False
    prefs.llm_provider = "mistral"

    assert store.get(CONFIRM_TOOL_CALLS) is False
    assert prefs.llm_provider == "mistral"


def test_invalid_max_tool_calls_reads_as_zero() -> None:
    prefs = Preferences(MemoryPreferenceStore({MAX_TOOL_CALLS: "lots"}), settings=get_settings())

    assert prefs.max_tool_calls == 0


def test_failing_store_reads_defaults() -> None:
    class BrokenStore(MemoryPreferenceStore):
        def get(self, key: str) -> Any | None:
            raise OSError("prefs file locked")

    prefs = Preferences(BrokenStore(), settings=get_settings())

    assert prefs.max_tool_calls == 5


def test_ids() -> None:
    assert new_id("conv").startswith("conv_")
    assert new_id("conv") != new_id("conv")
    call_id = new_tool_call_id()
    assert len(call_id) == TOOL_CALL_ID_LENGTH
    assert call_id.isalnum()
