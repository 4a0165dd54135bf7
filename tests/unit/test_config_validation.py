import pytest

from browsebot.config import get_settings, validate_settings_for_env


def test_dev_settings_need_no_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "dev")
    get_settings.cache_clear()

    validate_settings_for_env(get_settings())


def test_prod_requires_selected_provider_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "prod")
    monkeypatch.setenv("BROWSE_BOT_LLM_PROVIDER", "mistral")
    get_settings.cache_clear()

    with pytest.raises(ValueError, match="MISTRAL_API_KEY"):
        validate_settings_for_env(get_settings())


def test_prod_accepts_configured_provider(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "prod")
    monkeypatch.setenv("GEMINI_API_KEY", "g-key")
    get_settings.cache_clear()

    validate_settings_for_env(get_settings())


def test_prod_rejects_unknown_provider(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "prod")
    monkeypatch.setenv("BROWSE_BOT_LLM_PROVIDER", "openai")
    get_settings.cache_clear()

    with pytest.raises(ValueError, match="unknown provider"):
        validate_settings_for_env(get_settings())


def test_negative_tool_depth_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BROWSE_BOT_MAX_TOOL_CALLS", "-1")
    get_settings.cache_clear()

    with pytest.raises(ValueError):
        validate_settings_for_env(get_settings())


def test_env_overrides_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BROWSE_BOT_GOD_MODE", "1")
    monkeypatch.setenv("MISTRAL_MODEL", "mistral-large-latest")
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.god_mode is True
    assert settings.mistral_model == "mistral-large-latest"
    assert settings.max_tool_calls == 5
