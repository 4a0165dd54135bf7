"""Application configuration contract."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = Field(alias="APP_ENV", default="dev")
    log_level: str = Field(alias="LOG_LEVEL", default="INFO")
    debug_mode: bool = Field(alias="BROWSE_BOT_DEBUG_MODE", default=False)

    enabled: bool = Field(alias="BROWSE_BOT_ENABLED", default=True)
    minimal: bool = Field(alias="BROWSE_BOT_MINIMAL", default=True)
    persist_chat: bool = Field(alias="BROWSE_BOT_PERSIST_CHAT", default=False)
    dnd_enabled: bool = Field(alias="BROWSE_BOT_DND_ENABLED", default=True)
    position: str = Field(alias="BROWSE_BOT_POSITION", default="top-right")
    context_menu_enabled: bool = Field(alias="BROWSE_BOT_CONTEXT_MENU_ENABLED", default=True)
    context_menu_autosend: bool = Field(alias="BROWSE_BOT_CONTEXT_MENU_AUTOSEND", default=True)

    god_mode: bool = Field(alias="BROWSE_BOT_GOD_MODE", default=False)
    citations_enabled: bool = Field(alias="BROWSE_BOT_CITATIONS_ENABLED", default=False)
    max_tool_calls: int = Field(alias="BROWSE_BOT_MAX_TOOL_CALLS", default=5)
    confirm_tool_calls: bool = Field(alias="BROWSE_BOT_CONFIRM_TOOL_CALLS", default=True)
    tool_followup: bool = Field(alias="BROWSE_BOT_TOOL_FOLLOWUP", default=False)

    llm_provider: str = Field(alias="BROWSE_BOT_LLM_PROVIDER", default="gemini")
    provider_timeout_seconds: int = Field(alias="PROVIDER_TIMEOUT_SECONDS", default=60)

    gemini_api_key: str = Field(alias="GEMINI_API_KEY", default="")
    gemini_model: str = Field(alias="GEMINI_MODEL", default="gemini-2.0-flash")
    gemini_api_base_url: str = Field(
        alias="GEMINI_API_BASE_URL",
        default="https://generativelanguage.googleapis.com/v1beta/models",
    )

    mistral_api_key: str = Field(alias="MISTRAL_API_KEY", default="")
    mistral_model: str = Field(alias="MISTRAL_MODEL", default="mistral-medium-latest")
    mistral_api_url: str = Field(
        alias="MISTRAL_API_URL", default="https://api.mistral.ai/v1/chat/completions"
    )
    mistral_min_request_interval_seconds: float = Field(
        alias="MISTRAL_MIN_REQUEST_INTERVAL_SECONDS", default=1.0
    )

    perplexity_api_key: str = Field(alias="PERPLEXITY_API_KEY", default="")
    perplexity_model: str = Field(alias="PERPLEXITY_MODEL", default="pplx-7b-chat")
    perplexity_api_url: str = Field(
        alias="PERPLEXITY_API_URL", default="https://api.perplexity.ai/v1/chat/completions"
    )


def validate_settings_for_env(settings: Settings) -> None:
    import logging as _logging

    _logger = _logging.getLogger(__name__)

    if settings.max_tool_calls < 0:
        raise ValueError("invalid configuration: BROWSE_BOT_MAX_TOOL_CALLS must be >= 0")

    if settings.debug_mode and settings.app_env == "prod":
        _logger.warning("BROWSE_BOT_DEBUG_MODE is enabled in production; prompts will be logged")

    if settings.app_env != "prod":
        return

    provider = settings.llm_provider.strip().lower()
    api_keys = {
        "gemini": ("GEMINI_API_KEY", settings.gemini_api_key),
        "mistral": ("MISTRAL_API_KEY", settings.mistral_api_key),
        "perplexity": ("PERPLEXITY_API_KEY", settings.perplexity_api_key),
    }
    missing: list[str] = []
    if provider not in api_keys:
        missing.append("BROWSE_BOT_LLM_PROVIDER(unknown provider)")
    else:
        key_name, value = api_keys[provider]
        if not value.strip():
            missing.append(key_name)

    if missing:
        keys = ", ".join(sorted(set(missing)))
        raise ValueError(f"invalid production configuration: {keys}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
