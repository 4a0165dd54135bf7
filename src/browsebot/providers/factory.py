"""Provider construction helpers."""

from enum import StrEnum

import httpx

from browsebot.errors import ConfigError
from browsebot.prefs import Preferences
from browsebot.providers.base import ModelProvider, ProviderDescriptor
from browsebot.providers.gemini import GeminiProvider
from browsebot.providers.mistral import MistralProvider
from browsebot.providers.perplexity import PerplexityProvider


class ProviderName(StrEnum):
    GEMINI = "gemini"
    MISTRAL = "mistral"
    PERPLEXITY = "perplexity"


DEFAULT_PROVIDER = ProviderName.GEMINI

DESCRIPTORS: dict[ProviderName, ProviderDescriptor] = {
    ProviderName.GEMINI: GeminiProvider.descriptor,
    ProviderName.MISTRAL: MistralProvider.descriptor,
    ProviderName.PERPLEXITY: PerplexityProvider.descriptor,
}


def parse_provider_name(value: str) -> ProviderName:
    """Strict lookup; raises ConfigError for names outside the closed set."""
    try:
        return ProviderName(value.strip().lower())
    except ValueError as exc:
        raise ConfigError(f'Provider "{value}" not found.') from exc


def resolve_provider_name(value: str | None) -> ProviderName:
    if not value:
        return DEFAULT_PROVIDER
    try:
        return parse_provider_name(value)
    except ConfigError:
        return DEFAULT_PROVIDER


def build_provider(
    name: ProviderName,
    prefs: Preferences,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ModelProvider:
    if name is ProviderName.MISTRAL:
        return MistralProvider(prefs, transport=transport)
    if name is ProviderName.PERPLEXITY:
        return PerplexityProvider(prefs, transport=transport)
    return GeminiProvider(prefs, transport=transport)
