"""Gemini provider adapter (generateContent with native function calling)."""

from __future__ import annotations

import logging

import httpx

from browsebot.config import get_settings
from browsebot.errors import ConfigError
from browsebot.parts import Turn
from browsebot.prefs import GEMINI_API_KEY, GEMINI_MODEL, Preferences
from browsebot.providers._gemini_common import build_request_body, parse_response
from browsebot.providers._http import post_json
from browsebot.providers.base import ProviderDescriptor, RequestEnvelope

logger = logging.getLogger(__name__)

DESCRIPTOR = ProviderDescriptor(
    name="gemini",
    label="Google Gemini",
    api_key_url="https://aistudio.google.com/app/apikey",
    favicon_url=(
        "https://www.google.com/s2/favicons?sz=32&domain_url=https%3A%2F%2Fgemini.google.com"
    ),
    model_labels={
        "gemini-2.5-pro": "Gemini 2.5 Pro",
        "gemini-2.5-flash": "Gemini 2.5 Flash",
        "gemini-2.0-flash": "Gemini 2.0 Flash",
        "gemini-2.0-flash-lite": "Gemini 2.0 Flash Lite",
        "gemini-1.5-pro": "Gemini 1.5 Pro",
        "gemini-1.5-flash": "Gemini 1.5 Flash",
        "gemini-1.5-flash-8b": "Gemini 1.5 Flash 8B",
    },
)


class GeminiProvider:
    descriptor = DESCRIPTOR

    def __init__(
        self,
        prefs: Preferences,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._prefs = prefs
        self._transport = transport

    @property
    def api_key(self) -> str:
        return str(self._prefs.get(GEMINI_API_KEY) or "")

    @api_key.setter
    def api_key(self, value: str) -> None:
        if isinstance(value, str):
            self._prefs.set(GEMINI_API_KEY, value)

    @property
    def model(self) -> str:
        return str(self._prefs.get(GEMINI_MODEL) or "")

    @model.setter
    def model(self, value: str) -> None:
        if value in self.descriptor.available_models:
            self._prefs.set(GEMINI_MODEL, value)

    @property
    def api_url(self) -> str | None:
        if not self.model:
            return None
        base = get_settings().gemini_api_base_url.rstrip("/")
        return f"{base}/{self.model}:generateContent"

    async def send_message(self, envelope: RequestEnvelope) -> Turn | None:
        api_url = self.api_url
        if not self.api_key or not api_url:
            raise ConfigError("No Gemini API key or model set.")
        payload = await post_json(
            api_url,
            headers={"x-goog-api-key": self.api_key},
            body=build_request_body(envelope),
            label=self.descriptor.label,
            timeout_seconds=get_settings().provider_timeout_seconds,
            transport=self._transport,
        )
        turn = parse_response(payload)
        if turn is None:
            logger.warning("Gemini response had no usable candidate content")
        return turn
