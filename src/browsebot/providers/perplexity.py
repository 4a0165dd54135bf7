"""Perplexity provider adapter: plain chat completions, no tool calling."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from browsebot.config import get_settings
from browsebot.errors import ConfigError
from browsebot.parts import TextPart, Turn
from browsebot.prefs import PERPLEXITY_API_KEY, PERPLEXITY_MODEL, Preferences
from browsebot.providers._http import post_json
from browsebot.providers.base import ProviderDescriptor, RequestEnvelope

logger = logging.getLogger(__name__)

DESCRIPTOR = ProviderDescriptor(
    name="perplexity",
    label="Perplexity AI",
    api_key_url="https://www.perplexity.ai/settings/api",
    favicon_url="https://www.perplexity.ai/favicon.ico",
    model_labels={
        "pplx-7b-chat": "PPLX 7B Chat",
        "pplx-70b-chat": "PPLX 70B Chat",
        "pplx-llama-3-8b-instruct": "Llama 3 8B Instruct",
        "pplx-llama-3-70b-instruct": "Llama 3 70B Instruct",
    },
)


def to_messages(envelope: RequestEnvelope) -> list[dict[str, str]]:
    """Text-only transcript; tool turns and function-call-only turns are dropped."""
    messages: list[dict[str, str]] = []
    if envelope.system_instruction is not None and envelope.system_instruction.text:
        messages.append({"role": "system", "content": envelope.system_instruction.text})
    for turn in envelope.history:
        if turn.role == "tool":
            continue
        text = turn.first_text()
        if not text:
            continue
        messages.append({"role": "assistant" if turn.role == "model" else "user", "content": text})
    return messages


def parse_response(payload: dict[str, Any]) -> Turn | None:
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if not isinstance(content, str) or not content:
        return None
    return Turn(role="model", parts=[TextPart(content)])


class PerplexityProvider:
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
        return str(self._prefs.get(PERPLEXITY_API_KEY) or "")

    @api_key.setter
    def api_key(self, value: str) -> None:
        if isinstance(value, str):
            self._prefs.set(PERPLEXITY_API_KEY, value)

    @property
    def model(self) -> str:
        return str(self._prefs.get(PERPLEXITY_MODEL) or "")

    @model.setter
    def model(self, value: str) -> None:
        if value in self.descriptor.available_models:
            self._prefs.set(PERPLEXITY_MODEL, value)

    @property
    def api_url(self) -> str:
        return get_settings().perplexity_api_url

    async def send_message(self, envelope: RequestEnvelope) -> Turn | None:
        if not self.api_key:
            raise ConfigError("No Perplexity API key set.")
        if envelope.tools:
            logger.debug("Perplexity does not support tool calling; declarations dropped")
        payload = await post_json(
            self.api_url,
            headers={"Authorization": f"Bearer {self.api_key}"},
            body={"model": self.model, "messages": to_messages(envelope)},
            label=self.descriptor.label,
            timeout_seconds=get_settings().provider_timeout_seconds,
            transport=self._transport,
        )
        return parse_response(payload)
