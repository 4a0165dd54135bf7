"""Provider contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from browsebot.parts import TextPart, Turn

JSON_RESPONSE_FORMAT = "application/json"


@dataclass(slots=True, frozen=True)
class RequestEnvelope:
    """Everything an adapter needs for one call. Built per send, never mutated."""

    history: tuple[Turn, ...]
    system_instruction: TextPart | None = None
    tools: tuple[dict[str, Any], ...] | None = None
    response_format: str | None = None

    @property
    def wants_json(self) -> bool:
        return self.response_format == JSON_RESPONSE_FORMAT


@dataclass(slots=True, frozen=True)
class ProviderDescriptor:
    name: str
    label: str
    api_key_url: str
    favicon_url: str = ""
    model_labels: dict[str, str] = field(default_factory=dict)

    @property
    def available_models(self) -> tuple[str, ...]:
        return tuple(self.model_labels)


class ModelProvider(Protocol):
    descriptor: ProviderDescriptor

    @property
    def api_key(self) -> str: ...

    @property
    def model(self) -> str: ...

    async def send_message(self, envelope: RequestEnvelope) -> Turn | None:
        """Return the normalized model turn, or None when the vendor gave no content.

        Raises NetworkError on transport failure and ApiError on non-2xx status.
        """
        ...
