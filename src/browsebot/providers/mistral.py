"""Mistral provider adapter using the OpenAI-compatible chat completions API."""

from __future__ import annotations

import json
import logging
from collections import defaultdict, deque
from typing import Any

import httpx

from browsebot.config import get_settings
from browsebot.errors import ConfigError
from browsebot.ids import new_tool_call_id
from browsebot.parts import FunctionCallPart, Part, TextPart, Turn
from browsebot.prefs import MISTRAL_API_KEY, MISTRAL_MODEL, Preferences
from browsebot.providers._http import post_json
from browsebot.providers.base import ProviderDescriptor, RequestEnvelope
from browsebot.providers.queue import RequestQueue, shared_queue

logger = logging.getLogger(__name__)

DESCRIPTOR = ProviderDescriptor(
    name="mistral",
    label="Mistral AI",
    api_key_url="https://console.mistral.ai/api-keys/",
    favicon_url="https://www.google.com/s2/favicons?sz=32&domain_url=https%3A%2F%2Fmistral.ai%2F",
    model_labels={
        "mistral-small": "Mistral Small",
        "mistral-medium-latest": "Mistral Medium (Latest)",
        "mistral-large-latest": "Mistral Large (Latest)",
        "pixtral-large-latest": "Pixtral Large (Latest)",
    },
)


def normalize_schema_types(schema: Any) -> Any:
    """Lower-case every string ``type`` value, recursively (OpenAI-style JSON schema)."""
    if isinstance(schema, list):
        return [normalize_schema_types(item) for item in schema]
    if isinstance(schema, dict):
        normalized: dict[str, Any] = {}
        for key, value in schema.items():
            if key == "type" and isinstance(value, str):
                normalized[key] = value.lower()
            else:
                normalized[key] = normalize_schema_types(value)
        return normalized
    return schema


def to_tools(tools: tuple[dict[str, Any], ...] | None) -> list[dict[str, object]] | None:
    if not tools:
        return None
    normalized: list[dict[str, object]] = []
    for tool in tools:
        name = tool.get("name")
        if not isinstance(name, str) or not name:
            continue
        params = tool.get("parameters")
        function: dict[str, object] = {
            "name": name,
            "parameters": normalize_schema_types(
                params if isinstance(params, dict) else {"type": "object", "properties": {}}
            ),
        }
        description = tool.get("description")
        if isinstance(description, str) and description:
            function["description"] = description
        normalized.append({"type": "function", "function": function})
    return normalized or None


def to_messages(envelope: RequestEnvelope) -> list[dict[str, object]]:
    messages: list[dict[str, object]] = []
    if envelope.system_instruction is not None and envelope.system_instruction.text:
        messages.append({"role": "system", "content": envelope.system_instruction.text})

    # ids issued for assistant tool calls, consumed by the matching tool messages
    open_calls: dict[str, deque[str]] = defaultdict(deque)
    for turn in envelope.history:
        if turn.role == "user":
            messages.append({"role": "user", "content": turn.first_text()})
        elif turn.role == "model":
            tool_calls: list[dict[str, object]] = []
            for call in turn.function_calls():
                call_id = new_tool_call_id()
                open_calls[call.name].append(call_id)
                tool_calls.append(
                    {
                        "id": call_id,
                        "type": "function",
                        "function": {"name": call.name, "arguments": json.dumps(call.args)},
                    }
                )
            message: dict[str, object] = {"role": "assistant", "content": turn.first_text()}
            if tool_calls:
                message["tool_calls"] = tool_calls
            messages.append(message)
        elif turn.role == "tool":
            for response in turn.function_responses():
                pending = open_calls.get(response.name)
                call_id = pending.popleft() if pending else new_tool_call_id()
                messages.append(
                    {
                        "role": "tool",
                        "name": response.name,
                        "content": json.dumps(response.response),
                        "tool_call_id": call_id,
                    }
                )
    return messages


def _parse_arguments(arguments: object) -> dict[str, Any]:
    if isinstance(arguments, dict):
        return arguments
    if isinstance(arguments, str) and arguments.strip():
        try:
            decoded = json.loads(arguments)
        except json.JSONDecodeError:
            logger.warning("Mistral tool call arguments are not valid JSON: %r", arguments)
            return {}
        if isinstance(decoded, dict):
            return decoded
    return {}


def parse_response(payload: dict[str, Any]) -> Turn | None:
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None

    parts: list[Part] = []
    content = message.get("content")
    if isinstance(content, str) and content:
        parts.append(TextPart(content))
    tool_calls = message.get("tool_calls")
    if isinstance(tool_calls, list):
        for call in tool_calls:
            if not isinstance(call, dict):
                continue
            fn = call.get("function")
            if not isinstance(fn, dict):
                continue
            name = fn.get("name")
            if isinstance(name, str) and name:
                parts.append(FunctionCallPart(name=name, args=_parse_arguments(fn.get("arguments"))))
    if not parts:
        return None
    return Turn(role="model", parts=parts)


class MistralProvider:
    descriptor = DESCRIPTOR

    def __init__(
        self,
        prefs: Preferences,
        *,
        queue: RequestQueue | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._prefs = prefs
        self._transport = transport
        self.queue = queue or shared_queue(
            "mistral", get_settings().mistral_min_request_interval_seconds
        )

    @property
    def api_key(self) -> str:
        return str(self._prefs.get(MISTRAL_API_KEY) or "")

    @api_key.setter
    def api_key(self, value: str) -> None:
        if isinstance(value, str):
            self._prefs.set(MISTRAL_API_KEY, value)

    @property
    def model(self) -> str:
        return str(self._prefs.get(MISTRAL_MODEL) or "")

    @model.setter
    def model(self, value: str) -> None:
        if value in self.descriptor.available_models:
            self._prefs.set(MISTRAL_MODEL, value)

    @property
    def api_url(self) -> str:
        return get_settings().mistral_api_url

    def build_body(self, envelope: RequestEnvelope) -> dict[str, object]:
        body: dict[str, object] = {"model": self.model, "messages": to_messages(envelope)}
        tools = to_tools(envelope.tools)
        if tools is not None:
            body["tools"] = tools
        elif envelope.wants_json:
            body["response_format"] = {"type": "json_object"}
        return body

    async def send_message(self, envelope: RequestEnvelope) -> Turn | None:
        if not self.api_key:
            raise ConfigError("No Mistral API key set.")
        body = self.build_body(envelope)
        headers = {"Authorization": f"Bearer {self.api_key}"}
        timeout_seconds = get_settings().provider_timeout_seconds

        async def _call() -> dict[str, Any]:
            return await post_json(
                self.api_url,
                headers=headers,
                body=body,
                label=self.descriptor.label,
                timeout_seconds=timeout_seconds,
                transport=self._transport,
            )

        payload = await self.queue.enqueue(_call)
        turn = parse_response(payload)
        if turn is None:
            logger.warning("Mistral response had no content or tool calls")
        return turn
