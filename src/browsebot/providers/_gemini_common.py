"""Shared helpers for Gemini REST request building and response parsing."""

from __future__ import annotations

from typing import Any

from browsebot.parts import FunctionResponsePart, Turn, part_to_dict, turn_from_dict
from browsebot.providers.base import RequestEnvelope


def to_contents(history: tuple[Turn, ...]) -> list[dict[str, object]]:
    contents: list[dict[str, object]] = []
    for turn in history:
        if not turn.parts:
            continue
        # Gemini carries function responses on a user-role content.
        if turn.role == "tool" or all(
            isinstance(part, FunctionResponsePart) for part in turn.parts
        ):
            role = "user"
        else:
            role = turn.role
        contents.append({"role": role, "parts": [part_to_dict(part) for part in turn.parts]})
    return contents


def to_tools(tools: tuple[dict[str, Any], ...] | None) -> list[dict[str, object]] | None:
    """Registry declarations already use Gemini's schema dialect; they go out as one tool entry."""
    if not tools:
        return None
    return [{"functionDeclarations": [dict(tool) for tool in tools]}]


def build_request_body(envelope: RequestEnvelope) -> dict[str, object]:
    body: dict[str, object] = {"contents": to_contents(envelope.history)}
    if envelope.system_instruction is not None and envelope.system_instruction.text:
        body["systemInstruction"] = {"parts": [{"text": envelope.system_instruction.text}]}
    gemini_tools = to_tools(envelope.tools)
    if gemini_tools is not None:
        body["tools"] = gemini_tools
    if envelope.response_format:
        body["generationConfig"] = {"responseMimeType": envelope.response_format}
    return body


def parse_response(payload: dict[str, Any]) -> Turn | None:
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    first = candidates[0]
    if not isinstance(first, dict):
        return None
    turn = turn_from_dict(first.get("content"), default_role="model")
    if turn is None or not turn.parts:
        return None
    turn.role = "model"
    return turn
