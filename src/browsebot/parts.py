"""Provider-agnostic conversation model.

A :class:`Turn` is one history entry; its parts are a tagged union of text,
a model-requested function call, or a tool's response. The dict form
(``{"text": ...}`` / ``{"functionCall": ...}`` / ``{"functionResponse": ...}``)
is what callers persist and what ``get_history`` exports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

Role = Literal["user", "model", "tool"]
_ROLES: frozenset[str] = frozenset({"user", "model", "tool"})


@dataclass(slots=True, frozen=True)
class TextPart:
    text: str


@dataclass(slots=True, frozen=True)
class FunctionCallPart:
    name: str
    args: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class FunctionResponsePart:
    name: str
    response: dict[str, Any] = field(default_factory=dict)


Part = TextPart | FunctionCallPart | FunctionResponsePart


@dataclass(slots=True)
class Turn:
    role: Role
    parts: list[Part] = field(default_factory=list)

    @classmethod
    def user(cls, text: str) -> Turn:
        return cls(role="user", parts=[TextPart(text)])

    def first_text(self) -> str:
        for part in self.parts:
            if isinstance(part, TextPart) and part.text:
                return part.text
        return ""

    def function_calls(self) -> list[FunctionCallPart]:
        return [part for part in self.parts if isinstance(part, FunctionCallPart)]

    def function_responses(self) -> list[FunctionResponsePart]:
        return [part for part in self.parts if isinstance(part, FunctionResponsePart)]

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role, "parts": [part_to_dict(part) for part in self.parts]}


def part_to_dict(part: Part) -> dict[str, Any]:
    if isinstance(part, TextPart):
        return {"text": part.text}
    if isinstance(part, FunctionCallPart):
        return {"functionCall": {"name": part.name, "args": dict(part.args)}}
    return {"functionResponse": {"name": part.name, "response": dict(part.response)}}


def part_from_dict(raw: Any) -> Part | None:
    """Decode one part; returns None for shapes this model does not carry (e.g. thoughts)."""
    if not isinstance(raw, dict):
        return None
    if bool(raw.get("thought")):
        return None
    text = raw.get("text")
    if isinstance(text, str):
        return TextPart(text)
    call = raw.get("functionCall")
    if isinstance(call, dict):
        name = call.get("name")
        args = call.get("args", {})
        if isinstance(name, str) and name:
            return FunctionCallPart(name=name, args=args if isinstance(args, dict) else {})
        return None
    response = raw.get("functionResponse")
    if isinstance(response, dict):
        name = response.get("name")
        payload = response.get("response", {})
        if isinstance(name, str) and name:
            return FunctionResponsePart(
                name=name,
                response=payload if isinstance(payload, dict) else {"result": payload},
            )
    return None


def turn_from_dict(raw: Any, *, default_role: Role = "model") -> Turn | None:
    if not isinstance(raw, dict):
        return None
    role = raw.get("role", default_role)
    if role not in _ROLES:
        role = default_role
    raw_parts = raw.get("parts", [])
    if not isinstance(raw_parts, list):
        return None
    parts = [part for part in (part_from_dict(item) for item in raw_parts) if part is not None]
    return Turn(role=role, parts=parts)
