"""Browser tool catalog: name -> async capability plus its model-facing declaration."""

from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

ToolHandler = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]

EMPTY_PARAMETERS: dict[str, object] = {"type": "OBJECT", "properties": {}}


def _empty_parameters() -> dict[str, object]:
    return dict(EMPTY_PARAMETERS)


@dataclass(slots=True)
class ToolDef:
    name: str
    description: str
    handler: ToolHandler
    parameters: dict[str, object] = field(default_factory=_empty_parameters)

    def declaration(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description, "parameters": self.parameters}


class ToolRegistry:
    """Declarations use upper-case schema ``type`` tokens (Gemini style).

    Adapters for OpenAI-style APIs lower-case them on the way out.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolDef] = {}

    def register(
        self,
        name: str,
        description: str,
        handler: ToolHandler,
        parameters: dict[str, object] | None = None,
    ) -> ToolDef:
        if name in self._tools:
            raise ValueError(f"tool already registered: {name}")
        tool = ToolDef(name, description, handler, parameters or _empty_parameters())
        self._tools[name] = tool
        return tool

    def get(self, name: str) -> ToolDef | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDef]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def declarations(self) -> tuple[dict[str, Any], ...]:
        return tuple(tool.declaration() for tool in self)
