"""Tool execution boundary: every call resolves to a payload, never an exception."""

import logging
from collections.abc import Sequence
from typing import Any

from browsebot.errors import ToolError, ToolExecutionError, ToolNotAvailableError
from browsebot.parts import FunctionCallPart, FunctionResponsePart
from browsebot.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


def cancelled_response(name: str) -> FunctionResponsePart:
    return FunctionResponsePart(
        name=name, response={"error": f'Tool "{name}" execution cancelled by user.'}
    )


class ToolRuntime:
    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry

    async def _invoke(self, tool_name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        tool = self.registry.get(tool_name)
        if tool is None:
            raise ToolNotAvailableError(tool_name)
        try:
            result = await tool.handler(arguments)
        except Exception as exc:
            raise ToolExecutionError(f'Tool "{tool_name}" failed: {exc}') from exc
        if not isinstance(result, dict):
            return {"result": result}
        return result

    async def execute(self, tool_name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        logger.debug("Executing tool %r with args %s", tool_name, arguments)
        try:
            result = await self._invoke(tool_name, arguments)
        except ToolNotAvailableError as exc:
            logger.error("Tool %r not found", tool_name)
            return {"error": str(exc)}
        except ToolError as exc:
            logger.exception("Tool execution failed for %r", tool_name)
            return {"error": str(exc)}
        logger.debug("Tool %r executed. Result: %s", tool_name, result)
        return result

    async def execute_calls(
        self, calls: Sequence[FunctionCallPart]
    ) -> list[FunctionResponsePart]:
        """Run calls one after another, in the order the model listed them."""
        responses: list[FunctionResponsePart] = []
        for call in calls:
            result = await self.execute(call.name, dict(call.args))
            responses.append(FunctionResponsePart(name=call.name, response=result))
        return responses
