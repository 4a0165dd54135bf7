"""Conversation engine: history, system prompt, the model call and the tool loop."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Protocol

import httpx

from browsebot.errors import BrowseBotError, ConfigError, NoResponseError
from browsebot.ids import new_id
from browsebot.logging import bind_context
from browsebot.orchestrator.citations import Citation, ParsedAnswer, parse_model_response_text
from browsebot.orchestrator.prompt_builder import (
    build_system_prompt,
    strip_page_context,
    with_page_context,
)
from browsebot.parts import FunctionCallPart, FunctionResponsePart, TextPart, Turn, turn_from_dict
from browsebot.prefs import Preferences
from browsebot.providers.base import JSON_RESPONSE_FORMAT, ModelProvider, RequestEnvelope
from browsebot.providers.factory import (
    ProviderName,
    build_provider,
    parse_provider_name,
    resolve_provider_name,
)
from browsebot.tools.host import BrowserHost, PageBridge
from browsebot.tools.prompt import get_tool_system_prompt
from browsebot.tools.registry import ToolRegistry
from browsebot.tools.runtime import ToolRuntime, cancelled_response

logger = logging.getLogger(__name__)

NO_VALID_RESPONSE = "The model did not return a valid response."
TOOLS_USED_FALLBACK = "I used my tools to complete your request."
DEFAULT_MAX_TOOL_CALLS = 3
TOOL_LIMIT_REACHED = "Tool call limit reached; call was not executed."


class TurnState(StrEnum):
    IDLE = "idle"
    BUILDING_PROMPT = "building_prompt"
    AWAITING_MODEL = "awaiting_model"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"
    FAILED = "failed"


_IN_FLIGHT = frozenset(
    {
        TurnState.BUILDING_PROMPT,
        TurnState.AWAITING_MODEL,
        TurnState.AWAITING_CONFIRMATION,
        TurnState.EXECUTING_TOOLS,
    }
)


class ConfirmationGate(Protocol):
    async def confirm(self, tool_names: list[str]) -> bool:
        """True to run the whole batch, False to cancel every call in it."""
        ...


@dataclass(slots=True)
class ToolRun:
    """Outcome of the tool loop for one user turn."""

    last_response: Turn
    answer: str | None = None
    depth: int = 0


@dataclass(slots=True)
class DisplayMessage:
    role: str
    answer: str
    citations: list[Citation] = field(default_factory=list)


def render_tool_responses(responses: Sequence[FunctionResponsePart]) -> str:
    """Direct answer built from tool payloads, one line per call.

    A payload that is only ``{"result": "<text>"}`` renders as its text;
    anything else renders as compact JSON.
    """
    lines: list[str] = []
    for part in responses:
        payload = part.response
        if set(payload) == {"result"} and isinstance(payload["result"], str):
            lines.append(payload["result"])
        else:
            lines.append(json.dumps(payload, separators=(",", ":"), ensure_ascii=False))
    return "\n".join(lines)


class ConversationEngine:
    """Owns one conversation. Callers must await one ``send_message`` at a time."""

    def __init__(
        self,
        prefs: Preferences,
        *,
        registry: ToolRegistry,
        host: BrowserHost,
        bridge: PageBridge,
        confirmation: ConfirmationGate | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        providers: dict[ProviderName, ModelProvider] | None = None,
    ) -> None:
        self.prefs = prefs
        self.registry = registry
        self.runtime = ToolRuntime(registry)
        self.host = host
        self.bridge = bridge
        self.confirmation = confirmation
        self._transport = transport
        self._providers: dict[ProviderName, ModelProvider] = dict(providers or {})
        self.history: list[Turn] = []
        self.system_instruction: TextPart | None = None
        self.state = TurnState.IDLE
        self.conversation_id = new_id("conv")

    @property
    def provider_name(self) -> ProviderName:
        return resolve_provider_name(self.prefs.llm_provider)

    @property
    def provider(self) -> ModelProvider:
        name = self.provider_name
        provider = self._providers.get(name)
        if provider is None:
            provider = build_provider(name, self.prefs, transport=self._transport)
            self._providers[name] = provider
        return provider

    def set_provider(self, name: str) -> bool:
        """Switch the active provider and start a fresh conversation.

        Unknown names are logged and ignored; the current provider stays active.
        """
        try:
            parsed = parse_provider_name(name)
        except ConfigError as exc:
            logger.error("%s", exc)
            return False
        self.prefs.llm_provider = parsed.value
        self.clear_data()
        logger.info("Switched LLM provider to %s", parsed.value)
        return True

    @property
    def max_tool_depth(self) -> int:
        value = self.prefs.max_tool_calls
        return value if value > 0 else DEFAULT_MAX_TOOL_CALLS

    async def get_system_prompt(self) -> str:
        god_mode = self.prefs.god_mode
        citations_enabled = self.prefs.citations_enabled
        tool_prompt = await get_tool_system_prompt(self.host) if god_mode else ""
        page_content: dict[str, Any] | None = None
        if not god_mode:
            try:
                page_content = await self.bridge.get_page_text_content(not citations_enabled)
            except Exception as exc:
                logger.exception("Failed to read page text for system prompt")
                page_content = {"error": f"Failed to read page text: {exc}"}
        return build_system_prompt(
            tool_prompt=tool_prompt,
            citations_enabled=citations_enabled,
            page_content=page_content,
        )

    def set_system_prompt(self, prompt: str | None) -> None:
        self.system_instruction = TextPart(prompt) if prompt else None

    async def update_system_prompt(self) -> None:
        logger.debug("Updating system prompt")
        self.set_system_prompt(await self.get_system_prompt())

    def parse_model_response_text(self, text: str) -> ParsedAnswer:
        return parse_model_response_text(text, citations_enabled=self.prefs.citations_enabled)

    def build_envelope(self) -> RequestEnvelope:
        return RequestEnvelope(
            history=tuple(self.history),
            system_instruction=self.system_instruction,
            tools=self.registry.declarations() if self.prefs.god_mode else None,
            response_format=JSON_RESPONSE_FORMAT if self.prefs.citations_enabled else None,
        )

    async def send_message(
        self, prompt: str, page_context: dict[str, Any] | None = None
    ) -> ParsedAnswer:
        """Run one user turn to completion.

        Provider and configuration errors propagate after the turn is rolled back.
        """
        if self.state in _IN_FLIGHT:
            raise BrowseBotError("A message is already being processed.")
        provider = self.provider
        bind_context(conversation_id=self.conversation_id, provider=provider.descriptor.name)
        start = len(self.history)
        try:
            self.state = TurnState.BUILDING_PROMPT
            await self.update_system_prompt()
            self.history.append(Turn.user(with_page_context(prompt, page_context)))
            if self.prefs.debug_mode:
                logger.debug("Sending message: %s", self.history[-1].first_text())

            self.state = TurnState.AWAITING_MODEL
            response = await self._request_model(provider)
            self.history.append(response)

            parsed: ParsedAnswer | None = None
            if self.prefs.god_mode:
                run = await self.execute_tool_calls(response)
                if run.answer:
                    self.state = TurnState.DONE
                    return ParsedAnswer(answer=run.answer)
                if run.answer is not None:
                    parsed = ParsedAnswer(answer="")
                response = run.last_response

            if parsed is None:
                parsed = self.parse_model_response_text(response.first_text())
        except NoResponseError as exc:
            logger.warning("%s", exc)
            self._rollback(start)
            self.state = TurnState.FAILED
            return ParsedAnswer(answer=NO_VALID_RESPONSE)
        except BaseException:
            self._rollback(start)
            self.state = TurnState.FAILED
            raise

        if not parsed.answer:
            self._rollback(start)
            self.state = TurnState.DONE
            if self.prefs.citations_enabled:
                return parsed
            return ParsedAnswer(answer=TOOLS_USED_FALLBACK)
        self.state = TurnState.DONE
        return parsed

    async def execute_tool_calls(self, response: Turn) -> ToolRun:
        """Execute requested calls until the model stops asking or the depth bound is hit.

        Without follow-up the first executed batch becomes the direct answer.
        With follow-up the results go back to the model for another round.
        """
        max_depth = self.max_tool_depth
        depth = 0
        while True:
            calls = response.function_calls()
            if not calls:
                return ToolRun(last_response=response, depth=depth)
            if depth >= max_depth:
                logger.warning("Max tool depth %s reached; %d call(s) skipped", max_depth, len(calls))
                self.history.append(
                    Turn(
                        role="tool",
                        parts=[
                            FunctionResponsePart(name=c.name, response={"error": TOOL_LIMIT_REACHED})
                            for c in calls
                        ],
                    )
                )
                return ToolRun(last_response=response, depth=depth)

            responses = await self._run_batch(calls)
            self.history.append(Turn(role="tool", parts=list(responses)))
            depth += 1
            if not self.prefs.tool_followup:
                return ToolRun(
                    last_response=response,
                    answer=render_tool_responses(responses),
                    depth=depth,
                )

            self.state = TurnState.AWAITING_MODEL
            try:
                followup = await self._request_model(self.provider)
            except NoResponseError as exc:
                logger.warning("%s; answering with tool results", exc)
                return ToolRun(
                    last_response=response,
                    answer=render_tool_responses(responses),
                    depth=depth,
                )
            self.history.append(followup)
            response = followup

    async def _request_model(self, provider: ModelProvider) -> Turn:
        response = await provider.send_message(self.build_envelope())
        if response is None or not response.parts:
            raise NoResponseError(f"{provider.descriptor.label} returned no content")
        return response

    async def _run_batch(self, calls: Sequence[FunctionCallPart]) -> list[FunctionResponsePart]:
        names = [call.name for call in calls]
        if self.prefs.confirm_tool_calls:
            self.state = TurnState.AWAITING_CONFIRMATION
            if not await self._confirm(names):
                logger.info("Tool execution cancelled by user: %s", ", ".join(names))
                return [cancelled_response(name) for name in names]
        self.state = TurnState.EXECUTING_TOOLS
        logger.info("Executing tool calls: %s", ", ".join(names))
        return await self.runtime.execute_calls(calls)

    async def _confirm(self, names: list[str]) -> bool:
        if self.confirmation is None:
            logger.warning("Tool confirmation required but no confirmation gate is set")
            return False
        try:
            return bool(await self.confirmation.confirm(names))
        except Exception:
            logger.exception("Tool confirmation dialog failed")
            return False

    def _rollback(self, length: int) -> None:
        del self.history[length:]

    def get_history(self) -> list[Turn]:
        return list(self.history)

    def export_history(self) -> list[dict[str, Any]]:
        return [turn.to_dict() for turn in self.history]

    def load_history(self, turns: Iterable[Turn | dict[str, Any]]) -> None:
        """Replace history with a previously exported conversation."""
        loaded: list[Turn] = []
        for item in turns:
            turn = item if isinstance(item, Turn) else turn_from_dict(item)
            if turn is not None:
                loaded.append(turn)
        self.history = loaded

    def get_last_message(self) -> Turn | None:
        return self.history[-1] if self.history else None

    def clear_data(self) -> None:
        self.history = []
        self.system_instruction = None
        self.state = TurnState.IDLE
        self.conversation_id = new_id("conv")

    def display_messages(self) -> list[DisplayMessage]:
        """History as a chat transcript: user prompts and model answers only."""
        messages: list[DisplayMessage] = []
        for turn in self.history:
            if turn.role == "tool" or turn.function_calls():
                continue
            text = turn.first_text()
            if turn.role == "user":
                messages.append(DisplayMessage(role="user", answer=strip_page_context(text)))
                continue
            parsed = self.parse_model_response_text(text)
            if parsed.answer:
                messages.append(
                    DisplayMessage(role="ai", answer=parsed.answer, citations=parsed.citations)
                )
        return messages
