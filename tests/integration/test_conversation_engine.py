import json

import pytest
from conftest import FakeBrowserHost, FakePageBridge, RecordingGate, ScriptedProvider

from browsebot.errors import ApiError, BrowseBotError, NetworkError
from browsebot.orchestrator.engine import (
    NO_VALID_RESPONSE,
    TOOL_LIMIT_REACHED,
    TOOLS_USED_FALLBACK,
    ConversationEngine,
    TurnState,
    render_tool_responses,
)
from browsebot.parts import FunctionCallPart, FunctionResponsePart, TextPart, Turn
from browsebot.prefs import Preferences
from browsebot.providers.base import JSON_RESPONSE_FORMAT
from browsebot.providers.factory import ProviderName
from browsebot.tools.bookmarks import InMemoryBookmarkStore
from browsebot.tools.builtin import build_default_registry
from browsebot.tools.host import OpenTarget


def _model(*parts) -> Turn:
    return Turn(role="model", parts=list(parts))


def _call(name: str, **args) -> FunctionCallPart:
    return FunctionCallPart(name=name, args=args)


def _engine(
    prefs: Preferences,
    provider: ScriptedProvider,
    *,
    host: FakeBrowserHost | None = None,
    bridge: FakePageBridge | None = None,
    gate: RecordingGate | None = None,
) -> ConversationEngine:
    host = host or FakeBrowserHost()
    bridge = bridge or FakePageBridge()
    registry = build_default_registry(host, bridge, InMemoryBookmarkStore())
    return ConversationEngine(
        prefs,
        registry=registry,
        host=host,
        bridge=bridge,
        confirmation=gate,
        providers={ProviderName.GEMINI: provider},
    )


@pytest.mark.asyncio
async def test_plain_answer_is_committed(prefs: Preferences) -> None:
    provider = ScriptedProvider([_model(TextPart("Hello there."))])
    bridge = FakePageBridge(text="Page body")
    engine = _engine(prefs, provider, bridge=bridge)

    reply = await engine.send_message("hi", {"url": "https://example.com", "title": "Example"})

    assert reply.answer == "Hello there."
    assert reply.citations == []
    assert [turn.role for turn in engine.get_history()] == ["user", "model"]
    assert engine.get_last_message() == _model(TextPart("Hello there."))
    assert engine.state is TurnState.DONE
    envelope = provider.envelopes[0]
    assert envelope.tools is None
    assert envelope.response_format is None
    assert envelope.history[0].first_text() == (
        '[Current Page Context: {"url": "https://example.com", "title": "Example"}] hi'
    )
    assert "Page body" in envelope.system_instruction.text
    assert bridge.trim_calls == [True]


@pytest.mark.asyncio
async def test_open_github_scenario(prefs: Preferences) -> None:
    prefs.god_mode = True
    prefs.confirm_tool_calls = False
    host = FakeBrowserHost()
    provider = ScriptedProvider([_model(_call("openLink", link="https://github.com", where="new tab"))])
    engine = _engine(prefs, provider, host=host)

    reply = await engine.send_message("open github")

    assert reply.answer == "Successfully opened https://github.com in new tab."
    assert host.opened == [("https://github.com", OpenTarget.NEW_TAB)]
    assert len(provider.envelopes) == 1
    envelope = provider.envelopes[0]
    assert "openLink" in {tool["name"] for tool in envelope.tools}
    assert "GOD MODE ENABLED" in envelope.system_instruction.text
    history = engine.get_history()
    assert [turn.role for turn in history] == ["user", "model", "tool"]
    assert history[2].parts == [
        FunctionResponsePart(
            "openLink", {"result": "Successfully opened https://github.com in new tab."}
        )
    ]


@pytest.mark.asyncio
async def test_unknown_tool_scenario(prefs: Preferences) -> None:
    prefs.god_mode = True
    prefs.confirm_tool_calls = False
    provider = ScriptedProvider([_model(_call("frobnicate"))])
    engine = _engine(prefs, provider)

    reply = await engine.send_message("do the thing")

    assert json.loads(reply.answer) == {"error": 'Tool "frobnicate" is not available.'}


@pytest.mark.asyncio
async def test_no_content_rolls_back_user_turn(prefs: Preferences) -> None:
    provider = ScriptedProvider([_model(TextPart("first")), None])
    engine = _engine(prefs, provider)
    await engine.send_message("one")
    before = len(engine.get_history())

    reply = await engine.send_message("two")

    assert reply.answer == NO_VALID_RESPONSE
    assert len(engine.get_history()) == before
    assert engine.state is TurnState.FAILED


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [NetworkError("Failed to connect"), ApiError(500, "boom")])
async def test_provider_errors_propagate_after_rollback(
    prefs: Preferences, error: Exception
) -> None:
    engine = _engine(prefs, ScriptedProvider([error]))

    with pytest.raises(type(error)):
        await engine.send_message("hi")

    assert engine.get_history() == []
    assert engine.state is TurnState.FAILED


@pytest.mark.asyncio
async def test_empty_answer_leaves_no_new_turns(prefs: Preferences) -> None:
    provider = ScriptedProvider([_model(TextPart(""), _call("openLink", link="x"))])
    engine = _engine(prefs, provider)

    reply = await engine.send_message("hi")

    assert reply.answer == TOOLS_USED_FALLBACK
    assert engine.get_history() == []


@pytest.mark.asyncio
async def test_empty_citation_answer_leaves_no_new_turns(prefs: Preferences) -> None:
    prefs.citations_enabled = True
    provider = ScriptedProvider([_model(TextPart('{"answer": "", "citations": []}'))])
    engine = _engine(prefs, provider)

    reply = await engine.send_message("hi")

    assert reply.answer == ""
    assert engine.get_history() == []


@pytest.mark.asyncio
async def test_citations_request_json_and_parse_envelope(prefs: Preferences) -> None:
    prefs.citations_enabled = True
    envelope_text = json.dumps(
        {"answer": "Created in 2021 [1].", "citations": [{"id": 1, "source_quote": "Began in 2021."}]}
    )
    bridge = FakePageBridge()
    provider = ScriptedProvider([_model(TextPart(envelope_text))])
    engine = _engine(prefs, provider, bridge=bridge)

    reply = await engine.send_message("history?")

    assert reply.answer == "Created in 2021 [1]."
    assert reply.citations[0].source_quote == "Began in 2021."
    assert provider.envelopes[0].response_format == JSON_RESPONSE_FORMAT
    assert "Citation Instructions" in provider.envelopes[0].system_instruction.text
    assert bridge.trim_calls == [False]


@pytest.mark.asyncio
async def test_declined_batch_cancels_every_call(prefs: Preferences) -> None:
    prefs.god_mode = True
    host = FakeBrowserHost()
    gate = RecordingGate(answer=False)
    provider = ScriptedProvider(
        [
            _model(
                _call("openLink", link="https://a.example"),
                _call("search", searchTerm="zen"),
            )
        ]
    )
    engine = _engine(prefs, provider, host=host, gate=gate)

    reply = await engine.send_message("open things")

    assert gate.asked == [["openLink", "search"]]
    assert host.opened == []
    responses = engine.get_history()[-1].function_responses()
    assert [r.response for r in responses] == [
        {"error": 'Tool "openLink" execution cancelled by user.'},
        {"error": 'Tool "search" execution cancelled by user.'},
    ]
    assert reply.answer.count("cancelled by user") == 2


@pytest.mark.asyncio
async def test_missing_gate_declines_when_confirmation_required(prefs: Preferences) -> None:
    prefs.god_mode = True
    host = FakeBrowserHost()
    provider = ScriptedProvider([_model(_call("openLink", link="https://a.example"))])
    engine = _engine(prefs, provider, host=host)

    reply = await engine.send_message("open it")

    assert host.opened == []
    assert "cancelled by user" in reply.answer


@pytest.mark.asyncio
async def test_failing_gate_cancels_every_call(prefs: Preferences) -> None:
    prefs.god_mode = True
    host = FakeBrowserHost()

    class BrokenGate:
        def __init__(self) -> None:
            self.asked: list[list[str]] = []

        async def confirm(self, tool_names: list[str]) -> bool:
            self.asked.append(list(tool_names))
            raise RuntimeError("dialog closed")

    gate = BrokenGate()
    provider = ScriptedProvider(
        [_model(_call("openLink", link="https://a.example"), _call("search", searchTerm="zen"))]
    )
    engine = _engine(prefs, provider, host=host, gate=gate)

    reply = await engine.send_message("open things")

    assert gate.asked == [["openLink", "search"]]
    assert host.opened == []
    responses = engine.get_history()[-1].function_responses()
    assert [r.response for r in responses] == [
        {"error": 'Tool "openLink" execution cancelled by user.'},
        {"error": 'Tool "search" execution cancelled by user.'},
    ]
    assert engine.state is TurnState.DONE
    assert reply.answer.count("cancelled by user") == 2


@pytest.mark.asyncio
async def test_blank_tool_answer_leaves_no_new_turns(prefs: Preferences) -> None:
    prefs.god_mode = True
    prefs.confirm_tool_calls = False
    provider = ScriptedProvider([_model(TextPart("first")), _model(_call("blank"))])
    engine = _engine(prefs, provider)

    async def blank(args):
        return {"result": ""}

    engine.registry.register("blank", "Returns nothing", blank)
    await engine.send_message("one")
    before = engine.get_history()

    reply = await engine.send_message("two")

    assert reply.answer == TOOLS_USED_FALLBACK
    assert engine.get_history() == before


@pytest.mark.asyncio
async def test_accepted_batch_runs_in_order(prefs: Preferences) -> None:
    prefs.god_mode = True
    host = FakeBrowserHost()
    gate = RecordingGate(answer=True)
    provider = ScriptedProvider(
        [
            _model(
                TextPart("Opening both."),
                _call("openLink", link="https://a.example"),
                _call("openLink", link="https://b.example", where="new window"),
            )
        ]
    )
    engine = _engine(prefs, provider, host=host, gate=gate)

    reply = await engine.send_message("open both")

    assert host.opened == [
        ("https://a.example", OpenTarget.NEW_TAB),
        ("https://b.example", OpenTarget.NEW_WINDOW),
    ]
    assert reply.answer == (
        "Successfully opened https://a.example in new tab.\n"
        "Successfully opened https://b.example in new window."
    )


@pytest.mark.asyncio
async def test_followup_round_uses_tool_results(prefs: Preferences) -> None:
    prefs.god_mode = True
    prefs.confirm_tool_calls = False
    prefs.tool_followup = True
    provider = ScriptedProvider(
        [
            _model(_call("getPageTextContent")),
            _model(TextPart("The page says hello.")),
        ]
    )
    engine = _engine(prefs, provider)

    reply = await engine.send_message("summarize")

    assert reply.answer == "The page says hello."
    assert [turn.role for turn in engine.get_history()] == ["user", "model", "tool", "model"]
    assert [turn.role for turn in provider.envelopes[1].history] == ["user", "model", "tool"]


@pytest.mark.asyncio
@pytest.mark.parametrize("max_calls", [1, 2, 3])
async def test_tool_depth_is_bounded(prefs: Preferences, max_calls: int) -> None:
    prefs.god_mode = True
    prefs.confirm_tool_calls = False
    prefs.tool_followup = True
    prefs.max_tool_calls = max_calls
    def keep_asking(envelope):
        del envelope
        return _model(TextPart("still working"), _call("getPageTextContent"))

    provider = ScriptedProvider([keep_asking] * (max_calls + 1))
    engine = _engine(prefs, provider)

    reply = await engine.send_message("loop forever")

    assert len(provider.envelopes) == max_calls + 1
    assert provider.steps == []
    tool_turns = [turn for turn in engine.get_history() if turn.role == "tool"]
    assert len(tool_turns) == max_calls + 1
    assert tool_turns[-1].function_responses()[0].response == {"error": TOOL_LIMIT_REACHED}
    assert reply.answer == "still working"


@pytest.mark.asyncio
async def test_invalid_tool_depth_falls_back(prefs: Preferences) -> None:
    prefs.max_tool_calls = 0
    engine = _engine(prefs, ScriptedProvider([]))

    assert engine.max_tool_depth == 3


@pytest.mark.asyncio
async def test_set_provider_clears_history(prefs: Preferences) -> None:
    engine = _engine(prefs, ScriptedProvider([_model(TextPart("hi"))]))
    await engine.send_message("hello")
    old_id = engine.conversation_id

    assert engine.set_provider("mistral") is True

    assert engine.get_history() == []
    assert engine.system_instruction is None
    assert engine.provider_name is ProviderName.MISTRAL
    assert engine.conversation_id != old_id
    assert engine.set_provider("openai") is False
    assert engine.provider_name is ProviderName.MISTRAL


@pytest.mark.asyncio
async def test_rejects_overlapping_sends(prefs: Preferences) -> None:
    engine = _engine(prefs, ScriptedProvider([]))
    engine.state = TurnState.AWAITING_MODEL

    with pytest.raises(BrowseBotError):
        await engine.send_message("again")


def test_history_restore_and_display(prefs: Preferences) -> None:
    engine = _engine(prefs, ScriptedProvider([]))
    exported = [
        Turn.user('[Current Page Context: {"title": "a ] b"}] open github').to_dict(),
        _model(_call("openLink", link="https://github.com")).to_dict(),
        Turn(role="tool", parts=[FunctionResponsePart("openLink", {"result": "ok"})]).to_dict(),
        _model(TextPart("Done.")).to_dict(),
        {"role": "model", "parts": "broken"},
    ]

    engine.load_history(exported)
    messages = engine.display_messages()

    assert len(engine.get_history()) == 4
    assert engine.export_history() == exported[:4]
    assert [(m.role, m.answer) for m in messages] == [("user", "open github"), ("ai", "Done.")]


def test_render_tool_responses() -> None:
    rendered = render_tool_responses(
        [
            FunctionResponsePart("openLink", {"result": "Opened."}),
            FunctionResponsePart("searchBookmarks", {"bookmarks": []}),
        ]
    )

    assert rendered == 'Opened.\n{"bookmarks":[]}'
