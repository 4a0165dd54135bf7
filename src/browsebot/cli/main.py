"""Click CLI group: ask, chat, and providers commands."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import click

from browsebot.cli.host import HeadlessBrowserHost, HttpPageBridge, PromptConfirmationGate
from browsebot.config import get_settings, validate_settings_for_env
from browsebot.errors import BrowseBotError
from browsebot.logging import configure_logging, level_for
from browsebot.orchestrator.citations import ParsedAnswer
from browsebot.orchestrator.engine import ConversationEngine
from browsebot.orchestrator.prompt_builder import build_selection_prompt
from browsebot.prefs import Preferences
from browsebot.providers.factory import DESCRIPTORS, ProviderName, resolve_provider_name
from browsebot.tools.bookmarks import InMemoryBookmarkStore
from browsebot.tools.builtin import build_default_registry


def _prefs(provider: str | None, god_mode: bool | None, citations: bool | None) -> Preferences:
    settings = get_settings()
    try:
        validate_settings_for_env(settings)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    configure_logging(level_for(settings.debug_mode, settings.log_level))
    prefs = Preferences(settings=settings)
    prefs.seed_defaults()
    if provider is not None:
        prefs.llm_provider = provider
    if god_mode is not None:
        prefs.god_mode = god_mode
    if citations is not None:
        prefs.citations_enabled = citations
    return prefs


def build_engine(prefs: Preferences, url: str | None) -> tuple[ConversationEngine, HttpPageBridge]:
    host = HeadlessBrowserHost()
    bridge = HttpPageBridge(url)
    registry = build_default_registry(host, bridge, InMemoryBookmarkStore())
    engine = ConversationEngine(
        prefs,
        registry=registry,
        host=host,
        bridge=bridge,
        confirmation=PromptConfirmationGate(prefs),
    )
    return engine, bridge


def format_answer(parsed: ParsedAnswer) -> str:
    lines = [parsed.answer]
    for citation_id in parsed.referenced_ids():
        citation = parsed.citation_for(citation_id)
        if citation is not None:
            lines.append(f"  [{citation.id}] {citation.source_quote}")
    return "\n".join(lines)


async def _send(
    engine: ConversationEngine, bridge: HttpPageBridge, message: str
) -> ParsedAnswer:
    return await engine.send_message(message, await bridge.page_context())


_provider_option = click.option(
    "--provider",
    type=click.Choice([name.value for name in ProviderName]),
    default=None,
    help="Override BROWSE_BOT_LLM_PROVIDER.",
)
_url_option = click.option("--url", type=str, default=None, help="Page to treat as the current tab.")
_god_mode_option = click.option(
    "--god-mode/--no-god-mode", default=None, help="Let the model call browser tools."
)
_citations_option = click.option(
    "--citations/--no-citations", default=None, help="Ask for cited answers."
)


@click.group()
def cli() -> None:
    """BrowseBot browser assistant CLI."""


@cli.command()
@click.argument("message", required=False)
@_url_option
@_provider_option
@_god_mode_option
@_citations_option
@click.option("--explain", "selection", type=str, default=None, help="Explain a text selection.")
@click.option("--json", "json_output", is_flag=True, help="Print structured JSON response.")
def ask(
    message: str | None,
    url: str | None,
    provider: str | None,
    god_mode: bool | None,
    citations: bool | None,
    selection: str | None,
    json_output: bool,
) -> None:
    """Send one message and print the answer."""
    prefs = _prefs(provider, god_mode, citations)
    engine, bridge = build_engine(prefs, url)
    if message is None:
        message = build_selection_prompt(
            {"hasSelection": bool(selection), "selectedText": selection or ""}
        )
    try:
        parsed = asyncio.run(_send(engine, bridge, message))
    except BrowseBotError as exc:
        raise click.ClickException(str(exc)) from exc
    if json_output:
        click.echo(json.dumps(parsed.to_dict(), indent=2, ensure_ascii=False))
        return
    click.echo(format_answer(parsed))


def _load_history(engine: ConversationEngine, path: Path | None) -> None:
    if path is None or not path.exists():
        return
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        click.echo(f"Could not restore chat history: {exc}", err=True)
        return
    if isinstance(raw, list):
        engine.load_history(raw)
        for message in engine.display_messages():
            prefix = "you" if message.role == "user" else "bot"
            click.echo(f"{prefix}> {message.answer}")


def _save_history(engine: ConversationEngine, path: Path | None) -> None:
    if path is None:
        return
    path.write_text(json.dumps(engine.export_history(), ensure_ascii=False), encoding="utf-8")


async def _chat_loop(
    engine: ConversationEngine,
    bridge: HttpPageBridge,
    history_path: Path | None,
) -> None:
    while True:
        try:
            line = await asyncio.to_thread(click.prompt, "you", prompt_suffix="> ")
        except (click.Abort, EOFError):
            click.echo()
            return
        text = line.strip()
        if not text:
            continue
        if text in {"/exit", "/quit"}:
            return
        if text == "/clear":
            engine.clear_data()
            _save_history(engine, history_path)
            click.echo("History cleared.")
            continue
        if text.startswith("/provider"):
            name = text.removeprefix("/provider").strip()
            if engine.set_provider(name):
                click.echo(f"Using {engine.provider.descriptor.label}; history cleared.")
            else:
                click.echo(f'Provider "{name}" not found.', err=True)
            continue
        if text == "/summarize":
            text = build_selection_prompt(await bridge.get_selected_text())
        try:
            parsed = await _send(engine, bridge, text)
        except BrowseBotError as exc:
            click.echo(f"Error: {exc}", err=True)
            continue
        click.echo(f"bot> {format_answer(parsed)}")
        _save_history(engine, history_path)


@cli.command()
@_url_option
@_provider_option
@_god_mode_option
@_citations_option
@click.option(
    "--history-file",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Where to keep the conversation when BROWSE_BOT_PERSIST_CHAT is on.",
)
def chat(
    url: str | None,
    provider: str | None,
    god_mode: bool | None,
    citations: bool | None,
    history_file: Path | None,
) -> None:
    """Interactive chat. Commands: /clear, /provider NAME, /summarize, /exit."""
    prefs = _prefs(provider, god_mode, citations)
    engine, bridge = build_engine(prefs, url)
    history_path = history_file if prefs.persist_chat else None
    _load_history(engine, history_path)
    asyncio.run(_chat_loop(engine, bridge, history_path))


@cli.command()
def providers() -> None:
    """List the supported providers and their models."""
    prefs = Preferences(settings=get_settings())
    active = resolve_provider_name(prefs.llm_provider)
    for name, descriptor in DESCRIPTORS.items():
        marker = "*" if name is active else " "
        click.echo(f"{marker} {name.value}: {descriptor.label} (keys: {descriptor.api_key_url})")
        for model, label in descriptor.model_labels.items():
            click.echo(f"    {model}  {label}")


if __name__ == "__main__":
    cli()
