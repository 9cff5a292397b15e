"""Interactive chat CLI backed by a local Ollama server."""

from __future__ import annotations

import argparse
import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from chatstack.catalog import family_of
from chatstack.config import AppConfig
from chatstack.console import console
from chatstack.errors import ChatClientError
from chatstack.logging import configure_logging, get_logger
from chatstack.models import ChatEntry
from chatstack.service import ChatService

LOGGER = get_logger(__name__)

HELP_TEXT = """\
/models               list installed models
/model NAME           switch the active model
/pull NAME            download a model (bare names get ':latest')
/history [TEXT]       list archived chats, optionally filtered
/show N               print chat N of the last /history listing
/delete N             delete chat N of the last /history listing
/undo                 restore the last deleted chat
/options              show generation options
/set KEY VALUE        change temperature, seed or top_k
/quit                 leave the session"""

_OPTION_TYPES = {"temperature": float, "seed": int, "top_k": int}


@dataclass
class ArchiveView:
    """The numbered archive listing the user saw last.

    ``None`` means nothing was listed yet and numbers refer to the full
    archive, newest first.
    """

    entries: Optional[List[ChatEntry]] = None

    def resolve(self, service: ChatService) -> List[ChatEntry]:
        if self.entries is None:
            return service.history.sorted_entries()
        return self.entries


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Chat with a local Ollama model and browse the saved conversation archive."
    )
    parser.add_argument(
        "--config-file",
        type=Path,
        help="Path to a config file (YAML or JSON, default: config.yaml in project root).",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        help="Path to a .env file with overrides such as OLLAMA_HOST (default: .env).",
    )
    parser.add_argument(
        "--host",
        help="Ollama HTTP host (default: OLLAMA_HOST env or value from the config file).",
    )
    parser.add_argument("--model", help="Model to chat with (default: last selected model).")
    parser.add_argument("--data-dir", type=Path, help="Directory holding the chat archive.")
    parser.add_argument(
        "--list-models",
        action="store_true",
        help="List installed models and exit.",
    )
    parser.add_argument("--pull", metavar="NAME", help="Download a model and exit.")
    parser.add_argument("--ask", metavar="TEXT", help="Ask a single question and exit.")
    parser.add_argument("--log-level", default="INFO", help="Python logging level (default: INFO).")
    return parser.parse_args(argv)


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> None:
    if args.host:
        config.ollama.host = args.host
    if args.data_dir:
        config.storage.data_dir = args.data_dir.expanduser().resolve()


# ----------------------------------------------------------------------
# Rendering helpers
# ----------------------------------------------------------------------
def render_error(exc: ChatClientError, title: str = "Ollama Error") -> None:
    console.print(Panel(str(exc), title=title, style="error"))


def render_models(models: Sequence[str], selected: str) -> None:
    if not models:
        console.print(
            Panel(
                "No models are installed. Use /pull NAME to download one.",
                title="Models Unavailable",
                style="warning",
            )
        )
        return
    table = Table(title="Ollama Models", box=None, highlight=True)
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Name", style="model")
    table.add_column("Family")
    for idx, model in enumerate(models, start=1):
        marker = " [success]*[/success]" if model == selected else ""
        table.add_row(str(idx), f"{model}{marker}", family_of(model))
    console.print(table)


def render_history(entries: Sequence[ChatEntry]) -> None:
    if not entries:
        console.print("[muted]No archived chats yet.[/muted]")
        return
    table = Table(title="Archive", box=None)
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Date")
    table.add_column("Model", style="model")
    table.add_column("Question")
    for idx, entry in enumerate(entries, start=1):
        local = entry.date.astimezone()
        table.add_row(str(idx), local.strftime("%Y-%m-%d %H:%M"), entry.model_name, entry.question)
    console.print(table)


def render_entry(entry: ChatEntry) -> None:
    console.print(Panel.fit(entry.question, title=f"You ({entry.model_name})", style="bold"))
    console.print(Markdown(entry.response_markdown))


# ----------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------
def _archive_entry(
    service: ChatService, view: ArchiveView, position: str
) -> Optional[ChatEntry]:
    entries = view.resolve(service)
    if not position.isdigit() or not 1 <= int(position) <= len(entries):
        console.print(f"[warning]No archived chat with number '{position}'.[/warning]")
        return None
    return entries[int(position) - 1]


async def handle_command(
    service: ChatService, line: str, view: Optional[ArchiveView] = None
) -> bool:
    """Execute a slash command; returns ``False`` when the session should end.

    ``/show N`` and ``/delete N`` number entries the way the last ``/history``
    listing in *view* did.
    """

    if view is None:
        view = ArchiveView()
    command, _, argument = line[1:].partition(" ")
    argument = argument.strip()

    if command in {"quit", "exit", "q"}:
        return False
    if command == "help":
        console.print(HELP_TEXT)
    elif command == "models":
        with console.status("[info]Fetching models...[/info]"):
            models = await service.refresh_models()
        render_models(models, service.selected_model)
    elif command == "model":
        service.select_model(argument)
        console.print(f"[success]Using model '{service.selected_model}'.[/success]")
    elif command == "pull":
        with console.status(f"[info]Downloading {argument or '?'}...[/info]"):
            models = await service.add_model(argument)
        console.print("[success]Model added successfully.[/success]")
        render_models(models, service.selected_model)
    elif command == "history":
        view.entries = service.history.search(argument)
        render_history(view.entries)
    elif command == "show":
        entry = _archive_entry(service, view, argument)
        if entry is not None:
            render_entry(entry)
    elif command == "delete":
        entry = _archive_entry(service, view, argument)
        if entry is not None:
            service.history.delete(entry.id)
            if view.entries is not None:
                view.entries.remove(entry)
            console.print("[info]Chat deleted. Type /undo to restore it.[/info]")
    elif command == "undo":
        restored = service.history.undo_last_delete()
        if restored is None:
            console.print("[warning]Nothing to undo.[/warning]")
        else:
            view.entries = None
            console.print(f"[success]Restored '{restored.question}'.[/success]")
    elif command == "options":
        options = service.options
        console.print(
            f"temperature={options.temperature} seed={options.seed} top_k={options.top_k}"
        )
    elif command == "set":
        key, _, raw_value = argument.partition(" ")
        caster = _OPTION_TYPES.get(key)
        if caster is None:
            console.print(f"[warning]Unknown option '{key}'. Use temperature, seed or top_k.[/warning]")
            return True
        try:
            value = caster(raw_value.strip())
        except ValueError:
            console.print(f"[warning]'{raw_value.strip()}' is not a valid {key}.[/warning]")
            return True
        service.update_options(**{key: value})
        console.print(f"[success]{key} set to {value}.[/success]")
    else:
        console.print(f"[warning]Unknown command '/{command}'. Type /help.[/warning]")
    return True


async def ask(service: ChatService, question: str) -> None:
    with console.status(f"[info]Generating response with {service.selected_model}...[/info]"):
        entry = await service.ask(question)
    console.print(Panel.fit("Assistant:", style="bold"))
    console.print(Markdown(entry.response_markdown))


async def run_cli(service: ChatService) -> None:
    view = ArchiveView()
    console.rule(
        f"Chatting with {service.selected_model}. Type /help for commands, /quit or Ctrl+D to exit."
    )
    while True:
        try:
            line = (await asyncio.to_thread(console.input, "[prompt]\nYou:[/prompt] ")).strip()
        except EOFError:
            console.print()
            break
        if not line:
            continue
        try:
            if line.startswith("/"):
                if not await handle_command(service, line, view):
                    break
            else:
                await ask(service, line)
                view.entries = None
        except ChatClientError as exc:
            render_error(exc)


async def run_once(service: ChatService, args: argparse.Namespace) -> int:
    try:
        if args.list_models:
            models: List[str] = await service.refresh_models()
            render_models(models, service.selected_model)
        elif args.pull:
            with console.status(f"[info]Downloading {args.pull}...[/info]"):
                models = await service.add_model(args.pull)
            render_models(models, service.selected_model)
        else:
            await ask(service, args.ask)
    except ChatClientError as exc:
        render_error(exc)
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)

    if args.env_file:
        os.environ["ENV_FILE"] = str(args.env_file)

    config = AppConfig.load(config_path=args.config_file)
    apply_overrides(config, args)
    service = ChatService.from_config(config)
    if args.model:
        service.select_model(args.model)

    if args.list_models or args.pull or args.ask:
        return asyncio.run(run_once(service, args))

    asyncio.run(run_cli(service))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
