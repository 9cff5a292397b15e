from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import chat_cli
from chatstack.history import ChatHistoryStore
from chatstack.models import ChatEntry
from chatstack.ollama import OllamaClient
from chatstack.service import ChatService


def _service(session, settings):
    return ChatService(OllamaClient(session=session), ChatHistoryStore(settings), settings)


def _seed_history(service):
    now = datetime(2026, 2, 7, tzinfo=timezone.utc)
    older = ChatEntry("What is gravity?", "A force.", "mistral", date=now - timedelta(days=1))
    newer = ChatEntry("Why is the sky blue?", "Rayleigh scattering.", "llama3.1", date=now)
    service.history.add(older)
    service.history.add(newer)
    return older, newer


def test_parse_args_defaults():
    args = chat_cli.parse_args([])

    assert args.log_level == "INFO"
    assert not args.list_models
    assert args.pull is None


def test_delete_and_undo_commands(make_session, settings):
    service = _service(make_session(), settings)
    older, newer = _seed_history(service)

    # Archive numbering follows the display order, newest first.
    assert asyncio.run(chat_cli.handle_command(service, "/delete 1"))
    assert service.history.entries == (older,)

    assert asyncio.run(chat_cli.handle_command(service, "/undo"))
    assert service.history.entries == (older, newer)


def test_delete_command_numbers_follow_last_history_listing(make_session, settings):
    service = _service(make_session(), settings)
    older, newer = _seed_history(service)
    view = chat_cli.ArchiveView()

    asyncio.run(chat_cli.handle_command(service, "/history gravity", view))
    asyncio.run(chat_cli.handle_command(service, "/delete 1", view))

    assert service.history.entries == (newer,)
    assert view.entries == []


def test_show_command_numbers_follow_last_history_listing(make_session, settings, capsys):
    service = _service(make_session(), settings)
    _seed_history(service)
    view = chat_cli.ArchiveView()

    asyncio.run(chat_cli.handle_command(service, "/history gravity", view))
    capsys.readouterr()
    asyncio.run(chat_cli.handle_command(service, "/show 1", view))

    output = capsys.readouterr().out
    assert "What is gravity?" in output
    assert "Why is the sky blue?" not in output


def test_delete_command_ignores_unknown_number(make_session, settings, capsys):
    service = _service(make_session(), settings)
    _seed_history(service)

    asyncio.run(chat_cli.handle_command(service, "/delete 7"))

    assert len(service.history) == 2
    assert "No archived chat" in capsys.readouterr().out


def test_set_command_updates_options(make_session, settings):
    service = _service(make_session(), settings)

    asyncio.run(chat_cli.handle_command(service, "/set temperature 0.3"))
    asyncio.run(chat_cli.handle_command(service, "/set top_k many"))

    assert service.options.temperature == 0.3
    assert service.options.top_k == 40


def test_quit_command_ends_session(make_session, settings):
    service = _service(make_session(), settings)

    assert asyncio.run(chat_cli.handle_command(service, "/quit")) is False


def test_run_once_lists_models(make_session, make_response, settings, capsys):
    payload = {"models": [{"name": "mistral:latest"}, {"name": "llama3.1:latest"}]}
    service = _service(make_session(make_response(payload=payload)), settings)
    args = chat_cli.parse_args(["--list-models"])

    assert asyncio.run(chat_cli.run_once(service, args)) == 0
    output = capsys.readouterr().out
    assert "llama3.1:latest" in output
    assert "mistral:latest" in output


def test_run_once_reports_errors(make_session, make_response, settings, capsys):
    service = _service(make_session(make_response(500, {"error": "boom"})), settings)
    args = chat_cli.parse_args(["--ask", "Hello"])

    assert asyncio.run(chat_cli.run_once(service, args)) == 1
    assert "boom" in capsys.readouterr().out
    assert service.history.entries == ()
