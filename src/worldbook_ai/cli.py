# ─────────────────────────────────────────────────────────────────────
# Worldbook AI — Command Line Interface
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
CLI entry point for Worldbook AI.

Usage::

    worldbook-ai version
    worldbook-ai activate ./worldbooks --input "We ride to the castle"
    worldbook-ai activate ./worldbooks --book realm --history chat.jsonl
    worldbook-ai activate ./worldbooks --template prompt.txt
    worldbook-ai activate --character alice --limit 4000   # uses WORLDBOOK_WORLDBOOK_DIR
    worldbook-ai serve --port 8080
    worldbook-ai config
"""

from __future__ import annotations

import asyncio
import json
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point — dispatches to subcommands."""
    args = argv if argv is not None else sys.argv[1:]

    if not args or args[0] in ("-h", "--help", "help"):
        _print_help()
        return

    cmd = args[0]
    rest = args[1:]

    commands = {
        "version": _cmd_version,
        "activate": _cmd_activate,
        "serve": _cmd_serve,
        "config": _cmd_config,
    }

    if cmd not in commands:
        print(f"Unknown command: {cmd}")
        _print_help()
        sys.exit(1)

    commands[cmd](rest)


def _print_help() -> None:
    print(
        "Worldbook AI CLI\n"
        "\n"
        "Usage: worldbook-ai <command> [options]\n"
        "\n"
        "Commands:\n"
        "  version                 Show version info\n"
        "  activate [<dir>]        Assemble lore from worldbook JSON files\n"
        "      --input TEXT        Current user input\n"
        "      --history FILE      Chat history (.jsonl, one message per line)\n"
        "      --book NAME         Worldbook to scan (repeatable, default: all)\n"
        "      --character ID      Use the character's linked worldbooks\n"
        "      --limit N           Character budget\n"
        "      --template FILE     Prompt template; $1 marks the lore slot\n"
        "  serve [--port N]        Start the FastAPI server\n"
        "  config                  Show configuration\n"
    )


def _cmd_version(args: list[str]) -> None:
    import worldbook_ai

    print(f"worldbook-ai {worldbook_ai.__version__}")


_HISTORY_MAX_LINE_SIZE = 1 * 1024 * 1024  # 1 MB per line


def _load_history(path: str) -> list:
    from worldbook_ai.core.types import ChatMessage

    history = []
    with open(path, encoding="utf-8") as f:
        for line_no, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            if len(line) > _HISTORY_MAX_LINE_SIZE:
                print(f"Warning: skipping oversized history line {line_no}")
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                print(f"Warning: skipping malformed JSON on line {line_no}: {e}")
                continue
            if isinstance(data, str):
                history.append(ChatMessage(text=data))
            elif isinstance(data, dict):
                text = data.get("text", data.get("mes", ""))
                history.append(
                    ChatMessage(text=str(text), is_user=bool(data.get("is_user")))
                )
    return history


def _cmd_activate(args: list[str]) -> None:
    import dataclasses
    import os

    directory = None
    if args and not args[0].startswith("--"):
        directory = args[0]
        args = args[1:]
        if not os.path.isdir(directory):
            print(f"Error: directory not found: {directory}")
            sys.exit(1)

    user_input = ""
    history_file = None
    books: list[str] = []
    character = None
    limit = None
    template = None

    i = 0
    while i < len(args):
        flag = args[i]
        value = args[i + 1] if i + 1 < len(args) else None
        if value is None:
            print(f"Error: missing value for {flag}")
            sys.exit(1)
        if flag == "--input":
            user_input = value
        elif flag == "--history":
            history_file = value
        elif flag == "--book":
            books.append(value)
        elif flag == "--character":
            character = value
        elif flag == "--template":
            template = value
        elif flag == "--limit":
            try:
                limit = int(value)
            except ValueError:
                print(f"Error: invalid limit: {value}")
                sys.exit(1)
        else:
            print(f"Error: unknown option: {flag}")
            sys.exit(1)
        i += 2

    if history_file and not os.path.isfile(history_file):
        print(f"Error: file not found: {history_file}")
        sys.exit(1)
    if template and not os.path.isfile(template):
        print(f"Error: file not found: {template}")
        sys.exit(1)

    from worldbook_ai.core.collaborators import (
        FileLoreRepository,
        SessionContext,
        repository_from_config,
    )
    from worldbook_ai.core.config import WorldbookConfig
    from worldbook_ai.core.pipeline import LoreAssembler
    from worldbook_ai.core.prompt import inject_worldbook

    try:
        base = WorldbookConfig.from_env()
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if directory:
        repository = FileLoreRepository(directory)
    else:
        repository = repository_from_config(base)
        if repository is None:
            print("Usage: worldbook-ai activate <dir> [--input TEXT] [--book NAME] ...")
            print("(or set WORLDBOOK_WORLDBOOK_DIR / WORLDBOOK_REPOSITORY_URL)")
            sys.exit(1)
    history = _load_history(history_file) if history_file else []

    overrides: dict = {"worldbook_enabled": True}
    if character:
        overrides["worldbook_source"] = "character"
    else:
        overrides["worldbook_source"] = "manual"
        if books:
            overrides["selected_worldbooks"] = books
        elif not base.selected_worldbooks and isinstance(
            repository, FileLoreRepository
        ):
            overrides["selected_worldbooks"] = repository.book_ids
    if limit is not None:
        overrides["worldbook_char_limit"] = limit
    try:
        config = dataclasses.replace(base, **overrides)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    session = SessionContext(
        repository=repository, chat_history=history, character_id=character
    )
    report = asyncio.run(LoreAssembler(config).run(session, user_input))

    activation = report.activation
    triggered = len(activation.triggered) if activation else 0
    passes = activation.passes if activation else 0
    print(f"Worldbooks: {', '.join(report.sources) or '(none)'}")
    if report.failed_sources:
        print(f"Failed:     {', '.join(report.failed_sources)}")
    print(f"Candidates: {report.candidates}")
    print(f"Triggered:  {triggered}")
    print(f"Passes:     {passes}")
    print(f"Truncated:  {report.truncated}")
    print("")
    if template:
        with open(template, encoding="utf-8") as f:
            print(inject_worldbook(f.read(), report.text))
    else:
        print(report.text)


def _cmd_serve(args: list[str]) -> None:
    port = 8080
    host = "0.0.0.0"

    i = 0
    while i < len(args):
        if args[i] == "--port" and i + 1 < len(args):
            try:
                port = int(args[i + 1])
            except ValueError:
                print(f"Error: invalid port number: {args[i + 1]}")
                sys.exit(1)
            i += 2
        elif args[i] == "--host" and i + 1 < len(args):
            host = args[i + 1]
            i += 2
        else:
            i += 1

    try:
        import uvicorn
    except ImportError:
        print("uvicorn is required: pip install worldbook-ai[server]")
        sys.exit(1)

    from worldbook_ai.core.config import WorldbookConfig
    from worldbook_ai.server import create_app

    config = WorldbookConfig.from_env()
    config.server_host = host
    config.server_port = port

    app = create_app(config)
    print(f"Starting Worldbook AI server on {host}:{port}")
    uvicorn.run(app, host=host, port=port)


def _cmd_config(args: list[str]) -> None:
    from worldbook_ai.core.config import WorldbookConfig

    cfg = WorldbookConfig.from_env()
    for key, value in cfg.to_dict().items():
        print(f"  {key}: {value}")


if __name__ == "__main__":
    main()
