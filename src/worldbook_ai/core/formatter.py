# ─────────────────────────────────────────────────────────────────────
# Worldbook AI — Formatting & Budgeting
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────

from __future__ import annotations

from collections.abc import Iterable

from .config import DEFAULT_CHAR_LIMIT
from .types import Entry

BLOCK_SEPARATOR = "\n\n"


def entry_label(entry: Entry) -> str:
    return entry.label or f"Entry from {entry.source_id}"


def render_entry(entry: Entry) -> str:
    """Labeled header line followed by the raw content."""
    return f"[Worldbook entry: {entry_label(entry)}]\n{entry.content}"


def join_entries(entries: Iterable[Entry]) -> str:
    """Rendered blocks in the given order; blank-content entries skipped."""
    return BLOCK_SEPARATOR.join(render_entry(e) for e in entries if e.content.strip())


def truncate(text: str, char_limit: int) -> str:
    """Plain prefix cut; may split a block."""
    return text[:char_limit] if len(text) > char_limit else text


def format_entries(
    entries: Iterable[Entry], char_limit: int = DEFAULT_CHAR_LIMIT
) -> str:
    return truncate(join_entries(entries), char_limit)
