# ─────────────────────────────────────────────────────────────────────
# Worldbook AI — Prompt Injection
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Place assembled lore into prompt templates.

Templates mark the lore slot with ``$1``; a backslash-escaped ``\\$1``
is left alone.  Empty lore removes the placeholder entirely.

Usage::

    prompt = inject_worldbook("Context: $1\\nAnswer the user.", lore_text)
"""

from __future__ import annotations

import re

_PLACEHOLDER = re.compile(r"(?<!\\)\$1")


def wrap_worldbook_context(text: str) -> str:
    """Wrap lore in ``<worldbook_context>`` tags, or ``""`` if empty."""
    if not text:
        return ""
    return f"\n<worldbook_context>\n{text}\n</worldbook_context>\n"


def inject_worldbook(template: str, text: str) -> str:
    """Replace every unescaped ``$1`` in *template* with wrapped lore."""
    if not template:
        return ""
    replacement = wrap_worldbook_context(text)
    return _PLACEHOLDER.sub(lambda _m: replacement, template)
