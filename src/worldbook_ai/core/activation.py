# ─────────────────────────────────────────────────────────────────────
# Worldbook AI — Recursive Keyword Activation
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Fixed-point keyword activation over a growing scan corpus.

Constant entries seed the triggered set.  Each pass then scans every
still-untriggered keyword entry against a corpus made of the chat
history, the user input, and the content of everything triggered so
far.  Entries found in a pass are added only after the whole pass has
been scanned, so the result does not depend on entry order within a
pass.  Iteration stops at the first pass that triggers nothing, or at
``max_passes``.

Recursion control per entry:

- ``prevents_recursion`` — its content never joins the corpus.
- ``excludes_recursion`` — it is matched against the initial corpus
  (history + input) only.

Matching is a case-insensitive substring test: ``"drag"`` matches
``"dragon"``.

Usage::

    activator = RecursiveActivator(max_passes=10)
    corpus = build_initial_corpus(history, "I walk to the castle")
    result = activator.activate(candidates, corpus)
    print([e.label for e in result.triggered])
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from .config import DEFAULT_MAX_PASSES
from .exceptions import ValidationError
from .types import ActivationResult, ChatMessage, Entry

logger = logging.getLogger("WorldbookAI.Activation")

# Joins corpus pieces so no keyword can match across two of them.
_SEPARATOR = "\n"


def build_initial_corpus(history: Iterable[ChatMessage], user_input: str = "") -> str:
    """Lower-cased chat history texts plus the current user input."""
    parts = [m.text for m in history if m.text]
    if user_input:
        parts.append(user_input)
    return _SEPARATOR.join(parts).lower()


def matches(entry: Entry, corpus: str) -> bool:
    """True if any of the entry's keywords is a substring of *corpus*."""
    return any(word in corpus for word in entry.keywords)


class RecursiveActivator:
    """Computes the closed set of triggered entries.

    Parameters
    ----------
    max_passes : int — keyword passes before giving up on a fixed point.
    """

    def __init__(self, max_passes: int = DEFAULT_MAX_PASSES) -> None:
        if max_passes < 1:
            raise ValidationError(f"max_passes must be >= 1, got {max_passes}")
        self.max_passes = max_passes

    def activate(self, candidates: Sequence[Entry], initial_corpus: str) -> ActivationResult:
        """Run activation over authorized *candidates*.

        *initial_corpus* must already be lower-cased (see
        ``build_initial_corpus``).
        """
        triggered: dict[tuple[str, str], Entry] = {}
        remaining: list[Entry] = []
        seen: set[tuple[str, str]] = set()
        for entry in candidates:
            if entry.key in seen:
                continue
            seen.add(entry.key)
            if entry.is_constant:
                triggered[entry.key] = entry
            elif entry.keywords:
                # keyword entries without keywords can never match
                remaining.append(entry)

        rounds: list[list[Entry]] = [list(triggered.values())]
        passes = 0
        changed = True

        while remaining and passes < self.max_passes:
            passes += 1
            recursion_corpus = self._recursion_corpus(initial_corpus, triggered.values())

            hits: list[Entry] = []
            still: list[Entry] = []
            for entry in remaining:
                corpus = initial_corpus if entry.excludes_recursion else recursion_corpus
                (hits if matches(entry, corpus) else still).append(entry)

            for entry in hits:
                triggered[entry.key] = entry
            remaining = still
            rounds.append(hits)
            changed = bool(hits)

            logger.debug("Pass %d triggered %d entries", passes, len(hits))
            if not changed:
                break

        capped = bool(remaining) and changed and passes >= self.max_passes
        if capped:
            logger.warning(
                "Recursion limit of %d passes reached with %d entries unresolved",
                self.max_passes,
                len(remaining),
            )

        return ActivationResult(
            triggered=list(triggered.values()),
            rounds=rounds,
            passes=passes,
            capped=capped,
        )

    @staticmethod
    def _recursion_corpus(initial_corpus: str, triggered: Iterable[Entry]) -> str:
        parts = [initial_corpus]
        parts.extend(e.content.lower() for e in triggered if not e.prevents_recursion)
        return _SEPARATOR.join(parts)
