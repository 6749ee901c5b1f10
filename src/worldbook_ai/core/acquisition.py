# ─────────────────────────────────────────────────────────────────────
# Worldbook AI — Entry Acquisition
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Fetch and normalize the entries of every resolved worldbook.

Books are fetched one after another.  Each fetch has its own failure
scope: a book that raises is logged and skipped, the rest still load.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .collaborators import LoreRepository, maybe_await
from .entries import entry_from_raw
from .exceptions import EntryFormatError
from .metrics import metrics
from .types import Entry

logger = logging.getLogger("WorldbookAI.Acquisition")


@dataclass
class AcquisitionResult:
    """Entries in book order, plus the books that could not be fetched."""

    entries: list[Entry] = field(default_factory=list)
    fetched: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


async def acquire_entries(
    repository: LoreRepository, book_ids: list[str]
) -> AcquisitionResult:
    """Fetch every book in *book_ids*, skipping empty and repeated ids."""
    result = AcquisitionResult()
    seen: set[str] = set()

    for book_id in book_ids:
        if not book_id or book_id in seen:
            continue
        seen.add(book_id)

        try:
            raw_entries = await maybe_await(repository.fetch_entries(book_id))
        except Exception as exc:
            logger.error("Failed to fetch entries of worldbook %s: %s", book_id, exc)
            metrics.inc("fetch_failures")
            result.failed.append(book_id)
            continue

        for raw in raw_entries or []:
            try:
                result.entries.append(entry_from_raw(book_id, raw))
            except EntryFormatError as exc:
                logger.warning("Skipping malformed entry: %s", exc)
        result.fetched.append(book_id)

    return result
