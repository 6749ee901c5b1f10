# ─────────────────────────────────────────────────────────────────────
# Worldbook AI — Authorization Overlay
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Per-worldbook allow/deny filtering of fetched entries.

Two configuration generations exist side by side:

- **denylist** (``disabled_worldbook_entries``): ``{book: [uid, ...]}``,
  listed uids are dropped.
- **allowlist** (``enabled_worldbook_entries``): ``{book: [uid, ...]}``,
  only listed uids survive.  Books absent from the map, or mapped to
  ``"__ALL_SELECTED__"``, pass unchanged.

The whole overlay may also be the bare ``"__ALL_SELECTED__"`` sentinel.
The shape is resolved once, before filtering.  Whatever the shape,
entries disabled upstream never pass.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .config import ALL_SELECTED, WorldbookConfig
from .types import Entry

logger = logging.getLogger("WorldbookAI.Overlay")


class OverlayKind(str, Enum):
    ALL = "all"
    DENYLIST = "denylist"
    ALLOWLIST = "allowlist"


def _uid_set(value: Iterable[Any]) -> frozenset[str]:
    return frozenset(str(uid) for uid in value)


@dataclass(frozen=True)
class AuthorizationOverlay:
    """Resolved overlay: a kind plus per-book uid sets.

    For ALLOWLIST, a book mapped to ``None`` passes all of its entries.
    """

    kind: OverlayKind = OverlayKind.ALL
    books: Mapping[str, frozenset[str] | None] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: WorldbookConfig) -> AuthorizationOverlay:
        allow = config.enabled_worldbook_entries
        deny = config.disabled_worldbook_entries

        if allow is not None:
            if allow == ALL_SELECTED:
                return cls(OverlayKind.ALL)
            books: dict[str, frozenset[str] | None] = {}
            for book, uids in allow.items():  # type: ignore[union-attr]
                books[book] = None if uids == ALL_SELECTED else _uid_set(uids or [])
            return cls(OverlayKind.ALLOWLIST, books)

        if deny is not None:
            return cls(
                OverlayKind.DENYLIST,
                {book: _uid_set(uids or []) for book, uids in deny.items()},
            )

        return cls(OverlayKind.ALL)

    def allows(self, entry: Entry) -> bool:
        """True if *entry* passes upstream and overlay checks."""
        if not entry.upstream_enabled:
            return False
        if self.kind is OverlayKind.ALL:
            return True
        uids = self.books.get(entry.source_id)
        if self.kind is OverlayKind.DENYLIST:
            return uids is None or entry.uid not in uids
        # ALLOWLIST
        if entry.source_id not in self.books or uids is None:
            return True
        return entry.uid in uids

    def filter(self, entries: Iterable[Entry]) -> list[Entry]:
        """Keep authorized entries, preserving order."""
        kept = [e for e in entries if self.allows(e)]
        logger.debug("Overlay %s kept %d entries", self.kind.value, len(kept))
        return kept
