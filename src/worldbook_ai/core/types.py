# ─────────────────────────────────────────────────────────────────────
# Worldbook AI — Shared Types (Lore Activation Engine)
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ActivationMode(str, Enum):
    """How an entry becomes part of the triggered set."""

    CONSTANT = "constant"  # always triggered
    KEYWORD = "keyword"  # triggered on a keyword match


@dataclass(frozen=True)
class Entry:
    """A single lore entry, normalized from a raw worldbook record."""

    source_id: str
    uid: str
    content: str
    label: str = ""
    keywords: frozenset[str] = field(default_factory=frozenset)
    mode: ActivationMode = ActivationMode.KEYWORD
    prevents_recursion: bool = False
    excludes_recursion: bool = False
    upstream_enabled: bool = True

    @property
    def key(self) -> tuple[str, str]:
        return (self.source_id, self.uid)

    @property
    def is_constant(self) -> bool:
        return self.mode is ActivationMode.CONSTANT


@dataclass
class ChatMessage:
    """One message of the host chat history."""

    text: str
    is_user: bool = False


@dataclass
class IdentityCollections:
    """Worldbooks linked to a character: one primary plus any extras."""

    primary: str | None = None
    additional: list[str] = field(default_factory=list)


@dataclass
class ActivationResult:
    """Outcome of one recursive activation run."""

    triggered: list[Entry]  # insertion order: constants, then pass order
    rounds: list[list[Entry]]  # newly triggered per round, round 0 = constants
    passes: int  # keyword passes actually executed
    capped: bool = False  # pass limit hit before a fixed point

    @property
    def keys(self) -> set[tuple[str, str]]:
        return {e.key for e in self.triggered}


@dataclass
class AssemblyReport:
    """Full pipeline outcome returned by ``LoreAssembler.run``."""

    text: str
    sources: list[str] = field(default_factory=list)
    candidates: int = 0
    activation: ActivationResult | None = None
    truncated: bool = False
    failed_sources: list[str] = field(default_factory=list)
