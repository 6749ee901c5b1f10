# ─────────────────────────────────────────────────────────────────────
# Worldbook AI — Core Package (Lore Activation Engine)
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Lore Activation Engine — keyword-triggered worldbook context for chat.

Quick start::

    from worldbook_ai.core import (
        InMemoryLoreRepository, SessionContext, WorldbookConfig,
        get_activated_lore_text,
    )

    repo = InMemoryLoreRepository({"realm": raw_entries})
    session = SessionContext(repository=repo)
    config = WorldbookConfig(selected_worldbooks=["realm"])
    lore = await get_activated_lore_text(session, config, "Tell me of the castle")
"""

from .acquisition import AcquisitionResult, acquire_entries
from .activation import RecursiveActivator, build_initial_corpus, matches
from .collaborators import (
    FileLoreRepository,
    HttpLoreRepository,
    InMemoryLoreRepository,
    LoreRepository,
    SessionContext,
    repository_from_config,
)
from .config import ALL_SELECTED, WorldbookConfig
from .entries import entry_from_raw, iter_raw_entries, normalize_keywords
from .formatter import format_entries, join_entries, render_entry
from .metrics import MetricsCollector, metrics
from .overlay import AuthorizationOverlay, OverlayKind
from .pipeline import LoreAssembler, get_activated_lore_text
from .prompt import inject_worldbook, wrap_worldbook_context
from .sources import resolve_sources
from .types import (
    ActivationMode,
    ActivationResult,
    AssemblyReport,
    ChatMessage,
    Entry,
    IdentityCollections,
)

__all__ = [
    "ActivationMode",
    "ActivationResult",
    "AssemblyReport",
    "ChatMessage",
    "Entry",
    "IdentityCollections",
    "WorldbookConfig",
    "ALL_SELECTED",
    "LoreRepository",
    "InMemoryLoreRepository",
    "FileLoreRepository",
    "HttpLoreRepository",
    "SessionContext",
    "repository_from_config",
    "resolve_sources",
    "acquire_entries",
    "AcquisitionResult",
    "entry_from_raw",
    "iter_raw_entries",
    "normalize_keywords",
    "AuthorizationOverlay",
    "OverlayKind",
    "RecursiveActivator",
    "build_initial_corpus",
    "matches",
    "render_entry",
    "join_entries",
    "format_entries",
    "LoreAssembler",
    "get_activated_lore_text",
    "inject_worldbook",
    "wrap_worldbook_context",
    "MetricsCollector",
    "metrics",
]
