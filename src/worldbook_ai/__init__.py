# ─────────────────────────────────────────────────────────────────────
# Worldbook AI — Package Initialisation
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Worldbook AI: recursive keyword activation of lore entries for chat prompts.

Consumer API::

    from worldbook_ai import get_activated_lore_text, WorldbookConfig

Server (requires ``pip install worldbook-ai[server]``)::

    from worldbook_ai.server import create_app
"""

__version__ = "1.0.0"

from .core import (
    ActivationMode,
    ActivationResult,
    AssemblyReport,
    AuthorizationOverlay,
    ChatMessage,
    Entry,
    FileLoreRepository,
    HttpLoreRepository,
    IdentityCollections,
    InMemoryLoreRepository,
    LoreAssembler,
    LoreRepository,
    RecursiveActivator,
    SessionContext,
    WorldbookConfig,
    get_activated_lore_text,
    inject_worldbook,
)

__all__ = [
    "get_activated_lore_text",
    "LoreAssembler",
    "WorldbookConfig",
    "SessionContext",
    "ChatMessage",
    "LoreRepository",
    "InMemoryLoreRepository",
    "FileLoreRepository",
    "HttpLoreRepository",
    "IdentityCollections",
    "Entry",
    "ActivationMode",
    "ActivationResult",
    "AssemblyReport",
    "AuthorizationOverlay",
    "RecursiveActivator",
    "inject_worldbook",
]
