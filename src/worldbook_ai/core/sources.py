# ─────────────────────────────────────────────────────────────────────
# Worldbook AI — Source Resolution
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Decide which worldbooks to scan.

``manual`` returns the configured list as-is (duplicates and empty names
included, acquisition skips them).  ``character`` asks the repository
for the primary and additional worldbooks of the active character and
fails soft: no character, or any repository error, gives ``[]``.
"""

from __future__ import annotations

import logging

from .collaborators import SessionContext, identity_from_mapping, maybe_await
from .config import WorldbookConfig

logger = logging.getLogger("WorldbookAI.Sources")


async def resolve_sources(session: SessionContext, config: WorldbookConfig) -> list[str]:
    """Return the ordered worldbook ids to scan.  Never raises."""
    if config.worldbook_source == "manual":
        return list(config.selected_worldbooks or [])

    if session.character_id is None:
        logger.debug("No character selected; character worldbooks unavailable")
        return []

    try:
        linked = identity_from_mapping(
            await maybe_await(
                session.repository.resolve_identity_collections(session.character_id)
            )
        )
    except Exception as exc:
        logger.error(
            "Failed to resolve worldbooks for character %s: %s",
            session.character_id,
            exc,
        )
        return []

    books: list[str] = []
    if linked.primary:
        books.append(linked.primary)
    books.extend(linked.additional or [])
    return books
