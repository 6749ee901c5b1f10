# ─────────────────────────────────────────────────────────────────────
# Worldbook AI — Lore Assembly Pipeline
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
End-to-end lore assembly: resolve sources → fetch → authorize →
activate → format.

Usage::

    from worldbook_ai.core import (
        InMemoryLoreRepository, SessionContext, WorldbookConfig,
        get_activated_lore_text,
    )

    repo = InMemoryLoreRepository({"realm": entries})
    session = SessionContext(repository=repo, chat_history=history)
    config = WorldbookConfig(selected_worldbooks=["realm"])
    lore = await get_activated_lore_text(session, config, "I enter the castle")

``get_activated_lore_text`` never raises: every failure ends in ``""``
and a log line.
"""

from __future__ import annotations

import logging
import time

from .acquisition import acquire_entries
from .activation import RecursiveActivator, build_initial_corpus
from .collaborators import SessionContext
from .config import WorldbookConfig
from .formatter import join_entries, truncate
from .metrics import metrics
from .overlay import AuthorizationOverlay
from .sources import resolve_sources
from .types import AssemblyReport

logger = logging.getLogger("WorldbookAI.Pipeline")


class LoreAssembler:
    """Runs the assembly pipeline for one configuration.

    Holds no per-request state; one instance can serve concurrent
    requests.

    Parameters
    ----------
    config : WorldbookConfig — activation settings.
    """

    def __init__(self, config: WorldbookConfig | None = None) -> None:
        self.config = config or WorldbookConfig()
        self.overlay = AuthorizationOverlay.from_config(self.config)
        self.activator = RecursiveActivator(max_passes=self.config.max_recursion_passes)

    async def run(self, session: SessionContext, user_input: str = "") -> AssemblyReport:
        """Assemble lore and report how it was obtained.

        Collaborator failures are absorbed here; only programming errors
        can propagate (``get_activated_lore_text`` catches those too).
        """
        cfg = self.config
        if not cfg.worldbook_enabled:
            metrics.inc("activations_empty", label="disabled")
            return AssemblyReport(text="")

        sources = await resolve_sources(session, cfg)
        if not any(sources):
            logger.debug("No worldbooks resolved (source=%s)", cfg.worldbook_source)
            metrics.inc("activations_empty", label="no_sources")
            return AssemblyReport(text="", sources=sources)

        acquired = await acquire_entries(session.repository, sources)
        candidates = self.overlay.filter(acquired.entries)
        report = AssemblyReport(
            text="",
            sources=sources,
            candidates=len(candidates),
            failed_sources=acquired.failed,
        )
        if not candidates:
            logger.info(
                "No authorized entries in %d worldbook(s)", len(acquired.fetched)
            )
            metrics.inc("activations_empty", label="no_candidates")
            return report

        corpus = build_initial_corpus(session.chat_history, user_input)
        activation = self.activator.activate(candidates, corpus)
        report.activation = activation
        metrics.observe("entries_triggered", float(len(activation.triggered)))
        metrics.observe("recursion_passes", float(activation.passes))
        if activation.capped:
            metrics.inc("recursion_cap_hits")

        full_text = join_entries(activation.triggered)
        text = truncate(full_text, cfg.worldbook_char_limit)
        report.text = text
        report.truncated = len(full_text) > len(text)
        if report.truncated:
            metrics.inc("lore_truncated")
            logger.info("Lore truncated to %d characters", cfg.worldbook_char_limit)
        if not full_text:
            logger.info("Triggered entries carry no content")
            metrics.inc("activations_empty", label="no_content")

        logger.debug(
            "Assembled %d chars from %d/%d entries in %d pass(es)",
            len(text),
            len(activation.triggered),
            len(candidates),
            activation.passes,
        )
        return report


async def get_activated_lore_text(
    session: SessionContext,
    config: WorldbookConfig,
    user_input: str = "",
) -> str:
    """Return the lore text for this turn, or ``""``.  Never raises."""
    metrics.inc("activations_total")
    metrics.gauge_inc("active_requests")
    start = time.monotonic()
    try:
        report = await LoreAssembler(config).run(session, user_input)
        metrics.observe("lore_chars", float(len(report.text)))
        return report.text
    except Exception:
        logger.exception("Lore assembly failed; continuing without worldbook context")
        metrics.inc("activations_empty", label="error")
        return ""
    finally:
        metrics.observe("activation_duration_seconds", time.monotonic() - start)
        metrics.gauge_dec("active_requests")
