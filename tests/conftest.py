# ─────────────────────────────────────────────────────────────────────
# Worldbook AI — Shared Test Fixtures
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────

import pytest

from worldbook_ai.core import (
    ChatMessage,
    InMemoryLoreRepository,
    SessionContext,
    WorldbookConfig,
    metrics,
)


def raw_entry(uid, content, keys=(), comment="", **extra):
    """Raw worldbook record in the host's native shape."""
    record = {"uid": uid, "content": content, "keys": list(keys), "comment": comment}
    record.update(extra)
    return record


@pytest.fixture(autouse=True)
def _reset_metrics():
    metrics.reset()
    metrics.enabled = True
    yield
    metrics.reset()


@pytest.fixture
def realm_entries():
    """King (constant) → Castle (keyword) → Dragon (keyword, via Castle)."""
    return [
        raw_entry(1, "The King rules the realm.", comment="King", type="constant"),
        raw_entry(
            2, "The castle is guarded by a dragon.", keys=["castle"], comment="Castle"
        ),
        raw_entry(3, "Dragons breathe fire.", keys=["dragon"], comment="Dragon"),
        raw_entry(4, "Merchants trade in the port.", keys=["harbor"], comment="Port"),
    ]


@pytest.fixture
def repository(realm_entries):
    """In-memory repository with the 'realm' book and one linked character."""
    repo = InMemoryLoreRepository({"realm": realm_entries})
    repo.link_character("alice", "realm")
    return repo


@pytest.fixture
def session(repository):
    """Session whose history mentions the castle."""
    return SessionContext(
        repository=repository,
        chat_history=[ChatMessage("Hello there", is_user=True)],
    )


@pytest.fixture
def config():
    """Manual source selecting the 'realm' book."""
    return WorldbookConfig(selected_worldbooks=["realm"])
