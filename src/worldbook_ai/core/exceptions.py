# ─────────────────────────────────────────────────────────────────────
# Worldbook AI — Exception Hierarchy
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Structured exception hierarchy for Worldbook AI.

All library-specific exceptions descend from ``WorldbookAIError`` so
callers can catch the entire family with a single except clause.  The
public ``get_activated_lore_text`` entry point never lets any of them
escape; they surface only from the lower-level building blocks.
"""


class WorldbookAIError(Exception):
    """Base exception for all Worldbook AI errors."""


class CollaboratorError(WorldbookAIError):
    """Raised when an external collaborator (repository, host) fails."""


class EntryFetchError(CollaboratorError):
    """Raised when the entries of a single worldbook cannot be fetched."""

    def __init__(self, book_id: str, reason: str = ""):
        self.book_id = book_id
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Failed to fetch worldbook {book_id!r}{detail}")


class IdentityResolutionError(CollaboratorError):
    """Raised when the worldbooks linked to a character cannot be resolved."""


class EntryFormatError(WorldbookAIError):
    """Raised for a raw entry that cannot be normalized."""


class ValidationError(WorldbookAIError, ValueError):
    """Raised for invalid inputs (parameters, configs)."""
