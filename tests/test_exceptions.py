# ─────────────────────────────────────────────────────────────────────
# Tests — Exception hierarchy
# ─────────────────────────────────────────────────────────────────────
from __future__ import annotations

import pytest

from worldbook_ai.core.activation import RecursiveActivator
from worldbook_ai.core.exceptions import (
    CollaboratorError,
    EntryFetchError,
    EntryFormatError,
    IdentityResolutionError,
    ValidationError,
    WorldbookAIError,
)

# ── Inheritance chain ────────────────────────────────────────────────


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc_cls",
        [
            CollaboratorError,
            EntryFetchError,
            IdentityResolutionError,
            EntryFormatError,
            ValidationError,
        ],
    )
    def test_all_inherit_from_base(self, exc_cls):
        assert issubclass(exc_cls, WorldbookAIError)

    def test_base_inherits_exception(self):
        assert issubclass(WorldbookAIError, Exception)

    def test_collaborator_failures(self):
        assert issubclass(EntryFetchError, CollaboratorError)
        assert issubclass(IdentityResolutionError, CollaboratorError)

    def test_validation_is_value_error(self):
        assert issubclass(ValidationError, ValueError)


# ── Payloads ─────────────────────────────────────────────────────────


class TestEntryFetchError:
    def test_message_with_reason(self):
        exc = EntryFetchError("realm", "timeout")
        assert exc.book_id == "realm"
        assert exc.reason == "timeout"
        assert str(exc) == "Failed to fetch worldbook 'realm': timeout"

    def test_message_without_reason(self):
        assert str(EntryFetchError("realm")) == "Failed to fetch worldbook 'realm'"

    def test_catchable_as_base(self):
        with pytest.raises(WorldbookAIError):
            raise EntryFetchError("realm")


class TestValidation:
    def test_activator_raises_validation_error(self):
        with pytest.raises(ValidationError):
            RecursiveActivator(max_passes=0)
