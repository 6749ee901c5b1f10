# ─────────────────────────────────────────────────────────────────────
# Worldbook AI — Raw Entry Normalization
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Turn raw worldbook records into ``Entry`` objects.

Raw records come from several host generations and use different field
names for the same thing.  Recognized spellings:

==================  ==========================================
Entry field         Raw keys (first present wins)
==================  ==========================================
uid                 ``uid``, ``id``
label               ``comment``, ``label``, ``name``
keywords            ``keys`` / ``key`` plus ``secondary_keys`` /
                    ``keysecondary`` (union)
mode                ``type == "constant"`` or ``constant: true``
prevents_recursion  ``prevent_recursion``, ``preventRecursion``
excludes_recursion  ``exclude_recursion``, ``excludeRecursion``
upstream_enabled    ``enabled``, else ``not disable``
==================  ==========================================
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from .exceptions import EntryFormatError
from .types import ActivationMode, Entry

_PRIMARY_KEY_FIELDS = ("keys", "key")
_SECONDARY_KEY_FIELDS = ("secondary_keys", "keysecondary")


def _first(raw: Mapping[str, Any], names: Iterable[str], default: Any = None) -> Any:
    for name in names:
        if name in raw and raw[name] is not None:
            return raw[name]
    return default


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def normalize_keywords(*fields: Any) -> frozenset[str]:
    """Union of keyword fields, lower-cased and stripped, empties dropped.

    Each field may be a list of strings or a single comma-separated string.
    """
    words: set[str] = set()
    for value in fields:
        if not value:
            continue
        items = value.split(",") if isinstance(value, str) else value
        for item in items:
            word = str(item).strip().lower()
            if word:
                words.add(word)
    return frozenset(words)


def _activation_mode(raw: Mapping[str, Any]) -> ActivationMode:
    kind = raw.get("type")
    if isinstance(kind, str) and kind.strip().lower() == ActivationMode.CONSTANT.value:
        return ActivationMode.CONSTANT
    if _as_bool(raw.get("constant", False)):
        return ActivationMode.CONSTANT
    return ActivationMode.KEYWORD


def _upstream_enabled(raw: Mapping[str, Any]) -> bool:
    if "enabled" in raw and raw["enabled"] is not None:
        return _as_bool(raw["enabled"])
    return not _as_bool(raw.get("disable", False))


def entry_from_raw(source_id: str, raw: Any) -> Entry:
    """Normalize one raw record fetched from worldbook *source_id*.

    Raises
    ------
    EntryFormatError
        If *raw* is not a mapping or carries no uid.
    """
    if not isinstance(raw, Mapping):
        raise EntryFormatError(
            f"entry in {source_id!r} must be a mapping, got {type(raw).__name__}"
        )
    uid = _first(raw, ("uid", "id"))
    if uid is None or str(uid) == "":
        raise EntryFormatError(f"entry in {source_id!r} has no uid")

    content = raw.get("content") or ""
    return Entry(
        source_id=source_id,
        uid=str(uid),
        content=str(content),
        label=str(_first(raw, ("comment", "label", "name"), "")),
        keywords=normalize_keywords(
            _first(raw, _PRIMARY_KEY_FIELDS),
            _first(raw, _SECONDARY_KEY_FIELDS),
        ),
        mode=_activation_mode(raw),
        prevents_recursion=_as_bool(
            _first(raw, ("prevent_recursion", "preventRecursion"), False)
        ),
        excludes_recursion=_as_bool(
            _first(raw, ("exclude_recursion", "excludeRecursion"), False)
        ),
        upstream_enabled=_upstream_enabled(raw),
    )


def iter_raw_entries(payload: Any) -> list[Any]:
    """Flatten a world-info payload into a list of raw records.

    Accepts a plain list, ``{"entries": [...]}``, or the keyed export
    format ``{"entries": {"0": {...}, "1": {...}}}``.
    """
    if isinstance(payload, Mapping) and "entries" in payload:
        payload = payload["entries"]
    if isinstance(payload, Mapping):
        return list(payload.values())
    if isinstance(payload, list):
        return list(payload)
    raise EntryFormatError(
        f"unrecognized worldbook payload of type {type(payload).__name__}"
    )
