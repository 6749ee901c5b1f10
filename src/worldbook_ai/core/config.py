# ─────────────────────────────────────────────────────────────────────
# Worldbook AI — Configuration Manager
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Dataclass-based configuration with env var, YAML, and host-settings support.

Usage::

    config = WorldbookConfig.from_env()
    config = WorldbookConfig.from_yaml("config.yaml")
    config = WorldbookConfig.from_settings(host_settings["apiSettings"])
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import yaml

#: Overlay value meaning "every entry is selected".
ALL_SELECTED = "__ALL_SELECTED__"

DEFAULT_CHAR_LIMIT = 60_000
DEFAULT_MAX_PASSES = 10

_SOURCES = ("manual", "character")

# Host settings use camelCase; map them onto dataclass fields.
_SETTINGS_KEYS: dict[str, str] = {
    "worldbookEnabled": "worldbook_enabled",
    "worldbookSource": "worldbook_source",
    "selectedWorldbooks": "selected_worldbooks",
    "disabledWorldbookEntries": "disabled_worldbook_entries",
    "enabledWorldbookEntries": "enabled_worldbook_entries",
    "worldbookCharLimit": "worldbook_char_limit",
    "worldbookMaxRecursion": "max_recursion_passes",
}


@dataclass
class WorldbookConfig:
    """Central configuration for Worldbook AI.

    Parameters
    ----------
    worldbook_enabled : bool — master switch; disabled yields empty lore.
    worldbook_source : str — "manual" (use ``selected_worldbooks``) or
        "character" (books linked to the active character).
    selected_worldbooks : list[str] — worldbook ids for the manual source.
    disabled_worldbook_entries : dict | None — denylist overlay,
        ``{book: [uid, ...]}``.
    enabled_worldbook_entries : dict | str | None — allowlist overlay,
        ``{book: [uid, ...] | "__ALL_SELECTED__"}`` or the bare sentinel.
    worldbook_char_limit : int — hard cap on the assembled lore length.
    max_recursion_passes : int — keyword passes before activation stops.
    repository_url : str — base URL of an HTTP lore repository.
    repository_timeout : float — per-request timeout for that repository.
    worldbook_dir : str — directory of world-info JSON exports.
    server_host : str — FastAPI server bind address.
    server_port : int — FastAPI server port.
    metrics_enabled : bool — enable in-process metrics collection.
    log_level : str — logging level.
    log_json : bool — structured JSON logging.
    """

    # Activation
    worldbook_enabled: bool = True
    worldbook_source: str = "manual"
    selected_worldbooks: list[str] = field(default_factory=list)
    disabled_worldbook_entries: dict[str, list[str]] | None = None
    enabled_worldbook_entries: dict[str, list[str] | str] | str | None = None
    worldbook_char_limit: int = DEFAULT_CHAR_LIMIT
    max_recursion_passes: int = DEFAULT_MAX_PASSES

    # Repositories
    repository_url: str = ""
    repository_timeout: float = 10.0
    worldbook_dir: str = ""

    # Server
    server_host: str = "0.0.0.0"
    server_port: int = 8080
    cors_origins: str = "*"

    # Observability
    metrics_enabled: bool = True
    log_level: str = "INFO"
    log_json: bool = False

    # API key auth (empty list = no auth required)
    api_keys: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.worldbook_source not in _SOURCES:
            raise ValueError(
                f"worldbook_source must be one of {list(_SOURCES)}, "
                f"got {self.worldbook_source!r}"
            )
        if self.worldbook_char_limit < 0:
            raise ValueError(
                f"worldbook_char_limit must be >= 0, got {self.worldbook_char_limit}"
            )
        if self.max_recursion_passes < 1:
            raise ValueError(
                f"max_recursion_passes must be >= 1, got {self.max_recursion_passes}"
            )
        if self.repository_timeout <= 0:
            raise ValueError(
                f"repository_timeout must be > 0, got {self.repository_timeout}"
            )
        if not (1 <= self.server_port <= 65535):
            raise ValueError(
                f"server_port must be in [1, 65535], got {self.server_port}"
            )
        if (
            self.disabled_worldbook_entries is not None
            and self.enabled_worldbook_entries is not None
        ):
            raise ValueError(
                "disabled_worldbook_entries and enabled_worldbook_entries "
                "are mutually exclusive; configure one overlay shape"
            )
        _check_overlay(
            "disabled_worldbook_entries", self.disabled_worldbook_entries, sentinel=False
        )
        _check_overlay(
            "enabled_worldbook_entries", self.enabled_worldbook_entries, sentinel=True
        )

    @classmethod
    def from_env(cls, prefix: str = "WORLDBOOK_") -> WorldbookConfig:
        """Load configuration from environment variables.

        Reads ``WORLDBOOK_<FIELD>`` env vars (case-insensitive field matching).
        Example: ``WORLDBOOK_WORLDBOOK_CHAR_LIMIT=20000``
        """
        kwargs: dict = {}
        field_map = {f.name.upper(): f for f in cls.__dataclass_fields__.values()}

        for key, value in os.environ.items():
            if not key.startswith(prefix):
                continue
            field_name = key[len(prefix) :]
            if field_name in field_map:
                fld = field_map[field_name]
                try:
                    kwargs[fld.name] = _coerce(value, fld.type)  # type: ignore[arg-type]
                except (ValueError, TypeError) as exc:
                    raise ValueError(
                        f"Invalid value for env var {key}={value!r}: {exc}"
                    ) from exc

        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: str) -> WorldbookConfig:
        """Load configuration from a YAML (or JSON) file."""
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            return cls()
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> WorldbookConfig:
        """Build a config from host extension settings.

        Accepts the host's camelCase keys (``worldbookEnabled``,
        ``selectedWorldbooks``, ...) as well as snake_case field names.
        Unknown keys are ignored.
        """
        return cls().with_settings(settings)

    def with_settings(self, settings: Mapping[str, Any]) -> WorldbookConfig:
        """Return a copy with host *settings* applied on top of this config.

        Setting one overlay shape clears the other, so a request can switch
        shapes without tripping the mutual-exclusion check.
        """
        kwargs: dict = {}
        for key, value in settings.items():
            name = _SETTINGS_KEYS.get(key, key)
            if name in self.__dataclass_fields__ and value is not None:
                kwargs[name] = value
        if "selected_worldbooks" in kwargs:
            selected = kwargs["selected_worldbooks"]
            if isinstance(selected, str):
                selected = [selected]
            kwargs["selected_worldbooks"] = list(selected)
        if "enabled_worldbook_entries" in kwargs:
            kwargs.setdefault("disabled_worldbook_entries", None)
        elif "disabled_worldbook_entries" in kwargs:
            kwargs["enabled_worldbook_entries"] = None
        return dataclasses.replace(self, **kwargs)

    def configure_logging(self) -> None:
        """Apply log_level and log_json settings to the WorldbookAI logger hierarchy."""
        root = logging.getLogger("WorldbookAI")
        root.setLevel(getattr(logging, self.log_level.upper(), logging.INFO))

        if self.log_json:
            handler = logging.StreamHandler()
            handler.setFormatter(_JsonFormatter())
            root.handlers = [handler]

    _REDACTED_FIELDS = frozenset({"api_keys"})

    def to_dict(self) -> dict:
        """Serialize to a plain dict (safe for JSON/API responses)."""
        d = {}
        for fld in self.__dataclass_fields__:
            val = getattr(self, fld)
            if fld in self._REDACTED_FIELDS and val:
                d[fld] = "***"
            else:
                d[fld] = val
        return d


def _check_overlay(name: str, value: Any, sentinel: bool) -> None:
    """Require ``None`` or a ``{book: [uid, ...]}`` mapping.

    With *sentinel*, ``"__ALL_SELECTED__"`` is accepted both for the
    whole overlay and for a single book.
    """
    if value is None or (sentinel and value == ALL_SELECTED):
        return
    alt = f" or {ALL_SELECTED!r}" if sentinel else ""
    if not isinstance(value, Mapping):
        raise ValueError(
            f"{name} must be a mapping of worldbook -> list of uids{alt}, got {value!r}"
        )
    for book, uids in value.items():
        if sentinel and uids == ALL_SELECTED:
            continue
        if not isinstance(uids, (list, tuple)):
            raise ValueError(
                f"{name}[{book!r}] must be a list of uids{alt}, got {uids!r}"
            )


class _JsonFormatter(logging.Formatter):
    """Structured JSON log formatter for production use."""

    def format(self, record: logging.LogRecord) -> str:
        import time as _time

        entry = {
            "ts": _time.time(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        request_id = getattr(record, "request_id", None)
        if request_id:
            entry["request_id"] = request_id
        return json.dumps(entry)


def _coerce(value: str, type_hint: str) -> object:
    """Coerce a string env var to the target type."""
    if type_hint == "bool":
        low = value.lower()
        if low in ("true", "1", "yes"):
            return True
        if low in ("false", "0", "no"):
            return False
        raise ValueError(
            f"invalid bool value: {value!r} (expected true/false/1/0/yes/no)"
        )
    if type_hint == "int":
        return int(value)
    if type_hint == "float":
        return float(value)
    if type_hint.startswith("dict"):
        stripped = value.strip()
        if stripped == ALL_SELECTED:
            return stripped
        parsed = json.loads(stripped)
        if not isinstance(parsed, dict):
            raise ValueError(f"expected a JSON object, got {type(parsed).__name__}")
        return parsed
    if "list" in type_hint:
        return [s.strip() for s in value.split(",") if s.strip()]
    return value
