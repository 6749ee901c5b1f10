# ─────────────────────────────────────────────────────────────────────
# Worldbook AI — Collaborator Interfaces & Repository Backends
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
"""
Narrow interfaces to the host application.

The activation pipeline only ever talks to a ``LoreRepository`` (where
worldbooks live) and a ``SessionContext`` (chat history and the active
character).  Backends may implement the repository methods as plain or
``async`` functions; the pipeline awaits whatever comes back.

Backends shipped here:

- ``InMemoryLoreRepository`` — dict-backed, for tests and server requests.
- ``FileLoreRepository`` — a directory of world-info JSON exports.
- ``HttpLoreRepository`` — a REST service, via ``requests``.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import quote

import requests

from .entries import iter_raw_entries
from .exceptions import EntryFetchError, IdentityResolutionError
from .types import ChatMessage, IdentityCollections

logger = logging.getLogger("WorldbookAI.Repository")


class LoreRepository(ABC):
    """Protocol for worldbook storage backends."""

    @abstractmethod
    def resolve_identity_collections(self, character_id: str) -> Any:
        """Return ``IdentityCollections`` (or an awaitable of one)."""
        ...

    @abstractmethod
    def fetch_entries(self, book_id: str) -> Any:
        """Return the raw entries of *book_id* (or an awaitable of them)."""
        ...


@dataclass
class SessionContext:
    """What the host knows about the current chat."""

    repository: LoreRepository
    chat_history: list[ChatMessage] = field(default_factory=list)
    character_id: str | None = None


async def maybe_await(result: Any) -> Any:
    """Await *result* if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(result):
        return await result
    return result


def identity_from_mapping(data: Any) -> IdentityCollections:
    """Coerce a repository reply into ``IdentityCollections``.

    Accepts an ``IdentityCollections`` or a ``{"primary", "additional"}``
    mapping; anything else means no linked worldbooks.
    """
    if isinstance(data, IdentityCollections):
        return data
    if not isinstance(data, Mapping):
        return IdentityCollections()
    additional = data.get("additional") or []
    if isinstance(additional, str):
        additional = [additional]
    return IdentityCollections(
        primary=data.get("primary") or None,
        additional=[str(b) for b in additional if b],
    )


class InMemoryLoreRepository(LoreRepository):
    """Dict-backed repository (no I/O).

    Parameters
    ----------
    books : dict[str, list[dict]] — raw entries per worldbook id.
    characters : dict[str, IdentityCollections | dict] — linked worldbooks
        per character id.
    """

    def __init__(
        self,
        books: Mapping[str, Any] | None = None,
        characters: Mapping[str, Any] | None = None,
    ) -> None:
        self._books: dict[str, Any] = dict(books or {})
        self._characters: dict[str, Any] = dict(characters or {})

    def add_book(self, book_id: str, entries: list[dict]) -> None:
        self._books[book_id] = entries

    def link_character(
        self, character_id: str, primary: str | None, additional: list[str] | None = None
    ) -> None:
        self._characters[character_id] = IdentityCollections(
            primary=primary, additional=list(additional or [])
        )

    @property
    def book_ids(self) -> list[str]:
        return list(self._books)

    def resolve_identity_collections(self, character_id: str) -> IdentityCollections:
        if character_id not in self._characters:
            raise IdentityResolutionError(f"unknown character {character_id!r}")
        return identity_from_mapping(self._characters[character_id])

    def fetch_entries(self, book_id: str) -> list[Any]:
        if book_id not in self._books:
            raise EntryFetchError(book_id, "no such worldbook")
        return iter_raw_entries(self._books[book_id])


class FileLoreRepository(LoreRepository):
    """Reads ``<book>.json`` world-info exports from a directory.

    An optional ``characters.json`` maps character ids to
    ``{"primary": ..., "additional": [...]}``.
    """

    CHARACTERS_FILE = "characters.json"

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    @property
    def book_ids(self) -> list[str]:
        return sorted(
            p.stem
            for p in self.directory.glob("*.json")
            if p.name != self.CHARACTERS_FILE
        )

    def _load(self, path: Path) -> Any:
        with open(path, encoding="utf-8") as f:
            return json.load(f)

    def resolve_identity_collections(self, character_id: str) -> IdentityCollections:
        path = self.directory / self.CHARACTERS_FILE
        try:
            data = self._load(path)
        except (OSError, json.JSONDecodeError) as exc:
            raise IdentityResolutionError(
                f"cannot read {path}: {exc}"
            ) from exc
        if not isinstance(data, Mapping) or character_id not in data:
            raise IdentityResolutionError(f"unknown character {character_id!r}")
        return identity_from_mapping(data[character_id])

    def fetch_entries(self, book_id: str) -> list[Any]:
        path = self.directory / f"{book_id}.json"
        if path.parent != self.directory:
            raise EntryFetchError(book_id, "invalid worldbook name")
        try:
            return iter_raw_entries(self._load(path))
        except (OSError, json.JSONDecodeError) as exc:
            raise EntryFetchError(book_id, str(exc)) from exc


class HttpLoreRepository(LoreRepository):
    """REST-backed repository.

    Endpoints::

        GET {base_url}/worldbooks/{book_id}/entries
        GET {base_url}/characters/{character_id}/worldbooks

    ``requests`` is blocking, so each call runs in the default executor.
    """

    def __init__(self, base_url: str, timeout: float = 10.0, headers=None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = dict(headers or {})

    def _get_json(self, url: str) -> Any:
        response = requests.get(url, headers=self.headers, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    async def _run(self, url: str) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._get_json, url)

    async def resolve_identity_collections(
        self, character_id: str
    ) -> IdentityCollections:
        url = f"{self.base_url}/characters/{quote(character_id, safe='')}/worldbooks"
        try:
            data = await self._run(url)
        except (requests.exceptions.RequestException, ValueError) as exc:
            raise IdentityResolutionError(
                f"character {character_id!r}: {exc}"
            ) from exc
        return identity_from_mapping(data)

    async def fetch_entries(self, book_id: str) -> list[Any]:
        url = f"{self.base_url}/worldbooks/{quote(book_id, safe='')}/entries"
        try:
            data = await self._run(url)
        except (requests.exceptions.RequestException, ValueError) as exc:
            raise EntryFetchError(book_id, str(exc)) from exc
        logger.debug("Fetched worldbook %s from %s", book_id, self.base_url)
        return iter_raw_entries(data)


def repository_from_config(config) -> LoreRepository | None:
    """Build the backend named by *config*, or ``None`` if none is set.

    ``repository_url`` wins over ``worldbook_dir``.
    """
    if config.repository_url:
        return HttpLoreRepository(
            config.repository_url, timeout=config.repository_timeout
        )
    if config.worldbook_dir:
        return FileLoreRepository(config.worldbook_dir)
    return None
