"""Locally persisted, ordered collection of bookmarked catalog records."""

from __future__ import annotations

import logging

from pydantic import ValidationError as PydanticValidationError

from ..errors import CorruptDataError, Outcome, StorageError
from ..models import CatalogRecord
from .base import JsonRepository

logger = logging.getLogger(__name__)

WATCHLIST_KEY = "watchlist"


class WatchlistRepository(JsonRepository):
    """CRUD operations over the watchlist, unique by record id.

    Entries are snapshots taken when the record was added and are never
    refreshed from the catalog afterwards.
    """

    async def list(self) -> list[CatalogRecord]:
        """Return entries in insertion order; empty on any read failure."""

        try:
            return await self._load_entries()
        except StorageError as exc:
            logger.warning("Failed to load watchlist: %s", exc)
        except CorruptDataError as exc:
            logger.warning("Watchlist is corrupted, treating as empty: %s", exc)
        return []

    async def contains(self, anime_id: int) -> bool:
        return any(entry.id == anime_id for entry in await self.list())

    async def count(self) -> int:
        return len(await self.list())

    async def add(self, record: CatalogRecord) -> Outcome[None]:
        """Append ``record`` unless an entry with the same id exists."""

        async with self._store.lock(WATCHLIST_KEY):
            try:
                entries = await self._load_for_update()
            except StorageError as exc:
                logger.warning("Failed to load watchlist before adding %s: %s", record.id, exc)
                return Outcome.failure(exc)
            if any(entry.id == record.id for entry in entries):
                return Outcome.success()
            entries.append(record)
            return await self._persist(entries)

    async def remove(self, anime_id: int) -> Outcome[None]:
        """Drop the entry with ``anime_id``; absent ids are a no-op."""

        async with self._store.lock(WATCHLIST_KEY):
            try:
                entries = await self._load_for_update()
            except StorageError as exc:
                logger.warning("Failed to load watchlist before removing %s: %s", anime_id, exc)
                return Outcome.failure(exc)
            remaining = [entry for entry in entries if entry.id != anime_id]
            if len(remaining) == len(entries):
                return Outcome.success()
            return await self._persist(remaining)

    async def toggle(self, record: CatalogRecord) -> Outcome[bool]:
        """Remove ``record`` when present, otherwise add it.

        The outcome value is whether the record is in the watchlist afterwards.
        """

        async with self._store.lock(WATCHLIST_KEY):
            try:
                entries = await self._load_for_update()
            except StorageError as exc:
                logger.warning("Failed to load watchlist before toggling %s: %s", record.id, exc)
                return Outcome.failure(exc)
            remaining = [entry for entry in entries if entry.id != record.id]
            adding = len(remaining) == len(entries)
            if adding:
                remaining.append(record)
            outcome = await self._persist(remaining)
            if not outcome:
                return Outcome(error=outcome.error, detail=outcome.detail)
            return Outcome.success(adding)

    async def clear(self) -> Outcome[None]:
        async with self._store.lock(WATCHLIST_KEY):
            return await self._delete(WATCHLIST_KEY)

    async def _load_entries(self) -> list[CatalogRecord]:
        raw = await self._load(WATCHLIST_KEY)
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise CorruptDataError("Stored watchlist is not a list")
        entries: list[CatalogRecord] = []
        for item in raw:
            try:
                entries.append(CatalogRecord.model_validate(item))
            except PydanticValidationError as exc:
                logger.warning("Skipping invalid watchlist entry: %s", exc)
        return entries

    async def _load_for_update(self) -> list[CatalogRecord]:
        try:
            return await self._load_entries()
        except CorruptDataError as exc:
            logger.warning("Overwriting corrupted watchlist: %s", exc)
            return []

    async def _persist(self, entries: list[CatalogRecord]) -> Outcome[None]:
        return await self._write(
            WATCHLIST_KEY, [entry.model_dump(mode="json") for entry in entries]
        )
