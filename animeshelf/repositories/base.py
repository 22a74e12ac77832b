"""Shared plumbing for repositories persisted as JSON documents."""

from __future__ import annotations

import json
import logging
from typing import Any

from ..database import KeyValueStore
from ..errors import CorruptDataError, Outcome, StorageError

logger = logging.getLogger(__name__)


class JsonRepository:
    """Base class for repositories storing one JSON document per key.

    Known limitation: each entity is a single blob, so a mutation is a full
    read-modify-write. Writers within this process are serialised by the
    store's per-key lock; writers in another process sharing the same
    database can still lose updates. Per-entity keys plus a generation
    counter would close that gap.
    """

    def __init__(self, store: KeyValueStore):
        self._store = store

    async def _load(self, key: str) -> Any:
        """Return the decoded value for ``key`` or ``None`` when unset.

        Raises :class:`StorageError` or :class:`CorruptDataError`.
        """

        raw = await self._store.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise CorruptDataError(f"Stored value for {key!r} is not valid JSON") from exc

    async def _write(self, key: str, value: Any) -> Outcome[None]:
        try:
            await self._store.set(key, json.dumps(value))
        except StorageError as exc:
            logger.warning("Failed to persist %s: %s", key, exc)
            return Outcome.failure(exc)
        return Outcome.success()

    async def _delete(self, key: str) -> Outcome[None]:
        try:
            await self._store.remove(key)
        except StorageError as exc:
            logger.warning("Failed to remove %s: %s", key, exc)
            return Outcome.failure(exc)
        return Outcome.success()
