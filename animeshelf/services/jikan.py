"""Client for the Jikan (MyAnimeList) v4 catalog API."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from ..config import Settings
from ..errors import ErrorKind, Outcome, TransportError
from ..models import CatalogRecord

logger = logging.getLogger(__name__)


def build_timeout(settings: Settings) -> httpx.Timeout:
    """Return the request timeout applied to every catalog call."""

    return httpx.Timeout(
        settings.catalog_timeout_seconds,
        connect=settings.catalog_connect_timeout_seconds,
    )


class JikanClient:
    """Thin, stateless wrapper around the public catalog endpoints.

    Failures never escape as exceptions: list endpoints degrade to ``[]`` and
    single-record endpoints to ``None`` or a failed :class:`Outcome`.
    Cancellation of the awaiting task is not intercepted.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client
        self._max_retries = settings.catalog_max_retries
        self._timeout = build_timeout(settings)

    async def fetch_trending(self) -> list[CatalogRecord]:
        """Return currently airing titles ordered by rank."""

        params = {"filter": "airing", "limit": self._settings.trending_limit}
        try:
            payload = await self._get_json("/top/anime", params=params)
        except TransportError as exc:
            logger.warning("Failed to fetch trending anime: %s", exc)
            return []
        return self._parse_many(payload, context="trending")

    async def search(self, query: str) -> list[CatalogRecord]:
        """Return catalog records matching ``query``."""

        normalized = (query or "").strip()
        if not normalized:
            return []
        params = {"q": normalized, "limit": self._settings.search_limit}
        try:
            payload = await self._get_json("/anime", params=params)
        except TransportError as exc:
            logger.warning("Anime search for %r failed: %s", normalized, exc)
            return []
        return self._parse_many(payload, context=f"search {normalized!r}")

    async def get_details(self, anime_id: int) -> CatalogRecord | None:
        """Return a single record, or ``None`` when missing or unreachable."""

        outcome = await self.lookup(anime_id)
        return outcome.value if outcome.ok else None

    async def lookup(self, anime_id: int) -> Outcome[CatalogRecord]:
        """Return a single record, reporting not-found separately from failures."""

        try:
            payload = await self._get_json(f"/anime/{int(anime_id)}")
            record = self._parse_one(payload)
        except (TransportError, PydanticValidationError) as exc:
            outcome: Outcome[CatalogRecord] = Outcome.failure(exc)
            if outcome.error is ErrorKind.NOT_FOUND:
                logger.info("Anime %s not found in catalog", anime_id)
            else:
                logger.warning("Failed to fetch anime %s: %s", anime_id, exc)
            return outcome
        return Outcome.success(record)

    async def fetch_random(self) -> Outcome[CatalogRecord]:
        """Return a random catalog record for the "surprise me" flow."""

        try:
            payload = await self._get_json("/random/anime")
            record = self._parse_one(payload)
        except (TransportError, PydanticValidationError) as exc:
            logger.warning("Failed to fetch random anime: %s", exc)
            return Outcome.failure(exc)
        return Outcome.success(record)

    async def fetch_recommendations(self) -> list[CatalogRecord]:
        """Return titles featured in recent community recommendations."""

        try:
            payload = await self._get_json("/recommendations/anime")
        except TransportError as exc:
            logger.warning("Failed to fetch anime recommendations: %s", exc)
            return []

        data = payload.get("data")
        if not isinstance(data, list):
            logger.warning("Unexpected recommendations payload structure")
            return []

        limit = self._settings.recommendation_limit
        seen: set[int] = set()
        records: list[CatalogRecord] = []
        for recommendation in data:
            if not isinstance(recommendation, dict):
                continue
            entries = recommendation.get("entry")
            if not isinstance(entries, list):
                continue
            for entry in entries:
                if not isinstance(entry, dict):
                    continue
                try:
                    record = CatalogRecord.model_validate(entry)
                except PydanticValidationError:
                    continue
                if record.id in seen:
                    continue
                seen.add(record.id)
                records.append(record)
                if len(records) >= limit:
                    return records
        return records

    async def _get_json(
        self, path: str, *, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """GET ``path`` and return the decoded JSON envelope.

        Rate limiting (429) and 5xx responses are retried with a capped
        exponential backoff, as are connection errors other than timeouts.
        Everything else that prevents a JSON object from being returned is
        raised as :class:`TransportError`.
        """

        attempt = 0
        while True:
            try:
                response = await self._client.get(
                    path, params=params, timeout=self._timeout
                )
            except httpx.TimeoutException as exc:
                raise TransportError(f"{exc.__class__.__name__}: {exc}") from exc
            except httpx.HTTPError as exc:
                attempt += 1
                if attempt <= self._max_retries:
                    backoff = self._backoff(attempt)
                    logger.info(
                        "Transient error talking to catalog (%s). Retrying %s in %.1fs",
                        exc.__class__.__name__,
                        path,
                        backoff,
                    )
                    await asyncio.sleep(backoff)
                    continue
                raise TransportError(f"{exc.__class__.__name__}: {exc}") from exc

            status = response.status_code
            if status == 429 or 500 <= status < 600:
                attempt += 1
                if attempt <= self._max_retries:
                    backoff = self._backoff(attempt)
                    logger.info(
                        "Catalog returned %s for %s. Retrying in %.1fs",
                        status,
                        path,
                        backoff,
                    )
                    await asyncio.sleep(backoff)
                    continue
            break

        if status >= 400:
            raise TransportError(
                f"Catalog request {path} failed with status {status}",
                status_code=status,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise TransportError(f"Non-JSON catalog response for {path}") from exc
        if not isinstance(payload, dict):
            raise TransportError(f"Unexpected catalog response structure for {path}")
        return payload

    @staticmethod
    def _backoff(attempt: int) -> float:
        return min(2 ** (attempt - 1), 5) + (0.1 * attempt)

    @staticmethod
    def _parse_many(payload: dict[str, Any], *, context: str) -> list[CatalogRecord]:
        data = payload.get("data")
        if not isinstance(data, list):
            logger.warning("Unexpected catalog payload structure for %s", context)
            return []
        records: list[CatalogRecord] = []
        for entry in data:
            if not isinstance(entry, dict):
                continue
            try:
                records.append(CatalogRecord.model_validate(entry))
            except PydanticValidationError as exc:
                logger.warning(
                    "Skipping malformed catalog entry in %s: %s", context, exc
                )
        return records

    @staticmethod
    def _parse_one(payload: dict[str, Any]) -> CatalogRecord:
        data = payload.get("data")
        if not isinstance(data, dict):
            raise TransportError("Catalog response did not contain a record")
        return CatalogRecord.model_validate(data)
