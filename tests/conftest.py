"""Shared fixtures for the AnimeShelf test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from animeshelf.database import KeyValueStore


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def store(tmp_path: Path, anyio_backend: str):
    """A fresh SQLite-backed key-value store per test."""

    kv_store = KeyValueStore(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    await kv_store.create_all()
    try:
        yield kv_store
    finally:
        await kv_store.dispose()
