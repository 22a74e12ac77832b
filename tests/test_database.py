from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import create_engine, inspect

from animeshelf.database import KeyValueStore
from animeshelf.errors import StorageError


def test_create_all_creates_kv_table(tmp_path) -> None:
    """Initialising the store should create the key-value table."""

    database_path = tmp_path / "fresh.db"

    store = KeyValueStore(f"sqlite+aiosqlite:///{database_path}")
    asyncio.run(store.create_all())
    asyncio.run(store.dispose())

    inspector_engine = create_engine(f"sqlite:///{database_path}")
    try:
        inspector = inspect(inspector_engine)
        columns = {column["name"] for column in inspector.get_columns("kv_entries")}
    finally:
        inspector_engine.dispose()

    assert columns == {"key", "value", "updated_at"}


def test_values_survive_reopening_the_store(tmp_path) -> None:
    database_url = f"sqlite+aiosqlite:///{tmp_path / 'persist.db'}"

    async def write() -> None:
        store = KeyValueStore(database_url)
        await store.create_all()
        await store.set("isDarkMode", "false")
        await store.dispose()

    async def read() -> str | None:
        store = KeyValueStore(database_url)
        await store.create_all()
        try:
            return await store.get("isDarkMode")
        finally:
            await store.dispose()

    asyncio.run(write())
    assert asyncio.run(read()) == "false"


@pytest.mark.anyio("asyncio")
async def test_get_set_remove(store: KeyValueStore) -> None:
    assert await store.get("watchlist") is None

    await store.set("watchlist", "[]")
    await store.set("watchlist", "[1]")
    assert await store.get("watchlist") == "[1]"

    await store.remove("watchlist")
    assert await store.get("watchlist") is None
    # Removing an absent key is not an error.
    await store.remove("watchlist")


@pytest.mark.anyio("asyncio")
async def test_clear_removes_every_key(store: KeyValueStore) -> None:
    await store.set("watchlist", "[]")
    await store.set("user", "{}")

    await store.clear()

    assert await store.get("watchlist") is None
    assert await store.get("user") is None


@pytest.mark.anyio("asyncio")
async def test_lock_is_shared_per_key(store: KeyValueStore) -> None:
    assert store.lock("watchlist") is store.lock("watchlist")
    assert store.lock("watchlist") is not store.lock("user")


@pytest.mark.anyio("asyncio")
async def test_backend_failures_raise_storage_error(tmp_path) -> None:
    """A store whose table was never created reports a StorageError."""

    store = KeyValueStore(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
    try:
        with pytest.raises(StorageError):
            await store.get("watchlist")
        with pytest.raises(StorageError):
            await store.set("watchlist", "[]")
    finally:
        await store.dispose()


@pytest.mark.anyio("asyncio")
async def test_concurrent_sets_on_a_new_key_do_not_conflict(
    store: KeyValueStore,
) -> None:
    values = [f'"{index}"' for index in range(5)]

    await asyncio.gather(*(store.set("profileImage", value) for value in values))

    assert await store.get("profileImage") in values
    await store.set("profileImage", '"final"')
    assert await store.get("profileImage") == '"final"'
