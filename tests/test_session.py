"""Session lifecycle of the local authentication stand-in."""

from __future__ import annotations

import json

import pytest

from animeshelf.database import KeyValueStore
from animeshelf.errors import StorageError, ValidationError
from animeshelf.repositories.session import SESSION_KEY, SessionRepository, SessionState


class UnwritableStore(KeyValueStore):
    def __init__(self) -> None:
        super().__init__("sqlite+aiosqlite://")

    async def get(self, key: str) -> str | None:
        raise StorageError("permission denied")

    async def set(self, key: str, value: str) -> None:
        raise StorageError("permission denied")

    async def remove(self, key: str) -> None:
        raise StorageError("permission denied")


def make_repo(store: KeyValueStore) -> SessionRepository:
    return SessionRepository(store, login_delay_seconds=0)


@pytest.mark.anyio("asyncio")
async def test_starts_loading_until_restored(store: KeyValueStore) -> None:
    repo = make_repo(store)
    assert repo.state is SessionState.LOADING

    assert await repo.restore() is None

    assert repo.state is SessionState.ANONYMOUS
    assert repo.current is None


@pytest.mark.anyio("asyncio")
async def test_login_persists_session(store: KeyValueStore) -> None:
    repo = make_repo(store)
    await repo.restore()

    user = await repo.login("a@b.com", "x")

    assert user.email == "a@b.com"
    assert user.display_name == "a"
    assert repo.is_authenticated
    assert json.loads(await store.get(SESSION_KEY) or "{}") == {
        "email": "a@b.com",
        "name": "a",
    }


@pytest.mark.anyio("asyncio")
async def test_login_then_logout_ends_anonymous(store: KeyValueStore) -> None:
    repo = make_repo(store)

    await repo.login("a@b.com", "x")
    assert await repo.logout()

    assert repo.state is SessionState.ANONYMOUS
    assert await store.get(SESSION_KEY) is None
    # Logging out again is harmless.
    assert await repo.logout()


@pytest.mark.anyio("asyncio")
async def test_signup_behaves_like_login(store: KeyValueStore) -> None:
    repo = make_repo(store)

    user = await repo.signup("  newcomer@example.com ", "secret")

    assert user.email == "newcomer@example.com"
    assert user.display_name == "newcomer"
    assert repo.is_authenticated


@pytest.mark.anyio("asyncio")
async def test_session_survives_restart(store: KeyValueStore) -> None:
    await make_repo(store).login("returning@example.com", "pw")

    restored = make_repo(store)
    user = await restored.restore()

    assert user is not None and user.display_name == "returning"
    assert restored.state is SessionState.AUTHENTICATED


@pytest.mark.parametrize(
    ("email", "password"),
    [("", "x"), ("a@b.com", ""), ("   ", "x"), ("not-an-email", "x")],
)
@pytest.mark.anyio("asyncio")
async def test_invalid_credentials_are_rejected_before_any_write(
    store: KeyValueStore, email: str, password: str
) -> None:
    repo = SessionRepository(store, login_delay_seconds=30)

    with pytest.raises(ValidationError):
        await repo.login(email, password)
    with pytest.raises(ValidationError):
        await repo.signup(email, password)

    assert await store.get(SESSION_KEY) is None


@pytest.mark.anyio("asyncio")
async def test_corrupted_session_restores_anonymous(store: KeyValueStore) -> None:
    await store.set(SESSION_KEY, '{"email": 42}')
    repo = make_repo(store)

    assert await repo.restore() is None
    assert repo.state is SessionState.ANONYMOUS


@pytest.mark.anyio("asyncio")
async def test_storage_failures() -> None:
    repo = make_repo(UnwritableStore())

    assert await repo.restore() is None
    assert repo.state is SessionState.ANONYMOUS

    with pytest.raises(StorageError):
        await repo.login("a@b.com", "x")
    assert repo.state is SessionState.ANONYMOUS

    outcome = await repo.logout()
    assert not outcome
    assert repo.state is SessionState.ANONYMOUS
