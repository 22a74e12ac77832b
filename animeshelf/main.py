"""FastAPI companion service exposing the catalog client and local repositories."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .config import Settings, settings as default_settings
from .database import KeyValueStore
from .errors import ErrorKind, Outcome, StorageError, ValidationError
from .models import CatalogRecord, ProfileSummary
from .repositories import PreferenceRepository, SessionRepository, WatchlistRepository
from .services.jikan import JikanClient, build_timeout

logging.basicConfig(level=default_settings.log_level)
logger = logging.getLogger(__name__)


class Credentials(BaseModel):
    email: str = ""
    password: str = ""


class PreferenceUpdate(BaseModel):
    dark_mode: bool | None = None
    profile_image: str | None = None


def build_lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with AsyncExitStack() as exit_stack:
            http_client = await exit_stack.enter_async_context(
                httpx.AsyncClient(
                    base_url=settings.catalog_base_url,
                    timeout=build_timeout(settings),
                    headers={"User-Agent": f"{settings.app_name} (animeshelf)"},
                )
            )
            store = KeyValueStore(settings.database_url)
            exit_stack.push_async_callback(store.dispose)
            await store.create_all()

            app.state.catalog = JikanClient(settings, http_client)
            app.state.store = store
            app.state.watchlist = WatchlistRepository(store)
            app.state.preferences = PreferenceRepository(store)
            sessions = SessionRepository(
                store, login_delay_seconds=settings.login_delay_seconds
            )
            app.state.sessions = sessions
            user = await sessions.restore()
            logger.info(
                "Session restored: %s", user.display_name if user else "anonymous"
            )

            yield

    return lifespan


def create_app(settings: Settings | None = None) -> FastAPI:
    resolved = settings or default_settings
    fastapi_app = FastAPI(
        title=resolved.app_name,
        description="Anime catalog browsing with a locally persisted watchlist",
        version="1.0.0",
        lifespan=build_lifespan(resolved),
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def _state(app: FastAPI, name: str, expected: type) -> Any:
    value = getattr(app.state, name, None)
    if not isinstance(value, expected):
        raise RuntimeError(f"{name} not initialised")
    return value


def _require_ok(outcome: Outcome[Any], action: str) -> None:
    """Turn a failed write into a retryable HTTP error."""

    if outcome:
        return
    logger.warning("%s failed: %s", action, outcome.detail)
    raise HTTPException(
        status_code=503, detail=f"Failed to {action}, please retry"
    )


def register_routes(fastapi_app: FastAPI) -> None:
    def catalog() -> JikanClient:
        return _state(fastapi_app, "catalog", JikanClient)

    def watchlist() -> WatchlistRepository:
        return _state(fastapi_app, "watchlist", WatchlistRepository)

    def preferences() -> PreferenceRepository:
        return _state(fastapi_app, "preferences", PreferenceRepository)

    def sessions() -> SessionRepository:
        return _state(fastapi_app, "sessions", SessionRepository)

    async def _preferences_payload() -> dict[str, Any]:
        repo = preferences()
        return {
            "dark_mode": await repo.get_dark_mode(),
            "profile_image": await repo.get_profile_image_ref(),
        }

    def _session_payload() -> dict[str, Any]:
        repo = sessions()
        user = repo.current
        return {
            "state": repo.state.value,
            "user": user.model_dump(by_alias=True) if user else None,
        }

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/anime/trending")
    async def trending() -> list[CatalogRecord]:
        return await catalog().fetch_trending()

    @fastapi_app.get("/anime/search")
    async def search(q: str = "") -> list[CatalogRecord]:
        return await catalog().search(q)

    @fastapi_app.get("/anime/random")
    async def random_anime() -> CatalogRecord:
        outcome = await catalog().fetch_random()
        if not outcome or outcome.value is None:
            raise HTTPException(status_code=502, detail="Catalog unavailable")
        return outcome.value

    @fastapi_app.get("/anime/recommendations")
    async def recommendations() -> list[CatalogRecord]:
        return await catalog().fetch_recommendations()

    @fastapi_app.get("/anime/{anime_id}")
    async def anime_details(anime_id: int) -> CatalogRecord:
        outcome = await catalog().lookup(anime_id)
        if outcome.error is ErrorKind.NOT_FOUND:
            raise HTTPException(status_code=404, detail=f"Anime {anime_id} not found")
        if not outcome or outcome.value is None:
            raise HTTPException(status_code=502, detail="Catalog unavailable")
        return outcome.value

    @fastapi_app.get("/watchlist")
    async def list_watchlist() -> dict[str, Any]:
        entries = await watchlist().list()
        return {
            "items": [entry.model_dump(mode="json") for entry in entries],
            "count": len(entries),
        }

    @fastapi_app.post("/watchlist")
    async def add_to_watchlist(record: CatalogRecord) -> dict[str, Any]:
        _require_ok(await watchlist().add(record), "update watchlist")
        return {"id": record.id, "in_watchlist": True}

    @fastapi_app.post("/watchlist/toggle")
    async def toggle_watchlist(record: CatalogRecord) -> dict[str, Any]:
        outcome = await watchlist().toggle(record)
        _require_ok(outcome, "update watchlist")
        return {"id": record.id, "in_watchlist": outcome.value}

    @fastapi_app.delete("/watchlist/{anime_id}")
    async def remove_from_watchlist(anime_id: int) -> dict[str, Any]:
        _require_ok(await watchlist().remove(anime_id), "remove from watchlist")
        return {"id": anime_id, "in_watchlist": False}

    @fastapi_app.delete("/watchlist")
    async def clear_watchlist() -> dict[str, Any]:
        _require_ok(await watchlist().clear(), "clear watchlist")
        return {"count": 0}

    @fastapi_app.get("/preferences")
    async def get_preferences() -> dict[str, Any]:
        return await _preferences_payload()

    @fastapi_app.put("/preferences")
    async def update_preferences(update: PreferenceUpdate) -> dict[str, Any]:
        repo = preferences()
        if update.dark_mode is not None:
            _require_ok(await repo.set_dark_mode(update.dark_mode), "save theme")
        if update.profile_image is not None:
            try:
                outcome = await repo.set_profile_image_ref(update.profile_image)
            except ValidationError as exc:
                raise HTTPException(status_code=422, detail=str(exc)) from exc
            _require_ok(outcome, "save profile image")
        return await _preferences_payload()

    @fastapi_app.post("/preferences/dark-mode/toggle")
    async def toggle_dark_mode() -> dict[str, Any]:
        outcome = await preferences().toggle_dark_mode()
        _require_ok(outcome, "save theme")
        return {"dark_mode": outcome.value}

    @fastapi_app.get("/session")
    async def get_session() -> dict[str, Any]:
        return _session_payload()

    async def _sign_in(credentials: Credentials, action: str) -> dict[str, Any]:
        repo = sessions()
        try:
            if action == "signup":
                await repo.signup(credentials.email, credentials.password)
            else:
                await repo.login(credentials.email, credentials.password)
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except StorageError as exc:
            logger.warning("%s failed: %s", action, exc)
            raise HTTPException(
                status_code=503, detail=f"Failed to {action}, please retry"
            ) from exc
        return _session_payload()

    @fastapi_app.post("/session/login")
    async def login(credentials: Credentials) -> dict[str, Any]:
        return await _sign_in(credentials, "login")

    @fastapi_app.post("/session/signup")
    async def signup(credentials: Credentials) -> dict[str, Any]:
        return await _sign_in(credentials, "signup")

    @fastapi_app.post("/session/logout")
    async def logout() -> dict[str, Any]:
        _require_ok(await sessions().logout(), "sign out")
        return _session_payload()

    @fastapi_app.get("/profile")
    async def profile() -> ProfileSummary:
        prefs = await _preferences_payload()
        return ProfileSummary(
            user=sessions().current,
            profile_image=prefs["profile_image"],
            dark_mode=prefs["dark_mode"],
            watchlist_count=await watchlist().count(),
        )


app = create_app()
