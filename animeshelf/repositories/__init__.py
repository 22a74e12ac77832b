"""Repositories persisting local state through the key-value store."""

from __future__ import annotations

from .preferences import PreferenceRepository
from .session import SessionRepository, SessionState
from .watchlist import WatchlistRepository

__all__ = [
    "PreferenceRepository",
    "SessionRepository",
    "SessionState",
    "WatchlistRepository",
]
