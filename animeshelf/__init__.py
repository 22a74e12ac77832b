"""AnimeShelf: anime catalog client with a locally persisted watchlist.

The FastAPI application is imported on first access so that importing the
repositories or the catalog client does not configure logging or build an app.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = ["app", "create_app"]
__version__ = "1.0.0"


def __getattr__(name: str) -> Any:
    if name not in __all__:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    return getattr(import_module(".main", __name__), name)
