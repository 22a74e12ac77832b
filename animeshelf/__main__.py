"""Run the companion service with ``python -m animeshelf``."""

from __future__ import annotations

import uvicorn

from animeshelf.config import Settings, settings as default_settings


def run(settings: Settings = default_settings) -> None:
    development = settings.environment == "development"
    uvicorn.run(
        "animeshelf.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=development,
        log_level=settings.log_level.lower(),
        access_log=development,
    )


if __name__ == "__main__":  # pragma: no cover - runtime entrypoint
    run()
