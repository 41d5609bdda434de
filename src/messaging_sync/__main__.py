"""Entrypoint: python -m messaging_sync (runs the development API)"""
from __future__ import annotations

import logging

import uvicorn

from messaging_sync.config import settings


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "messaging_sync.devserver.app:create_app",
        factory=True,
        host=settings.DEVSERVER_HOST,
        port=settings.DEVSERVER_PORT,
        log_level=settings.LOG_LEVEL,
    )


if __name__ == "__main__":
    main()
