"""Helpers to launch the HTTP channel server."""

from __future__ import annotations

import logging
from typing import Optional

import uvicorn

from .config import BridgeSettings
from .webapp import create_app


def run_server(
    *,
    host: str = "127.0.0.1",
    port: int = 8766,
    settings: Optional[BridgeSettings] = None,
    log_level: str = "info",
) -> None:
    """Serve the usage channel over HTTP until interrupted."""
    app = create_app(settings=settings or BridgeSettings())
    logging.getLogger("uvicorn.error").setLevel(log_level.upper())
    uvicorn.run(app, host=host, port=port, log_level=log_level)
