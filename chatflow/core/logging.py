"""Logging setup for the service."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "info") -> None:
    """Configure the root logger once; later calls only adjust the level."""
    root = logging.getLogger()
    root.setLevel(level.upper())

    if not any(getattr(h, "_chatflow", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._chatflow = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    # uvicorn access logs are noisy at info
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
