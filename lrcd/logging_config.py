from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from .config import HubRuntimeConfig


def _parse_level(value: Any, default: int) -> int:
    """Accept a level name (any case, ``WARN`` included) or a number."""
    if isinstance(value, int):
        return value
    text = str(value or "").strip().upper()
    if text.isdigit():
        return int(text)
    return logging.getLevelNamesMapping().get(text, default)


def _file_handler(path: str) -> logging.Handler:
    p = Path(os.path.expanduser(path))
    p.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(p, encoding="utf-8")
    try:
        # Logs carry nicknames and message bodies.
        os.chmod(p, 0o600)
    except OSError:
        pass
    return handler


def configure_logging(
    cfg: HubRuntimeConfig,
    *,
    override_level: str | None = None,
    override_file: str | None = None,
) -> None:
    """Install lrcd's root handlers, replacing any installed earlier.

    An ``override_file`` of ``""`` disables file logging even when the
    config names a file.
    """
    log_file = cfg.log_file if override_file is None else override_file

    handlers: list[logging.Handler] = []
    if cfg.log_console:
        handlers.append(logging.StreamHandler())
    if log_file and log_file.strip():
        handlers.append(_file_handler(log_file))

    formatter = logging.Formatter(fmt=cfg.log_format, datefmt=cfg.log_datefmt or None)
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    for h in handlers:
        h.setFormatter(formatter)
        root.addHandler(h)

    root.setLevel(_parse_level(override_level or cfg.log_level, logging.INFO))
    logging.captureWarnings(True)
