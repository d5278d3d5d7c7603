"""Filesystem locations used by the lrcd CLI."""

from __future__ import annotations

import os
from pathlib import Path

LRCD_HOME_ENV = "LRCD_HOME"


def default_config_path() -> Path:
    home = os.environ.get(LRCD_HOME_ENV)
    base = Path(home) if home else Path.home() / ".lrcd"
    return base / "lrcd.toml"


def ensure_config_dir(config_path: str) -> None:
    """Create the directory that will hold *config_path*, owner-only where possible."""
    parent = Path(config_path).parent
    parent.mkdir(parents=True, exist_ok=True)
    try:
        os.chmod(parent, 0o700)
    except OSError:
        pass
