from __future__ import annotations

import codecs
import tomllib
from dataclasses import asdict, dataclass, replace
from typing import Any

from .constants import DEFAULT_MAX_LINE_BYTES, DEFAULT_NICK_MAX_CHARS


@dataclass(frozen=True)
class HubRuntimeConfig:
    config_path: str | None = None
    host: str = "localhost"
    port: int = 6666
    hub_name: str = "lrcd"
    greeting: str | None = None
    newline: str = "\r\n"
    encoding: str = "utf-8"
    nick_max_chars: int = DEFAULT_NICK_MAX_CHARS
    max_line_bytes: int = DEFAULT_MAX_LINE_BYTES
    stats_interval_s: float = 0.0
    log_level: str = "INFO"
    log_console: bool = True
    log_file: str | None = None
    log_format: str = "%(asctime)s %(levelname)s %(name)s[%(threadName)s]: %(message)s"
    log_datefmt: str | None = None


_LOGGING_KEYS = {
    "level": "log_level",
    "console": "log_console",
    "file": "log_file",
    "format": "log_format",
    "datefmt": "log_datefmt",
}

_OPTIONAL_STR_KEYS = ("greeting", "log_file", "log_datefmt")


def load_toml(path: str) -> dict:
    with open(path, "rb") as f:
        return tomllib.load(f)


def apply_config_data(cfg: HubRuntimeConfig, data: dict[str, Any]) -> HubRuntimeConfig:
    """Overlay values from a parsed config file onto *cfg*.

    Keys may sit at the top level or in a ``[hub]`` table; the
    ``[logging]`` table maps onto the ``log_*`` fields. Unknown keys are
    ignored.
    """
    if not isinstance(data, dict):
        return cfg

    hub = data.get("hub")
    if isinstance(hub, dict):
        data = {**data, **hub}

    log_table = data.get("logging")
    if isinstance(log_table, dict):
        mapped = {_LOGGING_KEYS[k]: v for k, v in log_table.items() if k in _LOGGING_KEYS}
        data = {**data, **mapped}

    allowed = set(asdict(cfg).keys())
    # This identifies where the file came from; do not let the file override it.
    allowed.discard("config_path")
    updates = {k: v for k, v in data.items() if k in allowed}

    for key in _OPTIONAL_STR_KEYS:
        if key in updates and updates[key] == "":
            updates[key] = None

    if "port" in updates:
        updates["port"] = int(updates["port"])
    if "nick_max_chars" in updates:
        updates["nick_max_chars"] = int(updates["nick_max_chars"])
    if "max_line_bytes" in updates:
        updates["max_line_bytes"] = int(updates["max_line_bytes"])
    if "stats_interval_s" in updates:
        updates["stats_interval_s"] = float(updates["stats_interval_s"])

    return replace(cfg, **updates) if updates else cfg


def validate_config(cfg: HubRuntimeConfig) -> None:
    if not 0 <= int(cfg.port) <= 65535:
        raise ValueError(f"port out of range: {cfg.port}")
    if not cfg.newline:
        raise ValueError("newline must not be empty")
    if cfg.newline.strip("\r\n"):
        raise ValueError("newline may only contain CR and LF characters")
    if int(cfg.nick_max_chars) < 0:
        raise ValueError("nick_max_chars must be >= 0")
    if int(cfg.max_line_bytes) < 0:
        raise ValueError("max_line_bytes must be >= 0")
    if float(cfg.stats_interval_s) < 0:
        raise ValueError("stats_interval_s must be >= 0")
    try:
        codecs.lookup(cfg.encoding)
    except LookupError as e:
        raise ValueError(f"unknown encoding: {cfg.encoding}") from e
