from __future__ import annotations

import argparse
import os
import sys
from dataclasses import replace

from .config import HubRuntimeConfig, apply_config_data, load_toml, validate_config
from .constants import NEWLINES
from .logging_config import configure_logging
from .paths import default_config_path, ensure_config_dir
from .service import HubService


def _write_default_config(config_path: str) -> None:
    ensure_config_dir(config_path)

    content = """# lrcd configuration (TOML)
#
# This file was created on first run.
# Edit it, then start lrcd again.

[hub]

# Address to listen on. Use "0.0.0.0" to accept connections from other hosts.
host = "localhost"
port = 6666

# Hub name shown in logs.
hub_name = "lrcd"

# Optional extra line sent to every client after the welcome text.
greeting = ""

# Line terminator written after every outbound line.
# Clients split input on LF, so any of "\\r\\n", "\\n" or "\\n\\r" works.
newline = "\\r\\n"

# Text encoding on the wire. Undecodable input bytes are replaced.
encoding = "utf-8"

# Nickname policy.
# Maximum accepted nickname length (Unicode characters). 0 (the default) disables length limiting.
nick_max_chars = 0

# Longest accepted input line in bytes, terminator included. Longer lines are
# discarded and answered with an error. 0 disables the limit.
max_line_bytes = 4096

# If >0, log hub statistics every this many seconds.
stats_interval_s = 0.0

[logging]

# Log level for lrcd itself.
level = "INFO"

# Log to stderr (systemd/journald friendly).
console = true

# Optional file path for logs (leave empty to disable).
file = ""

# Log format and optional date format.
format = "%(asctime)s %(levelname)s %(name)s[%(threadName)s]: %(message)s"
datefmt = ""
"""

    with open(config_path, "w", encoding="utf-8") as f:
        f.write(content)
    try:
        os.chmod(config_path, 0o600)
    except OSError:
        pass


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="lrcd", description="Run a line relay chat hub")

    p.add_argument(
        "--config",
        default=str(default_config_path()),
        help="Path to a TOML config file (created on first run)",
    )

    p.add_argument("--host", default=None, help="Listen address (default: localhost)")
    p.add_argument("--port", type=int, default=None, help="Listen port (default: 6666)")

    p.add_argument("--hub-name", default=None, help="Hub name shown in logs")
    p.add_argument(
        "--greeting",
        default=None,
        help="Extra line sent to clients after the welcome text",
    )
    p.add_argument(
        "--newline",
        choices=sorted(NEWLINES),
        default=None,
        help="Outbound line terminator (default: crlf)",
    )

    p.add_argument(
        "--nick-max-chars",
        type=int,
        default=None,
        help="Maximum nickname length (0 disables)",
    )
    p.add_argument(
        "--max-line-bytes",
        type=int,
        default=None,
        help="Longest accepted input line in bytes (0 disables)",
    )
    p.add_argument(
        "--stats-interval",
        type=float,
        default=None,
        help="Log statistics every N seconds (0 disables)",
    )

    p.add_argument(
        "--log-level",
        default=None,
        help="Logging level override (DEBUG, INFO, WARNING, ERROR). Default comes from config.",
    )
    p.add_argument(
        "--log-file",
        default=None,
        help="Log file path override (empty disables file logging). Default comes from config.",
    )

    return p


def build_config(args: argparse.Namespace) -> HubRuntimeConfig:
    """Merge the config file (if present) and command-line overrides."""
    config_path = str(args.config) if args.config else None

    cfg = HubRuntimeConfig(config_path=config_path)
    if config_path and os.path.exists(config_path):
        cfg = apply_config_data(cfg, load_toml(config_path))

    if args.host is not None:
        cfg = replace(cfg, host=str(args.host))
    if args.port is not None:
        cfg = replace(cfg, port=int(args.port))

    if args.hub_name is not None:
        cfg = replace(cfg, hub_name=args.hub_name)
    if args.greeting is not None:
        cfg = replace(cfg, greeting=args.greeting or None)
    if args.newline is not None:
        cfg = replace(cfg, newline=NEWLINES[args.newline])

    if args.nick_max_chars is not None:
        cfg = replace(cfg, nick_max_chars=int(args.nick_max_chars))
    if args.max_line_bytes is not None:
        cfg = replace(cfg, max_line_bytes=int(args.max_line_bytes))
    if args.stats_interval is not None:
        cfg = replace(cfg, stats_interval_s=float(args.stats_interval))

    if args.log_level is not None:
        cfg = replace(cfg, log_level=str(args.log_level))
    if args.log_file is not None:
        cfg = replace(cfg, log_file=str(args.log_file) if str(args.log_file) else None)

    validate_config(cfg)
    return cfg


def main(argv: list[str] | None = None) -> None:
    args = _build_arg_parser().parse_args(sys.argv[1:] if argv is None else argv)

    config_path = str(args.config)
    if not os.path.exists(config_path):
        _write_default_config(config_path)
        print(
            "Created default lrcd config. Edit it before starting:\n"
            f"- Config: {config_path}\n"
            "\nThen re-run lrcd.",
            file=sys.stderr,
        )
        raise SystemExit(0)

    try:
        cfg = build_config(args)
    except ValueError as e:
        print(f"lrcd: invalid configuration: {e}", file=sys.stderr)
        raise SystemExit(2) from e

    configure_logging(cfg, override_level=args.log_level, override_file=args.log_file)

    svc = HubService(cfg)
    svc.start()
    svc.run_forever()


if __name__ == "__main__":
    main()
