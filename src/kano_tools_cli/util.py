from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional

from kano_tools_core.config import ConfigLoader, ToolboxConfig
from kano_tools_core.errors import ConfigError

# Conditional TOML import: stdlib tomllib (3.11+) or fallback tomli (<3.11)
try:
    import tomllib  # Python 3.11+
except ImportError:
    try:
        import tomli as tomllib  # type: ignore
    except ImportError:
        tomllib = None  # type: ignore

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
LOGGER_NAMES = ("kano_tools_core", "kano_tools_ops", "kano_tools_cli")


def configure_stdio() -> None:
    """Make CLI output robust across Windows console encodings.

    Some Windows terminals use a non-UTF8 encoding (e.g., cp1252). Rendered
    templates may contain any Unicode text, so configure stdout/stderr to
    replace unencodable characters instead of crashing.
    """

    if os.name != "nt":
        return

    for stream in (sys.stdout, sys.stderr):
        try:
            # Keep the current encoding, but make encoding errors non-fatal.
            stream.reconfigure(errors="replace")
        except (AttributeError, ValueError):
            continue


def configure_logging(verbose: bool) -> None:
    """Send library logs to stderr; DEBUG when --verbose is given."""
    logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT, stream=sys.stderr)
    level = logging.DEBUG if verbose else logging.WARNING
    for name in LOGGER_NAMES:
        logging.getLogger(name).setLevel(level)


def load_context_file(path: Path) -> dict[str, Any]:
    """Load a template context from a JSON or TOML file."""
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(path.read_text(encoding="utf-8"))
        else:
            if tomllib is None:
                raise SystemExit("TOML support not available; install tomli for Python <3.11")
            with open(path, "rb") as f:
                data = tomllib.load(f)
    except (OSError, ValueError) as e:
        raise SystemExit(f"Failed to load context from {path}: {e}")
    if not isinstance(data, dict):
        raise SystemExit(f"Context file must contain an object/table: {path}")
    return data


def load_toolbox_config(path: Optional[Path]) -> ToolboxConfig:
    """Load a toolbox config, or the defaults when no path is given."""
    if path is None:
        return ConfigLoader.from_dict({})
    try:
        return ConfigLoader.load(path)
    except ConfigError as e:
        raise SystemExit(f"Invalid toolbox config: {e}")
