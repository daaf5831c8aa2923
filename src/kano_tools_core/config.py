"""Toolbox configuration loading.

A toolbox config declares the data values handed to templates and how the
loop controller is exposed. TOML is the supported format; JSON still loads
but is deprecated.

Example::

    loop_key = "loop"
    strict = true

    [[data]]
    key = "version"
    type = "number"
    value = "2.1"

Environment overrides (applied after the file is read):
- KANO_TOOLS_LOOP_KEY: context key under which templates reach the loop controller
- KANO_TOOLS_STRICT: treat data conversion failures as errors (true/false)
"""

import json
import logging
import os
import warnings
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .data import DEFAULT_TYPE, Data, convert_boolean
from .errors import ConfigError, ConversionError

# Conditional TOML import: stdlib tomllib (3.11+) or fallback tomli (<3.11)
try:
    import tomllib  # Python 3.11+
except ImportError:
    try:
        import tomli as tomllib  # type: ignore
    except ImportError:
        tomllib = None  # type: ignore

logger = logging.getLogger(__name__)

ENV_PREFIX = "KANO_TOOLS_"
ENV_LOOP_KEY = f"{ENV_PREFIX}LOOP_KEY"
ENV_STRICT = f"{ENV_PREFIX}STRICT"

DEFAULT_LOOP_KEY = "loop"


class DataSpec(BaseModel):
    """One ``[[data]]`` entry as written in the config file."""

    key: Optional[str] = Field(None, description="Context key exposed to templates")
    type: str = Field(default=DEFAULT_TYPE, description="auto, boolean, number, string, field, list[.type] or a class path")
    value: Any = Field(None, description="Raw value before conversion")

    model_config = ConfigDict(extra="forbid")

    def to_data(self) -> Data:
        return Data(key=self.key, value=self.value, type=self.type)


class ToolboxConfig(BaseModel):
    """Effective toolbox configuration."""

    loop_key: str = Field(default=DEFAULT_LOOP_KEY, min_length=1, description="Context key for the loop controller")
    strict: bool = Field(default=False, description="Fail on data that cannot be converted")
    data: list[DataSpec] = Field(default_factory=list)

    def resolve_data(self) -> dict[str, Any]:
        """Validate every datum and return ``{key: converted value}``.

        In non-strict mode, entries with an unknown type or a value that
        fails conversion are logged and skipped; missing keys, missing values
        and duplicate keys always raise.

        Raises:
            ConfigError: Invalid, duplicate, or (in strict mode) unconvertible data.
        """
        resolved: dict[str, Any] = {}
        for entry in self.data:
            try:
                datum = entry.to_data()
                datum.validate()
            except ConfigError as e:
                if self.strict or entry.key is None or entry.value is None:
                    raise
                logger.warning(f"Skipping data '{entry.key}' ({entry.type}): {e}")
                continue
            if datum.key in resolved:
                raise ConfigError(f"Duplicate data key: {datum.key}")
            resolved[datum.key] = datum.converted_value
        return resolved


class ConfigLoader:
    """Load toolbox configuration from TOML (or deprecated JSON) files."""

    @staticmethod
    def _read_toml(path: Path) -> dict[str, Any]:
        if tomllib is None:
            raise ConfigError("TOML support not available; install tomli for Python <3.11")
        try:
            with open(path, "rb") as f:
                return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {path}: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to load config from {path}: {e}")

    @staticmethod
    def _read_json(path: Path) -> dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to load config from {path}: {e}")
        if not isinstance(data, dict):
            raise ConfigError(f"Config JSON must be an object: {path}")
        warnings.warn(
            f"JSON config is deprecated; migrate to TOML: {path}",
            DeprecationWarning,
            stacklevel=3,
        )
        return data

    @staticmethod
    def _apply_environment_overrides(raw: dict[str, Any]) -> dict[str, Any]:
        result = dict(raw)
        if ENV_LOOP_KEY in os.environ:
            result["loop_key"] = os.environ[ENV_LOOP_KEY]
        if ENV_STRICT in os.environ:
            try:
                result["strict"] = convert_boolean(os.environ[ENV_STRICT])
            except ConversionError:
                logger.warning(f"Invalid {ENV_STRICT} value: {os.environ[ENV_STRICT]}")
        return result

    @staticmethod
    def from_dict(raw: dict[str, Any]) -> ToolboxConfig:
        """Validate a raw mapping (already read from disk) into a ``ToolboxConfig``."""
        merged = ConfigLoader._apply_environment_overrides(raw)
        try:
            return ToolboxConfig.model_validate(merged)
        except ValidationError as e:
            raise ConfigError(f"Invalid toolbox config: {e}") from e

    @staticmethod
    def load(path: Path) -> ToolboxConfig:
        """Load a toolbox config file.

        Raises:
            ConfigError: The file is missing, unreadable, or invalid.
        """
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        if path.suffix.lower() == ".json":
            raw = ConfigLoader._read_json(path)
        else:
            raw = ConfigLoader._read_toml(path)
        logger.debug(f"Loaded toolbox config from {path}")
        return ConfigLoader.from_dict(raw)
