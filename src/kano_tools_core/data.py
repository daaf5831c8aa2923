"""Typed configuration data for template toolboxes.

A ``Data`` entry is a key/value pair from toolbox configuration whose raw
value (usually a string read from TOML or JSON) is coerced to a declared
type before it is handed to templates.

Supported types:
- ``auto`` (default): "true"/"false" strings become booleans, anything else passes through
- ``boolean``: true/yes/y/on/1 and false/no/n/off/0
- ``number``: int when the value has no ".", float otherwise
- ``string``
- ``field``: a dotted ``module.attr`` path resolved to the attribute value
- ``list`` and ``list.<type>``: comma-separated values, optionally converted
- any other name is imported as a dotted class path and called with the value
"""

from __future__ import annotations

import importlib
import logging
from functools import total_ordering
from typing import Any, Callable, Optional

from .errors import ConfigError, ConversionError, NullKeyError

logger = logging.getLogger(__name__)

DEFAULT_TYPE = "auto"
LIST_PREFIX = "list."

TRUE_VALUES = frozenset({"true", "yes", "y", "on", "1"})
FALSE_VALUES = frozenset({"false", "no", "n", "off", "0"})

Converter = Callable[[Any], Any]


def convert_auto(value: Any) -> Any:
    if isinstance(value, str):
        lowered = value.lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return value


def convert_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ConversionError(value, "boolean")


def convert_number(value: Any) -> int | float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    text = str(value).strip()
    try:
        if "." not in text:
            try:
                return int(text)
            except ValueError:
                # Exponent forms such as "1e3" are still numbers.
                pass
        return float(text)
    except ValueError as e:
        raise ConversionError(value, "number", str(e)) from e


def convert_string(value: Any) -> str:
    return str(value)


def resolve_dotted(path: str) -> Any:
    """Import ``module.attr`` (attributes may be nested) and return the attribute."""
    parts = path.strip().split(".")
    for split in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:split])
        try:
            target: Any = importlib.import_module(module_name)
        except ImportError:
            continue
        for attr in parts[split:]:
            target = getattr(target, attr)
        return target
    raise ImportError(f"No importable module in {path!r}")


def convert_field(value: Any) -> Any:
    try:
        return resolve_dotted(str(value))
    except (ImportError, AttributeError) as e:
        raise ConversionError(value, "field", f"Could not retrieve value for field at {value}") from e


_NAMED_CONVERTERS: dict[str, tuple[str, Converter]] = {
    "auto": ("object", convert_auto),
    "boolean": ("bool", convert_boolean),
    "number": ("number", convert_number),
    "string": ("str", convert_string),
    "field": ("object", convert_field),
}


class DataConverter:
    """Applies a converter function and remembers the target it produces."""

    def __init__(self, target: str = "str", converter: Optional[Converter] = None) -> None:
        self.target = target
        self.converter = converter

    def convert(self, value: Any) -> Any:
        if self.converter is None:
            return value
        return self.converter(value)


class ListConverter(DataConverter):
    """Splits comma-separated strings and converts each item."""

    def convert(self, value: Any) -> Optional[list[Any]]:
        if value is None:
            return None
        if isinstance(value, (list, tuple)):
            items = [str(item) for item in value]
        else:
            text = str(value)
            if not text.strip():
                return None
            items = text.split(",")
        items = [item.strip() for item in items]
        if self.converter is None:
            return items
        return [super(ListConverter, self).convert(item) for item in items]


def _class_converter(type_name: str) -> DataConverter:
    try:
        cls = resolve_dotted(type_name)
    except (ImportError, AttributeError) as e:
        raise ConfigError(f"Class {type_name} could not be found.") from e
    if not callable(cls):
        raise ConfigError(f"{type_name} is not a callable type")
    logger.debug(f"Converting data of type {type_name} with {cls!r}")
    return DataConverter(target=getattr(cls, "__name__", type_name), converter=cls)


def build_converter(type_name: str) -> DataConverter:
    """Build the converter for a declared data type.

    Raises:
        ConfigError: The type is neither a known name nor an importable class.
    """
    if type_name == "list":
        return ListConverter(target="list")
    if type_name.startswith(LIST_PREFIX):
        item = build_converter(type_name[len(LIST_PREFIX):])
        return ListConverter(target=f"list[{item.target}]", converter=item.convert)
    if type_name in _NAMED_CONVERTERS:
        target, fn = _NAMED_CONVERTERS[type_name]
        return DataConverter(target=target, converter=fn)
    return _class_converter(type_name)


@total_ordering
class Data:
    """A keyed configuration value with a declared type.

    Entries sort and compare by key; entries without a key fall back to
    identity.
    """

    def __init__(
        self,
        key: Optional[str] = None,
        value: Any = None,
        type: str = DEFAULT_TYPE,
    ) -> None:
        self.key = key
        self.value = value
        self._type = DEFAULT_TYPE
        self._converter = build_converter(DEFAULT_TYPE)
        self.type = type

    @property
    def type(self) -> str:
        return self._type

    @type.setter
    def type(self, type_name: str) -> None:
        self._converter = build_converter(type_name)
        self._type = type_name

    @property
    def target(self) -> str:
        """Name of the type ``converted_value`` produces."""
        return self._converter.target

    @property
    def converter(self) -> Optional[Converter]:
        return self._converter.converter

    def convert_with(self, converter: Converter) -> None:
        """Replace the conversion function, keeping list splitting if configured."""
        self._converter.converter = converter

    @property
    def converted_value(self) -> Any:
        return self._converter.convert(self.value)

    def validate(self) -> None:
        """Check that this entry has a key and a convertible value.

        Raises:
            NullKeyError: No key was set.
            ConfigError: No value was set or the value cannot be converted.
        """
        if self.key is None:
            raise NullKeyError(self)
        if self.value is None:
            raise ConfigError(f"No value has been set for '{self.key}'")
        try:
            self.converted_value
        except ConfigError:
            raise
        except Exception as e:
            raise ConfigError(f"Invalid value for '{self.key}': {e}") from e

    def __eq__(self, other: object) -> bool:
        if self.key is None or not isinstance(other, Data):
            return self is other
        return self.key == other.key

    def __lt__(self, other: "Data") -> bool:
        if not isinstance(other, Data):
            return NotImplemented
        if self.key is None:
            return other.key is not None
        if other.key is None:
            return False
        return self.key < other.key

    def __hash__(self) -> int:
        if self.key is None:
            return id(self)
        return hash(self.key)

    def __str__(self) -> str:
        return f"Data '{self.key}' -{self.type}-> {self.value}"

    def __repr__(self) -> str:
        return f"Data(key={self.key!r}, type={self.type!r}, value={self.value!r})"
