"""Kano Tools Core - Template helper tools for loop control and config data."""

from .__version__ import __version__, __version_info__

from .conditions import Action, ActionCondition, Comparison, Condition, Equals
from .config import ConfigLoader, DataSpec, ToolboxConfig
from .data import Data, build_converter
from .iteration import to_iterator
from .loop import LoopController, ManagedIterator
from .errors import (
    ConditionError,
    ConfigError,
    ConversionError,
    NullKeyError,
    ToolsError,
    UnsupportedOperationError,
)

__all__ = [
    # Version
    "__version__",
    "__version_info__",
    # Loop control
    "LoopController",
    "ManagedIterator",
    "Action",
    "ActionCondition",
    "Comparison",
    "Condition",
    "Equals",
    "to_iterator",
    # Config
    "ConfigLoader",
    "DataSpec",
    "ToolboxConfig",
    "Data",
    "build_converter",
    # Errors
    "ToolsError",
    "ConfigError",
    "ConversionError",
    "ConditionError",
    "NullKeyError",
    "UnsupportedOperationError",
]
