"""Exception taxonomy for kano-tools-core."""


class ToolsError(Exception):
    """Base exception for all template tool errors."""

    pass


# Config errors


class ConfigError(ToolsError):
    """Failed to load toolbox configuration or validate a datum."""

    pass


class NullKeyError(ConfigError):
    """A configuration datum was declared without a key."""

    def __init__(self, datum: object) -> None:
        self.datum = datum
        super().__init__(f"Key is null for {datum}")


class ConversionError(ToolsError, ValueError):
    """A configuration value could not be converted to its declared type."""

    def __init__(self, value: object, target: str, details: str = "") -> None:
        self.value = value
        self.target = target
        self.details = details
        message = f"Cannot convert {value!r} to {target}"
        if details:
            message = f"{message}: {details}"
        super().__init__(message)


# Loop errors


class ConditionError(ToolsError, ValueError):
    """An action condition was built without an action or condition."""

    pass


class UnsupportedOperationError(ToolsError, NotImplementedError):
    """Operation is not supported by a read-only iterator."""

    pass
