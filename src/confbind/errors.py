__all__ = [
    "ConfigurationError",
    "ArgumentError",
    "CoercionError",
    "MissingConverterError",
    "UnsupportedCollectionShapeError",
    "ActivationError",
]


class ConfigurationError(Exception):
    """Base class for errors raised while binding configuration to components."""

    pass


class ArgumentError(ConfigurationError, ValueError):
    """Raised when a required input (key, configuration) is absent or empty."""

    pass


class CoercionError(ConfigurationError):
    """Raised when a raw configuration value cannot be converted to its destination type."""

    pass


class MissingConverterError(ConfigurationError):
    """Raised when no structural rule or registered converter exists for a destination type."""

    pass


class UnsupportedCollectionShapeError(ConfigurationError):
    """Raised when a sequence or mapping contract has no constructible concrete container."""

    pass


class ActivationError(ConfigurationError):
    """Raised when a configured component cannot be constructed."""

    pass
