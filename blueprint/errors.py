"""Error taxonomy shared across blueprint components."""

from __future__ import annotations


class BlueprintError(RuntimeError):
    """Base class for all blueprint failures."""


class ConfigurationError(BlueprintError):
    """Raised when the configuration file is missing, unreadable or malformed."""


class DiscoveryError(BlueprintError):
    """Raised when the input directory cannot be scanned."""


class AnnotationParseError(BlueprintError):
    """Raised when a documentation comment cannot be parsed into tags."""


class ValueResolutionError(BlueprintError):
    """Raised when a constant or default expression cannot be evaluated statically."""


class SerializationError(BlueprintError):
    """Raised when the blueprint cannot be rendered or written."""


__all__ = [
    "AnnotationParseError",
    "BlueprintError",
    "ConfigurationError",
    "DiscoveryError",
    "SerializationError",
    "ValueResolutionError",
]
