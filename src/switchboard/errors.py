"""Application-level exception types for Switchboard."""

from __future__ import annotations


class SwitchboardError(Exception):
    """Base exception for Switchboard."""


class ConfigurationError(SwitchboardError):
    """Base exception for configuration and startup validation errors."""


class ModelNotConfiguredError(ConfigurationError):
    """Raised when model configuration is missing."""


class InvalidModelFormatError(ConfigurationError):
    """Raised when model format is not provider:model."""


class ApiKeyNotConfiguredError(ConfigurationError):
    """Raised when an API key is required but missing."""


class StructuredOutputError(SwitchboardError):
    """Raised when model output cannot be coerced into the requested schema."""

    def __init__(self, schema_name: str, raw: str, reason: str) -> None:
        super().__init__(f"{schema_name}: {reason}")
        self.schema_name = schema_name
        self.raw = raw
        self.reason = reason


class OperationConflictError(SwitchboardError):
    """Raised when two available skills expose the same operation name."""

    def __init__(self, name: str, first: str, second: str) -> None:
        super().__init__(f"operation {name!r} is provided by both {first!r} and {second!r}")
        self.name = name
        self.first = first
        self.second = second


class SkillLoadError(SwitchboardError):
    """Raised when a skill factory fails to build its descriptor."""

    def __init__(self, reference: str, reason: str) -> None:
        super().__init__(f"{reference}: {reason}")
        self.reference = reference
        self.reason = reason


class TurnTimeoutError(SwitchboardError):
    """Raised when one conversation turn exceeds its wall-clock budget."""

    def __init__(self, session_id: str, timeout_seconds: float) -> None:
        super().__init__(f"turn for session {session_id!r} did not finish within {timeout_seconds:g}s")
        self.session_id = session_id
        self.timeout_seconds = timeout_seconds
