"""Custom exception hierarchy for Anamnesis.

All errors inherit from AnamnesisError and carry optional context that is
rendered into the message as ``key=value`` pairs.
"""

from typing import Any


class AnamnesisError(Exception):
    """Base class for all Anamnesis errors."""

    def __init__(self, message: str = "", **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(self._format())

    def _format(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} ({details})"


class ConfigError(AnamnesisError):
    """Raised when configuration or a slot graph definition is invalid."""


class StateError(AnamnesisError):
    """Raised when session state operations fail."""


class UnknownSlotError(AnamnesisError):
    """Raised when a slot id is not part of the slot graph."""


class GraphCycleError(AnamnesisError):
    """Raised when slot graph traversal revisits a slot."""

    def __init__(self, slot_id: str, path: list[str] | None = None) -> None:
        self.slot_id = slot_id
        self.path = list(path or [])
        super().__init__(
            f"Branch traversal loop detected at slot '{slot_id}'",
            path=" -> ".join(self.path + [slot_id]),
        )


class ValidationRejected(AnamnesisError):
    """Raised when an extracted value fails slot validation."""

    def __init__(self, slot_id: str, reason: str) -> None:
        self.slot_id = slot_id
        self.reason = reason
        super().__init__(f"Value rejected for slot '{slot_id}'", reason=reason)


class AlreadyCompleteError(AnamnesisError):
    """Raised when a turn is submitted to a completed interview."""


class DelegateFailure(AnamnesisError):
    """Raised when an external capability call fails or returns unusable output."""

    def __init__(self, capability: str, cause: BaseException | str | None = None) -> None:
        self.capability = capability
        self.cause = cause
        reason = str(cause) if cause is not None else "unknown error"
        super().__init__(f"Delegate '{capability}' failed", reason=reason)


class DelegateTimeoutError(DelegateFailure):
    """Delegate call exceeded its time budget."""


class DelegateParsingError(DelegateFailure):
    """Delegate returned output that could not be parsed."""


class SessionNotFoundError(AnamnesisError):
    """Raised when a host references a session id it does not hold."""
