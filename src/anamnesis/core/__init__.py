"""Core types, state, validation and normalization for Anamnesis."""

from anamnesis.core.constants import Phase, RejectionReason, Role, SlotType, TurnAction
from anamnesis.core.errors import (
    AlreadyCompleteError,
    AnamnesisError,
    ConfigError,
    DelegateFailure,
    GraphCycleError,
    SessionNotFoundError,
    StateError,
    UnknownSlotError,
    ValidationRejected,
)
from anamnesis.core.state import SessionState

__all__ = [
    "AlreadyCompleteError",
    "AnamnesisError",
    "ConfigError",
    "DelegateFailure",
    "GraphCycleError",
    "Phase",
    "RejectionReason",
    "Role",
    "SessionNotFoundError",
    "SessionState",
    "SlotType",
    "StateError",
    "TurnAction",
    "UnknownSlotError",
    "ValidationRejected",
]
