"""Core constants and enums."""

from enum import Enum

DEFAULT_CONFIDENCE_THRESHOLD = 0.7
DEFAULT_MAX_RETRIES = 2
DEFAULT_APPROVAL_TOKEN = "approved"


class Phase(str, Enum):
    """Phase of an interview session."""

    COLLECTING = "collecting"
    REVIEW = "review"
    COMPLETE = "complete"


class Role(str, Enum):
    """Author of an interaction record."""

    INTERVIEWER = "interviewer"
    RESPONDENT = "respondent"


class TurnAction(str, Enum):
    """Action chosen by the routing delegate for a collecting turn."""

    EXTRACT = "extract"
    ASK = "ask"
    CLARIFY = "clarify"


class SlotType(str, Enum):
    """Shape of the value a slot collects."""

    TEXT = "text"
    COUNT = "count"
    BOOLEAN = "boolean"
    EMAIL = "email"
    PHONE = "phone"
    DATE = "date"
    LIST = "list"


class RejectionReason(str, Enum):
    """Machine-readable reasons a candidate extraction was not stored."""

    LOW_CONFIDENCE = "low_confidence"
    UNKNOWN_SLOT = "unknown_slot"
    INVALID_VALUE = "invalid_value"
    SUPERSEDED = "superseded"
    ALREADY_FILLED = "already_filled"
