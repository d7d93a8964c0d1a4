"""Core type definitions shared by the dialog engine."""

from datetime import datetime
from typing import Annotated, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field

from anamnesis.core.constants import RejectionReason, Role

# A stored slot value. Candidate values may additionally be None ("no value").
SlotValue: TypeAlias = str | list[str] | bool
FilledSlots: TypeAlias = dict[str, SlotValue]


class CandidateExtraction(BaseModel):
    """One candidate value produced by the NLU delegate for one utterance."""

    slot_id: str = Field(description="Slot the value is meant for")
    value: SlotValue | None = Field(default=None, description="Extracted value or None")
    confidence: float = Field(ge=0.0, le=1.0, description="Extraction confidence")
    rationale: str = Field(default="", description="Why the delegate extracted this value")


class AcceptedExtraction(BaseModel):
    """An extraction that passed the merge policy."""

    slot_id: str
    value: SlotValue
    confidence: float


class RejectedExtraction(BaseModel):
    """An extraction that was not stored, with the reason why."""

    slot_id: str
    value: SlotValue | None
    confidence: float
    reason: RejectionReason
    detail: str = ""


class MergeResult(BaseModel):
    """Outcome of one merge call."""

    accepted: list[AcceptedExtraction] = Field(default_factory=list)
    rejected: list[RejectedExtraction] = Field(default_factory=list)

    def as_updates(self) -> FilledSlots:
        """Accepted values keyed by slot id."""
        return {item.slot_id: item.value for item in self.accepted}

    def value_for(self, slot_id: str) -> SlotValue | None:
        for item in self.accepted:
            if item.slot_id == slot_id:
                return item.value
        return None


class InteractionRecord(BaseModel):
    """One logged message of the interview."""

    model_config = ConfigDict(frozen=True)

    role: Role
    text: str
    timestamp: datetime = Field(default_factory=datetime.now)
    slot_id: str | None = None
    extracted_value: SlotValue | None = None


class SessionStats(BaseModel):
    """Conversation statistics reported to the host."""

    total_interactions: int
    session_duration_minutes: int
    message_count: int
    started_at: datetime
    last_activity: datetime | None = None


# =============================================================================
# TURN RESULTS
# =============================================================================


class NextQuestion(BaseModel):
    """Ask the respondent the prompt of the next unfilled slot."""

    kind: Literal["next_question"] = "next_question"
    slot_id: str
    prompt: str


class Reprompt(BaseModel):
    """The turn did not fill the current slot; ask again."""

    kind: Literal["reprompt"] = "reprompt"
    slot_id: str
    reason: str
    message: str
    attempts: int = 1
    skip_suggested: bool = False


class Review(BaseModel):
    """All reachable slots are filled; show the review summary."""

    kind: Literal["review"] = "review"
    summary: str


class Complete(BaseModel):
    """The respondent approved the record."""

    kind: Literal["complete"] = "complete"
    summary: str


class AlreadyComplete(BaseModel):
    """A turn was submitted after the interview completed."""

    kind: Literal["already_complete"] = "already_complete"
    message: str = "The interview is already complete."


class CannotProceed(BaseModel):
    """The engine cannot determine how to continue (malformed graph, unknown slot)."""

    kind: Literal["cannot_proceed"] = "cannot_proceed"
    reason: str
    message: str


TurnResult = Annotated[
    NextQuestion | Reprompt | Review | Complete | AlreadyComplete | CannotProceed,
    Field(discriminator="kind"),
]
