"""
Pydantic models for the delegate capabilities.

DSPy uses Pydantic for output validation and type coercion; the same models
are the request/response contracts of the delegate interfaces.
"""

from pydantic import BaseModel, Field

from anamnesis.core.constants import TurnAction
from anamnesis.core.types import CandidateExtraction, SlotValue


class SlotInfo(BaseModel):
    """A slot as presented to the language model."""

    slot_id: str = Field(description="Slot identifier")
    prompt: str = Field(description="Question asked for this slot")
    slot_type: str = Field(
        default="text", description="text, count, boolean, email, phone, date, list"
    )
    description: str = Field(default="", description="Extra guidance for this slot")

    def __str__(self) -> str:
        extra = f" ({self.description})" if self.description else ""
        return f"{self.slot_id} [{self.slot_type}]: {self.prompt}{extra}"


class RoutingVerdict(BaseModel):
    """What the router decided before any multi-slot extraction."""

    action: TurnAction = Field(description="extract, ask or clarify")
    confidence: float = Field(ge=0.0, le=1.0, description="Confidence in the decision")
    reasoning: str = Field(default="", description="Why this action was chosen")


class RouteDecision(BaseModel):
    """Full routing result for one collecting turn."""

    action: TurnAction
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reasoning: str = ""
    candidate_extractions: list[CandidateExtraction] = Field(default_factory=list)


class MultiExtractionResult(BaseModel):
    """Every slot value found in one utterance."""

    extractions: list[CandidateExtraction] = Field(
        default_factory=list, description="One entry per slot value found"
    )


class SingleExtraction(BaseModel):
    """Value extracted for exactly one slot."""

    value: SlotValue | None = Field(
        default=None, description="Extracted value, or null if no valid value was found"
    )
    confidence: float = Field(default=0.0, ge=0.0, le=1.0, description="Confidence from 0 to 1")


class SlotCorrection(BaseModel):
    """A requested change to one filled slot."""

    slot_id: str = Field(description="Slot to change")
    new_value: SlotValue | None = Field(description="Replacement value")


class CorrectionList(BaseModel):
    """Corrections found in a review-phase utterance."""

    corrections: list[SlotCorrection] = Field(default_factory=list)
