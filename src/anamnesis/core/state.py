"""Session state for one interview.

A SessionState is explicitly constructed and owned by whoever drives the
interview; nothing in the engine keeps module-level session memory.
"""

import logging
import math
from datetime import datetime
from typing import Any

from anamnesis.core.constants import Phase, Role
from anamnesis.core.errors import StateError
from anamnesis.core.types import FilledSlots, InteractionRecord, SessionStats, SlotValue

logger = logging.getLogger(__name__)


class SessionState:
    """Mutable record of one interview: filled slots, interaction log and phase."""

    def __init__(self) -> None:
        self.filled_slots: FilledSlots = {}
        self.interaction_log: list[InteractionRecord] = []
        self.phase: Phase = Phase.COLLECTING
        self.started_at: datetime = datetime.now()
        self.interaction_count: int = 0
        self.attempts: dict[str, int] = {}
        self.skipped_slots: set[str] = set()
        self.current_slot: str | None = None

    # --- slots ---------------------------------------------------------------

    def fill(self, slot_id: str, value: SlotValue) -> None:
        """Store a value for a slot.

        Outside the review phase values may only be added, never overwritten.
        """
        if self.phase is Phase.COMPLETE:
            raise StateError("Cannot modify a completed session", slot=slot_id)
        if self.phase is Phase.COLLECTING and slot_id in self.filled_slots:
            raise StateError("Slot already filled during collection", slot=slot_id)
        self.filled_slots[slot_id] = value
        self.attempts.pop(slot_id, None)
        self.skipped_slots.discard(slot_id)

    def fill_many(self, updates: FilledSlots) -> None:
        for slot_id, value in updates.items():
            self.fill(slot_id, value)

    def skip(self, slot_id: str) -> None:
        """Mark a slot as skipped so traversal moves past it without a value."""
        self.skipped_slots.add(slot_id)
        self.attempts.pop(slot_id, None)

    def record_attempt(self, slot_id: str) -> int:
        """Count a failed attempt to fill a slot and return the running total."""
        self.attempts[slot_id] = self.attempts.get(slot_id, 0) + 1
        return self.attempts[slot_id]

    # --- interaction log -----------------------------------------------------

    def save_interaction(
        self,
        question: str,
        response: str,
        slot_id: str | None = None,
        extracted_value: SlotValue | None = None,
    ) -> None:
        """Append one interviewer/respondent message pair to the log."""
        self.interaction_count += 1
        self.interaction_log.append(InteractionRecord(role=Role.INTERVIEWER, text=question))
        self.interaction_log.append(
            InteractionRecord(
                role=Role.RESPONDENT,
                text=response,
                slot_id=slot_id,
                extracted_value=extracted_value,
            )
        )
        logger.debug(
            f"Interaction #{self.interaction_count} saved",
            extra={"slot_id": slot_id, "extracted_value": extracted_value},
        )

    def formatted_conversation(self) -> str:
        """Conversation transcript with one labelled paragraph per message."""
        labels = {Role.INTERVIEWER: "Interviewer", Role.RESPONDENT: "Respondent"}
        return "\n\n".join(f"{labels[rec.role]}: {rec.text}" for rec in self.interaction_log)

    # --- lifecycle -----------------------------------------------------------

    def reset(self) -> None:
        """Return to a fresh collecting state with every field cleared."""
        self.filled_slots = {}
        self.interaction_log = []
        self.phase = Phase.COLLECTING
        self.started_at = datetime.now()
        self.interaction_count = 0
        self.attempts = {}
        self.skipped_slots = set()
        self.current_slot = None
        logger.info("Session state reset")

    def stats(self) -> SessionStats:
        elapsed = (datetime.now() - self.started_at).total_seconds()
        return SessionStats(
            total_interactions=self.interaction_count,
            session_duration_minutes=math.floor(elapsed / 60 + 0.5),
            message_count=len(self.interaction_log),
            started_at=self.started_at,
            last_activity=self.interaction_log[-1].timestamp if self.interaction_log else None,
        )

    def snapshot(self) -> dict[str, Any]:
        """Read-only copy handed to delegates."""
        return {
            "filled_slots": dict(self.filled_slots),
            "phase": self.phase.value,
            "current_slot": self.current_slot,
            "skipped_slots": sorted(self.skipped_slots),
            "interaction_count": self.interaction_count,
        }
