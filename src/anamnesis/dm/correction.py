"""Correction engine for the review phase.

Two layers are applied to each review utterance:

1. The ParseCorrections delegate proposes ``{slot_id, new_value}`` pairs,
   which go through the same normalization and validation as extractions.
2. A deterministic pattern layer always runs afterwards. Its patterns are
   built from each slot's words (see ``review.slot_words``), so it follows
   the slot graph without a hand-maintained alias list.

Slots already changed by the delegate in the same turn are left to it, and
the pattern layer only considers slots the respondent reached (filled or
skipped), so a review message cannot fill a slot off the interview path.
"""

import logging
import re

from pydantic import BaseModel, Field

from anamnesis.core.errors import DelegateFailure
from anamnesis.core.normalization import classify_boolean_intent
from anamnesis.core.state import SessionState
from anamnesis.core.types import CandidateExtraction, SlotValue
from anamnesis.dm.merge import MergeEngine
from anamnesis.dm.review import render_review, slot_words
from anamnesis.du.gateway import DelegateGateway
from anamnesis.graph.models import SlotDefinition, SlotGraph

logger = logging.getLogger(__name__)

BOOLEAN_ID_PATTERN = re.compile(r"^(has_|is_)")
TRAILING_PUNCTUATION = ".!?,;:"


class CorrectionOutcome(BaseModel):
    """Result of one correction attempt."""

    changes: dict[str, SlotValue] = Field(default_factory=dict)
    review: str
    delegate_failed: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.changes)


class CorrectionEngine:
    """Applies free-text corrections to the filled slots of a session."""

    def __init__(
        self,
        graph: SlotGraph,
        gateway: DelegateGateway,
        approval_token: str,
    ):
        self.graph = graph
        self.gateway = gateway
        self.approval_token = approval_token
        # Corrections carry no confidence score
        self.merge_engine = MergeEngine(graph, threshold=0.0)

    async def apply(self, utterance: str, state: SessionState) -> CorrectionOutcome:
        changes: dict[str, SlotValue] = {}
        delegate_failed = False

        try:
            corrections = await self.gateway.parse_corrections(dict(state.filled_slots), utterance)
        except DelegateFailure as e:
            logger.warning(f"Correction delegate failed, using pattern rules only: {e}")
            corrections = []
            delegate_failed = True

        if corrections:
            candidates = [
                CandidateExtraction(
                    slot_id=item.slot_id,
                    value=item.new_value,
                    confidence=1.0,
                    rationale="correction",
                )
                for item in corrections
            ]
            merged = self.merge_engine.merge(candidates, utterance)
            for accepted in merged.accepted:
                self._assign(state, accepted.slot_id, accepted.value, utterance, changes)
            for rejected in merged.rejected:
                logger.info(
                    f"Ignored correction for '{rejected.slot_id}': {rejected.reason.value}",
                    extra={"slot_id": rejected.slot_id, "detail": rejected.detail},
                )

        # Only slots the respondent reached
        for slot in self.graph:
            if slot.id in changes:
                continue
            if slot.id not in state.filled_slots and slot.id not in state.skipped_slots:
                continue
            value = self.match_patterns(slot, utterance, state.filled_slots.get(slot.id))
            if value is not None:
                self._assign(state, slot.id, value, utterance, changes)

        review = render_review(self.graph, state.filled_slots, self.approval_token)
        if not changes:
            logger.info("No correction found in review message")
            state.save_interaction(review, utterance)

        return CorrectionOutcome(changes=changes, review=review, delegate_failed=delegate_failed)

    @staticmethod
    def _assign(
        state: SessionState,
        slot_id: str,
        value: SlotValue,
        utterance: str,
        changes: dict[str, SlotValue],
    ) -> None:
        if slot_id in state.filled_slots and state.filled_slots[slot_id] == value:
            return
        state.fill(slot_id, value)
        changes[slot_id] = value
        state.save_interaction(f"Correction for {slot_id}", utterance, slot_id, value)
        logger.info(f"Corrected '{slot_id}'", extra={"slot_id": slot_id, "value": value})

    # --- pattern layer -------------------------------------------------------

    @classmethod
    def match_patterns(
        cls, slot: SlotDefinition, utterance: str, current: SlotValue | None
    ) -> SlotValue | None:
        """Value requested for this slot by the utterance, or None."""
        looks_boolean = isinstance(current, bool) or bool(BOOLEAN_ID_PATTERN.match(slot.id))
        words = slot_words(slot)
        alternatives = "|".join(re.escape(word) for word in words)

        id_pattern = "[ _]".join(re.escape(part) for part in slot.id.split("_"))
        patterns = [
            rf"\b{id_pattern}\s*[:=]\s*(.+)",
            rf"\b(?:change|update|correct|set)\b.{{0,40}}?\b(?:{alternatives})\b.{{0,20}}?"
            rf"(?:\b(?:to|is)\s+|=\s*)(.+)",
            rf"\b(?:{alternatives})(?:\s+is\s+|\s*=\s*)(.+)",
        ]
        for pattern in patterns:
            match = re.search(pattern, utterance, re.IGNORECASE)
            if match:
                return cls._coerce(match.group(1), looks_boolean)

        if looks_boolean:
            content_words = [word for word in words if len(word) >= 4]
            mentioned = any(
                re.search(rf"\b{re.escape(word)}\b", utterance, re.IGNORECASE)
                for word in content_words
            )
            if mentioned:
                return classify_boolean_intent(utterance)

        return None

    @staticmethod
    def _coerce(captured: str, looks_boolean: bool) -> SlotValue | None:
        text = captured.strip().rstrip(TRAILING_PUNCTUATION).strip()
        if looks_boolean:
            intent = classify_boolean_intent(text)
            if intent is not None:
                return intent
        return text or None
