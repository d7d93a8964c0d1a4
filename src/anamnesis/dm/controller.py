"""Turn controller.

State machine driving one interview turn:

- COLLECTING: route the utterance (extract / ask / clarify), merge the
  extracted values into the session and advance along the slot graph.
- REVIEW: the approval token completes the interview; anything else goes to
  the correction engine.
- COMPLETE: nothing changes.

The controller never raises into the host; every path returns a TurnResult.
Delegate failures degrade to the "ask" path or to fixed fallback texts.
"""

import logging

from anamnesis.config.settings import DialogueConfig
from anamnesis.core.constants import Phase, TurnAction
from anamnesis.core.errors import DelegateFailure
from anamnesis.core.state import SessionState
from anamnesis.core.types import (
    AlreadyComplete,
    CandidateExtraction,
    CannotProceed,
    Complete,
    MergeResult,
    NextQuestion,
    Reprompt,
    Review,
    TurnResult,
)
from anamnesis.dm.correction import CorrectionEngine
from anamnesis.dm.merge import MergeEngine
from anamnesis.dm.review import render_review
from anamnesis.du.gateway import DelegateGateway
from anamnesis.du.models import RouteDecision, SlotInfo
from anamnesis.graph.models import SlotDefinition, SlotGraph

logger = logging.getLogger(__name__)

AFFIRMATIVE_SHORTCUTS = frozenset({"yes", "y", "true"})
NEGATIVE_SHORTCUTS = frozenset({"no", "n", "false"})


def clarification_fallback(prompt: str) -> str:
    return f"Could you provide more details about: {prompt}"


class TurnController:
    """Processes respondent turns against one slot graph."""

    def __init__(
        self,
        graph: SlotGraph,
        gateway: DelegateGateway,
        settings: DialogueConfig | None = None,
    ):
        self.graph = graph
        self.gateway = gateway
        self.settings = settings or DialogueConfig()
        self.merge_engine = MergeEngine(graph, self.settings.confidence_threshold)
        self.correction_engine = CorrectionEngine(graph, gateway, self.settings.approval_token)
        self.catalog = [
            SlotInfo(
                slot_id=slot.id,
                prompt=slot.prompt,
                slot_type=slot.type.value,
                description=slot.description,
            )
            for slot in graph
        ]

    async def process_turn(
        self, current_slot: str | None, utterance: str, state: SessionState
    ) -> TurnResult:
        if state.phase is Phase.COMPLETE:
            logger.info("Turn submitted after completion")
            return AlreadyComplete()

        if state.phase is Phase.REVIEW:
            return await self._review_turn(utterance, state)

        return await self._collecting_turn(current_slot, utterance, state)

    # --- collecting ----------------------------------------------------------

    async def _collecting_turn(
        self, current_slot: str | None, utterance: str, state: SessionState
    ) -> TurnResult:
        slot = self.graph.get(current_slot) if current_slot else None
        if slot is None:
            logger.error(f"Turn submitted for unknown slot '{current_slot}'")
            return CannotProceed(
                reason="unknown_slot",
                message=f"Slot '{current_slot}' is not part of this interview.",
            )

        state.current_slot = slot.id
        decision = await self._route(slot, utterance, state)

        if decision.action is TurnAction.EXTRACT:
            merged = self.merge_engine.merge(
                decision.candidate_extractions, utterance, locked=state.filled_slots.keys()
            )
            if merged.accepted:
                return self._commit(slot, utterance, merged, state)
            return await self._reprompt(slot, utterance, state, "no_valid_extraction")

        if decision.action is TurnAction.CLARIFY:
            return await self._reprompt(slot, utterance, state, "clarification_needed")

        return await self._ask(slot, utterance, state)

    async def _route(
        self, slot: SlotDefinition, utterance: str, state: SessionState
    ) -> RouteDecision:
        if not self.settings.hybrid_mode:
            return RouteDecision(action=TurnAction.ASK)

        try:
            decision = await self.gateway.route(slot.id, utterance, self.catalog, state.snapshot())
        except DelegateFailure as e:
            logger.warning(f"Routing failed, falling back to ask: {e}")
            return RouteDecision(action=TurnAction.ASK)

        logger.info(
            f"Routing decision for '{slot.id}': {decision.action.value}",
            extra={
                "slot_id": slot.id,
                "confidence": decision.confidence,
                "candidates": len(decision.candidate_extractions),
            },
        )
        return decision

    async def _ask(self, slot: SlotDefinition, utterance: str, state: SessionState) -> TurnResult:
        candidate = self.preprocess(slot, utterance)

        if candidate is None:
            try:
                extraction = await self.gateway.extract_single(slot.id, slot.prompt, utterance)
            except DelegateFailure as e:
                logger.warning(f"Single-slot extraction failed for '{slot.id}': {e}")
                return await self._reprompt(slot, utterance, state, "extraction_failed")

            threshold = self.settings.confidence_threshold
            if extraction.value is None or extraction.confidence < threshold:
                logger.info(
                    f"Low confidence extraction ({extraction.confidence}) for slot: {slot.id}"
                )
                return await self._reprompt(slot, utterance, state, "low_confidence")

            candidate = CandidateExtraction(
                slot_id=slot.id, value=extraction.value, confidence=extraction.confidence
            )

        merged = self.merge_engine.merge([candidate], utterance, locked=state.filled_slots.keys())
        if merged.accepted:
            return self._commit(slot, utterance, merged, state)
        return await self._reprompt(slot, utterance, state, merged.rejected[0].reason.value)

    @staticmethod
    def preprocess(slot: SlotDefinition, utterance: str) -> CandidateExtraction | None:
        """Resolve trivial answers without a delegate call.

        An answer equal to a literal branch alternative yields the first
        alternative of that branch; bare yes/no answers become "yes"/"no".
        """
        answer = utterance.strip().lower()
        if not answer:
            return None

        value: str | None = None
        for pattern in slot.branches:
            alternatives = [option.strip().lower() for option in pattern.split("|")]
            if answer in alternatives:
                value = alternatives[0]
                break

        if value is None and answer in AFFIRMATIVE_SHORTCUTS:
            value = "yes"
        elif value is None and answer in NEGATIVE_SHORTCUTS:
            value = "no"

        if value is None:
            return None
        logger.debug(f"Preprocessed '{utterance}' -> '{value}' for slot '{slot.id}'")
        return CandidateExtraction(
            slot_id=slot.id, value=value, confidence=1.0, rationale="shortcut"
        )

    def _commit(
        self,
        slot: SlotDefinition,
        utterance: str,
        merged: MergeResult,
        state: SessionState,
    ) -> TurnResult:
        primary = next(
            (item for item in merged.accepted if item.slot_id == slot.id), merged.accepted[0]
        )
        state.save_interaction(slot.prompt, utterance, primary.slot_id, primary.value)
        state.fill_many(merged.as_updates())
        return self.advance(state)

    async def _reprompt(
        self, slot: SlotDefinition, utterance: str, state: SessionState, reason: str
    ) -> Reprompt:
        try:
            message = await self.gateway.clarify(slot.id, utterance, slot.prompt)
        except DelegateFailure as e:
            logger.warning(f"Clarification failed for '{slot.id}': {e}")
            message = clarification_fallback(slot.prompt)

        state.save_interaction(slot.prompt, utterance, slot.id, None)
        attempts = state.record_attempt(slot.id)
        return Reprompt(
            slot_id=slot.id,
            reason=reason,
            message=message,
            attempts=attempts,
            skip_suggested=attempts >= self.settings.max_retries,
        )

    def advance(self, state: SessionState) -> TurnResult:
        """Move to the next unfilled slot, or to review when none is left."""
        traversal = self.graph.traverse(state.filled_slots, state.skipped_slots)

        if traversal.cycle_error is not None:
            return CannotProceed(reason="graph_cycle", message=str(traversal.cycle_error))

        if traversal.next_slot is None:
            state.phase = Phase.REVIEW
            state.current_slot = None
            logger.info("All reachable slots filled, entering review")
            return Review(
                summary=render_review(self.graph, state.filled_slots, self.settings.approval_token)
            )

        next_slot = self.graph[traversal.next_slot]
        state.current_slot = next_slot.id
        return NextQuestion(slot_id=next_slot.id, prompt=next_slot.prompt)

    # --- review --------------------------------------------------------------

    async def _review_turn(self, utterance: str, state: SessionState) -> TurnResult:
        if utterance.strip().lower() == self.settings.approval_token.strip().lower():
            summary = await self.summarize(state)
            state.save_interaction(
                render_review(self.graph, state.filled_slots, self.settings.approval_token),
                utterance,
            )
            state.phase = Phase.COMPLETE
            logger.info("Review approved, interview complete")
            return Complete(summary=summary)

        outcome = await self.correction_engine.apply(utterance, state)
        return Review(summary=outcome.review)

    async def summarize(self, state: SessionState) -> str:
        """Final summary: full delegate, then slots-only delegate, then the review text."""
        filled = dict(state.filled_slots)
        try:
            return await self.gateway.summarize(
                filled, list(state.interaction_log), state.stats().model_dump(mode="json")
            )
        except DelegateFailure as e:
            logger.warning(f"Summary generation failed, trying simple summary: {e}")

        try:
            return await self.gateway.summarize_simple(filled)
        except DelegateFailure as e:
            logger.error(f"Simple summary generation failed: {e}")

        return render_review(self.graph, state.filled_slots, self.settings.approval_token)
