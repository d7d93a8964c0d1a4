"""DSPy modules implementing the delegate capabilities.

Async-first design using native .acall() method. Modules raise on any
LM or parsing problem; the DelegateGateway turns those into DelegateFailure
so the turn controller can apply its fallbacks.
"""

import logging
from typing import Any

import dspy
from cachetools import LRUCache

from anamnesis.core.constants import Role, TurnAction
from anamnesis.core.types import FilledSlots, InteractionRecord
from anamnesis.du.base import DelegateModule, validate_dspy_result
from anamnesis.du.interfaces import Delegates
from anamnesis.du.models import (
    CorrectionList,
    MultiExtractionResult,
    RouteDecision,
    RoutingVerdict,
    SingleExtraction,
    SlotCorrection,
    SlotInfo,
)
from anamnesis.du.signatures import (
    ExtractSingleSlot,
    ExtractSlotValues,
    GenerateClarification,
    ParseCorrections,
    RouteTurn,
    SummarizeInterview,
    SummarizeSlots,
)

logger = logging.getLogger(__name__)


def format_transcript(interaction_log: list[InteractionRecord]) -> str:
    labels = {Role.INTERVIEWER: "Interviewer", Role.RESPONDENT: "Respondent"}
    return "\n\n".join(f"{labels[rec.role]}: {rec.text}" for rec in interaction_log)


class TurnRouterModule(DelegateModule):
    """Routes a collecting turn and, for "extract", runs multi-slot extraction.

    Two predictors:
    - RouteTurn picks extract / ask / clarify
    - ExtractSlotValues proposes candidate values for any slot in the catalog
    """

    # Routing benefits from explicit reasoning
    default_use_cot = True

    def __init__(self, use_cot: bool | None = None):
        super().__init__(use_cot)
        self.slot_extractor = self.build(ExtractSlotValues, self.use_cot)

    def _create_extractor(self, use_cot: bool) -> dspy.Module:
        return self.build(RouteTurn, use_cot)

    async def route(
        self,
        current_slot: str,
        utterance: str,
        slot_catalog: list[SlotInfo],
        session_snapshot: dict[str, Any],
    ) -> RouteDecision:
        prediction = await self.extractor.acall(
            current_slot=current_slot,
            user_message=utterance,
            slot_catalog=slot_catalog,
            filled_slots=session_snapshot.get("filled_slots", {}),
        )
        verdict = validate_dspy_result(prediction.result, RoutingVerdict)
        logger.debug(
            f"Routing verdict for '{current_slot}': {verdict.action.value}",
            extra={"confidence": verdict.confidence, "reasoning": verdict.reasoning},
        )

        if verdict.action is not TurnAction.EXTRACT:
            return RouteDecision(**verdict.model_dump())

        prediction = await self.slot_extractor.acall(
            user_message=utterance,
            slot_catalog=slot_catalog,
            current_slot=current_slot,
        )
        extracted = validate_dspy_result(prediction.result, MultiExtractionResult)
        return RouteDecision(**verdict.model_dump(), candidate_extractions=extracted.extractions)


class SlotValueExtractor(DelegateModule):
    """Extracts a value for exactly one slot (the "ask" path).

    Each slot gets its own predictor whose instructions name the question, so
    per-slot demos can be attached without affecting other slots. Predictors
    are kept in an LRU cache; the slot-agnostic `self.extractor` serves calls
    without a prompt.
    """

    # Extraction is simpler, no ChainOfThought by default
    default_use_cot = False

    def __init__(self, use_cot: bool | None = None, cache_size: int = 128):
        super().__init__(use_cot)
        self._slot_extractors: LRUCache[str, dspy.Module] = LRUCache(maxsize=cache_size)

    def _create_extractor(self, use_cot: bool) -> dspy.Module:
        return self.build(ExtractSingleSlot, use_cot)

    def _extractor_for(self, slot_id: str, prompt: str) -> dspy.Module:
        if not prompt:
            return self.extractor

        key = f"{slot_id}:{prompt}"
        predictor = self._slot_extractors.get(key)
        if predictor is None:
            signature = ExtractSingleSlot.with_instructions(
                f"{ExtractSingleSlot.instructions}\n\n"
                f"Slot '{slot_id}' answers the question: {prompt}"
            )
            predictor = self.build(signature, self.use_cot)
            self._slot_extractors[key] = predictor
        return predictor

    async def extract(self, slot_id: str, prompt: str, utterance: str) -> SingleExtraction:
        predictor = self._extractor_for(slot_id, prompt)
        prediction = await predictor.acall(slot_id=slot_id, question=prompt, user_message=utterance)
        return validate_dspy_result(prediction.result, SingleExtraction)


class ClarificationModule(DelegateModule):
    """Phrases a follow-up question when a reply did not answer the prompt."""

    def _create_extractor(self, use_cot: bool) -> dspy.Module:
        return self.build(GenerateClarification, use_cot)

    async def clarify(self, slot_id: str, utterance: str, prompt: str) -> str:
        prediction = await self.extractor.acall(
            slot_id=slot_id, question=prompt, user_message=utterance
        )
        text = str(prediction.clarification).strip()
        if not text:
            raise ValueError("Empty clarification")
        return text


class SummaryModule(DelegateModule):
    """Generates the final summary, with a slots-only fallback predictor."""

    def __init__(self, use_cot: bool | None = None):
        super().__init__(use_cot)
        self.simple_extractor = self.build(SummarizeSlots, False)

    def _create_extractor(self, use_cot: bool) -> dspy.Module:
        return self.build(SummarizeInterview, use_cot)

    async def summarize(
        self,
        filled_slots: FilledSlots,
        interaction_log: list[InteractionRecord],
        session_metadata: dict[str, Any],
    ) -> str:
        prediction = await self.extractor.acall(
            filled_slots=filled_slots,
            conversation=format_transcript(interaction_log),
            session_metadata=session_metadata,
        )
        return self._text(prediction)

    async def summarize_simple(self, filled_slots: FilledSlots) -> str:
        prediction = await self.simple_extractor.acall(filled_slots=filled_slots)
        return self._text(prediction)

    @staticmethod
    def _text(prediction: Any) -> str:
        text = str(prediction.summary).strip()
        if not text:
            raise ValueError("Empty summary")
        return text


class CorrectionParserModule(DelegateModule):
    """Finds requested slot changes in a review-phase message."""

    def _create_extractor(self, use_cot: bool) -> dspy.Module:
        return self.build(ParseCorrections, use_cot)

    async def parse(self, filled_slots: FilledSlots, utterance: str) -> list[SlotCorrection]:
        prediction = await self.extractor.acall(filled_slots=filled_slots, user_message=utterance)
        return validate_dspy_result(prediction.result, CorrectionList).corrections


def build_dspy_delegates(use_reasoning: bool | None = None) -> Delegates:
    """Create the DSPy-backed delegate set.

    Args:
        use_reasoning: Force ChainOfThought on (True) or off (False) for every
            module; None keeps each module's default.
    """
    return Delegates(
        router=TurnRouterModule(use_cot=use_reasoning),
        extractor=SlotValueExtractor(use_cot=use_reasoning),
        clarifier=ClarificationModule(use_cot=use_reasoning),
        summarizer=SummaryModule(use_cot=use_reasoning),
        corrector=CorrectionParserModule(use_cot=use_reasoning),
    )
