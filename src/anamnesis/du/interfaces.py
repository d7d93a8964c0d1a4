"""Delegate capability interfaces (Protocols).

Every "ask a language model" step of the engine goes through one of these
narrow request/response contracts. The engine only depends on the protocols,
so tests drive it with stubs and deployments may swap implementations.
"""

from dataclasses import dataclass
from typing import Any, Protocol

from anamnesis.core.types import FilledSlots, InteractionRecord
from anamnesis.du.models import RouteDecision, SingleExtraction, SlotCorrection, SlotInfo


class TurnRouter(Protocol):
    """RouteTurn: decide extract/ask/clarify and propose candidate values."""

    async def route(
        self,
        current_slot: str,
        utterance: str,
        slot_catalog: list[SlotInfo],
        session_snapshot: dict[str, Any],
    ) -> RouteDecision: ...


class SingleSlotExtractor(Protocol):
    """ExtractSingle: extract a value for exactly one slot."""

    async def extract(self, slot_id: str, prompt: str, utterance: str) -> SingleExtraction: ...


class ClarificationGenerator(Protocol):
    """GenerateClarification: phrase a follow-up question."""

    async def clarify(self, slot_id: str, utterance: str, prompt: str) -> str: ...


class SummaryGenerator(Protocol):
    """GenerateSummary, with a lower-fidelity fallback that only sees the slots."""

    async def summarize(
        self,
        filled_slots: FilledSlots,
        interaction_log: list[InteractionRecord],
        session_metadata: dict[str, Any],
    ) -> str: ...

    async def summarize_simple(self, filled_slots: FilledSlots) -> str: ...


class CorrectionParser(Protocol):
    """ParseCorrections: find slot changes requested in a review utterance."""

    async def parse(self, filled_slots: FilledSlots, utterance: str) -> list[SlotCorrection]: ...


@dataclass
class Delegates:
    """The set of delegate implementations an interview runs with."""

    router: TurnRouter
    extractor: SingleSlotExtractor
    clarifier: ClarificationGenerator
    summarizer: SummaryGenerator
    corrector: CorrectionParser
