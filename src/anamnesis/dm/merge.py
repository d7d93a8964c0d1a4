"""Extraction merge engine.

Folds the candidate values produced for one utterance into a MergeResult.
Every candidate ends up either accepted or rejected with a reason; nothing is
silently dropped.
"""

import logging
from collections.abc import Collection

from anamnesis.core.constants import DEFAULT_CONFIDENCE_THRESHOLD, RejectionReason
from anamnesis.core.normalization import NormalizationContext, normalize_slot_value
from anamnesis.core.types import (
    AcceptedExtraction,
    CandidateExtraction,
    MergeResult,
    RejectedExtraction,
)
from anamnesis.core.validation import SlotValidation
from anamnesis.graph.models import SlotGraph

logger = logging.getLogger(__name__)


class MergeEngine:
    """Applies the merge policy to candidate extractions.

    Per candidate, in order: confidence gate, unknown slot check, already
    filled check, normalization, validation, then duplicate resolution
    (higher confidence wins, ties keep the first).
    """

    def __init__(self, graph: SlotGraph, threshold: float = DEFAULT_CONFIDENCE_THRESHOLD):
        self.graph = graph
        self.threshold = threshold
        self.validation = SlotValidation(graph)

    def merge(
        self,
        candidates: list[CandidateExtraction],
        utterance: str = "",
        locked: Collection[str] = (),
    ) -> MergeResult:
        """Screen every candidate and keep one winner per slot.

        Candidates for slots in ``locked`` are rejected as already filled.
        """
        result = MergeResult()
        winners: dict[str, AcceptedExtraction] = {}

        for candidate in candidates:
            accepted = self._screen(candidate, utterance, locked)
            if isinstance(accepted, RejectedExtraction):
                result.rejected.append(accepted)
                continue

            current = winners.get(accepted.slot_id)
            if current is None:
                winners[accepted.slot_id] = accepted
            elif accepted.confidence > current.confidence:
                result.rejected.append(self._superseded(current))
                winners[accepted.slot_id] = accepted
            else:
                result.rejected.append(self._superseded(accepted))

        result.accepted.extend(winners.values())

        logger.info(
            f"Merged {len(candidates)} candidates: "
            f"{len(result.accepted)} accepted, {len(result.rejected)} rejected",
            extra={
                "accepted": [item.slot_id for item in result.accepted],
                "rejected": {item.slot_id: item.reason.value for item in result.rejected},
            },
        )
        return result

    def _screen(
        self, candidate: CandidateExtraction, utterance: str, locked: Collection[str]
    ) -> AcceptedExtraction | RejectedExtraction:
        if candidate.confidence < self.threshold:
            return self._reject(
                candidate,
                RejectionReason.LOW_CONFIDENCE,
                f"confidence {candidate.confidence:.2f} below {self.threshold:.2f}",
            )

        slot = self.graph.get(candidate.slot_id)
        if slot is None:
            return self._reject(candidate, RejectionReason.UNKNOWN_SLOT, "Invalid slot name")

        if slot.id in locked:
            return self._reject(candidate, RejectionReason.ALREADY_FILLED, "slot already filled")

        value = candidate.value
        if value is not None:
            context = NormalizationContext(slot_id=slot.id, utterance=utterance)
            try:
                value = normalize_slot_value(value, context, slot.type, slot.normalizer)
            except (TypeError, ValueError) as e:
                logger.error(f"Normalizer failed for slot '{slot.id}': {e}")
                return self._reject(
                    candidate, RejectionReason.INVALID_VALUE, "normalization failed"
                )

        outcome = self.validation.validate(slot.id, value)
        if not outcome.valid:
            return self._reject(
                candidate, RejectionReason.INVALID_VALUE, outcome.reason or "", value=value
            )

        return AcceptedExtraction(slot_id=slot.id, value=value, confidence=candidate.confidence)

    @staticmethod
    def _reject(
        candidate: CandidateExtraction,
        reason: RejectionReason,
        detail: str,
        value=None,
    ) -> RejectedExtraction:
        logger.debug(
            f"Rejected '{candidate.slot_id}': {reason.value}",
            extra={"slot_id": candidate.slot_id, "reason": reason.value, "detail": detail},
        )
        return RejectedExtraction(
            slot_id=candidate.slot_id,
            value=value if value is not None else candidate.value,
            confidence=candidate.confidence,
            reason=reason,
            detail=detail,
        )

    @staticmethod
    def _superseded(loser: AcceptedExtraction) -> RejectedExtraction:
        return RejectedExtraction(
            slot_id=loser.slot_id,
            value=loser.value,
            confidence=loser.confidence,
            reason=RejectionReason.SUPERSEDED,
            detail="a higher-confidence value was extracted for this slot",
        )
