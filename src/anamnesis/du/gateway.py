"""Fault boundary around the delegate capabilities.

Every delegate call goes through DelegateGateway, which applies the time
budget and turns any failure into a DelegateFailure subclass. Callers then
only need to handle one exception type to apply their fallbacks.
"""

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

from pydantic import ValidationError

from anamnesis.core.errors import DelegateFailure, DelegateParsingError, DelegateTimeoutError
from anamnesis.core.types import FilledSlots, InteractionRecord
from anamnesis.du.interfaces import Delegates
from anamnesis.du.models import RouteDecision, SingleExtraction, SlotCorrection, SlotInfo

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DelegateGateway:
    """Calls delegates with a timeout and uniform failure reporting."""

    def __init__(self, delegates: Delegates, timeout_seconds: float | None = None):
        self.delegates = delegates
        self.timeout_seconds = timeout_seconds

    async def _call(self, capability: str, call: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        except TimeoutError as e:
            logger.warning(f"Delegate '{capability}' timed out after {self.timeout_seconds}s")
            raise DelegateTimeoutError(capability, "timed out") from e
        except (ValidationError, TypeError) as e:
            logger.warning(f"Delegate '{capability}' returned unparseable output: {e}")
            raise DelegateParsingError(capability, e) from e
        except DelegateFailure:
            raise
        except Exception as e:
            logger.warning(f"Delegate '{capability}' failed: {e}")
            raise DelegateFailure(capability, e) from e

    async def route(
        self,
        current_slot: str,
        utterance: str,
        slot_catalog: list[SlotInfo],
        session_snapshot: dict[str, Any],
    ) -> RouteDecision:
        result = await self._call(
            "route_turn",
            self.delegates.router.route(current_slot, utterance, slot_catalog, session_snapshot),
        )
        if not isinstance(result, RouteDecision):
            raise DelegateParsingError("route_turn", f"unexpected result type {type(result)}")
        return result

    async def extract_single(self, slot_id: str, prompt: str, utterance: str) -> SingleExtraction:
        result = await self._call(
            "extract_single", self.delegates.extractor.extract(slot_id, prompt, utterance)
        )
        if not isinstance(result, SingleExtraction):
            raise DelegateParsingError("extract_single", f"unexpected result type {type(result)}")
        return result

    async def clarify(self, slot_id: str, utterance: str, prompt: str) -> str:
        result = await self._call(
            "generate_clarification", self.delegates.clarifier.clarify(slot_id, utterance, prompt)
        )
        return self._text("generate_clarification", result)

    async def summarize(
        self,
        filled_slots: FilledSlots,
        interaction_log: list[InteractionRecord],
        session_metadata: dict[str, Any],
    ) -> str:
        result = await self._call(
            "generate_summary",
            self.delegates.summarizer.summarize(filled_slots, interaction_log, session_metadata),
        )
        return self._text("generate_summary", result)

    async def summarize_simple(self, filled_slots: FilledSlots) -> str:
        result = await self._call(
            "generate_summary_simple", self.delegates.summarizer.summarize_simple(filled_slots)
        )
        return self._text("generate_summary_simple", result)

    async def parse_corrections(
        self, filled_slots: FilledSlots, utterance: str
    ) -> list[SlotCorrection]:
        result = await self._call(
            "parse_corrections", self.delegates.corrector.parse(filled_slots, utterance)
        )
        if not isinstance(result, list):
            raise DelegateParsingError(
                "parse_corrections", f"unexpected result type {type(result)}"
            )
        return result

    @staticmethod
    def _text(capability: str, result: Any) -> str:
        if not isinstance(result, str) or not result.strip():
            raise DelegateParsingError(capability, "empty or non-text result")
        return result.strip()
