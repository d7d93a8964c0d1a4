"""Host-facing interview session.

InterviewSession owns one SessionState and the turn controller for it. Hosts
(the HTTP server, the CLI) create one per respondent and call it strictly
sequentially.
"""

import logging
import uuid
from typing import Any

from anamnesis.config.models import AnamnesisConfig
from anamnesis.config.settings import SettingsConfig
from anamnesis.core.constants import Phase
from anamnesis.core.state import SessionState
from anamnesis.core.types import (
    AlreadyComplete,
    CannotProceed,
    SessionStats,
    TurnResult,
)
from anamnesis.dm.controller import TurnController
from anamnesis.du.gateway import DelegateGateway
from anamnesis.du.interfaces import Delegates
from anamnesis.graph.models import SlotGraph
from anamnesis.observability.logging import ContextLogger

logger = logging.getLogger(__name__)


class InterviewSession:
    """One respondent's interview over a slot graph."""

    def __init__(
        self,
        graph: SlotGraph,
        delegates: Delegates,
        settings: SettingsConfig | None = None,
        session_id: str | None = None,
    ) -> None:
        self.graph = graph
        self.settings = settings or SettingsConfig()
        self.session_id = session_id or uuid.uuid4().hex
        self.state = SessionState()
        self.gateway = DelegateGateway(delegates, self.settings.models.timeout_seconds)
        self.controller = TurnController(graph, self.gateway, self.settings.dialogue)
        self.log = ContextLogger(__name__).with_context(session_id=self.session_id)

    @classmethod
    def from_config(
        cls,
        config: AnamnesisConfig,
        delegates: Delegates | None = None,
        session_id: str | None = None,
    ) -> "InterviewSession":
        """Build a session from a loaded config.

        Without explicit delegates the DSPy implementations are used; DSPy must
        already be configured (see DSPyBootstrapper).
        """
        if delegates is None:
            from anamnesis.du.modules import build_dspy_delegates

            logger.info("Using DSPy delegates")
            delegates = build_dspy_delegates(config.settings.models.use_reasoning or None)
        return cls(config.build_graph(), delegates, config.settings, session_id)

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def current_slot(self) -> str | None:
        return self.state.current_slot

    @property
    def hybrid_mode(self) -> bool:
        return self.controller.settings.hybrid_mode

    def set_hybrid_mode(self, enabled: bool) -> None:
        """Turn multi-slot routing on or off for this session only."""
        self.controller.settings = self.controller.settings.model_copy(
            update={"hybrid_mode": enabled}
        )
        self.log.info(f"Hybrid mode {'enabled' if enabled else 'disabled'}")

    def start_session(self) -> TurnResult:
        """Return the first question (or the review if nothing is left to ask)."""
        result = self.controller.advance(self.state)
        self.log.info(f"Session started: {result.kind}")
        return result

    async def submit_turn(self, current_slot_id: str | None, utterance: str) -> TurnResult:
        """Process one respondent utterance.

        ``current_slot_id`` defaults to the slot the session last asked.
        """
        slot_id = current_slot_id or self.state.current_slot
        self.log.debug(f"Turn for slot '{slot_id}' in phase {self.state.phase.value}")
        result = await self.controller.process_turn(slot_id, utterance, self.state)
        self.log.info(
            f"Turn result for '{slot_id}': {result.kind} "
            f"({len(self.state.filled_slots)} slots filled)"
        )
        return result

    def skip_slot(self, slot_id: str | None = None) -> TurnResult:
        """Force-skip a slot and move on.

        Skipping is the host's decision (typically after ``skip_suggested``);
        the engine never skips on its own.
        """
        if self.state.phase is Phase.COMPLETE:
            return AlreadyComplete()

        target = slot_id or self.state.current_slot
        if target is None or target not in self.graph:
            return CannotProceed(
                reason="unknown_slot", message=f"Slot '{target}' is not part of this interview."
            )
        if self.state.phase is not Phase.COLLECTING:
            return CannotProceed(
                reason="not_collecting", message="Slots can only be skipped while collecting."
            )

        self.state.skip(target)
        self.log.info(f"Slot '{target}' skipped by host")
        return self.controller.advance(self.state)

    def reset_session(self) -> TurnResult:
        """Clear all state and return the first question again."""
        self.state.reset()
        self.log.info("Session reset")
        return self.start_session()

    def get_stats(self) -> SessionStats:
        return self.state.stats()

    async def generate_summary(self) -> str:
        """Summary of what has been collected so far (any phase)."""
        return await self.controller.summarize(self.state)

    def describe(self) -> dict[str, Any]:
        """Snapshot of the session for hosts."""
        snapshot = self.state.snapshot()
        snapshot["session_id"] = self.session_id
        snapshot["hybrid_mode"] = self.hybrid_mode
        return snapshot
