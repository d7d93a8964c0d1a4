"""In-memory session store for the HTTP host.

Sessions are keyed by id in a TTL cache: idle sessions expire after
``server.session_ttl_seconds`` and at most ``server.max_sessions`` are kept.
Each session carries an asyncio.Lock so turns of one session never overlap.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from cachetools import TTLCache

from anamnesis.config.models import AnamnesisConfig
from anamnesis.core.errors import SessionNotFoundError
from anamnesis.du.interfaces import Delegates
from anamnesis.graph.models import SlotGraph
from anamnesis.runtime.session import InterviewSession

logger = logging.getLogger(__name__)


@dataclass
class SessionEntry:
    session: InterviewSession
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class SessionStore:
    """Creates and holds interview sessions for one config."""

    def __init__(self, config: AnamnesisConfig, delegates: Delegates):
        self.config = config
        self.delegates = delegates
        self.graph: SlotGraph = config.build_graph()
        server = config.settings.server
        self._entries: TTLCache[str, SessionEntry] = TTLCache(
            maxsize=server.max_sessions, ttl=server.session_ttl_seconds
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._entries

    def create(self) -> SessionEntry:
        session = InterviewSession(self.graph, self.delegates, self.config.settings)
        entry = SessionEntry(session=session)
        self._entries[session.session_id] = entry
        logger.info(f"Session {session.session_id} created ({len(self._entries)} active)")
        return entry

    def get(self, session_id: str) -> SessionEntry:
        """Look up a session and renew its time to live.

        Raises:
            SessionNotFoundError: If the id is unknown or expired
        """
        entry = self._entries.get(session_id)
        if entry is None:
            raise SessionNotFoundError("Session not found", session_id=session_id)
        self._entries[session_id] = entry
        return entry

    def delete(self, session_id: str) -> None:
        self._entries.pop(session_id, None)
