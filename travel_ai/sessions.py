import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict

from travel_ai.clients.generative import GenerativeClient
from travel_ai.clients.remote_config import ConfigProvider
from travel_ai.config import MAX_SESSIONS
from travel_ai.location.provider import DeviceLocationProvider, PermissionGate
from travel_ai.orchestrator import RequestOrchestrator

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Everything that belongs to one UI session."""
    session_id: str
    orchestrator: RequestOrchestrator
    location: DeviceLocationProvider
    permissions: PermissionGate = field(repr=False)


class SessionRegistry:
    """In-memory sessions sharing one generative client and one config provider.

    Holds at most ``max_sessions``; creating one more evicts the oldest.
    """

    def __init__(
        self,
        generative_client: GenerativeClient,
        config_provider: ConfigProvider,
        max_sessions: int = MAX_SESSIONS,
    ):
        self._client = generative_client
        self._config = config_provider
        self._max_sessions = max_sessions
        self._sessions: Dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self) -> Session:
        permissions = PermissionGate()
        location = DeviceLocationProvider(permissions)
        session = Session(
            session_id=str(uuid.uuid4()),
            orchestrator=RequestOrchestrator(self._client, self._config, location),
            location=location,
            permissions=permissions,
        )
        self._sessions[session.session_id] = session
        while len(self._sessions) > self._max_sessions:
            evicted = next(iter(self._sessions))
            del self._sessions[evicted]
            logger.info("Session %s evicted (limit %d)", evicted, self._max_sessions)
        logger.info("Session %s created (%d active)", session.session_id, len(self._sessions))
        return session

    def get(self, session_id: str) -> Session:
        """Raises KeyError for unknown sessions."""
        return self._sessions[session_id]

    def close(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        logger.info("Session %s closed", session_id)
