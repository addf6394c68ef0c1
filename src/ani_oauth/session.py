"""
Session contracts used by the OAuth flow.

The flow only needs to know whether the Ani account can call authenticated APIs
right now, and somewhere to hand the new session once the flow succeeds.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Protocol

from ani_oauth.shared.auth import AccessTokenPair

logger = logging.getLogger(__name__)


class SessionStatus(Enum):
    """State of the local Ani session."""

    NO_TOKEN = auto()
    VERIFYING = auto()
    VALID = auto()
    EXPIRED = auto()
    NETWORK_ERROR = auto()


@dataclass(frozen=True)
class AccessTokenSession:
    """A session backed by an access token pair obtained from the server."""

    tokens: AccessTokenPair


class SessionStateProvider(Protocol):
    @property
    def state(self) -> SessionStatus:
        """Current session status."""
        ...

    def can_access_api_now(self) -> bool:
        """Whether authenticated API calls can be made right now."""
        ...


class SessionManager(Protocol):
    async def set_session(self, session: AccessTokenSession, refresh_token: str) -> None:
        """Adopt a new session and its refresh token."""
        ...


class InMemorySessionManager:
    """
    Keeps the session in memory only. Implements both SessionManager and
    SessionStateProvider; used by the command line tool.
    """

    def __init__(self, status: SessionStatus = SessionStatus.NO_TOKEN):
        self._status = status
        self.session: AccessTokenSession | None = None
        self.refresh_token: str | None = None

    @property
    def state(self) -> SessionStatus:
        return self._status

    def can_access_api_now(self) -> bool:
        return self._status is SessionStatus.VALID

    async def set_session(self, session: AccessTokenSession, refresh_token: str) -> None:
        self.session = session
        self.refresh_token = refresh_token
        self._status = SessionStatus.VALID
        logger.debug("Session replaced")
