"""
OAuth flow orchestration.

`AuthorizationOrchestrator.start` runs one bind or register flow: it requests a
link, hands it to the browser, polls the Ani server until the Bangumi exchange
completes and commits the resulting session. The outcome is reported only
through `state`.
"""

import hashlib
import logging
import random as _random
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import anyio
import httpx

from ani_oauth.client.errors import AuthorizationError, FlowErrorKind, IllegalStateError
from ani_oauth.client.oauth import AuthorizationClient
from ani_oauth.session import AccessTokenSession, SessionManager, SessionStateProvider
from ani_oauth.shared.auth import AuthorizationResult
from ani_oauth.shared.state_flow import ReadOnlyStateFlow, StateFlow

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class AwaitingResult:
    request_id: str


@dataclass(frozen=True)
class Success:
    request_id: str
    result: AuthorizationResult


@dataclass(frozen=True)
class KnownError:
    kind: FlowErrorKind
    exception: BaseException


@dataclass(frozen=True)
class UnknownError:
    exception: BaseException


FlowState = Idle | AwaitingResult | Success | KnownError | UnknownError
ErrorState = KnownError | UnknownError


class PollTimeoutError(Exception):
    """Raised when no result arrived within the configured poll timeout."""

    pass


class FlowSupersededError(Exception):
    """Raised inside a flow once a newer `start` has taken over the state."""

    pass


def classify_failure(exc: Exception) -> ErrorState:
    """Map a failure raised during the flow to its terminal state."""
    if isinstance(exc, AuthorizationError):
        return KnownError(exc.error_kind, exc)
    if isinstance(exc, (httpx.TransportError, OSError, PollTimeoutError)):
        return KnownError(FlowErrorKind.NETWORK_ERROR, exc)
    return UnknownError(exc)


def generate_request_id(rng: _random.Random | None = None) -> str:
    if rng is None:
        return str(uuid.uuid4())
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))


def _fingerprint(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()[:12]


class AuthorizationOrchestrator:
    """Drives bind/register flows through an AuthorizationClient."""

    def __init__(
        self,
        client: AuthorizationClient,
        session_manager: SessionManager,
        session_state_provider: SessionStateProvider,
        on_open_url: Callable[[str], Awaitable[None]],
        random: _random.Random | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        poll_timeout: float | None = None,
    ):
        self.client = client
        self.session_manager = session_manager
        self.session_state_provider = session_state_provider
        self.on_open_url = on_open_url
        self.random = random
        self.poll_interval = poll_interval
        self.poll_timeout = poll_timeout
        self._state: StateFlow[FlowState] = StateFlow(Idle())
        # Only the invocation that issued this request id may write `_state`.
        self._current_request_id: str | None = None

    @property
    def state(self) -> ReadOnlyStateFlow[FlowState]:
        return self._state

    def _publish(self, request_id: str, state: FlowState) -> bool:
        if request_id != self._current_request_id:
            logger.info(f"Dropping {type(state).__name__} of superseded request id: {request_id}")
            return False
        self._state.value = state
        return True

    async def start(self, is_register: bool) -> None:
        """
        Run one OAuth flow to completion.

        Failures end up in `state` as KnownError or UnknownError and are not
        raised. Cancellation resets `state` to Idle and propagates. A newer
        call to `start` supersedes this one: it stops polling and no longer
        writes `state` or commits a session.

        Raises:
            IllegalStateError: binding while the Ani session cannot access the API.
                Raised before anything is published to `state`.
        """
        if not is_register and not self.session_state_provider.can_access_api_now():
            raise IllegalStateError("Cannot bind account because Ani account is not logged in")

        request_id = generate_request_id(self.random)
        logger.info(f"OAuth started, request id: {request_id}")
        self._current_request_id = request_id
        self._state.value = AwaitingResult(request_id)

        try:
            if is_register:
                logger.info(f"Request register, request id: {request_id}")
                external_url = await self.client.registration_link(request_id)
            else:
                logger.info(f"Request bind, request id: {request_id}")
                external_url = await self.client.bind_link(request_id)

            await self.on_open_url(external_url)

            result = await self._await_result(request_id)

            if not self._publish(request_id, Success(request_id, result)):
                return
            logger.info(
                f"OAuth success, request id: {request_id}, "
                f"token fingerprint: {_fingerprint(result.tokens.ani_access_token)}"
            )

            await self.session_manager.set_session(AccessTokenSession(result.tokens), result.refresh_token)
        except anyio.get_cancelled_exc_class():
            logger.info(f"OAuth cancelled, request id: {request_id}")
            self._publish(request_id, Idle())
            raise
        except FlowSupersededError:
            logger.info(f"OAuth superseded by a newer flow, request id: {request_id}")
        except Exception as e:
            logger.exception(f"OAuth failed, request id: {request_id}")
            self._publish(request_id, classify_failure(e))

    async def _await_result(self, request_id: str) -> AuthorizationResult:
        if self.poll_timeout is None:
            return await self._poll(request_id)

        with anyio.move_on_after(self.poll_timeout):
            return await self._poll(request_id)
        raise PollTimeoutError(f"No OAuth result after {self.poll_timeout}s, request id: {request_id}")

    async def _poll(self, request_id: str) -> AuthorizationResult:
        while True:
            await anyio.sleep(self.poll_interval)
            if request_id != self._current_request_id:
                raise FlowSupersededError(request_id)
            result = await self.client.poll_result(request_id)
            logger.debug(f"Check OAuth result of request id {request_id}: {result is not None}")
            if result is not None:
                return result
