"""
OAuth client for the Ani server.

The Ani server brokers the Bangumi OAuth exchange: the client asks it for a
link carrying a request id, the user completes the authorization in a browser,
and the client then polls the server with the same request id until the token
exchange has happened.
"""

import logging
from typing import ClassVar, Protocol

import httpx

from ani_oauth.client.errors import (
    AlreadyBoundError,
    IllegalStateError,
    InvalidProviderTokenError,
    NotSupportedForRegistration,
)
from ani_oauth.session import SessionStateProvider, SessionStatus
from ani_oauth.shared.auth import (
    AuthorizationResult,
    LinkRequest,
    LinkResponse,
    PlatformInfo,
    TokenResponse,
)

logger = logging.getLogger(__name__)

REGISTER_PATH = "/oauth/register"
BIND_PATH = "/oauth/bind"
TOKEN_PATH = "/oauth/token"

HTTP_TOO_EARLY = 425


class AuthorizationClient(Protocol):
    supports_registration: bool

    async def registration_link(self, request_id: str) -> str:
        """
        Get a link whose completed authorization registers a new Ani user.

        Raises:
            ValueError: request_id is blank
            NotSupportedForRegistration: supports_registration is False
        """
        ...

    async def bind_link(self, request_id: str) -> str:
        """
        Get a link whose completed authorization binds to the current Ani user.

        Raises:
            ValueError: request_id is blank
            IllegalStateError: the Ani account is not logged in or not valid
        """
        ...

    async def poll_result(self, request_id: str) -> AuthorizationResult | None:
        """
        Get the result of a bind or register, used directly to log the Ani user in.

        Returns None while the server has no result yet.

        Raises:
            ValueError: request_id is blank
            InvalidProviderTokenError: the Bangumi token is invalid
            AlreadyBoundError: the Bangumi account is bound to another Ani account
        """
        ...


def _require_request_id(request_id: str) -> None:
    if not request_id or not request_id.strip():
        raise ValueError("request_id must not be blank or empty")


class BangumiAuthorizationClient:
    """AuthorizationClient for Bangumi, talking to the Ani server over HTTP."""

    supports_registration: ClassVar[bool] = True

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        session_state_provider: SessionStateProvider,
        platform: PlatformInfo | None = None,
    ):
        self.http_client = http_client
        self.session_state_provider = session_state_provider
        self.platform = platform or PlatformInfo.current()

    def _link_request(self, request_id: str) -> dict[str, str]:
        body = LinkRequest(request_id=request_id, platform=self.platform.name, arch=self.platform.arch)
        return body.model_dump(by_alias=True, mode="json")

    async def _request_link(self, path: str, request_id: str) -> str:
        response = await self.http_client.post(path, json=self._link_request(request_id))
        response.raise_for_status()
        return LinkResponse.model_validate_json(response.content).url

    async def registration_link(self, request_id: str) -> str:
        _require_request_id(request_id)
        if not self.supports_registration:
            raise NotSupportedForRegistration(f"{type(self).__name__} does not support registration")

        return await self._request_link(REGISTER_PATH, request_id)

    async def bind_link(self, request_id: str) -> str:
        _require_request_id(request_id)

        if not self.session_state_provider.can_access_api_now():
            raise IllegalStateError("Cannot bind account because Ani account is not logged in")
        if self.session_state_provider.state is not SessionStatus.VALID:
            raise IllegalStateError(f"Cannot bind account, session is {self.session_state_provider.state.name}")

        return await self._request_link(BIND_PATH, request_id)

    async def poll_result(self, request_id: str) -> AuthorizationResult | None:
        _require_request_id(request_id)

        response = await self.http_client.get(TOKEN_PATH, params={"requestId": request_id})

        if response.status_code == HTTP_TOO_EARLY:
            return None
        if response.status_code == 400:
            raise InvalidProviderTokenError(response.text)
        if response.status_code == 409:
            raise AlreadyBoundError(response.text)
        response.raise_for_status()

        token_response = TokenResponse.model_validate_json(response.content)
        return AuthorizationResult.from_token_response(token_response)
