import json

import httpx
import pytest

from ani_oauth.client.errors import (
    AlreadyBoundError,
    IllegalStateError,
    InvalidProviderTokenError,
    NotSupportedForRegistration,
)
from ani_oauth.client.oauth import BangumiAuthorizationClient
from ani_oauth.session import InMemorySessionManager, SessionStatus
from ani_oauth.shared.auth import PlatformInfo


class RecordingTransport:
    """Returns a canned response and records every request."""

    def __init__(self, response: httpx.Response):
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response


def make_client(
    response: httpx.Response, status: SessionStatus = SessionStatus.VALID
) -> tuple[BangumiAuthorizationClient, RecordingTransport]:
    handler = RecordingTransport(response)
    http_client = httpx.AsyncClient(base_url="https://api.example.com", transport=httpx.MockTransport(handler))
    client = BangumiAuthorizationClient(
        http_client,
        InMemorySessionManager(status),
        platform=PlatformInfo(name="Linux", arch="x86_64"),
    )
    return client, handler


TOKEN_BODY = {
    "tokens": {
        "accessToken": "A",
        "expiresAtMillis": 1_700_000_000_000,
        "bangumiAccessToken": "B",
        "refreshToken": "R",
    }
}


class TestLinks:
    @pytest.mark.anyio
    async def test_registration_link(self):
        client, handler = make_client(httpx.Response(200, json={"url": "https://bgm.tv/oauth/authorize?x=1"}))

        url = await client.registration_link("r1")

        assert url == "https://bgm.tv/oauth/authorize?x=1"
        request = handler.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/oauth/register"
        assert json.loads(request.content) == {"requestId": "r1", "platform": "Linux", "arch": "x86_64"}

    @pytest.mark.anyio
    async def test_bind_link(self):
        client, handler = make_client(httpx.Response(200, json={"url": "https://bgm.tv/bind"}))

        assert await client.bind_link("r2") == "https://bgm.tv/bind"
        assert handler.requests[0].url.path == "/oauth/bind"
        assert json.loads(handler.requests[0].content)["requestId"] == "r2"

    @pytest.mark.anyio
    @pytest.mark.parametrize("status", [SessionStatus.NO_TOKEN, SessionStatus.EXPIRED, SessionStatus.VERIFYING])
    async def test_bind_link_requires_valid_session(self, status):
        client, handler = make_client(httpx.Response(200, json={"url": "unused"}), status=status)

        with pytest.raises(IllegalStateError):
            await client.bind_link("r2")
        assert handler.requests == []

    @pytest.mark.anyio
    async def test_registration_not_supported(self):
        class BindOnlyClient(BangumiAuthorizationClient):
            supports_registration = False

        handler = RecordingTransport(httpx.Response(200, json={"url": "unused"}))
        client = BindOnlyClient(
            httpx.AsyncClient(base_url="https://api.example.com", transport=httpx.MockTransport(handler)),
            InMemorySessionManager(SessionStatus.VALID),
        )

        with pytest.raises(NotSupportedForRegistration):
            await client.registration_link("r1")
        assert handler.requests == []

    @pytest.mark.anyio
    async def test_link_server_error_propagates(self):
        client, _ = make_client(httpx.Response(500, text="boom"))

        with pytest.raises(httpx.HTTPStatusError):
            await client.registration_link("r1")


class TestBlankRequestId:
    @pytest.mark.anyio
    @pytest.mark.parametrize("request_id", ["", " ", "\t\n"])
    @pytest.mark.parametrize("operation", ["registration_link", "bind_link", "poll_result"])
    async def test_blank_request_id_rejected(self, request_id, operation):
        client, handler = make_client(httpx.Response(200, json=TOKEN_BODY))

        with pytest.raises(ValueError):
            await getattr(client, operation)(request_id)
        assert handler.requests == []


class TestPollResult:
    @pytest.mark.anyio
    async def test_success_maps_tokens(self):
        client, handler = make_client(httpx.Response(200, json=TOKEN_BODY))

        result = await client.poll_result("r1")

        assert result is not None
        assert result.tokens.ani_access_token == "A"
        assert result.tokens.expires_at_millis == 1_700_000_000_000
        assert result.tokens.bangumi_access_token == "B"
        assert result.refresh_token == "R"
        assert result.expires_in_seconds == 1_700_000_000
        assert handler.requests[0].url.path == "/oauth/token"
        assert handler.requests[0].url.params["requestId"] == "r1"

    @pytest.mark.anyio
    async def test_too_early_means_no_result_yet(self):
        client, _ = make_client(httpx.Response(425))

        assert await client.poll_result("r1") is None

    @pytest.mark.anyio
    async def test_bad_request_is_invalid_provider_token(self):
        client, _ = make_client(httpx.Response(400, text="bangumi token rejected"))

        with pytest.raises(InvalidProviderTokenError) as exc_info:
            await client.poll_result("r1")
        assert exc_info.value.detail == "bangumi token rejected"

    @pytest.mark.anyio
    async def test_conflict_is_already_bound(self):
        client, _ = make_client(httpx.Response(409, text="already bound"))

        with pytest.raises(AlreadyBoundError) as exc_info:
            await client.poll_result("r1")
        assert exc_info.value.detail == "already bound"

    @pytest.mark.anyio
    @pytest.mark.parametrize("status_code", [401, 404, 500, 503])
    async def test_other_errors_propagate_unchanged(self, status_code):
        client, _ = make_client(httpx.Response(status_code))

        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await client.poll_result("r1")
        assert exc_info.value.response.status_code == status_code

    @pytest.mark.anyio
    async def test_transport_error_propagates(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = BangumiAuthorizationClient(
            httpx.AsyncClient(base_url="https://api.example.com", transport=httpx.MockTransport(handler)),
            InMemorySessionManager(SessionStatus.VALID),
        )

        with pytest.raises(httpx.ConnectError):
            await client.poll_result("r1")
