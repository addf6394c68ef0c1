import platform

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    """Base for request/response bodies exchanged with the Ani server (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlatformInfo(BaseModel):
    """Operating system and CPU architecture reported when requesting a link."""

    name: str
    arch: str

    model_config = ConfigDict(frozen=True)

    @classmethod
    def current(cls) -> "PlatformInfo":
        return cls(name=platform.system() or "unknown", arch=platform.machine() or "unknown")


class LinkRequest(_WireModel):
    request_id: str = Field(..., min_length=1)
    platform: str
    arch: str


class LinkResponse(_WireModel):
    url: str


class TokenPayload(_WireModel):
    access_token: str
    expires_at_millis: int
    bangumi_access_token: str
    refresh_token: str


class TokenResponse(_WireModel):
    tokens: TokenPayload


class AccessTokenPair(BaseModel):
    """
    Ani access token together with the Bangumi access token it was issued for.

    `expires_at_millis` is an absolute epoch timestamp in milliseconds.
    """

    ani_access_token: str
    expires_at_millis: int
    bangumi_access_token: str

    model_config = ConfigDict(frozen=True)


class AuthorizationResult(BaseModel):
    """Outcome of a completed OAuth flow, used directly to log the Ani user in."""

    tokens: AccessTokenPair
    expires_in_seconds: int
    refresh_token: str

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_token_response(cls, response: TokenResponse) -> "AuthorizationResult":
        payload = response.tokens
        return cls(
            tokens=AccessTokenPair(
                ani_access_token=payload.access_token,
                expires_at_millis=payload.expires_at_millis,
                bangumi_access_token=payload.bangumi_access_token,
            ),
            expires_in_seconds=payload.expires_at_millis // 1000,
            refresh_token=payload.refresh_token,
        )
