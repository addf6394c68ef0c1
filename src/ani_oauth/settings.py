from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthorizationSettings(BaseSettings):
    """Settings for talking to the Ani server's OAuth endpoints."""

    model_config = SettingsConfigDict(env_prefix="ANI_OAUTH_")

    api_base_url: AnyHttpUrl = AnyHttpUrl("https://api.animeko.org")

    # Polling
    poll_interval: float = Field(1.0, gt=0, description="Seconds to wait before each result poll")
    poll_timeout: float | None = Field(
        None,
        gt=0,
        description="Give up polling after this many seconds. Unset polls until the server answers.",
    )

    # HTTP
    request_timeout: float = Field(30.0, gt=0)
    access_token: str | None = Field(None, description="Ani bearer token, required for bind flows")
