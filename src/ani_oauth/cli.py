"""
Command line OAuth flow against an Ani server.

Usage:
    ani-oauth register
    ani-oauth --access-token=... bind
"""

import logging
import sys
import webbrowser

import anyio
import anyio.to_thread
import click
import httpx

from ani_oauth.client.configurator import AuthorizationOrchestrator, FlowState, KnownError, Success, UnknownError
from ani_oauth.client.oauth import BangumiAuthorizationClient
from ani_oauth.session import InMemorySessionManager, SessionStatus
from ani_oauth.settings import AuthorizationSettings
from ani_oauth.shared._httpx_utils import create_http_client

logger = logging.getLogger(__name__)


async def _print_url(url: str) -> None:
    click.echo(f"Open this URL to continue: {url}")


async def _open_browser(url: str) -> None:
    await _print_url(url)
    await anyio.to_thread.run_sync(webbrowser.open, url)


async def run_flow(
    settings: AuthorizationSettings,
    is_register: bool,
    open_browser: bool = True,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FlowState:
    """Run one flow with an in-memory session and return the final state."""
    session = InMemorySessionManager(SessionStatus.VALID if settings.access_token else SessionStatus.NO_TOKEN)

    async with create_http_client(settings, transport=transport) as http_client:
        orchestrator = AuthorizationOrchestrator(
            client=BangumiAuthorizationClient(http_client, session),
            session_manager=session,
            session_state_provider=session,
            on_open_url=_open_browser if open_browser else _print_url,
            poll_interval=settings.poll_interval,
            poll_timeout=settings.poll_timeout,
        )
        await orchestrator.start(is_register)
        return orchestrator.state.value


def describe_state(state: FlowState) -> str:
    if isinstance(state, Success):
        return f"Success, request id {state.request_id}, expires in {state.result.expires_in_seconds}s"
    if isinstance(state, KnownError):
        return f"Failed: {state.kind.name} ({state.exception})"
    if isinstance(state, UnknownError):
        return f"Failed with unexpected error: {state.exception!r}"
    return type(state).__name__


@click.command()
@click.argument("action", type=click.Choice(["register", "bind"]))
@click.option("--api-base-url", default=None, help="Ani server base URL")
@click.option("--access-token", default=None, help="Ani access token, required for bind")
@click.option("--poll-timeout", type=float, default=None, help="Stop polling after this many seconds")
@click.option("--no-browser", is_flag=True, help="Only print the authorization URL")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(
    action: str,
    api_base_url: str | None,
    access_token: str | None,
    poll_timeout: float | None,
    no_browser: bool,
    verbose: bool,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    overrides: dict[str, object] = {}
    if api_base_url is not None:
        overrides["api_base_url"] = api_base_url
    if access_token is not None:
        overrides["access_token"] = access_token
    if poll_timeout is not None:
        overrides["poll_timeout"] = poll_timeout

    try:
        settings = AuthorizationSettings(**overrides)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(2)

    is_register = action == "register"
    if not is_register and not settings.access_token:
        raise click.UsageError("bind requires --access-token or ANI_OAUTH_ACCESS_TOKEN")

    state = anyio.run(run_flow, settings, is_register, not no_browser)
    click.echo(describe_state(state))
    sys.exit(0 if isinstance(state, Success) else 1)


if __name__ == "__main__":
    main()  # type: ignore[call-arg]
