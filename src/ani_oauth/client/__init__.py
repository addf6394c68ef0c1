from ani_oauth.client.configurator import (
    AuthorizationOrchestrator,
    AwaitingResult,
    FlowState,
    Idle,
    KnownError,
    Success,
    UnknownError,
)
from ani_oauth.client.errors import (
    AlreadyBoundError,
    AuthorizationError,
    FlowErrorKind,
    IllegalStateError,
    InvalidProviderTokenError,
    NotSupportedForRegistration,
)
from ani_oauth.client.oauth import AuthorizationClient, BangumiAuthorizationClient

__all__ = [
    "AlreadyBoundError",
    "AuthorizationClient",
    "AuthorizationError",
    "AuthorizationOrchestrator",
    "AwaitingResult",
    "BangumiAuthorizationClient",
    "FlowErrorKind",
    "FlowState",
    "Idle",
    "IllegalStateError",
    "InvalidProviderTokenError",
    "KnownError",
    "NotSupportedForRegistration",
    "Success",
    "UnknownError",
]
