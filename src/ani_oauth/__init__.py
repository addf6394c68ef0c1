"""Bangumi OAuth register/bind flow for Ani accounts."""

from ani_oauth.client import (
    AuthorizationClient,
    AuthorizationOrchestrator,
    BangumiAuthorizationClient,
    FlowErrorKind,
    FlowState,
)
from ani_oauth.settings import AuthorizationSettings
from ani_oauth.shared.auth import AccessTokenPair, AuthorizationResult

__all__ = [
    "AccessTokenPair",
    "AuthorizationClient",
    "AuthorizationOrchestrator",
    "AuthorizationResult",
    "AuthorizationSettings",
    "BangumiAuthorizationClient",
    "FlowErrorKind",
    "FlowState",
]
