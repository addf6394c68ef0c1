from enum import Enum, auto
from typing import ClassVar


class FlowErrorKind(Enum):
    """Failures the UI can explain to the user with a specific message."""

    NOT_SUPPORTED_FOR_REGISTRATION = auto()
    INVALID_PROVIDER_TOKEN = auto()
    ALREADY_BOUND = auto()  # Bangumi account already bound to another Ani account
    NETWORK_ERROR = auto()


class IllegalStateError(RuntimeError):
    """Raised when a bind is attempted without a valid Ani session."""

    pass


class AuthorizationError(Exception):
    """
    Base class for rejections reported by the Ani server or the provider policy.
    """

    error_kind: ClassVar[FlowErrorKind]

    def __init__(self, detail: str | None = None):
        super().__init__(detail)
        self.detail = detail


class NotSupportedForRegistration(AuthorizationError):
    """This OAuth provider cannot be used to register a new Ani user."""

    error_kind = FlowErrorKind.NOT_SUPPORTED_FOR_REGISTRATION


class InvalidProviderTokenError(AuthorizationError):
    """The Bangumi token received on callback was rejected (HTTP 400)."""

    error_kind = FlowErrorKind.INVALID_PROVIDER_TOKEN


class AlreadyBoundError(AuthorizationError):
    """The Bangumi account is already bound to another Ani account (HTTP 409)."""

    error_kind = FlowErrorKind.ALREADY_BOUND
