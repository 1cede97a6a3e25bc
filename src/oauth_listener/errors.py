from enum import Enum
from typing import Optional


class FailureReason(str, Enum):
    """Why a listener produced no callback URL."""

    BIND_CONFLICT = "bind-conflict"
    BIND_ERROR = "bind-error"
    TIMEOUT = "timeout"
    CLOSED_BEFORE_CALLBACK = "closed-before-callback"
    SOCKET_ERROR = "socket-error"


class OAuthListenerError(Exception):
    """Base class for every failure a listener can report."""

    def __init__(self, message: str, reason: FailureReason):
        super().__init__(message)
        self.reason = reason


class BindConflictError(OAuthListenerError):
    """Raised when the callback port is already occupied by another process."""

    def __init__(self, port: int):
        super().__init__(
            f"Port {port} is already in use. "
            f"Another process is occupying this port. "
            f"Please terminate the process or try again later.",
            FailureReason.BIND_CONFLICT,
        )
        self.port = port


class CallbackTimeoutError(OAuthListenerError):
    """Raised when no callback arrived within the configured window."""

    def __init__(self, timeout_ms: int):
        super().__init__(
            f"Timed out waiting for OAuth callback after {timeout_ms}ms",
            FailureReason.TIMEOUT,
        )
        self.timeout_ms = timeout_ms


class ClosedBeforeCallbackError(OAuthListenerError):
    """Raised when the listener was closed while still waiting."""

    def __init__(self):
        super().__init__(
            "OAuth listener closed before callback",
            FailureReason.CLOSED_BEFORE_CALLBACK,
        )


class CallbackSocketError(OAuthListenerError):
    """Raised when the listening socket failed after it was bound."""

    def __init__(self, error: Optional[BaseException] = None):
        message = "OAuth listener socket error"
        if error is not None:
            message = f"{message}: {error}"
        super().__init__(message, FailureReason.SOCKET_ERROR)
