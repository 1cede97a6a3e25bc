# src/oauth_listener/__init__.py

from .callback_params import CallbackParams, parse_callback_params
from .constants import ANTIGRAVITY_REDIRECT_URI, AUTH_SUCCESS_REDIRECT_URL
from .errors import (
    BindConflictError,
    CallbackSocketError,
    CallbackTimeoutError,
    ClosedBeforeCallbackError,
    FailureReason,
    OAuthListenerError,
)
from .listener import ListenerState, OAuthListener, start_oauth_listener
from .redirect_target import RedirectTarget, default_redirect_target
from .result_channel import CallbackOutcome, ResultChannel

__all__ = [
    "ANTIGRAVITY_REDIRECT_URI",
    "AUTH_SUCCESS_REDIRECT_URL",
    "BindConflictError",
    "CallbackOutcome",
    "CallbackParams",
    "CallbackSocketError",
    "CallbackTimeoutError",
    "ClosedBeforeCallbackError",
    "FailureReason",
    "ListenerState",
    "OAuthListener",
    "OAuthListenerError",
    "RedirectTarget",
    "ResultChannel",
    "default_redirect_target",
    "parse_callback_params",
    "start_oauth_listener",
]
