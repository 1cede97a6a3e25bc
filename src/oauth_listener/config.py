# src/oauth_listener/config.py

import os
import logging

from .constants import DEFAULT_CALLBACK_TIMEOUT_MS

lib_logger = logging.getLogger("oauth_listener")

TIMEOUT_ENV_VAR = "ANTIGRAVITY_OAUTH_TIMEOUT_MS"


def get_callback_timeout_ms() -> int:
    """
    Returns the default callback timeout in milliseconds.

    Reads ANTIGRAVITY_OAUTH_TIMEOUT_MS from the environment; unset, invalid or
    non-positive values fall back to the 5 minute default.
    """
    timeout_str = os.getenv(TIMEOUT_ENV_VAR)
    if not timeout_str:
        return DEFAULT_CALLBACK_TIMEOUT_MS
    try:
        timeout_ms = int(timeout_str)
    except ValueError:
        lib_logger.warning(
            f"Invalid {TIMEOUT_ENV_VAR} '{timeout_str}'. Falling back to {DEFAULT_CALLBACK_TIMEOUT_MS}ms."
        )
        return DEFAULT_CALLBACK_TIMEOUT_MS
    if timeout_ms <= 0:
        lib_logger.warning(
            f"{TIMEOUT_ENV_VAR} must be positive, got {timeout_ms}. Falling back to {DEFAULT_CALLBACK_TIMEOUT_MS}ms."
        )
        return DEFAULT_CALLBACK_TIMEOUT_MS
    return timeout_ms
