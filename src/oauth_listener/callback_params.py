# src/oauth_listener/callback_params.py

from dataclasses import dataclass
from typing import Optional

from yarl import URL


@dataclass(frozen=True)
class CallbackParams:
    """Authorization result carried in the callback URL's query string."""

    code: Optional[str] = None
    state: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


def parse_callback_params(url: URL) -> CallbackParams:
    """Extracts code, state and any provider error from a captured callback URL."""
    query = url.query
    return CallbackParams(
        code=query.get("code"),
        state=query.get("state"),
        error=query.get("error"),
        error_description=query.get("error_description"),
    )
