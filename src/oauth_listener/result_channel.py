# src/oauth_listener/result_channel.py

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from yarl import URL

from .errors import OAuthListenerError

lib_logger = logging.getLogger("oauth_listener")


@dataclass(frozen=True)
class CallbackOutcome:
    """Either the captured callback URL or the reason there is none."""

    url: Optional[URL] = None
    failure: Optional[OAuthListenerError] = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class ResultChannel:
    """
    One-shot holder for a listener's outcome.

    succeed() and fail() may be called any number of times from the request
    handler, the timeout guard and close(); only the first call counts.
    """

    def __init__(self):
        self._future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._outcome: Optional[CallbackOutcome] = None
        self._settled_callbacks: List[Callable[[CallbackOutcome], None]] = []

    @property
    def settled(self) -> bool:
        return self._outcome is not None

    @property
    def outcome(self) -> Optional[CallbackOutcome]:
        return self._outcome

    def on_settled(self, callback: Callable[[CallbackOutcome], None]):
        """Registers a callback run synchronously on the first settlement."""
        if self._outcome is not None:
            callback(self._outcome)
            return
        self._settled_callbacks.append(callback)

    def succeed(self, url: URL) -> bool:
        return self._settle(CallbackOutcome(url=url))

    def fail(self, error: OAuthListenerError) -> bool:
        return self._settle(CallbackOutcome(failure=error))

    def _settle(self, outcome: CallbackOutcome) -> bool:
        if self._outcome is not None:
            lib_logger.debug(f"Ignoring late settlement, outcome already fixed: {outcome}")
            return False
        self._outcome = outcome
        self._future.set_result(outcome)

        callbacks, self._settled_callbacks = self._settled_callbacks, []
        for callback in callbacks:
            callback(outcome)
        return True

    async def wait(self) -> URL:
        """
        Returns the captured URL, or raises the failure.

        Safe for any number of observers; cancelling one of them leaves the
        shared result untouched.
        """
        outcome = await asyncio.shield(self._future)
        if outcome.failure is not None:
            raise outcome.failure.with_traceback(None)
        return outcome.url
