# src/oauth_listener/timeout_guard.py

import asyncio
from typing import Callable, Optional


class TimeoutGuard:
    """
    Single-shot timer that fires on_expire unless cancelled first.

    Backed by loop.call_later, so a pending guard never keeps the process
    running on its own.
    """

    def __init__(self, delay_seconds: float, on_expire: Callable[[], None]):
        self._delay = delay_seconds
        self._on_expire = on_expire
        self._handle: Optional[asyncio.TimerHandle] = None
        self._fired = False
        self._finished = False

    @property
    def armed(self) -> bool:
        return self._handle is not None

    @property
    def fired(self) -> bool:
        return self._fired

    def arm(self):
        if self._handle is not None or self._finished:
            return
        self._handle = asyncio.get_running_loop().call_later(self._delay, self._expire)

    def cancel(self):
        self._finished = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _expire(self):
        self._handle = None
        self._finished = True
        self._fired = True
        self._on_expire()
