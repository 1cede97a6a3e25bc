# src/oauth_listener/listener.py

import errno
import asyncio
import logging
from enum import Enum
from typing import Optional

from aiohttp import web
from yarl import URL

from .config import get_callback_timeout_ms
from .constants import AUTH_SUCCESS_REDIRECT_URL, CALLBACK_CORS_HEADERS
from .errors import (
    BindConflictError,
    CallbackSocketError,
    CallbackTimeoutError,
    ClosedBeforeCallbackError,
    FailureReason,
    OAuthListenerError,
)
from .redirect_target import RedirectTarget, default_redirect_target
from .result_channel import CallbackOutcome, ResultChannel
from .timeout_guard import TimeoutGuard

lib_logger = logging.getLogger("oauth_listener")

# Windows reports an occupied port as WSAEADDRINUSE
WSAEADDRINUSE = 10048


class ListenerState(Enum):
    STARTING = "starting"
    LISTENING = "listening"
    SETTLED = "settled"
    CLOSED = "closed"
    FAILED = "failed"


def _is_address_in_use(error: OSError) -> bool:
    return error.errno == errno.EADDRINUSE or getattr(error, "winerror", None) == WSAEADDRINUSE


class OAuthListener:
    """
    Loopback HTTP server that captures the OAuth redirect.

    The first request on the callback path is answered with a redirect to the
    success page and its full URL becomes the result; the server then shuts
    itself down. A timeout or an explicit close() settles the result with a
    failure instead, whichever happens first.
    """

    def __init__(
        self,
        target: Optional[RedirectTarget] = None,
        timeout_ms: Optional[int] = None,
        success_redirect_url: str = AUTH_SUCCESS_REDIRECT_URL,
    ):
        self.target = target or default_redirect_target()
        self.timeout_ms = timeout_ms if timeout_ms is not None else get_callback_timeout_ms()
        self.success_redirect_url = success_redirect_url
        self.state = ListenerState.STARTING

        self.app = web.Application(middlewares=[self._transport_error_middleware])
        self.app.router.add_route("*", "/{tail:.*}", self._handle_request)
        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.TCPSite] = None

        self._channel: Optional[ResultChannel] = None
        self._timeout_guard: Optional[TimeoutGuard] = None
        self._teardown_task: Optional[asyncio.Task] = None
        self._teardown_reported = False

    @property
    def outcome(self) -> Optional[CallbackOutcome]:
        return self._channel.outcome if self._channel else None

    @property
    def is_serving(self) -> bool:
        """True while the socket is bound and teardown has not begun."""
        return self.site is not None and self._teardown_task is None

    async def start(self) -> "OAuthListener":
        """
        Binds the callback port and starts waiting for the redirect.

        Raises BindConflictError if the port is taken, or the original OSError
        for any other bind failure. Either way no socket is left open.
        """
        if self.state is not ListenerState.STARTING:
            raise RuntimeError(f"Listener cannot be started from state '{self.state.value}'")

        self._channel = ResultChannel()
        self._channel.on_settled(self._on_settled)

        self.runner = web.AppRunner(self.app, access_log=None)
        await self.runner.setup()
        site = web.TCPSite(self.runner, self.target.host, self.target.port)
        try:
            await site.start()
        except OSError as e:
            self.state = ListenerState.FAILED
            await self.runner.cleanup()
            self.runner = None
            if _is_address_in_use(e):
                error = BindConflictError(self.target.port)
                self._channel.fail(error)
                lib_logger.error(str(error))
                raise error from e
            self._channel.fail(OAuthListenerError(str(e), FailureReason.BIND_ERROR))
            lib_logger.error(f"Failed to bind OAuth callback server on port {self.target.port}: {e}")
            raise

        self.site = site
        self.state = ListenerState.LISTENING
        self._timeout_guard = TimeoutGuard(self.timeout_ms / 1000, self._on_timeout)
        self._timeout_guard.arm()
        lib_logger.debug(
            f"OAuth callback server listening on {self.target.host}:{self.target.port} "
            f"(callback path '{self.target.path}', timeout {self.timeout_ms}ms)"
        )
        return self

    async def wait_for_callback(self) -> URL:
        """Returns the captured callback URL, or raises why there is none."""
        if self._channel is None:
            raise RuntimeError("Listener has not been started")
        return await self._channel.wait()

    async def close(self):
        """
        Stops listening. Safe to call any number of times.

        A caller still waiting in wait_for_callback() gets
        ClosedBeforeCallbackError.
        """
        if self._channel is not None and not self._channel.settled:
            self._channel.fail(ClosedBeforeCallbackError())
        if self.site is None:
            # Never bound, nothing to tear down
            return
        teardown = self._schedule_teardown()
        if teardown.done() and self._teardown_reported:
            return
        self._teardown_reported = True
        await asyncio.shield(teardown)

    async def __aenter__(self) -> "OAuthListener":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _schedule_teardown(self) -> asyncio.Task:
        if self._teardown_task is None:
            self._teardown_task = asyncio.ensure_future(self._teardown())
        return self._teardown_task

    async def _teardown(self):
        try:
            if self.runner is not None:
                await self.runner.cleanup()
        except Exception as e:
            lib_logger.error(f"Error stopping OAuth callback server on port {self.target.port}: {e}")
            raise
        finally:
            self.state = ListenerState.CLOSED
        lib_logger.debug(f"OAuth callback server on port {self.target.port} stopped")

    def _on_settled(self, outcome: CallbackOutcome):
        if self._timeout_guard is not None:
            self._timeout_guard.cancel()
        if self.state is ListenerState.LISTENING:
            self.state = ListenerState.SETTLED

    def _on_timeout(self):
        lib_logger.warning(
            f"No OAuth callback received on port {self.target.port} within {self.timeout_ms}ms"
        )
        self._channel.fail(CallbackTimeoutError(self.timeout_ms))

    def _on_transport_error(self, error: BaseException):
        if self._channel.fail(CallbackSocketError(error)):
            lib_logger.error(f"OAuth callback server socket error: {error}")
        else:
            lib_logger.debug(f"Socket error after the OAuth callback was settled: {error}")

    @web.middleware
    async def _transport_error_middleware(self, request: web.Request, handler):
        try:
            return await handler(request)
        except OSError as e:
            self._on_transport_error(e)
            raise

    async def _handle_request(self, request: web.Request) -> web.StreamResponse:
        try:
            url = self.target.resolve(request.raw_path)
        except ValueError:
            return web.Response(status=400, body=b"Invalid request", content_type="text/plain")

        if not self.target.matches(url):
            return web.Response(status=404, body=b"Not found", content_type="text/plain")

        response = web.Response(
            status=302,
            headers={"Location": self.success_redirect_url, **CALLBACK_CORS_HEADERS},
        )
        # Flush the redirect before settling so a caller reacting to the result
        # cannot tear the socket down under the browser
        try:
            await response.prepare(request)
            await response.write_eof()
        except ConnectionResetError as e:
            lib_logger.warning(f"Browser disconnected before the success redirect was sent: {e}")

        if self._channel.succeed(url):
            lib_logger.info(f"OAuth callback received on {url.path}")
        else:
            lib_logger.warning("Discarding duplicate OAuth callback, result already settled")

        self._schedule_teardown()
        return response


async def start_oauth_listener(
    timeout_ms: Optional[int] = None,
    target: Optional[RedirectTarget] = None,
) -> OAuthListener:
    """
    Starts a listener for the Antigravity OAuth redirect.

    Returns the running listener; await wait_for_callback() on it for the
    captured URL and close() it when done.
    """
    listener = OAuthListener(target=target, timeout_ms=timeout_ms)
    return await listener.start()
