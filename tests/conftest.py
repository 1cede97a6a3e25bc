import socket

import pytest

from oauth_listener import OAuthListener, RedirectTarget


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def port() -> int:
    return _free_port()


@pytest.fixture
def target(port) -> RedirectTarget:
    return RedirectTarget.from_uri(f"http://127.0.0.1:{port}/oauth-callback")


@pytest.fixture
async def listener(target):
    listener = OAuthListener(target=target, timeout_ms=10_000)
    await listener.start()
    yield listener
    await listener.close()
