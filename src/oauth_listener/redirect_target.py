# src/oauth_listener/redirect_target.py

from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlsplit

from yarl import URL

from .constants import ANTIGRAVITY_REDIRECT_URI


@dataclass(frozen=True)
class RedirectTarget:
    """
    Where the identity provider sends the browser back to.

    Built once from the configured redirect URI and handed to each listener.
    """

    scheme: str
    host: str
    port: int
    path: str
    origin: str

    @classmethod
    def from_uri(cls, uri: str) -> "RedirectTarget":
        parts = urlsplit(uri)
        if not parts.scheme or not parts.hostname:
            raise ValueError(f"Redirect URI must be absolute: {uri!r}")

        port = parts.port
        if port is None:
            port = 443 if parts.scheme == "https" else 80
        elif port == 0:
            raise ValueError(f"Redirect URI port must be between 1 and 65535: {uri!r}")

        # Drop any userinfo, keep host[:port] exactly as written
        netloc = parts.netloc.rpartition("@")[2]
        return cls(
            scheme=parts.scheme,
            host=parts.hostname,
            port=port,
            path=parts.path or "/",
            origin=f"{parts.scheme}://{netloc}",
        )

    @property
    def redirect_uri(self) -> str:
        return f"{self.origin}{self.path}"

    def resolve(self, request_target: str) -> URL:
        """
        Resolves an inbound request target against this origin.

        Raises ValueError when the target is missing or cannot be parsed.
        """
        if not request_target:
            raise ValueError("Request has no target")
        try:
            return URL(self.origin).join(URL(request_target, encoded=True))
        except (TypeError, ValueError) as e:
            raise ValueError(f"Unparseable request target {request_target!r}: {e}") from e

    def matches(self, url: URL) -> bool:
        return url.raw_path == self.path


@lru_cache(maxsize=None)
def default_redirect_target() -> RedirectTarget:
    """The target for ANTIGRAVITY_REDIRECT_URI, parsed once per process."""
    return RedirectTarget.from_uri(ANTIGRAVITY_REDIRECT_URI)
