"""HTTP transport and multipart encoding backed by httpx."""

import logging
from collections.abc import Mapping

import httpx

from .consts import USER_AGENT
from .exceptions import TransportError

logger = logging.getLogger("wecom-push.transport")


class HttpxTransport:
    """Blocking transport over an httpx.Client.

    Responsibilities:
    - Send requests and return raw response bodies
    - Translate httpx network errors into TransportError
    """

    def __init__(
        self,
        timeout_seconds: float = 30,
        http_client: httpx.Client | None = None,
    ):
        """Initialize HttpxTransport.

        Args:
            timeout_seconds: Request timeout when creating the HTTP client.
            http_client: HTTP client. If None, creates a new one that this
                transport owns and closes.
        """
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.Client(
            headers={"User-Agent": USER_AGENT},
            timeout=timeout_seconds,
            follow_redirects=True,
        )

    def execute(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None = None,
    ) -> bytes:
        """Send one request and return the response body.

        Raises:
            TransportError: For network errors, timeouts, DNS failures.
        """
        # Query strings carry the access token; log the path only.
        path = httpx.URL(url).path
        logger.debug(f"{method} {path}")
        try:
            response = self.http_client.request(
                method, url, headers=dict(headers), content=body
            )
            content = response.read()
        except httpx.RequestError as e:
            raise TransportError(
                f"Network error: {e}",
                errors=[str(e)],
                suggestions=[
                    "Check your internet connection",
                    "Try again - this may be a temporary network issue",
                ],
                context={"method": method, "path": path},
            ) from e
        logger.debug(f"{method} {path} returned {response.status_code}")
        return content

    def close(self) -> None:
        if self._owns_client:
            self.http_client.close()


def encode_multipart(
    field_name: str, filename: str, content: bytes
) -> tuple[str, bytes]:
    """Build a single-part multipart/form-data body.

    The part's content type is guessed from the filename.

    Returns:
        Tuple of (content-type header with boundary, encoded body).
    """
    request = httpx.Request(
        "POST", "http://multipart.invalid", files={field_name: (filename, content)}
    )
    return request.headers["content-type"], request.read()
