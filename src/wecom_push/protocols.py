"""Protocol definitions for dependency injection and interface contracts."""

from collections.abc import Mapping
from typing import Protocol


class Transport(Protocol):
    """Protocol for the blocking HTTP transport used by the client."""

    def execute(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None = None,
    ) -> bytes:
        """Send one HTTP request and return the raw response body.

        The HTTP status code is not inspected; the provider reports errors
        through errcode/errmsg in the body.

        Raises:
            TransportError: For network errors, timeouts, DNS failures.
        """
        ...
