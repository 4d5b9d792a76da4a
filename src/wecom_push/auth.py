"""Access token management for the WeCom API."""

import logging
import threading
from urllib.parse import urlencode

from .config import Config
from .exceptions import AuthError, EncodingError
from .models import TokenResponse
from .protocols import Transport

logger = logging.getLogger("wecom-push.auth")


class CredentialManager:
    """Access token manager.

    Responsibilities:
    - Fetch the access token lazily on first use
    - Refresh the token on demand
    - Serialize the first-use check-and-fetch across threads

    The token is held in memory only and lives as long as this instance.
    """

    def __init__(
        self, corp_id: str, corp_secret: str, config: Config, transport: Transport
    ):
        """Initialize CredentialManager.

        Args:
            corp_id: WeCom corp id.
            corp_secret: Secret of the sending application.
            config: Config instance with endpoint settings.
            transport: HTTP transport (for token requests only).
        """
        self.corp_id = corp_id
        self._corp_secret = corp_secret
        self.config = config
        self.transport = transport
        self._access_token: str | None = None
        self._expires_in: int | None = None
        self._init_lock = threading.Lock()

    @property
    def token(self) -> str | None:
        """Currently held access token, or None before the first fetch."""
        return self._access_token

    @property
    def expires_in(self) -> int | None:
        """Lifetime in seconds reported with the current token."""
        return self._expires_in

    def ensure_credential(self) -> str:
        """Return the held token, fetching one if none is held.

        Returns:
            Access token string.

        Raises:
            AuthError: If the token endpoint rejects the credentials.
            TransportError: If the token endpoint cannot be reached.
            EncodingError: If the token response is malformed.
        """
        with self._init_lock:
            if not self._access_token:
                self._fetch()
            return self._access_token

    def refresh_credential(self) -> str:
        """Fetch a new token unconditionally, replacing the held one."""
        logger.debug("Refreshing access token")
        self._fetch()
        return self._access_token

    def _fetch(self) -> None:
        """Request a token from the gettoken endpoint and store it."""
        query = urlencode({"corpid": self.corp_id, "corpsecret": self._corp_secret})
        body = self.transport.execute(
            "POST",
            f"{self.config.token_url}?{query}",
            {"accept": "application/json"},
        )
        result = TokenResponse.parse(body)

        if not result.ok:
            logger.error(f"Token request rejected: [{result.errcode}] {result.errmsg}")
            raise AuthError(
                result.errmsg or f"Token request failed with errcode {result.errcode}",
                code=result.errcode,
                suggestions=[
                    "Verify the corp id and application secret",
                    "Check the application's trusted IP settings in the admin console",
                ],
                context={"corp_id": self.corp_id, "errcode": result.errcode},
            )

        if not result.access_token:
            raise EncodingError(
                "Token endpoint returned response without access_token",
                errors=["Missing required field: access_token"],
                suggestions=["This may indicate an API change"],
                context={"token_url": self.config.token_url},
            )

        self._access_token = result.access_token
        self._expires_in = result.expires_in
        logger.info(f"Access token obtained (expires in {result.expires_in}s)")
