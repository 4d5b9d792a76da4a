"""WeCom client: sends application messages through a managed access token."""

import json
import logging
import threading
from collections.abc import Callable, Sequence
from functools import cache
from typing import Any
from urllib.parse import urlencode

from pydantic import ValidationError

from .auth import CredentialManager
from .config import Config, get_config
from .consts import CREDENTIAL_ERROR_REASONS, UPLOAD_FIELD_NAME
from .exceptions import ConfigError, InvalidRequestError, ProviderError
from .models import (
    MediaMessage,
    MediaType,
    Message,
    ProviderResponse,
    RetryState,
    TextMessage,
    UploadResponse,
)
from .protocols import Transport
from .transport import HttpxTransport, encode_multipart

logger = logging.getLogger("wecom-push.client")

JSON_HEADERS = {"content-type": "application/json", "accept": "application/json"}

# Transmits one request with the given access token, returns the raw body.
RequestBuilder = Callable[[str], bytes]


class WeComClient:
    """WeCom application message client.

    Responsibilities:
    - Send text and media messages on behalf of an application
    - Recover from expired or invalid access tokens transparently

    Safe to share between threads. Two locks guard disjoint state: the
    credential manager's init lock covers the first token fetch, and the push
    lock covers the recovery state. Ordinary sends take neither lock around
    their network call.
    """

    def __init__(
        self,
        corp_id: str,
        corp_secret: str,
        config: Config | None = None,
        transport: Transport | None = None,
    ):
        """Initialize WeComClient.

        Args:
            corp_id: WeCom corp id.
            corp_secret: Secret of the sending application.
            config: Config instance. If None, uses get_config().
            transport: HTTP transport. If None, creates an HttpxTransport
                that is closed by close().
        """
        self.config = config or get_config()
        self._owns_transport = transport is None
        self.transport = transport or HttpxTransport(self.config.timeout_seconds)
        self.credentials = CredentialManager(
            corp_id, corp_secret, self.config, self.transport
        )
        self._push_lock = threading.Lock()
        self._retry_state = RetryState.NORMAL

        logger.info(f"WeCom client created for {self.config.base_url}")

    @property
    def retry_state(self) -> RetryState:
        return self._retry_state

    def dispatch(self, build_request: RequestBuilder) -> bytes:
        """Submit a request that needs the access token, recovering from token errors.

        build_request is called with the current token and may be called again
        after the token is refreshed.

        Args:
            build_request: Callable that transmits the request using the
                given token and returns the raw response body.

        Returns:
            Raw body of the successful response.

        Raises:
            AuthError: If a token cannot be obtained.
            TransportError: For network errors.
            EncodingError: If a response body is not valid JSON.
            ProviderError: For non-token errors, or when token errors persist
                after max_credential_retries resubmissions.
        """
        token = self.credentials.ensure_credential()
        resubmissions = 0

        while True:
            body = build_request(token)
            result = ProviderResponse.parse(body)

            if result.ok:
                if self._retry_state is not RetryState.NORMAL:
                    with self._push_lock:
                        self._retry_state = RetryState.NORMAL
                return body

            if not result.is_credential_error:
                logger.warning(f"Request rejected: [{result.errcode}] {result.errmsg}")
                raise ProviderError(result.errcode, result.errmsg)

            if resubmissions >= self.config.max_credential_retries:
                logger.error(
                    f"Access token still rejected after {resubmissions} resubmissions"
                )
                raise ProviderError(
                    result.errcode,
                    result.errmsg,
                    suggestions=["Verify the application secret has not been reset"],
                    context={"resubmissions": resubmissions},
                )
            resubmissions += 1
            token = self._recover(token, result)

    def _recover(self, failed_token: str, result: ProviderResponse) -> str:
        """Decide whether to refresh the token, then return the token to retry with.

        A failure streak refreshes once; if the request fails again with the
        refreshed token, the next attempt retries without refreshing, and the
        one after that refreshes again.
        """
        with self._push_lock:
            current = self.credentials.token
            if current and current != failed_token:
                # Another thread refreshed while this request was in flight.
                logger.debug("Access token already refreshed, resubmitting")
                return current

            if self._retry_state is RetryState.NORMAL:
                logger.warning(
                    f"{CREDENTIAL_ERROR_REASONS[result.errcode]} "
                    f"(errcode {result.errcode}), refreshing"
                )
                token = self.credentials.refresh_credential()
                # Only a completed refresh starts waiting on its result.
                self._retry_state = RetryState.AWAITING_REFRESH_RESULT
                return token

            logger.debug("Refreshed token was rejected, resubmitting without refresh")
            self._retry_state = RetryState.NORMAL
            return failed_token

    def send_text(
        self, touser: str | Sequence[str], agentid: int, content: str
    ) -> None:
        """Send a text message.

        Args:
            touser: User id, list of user ids, or "@all".
            agentid: Id of the sending application.
            content: Message text.

        Raises:
            InvalidRequestError: If the recipient or agent id is invalid.
        """
        message = _build(TextMessage, touser=touser, agentid=agentid, content=content)
        self._send_message(message)
        logger.info(f"Text message sent to {message.touser}")

    def upload_media(
        self, content: bytes, media_type: MediaType | str, filename: str
    ) -> str:
        """Upload temporary media and return its media id.

        The provider keeps temporary media for three days; do not cache the
        returned id beyond that.

        Raises:
            InvalidRequestError: If media_type is not a known media type.
            EncodingError: If the response has no string media_id.
        """
        media_type = _media_type(media_type)
        content_type, payload = encode_multipart(UPLOAD_FIELD_NAME, filename, content)
        headers = {"content-type": content_type, "accept": "application/json"}

        def build_request(token: str) -> bytes:
            query = urlencode({"access_token": token, "type": media_type.value})
            return self.transport.execute(
                "POST", f"{self.config.upload_url}?{query}", headers, payload
            )

        body = self.dispatch(build_request)
        media_id = UploadResponse.parse(body).media_id
        logger.debug(f"Uploaded {media_type.value} {filename!r} as {media_id}")
        return media_id

    def send_file(
        self,
        touser: str | Sequence[str],
        agentid: int,
        content: bytes,
        media_type: MediaType | str,
        filename: str,
        title: str | None = None,
        description: str | None = None,
    ) -> None:
        """Upload content and send it as an image, voice, video or file message.

        Args:
            touser: User id, list of user ids, or "@all".
            agentid: Id of the sending application.
            content: Raw bytes of the media.
            media_type: One of image, voice, video, file.
            filename: Name shown to recipients; also used to guess the
                content type of the upload.
            title: Video title (ignored for other media types).
            description: Video description (ignored for other media types).

        Raises:
            InvalidRequestError: If the recipient, agent id or media type is
                invalid. Nothing is uploaded in that case.
        """
        media_type = _media_type(media_type)
        recipient = _build(Message, touser=touser, agentid=agentid)
        media_id = self.upload_media(content, media_type, filename)
        message = _build(
            MediaMessage,
            touser=recipient.touser,
            agentid=recipient.agentid,
            media_type=media_type,
            media_id=media_id,
            title=title,
            description=description,
        )
        self._send_message(message)
        logger.info(f"{media_type.value} message sent to {message.touser}")

    def _send_message(self, message: TextMessage | MediaMessage) -> bytes:
        payload = json.dumps(message.to_payload(), ensure_ascii=False).encode("utf-8")

        def build_request(token: str) -> bytes:
            query = urlencode({"access_token": token})
            return self.transport.execute(
                "POST", f"{self.config.send_url}?{query}", JSON_HEADERS, payload
            )

        return self.dispatch(build_request)

    def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport:
            self.transport.close()

    def __enter__(self) -> "WeComClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()



def _media_type(value: MediaType | str) -> MediaType:
    try:
        return MediaType(value)
    except ValueError as e:
        raise InvalidRequestError(
            f"Unknown media type: {value!r}",
            suggestions=[f"Use one of: {', '.join(MediaType)}"],
        ) from e


def _build(model: type[Message], **fields: Any) -> Any:
    """Construct a message model, reporting bad caller input as InvalidRequestError."""
    try:
        return model(**fields)
    except ValidationError as e:
        raise InvalidRequestError(
            f"Invalid {model.__name__}",
            errors=[
                f"{'.'.join(map(str, err['loc']))}: {err['msg']}"
                for err in e.errors()
            ],
        ) from e


@cache
def get_client() -> WeComClient:
    """Get a cached WeComClient built from WECOM_* settings.

    Raises:
        ConfigError: If WECOM_CORP_ID or WECOM_CORP_SECRET is not set.
    """
    config = get_config()
    missing = [
        name
        for name, value in (
            ("WECOM_CORP_ID", config.corp_id),
            ("WECOM_CORP_SECRET", config.corp_secret),
        )
        if not value
    ]
    if missing:
        raise ConfigError(
            "WeCom credentials are not configured",
            errors=[f"Missing setting: {name}" for name in missing],
            suggestions=["Set WECOM_CORP_ID and WECOM_CORP_SECRET"],
        )
    return WeComClient(config.corp_id, config.corp_secret, config)
