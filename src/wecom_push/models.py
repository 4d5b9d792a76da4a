from collections.abc import Sequence
from enum import Enum, StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .consts import CREDENTIAL_ERROR_REASONS, ERRCODE_OK, SAFE_MODE_OFF
from .exceptions import EncodingError

# =============================================================================
# PROVIDER RESPONSE MODELS
# =============================================================================
# Typed views over the JSON bodies returned by the provider. Every endpoint
# reports its outcome through errcode/errmsg; a missing errcode means success.


class ProviderResponse(BaseModel):
    """Outcome fields common to every provider response."""

    model_config = ConfigDict(extra="ignore")

    errcode: int = Field(ERRCODE_OK, description="Provider error code, 0 on success")
    errmsg: str = Field("", description="Provider error message")

    @property
    def ok(self) -> bool:
        return self.errcode == ERRCODE_OK

    @property
    def is_credential_error(self) -> bool:
        """True when the access token was expired, invalid or missing."""
        return self.errcode in CREDENTIAL_ERROR_REASONS

    @classmethod
    def parse(cls, body: bytes) -> "ProviderResponse":
        """Parse a raw response body, wrapping validation failures.

        Raises:
            EncodingError: If the body is not valid JSON or a declared field
                is missing or has the wrong type.
        """
        try:
            return cls.model_validate_json(body)
        except ValidationError as e:
            raise EncodingError(
                f"Malformed {cls.__name__} from provider",
                errors=[err["msg"] for err in e.errors()],
                context={"body": body[:200].decode("utf-8", errors="replace")},
            ) from e


class TokenResponse(ProviderResponse):
    """Body of the gettoken endpoint."""

    access_token: str = Field("", description="Bearer token for authenticated calls")
    expires_in: int = Field(0, description="Token lifetime in seconds")


class UploadResponse(ProviderResponse):
    """Body of the media upload endpoint after a successful upload."""

    media_id: str = Field(..., description="Reference to the uploaded media")
    type: str | None = Field(None, description="Media type echoed by the provider")
    created_at: str | None = Field(None, description="Upload timestamp")

    @field_validator("media_id", mode="before")
    @classmethod
    def _media_id_must_be_string(cls, value: Any) -> Any:
        # Reject numbers instead of letting lax mode coerce them.
        if not isinstance(value, str):
            raise ValueError("media_id must be a string")
        return value


# =============================================================================
# OUTBOUND MESSAGE MODELS
# =============================================================================


class MediaType(StrEnum):
    """Media classification accepted by the upload endpoint."""

    IMAGE = "image"
    VOICE = "voice"
    VIDEO = "video"
    FILE = "file"


class RetryState(Enum):
    """Position in the credential recovery protocol."""

    NORMAL = "normal"
    AWAITING_REFRESH_RESULT = "awaiting_refresh_result"


def join_recipients(touser: str | Sequence[str]) -> str:
    """Join user ids into the ``a|b|c`` form the provider expects."""
    if isinstance(touser, str):
        return touser
    return "|".join(touser)


class Message(BaseModel):
    """Fields shared by all application messages."""

    model_config = ConfigDict(frozen=True)

    touser: str = Field(..., min_length=1, description="User id(s), or @all")
    agentid: int = Field(..., description="Id of the sending application")

    @field_validator("touser", mode="before")
    @classmethod
    def _join_touser(cls, value: Any) -> Any:
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            return join_recipients(value)
        return value

    def to_payload(self) -> dict[str, Any]:
        raise NotImplementedError


class TextMessage(Message):
    """A plain text message."""

    msgtype: Literal["text"] = "text"
    content: str = Field(..., description="Message text")

    def to_payload(self) -> dict[str, Any]:
        return {
            "touser": self.touser,
            "msgtype": self.msgtype,
            "agentid": self.agentid,
            "text": {"content": self.content},
            "safe": SAFE_MODE_OFF,
        }


class MediaMessage(Message):
    """A message referencing previously uploaded media.

    title and description are only displayed for video messages.
    """

    media_type: MediaType = Field(..., description="Media classification")
    media_id: str = Field(..., min_length=1, description="Id returned by upload")
    title: str | None = Field(None, description="Video title")
    description: str | None = Field(None, description="Video description")

    def to_payload(self) -> dict[str, Any]:
        body = {"media_id": self.media_id}
        if self.title is not None:
            body["title"] = self.title
        if self.description is not None:
            body["description"] = self.description
        return {
            "touser": self.touser,
            "msgtype": self.media_type.value,
            "agentid": self.agentid,
            self.media_type.value: body,
            "safe": SAFE_MODE_OFF,
        }
