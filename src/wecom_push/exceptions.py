"""WeCom push custom exceptions.

Exception Design Principles:
1. Wrap library exceptions (httpx, pydantic) at the boundary where the
   request context is known, and chain them with ``raise ... from``
2. Split on who can act on the failure:
   - Recoverable by user reconfiguration (ConfigError, AuthError)
   - Possibly transient, caller may retry the whole operation (TransportError)
   - Provider contract violations, not retryable (EncodingError)
   - Application-level rejections by the provider (ProviderError)
   - Bad caller input, rejected before any request (InvalidRequestError)
"""


class WeComError(Exception):
    """Base exception for all WeCom push errors.

    Provides rich context and actionable suggestions beyond standard exceptions.
    All WeCom push custom exceptions inherit from this base class.
    """

    def __init__(
        self,
        message: str,  # the error message
        *,
        errors: list[str] = None,  # detailed list of errors (if available)
        suggestions: list[str] = None,  # remedial actions
        context: dict = None,  # additional detailed context
    ):
        """Initialize WeComError.

        Args:
            message: Primary error message for users
            errors: List of specific error details
            suggestions: List of actionable suggestions for resolution
            context: Additional context information as key-value pairs
        """
        super().__init__(message)
        self.message = message
        self.errors = errors or []
        self.suggestions = suggestions or []
        self.context = context or {}


class ConfigError(WeComError):
    """Client configuration errors - recoverable by user reconfiguration.

    Raised when a client is requested from configuration but the corp id or
    corp secret is not set.
    """

    pass


class TransportError(WeComError):
    """Network or I/O failure while talking to the provider.

    Wraps httpx.RequestError (connection refused, DNS failure, timeout).
    The request may or may not have reached the provider.
    """

    pass


class EncodingError(WeComError):
    """Malformed provider response.

    The body was not JSON, or a field the caller depends on (access_token,
    media_id) was missing or had the wrong type.
    """

    pass


class AuthError(WeComError):
    """The token endpoint rejected the corp id / corp secret pair."""

    def __init__(self, message: str, *, code: int | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.code = code


class ProviderError(WeComError):
    """Application-level rejection of a request, carrying the provider errcode.

    Also raised when the provider keeps rejecting the access token after the
    credential recovery attempts are exhausted.
    """

    def __init__(self, code: int, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.code = code

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class InvalidRequestError(WeComError, ValueError):
    """Caller input rejected before any request is sent.

    Raised for an unknown media type, an empty recipient or a non-integer
    agent id. Nothing reaches the provider when this is raised.
    """

    pass
