"""WeCom Push Package

A client for sending WeCom application messages (text, image, voice, video
and file) with transparent access token management.
"""

from .auth import CredentialManager
from .client import WeComClient, get_client
from .config import Config, get_config, setup_logging
from .consts import PACKAGE_VERSION
from .exceptions import (
    AuthError,
    ConfigError,
    EncodingError,
    InvalidRequestError,
    ProviderError,
    TransportError,
    WeComError,
)
from .models import MediaMessage, MediaType, TextMessage
from .transport import HttpxTransport

__version__ = PACKAGE_VERSION

__all__ = [
    "__version__",
    "get_config",
    "get_client",
    "setup_logging",
    "Config",
    "WeComClient",
    "CredentialManager",
    "HttpxTransport",
    "MediaType",
    "TextMessage",
    "MediaMessage",
    "WeComError",
    "ConfigError",
    "TransportError",
    "EncodingError",
    "InvalidRequestError",
    "AuthError",
    "ProviderError",
]
