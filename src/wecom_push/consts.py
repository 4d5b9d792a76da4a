"""High-value constants for the WeCom push package."""

# Package metadata
PACKAGE_VERSION = "1.0.0"
CLIENT_NAME = "wecom-push"
USER_AGENT = f"{CLIENT_NAME}/{PACKAGE_VERSION}"

# External API contract consts
DEFAULT_BASE_URL = "https://qyapi.weixin.qq.com"
TOKEN_URL_PATH = "/cgi-bin/gettoken"
SEND_URL_PATH = "/cgi-bin/message/send"
UPLOAD_URL_PATH = "/cgi-bin/media/upload"
UPLOAD_FIELD_NAME = "media"

# Provider error codes that mean the access token must be refreshed
ERRCODE_OK = 0
ERRCODE_TOKEN_EXPIRED = 42001
ERRCODE_TOKEN_INVALID = 40014
ERRCODE_TOKEN_MISSING = 41001
CREDENTIAL_ERROR_REASONS = {
    ERRCODE_TOKEN_EXPIRED: "access_token expired",
    ERRCODE_TOKEN_INVALID: "access_token invalid",
    ERRCODE_TOKEN_MISSING: "access_token missing or incorrect",
}

# Business logic consts
SAFE_MODE_OFF = 0  # "safe" flag: 0 = do not encrypt message content
DEFAULT_MAX_CREDENTIAL_RETRIES = 2
