"""Pytest configuration and shared fixtures"""

import json
import os
import threading
from urllib.parse import parse_qs, urlsplit

import pytest

from wecom_push.client import WeComClient
from wecom_push.config import Config
from wecom_push.consts import SEND_URL_PATH, TOKEN_URL_PATH, UPLOAD_URL_PATH

TEST_BASE_URL = "https://test.wecom.io"


def ok(**fields):
    """Encode a successful provider response body"""
    return json.dumps({"errcode": 0, "errmsg": "ok", **fields}).encode()


def err(code, message="error"):
    """Encode a failed provider response body"""
    return json.dumps({"errcode": code, "errmsg": message}).encode()


class FakeTransport:
    """Scripted transport that records every request.

    Token requests hand out token-1, token-2, ... unless token_responses is
    set. Send and upload requests pop the next scripted body, falling back
    to a success response when the script runs out.
    """

    def __init__(self):
        self.calls = []
        self.token_responses = []
        self.send_responses = []
        self.upload_responses = []
        self.tokens_issued = 0
        self._lock = threading.Lock()

    def execute(self, method, url, headers, body=None):
        parts = urlsplit(url)
        query = {k: v[0] for k, v in parse_qs(parts.query).items()}
        with self._lock:
            self.calls.append(
                {
                    "method": method,
                    "path": parts.path,
                    "query": query,
                    "headers": dict(headers),
                    "body": body,
                }
            )
            if parts.path == TOKEN_URL_PATH:
                if self.token_responses:
                    return self.token_responses.pop(0)
                self.tokens_issued += 1
                return ok(access_token=f"token-{self.tokens_issued}", expires_in=7200)
            if parts.path == UPLOAD_URL_PATH:
                if self.upload_responses:
                    return self.upload_responses.pop(0)
                return ok(type=query.get("type"), media_id="media-1", created_at="1")
            if parts.path == SEND_URL_PATH:
                if self.send_responses:
                    return self.send_responses.pop(0)
                return ok()
        raise AssertionError(f"unexpected request to {url}")

    def calls_to(self, path):
        return [call for call in self.calls if call["path"] == path]

    @property
    def token_calls(self):
        return self.calls_to(TOKEN_URL_PATH)

    @property
    def send_calls(self):
        return self.calls_to(SEND_URL_PATH)

    @property
    def upload_calls(self):
        return self.calls_to(UPLOAD_URL_PATH)


@pytest.fixture
def config():
    """Config fixture pointing at a fake base URL"""
    return Config(base_url=TEST_BASE_URL, log_level="DEBUG")


@pytest.fixture
def transport():
    """Scripted fake transport"""
    return FakeTransport()


@pytest.fixture
def client(config, transport):
    """WeComClient wired to the fake transport"""
    return WeComClient("corp-id", "corp-secret", config=config, transport=transport)


@pytest.fixture
def clean_env():
    """Fixture that temporarily clears WECOM_* environment variables.

    This ensures Config tests see the true defaults without interference
    from environment variables that might be set in the user's shell.
    """
    wecom_vars = {
        key: value for key, value in os.environ.items() if key.startswith("WECOM_")
    }

    for key in wecom_vars:
        os.environ.pop(key, None)

    try:
        yield
    finally:
        for key, value in wecom_vars.items():
            os.environ[key] = value


@pytest.fixture
def clean_config(clean_env):
    """Fixture that provides a Config instance with clean environment."""
    return Config()
