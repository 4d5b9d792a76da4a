"""Tests for request and response models"""

from collections import UserList

import pytest
from pydantic import ValidationError

from wecom_push.exceptions import EncodingError
from wecom_push.models import (
    MediaMessage,
    MediaType,
    ProviderResponse,
    TextMessage,
    TokenResponse,
    UploadResponse,
    join_recipients,
)


class TestProviderResponse:
    """Test parsing of provider outcome fields"""

    def test_parse_success(self):
        result = ProviderResponse.parse(b'{"errcode": 0, "errmsg": "ok"}')
        assert result.ok
        assert not result.is_credential_error

    def test_missing_errcode_means_success(self):
        result = ProviderResponse.parse(b'{"media_id": "abc"}')
        assert result.errcode == 0
        assert result.errmsg == ""
        assert result.ok

    @pytest.mark.parametrize("code", [42001, 40014, 41001])
    def test_credential_error_codes(self, code):
        result = ProviderResponse.parse(f'{{"errcode": {code}}}'.encode())
        assert not result.ok
        assert result.is_credential_error

    def test_other_error_is_not_credential_error(self):
        result = ProviderResponse.parse(b'{"errcode": 60020, "errmsg": "not allow"}')
        assert not result.ok
        assert not result.is_credential_error
        assert result.errmsg == "not allow"

    @pytest.mark.parametrize(
        "body", [b"", b"<html>bad gateway</html>", b"[1, 2]", b'{"errcode": "x"}']
    )
    def test_malformed_body(self, body):
        with pytest.raises(EncodingError) as exc_info:
            ProviderResponse.parse(body)
        assert exc_info.value.errors

    def test_token_response(self):
        result = TokenResponse.parse(
            b'{"errcode": 0, "errmsg": "ok", "access_token": "abc", "expires_in": 7200}'
        )
        assert result.access_token == "abc"
        assert result.expires_in == 7200


class TestUploadResponse:
    """Test media_id extraction"""

    def test_media_id(self):
        result = UploadResponse.parse(
            b'{"errcode": 0, "type": "image", "media_id": "1G6n", "created_at": "1380000000"}'
        )
        assert result.media_id == "1G6n"
        assert result.type == "image"

    def test_missing_media_id(self):
        with pytest.raises(EncodingError):
            UploadResponse.parse(b'{"errcode": 0, "errmsg": "ok"}')

    @pytest.mark.parametrize("value", ["123", "null", "[]"])
    def test_media_id_not_a_string(self, value):
        with pytest.raises(EncodingError):
            UploadResponse.parse(f'{{"errcode": 0, "media_id": {value}}}'.encode())


class TestMessages:
    """Test outbound message payload shapes"""

    def test_text_payload(self):
        message = TextMessage(touser="zhangsan", agentid=1000002, content="hello")
        assert message.to_payload() == {
            "touser": "zhangsan",
            "msgtype": "text",
            "agentid": 1000002,
            "text": {"content": "hello"},
            "safe": 0,
        }

    def test_recipient_list_is_joined(self):
        message = TextMessage(touser=["a", "b", "c"], agentid=1, content="hi")
        assert message.touser == "a|b|c"

    def test_any_sequence_of_recipients_is_joined(self):
        message = TextMessage(touser=UserList(["a", "b"]), agentid=1, content="hi")
        assert message.touser == "a|b"

    def test_join_recipients(self):
        assert join_recipients("@all") == "@all"
        assert join_recipients(("a", "b")) == "a|b"

    def test_empty_recipient_rejected(self):
        with pytest.raises(ValidationError):
            TextMessage(touser="", agentid=1, content="hi")

    def test_messages_are_immutable(self):
        message = TextMessage(touser="a", agentid=1, content="hi")
        with pytest.raises(ValidationError):
            message.content = "changed"

    @pytest.mark.parametrize("media_type", list(MediaType))
    def test_media_payload_keyed_by_type(self, media_type):
        message = MediaMessage(
            touser="a", agentid=7, media_type=media_type, media_id="m-1"
        )
        payload = message.to_payload()
        assert payload["msgtype"] == media_type.value
        assert payload[media_type.value] == {"media_id": "m-1"}
        assert payload["safe"] == 0
        assert payload["agentid"] == 7

    def test_video_payload_with_title_and_description(self):
        message = MediaMessage(
            touser="a",
            agentid=7,
            media_type="video",
            media_id="m-1",
            title="Demo",
            description="Quarterly review",
        )
        assert message.to_payload()["video"] == {
            "media_id": "m-1",
            "title": "Demo",
            "description": "Quarterly review",
        }

    def test_unknown_media_type_rejected(self):
        with pytest.raises(ValidationError):
            MediaMessage(touser="a", agentid=7, media_type="gif", media_id="m-1")
