"""HTTP 传输单元测试。"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from alipay_open.exceptions import TransportError
from alipay_open.services.transport import (
    FORM_CONTENT_TYPE,
    AsyncHttpxTransport,
    HttpxTransport,
    encode_multipart,
    form_content_type,
)

URL = "https://openapi.alipay.com/gateway.do"


def _mock_response(status_code=200, content=b'{"ok":true}'):
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    response.headers = {"content-type": "application/json;charset=utf-8"}
    response.url = URL
    response.raise_for_status = MagicMock()
    return response


def _mock_client(response=None, side_effect=None):
    mock_client = MagicMock()
    if side_effect is not None:
        mock_client.post.side_effect = side_effect
    else:
        mock_client.post.return_value = response
    mock_client.__enter__ = MagicMock(return_value=mock_client)
    mock_client.__exit__ = MagicMock(return_value=False)
    return mock_client


class TestHttpxTransport:

    @patch("alipay_open.services.transport.httpx.Client")
    def test_posts_body_with_content_type(self, mock_client_cls):
        mock_client = _mock_client(_mock_response())
        mock_client_cls.return_value = mock_client

        result = HttpxTransport(timeout=5.0).send(URL, FORM_CONTENT_TYPE, b"a=1")

        mock_client_cls.assert_called_once_with(timeout=5.0)
        call_args = mock_client.post.call_args
        assert call_args.args[0] == URL
        assert call_args.kwargs["content"] == b"a=1"
        assert call_args.kwargs["headers"] == {"Content-Type": FORM_CONTENT_TYPE}
        assert result.status_code == 200
        assert result.json() == {"ok": True}

    @patch("alipay_open.services.transport.httpx.Client")
    def test_connect_error_raises(self, mock_client_cls):
        mock_client_cls.return_value = _mock_client(
            side_effect=httpx.ConnectError("Connection refused")
        )
        with pytest.raises(TransportError, match="请求支付宝接口失败") as exc:
            HttpxTransport().send(URL, FORM_CONTENT_TYPE, b"")
        assert exc.value.status_code is None

    @patch("alipay_open.services.transport.httpx.Client")
    def test_http_status_error_raises(self, mock_client_cls):
        response = _mock_response(status_code=502)
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "Bad Gateway", request=MagicMock(), response=MagicMock()
        )
        mock_client_cls.return_value = _mock_client(response)
        with pytest.raises(TransportError, match="HTTP 502") as exc:
            HttpxTransport().send(URL, FORM_CONTENT_TYPE, b"")
        assert exc.value.status_code == 502


class TestAsyncHttpxTransport:

    @patch("alipay_open.services.transport.httpx.AsyncClient")
    def test_posts_body(self, mock_client_cls):
        mock_client = MagicMock()
        mock_client.post = AsyncMock(return_value=_mock_response())
        mock_client.__aenter__ = AsyncMock(return_value=mock_client)
        mock_client.__aexit__ = AsyncMock(return_value=False)
        mock_client_cls.return_value = mock_client

        result = asyncio.run(AsyncHttpxTransport().send(URL, FORM_CONTENT_TYPE, b"a=1"))

        assert mock_client.post.await_args.kwargs["content"] == b"a=1"
        assert result.json() == {"ok": True}

    @patch("alipay_open.services.transport.httpx.AsyncClient")
    def test_timeout_raises(self, mock_client_cls):
        mock_client = MagicMock()
        mock_client.post = AsyncMock(side_effect=httpx.ReadTimeout("timeout"))
        mock_client.__aenter__ = AsyncMock(return_value=mock_client)
        mock_client.__aexit__ = AsyncMock(return_value=False)
        mock_client_cls.return_value = mock_client

        with pytest.raises(TransportError):
            asyncio.run(AsyncHttpxTransport().send(URL, FORM_CONTENT_TYPE, b""))


class TestEncodeMultipart:

    def test_single_file_part(self):
        content_type, body = encode_multipart("image_content", "test.png", b"\x89PNG")
        assert content_type.startswith("multipart/form-data; boundary=")
        boundary = content_type.split("boundary=", 1)[1]
        assert body.startswith(f"--{boundary}".encode())
        assert b'name="image_content"; filename="test.png"' in body
        assert b"\x89PNG" in body
        assert body.count(b"Content-Disposition") == 1


class TestFormContentType:

    def test_default_is_utf8(self):
        assert FORM_CONTENT_TYPE == "application/x-www-form-urlencoded;charset=utf-8"

    def test_follows_charset(self):
        assert form_content_type("gbk") == "application/x-www-form-urlencoded;charset=gbk"
