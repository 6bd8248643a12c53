"""
HTTP 传输：把已编码的请求体 POST 到支付宝网关。

请求构建是同步计算，只有网络调用需要等待，因此同时提供同步和异步实现。
不做重试，失败直接抛出 TransportError 交由调用方决定。
"""

import logging
from typing import Protocol

import httpx

from alipay_open.exceptions import TransportError
from alipay_open.models.schemas import GatewayResponse
from alipay_open.settings import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)


def form_content_type(charset: str) -> str:
    """表单请求的 Content-Type，charset 必须与请求体的编码一致。"""
    return f"application/x-www-form-urlencoded;charset={charset}"


FORM_CONTENT_TYPE = form_content_type("utf-8")


class TransportPort(Protocol):
    def send(self, url: str, content_type: str, body: bytes) -> GatewayResponse:
        ...


class AsyncTransportPort(Protocol):
    async def send(self, url: str, content_type: str, body: bytes) -> GatewayResponse:
        ...


def encode_multipart(field_name: str, file_name: str, content: bytes) -> tuple[str, bytes]:
    """
    构造只含一个文件字段的 multipart/form-data 请求体。

    Returns:
        (Content-Type 头含 boundary, 请求体字节)
    """
    request = httpx.Request(
        "POST", "http://multipart.invalid/", files={field_name: (file_name, content)}
    )
    return request.headers["Content-Type"], request.read()


def _to_response(response: httpx.Response) -> GatewayResponse:
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise TransportError(
            f"支付宝网关返回 HTTP {response.status_code}", status_code=response.status_code
        ) from e
    return GatewayResponse(
        status_code=response.status_code,
        content=response.content,
        headers=dict(response.headers),
        url=str(response.url),
    )


class HttpxTransport:
    """基于 httpx.Client 的同步传输。"""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self.timeout = timeout

    def send(self, url: str, content_type: str, body: bytes) -> GatewayResponse:
        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.post(
                    url, content=body, headers={"Content-Type": content_type}
                )
        except httpx.HTTPError as e:
            logger.warning("请求支付宝网关失败: %s", e)
            raise TransportError(f"请求支付宝接口失败: {e}") from e
        return _to_response(response)


class AsyncHttpxTransport:
    """基于 httpx.AsyncClient 的异步传输。"""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self.timeout = timeout

    async def send(self, url: str, content_type: str, body: bytes) -> GatewayResponse:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    url, content=body, headers={"Content-Type": content_type}
                )
        except httpx.HTTPError as e:
            logger.warning("请求支付宝网关失败: %s", e)
            raise TransportError(f"请求支付宝接口失败: {e}") from e
        return _to_response(response)
