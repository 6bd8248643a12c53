"""
支付宝开放平台客户端：使用 RSA2 签名调用网关接口。

主要功能：
- post / post_no_param / post_file 调用任意开放平台接口（同步与异步）
- set_public_params 生成携带一次性覆盖参数的 ClientWithParams
- sign / verify / verify_notification 复用同一套密钥处理异步通知

AlipayClient 构造后不再修改，可在多个线程或协程间共享；
覆盖参数只存在于 set_public_params 返回的 ClientWithParams 中，不要跨调用方共享。
"""

import logging
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable

from alipay_open.exceptions import CertificateError
from alipay_open.models.schemas import GatewayResponse, SignedRequest
from alipay_open.services.canonical import (
    RequestCanonicalizer,
    canonicalize,
    encode_content,
)
from alipay_open.services.cert import get_cert_sn, get_root_cert_sn
from alipay_open.services.parameter_store import ParameterStore
from alipay_open.services.params import to_biz_content
from alipay_open.services.signer import RsaSigner, SigningPort
from alipay_open.services.transport import (
    AsyncHttpxTransport,
    AsyncTransportPort,
    HttpxTransport,
    TransportPort,
    encode_multipart,
    form_content_type,
)
from alipay_open.settings import DEFAULT_TIMEOUT, AlipaySettings, read_text_file

logger = logging.getLogger(__name__)

ALIPAY_GATEWAY = "https://openapi.alipay.com/gateway.do"
ALIPAY_SANDBOX_GATEWAY = "https://openapi-sandbox.dl.alipaydev.com/gateway.do"

# 网关要求本地时间，格式固定
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class AlipayClient:
    """支付宝开放平台 API 客户端，使用 RSA2 (SHA256withRSA) 签名。"""

    def __init__(
        self,
        app_id: str,
        public_key: str,
        private_key: str,
        app_cert: str | None = None,
        root_cert: str | None = None,
        *,
        sandbox: bool = False,
        timeout: float = DEFAULT_TIMEOUT,
        signer: SigningPort | None = None,
        transport: TransportPort | None = None,
        async_transport: AsyncTransportPort | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Args:
            app_id: 支付宝应用 ID。
            public_key: 支付宝公钥（PEM 格式或裸 Base64）。
            private_key: 应用私钥（PEM 格式或裸 Base64）。
            app_cert: 应用公钥证书内容（公钥证书模式）。
            root_cert: 支付宝根证书内容（公钥证书模式）。
            sandbox: 是否使用沙箱网关。

        Raises:
            CryptoError: 密钥无法加载。
            CertificateError: 证书无法解析。
        """
        self.app_id = app_id
        self.gateway = ALIPAY_SANDBOX_GATEWAY if sandbox else ALIPAY_GATEWAY
        self._signer = signer or RsaSigner(private_key, public_key)
        self._canonicalizer = RequestCanonicalizer(self._signer)
        self._transport = transport or HttpxTransport(timeout)
        self._async_transport = async_transport or AsyncHttpxTransport(timeout)
        self._clock = clock or datetime.now

        base = {
            "app_id": app_id,
            "charset": "utf-8",
            "sign_type": "RSA2",
            "format": "json",
            "version": "1.0",
        }
        try:
            if app_cert:
                base["app_cert_sn"] = get_cert_sn(app_cert)
            if root_cert:
                base["alipay_root_cert_sn"] = get_root_cert_sn(root_cert)
        except CertificateError as e:
            logger.error("证书序列号计算失败: %s", e)
            raise
        self._base = MappingProxyType(base)

    @classmethod
    def from_files(
        cls,
        app_id: str,
        public_key_path: str | Path,
        private_key_path: str | Path,
        app_cert_path: str | Path | None = None,
        root_cert_path: str | Path | None = None,
        **kwargs: Any,
    ) -> "AlipayClient":
        """从密钥/证书文件构建客户端，文件无法读取时抛出 IoError。"""
        return cls(
            app_id,
            read_text_file(public_key_path),
            read_text_file(private_key_path),
            read_text_file(app_cert_path) if app_cert_path else None,
            read_text_file(root_cert_path) if root_cert_path else None,
            **kwargs,
        )

    @classmethod
    def from_settings(cls, settings: AlipaySettings, **kwargs: Any) -> "AlipayClient":
        kwargs.setdefault("sandbox", settings.sandbox)
        kwargs.setdefault("timeout", settings.timeout)
        return cls(
            settings.app_id,
            settings.public_key,
            settings.private_key,
            settings.app_cert,
            settings.root_cert,
            **kwargs,
        )

    @property
    def base_params(self) -> Mapping[str, str]:
        return self._base

    def set_public_params(self, params: Any) -> "ClientWithParams":
        """
        设置公共参数，返回携带这些参数的 ClientWithParams。

        params 可以是 dict、键值对列表、单个键值对元组、dataclass 或 pydantic 模型。
        同名时覆盖基础参数，但不会覆盖 method / timestamp / biz_content。
        """
        store = ParameterStore(self._base)
        store.set_override(params)
        return ClientWithParams(self, store)

    # ── 签名 ──────────────────────────────────────────────

    def sign(self, source: str) -> str:
        """用应用私钥对任意字符串签名。"""
        return self._signer.sign(encode_content(source))

    def verify(self, source: str, signature: str) -> bool:
        """用支付宝公钥验签，签名不匹配返回 False。"""
        return self._signer.verify(encode_content(source), signature)

    def verify_notification(self, params: Mapping[str, Any]) -> bool:
        """
        验证支付宝异步通知。

        去掉 sign、sign_type 和空值后按规范化规则拼接，再用支付宝公钥验签。
        """
        signature = params.get("sign")
        if not signature:
            logger.warning("异步通知缺少 sign 参数")
            return False
        unsigned = {
            k: str(v)
            for k, v in params.items()
            if k not in ("sign", "sign_type") and v is not None and str(v) != ""
        }
        charset = unsigned.get("charset") or "utf-8"
        content = encode_content(canonicalize(unsigned), charset)
        verified = self._signer.verify(content, signature)
        if not verified:
            logger.warning("异步通知验签失败: notify_id=%s", params.get("notify_id"))
        return verified

    # ── 请求构建 ──────────────────────────────────────────

    def _timestamp(self) -> str:
        return self._clock().strftime(TIMESTAMP_FORMAT)

    def build_request(
        self,
        method: str,
        biz_content: Any = None,
        store: ParameterStore | None = None,
    ) -> SignedRequest:
        """
        合并参数、规范化并签名。store 中的覆盖参数会被消费。

        Raises:
            SerializationError: 业务参数无法序列化。
            EncodingError: 参数无法按 charset 编码。
            SigningError: 签名失败。
        """
        if store is None:
            store = ParameterStore(self._base)
        extra = {
            "method": method,
            "timestamp": self._timestamp(),
            "biz_content": to_biz_content(biz_content),
        }
        return self._canonicalizer.build(store.merge_and_clear(extra))

    def _form_call(self, request: SignedRequest) -> tuple[str, str, bytes]:
        content_type = form_content_type(request.charset)
        return self.gateway, content_type, request.urlencoded().encode("ascii")

    def _file_call(
        self, request: SignedRequest, key: str, file_name: str, file_content: bytes
    ) -> tuple[str, str, bytes]:
        # multipart 请求体只放文件，其余参数全部放在查询串中
        content_type, body = encode_multipart(key, file_name, file_content)
        return f"{self.gateway}?{request.urlencoded()}", content_type, body

    # ── 同步调用 ──────────────────────────────────────────

    def _post(self, store: ParameterStore, method: str, biz_content: Any) -> GatewayResponse:
        request = self.build_request(method, biz_content, store)
        logger.info("调用支付宝接口: %s", method)
        return self._transport.send(*self._form_call(request))

    def _post_file(
        self, store: ParameterStore, method: str, key: str, file_name: str, file_content: bytes
    ) -> GatewayResponse:
        request = self.build_request(method, None, store)
        logger.info("上传文件到支付宝接口: %s, 文件=%s", method, file_name)
        return self._transport.send(*self._file_call(request, key, file_name, file_content))

    def post(self, method: str, biz_content: Any = None) -> GatewayResponse:
        """
        调用支付宝接口，业务参数序列化为 biz_content。

        biz_content 为 None 或全部字段为空时不发送 biz_content。

        Raises:
            SerializationError / SigningError / TransportError
        """
        return self._post(ParameterStore(self._base), method, biz_content)

    def post_no_param(self, method: str) -> GatewayResponse:
        return self._post(ParameterStore(self._base), method, None)

    def post_file(
        self, method: str, key: str, file_name: str, file_content: bytes
    ) -> GatewayResponse:
        """
        文件上传。

        Args:
            method: 接口名称。
            key: 文件参数名。
            file_name: 文件名。
            file_content: 文件内容。
        """
        return self._post_file(ParameterStore(self._base), method, key, file_name, file_content)

    # ── 异步调用 ──────────────────────────────────────────

    async def _post_async(
        self, store: ParameterStore, method: str, biz_content: Any
    ) -> GatewayResponse:
        request = self.build_request(method, biz_content, store)
        logger.info("调用支付宝接口: %s", method)
        return await self._async_transport.send(*self._form_call(request))

    async def _post_file_async(
        self, store: ParameterStore, method: str, key: str, file_name: str, file_content: bytes
    ) -> GatewayResponse:
        request = self.build_request(method, None, store)
        logger.info("上传文件到支付宝接口: %s, 文件=%s", method, file_name)
        return await self._async_transport.send(
            *self._file_call(request, key, file_name, file_content)
        )

    async def post_async(self, method: str, biz_content: Any = None) -> GatewayResponse:
        return await self._post_async(ParameterStore(self._base), method, biz_content)

    async def post_no_param_async(self, method: str) -> GatewayResponse:
        return await self._post_async(ParameterStore(self._base), method, None)

    async def post_file_async(
        self, method: str, key: str, file_name: str, file_content: bytes
    ) -> GatewayResponse:
        return await self._post_file_async(
            ParameterStore(self._base), method, key, file_name, file_content
        )


class ClientWithParams:
    """
    携带覆盖参数的一次性调用对象。

    每次 post* 调用都会消费已设置的覆盖参数；再次调用前需重新 set_public_params。
    """

    def __init__(self, client: AlipayClient, store: ParameterStore):
        self._client = client
        self._store = store

    @property
    def pending_params(self) -> dict[str, str]:
        return self._store.override

    def set_public_params(self, params: Any) -> "ClientWithParams":
        self._store.set_override(params)
        return self

    def post(self, method: str, biz_content: Any = None) -> GatewayResponse:
        return self._client._post(self._store, method, biz_content)

    def post_no_param(self, method: str) -> GatewayResponse:
        return self._client._post(self._store, method, None)

    def post_file(
        self, method: str, key: str, file_name: str, file_content: bytes
    ) -> GatewayResponse:
        return self._client._post_file(self._store, method, key, file_name, file_content)

    async def post_async(self, method: str, biz_content: Any = None) -> GatewayResponse:
        return await self._client._post_async(self._store, method, biz_content)

    async def post_no_param_async(self, method: str) -> GatewayResponse:
        return await self._client._post_async(self._store, method, None)

    async def post_file_async(
        self, method: str, key: str, file_name: str, file_content: bytes
    ) -> GatewayResponse:
        return await self._client._post_file_async(
            self._store, method, key, file_name, file_content
        )
