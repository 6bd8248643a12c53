"""全局测试配置：测试密钥、固定时钟和可记录请求的传输桩。"""

from datetime import datetime

import pytest
from Crypto.PublicKey import RSA

from alipay_open.models.schemas import GatewayResponse

FIXED_NOW = datetime(2024, 1, 1, 0, 0, 0)


def _generate_test_keypair():
    """生成测试用 RSA 2048 密钥对。"""
    key = RSA.generate(2048)
    private_pem = key.export_key("PEM").decode("utf-8")
    public_pem = key.publickey().export_key("PEM").decode("utf-8")
    return private_pem, public_pem


def extract_bare_key(pem: str) -> str:
    """从 PEM 格式中提取裸 Base64 内容（去掉 header/footer 和换行）。"""
    lines = pem.strip().splitlines()
    return "".join(lines[1:-1])


PRIVATE_PEM, PUBLIC_PEM = _generate_test_keypair()


class RecordingSigner:
    """记录待签名内容，返回固定签名。"""

    def __init__(self, signature: str = "SIGNATURE"):
        self.signature = signature
        self.contents: list[bytes] = []

    def sign(self, content: bytes) -> str:
        self.contents.append(content)
        return self.signature

    def verify(self, content: bytes, signature: str) -> bool:
        return signature == self.signature


class RecordingTransport:
    """记录每次发送的 (url, content_type, body)，返回预置响应体。"""

    def __init__(self, body: bytes = b'{"ok": true}', status_code: int = 200):
        self.body = body
        self.status_code = status_code
        self.calls: list[tuple[str, str, bytes]] = []

    def send(self, url: str, content_type: str, body: bytes) -> GatewayResponse:
        self.calls.append((url, content_type, body))
        return GatewayResponse(status_code=self.status_code, content=self.body, url=url)


class RecordingAsyncTransport(RecordingTransport):
    async def send(self, url: str, content_type: str, body: bytes) -> GatewayResponse:
        return RecordingTransport.send(self, url, content_type, body)


@pytest.fixture
def private_pem():
    return PRIVATE_PEM


@pytest.fixture
def public_pem():
    return PUBLIC_PEM


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def signer():
    return RecordingSigner()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def async_transport():
    return RecordingAsyncTransport()
