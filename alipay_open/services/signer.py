"""
RSA2 (SHA256withRSA) 签名与验签。

应用私钥用于请求签名，支付宝公钥用于验证网关响应和异步通知。
密钥支持 PEM 格式和裸 Base64（PKCS#1 / PKCS#8 私钥，X.509 / PKCS#1 公钥）。
"""

import base64
import binascii
import logging
from typing import Protocol

from Crypto.Hash import SHA256
from Crypto.PublicKey import RSA
from Crypto.Signature import pkcs1_15

from alipay_open.exceptions import CryptoError, SigningError

logger = logging.getLogger(__name__)


class SigningPort(Protocol):
    """签名接口，请求构建只依赖此协议。"""

    def sign(self, content: bytes) -> str:
        """对内容签名，返回 Base64 签名串。"""
        ...

    def verify(self, content: bytes, signature: str) -> bool:
        """验证 Base64 签名，签名不匹配返回 False。"""
        ...


def load_private_key(key_str: str) -> RSA.RsaKey:
    """加载 RSA 私钥，支持 PEM 格式和裸 Base64。"""
    try:
        key = _import_key(key_str)
    except (ValueError, IndexError, TypeError) as e:
        raise CryptoError(f"无法加载应用私钥: {e}") from e
    if not key.has_private():
        raise CryptoError("无法加载应用私钥: 提供的是公钥")
    return key


def load_public_key(key_str: str) -> RSA.RsaKey:
    """加载 RSA 公钥，支持 PEM 格式和裸 Base64。"""
    try:
        key = _import_key(key_str)
    except (ValueError, IndexError, TypeError) as e:
        raise CryptoError(f"无法加载支付宝公钥: {e}") from e
    return key.publickey()


def _import_key(key_str: str) -> RSA.RsaKey:
    key_str = key_str.strip()
    if key_str.startswith("-----"):
        return RSA.import_key(key_str)
    # 裸 Base64：直接按 DER 解析，PKCS#1 和 PKCS#8 均可
    der = base64.b64decode("".join(key_str.split()), validate=True)
    return RSA.import_key(der)


class RsaSigner:
    """SigningPort 的 RSA2 实现。"""

    def __init__(self, private_key: str, public_key: str):
        """
        Args:
            private_key: 应用私钥（PEM 格式或裸 Base64）。
            public_key: 支付宝公钥（PEM 格式或裸 Base64）。
        """
        self._private_key = load_private_key(private_key)
        self._public_key = load_public_key(public_key)

    def sign(self, content: bytes) -> str:
        h = SHA256.new(content)
        try:
            signature = pkcs1_15.new(self._private_key).sign(h)
        except (ValueError, TypeError) as e:
            raise SigningError(f"请求签名失败: {e}") from e
        return base64.b64encode(signature).decode("ascii")

    def verify(self, content: bytes, signature: str) -> bool:
        try:
            raw = base64.b64decode(signature, validate=True)
        except (binascii.Error, ValueError, TypeError):
            logger.debug("签名不是合法的 Base64")
            return False

        h = SHA256.new(content)
        try:
            pkcs1_15.new(self._public_key).verify(h, raw)
            return True
        except (ValueError, TypeError):
            return False
