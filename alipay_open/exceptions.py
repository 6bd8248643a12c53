"""支付宝 SDK 异常定义"""


class AlipayError(Exception):
    """支付宝 SDK 错误的基类。

    所有 SDK 抛出的异常都继承自此类，便于统一捕获。
    """

    pass


class IoError(AlipayError):
    """读取密钥、证书等文件失败。"""

    pass


class ConfigError(AlipayError):
    """配置缺失或取值非法。"""

    pass


class CryptoError(AlipayError):
    """密钥解析、签名或验签过程中底层加密库报错。"""

    pass


class SigningError(CryptoError):
    """请求签名失败（私钥不可用等），同一密钥重试结果相同，不做重试。"""

    pass


class CertificateError(CryptoError):
    """证书解析失败，无法计算证书序列号。"""

    pass


class SerializationError(AlipayError):
    """业务参数无法转换为签名用的字符串或 JSON。"""

    pass


class DeserializationError(SerializationError):
    """响应体不是合法 JSON，或与调用方期望的结构不一致。"""

    pass


class EncodingError(AlipayError):
    """待签名字符串无法按 charset 编码。"""

    pass


class TransportError(AlipayError):
    """HTTP 请求失败。

    网络错误时 status_code 为 None；网关返回非 2xx 状态码时为该状态码。
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AlipayAPIError(AlipayError):
    """支付宝网关返回业务错误（code != 10000）。"""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        sub_code: str | None = None,
        sub_msg: str | None = None,
    ) -> None:
        """初始化业务错误。

        Args:
            message: 错误信息
            code: 网关返回码
            sub_code: 明细返回码
            sub_msg: 明细返回码描述
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.sub_code = sub_code
        self.sub_msg = sub_msg

    def __str__(self) -> str:
        return f"AlipayAPIError([{self.code}] {self.sub_code or ''}): {self.message}"
