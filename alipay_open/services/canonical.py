"""
请求参数规范化与签名。

待签名字符串的构造规则（与支付宝网关逐字节一致）：
1. 取出全部参数（不含 sign）
2. 按参数名字节序升序排序
3. 拼接为 key1=value1&key2=value2，值不做 URL 编码，末尾不带 &
4. 按 charset 编码后交给签名器
5. sign 追加在参数列表末尾，不参与排序
"""

import logging
from collections.abc import Mapping

from alipay_open.exceptions import EncodingError
from alipay_open.models.schemas import SignedRequest
from alipay_open.services.signer import SigningPort

logger = logging.getLogger(__name__)

DEFAULT_CHARSET = "utf-8"


def sorted_pairs(params: Mapping[str, str]) -> list[tuple[str, str]]:
    """按参数名的 UTF-8 字节序排序，与区域设置无关。"""
    for key, value in params.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise EncodingError(f"参数必须是字符串: {key!r}={value!r}")
    return sorted(params.items(), key=lambda kv: kv[0].encode("utf-8", "surrogatepass"))


def canonicalize(params: Mapping[str, str]) -> str:
    """生成待签名字符串。"""
    return "&".join(f"{k}={v}" for k, v in sorted_pairs(params))


def encode_content(content: str, charset: str = DEFAULT_CHARSET) -> bytes:
    try:
        return content.encode(charset)
    except (UnicodeEncodeError, LookupError) as e:
        raise EncodingError(f"待签名字符串无法按 {charset} 编码: {e}") from e


class RequestCanonicalizer:
    """把合并后的参数集合转换为已签名请求。"""

    def __init__(self, signer: SigningPort):
        self._signer = signer

    def build(self, params: Mapping[str, str]) -> SignedRequest:
        """
        规范化并签名。传入的 sign 字段会被丢弃，签名只覆盖其余参数。

        Raises:
            EncodingError: 参数不是字符串或无法按 charset 编码。
            SigningError: 签名失败。
        """
        unsigned = {k: v for k, v in params.items() if k != "sign"}
        charset = unsigned.get("charset") or DEFAULT_CHARSET
        pairs = sorted_pairs(unsigned)
        canonical = "&".join(f"{k}={v}" for k, v in pairs)

        sign = self._signer.sign(encode_content(canonical, charset))
        logger.debug(
            "已签名请求: method=%s, 参数=%s",
            unsigned.get("method"), [k for k, _ in pairs],
        )
        return SignedRequest(pairs=pairs, canonical=canonical, sign=sign, charset=charset)
