"""
数据模型：签名后的请求与网关响应。
使用 dataclass 保持轻量。
"""

import json
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlencode

from pydantic import TypeAdapter, ValidationError

from alipay_open.exceptions import AlipayAPIError, DeserializationError

SUCCESS_CODE = "10000"


@dataclass
class SignedRequest:
    # 已按参数名排序的参数对，不含 sign
    pairs: list[tuple[str, str]]
    canonical: str
    sign: str
    charset: str = "utf-8"

    @property
    def params(self) -> list[tuple[str, str]]:
        """待发送的参数对，sign 追加在末尾。"""
        return self.pairs + [("sign", self.sign)]

    def as_dict(self) -> dict[str, str]:
        return dict(self.params)

    def urlencoded(self) -> str:
        """application/x-www-form-urlencoded 编码结果，也用作文件上传的查询串。"""
        return urlencode(self.params, encoding=self.charset)


@dataclass
class GatewayResponse:
    status_code: int
    content: bytes
    headers: dict[str, str] = field(default_factory=dict)
    url: str | None = None

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self, model: Any = None) -> Any:
        """
        解析响应 JSON；指定 model 时按 pydantic 规则校验并转换。

        Raises:
            DeserializationError: 不是合法 JSON 或结构不匹配。
        """
        try:
            data = json.loads(self.content)
        except (json.JSONDecodeError, UnicodeDecodeError, ValueError) as e:
            raise DeserializationError(f"解析支付宝响应失败: {e}") from e
        if model is None:
            return data
        try:
            return TypeAdapter(model).validate_python(data)
        except ValidationError as e:
            raise DeserializationError(f"支付宝响应结构不匹配: {e}") from e

    def result(self, method: str) -> dict:
        """
        取出 "<method>_response" 节点并检查业务返回码。

        支付宝响应格式：{"alipay_xxx_response": {...}, "sign": "..."}

        Raises:
            DeserializationError: 响应缺少对应节点。
            AlipayAPIError: 返回了 code 且不是 10000。
        """
        data = self.json()
        response_key = method.replace(".", "_") + "_response"
        result = data.get(response_key) if isinstance(data, dict) else None
        if not result:
            # 网关级错误（如验签失败）使用 error_response 节点
            result = data.get("error_response") if isinstance(data, dict) else None
            if not result:
                raise DeserializationError(f"支付宝响应缺少 {response_key} 字段")

        # alipay.system.oauth.token 等接口成功时不返回 code
        code = result.get("code")
        if code is not None and code != SUCCESS_CODE:
            sub_msg = result.get("sub_msg", result.get("msg", "未知错误"))
            raise AlipayAPIError(
                f"支付宝接口返回错误: [{code}] {sub_msg}",
                code=code,
                sub_code=result.get("sub_code"),
                sub_msg=result.get("sub_msg"),
            )
        return result
