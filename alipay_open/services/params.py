"""
参数值模型：把任意业务数据转换为封闭的值类型 AlipayValue，
并提供唯一的签名字符串化规则。

字符串化规则：
- NULL  → 不输出（字段整体省略，绝不写成 "null"）
- BOOL  → "true" / "false"
- INTEGER → 十进制
- FLOAT → 最短往返的普通十进制（不用指数形式，整数值保留 ".0"），NaN / Infinity 视为 NULL
- STRING → 原样
- ARRAY / MAP → 紧凑 JSON 文本，MAP 中的 NULL 字段和 ARRAY 中的 NULL 元素都被剔除，
  嵌入的 FLOAT 同样写成普通十进制
"""

import dataclasses
import json
import math
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel

from alipay_open.exceptions import SerializationError


class ValueKind(str, Enum):
    NULL = "null"
    BOOL = "bool"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    ARRAY = "array"
    MAP = "map"


@dataclass(frozen=True)
class AlipayValue:
    kind: ValueKind
    data: Any = None

    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL

    def is_empty(self) -> bool:
        """NULL，或剔除 NULL 字段后没有任何内容的 MAP。"""
        if self.kind is ValueKind.NULL:
            return True
        if self.kind is ValueKind.MAP:
            return not any(not v.is_null() for v in self.data.values())
        return False

    def to_json(self) -> str:
        """
        紧凑 JSON 文本（无多余空白，不转义非 ASCII 字符）。

        浮点数写成普通十进制，不用 json 模块的 1e+16 指数形式。
        """
        if self.kind is ValueKind.NULL:
            return "null"
        if self.kind is ValueKind.STRING:
            return json.dumps(self.data, ensure_ascii=False)
        if self.kind is ValueKind.ARRAY:
            items = (item.to_json() for item in self.data if not item.is_null())
            return "[" + ",".join(items) + "]"
        if self.kind is ValueKind.MAP:
            fields = (
                json.dumps(key, ensure_ascii=False) + ":" + val.to_json()
                for key, val in self.data.items()
                if not val.is_null()
            )
            return "{" + ",".join(fields) + "}"
        return self.to_param_string()

    def to_param_string(self) -> str | None:
        """签名用的字符串形式，NULL 返回 None。"""
        if self.kind is ValueKind.NULL:
            return None
        if self.kind is ValueKind.BOOL:
            return "true" if self.data else "false"
        if self.kind is ValueKind.INTEGER:
            return str(self.data)
        if self.kind is ValueKind.FLOAT:
            return _float_text(self.data)
        if self.kind is ValueKind.STRING:
            return self.data
        return self.to_json()


NULL = AlipayValue(ValueKind.NULL)


def _float_text(x: float) -> str:
    """有限浮点数的普通十进制文本：1e16 → "10000000000000000.0"，1e-7 → "0.0000001"。"""
    text = format(Decimal(repr(x)), "f")
    if "." not in text:
        text += ".0"
    return text


def _is_pair(item: Any) -> bool:
    return isinstance(item, tuple) and len(item) == 2 and isinstance(item[0], str)


def to_alipay_value(obj: Any) -> AlipayValue:
    """
    把 Python 数据转换为 AlipayValue。

    Raises:
        SerializationError: 不支持的类型。
    """
    if isinstance(obj, AlipayValue):
        return obj
    if obj is None:
        return NULL
    # bool 是 int 的子类，必须先判断
    if isinstance(obj, bool):
        return AlipayValue(ValueKind.BOOL, obj)
    if isinstance(obj, int):
        return AlipayValue(ValueKind.INTEGER, int(obj))
    if isinstance(obj, float):
        if math.isnan(obj) or math.isinf(obj):
            return NULL
        return AlipayValue(ValueKind.FLOAT, obj)
    if isinstance(obj, Decimal):
        if not obj.is_finite():
            return NULL
        return AlipayValue(ValueKind.STRING, format(obj, "f"))
    if isinstance(obj, str):
        return AlipayValue(ValueKind.STRING, obj)
    if isinstance(obj, BaseModel):
        return to_alipay_value(obj.model_dump(mode="json"))
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return to_alipay_value(dataclasses.asdict(obj))
    if isinstance(obj, Mapping):
        items = {}
        for key, val in obj.items():
            if not isinstance(key, str):
                raise SerializationError(f"参数名必须是字符串: {key!r}")
            items[key] = to_alipay_value(val)
        return AlipayValue(ValueKind.MAP, items)
    if _is_pair(obj):
        return AlipayValue(ValueKind.MAP, {obj[0]: to_alipay_value(obj[1])})
    if isinstance(obj, (list, tuple)):
        if not obj:
            return NULL
        # [("k", v), ...] 视为键值对集合
        if all(_is_pair(item) for item in obj):
            return AlipayValue(
                ValueKind.MAP, {k: to_alipay_value(v) for k, v in obj}
            )
        return AlipayValue(ValueKind.ARRAY, [to_alipay_value(v) for v in obj])
    raise SerializationError(f"不支持的参数类型: {type(obj).__name__}")


def to_param_dict(obj: Any) -> dict[str, str]:
    """
    把键值对形式的业务对象展开为 {参数名: 字符串值}，NULL 值被跳过。

    Raises:
        SerializationError: obj 不能表示为键值对集合。
    """
    value = to_alipay_value(obj)
    if value.is_null():
        return {}
    if value.kind is not ValueKind.MAP:
        raise SerializationError(f"公共参数必须是键值对集合，实际为 {value.kind.value}")
    params = {}
    for key, val in value.data.items():
        text = val.to_param_string()
        if text is not None:
            params[key] = text
    return params


def to_biz_content(obj: Any) -> str | None:
    """业务参数序列化为 biz_content，空值返回 None 表示整体省略。"""
    value = to_alipay_value(obj)
    if value.is_empty():
        return None
    if value.kind is ValueKind.STRING:
        # 已序列化好的 JSON 文本原样使用，空白或 "null" 视为未提供
        text = value.data.strip()
        if not text or text == "null":
            return None
        return value.data
    return value.to_json()
