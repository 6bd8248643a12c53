"""
请求参数存储：区分基础参数与覆盖参数，请求时合并。

合并优先级（后者覆盖前者）：基础参数 < 覆盖参数 < 本次调用参数
（method / timestamp / biz_content）。合并后覆盖参数被清空，只对下一次调用生效。
"""

import logging
from collections.abc import Mapping
from typing import Any

from alipay_open.services.params import to_alipay_value, to_param_dict

logger = logging.getLogger(__name__)


class ParameterStore:
    """基础参数 + 一次性覆盖参数。"""

    def __init__(self, base: Mapping[str, str] | None = None):
        self._base: dict[str, str] = dict(base or {})
        self._override: dict[str, str] = {}

    @property
    def base(self) -> dict[str, str]:
        return dict(self._base)

    @property
    def override(self) -> dict[str, str]:
        return dict(self._override)

    def set_base(self, key: str, value: Any) -> None:
        """写入基础参数，值为 NULL 时忽略。"""
        text = to_alipay_value(value).to_param_string()
        if text is None:
            return
        self._base[key] = text

    def set_override(self, fields: Any) -> None:
        """
        写入覆盖参数。fields 可以是 dict、键值对列表、单个键值对元组、
        dataclass 或 pydantic 模型；值为 None / NaN 的字段跳过。
        """
        for key, text in to_param_dict(fields).items():
            self._override[key] = text

    def merge_and_clear(self, extra: Mapping[str, str | None]) -> dict[str, str]:
        """
        合并基础参数、覆盖参数和本次调用参数，随后清空覆盖参数。

        extra 中值为 None 的键不参与合并（例如无 biz_content 的调用）。
        """
        merged = dict(self._base)
        merged.update(self._override)
        for key, value in extra.items():
            if value is None:
                continue
            if key in self._override:
                logger.warning("覆盖参数 %s 与本次调用参数冲突，以调用参数为准", key)
            merged[key] = value
        self._override.clear()
        return merged
