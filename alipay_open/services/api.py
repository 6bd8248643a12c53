"""
常用开放平台接口的封装：资金转账、授权令牌、商户进件、余额查询。

所有函数都返回已检查业务返回码的响应节点，或按 model 校验后的对象。
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import TypeAdapter, ValidationError

from alipay_open.exceptions import AlipayError, DeserializationError
from alipay_open.services.alipay_client import AlipayClient

logger = logging.getLogger(__name__)


def _validate(method: str, result: dict, model: Any) -> Any:
    if model is None:
        return result
    try:
        return TypeAdapter(model).validate_python(result)
    except ValidationError as e:
        raise DeserializationError(f"{method} 响应结构不匹配: {e}") from e


def _call(client: AlipayClient, method: str, biz_content: Any, model: Any = None) -> Any:
    return _validate(method, client.post(method, biz_content).result(method), model)


def fund_trans_uni_transfer(client: AlipayClient, params: Any, model: Any = None) -> Any:
    """单笔转账 alipay.fund.trans.uni.transfer。"""
    return _call(client, "alipay.fund.trans.uni.transfer", params, model)


def system_oauth_token(client: AlipayClient, params: Any, model: Any = None) -> Any:
    """换取授权访问令牌 alipay.system.oauth.token。

    该接口的 grant_type / code 是公共参数而非 biz_content。
    """
    method = "alipay.system.oauth.token"
    result = client.set_public_params(params).post_no_param(method).result(method)
    return _validate(method, result, model)


def merchant_expand_item_open_create(
    client: AlipayClient, params: Any, model: Any = None
) -> Any:
    """商户进件 ant.merchant.expand.item.open.create。"""
    return _call(client, "ant.merchant.expand.item.open.create", params, model)


def query_balance(client: AlipayClient) -> dict:
    """
    调用 alipay.data.bill.balance.query 接口查询余额。

    Returns:
        dict: {
            "total_amount": Decimal,
            "available_amount": Decimal,
            "freeze_amount": Decimal,
        }

    Raises:
        AlipayError: 接口调用失败或响应异常。
    """
    result = _call(client, "alipay.data.bill.balance.query", None)

    try:
        return {
            "total_amount": Decimal(result.get("total_amount", "0")),
            "available_amount": Decimal(result.get("available_amount", "0")),
            "freeze_amount": Decimal(result.get("freeze_amount", "0")),
        }
    except (InvalidOperation, TypeError) as e:
        raise DeserializationError(f"解析余额金额失败: {e}") from e


def verify_connectivity(client: AlipayClient) -> bool:
    """
    连通性验证：调用余额查询接口测试凭证是否有效。

    Returns:
        True 连通成功，False 连通失败。
    """
    try:
        query_balance(client)
        return True
    except AlipayError as e:
        logger.warning("支付宝连通性验证失败: %s", e)
        return False
