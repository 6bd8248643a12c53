"""常用接口封装单元测试。"""

import json
from decimal import Decimal

import pytest
from pydantic import BaseModel

from alipay_open.exceptions import AlipayAPIError, DeserializationError, TransportError
from alipay_open.services import api
from alipay_open.services.alipay_client import AlipayClient


def _make_success_response():
    """构造支付宝余额查询成功响应。"""
    return {
        "alipay_data_bill_balance_query_response": {
            "code": "10000",
            "msg": "Success",
            "total_amount": "10000.50",
            "available_amount": "8000.25",
            "freeze_amount": "2000.25",
        },
        "sign": "mock_sign",
    }


def _make_error_response(code="40004", sub_msg="Insufficient Permissions"):
    """构造支付宝余额查询错误响应。"""
    return {
        "alipay_data_bill_balance_query_response": {
            "code": code,
            "msg": "Business Failed",
            "sub_msg": sub_msg,
        },
        "sign": "mock_sign",
    }


class FailingTransport:
    def send(self, url, content_type, body):
        raise TransportError("请求支付宝接口失败: Connection refused")


@pytest.fixture
def client(signer, transport, fixed_clock):
    return AlipayClient("123", "", "", signer=signer, transport=transport, clock=fixed_clock)


# ── 余额查询测试 ──────────────────────────────────────────


class TestQueryBalance:

    def test_success_returns_decimal_amounts(self, client, transport):
        transport.body = json.dumps(_make_success_response()).encode()
        result = api.query_balance(client)
        assert result["total_amount"] == Decimal("10000.50")
        assert result["available_amount"] == Decimal("8000.25")
        assert result["freeze_amount"] == Decimal("2000.25")

    def test_business_error_raises(self, client, transport):
        transport.body = json.dumps(_make_error_response()).encode()
        with pytest.raises(AlipayAPIError, match="Insufficient Permissions"):
            api.query_balance(client)

    def test_invalid_amount_raises(self, client, transport):
        data = _make_success_response()
        data["alipay_data_bill_balance_query_response"]["total_amount"] = "abc"
        transport.body = json.dumps(data).encode()
        with pytest.raises(DeserializationError, match="解析余额金额失败"):
            api.query_balance(client)

    def test_request_has_no_biz_content(self, client, transport, signer):
        transport.body = json.dumps(_make_success_response()).encode()
        api.query_balance(client)
        assert b"method=alipay.data.bill.balance.query" in signer.contents[0]
        assert b"biz_content" not in signer.contents[0]


# ── 连通性验证测试 ────────────────────────────────────────


class TestVerifyConnectivity:

    def test_returns_true_on_success(self, client, transport):
        transport.body = json.dumps(_make_success_response()).encode()
        assert api.verify_connectivity(client) is True

    def test_returns_false_on_error(self, client, transport):
        transport.body = json.dumps(_make_error_response()).encode()
        assert api.verify_connectivity(client) is False

    def test_returns_false_on_connection_error(self, signer):
        client = AlipayClient("123", "", "", signer=signer, transport=FailingTransport())
        assert api.verify_connectivity(client) is False


# ── 其他接口 ──────────────────────────────────────────────


class TransferResult(BaseModel):
    code: str
    order_id: str


class TestBusinessWrappers:

    def test_fund_trans_uni_transfer_model(self, client, transport, signer):
        transport.body = json.dumps({
            "alipay_fund_trans_uni_transfer_response": {
                "code": "10000", "msg": "Success", "order_id": "20240101",
            },
        }).encode()
        result = api.fund_trans_uni_transfer(
            client, {"out_biz_no": "1", "trans_amount": "0.10"}, TransferResult
        )
        assert result.order_id == "20240101"
        assert b'biz_content={"out_biz_no":"1","trans_amount":"0.10"}' in signer.contents[0]

    def test_system_oauth_token_uses_public_params(self, client, transport, signer):
        transport.body = json.dumps({
            "alipay_system_oauth_token_response": {
                "code": "10000", "access_token": "tok", "user_id": "2088",
            },
        }).encode()
        result = api.system_oauth_token(
            client, {"grant_type": "authorization_code", "code": "abc"}
        )
        assert result["access_token"] == "tok"
        assert b"grant_type=authorization_code" in signer.contents[0]
        assert b"biz_content" not in signer.contents[0]

    def test_merchant_expand_item_open_create(self, client, transport):
        transport.body = json.dumps({
            "ant_merchant_expand_item_open_create_response": {"code": "10000", "item_id": "9"},
        }).encode()
        result = api.merchant_expand_item_open_create(client, {"scene": "RESTAURANT"})
        assert result["item_id"] == "9"

    def test_wrapper_shape_mismatch(self, client, transport):
        transport.body = json.dumps({
            "alipay_fund_trans_uni_transfer_response": {"code": "10000"},
        }).encode()
        with pytest.raises(DeserializationError):
            api.fund_trans_uni_transfer(client, {"out_biz_no": "1"}, TransferResult)
