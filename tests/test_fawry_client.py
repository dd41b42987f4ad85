import dataclasses
import json
from decimal import Decimal
from unittest.mock import Mock
from urllib.parse import parse_qs, urlsplit

import pytest
import requests

from app.domain.signature import charge_signature
from app.services.fawry_client import ChargeItem, ChargeRequest, FawryGateway


@pytest.fixture()
def charge():
    return ChargeRequest(
        merchant_ref_num="order-1",
        customer_profile_id="1",
        customer_name="Mona Hassan",
        customer_mobile="01012345678",
        customer_email="mona@example.com",
        amount=Decimal("1550"),
        currency_code="EGP",
        return_url="http://shop.test/en/checkout/success?orderId=order-1",
        charge_items=[
            ChargeItem(item_id="7", description="Hoodie", price=Decimal("600"), quantity=2),
            ChargeItem(item_id="9", description="Tee", price=Decimal("350"), quantity=1),
        ],
    )


def _response(status=200, body=None):
    resp = Mock()
    resp.status_code = status
    resp.text = "" if body is None else json.dumps(body)
    resp.json.side_effect = (lambda: body) if body is not None else ValueError("no json")
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return resp


def test_charge_payload(settings, charge):
    payload = FawryGateway(settings).build_charge_payload(charge)

    assert payload["merchantCode"] == settings.fawry_merchant_code
    assert payload["merchantRefNum"] == "order-1"
    assert payload["amount"] == "1550.00"
    assert payload["paymentMethod"] == "PAYATFAWRY"
    assert payload["language"] == "en-gb"
    assert [i["price"] for i in payload["chargeItems"]] == ["600.00", "350.00"]
    assert payload["signature"] == charge_signature(
        settings.fawry_merchant_code,
        "order-1",
        "1",
        charge.return_url,
        payload["chargeItems"],
        settings.fawry_secure_key,
    )


def test_hosted_url_carries_payload(settings, charge):
    gateway = FawryGateway(settings)

    session = gateway.create_charge(charge)

    query = parse_qs(urlsplit(session.hosted_url).query)
    assert json.loads(query["chargeRequest"][0]) == session.payload
    assert session.hosted_url.startswith("https://atfawry.fawrystaging.com/ECommercePlugin/FawryPay.jsp?")
    assert session.gateway_response is None


def test_hosted_only_mode_makes_no_request(settings, charge):
    http = Mock()

    FawryGateway(settings, session=http).create_charge(charge)

    http.post.assert_not_called()


class TestServerToServer:
    @pytest.fixture()
    def s2s_settings(self, settings):
        return dataclasses.replace(settings, fawry_s2s_charge=True)

    def test_accepted_charge(self, s2s_settings, charge):
        http = Mock()
        http.post.return_value = _response(body={"statusCode": 200, "referenceNumber": "FAW-1"})

        session = FawryGateway(s2s_settings, session=http).create_charge(charge)

        assert session.gateway_response["referenceNumber"] == "FAW-1"
        assert session.hosted_url
        url = http.post.call_args.args[0]
        assert url == "https://atfawry.fawrystaging.com/ECommerceWeb/Fawry/payments/charge"
        assert http.post.call_args.kwargs["timeout"] == s2s_settings.fawry_timeout_seconds

    def test_non_json_response(self, s2s_settings, charge):
        http = Mock()
        http.post.return_value = _response()

        session = FawryGateway(s2s_settings, session=http).create_charge(charge)

        assert session.gateway_response == {"raw": ""}

    def test_connection_error_is_retried_then_gives_up(self, s2s_settings, charge):
        http = Mock()
        http.post.side_effect = requests.ConnectionError("refused")

        session = FawryGateway(s2s_settings, session=http).create_charge(charge)

        assert session.hosted_url is None
        assert http.post.call_count == 3

    def test_read_timeout_is_not_resent(self, s2s_settings, charge):
        http = Mock()
        http.post.side_effect = requests.ReadTimeout("no answer")

        session = FawryGateway(s2s_settings, session=http).create_charge(charge)

        assert session.hosted_url is None
        assert http.post.call_count == 1

    def test_transient_error_recovers(self, s2s_settings, charge):
        http = Mock()
        http.post.side_effect = [requests.ConnectionError("reset"), _response(body={"statusCode": 200})]

        session = FawryGateway(s2s_settings, session=http).create_charge(charge)

        assert session.hosted_url
        assert http.post.call_count == 2

    def test_gateway_error_status(self, s2s_settings, charge):
        http = Mock()
        http.post.return_value = _response(status=502)

        session = FawryGateway(s2s_settings, session=http).create_charge(charge)

        assert session.hosted_url is None
        assert http.post.call_count == 1
