# app/services/fawry_client.py
import json
from dataclasses import dataclass, field
from decimal import Decimal
from urllib.parse import quote

import requests
from requests import RequestException

from app.domain.signature import charge_signature, format_amount
from app.utils.retry import http_retry
from app.utils.settings import Settings
from app.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ChargeItem:
    item_id: str
    description: str
    price: Decimal
    quantity: int


@dataclass(frozen=True)
class ChargeRequest:
    merchant_ref_num: str  # id zamowienia
    customer_profile_id: str  # id uzytkownika
    customer_name: str
    customer_mobile: str
    customer_email: str
    amount: Decimal
    currency_code: str
    charge_items: list[ChargeItem] = field(default_factory=list)
    return_url: str | None = None


@dataclass
class ChargeSession:
    payload: dict
    hosted_url: str | None
    gateway_response: dict | None = None


class FawryGateway:
    """
    Adapter Fawry:
    -podpisany payload charge (lokalnie, bez sieci)
    -URL hosted checkout z payloadem w query stringu
    -opcjonalnie charge server-to-server, blad sieci nie wywala zamowienia
    """

    def __init__(self, settings: Settings, session: requests.Session | None = None):
        self.settings = settings
        self.session = session or requests.Session()
        self.timeout = settings.fawry_timeout_seconds

    def build_charge_payload(self, request: ChargeRequest) -> dict:
        items = [
            {
                "itemId": item.item_id,
                "description": item.description,
                "price": format_amount(item.price),
                "quantity": item.quantity,
            }
            for item in request.charge_items
        ]

        signature = charge_signature(
            merchant_code=self.settings.fawry_merchant_code,
            merchant_ref_num=request.merchant_ref_num,
            customer_profile_id=request.customer_profile_id,
            return_url=request.return_url,
            items=items,
            secret=self.settings.fawry_secure_key,
        )

        return {
            "merchantCode": self.settings.fawry_merchant_code,
            "merchantRefNum": request.merchant_ref_num,
            "customerProfileId": request.customer_profile_id,
            "customerName": request.customer_name,
            "customerMobile": request.customer_mobile,
            "customerEmail": request.customer_email,
            "paymentMethod": "PAYATFAWRY",
            "amount": format_amount(request.amount),
            "currencyCode": request.currency_code,
            "language": "en-gb",
            "chargeItems": items,
            "signature": signature,
            "returnUrl": request.return_url,
        }

    def hosted_checkout_url(self, payload: dict) -> str:
        charge_request = quote(json.dumps(payload, separators=(",", ":")), safe="")
        return f"{self.settings.fawry_hosted_checkout_url}?chargeRequest={charge_request}"

    def create_charge(self, request: ChargeRequest) -> ChargeSession:
        payload = self.build_charge_payload(request)

        if not self.settings.fawry_s2s_charge:
            return ChargeSession(payload=payload, hosted_url=self.hosted_checkout_url(payload))

        try:
            gateway_response = self._post_charge(payload)
        except RequestException as e:
            logger.error(
                f"Fawry charge request failed for order {request.merchant_ref_num}, "
                f"returning order without hosted checkout URL: {e}"
            )
            return ChargeSession(payload=payload, hosted_url=None)

        logger.info(f"Fawry charge accepted for order {request.merchant_ref_num}")
        return ChargeSession(
            payload=payload,
            hosted_url=self.hosted_checkout_url(payload),
            gateway_response=gateway_response,
        )

    # charge nie jest idempotentny: ponawiamy tylko gdy polaczenie nie powstalo
    @http_retry(retry_on=requests.ConnectionError)
    def _post_charge(self, payload: dict) -> dict:
        url = self.settings.fawry_charge_url
        logger.info(f"FawryGateway POST {url}")

        resp = self.session.post(url, json=payload, timeout=self.timeout)
        resp.raise_for_status()
        try:
            return resp.json()
        except ValueError:
            return {"raw": resp.text}
