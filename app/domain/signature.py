# app/domain/signature.py
"""
Podpisy Fawry (SHA-256 hex nad sklejonymi polami + secure key).

Kwoty zawsze formatowane do dokladnie 2 miejsc po przecinku,
inaczej podpis po stronie bramki sie nie zgadza.
"""
import hashlib
import hmac
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

_CENT = Decimal("0.01")


def format_amount(value) -> str:
    # przez str() zeby float 0.1 nie zamienil sie w 0.1000000000000000055
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    return f"{amount.quantize(_CENT, rounding=ROUND_HALF_UP):.2f}"


def digest(parts: Iterable, secret: str) -> str:
    canonical = "".join("" if p is None else str(p) for p in parts) + secret
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def charge_signature(
    merchant_code: str,
    merchant_ref_num: str,
    customer_profile_id: str,
    return_url: str | None,
    items: Iterable[dict],
    secret: str,
) -> str:
    """
    merchantCode + merchantRefNum + customerProfileId + returnUrl
    + (itemId + quantity + price) dla kazdej pozycji, w kolejnosci wyslania
    """
    parts = [merchant_code, merchant_ref_num, customer_profile_id, return_url or ""]
    for item in items:
        parts.extend([item["itemId"], int(item["quantity"]), format_amount(item["price"])])
    return digest(parts, secret)


def webhook_signature(
    fawry_ref_number: str,
    merchant_ref_number: str,
    payment_amount,
    order_amount,
    order_status: str,
    payment_method: str,
    payment_reference_number: str | None,
    secret: str,
) -> str:
    parts = [
        fawry_ref_number,
        merchant_ref_number,
        format_amount(payment_amount),
        format_amount(order_amount),
        order_status,
        payment_method,
        payment_reference_number or "",
    ]
    return digest(parts, secret)


def signatures_match(expected: str, received: str | None) -> bool:
    if not received:
        return False
    return hmac.compare_digest(expected.lower(), received.strip().lower())
