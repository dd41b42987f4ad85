import hashlib
from decimal import Decimal

import pytest

from app.domain.signature import (
    charge_signature,
    format_amount,
    signatures_match,
    webhook_signature,
)


class TestFormatAmount:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (1200, "1200.00"),
            (0.1, "0.10"),
            (599.5, "599.50"),
            (Decimal("2.005"), "2.01"),
            (Decimal("19.999"), "20.00"),
            ("45", "45.00"),
        ],
    )
    def test_always_two_decimals(self, value, expected):
        assert format_amount(value) == expected


class TestChargeSignature:
    def test_matches_documented_concatenation(self):
        items = [
            {"itemId": "7", "quantity": 2, "price": Decimal("600")},
            {"itemId": "9", "quantity": 1, "price": 350.5},
        ]
        expected = hashlib.sha256(
            "MERCHANTorder-1user-1http://shop.test/ok"
            "72600.00"
            "91350.50"
            "secret".encode()
        ).hexdigest()

        signature = charge_signature("MERCHANT", "order-1", "user-1", "http://shop.test/ok", items, "secret")

        assert signature == expected

    def test_missing_return_url_is_skipped(self):
        with_none = charge_signature("M", "o", "u", None, [], "s")
        assert with_none == hashlib.sha256(b"Mous").hexdigest()

    def test_price_formatting_does_not_change_signature(self):
        a = charge_signature("M", "o", "u", None, [{"itemId": "1", "quantity": 1, "price": 600}], "s")
        b = charge_signature("M", "o", "u", None, [{"itemId": "1", "quantity": 1, "price": "600.00"}], "s")
        assert a == b


class TestWebhookSignature:
    def test_field_order(self):
        expected = hashlib.sha256(
            "FAW-1order-11200.001200.00PAIDPayAtFawryREF-9secret".encode()
        ).hexdigest()

        signature = webhook_signature(
            "FAW-1", "order-1", 1200, Decimal("1200"), "PAID", "PayAtFawry", "REF-9", "secret"
        )

        assert signature == expected

    def test_amount_change_changes_signature(self):
        base = webhook_signature("F", "o", 100, 100, "PAID", "CARD", None, "s")
        tampered = webhook_signature("F", "o", 1, 100, "PAID", "CARD", None, "s")
        assert base != tampered


class TestSignaturesMatch:
    def test_case_insensitive(self):
        assert signatures_match("abcdef", "ABCDEF")

    def test_missing_signature(self):
        assert not signatures_match("abcdef", None)
        assert not signatures_match("abcdef", "")

    def test_mismatch(self):
        assert not signatures_match("abcdef", "abcdee")
