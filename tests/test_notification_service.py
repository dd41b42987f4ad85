from decimal import Decimal
from unittest.mock import Mock

import pytest
import requests

from app.data.models import OrderItemModel, OrderModel
from app.services import notification_service
from app.services.notification_service import (
    NotificationService,
    format_order_notification,
    format_payment_notification,
    send_telegram_message_task,
)


@pytest.fixture()
def order():
    return OrderModel(
        id="6f1c2a9e-1b2c-4d5e-8f90-123456789abc",
        user_id=1,
        status="pending",
        total=Decimal("1200.00"),
        shipping_address={
            "full_name": "Mona <Hassan>",
            "address_line1": "12 Tahrir Street",
            "address_line2": None,
            "city": "Cairo",
        },
        phone="01012345678",
        payment_method="cod",
        shipping_method="standard",
        items=[
            OrderItemModel(
                product_id=7, name_ar="هودي", name_en="Hoodie",
                price=Decimal("600.00"), size="L", quantity=2,
            )
        ],
    )


@pytest.fixture()
def telegram_env(monkeypatch):
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "bot-token")
    monkeypatch.setenv("TELEGRAM_ADMIN_CHAT_ID", "42")


class TestFormatting:
    def test_order_message(self, order):
        text = format_order_notification(order)

        assert "#6F1C2A9E" in text
        assert "1,200.00 EGP" in text
        assert "cash on delivery" in text
        assert "12 Tahrir Street, Cairo" in text
        assert "هودي (L) × 2" in text
        assert "1 item(s)" in text

    def test_order_message_escapes_html(self, order):
        text = format_order_notification(order)

        assert "Mona &lt;Hassan&gt;" in text
        assert "<Hassan>" not in text

    def test_payment_message(self):
        text = format_payment_notification(
            "6f1c2a9e-1b2c", "PayAtFawry", Decimal("1550"), "FAW-9"
        )

        assert "#6F1C2A9E" in text
        assert "Fawry (PayAtFawry)" in text
        assert "1,550.00 EGP" in text
        assert "FAW-9" in text


class TestNotificationService:
    def test_enqueues_message(self, order, monkeypatch):
        task = Mock()
        monkeypatch.setattr(notification_service, "send_telegram_message_task", task)

        NotificationService("EGP").send_order_notification(order)

        text = task.delay.call_args.args[0]
        assert "New order" in text

    def test_enqueue_failure_is_swallowed(self, order, monkeypatch):
        task = Mock()
        task.delay.side_effect = OSError("broker unreachable")
        monkeypatch.setattr(notification_service, "send_telegram_message_task", task)

        NotificationService("EGP").send_payment_notification("order-1", "CARD", Decimal("10"), "F-1")

        assert task.delay.call_count == 1


    def test_formatting_failure_is_swallowed(self, order, monkeypatch):
        task = Mock()
        monkeypatch.setattr(notification_service, "send_telegram_message_task", task)
        order.items[0].size = None  # escape(None) nie przejdzie

        NotificationService("EGP").send_order_notification(order)

        task.delay.assert_not_called()

    def test_payment_formatting_failure_is_swallowed(self, monkeypatch):
        task = Mock()
        monkeypatch.setattr(notification_service, "send_telegram_message_task", task)

        NotificationService("EGP").send_payment_notification("order-1", None, Decimal("10"), "F-1")

        task.delay.assert_not_called()


class TestTelegramTask:
    def test_skipped_without_credentials(self, monkeypatch):
        monkeypatch.delenv("TELEGRAM_BOT_TOKEN", raising=False)
        monkeypatch.delenv("TELEGRAM_ADMIN_CHAT_ID", raising=False)
        post = Mock()
        monkeypatch.setattr(notification_service.requests, "post", post)

        assert send_telegram_message_task("hello") == {"status": "skipped"}
        post.assert_not_called()

    def test_sends_html_message(self, telegram_env, monkeypatch):
        post = Mock()
        monkeypatch.setattr(notification_service.requests, "post", post)

        result = send_telegram_message_task.delay("<b>hello</b>").get()

        assert result == {"status": "sent"}
        url = post.call_args.args[0]
        assert url == "https://api.telegram.org/botbot-token/sendMessage"
        assert post.call_args.kwargs["json"] == {
            "chat_id": "42",
            "text": "<b>hello</b>",
            "parse_mode": "HTML",
        }

    def test_delivery_failure(self, telegram_env, monkeypatch):
        post = Mock(side_effect=requests.ConnectionError("no route"))
        monkeypatch.setattr(notification_service.requests, "post", post)

        assert send_telegram_message_task("hello") == {"status": "failed"}
        assert post.call_count == 3
