# app/services/notification_service.py
from decimal import Decimal
from html import escape

import requests

from app.celery_worker import celery_app
from app.data.models.order import OrderModel
from app.utils.retry import http_retry
from app.utils.settings import load_settings
from app.utils.logging import get_logger

logger = get_logger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"


def format_address(address: dict) -> str:
    parts = [address.get("address_line1"), address.get("address_line2"), address.get("city")]
    return ", ".join(p for p in parts if p)


def format_order_notification(order: OrderModel, currency: str = "EGP") -> str:
    """Wiadomosc dla operatora o nowym zamowieniu (Telegram, parse_mode HTML)."""
    address = order.shipping_address or {}
    payment = "cash on delivery" if order.payment_method == "cod" else order.payment_method
    items = "\n".join(
        f"  • {escape(item.name_ar or item.name_en)} ({escape(item.size)}) × {item.quantity}"
        for item in order.items
    )

    return (
        "🛒 <b>New order!</b>\n\n"
        f"🆔 <code>#{order.id[:8].upper()}</code>\n"
        f"👤 {escape(address.get('full_name', ''))}\n"
        f"📱 {escape(order.phone)}\n"
        f"📍 {escape(format_address(address))}\n"
        f"✈️ {order.shipping_method}\n"
        f"💰 <b>{Decimal(order.total):,.2f} {currency}</b> ({payment})\n\n"
        f"📦 <b>{len(order.items)} item(s):</b>\n"
        f"{items}"
    )


def format_payment_notification(
    order_id: str,
    payment_method: str,
    amount: Decimal,
    fawry_ref_number: str,
    currency: str = "EGP",
) -> str:
    return (
        "💸 <b>Payment received!</b>\n\n"
        f"🆔 <code>#{order_id[:8].upper()}</code>\n"
        f"🏦 Payment method: Fawry ({escape(payment_method)})\n"
        f"💰 Amount: {Decimal(amount):,.2f} {currency}\n"
        f"🔄 Fawry reference: {escape(fawry_ref_number)}"
    )


class NotificationService:
    """
    Serwis do wysyłania powiadomień do operatora.
    Fire-and-forget przez Celery: wynik nie jest obserwowany, bledy tylko logowane.
    """

    def __init__(self, currency: str = "EGP"):
        self.currency = currency

    def notify(self, text: str) -> None:
        try:
            send_telegram_message_task.delay(text)
        except Exception as e:
            # broker niedostepny, zamowienie juz zapisane wiec tylko log
            logger.warning(f"[NOTIFICATION] Failed to enqueue message: {e}")

    def send_order_notification(self, order: OrderModel) -> None:
        try:
            text = format_order_notification(order, self.currency)
        except Exception:
            # wywolywane po commicie, zamowienie juz istnieje
            logger.exception(f"[NOTIFICATION] Could not format order {order.id}, not sent")
            return
        self.notify(text)

    def send_payment_notification(
        self, order_id: str, payment_method: str, amount: Decimal, fawry_ref_number: str
    ) -> None:
        try:
            text = format_payment_notification(
                order_id, payment_method, amount, fawry_ref_number, self.currency
            )
        except Exception:
            logger.exception(f"[NOTIFICATION] Could not format payment for order {order_id}, not sent")
            return
        self.notify(text)


@http_retry()
def _post_telegram(token: str, chat_id: str, text: str) -> None:
    resp = requests.post(
        f"{TELEGRAM_API_URL}/bot{token}/sendMessage",
        json={"chat_id": chat_id, "text": text, "parse_mode": "HTML"},
        timeout=5,
    )
    resp.raise_for_status()


@celery_app.task(name="app.services.notification_service.send_telegram_message_task")
def send_telegram_message_task(text: str):
    """
    Celery task - wysyla wiadomosc do czatu admina przez Telegram Bot API.
    """
    settings = load_settings()

    if not settings.telegram_bot_token or not settings.telegram_admin_chat_id:
        logger.warning("[NOTIFICATION] Missing TELEGRAM_BOT_TOKEN or TELEGRAM_ADMIN_CHAT_ID, skipping")
        return {"status": "skipped"}

    try:
        _post_telegram(settings.telegram_bot_token, settings.telegram_admin_chat_id, text)
    except requests.RequestException as e:
        logger.error(f"[NOTIFICATION] Telegram delivery failed: {e}")
        return {"status": "failed"}

    logger.info("[NOTIFICATION] Telegram message sent")
    return {"status": "sent"}
