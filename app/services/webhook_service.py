# app/services/webhook_service.py
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.errors import InvalidSignatureError, PersistenceError
from app.domain.order_status import GatewayStatus, OrderStatus, can_transition, target_status
from app.domain.schemas import FawryWebhookIn
from app.domain.signature import signatures_match, webhook_signature
from app.domain.validation import validate_webhook
from app.repos.order_repo import OrderRepo
from app.services.notification_service import NotificationService
from app.utils.logging import get_logger

logger = get_logger(__name__)


class ReconcileOutcome(str, Enum):
    APPLIED = "applied"
    UNCHANGED = "unchanged"
    IGNORED = "ignored"


@dataclass(frozen=True)
class ReconcileResult:
    order_id: str
    outcome: ReconcileOutcome
    status: str | None = None


class WebhookReconciler:
    """
    Przetwarzanie webhookow Fawry:
    -weryfikacja podpisu (granica bezpieczenstwa, bez wyjatkow)
    -mapowanie statusu Fawry na status zamowienia
    -idempotentne przejscia, ten sam webhook mozna dostac wiele razy
    -blad bazy = PersistenceError (500), Fawry ponowi powiadomienie
    """

    def __init__(self, db: Session, secure_key: str, notifications: NotificationService):
        self.db = db
        self.repo = OrderRepo(db)
        self.secure_key = secure_key
        self.notifications = notifications

    def reconcile(self, payload: Any) -> ReconcileResult:
        notification = validate_webhook(payload)
        self._verify_signature(notification)

        order_id = notification.merchant_ref_number
        gateway_status = GatewayStatus.parse(notification.order_status)
        target = target_status(gateway_status)

        logger.info(f"[Fawry Webhook] Order {order_id} status update: {notification.order_status}")

        if target is None:
            logger.warning(
                f"[Fawry Webhook] Status {notification.order_status!r} for order {order_id} "
                f"has no order mapping, leaving status unchanged"
            )
            return ReconcileResult(order_id, ReconcileOutcome.IGNORED)

        try:
            result = self._apply(order_id, target, notification.fawry_ref_number)
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.error(f"[Fawry Webhook] Error updating order {order_id}: {e}")
            raise PersistenceError("Database update failed") from e

        if result.outcome is ReconcileOutcome.APPLIED and target is OrderStatus.CONFIRMED:
            self.notifications.send_payment_notification(
                order_id,
                notification.payment_method,
                notification.payment_amount,
                notification.fawry_ref_number,
            )

        return result

    def _verify_signature(self, notification: FawryWebhookIn) -> None:
        expected = webhook_signature(
            fawry_ref_number=notification.fawry_ref_number,
            merchant_ref_number=notification.merchant_ref_number,
            payment_amount=notification.payment_amount,
            order_amount=notification.order_amount,
            order_status=notification.order_status,
            payment_method=notification.payment_method,
            payment_reference_number=notification.payment_reference_number,
            secret=self.secure_key,
        )

        if not signatures_match(expected, notification.signature):
            logger.warning(
                f"[Fawry Webhook] Invalid signature for order {notification.merchant_ref_number}, "
                f"possible tampering (fawryRefNumber={notification.fawry_ref_number})"
            )
            raise InvalidSignatureError()

    def _apply(self, order_id: str, target: OrderStatus, fawry_ref_number: str) -> ReconcileResult:
        order = self.repo.get_order(order_id)
        if order is None:
            logger.warning(f"[Fawry Webhook] Unknown order {order_id}, ignoring")
            return ReconcileResult(order_id, ReconcileOutcome.IGNORED)

        current = OrderStatus(order.status)

        if current is target:
            logger.info(f"[Fawry Webhook] Order {order_id} already {target.value}, nothing to do")
            return ReconcileResult(order_id, ReconcileOutcome.UNCHANGED, current.value)

        if not can_transition(current, target):
            # np. REFUNDED dla zamowienia ktore nigdy nie bylo confirmed
            logger.warning(
                f"[Fawry Webhook] Anomalous transition {current.value} -> {target.value} "
                f"for order {order_id}, ignoring"
            )
            return ReconcileResult(order_id, ReconcileOutcome.IGNORED, current.value)

        rowcount = self.repo.transition_status(order_id, current.value, target.value, fawry_ref_number)
        self.repo.commit()

        if rowcount == 0:
            # ktos zmienil status w miedzyczasie (rownolegly retry webhooka)
            self.db.refresh(order)
            if order.status == target.value:
                return ReconcileResult(order_id, ReconcileOutcome.UNCHANGED, order.status)
            logger.warning(
                f"[Fawry Webhook] Order {order_id} changed to {order.status} concurrently, "
                f"{target.value} not applied"
            )
            return ReconcileResult(order_id, ReconcileOutcome.IGNORED, order.status)

        logger.info(f"[Fawry Webhook] Order {order_id}: {current.value} -> {target.value}")
        return ReconcileResult(order_id, ReconcileOutcome.APPLIED, target.value)
