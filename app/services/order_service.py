# app/services/order_service.py
from dataclasses import dataclass
from typing import Any

from sqlalchemy.orm import Session

from app.data.models.order import OrderModel
from app.data.models.user import UserModel
from app.domain.errors import CheckoutInProgressError, NotFoundError
from app.domain.schemas import CheckoutIn, CheckoutOut
from app.domain.validation import validate_checkout
from app.repos.order_repo import OrderRepo
from app.services.checkout_service import CheckoutService
from app.services.fawry_client import ChargeItem, ChargeRequest, FawryGateway
from app.services.idempotency_service import IdempotencyCache
from app.services.notification_service import NotificationService
from app.utils.settings import Settings
from app.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class PlacedOrder:
    response: CheckoutOut
    request: CheckoutIn
    replayed: bool = False


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień.
    Checkout: walidacja -> idempotency cache -> transakcja -> Fawry -> cache.
    """

    def __init__(
        self,
        db: Session,
        settings: Settings,
        idempotency: IdempotencyCache,
        gateway: FawryGateway,
        notifications: NotificationService,
    ):
        self.db = db
        self.settings = settings
        self.repo = OrderRepo(db)
        self.checkout = CheckoutService(db)
        self.idempotency = idempotency
        self.gateway = gateway
        self.notifications = notifications

    def place_order(
        self,
        user: UserModel,
        payload: Any,
        idempotency_key: str | None = None,
    ) -> PlacedOrder:
        """
        Use Case: Złożenie zamówienia z koszyka użytkownika.

        Bez Idempotency-Key nie ma ochrony przed powtorzeniem, swiadomie.
        Przy trafieniu w cache zwracana jest poprzednia odpowiedz, bez efektow ubocznych.
        """
        request = validate_checkout(payload)

        if not idempotency_key:
            return PlacedOrder(self._place(user, request), request)

        cached = self.idempotency.get(user.id, idempotency_key)
        if cached is not None:
            logger.info(f"Idempotent replay for user {user.id}, key {idempotency_key}")
            return PlacedOrder(CheckoutOut.model_validate(cached), request, replayed=True)

        lease = self.idempotency.acquire_lease(
            user.id, idempotency_key, self.settings.idempotency_lease_seconds
        )
        if lease is None:
            # drugi request z tym samym kluczem, moze pierwszy juz skonczyl
            cached = self.idempotency.get(user.id, idempotency_key)
            if cached is not None:
                return PlacedOrder(CheckoutOut.model_validate(cached), request, replayed=True)
            raise CheckoutInProgressError()

        try:
            response = self._place(user, request)
            self.idempotency.put(
                user.id,
                idempotency_key,
                response.model_dump(by_alias=True, exclude_none=True),
                self.settings.idempotency_ttl_seconds,
            )
            return PlacedOrder(response, request)
        finally:
            self.idempotency.release_lease(user.id, idempotency_key, lease)

    def _place(self, user: UserModel, request: CheckoutIn) -> CheckoutOut:
        order = self.checkout.execute(user.id, request)

        fawry_url = None
        if request.is_async_payment:
            fawry_url = self._start_payment(user, request, order)

        # po commicie, best-effort
        self.notifications.send_order_notification(order)

        return CheckoutOut(order_id=order.id, fawry_url=fawry_url)

    def _start_payment(self, user: UserModel, request: CheckoutIn, order: OrderModel) -> str | None:
        charge = ChargeRequest(
            merchant_ref_num=order.id,
            customer_profile_id=str(user.id),
            customer_name=request.shipping_address.full_name,
            customer_mobile=request.phone,
            customer_email=user.email or self.settings.default_customer_email,
            amount=order.total,
            currency_code=self.settings.currency_code,
            return_url=f"{self.settings.site_url}/en/checkout/success?orderId={order.id}",
            charge_items=[
                ChargeItem(
                    item_id=str(item.product_id),
                    description=item.name_en,
                    price=item.price,
                    quantity=item.quantity,
                )
                for item in order.items
            ],
        )

        try:
            session = self.gateway.create_charge(charge)
        except Exception:
            # zamowienie juz jest, klient dostaje 201 bez przekierowania
            logger.exception(f"Fawry charge generation failed for order {order.id}")
            return None

        return session.hosted_url

    def get_order(self, order_id: str, user_id: int) -> OrderModel:
        """
        Use Case: Pobranie zamówienia (Query).
        """
        order = self.repo.get_order(order_id)

        # cudze zamowienie wyglada jak nieistniejace
        if not order or order.user_id != user_id:
            raise NotFoundError("Order not found")

        return order

    def list_orders(self, user_id: int) -> list[OrderModel]:
        return self.repo.list_orders(user_id)
