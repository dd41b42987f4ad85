# app/services/checkout_service.py
from collections import defaultdict
from decimal import Decimal

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.data.models.cart_item import CartItemModel
from app.data.models.order import OrderModel
from app.data.models.order_item import OrderItemModel
from app.data.models.product import ProductModel
from app.domain.errors import (
    EmptyCartError,
    OutOfStockError,
    PersistenceError,
    TransactionError,
)
from app.domain.order_status import OrderStatus
from app.domain.schemas import CheckoutIn
from app.repos.cart_repo import CartRepo
from app.repos.order_repo import OrderRepo
from app.repos.product_repo import ProductRepo
from app.repos.user_repo import UserRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutService:
    """
    Atomowa zamiana koszyka w zamowienie. Jedna transakcja bazy:
    -blokada wiersza usera i koszyka (drugi checkout tego usera czeka i widzi pusty koszyk)
    -blokada wierszy produktow i sprawdzenie stanu magazynu
    -total liczony po stronie serwera (sale_price jesli jest, inaczej price)
    -zamowienie + pozycje
    -zmniejszenie stocku warunkowym UPDATE
    -czyszczenie koszyka
    Albo wszystko sie zapisze albo nic.
    """

    def __init__(self, db: Session):
        self.db = db
        self.carts = CartRepo(db)
        self.products = ProductRepo(db)
        self.orders = OrderRepo(db)
        self.users = UserRepo(db)

    def execute(self, user_id: int, request: CheckoutIn) -> OrderModel:
        try:
            order = self._place_order(user_id, request)
            self.db.commit()
        except (EmptyCartError, OutOfStockError):
            self.db.rollback()
            raise
        except OperationalError as e:
            self.db.rollback()
            logger.error(f"Checkout for user {user_id} failed, database unavailable: {e}")
            raise PersistenceError("Database unavailable, please retry") from e
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Checkout for user {user_id} violated a constraint: {e}")
            raise TransactionError("Order could not be created", status_code=400) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Checkout for user {user_id} failed: {e}")
            raise TransactionError("Failed to create order") from e

        logger.info(
            f"Order {order.id} created for user {user_id}: "
            f"{len(order.items)} items, total {order.total}"
        )
        return order

    def _place_order(self, user_id: int, request: CheckoutIn) -> OrderModel:
        self.users.lock_user(user_id)
        cart_items = self.carts.get_items(user_id, for_update=True)
        if not cart_items:
            raise EmptyCartError()

        # ten sam produkt moze byc w kilku liniach (rozne rozmiary)
        requested: dict[int, int] = defaultdict(int)
        for item in cart_items:
            requested[item.product_id] += item.quantity

        products = self.products.lock_products(requested.keys())
        self._check_stock(requested, products)

        lines, total = self._build_lines(cart_items, products)

        order = OrderModel(
            user_id=user_id,
            status=OrderStatus.PENDING.value,
            total=total,
            shipping_address=request.shipping_address.model_dump(),
            phone=request.phone,
            payment_method=request.payment_method,
            shipping_method=request.shipping_method,
            notes=request.notes,
            items=lines,
        )
        self.orders.add_order(order)

        for product_id, quantity in requested.items():
            if self.products.decrement_stock(product_id, quantity) == 0:
                product = products[product_id]
                logger.warning(f"Stock for product {product_id} changed during checkout")
                raise OutOfStockError(product.id, product.name_en)

        cleared = self.carts.clear(user_id, [item.id for item in cart_items])
        if cleared != len(cart_items):
            # koszyk skonsumowal rownolegly checkout, to zamowienie nie moze powstac
            logger.warning(
                f"Cart of user {user_id} changed during checkout: "
                f"expected {len(cart_items)} items, removed {cleared}"
            )
            raise EmptyCartError()
        logger.info(f"Cleared {cleared} cart items for user {user_id}")

        return order

    @staticmethod
    def _check_stock(requested: dict[int, int], products: dict[int, ProductModel]) -> None:
        for product_id, quantity in requested.items():
            product = products.get(product_id)
            if product is None:
                raise OutOfStockError(product_id, f"Product {product_id}")
            if product.stock < quantity:
                logger.info(
                    f"Product {product_id} out of stock: requested {quantity}, available {product.stock}"
                )
                raise OutOfStockError(product.id, product.name_en)

    @staticmethod
    def _build_lines(
        cart_items: list[CartItemModel], products: dict[int, ProductModel]
    ) -> tuple[list[OrderItemModel], Decimal]:
        lines = []
        total = Decimal("0.00")

        for item in cart_items:
            product = products[item.product_id]
            unit_price = product.unit_price
            total += unit_price * item.quantity

            lines.append(
                OrderItemModel(
                    product_id=product.id,
                    name_ar=product.name_ar,
                    name_en=product.name_en,
                    price=unit_price,
                    size=item.size,
                    color=item.color,
                    quantity=item.quantity,
                    image_url=product.image_url,
                )
            )

        return lines, total
