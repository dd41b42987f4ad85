# app/services/cart_service.py
from decimal import Decimal
from typing import Dict, Any

from sqlalchemy.orm import Session

from app.data.models.cart_item import CartItemModel
from app.domain.errors import NotFoundError, ValidationError
from app.domain.schemas import CartItemIn, MAX_ITEM_QUANTITY
from app.repos.cart_repo import CartRepo
from app.repos.product_repo import ProductRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Prosta implementacja cqrs i proste use case dla domeny cart
    commands (add, update, remove) modyfikuja stan
    query (get) tylko odczyt, ceny zawsze aktualne z produktu
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    #query - odczyt
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        items = self.repo.get_items(user_id, with_products=True)

        lines = [
            {
                "id": i.id,
                "product_id": i.product_id,
                "name_en": i.product.name_en,
                "size": i.size,
                "color": i.color,
                "quantity": i.quantity,
                "unit_price": i.product.unit_price,
                "line_total": i.product.unit_price * i.quantity,
            }
            for i in items
        ]

        #dict przyksztalcany w jsona
        return {
            "user_id": user_id,
            "items": lines,
            "total": sum((line["line_total"] for line in lines), Decimal("0.00")),
        }

    #commands
    def add_item(self, user_id: int, payload: CartItemIn) -> Dict[str, Any]:
        product = self.products.get_product(payload.product_id)
        if not product:
            raise NotFoundError("Product not found")

        existing = self.repo.find_item(user_id, payload.product_id, payload.size, payload.color)

        if existing:
            new_quantity = existing.quantity + payload.quantity
            self._check_quantity(new_quantity)
            logger.info(
                f"Product {payload.product_id} already in cart of user {user_id}, "
                f"quantity {existing.quantity} -> {new_quantity}"
            )
            existing.quantity = new_quantity
        else:
            logger.info(f"Adding product {payload.product_id} to cart of user {user_id}")
            self.repo.add_item(
                CartItemModel(
                    user_id=user_id,
                    product_id=payload.product_id,
                    size=payload.size,
                    color=payload.color,
                    quantity=payload.quantity,
                )
            )

        self.repo.commit()
        return self.get_cart(user_id)

    def update_item(self, user_id: int, item_id: int, quantity: int) -> Dict[str, Any]:
        item = self._owned_item(user_id, item_id)
        self._check_quantity(quantity)

        item.quantity = quantity
        self.repo.commit()

        logger.info(f"Cart item {item_id} of user {user_id} set to quantity {quantity}")
        return self.get_cart(user_id)

    def remove_item(self, user_id: int, item_id: int) -> Dict[str, Any]:
        item = self._owned_item(user_id, item_id)

        self.repo.delete_item(item)
        self.repo.commit()

        logger.info(f"Cart item {item_id} removed from cart of user {user_id}")
        return self.get_cart(user_id)

    def _owned_item(self, user_id: int, item_id: int) -> CartItemModel:
        item = self.repo.get_item(item_id)
        if not item or item.user_id != user_id:
            raise NotFoundError("Cart item not found")
        return item

    @staticmethod
    def _check_quantity(quantity: int) -> None:
        if quantity <= 0 or quantity > MAX_ITEM_QUANTITY:
            raise ValidationError(
                "Invalid quantity",
                [{
                    "field": "quantity",
                    "message": f"Cannot order more than {MAX_ITEM_QUANTITY} of the same item",
                }],
            )
