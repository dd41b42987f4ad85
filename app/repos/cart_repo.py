# app/repos/cart_repo.py
from typing import Iterable

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, joinedload

from app.data.models.cart_item import CartItemModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_items(
        self, user_id: int, with_products: bool = False, for_update: bool = False
    ) -> list[CartItemModel]:
        stmt = (
            select(CartItemModel)
            .where(CartItemModel.user_id == user_id)
            .order_by(CartItemModel.id)
        )
        if with_products:
            stmt = stmt.options(joinedload(CartItemModel.product))
        if for_update:
            # checkout: wiersze koszyka zablokowane do commita, swiezy odczyt
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return list(self.db.execute(stmt).scalars().all())

    def get_item(self, item_id: int) -> CartItemModel | None:
        return self.db.get(CartItemModel, item_id)

    def find_item(
        self, user_id: int, product_id: int, size: str, color: str | None
    ) -> CartItemModel | None:
        stmt = select(CartItemModel).where(
            CartItemModel.user_id == user_id,
            CartItemModel.product_id == product_id,
            CartItemModel.size == size,
        )
        stmt = stmt.where(
            CartItemModel.color.is_(None) if color is None else CartItemModel.color == color
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def add_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_item(self, item: CartItemModel) -> None:
        self.db.delete(item)

    def clear(self, user_id: int, item_ids: Iterable[int]) -> int:
        # tylko pozycje ktore weszly do zamowienia, rowcount sprawdza checkout
        result = self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.user_id == user_id, CartItemModel.id.in_(list(item_ids)))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()
