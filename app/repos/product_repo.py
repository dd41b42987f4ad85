# app/repos/product_repo.py
from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.data.models.product import ProductModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def lock_products(self, product_ids: Iterable[int]) -> dict[int, ProductModel]:
        """
        SELECT ... FOR UPDATE na wierszach produktow (postgres), kolejnosc po id
        zeby dwa rownolegle checkouty nie zakleszczyly sie na blokadach.
        populate_existing bo produkt mogl byc juz w sesji ze starym stanem.
        """
        stmt = (
            select(ProductModel)
            .where(ProductModel.id.in_(list(product_ids)))
            .order_by(ProductModel.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return {p.id: p for p in self.db.execute(stmt).scalars().all()}

    def decrement_stock(self, product_id: int, quantity: int) -> int:
        # warunek stock >= quantity w tym samym UPDATE, 0 rows = brak towaru
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.stock >= quantity)
            .values(stock=ProductModel.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
