from decimal import Decimal

from sqlalchemy import Column, Integer, String, Numeric, JSON, CheckConstraint

from app.data.database import Base


class ProductModel(Base):
    """Snapshot produktu czytany przy checkout, katalogiem zarzadza admin."""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name_ar = Column(String, nullable=False)
    name_en = Column(String, nullable=False)

    price = Column(Numeric(10, 2), nullable=False)
    sale_price = Column(Numeric(10, 2), nullable=True)
    stock = Column(Integer, nullable=False, default=0)
    images = Column(JSON, nullable=False, default=list)

    __table_args__ = (
        CheckConstraint("sale_price IS NULL OR sale_price <= price", name="ck_products_sale_price"),
        CheckConstraint("stock >= 0", name="ck_products_stock"),
    )

    @property
    def unit_price(self) -> Decimal:
        return self.sale_price if self.sale_price is not None else self.price

    @property
    def image_url(self) -> str | None:
        return self.images[0] if self.images else None
