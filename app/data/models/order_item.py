from sqlalchemy import Column, Integer, ForeignKey, String, Numeric
from sqlalchemy.orm import relationship

from app.data.database import Base


class OrderItemModel(Base):
    """Niemutowalny snapshot pozycji koszyka z chwili zakupu."""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, nullable=False)

    name_ar = Column(String, nullable=False)
    name_en = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    size = Column(String(8), nullable=False)
    color = Column(String(30), nullable=True)
    quantity = Column(Integer, nullable=False)
    image_url = Column(String, nullable=True)

    order = relationship("OrderModel", back_populates="items")
