from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric, JSON, Text
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import uuid

from app.data.database import Base
from app.domain.order_status import OrderStatus

class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    status = Column(String, nullable=False, default=OrderStatus.PENDING.value)  # pending, confirmed, cancelled, refunded
    total = Column(Numeric(10, 2), nullable=False)

    shipping_address = Column(JSON, nullable=False)
    phone = Column(String(20), nullable=False)
    payment_method = Column(String(20), nullable=False)
    shipping_method = Column(String(20), nullable=False)
    notes = Column(Text, nullable=True)
    # referencja Fawry, ustawiana przez webhook
    transaction_id = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )
