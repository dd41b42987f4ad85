# app/repos/order_repo.py
from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from app.data.models.order import OrderModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        # bez commita, commit robi transakcja checkout
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: str) -> OrderModel | None:
        stmt = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.id == order_id)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_orders(self, user_id: int) -> list[OrderModel]:
        stmt = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.user_id == user_id)
            .order_by(OrderModel.created_at.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def transition_status(
        self,
        order_id: str,
        from_status: str,
        to_status: str,
        transaction_id: str | None,
    ) -> int:
        # update set status where id and status = from_status, jak optimistic locking
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status == from_status)
            .values(status=to_status, transaction_id=transaction_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
