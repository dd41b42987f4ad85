# app/api/routers/orders.py
from typing import Any, List

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_settings, read_checkout_body
from app.data.database import get_db
from app.data.models.user import UserModel
from app.domain.errors import ServiceError
from app.domain.schemas import CheckoutOut, OrderOut
from app.services.order_service import OrderService
from app.services.user_service import sync_profile_in_background
from app.utils.settings import Settings
from app.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(request: Request, db: Session, settings: Settings):
    state = request.app.state
    return OrderService(
        db=db,
        settings=settings,
        idempotency=state.idempotency,
        gateway=state.gateway,
        notifications=state.notifications,
    )


@router.post(
    "",
    response_model=CheckoutOut,
    response_model_exclude_none=True,
    status_code=201,
)
def create_order(
    request: Request,
    background_tasks: BackgroundTasks,
    payload: Any = Depends(read_checkout_body),
    idempotency_key: str | None = Header(default=None),
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Tworzy zamówienie z koszyka użytkownika.
    Total liczony po stronie serwera, opcjonalny naglowek Idempotency-Key.
    """
    svc = get_service(request, db, settings)
    try:
        placed = svc.place_order(user, payload, idempotency_key)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())
    except Exception:
        logger.exception(f"[Orders API] Unexpected checkout failure for user {user.id}")
        raise HTTPException(status_code=500, detail="Internal server error")

    if not placed.replayed:
        # fire-and-forget, kolejnosc wzgledem odpowiedzi nieokreslona
        background_tasks.add_task(
            sync_profile_in_background,
            request.app.state.session_factory,
            user.id,
            placed.request,
        )

    return placed.response


@router.get("", response_model=List[OrderOut])
def list_orders(
    request: Request,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    svc = get_service(request, db, settings)
    return svc.list_orders(user.id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: str,
    request: Request,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Pobiera szczegóły zamówienia.
    """
    svc = get_service(request, db, settings)
    try:
        return svc.get_order(order_id, user.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())
