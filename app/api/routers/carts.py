#app/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.data.database import get_db
from app.data.models.user import UserModel
from app.domain.errors import ServiceError
from app.domain.schemas import (
    CartItemIn,
    CartItemUpdate,
    CartOut,
)
from app.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(db: Session):
    return CartService(db)


@router.get("", response_model=CartOut)
def get_cart(
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    return svc.get_cart(user.id)


@router.post("/items", response_model=CartOut, status_code=201)
def add_item(
    payload: CartItemIn,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.add_item(user.id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())


@router.patch("/items/{item_id}", response_model=CartOut)
def update_item(
    item_id: int,
    payload: CartItemUpdate,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.update_item(user.id, item_id, payload.quantity)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(
    item_id: int,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.remove_item(user.id, item_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())
