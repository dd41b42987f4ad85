# app/api/deps.py
from typing import Any

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.orm import Session

from app.data.database import get_db
from app.data.models.user import UserModel
from app.services.user_service import UserService
from app.utils.settings import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_current_user(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> UserModel:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Unauthorized")

    user = UserService(db).authenticate(token.strip())
    if not user:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


async def read_checkout_body(
    request: Request,
    user: UserModel = Depends(get_current_user),
) -> Any:
    """
    Body checkoutu czytany dopiero po autoryzacji, anonim zawsze dostaje 401.
    Niepoprawny JSON = None, walidator zwroci 400 z polem "body".
    """
    try:
        return await request.json()
    except ValueError:
        return None
