# app/api/routers/webhooks.py
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.api.deps import get_settings
from app.data.database import get_db
from app.domain.errors import ServiceError
from app.domain.schemas import WebhookAck
from app.services.webhook_service import WebhookReconciler
from app.utils.settings import Settings

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


def get_service(request: Request, db: Session, settings: Settings):
    return WebhookReconciler(
        db=db,
        secure_key=settings.fawry_secure_key,
        notifications=request.app.state.notifications,
    )


@router.post("/fawry", response_model=WebhookAck)
def fawry_webhook(
    request: Request,
    payload: Any = Body(default=None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Powiadomienie S2S od Fawry. 200 = przyjete (takze powtorka),
    400 = zly podpis lub payload, 500 = Fawry ma ponowic.
    """
    svc = get_service(request, db, settings)
    try:
        result = svc.reconcile(payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail())
    return WebhookAck(status=result.outcome.value)
