# app/domain/validation.py
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from app.domain.errors import ValidationError
from app.domain.schemas import CheckoutIn, FawryWebhookIn

T = TypeVar("T", bound=BaseModel)


def _field_errors(exc: PydanticValidationError) -> list[dict[str, str]]:
    fields = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "body"
        # ValueError z walidatora ma prefiks "Value error, ", bierzemy sam tekst
        if err["type"] == "value_error" and "error" in err.get("ctx", {}):
            message = str(err["ctx"]["error"])
        else:
            message = err["msg"]
        fields.append({"field": loc, "message": message})
    return fields


def _validate(schema: type[T], payload: Any, message: str) -> T:
    if not isinstance(payload, dict):
        raise ValidationError(message, [{"field": "body", "message": "Expected a JSON object"}])
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(message, _field_errors(e)) from e


def validate_checkout(payload: Any) -> CheckoutIn:
    """Walidacja payloadu checkout, przed jakimkolwiek efektem ubocznym."""
    return _validate(CheckoutIn, payload, "Invalid checkout request")


def validate_webhook(payload: Any) -> FawryWebhookIn:
    return _validate(FawryWebhookIn, payload, "Invalid webhook payload")
