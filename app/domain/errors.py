# app/domain/errors.py
from typing import Any


class ServiceError(Exception):
    """Baza dla bledow domenowych, router mapuje status_code na HTTP."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def detail(self) -> Any:
        return self.message


class ValidationError(ServiceError):
    status_code = 400

    def __init__(self, message: str, fields: list[dict[str, str]] | None = None):
        super().__init__(message)
        self.fields = fields or []

    def detail(self) -> Any:
        return {"message": self.message, "fields": self.fields}


class NotFoundError(ServiceError):
    status_code = 404


class EmptyCartError(ServiceError):
    status_code = 400

    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class OutOfStockError(ServiceError):
    status_code = 400

    def __init__(self, product_id: int, product_name: str):
        super().__init__(f"{product_name} is out of stock")
        self.product_id = product_id
        self.product_name = product_name


class InvalidSignatureError(ServiceError):
    status_code = 400

    def __init__(self, message: str = "Invalid signature"):
        super().__init__(message)


class TransactionError(ServiceError):
    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class PersistenceError(ServiceError):
    status_code = 500


class CheckoutInProgressError(ServiceError):
    status_code = 409

    def __init__(self, message: str = "A checkout with this idempotency key is already in progress"):
        super().__init__(message)
