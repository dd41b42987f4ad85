# app/domain/schemas.py
from pydantic import AliasChoices, BaseModel, Field, ConfigDict, field_validator
from typing import List, Literal
from decimal import Decimal
from datetime import datetime
import re

PHONE_PATTERN = re.compile(r"^01[0125][0-9]{8}$")

PaymentMethod = Literal["cod", "card", "fawry", "vodafone_cash"]
ShippingMethod = Literal["standard", "fast", "pickup"]
Size = Literal["S", "M", "L", "XL", "XXL", "40", "41", "42", "43", "44", "45"]

#metody platnosci wymagajace przekierowania do bramki
ASYNC_PAYMENT_METHODS = frozenset({"fawry"})

NOTES_MAX_LENGTH = 500
MAX_ITEM_QUANTITY = 10


class ShippingAddressIn(BaseModel):
    """Adres dostawy z formularza checkout."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    full_name: str = Field(..., alias="fullName", min_length=2, max_length=100)
    address_line1: str = Field(..., alias="addressLine1", min_length=5, max_length=255)
    address_line2: str | None = Field(default=None, alias="addressLine2", max_length=255)
    city: str = Field(..., min_length=2, max_length=50)

    @field_validator("address_line2")
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        return value or None


class CheckoutIn(BaseModel):
    """
    Payload POST /orders. Pole total od klienta (jesli jest) jest ignorowane,
    kwote liczy wylacznie serwer.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    shipping_address: ShippingAddressIn = Field(..., alias="shippingAddress")
    phone: str
    payment_method: PaymentMethod = Field(default="cod", alias="paymentMethod")
    shipping_method: ShippingMethod = Field(default="standard", alias="shippingMethod")
    notes: str | None = Field(default=None, max_length=NOTES_MAX_LENGTH)

    @field_validator("phone")
    @classmethod
    def egyptian_mobile(cls, value: str) -> str:
        if not PHONE_PATTERN.match(value):
            raise ValueError("Invalid Egyptian phone number")
        return value

    @field_validator("notes")
    @classmethod
    def blank_notes(cls, value: str | None) -> str | None:
        return value or None

    @property
    def is_async_payment(self) -> bool:
        return self.payment_method in ASYNC_PAYMENT_METHODS


class CheckoutOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(..., alias="orderId")
    fawry_url: str | None = Field(default=None, alias="fawryUrl")


class FawryWebhookIn(BaseModel):
    """
    Powiadomienie server-to-server od Fawry.
    Pola podpisane zostaja surowe (bez strip), podpis liczony jest z wartosci jak przyszly.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    request_id: str | None = Field(default=None, alias="requestId")
    fawry_ref_number: str = Field(..., alias="fawryRefNumber", min_length=1)
    merchant_ref_number: str = Field(
        ...,
        validation_alias=AliasChoices("merchantRefNumber", "merchantRefNum", "merchant_ref_number"),
        min_length=1,
    )
    customer_mobile: str | None = Field(default=None, alias="customerMobile")
    payment_amount: Decimal = Field(..., alias="paymentAmount")
    order_amount: Decimal = Field(..., alias="orderAmount")
    order_status: str = Field(..., alias="orderStatus", min_length=1)
    payment_method: str = Field(default="", alias="paymentMethod")
    # pisownia "Refrence" pochodzi z API Fawry
    payment_reference_number: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "paymentRefrenceNumber", "paymentReferenceNumber", "payment_reference_number"
        ),
    )
    signature: str = Field(
        ...,
        validation_alias=AliasChoices("messageSignature", "signature"),
        min_length=1,
    )


class WebhookAck(BaseModel):
    success: bool = True
    status: str


class CartItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi być > 0)")
    size: Size
    color: str | None = Field(default=None, max_length=30)
    quantity: int = Field(..., gt=0, le=MAX_ITEM_QUANTITY, description="Ilość produktu (1-10)")


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., gt=0, le=MAX_ITEM_QUANTITY)


class CartItemOut(BaseModel):
    id: int
    product_id: int
    name_en: str
    size: str
    color: str | None = None
    quantity: int
    unit_price: Decimal
    line_total: Decimal


class CartOut(BaseModel):
    """Schema dla koszyka (response). Total tylko informacyjnie."""

    user_id: int
    items: List[CartItemOut]
    total: Decimal


class OrderItemOut(BaseModel):
    product_id: int
    name_ar: str
    name_en: str
    price: Decimal
    size: str
    color: str | None = None
    quantity: int
    image_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    """Schema dla zamówienia (response)."""

    id: str
    user_id: int
    status: str
    total: Decimal
    shipping_address: dict
    phone: str
    payment_method: str
    shipping_method: str
    notes: str | None = None
    transaction_id: str | None = None
    created_at: datetime
    items: List[OrderItemOut]

    model_config = ConfigDict(from_attributes=True)


class UserCreate(BaseModel):
    """Schema dla tworzenia użytkownika."""

    id: int = Field(..., gt=0, description="ID użytkownika (musi być > 0)")
    name: str = Field(..., min_length=1, max_length=100, description="Imię użytkownika")
    email: str | None = Field(default=None, max_length=255)


class UserRead(BaseModel):
    """Schema dla użytkownika (response)."""

    id: int
    name: str
    email: str | None = None
    full_name: str | None = None
    phone: str | None = None
    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserCreated(UserRead):
    api_token: str
