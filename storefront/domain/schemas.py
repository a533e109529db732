# storefront/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Literal
from decimal import Decimal
from datetime import datetime


OrderStatus = Literal["pending", "paid", "shipped", "completed", "cancelled"]
DiscountType = Literal["percent", "fixed"]
PaymentMethod = Literal["COD", "Momo", "VNPay"]


class UserCreate(BaseModel):
    """Schema dla tworzenia użytkownika."""

    id: int = Field(..., gt=0, description="ID użytkownika (musi być > 0)")
    name: str = Field(..., min_length=1, max_length=100, description="Imię użytkownika")


class UserRead(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


#produkty

class VariantIn(BaseModel):
    sku: str = Field(..., min_length=1)
    price: Decimal = Field(..., ge=0)
    stock: int = Field(0, ge=0)


class ProductCreate(BaseModel):
    """Schema dla tworzenia produktu razem z wariantami."""

    name: str = Field(..., min_length=1)
    variants: List[VariantIn] = Field(default_factory=list)


class VariantOut(BaseModel):
    """Snapshot wariantu w odpowiedziach koszyka i zamówienia."""

    id: int
    product_id: int
    sku: str
    price: Decimal
    stock: int

    model_config = ConfigDict(from_attributes=True)


class ProductOut(BaseModel):
    id: int
    name: str
    is_active: bool
    variants: List[VariantOut]

    model_config = ConfigDict(from_attributes=True)


#koszyk

class CartItemIn(BaseModel):
    product_variant_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0, description="Ilość produktu (musi być > 0)")


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., gt=0)


class CartItemOut(BaseModel):
    id: int
    product_name: str
    variant: VariantOut
    quantity: int
    price: Decimal
    sub_total: Decimal


class CartOut(BaseModel):
    id: int
    user_id: int
    items: List[CartItemOut]
    total_items: int
    sub_total: Decimal


#vouchery

class VoucherCreate(BaseModel):
    code: str = Field(..., min_length=1)
    description: str = ""
    discount_type: DiscountType
    discount_value: Decimal = Field(..., gt=0)
    min_order_value: Decimal = Field(Decimal("0"), ge=0)
    max_discount_value: Decimal | None = Field(None, ge=0)
    usage_limit: int | None = Field(None, ge=0)
    usage_per_user: int = Field(1, ge=0)
    start_at: datetime | None = None
    end_at: datetime | None = None


class VoucherUpdate(BaseModel):
    """Czesciowa aktualizacja, zmieniane sa tylko przeslane pola."""

    description: str | None = None
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = Field(None, gt=0)
    min_order_value: Decimal | None = Field(None, ge=0)
    max_discount_value: Decimal | None = Field(None, ge=0)
    usage_limit: int | None = Field(None, ge=0)
    usage_per_user: int | None = Field(None, ge=0)
    start_at: datetime | None = None
    end_at: datetime | None = None
    is_active: bool | None = None


class VoucherOut(BaseModel):
    id: int
    code: str
    description: str
    discount_type: str
    discount_value: Decimal
    min_order_value: Decimal
    max_discount_value: Decimal | None = None
    usage_limit: int | None = None
    usage_per_user: int
    used_count: int
    start_at: datetime | None = None
    end_at: datetime | None = None
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VoucherValidationOut(BaseModel):
    valid: bool
    message: str
    discount_amount: Decimal


#zamowienia

class OrderCreate(BaseModel):
    """Schema dla tworzenia zamówienia z koszyka użytkownika."""

    voucher_code: str | None = None
    shipping_address: str = Field(..., min_length=1)


class OrderStatusUpdate(BaseModel):
    order_id: int = Field(..., gt=0)
    status: OrderStatus


class PaymentCreate(BaseModel):
    payment_method: PaymentMethod


class PaymentOut(BaseModel):
    id: int
    payment_method: str
    payment_status: str
    paid_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class OrderItemOut(BaseModel):
    id: int
    product_name: str
    variant: VariantOut
    price: Decimal
    quantity: int
    sub_total: Decimal


class OrderOut(BaseModel):
    """Schema dla zamówienia (response)."""

    id: int
    user_id: int
    voucher_code: str | None = None
    discount_amount: Decimal
    total_amount: Decimal
    status: str
    shipping_address: str
    created_at: datetime
    items: List[OrderItemOut]
    payment: PaymentOut | None = None
