from typing import Literal, Optional
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


OrderStatus = Literal["pending", "confirmed", "shipped", "delivered", "cancelled"]
DeliveryStatus = Literal["pending", "in_transit", "delivered", "cancelled"]
PaymentMethod = Literal["cash", "credit_card", "online", "upi"]


# =========================
# ORDERS
# =========================

class OrderCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    product_id: str
    quantity: int = Field(..., ge=1)


class OrderUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: OrderStatus


# =========================
# DELIVERIES
# =========================

class DeliveryCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    order_id: str
    address: str = Field(..., min_length=1)
    deliverer_id: Optional[str] = None
    status: DeliveryStatus = "pending"


class DelivererDeliveryUpdate(BaseModel):
    """What an assigned deliverer may change on a delivery."""
    model_config = ConfigDict(extra="forbid")

    status: Optional[DeliveryStatus] = None
    delivered_date: Optional[datetime] = None


class DeliveryAdminUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    order_id: Optional[str] = None
    address: Optional[str] = Field(None, min_length=1)
    deliverer_id: Optional[str] = None
    status: Optional[DeliveryStatus] = None
    delivered_date: Optional[datetime] = None


# =========================
# REVIEWS
# =========================

class ReviewCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    order_id: str
    product_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: str = ""


class ReviewUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = None


# =========================
# PAYMENTS
# =========================

class PaymentCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    order_id: str
    payment_method: PaymentMethod


class PaymentUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    payment_method: PaymentMethod
