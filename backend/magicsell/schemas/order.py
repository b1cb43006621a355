from pydantic import BaseModel, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, Union
from datetime import datetime
import enum


class OrderStatus(str, enum.Enum):
    PENDING = "Pending"
    IN_PROCESS = "In Process"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class PaymentMethod(str, enum.Enum):
    BALANCE = "Balance"
    CASH = "Cash"
    CARD = "Card"
    BANK_TRANSFER = "Bank Transfer"


Amount = Union[float, str]


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class OrderContact(CamelModel):
    shop_name: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    customer_postcode: Optional[str] = None

    @field_validator(
        "shop_name", "customer_name", "customer_phone",
        "customer_address", "customer_postcode",
        mode="before",
    )
    @classmethod
    def numbers_as_text(cls, v):
        # Legacy records store phone numbers and postcodes as numbers
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class Order(OrderContact):
    """An order as held in the ledger and stored in the orders collection."""
    id: int
    total_amount: Optional[Amount] = None
    status: str = OrderStatus.PENDING.value
    payment_method: Optional[str] = ""
    created_at: Optional[str] = None
    delivered_at: Optional[str] = None
    delivery_notes: Optional[str] = ""
    basket_no: Optional[int] = None
    delivery_no: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "allow"

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True)


class OrderCreate(OrderContact):
    shop_name: str
    total_amount: Amount = 0
    payment_method: Optional[PaymentMethod] = None


class OrderUpdate(OrderContact):
    """
    Partial update of an order.

    id, createdAt, basketNo and deliveryNo are immutable and therefore absent.
    deliveredAt and deliveryNotes only take effect on the transition to
    Delivered.
    """
    total_amount: Optional[Amount] = None
    status: Optional[OrderStatus] = None
    payment_method: Optional[PaymentMethod] = None
    delivered_at: Optional[datetime] = None
    delivery_notes: Optional[str] = None


class OrderFilter(CamelModel):
    search: Optional[str] = None
    status: Optional[str] = None
    payment_method: Optional[str] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    shop_name: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
