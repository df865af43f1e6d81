import uuid
from datetime import datetime
from typing import Literal, Optional
from pydantic import AliasChoices, BaseModel, Field

OrderStatus = Literal["pending", "preparing", "served", "cancelled"]
BillingStatus = Literal["unpaid", "pending_payment", "paid"]
PaymentMethod = Literal["cash", "card", "upi", "other"]


class OrderLineCreate(BaseModel):
    menu_item_id: Optional[str] = Field(None, max_length=64)
    name: str = Field(..., min_length=1, max_length=200)
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0)
    description: str = ""
    image_link: str = ""


class OrderCreate(BaseModel):
    session_id: str = Field(..., min_length=1, description="Dining session the order is billed to")
    order_number: str = Field(..., min_length=1, max_length=50)
    table_number: int = Field(..., ge=1)
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    user_id: Optional[uuid.UUID] = None
    customer_id: Optional[uuid.UUID] = None
    items: list[OrderLineCreate] = Field(..., min_length=1)
    subtotal: float = Field(..., ge=0)
    tax: float = Field(..., ge=0)
    total: float = Field(..., ge=0)
    estimated_time: Optional[str] = None


class OrderLineResponse(BaseModel):
    menu_item_id: Optional[str]
    name: str
    quantity: int
    price: float
    description: str
    image_link: str

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: uuid.UUID
    session_id: str
    order_number: str
    table_number: int
    customer_name: str
    customer_phone: str
    customer_email: str
    customer_id: Optional[uuid.UUID]
    items: list[OrderLineResponse] = Field(validation_alias=AliasChoices("lines", "items"))
    item_count: int
    subtotal: float
    tax: float
    total: float
    status: str
    estimated_time: str
    billing_status: str
    payment_requested_at: Optional[datetime]
    paid_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
