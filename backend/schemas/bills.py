import uuid
from datetime import datetime
from typing import Optional
from pydantic import AliasChoices, BaseModel, Field

from schemas.orders import BillingStatus, OrderLineResponse, PaymentMethod


class BillOrderReference(BaseModel):
    order_number: str
    created_at: datetime
    status: str

    class Config:
        from_attributes = True


class ConsolidatedBillResponse(BaseModel):
    """Bill computed on the fly from the session's non-cancelled orders."""
    session_id: str
    table_number: int
    customer_name: str
    items: list[OrderLineResponse]
    subtotal: float
    tax: float
    total: float
    order_count: int
    orders: list[BillOrderReference]


class BillResponse(BaseModel):
    id: uuid.UUID
    bill_number: str
    session_id: str
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
    order_count: int
    billing_status: str
    payment_requested_at: datetime
    paid_at: Optional[datetime]
    payment_method: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class BillingStatusUpdate(BaseModel):
    billing_status: BillingStatus
    payment_method: Optional[PaymentMethod] = None


class BillingStatusResponse(BaseModel):
    session_id: str
    billing_status: str
    bill_number: Optional[str] = None
    orders_updated: int


class PendingPaymentResponse(BaseModel):
    session_id: str
    bill_id: uuid.UUID
    bill_number: str
    table_number: int
    customer_name: str
    customer_phone: str
    total: float
    order_count: int
    billing_status: str
    payment_requested_at: datetime
    created_at: datetime
