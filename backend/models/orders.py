import uuid
from datetime import datetime
from sqlalchemy import Column, DateTime, Index, func
from sqlmodel import SQLModel, Field, Relationship
from typing import TYPE_CHECKING, Optional

from core.config import settings

if TYPE_CHECKING:
    from models.order_lines import OrderLine
    from models.bills import Bill
    from models.customers import Customer


ORDER_STATUSES = ("pending", "preparing", "served", "cancelled")
BILLING_STATUSES = ("unpaid", "pending_payment", "paid")


class Order(SQLModel, table=True):
    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        sa_column_kwargs={"nullable": False}
    )
    session_id: str = Field(max_length=100, nullable=False, index=True)
    order_number: str = Field(max_length=50, unique=True, nullable=False)
    table_number: int = Field(nullable=False, ge=1)
    customer_name: str = Field(default="Guest", max_length=100, nullable=False)
    customer_phone: str = Field(default="", max_length=20, nullable=False, index=True)
    customer_email: str = Field(default="", max_length=100, nullable=False)
    customer_id: uuid.UUID | None = Field(foreign_key="customers.id", default=None, nullable=True, index=True)
    subtotal: float = Field(nullable=False, ge=0)
    tax: float = Field(nullable=False, ge=0)
    total: float = Field(nullable=False, ge=0)
    status: str = Field(default="pending", max_length=20, nullable=False)  # pending, preparing, served, cancelled
    estimated_time: str = Field(default=settings.DEFAULT_ESTIMATED_TIME, max_length=50, nullable=False)
    billing_status: str = Field(default="unpaid", max_length=20, nullable=False)  # unpaid, pending_payment, paid
    payment_requested_at: datetime | None = Field(default=None, nullable=True)
    paid_at: datetime | None = Field(default=None, nullable=True)
    bill_id: uuid.UUID | None = Field(foreign_key="bills.id", default=None, nullable=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(settings.APP_TIMEZONE),
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(settings.APP_TIMEZONE),
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    )

    __table_args__ = (
        Index("idx_orders_status_created", "status", "created_at"),
    )

    # Relationships
    lines: list["OrderLine"] = Relationship(
        back_populates="order",
        sa_relationship_kwargs={"order_by": "OrderLine.position", "cascade": "all, delete-orphan"}
    )
    bill: Optional["Bill"] = Relationship(back_populates="orders")
    customer: Optional["Customer"] = Relationship()

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)
