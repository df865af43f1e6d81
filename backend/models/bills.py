import uuid
from datetime import datetime
from sqlalchemy import Column, DateTime, Index, func
from sqlmodel import SQLModel, Field, Relationship
from typing import TYPE_CHECKING

from core.config import settings

if TYPE_CHECKING:
    from models.bill_lines import BillLine
    from models.orders import Order


PAYMENT_METHODS = ("cash", "card", "upi", "other")


class Bill(SQLModel, table=True):
    __tablename__ = "bills"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        sa_column_kwargs={"nullable": False}
    )
    bill_number: str = Field(max_length=30, unique=True, nullable=False)  # BILL-YYYYMMDD-NNN
    session_id: str = Field(max_length=100, nullable=False, index=True)
    table_number: int = Field(nullable=False, ge=1)
    customer_name: str = Field(default="Guest", max_length=100, nullable=False)
    customer_phone: str = Field(default="", max_length=20, nullable=False, index=True)
    customer_email: str = Field(default="", max_length=100, nullable=False)
    customer_id: uuid.UUID | None = Field(foreign_key="customers.id", default=None, nullable=True)
    subtotal: float = Field(nullable=False, ge=0)
    tax: float = Field(nullable=False, ge=0)
    total: float = Field(nullable=False, ge=0)
    order_count: int = Field(nullable=False, ge=1)
    billing_status: str = Field(default="pending_payment", max_length=20, nullable=False)
    payment_requested_at: datetime = Field(
        default_factory=lambda: datetime.now(settings.APP_TIMEZONE),
        nullable=False
    )
    paid_at: datetime | None = Field(default=None, nullable=True)
    payment_method: str | None = Field(default=None, max_length=10, nullable=True)  # cash, card, upi, other
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(settings.APP_TIMEZONE),
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(settings.APP_TIMEZONE),
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    )

    __table_args__ = (
        Index("idx_bills_status_created", "billing_status", "created_at"),
        Index("idx_bills_table_created", "table_number", "created_at"),
    )

    # Relationships
    lines: list["BillLine"] = Relationship(
        back_populates="bill",
        sa_relationship_kwargs={"order_by": "BillLine.position", "cascade": "all, delete-orphan"}
    )
    orders: list["Order"] = Relationship(back_populates="bill")

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)
