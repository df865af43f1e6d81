import uuid
from datetime import datetime
from sqlalchemy import Column, DateTime, Index, func
from sqlmodel import SQLModel, Field

from core.config import settings


class OtpLog(SQLModel, table=True):
    __tablename__ = "otp_logs"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        sa_column_kwargs={"nullable": False}
    )
    phone_number: str = Field(max_length=20, nullable=False)
    otp_hash: str = Field(max_length=100, nullable=False)
    purpose: str = Field(default="customer_verification", max_length=30, nullable=False)
    status: str = Field(default="pending", max_length=20, nullable=False)  # pending, verified, expired, failed
    gateway_session_id: str | None = Field(default=None, max_length=100, nullable=True)
    attempts: int = Field(default=0, nullable=False)
    expires_at: datetime = Field(nullable=False)
    verified_at: datetime | None = Field(default=None, nullable=True)
    customer_id: uuid.UUID | None = Field(foreign_key="customers.id", default=None, nullable=True)
    ip_address: str = Field(default="", max_length=50, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(settings.APP_TIMEZONE),
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    )

    __table_args__ = (
        Index("idx_otp_phone_status", "phone_number", "status"),
    )
