import uuid
from datetime import datetime
from sqlalchemy import Column, DateTime, func
from sqlmodel import SQLModel, Field

from core.config import settings


class Customer(SQLModel, table=True):
    __tablename__ = "customers"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        sa_column_kwargs={"nullable": False}
    )
    name: str = Field(max_length=100, nullable=False)
    phone: str = Field(max_length=20, unique=True, nullable=False, index=True)
    email: str = Field(default="", max_length=100, nullable=False)
    is_verified: bool = Field(default=False, nullable=False)
    verified_at: datetime | None = Field(default=None, nullable=True)
    last_visit: datetime | None = Field(default=None, nullable=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(settings.APP_TIMEZONE),
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    )
