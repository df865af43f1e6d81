import uuid
from datetime import datetime
from sqlalchemy import Column, DateTime, func
from sqlmodel import SQLModel, Field

from core.config import settings


class MenuItem(SQLModel, table=True):
    __tablename__ = "menu_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        sa_column_kwargs={"nullable": False}
    )
    product_name: str = Field(max_length=200, nullable=False, index=True)
    description: str = Field(default="", nullable=False)
    amount: float = Field(nullable=False, ge=0)
    category: str = Field(default="Steamed", max_length=50, nullable=False)
    is_veg: bool = Field(default=False, nullable=False)
    availability: bool = Field(default=True, nullable=False)
    image_link: str = Field(default="", max_length=500, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(settings.APP_TIMEZONE),
        sa_column=Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    )
