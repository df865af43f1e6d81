import uuid
from sqlmodel import SQLModel, Field, Relationship
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from models.bills import Bill


class BillLine(SQLModel, table=True):
    __tablename__ = "bill_lines"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        sa_column_kwargs={"nullable": False}
    )
    bill_id: uuid.UUID = Field(foreign_key="bills.id", nullable=False, index=True)
    position: int = Field(default=0, nullable=False)
    menu_item_id: str | None = Field(default=None, max_length=64, nullable=True)
    name: str = Field(max_length=200, nullable=False)
    quantity: int = Field(nullable=False, ge=1)
    price: float = Field(nullable=False, ge=0)
    description: str = Field(default="", nullable=False)
    image_link: str = Field(default="", max_length=500, nullable=False)

    # Relationships
    bill: "Bill" = Relationship(back_populates="lines")
