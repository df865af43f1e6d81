import uuid
from sqlmodel import SQLModel, Field, Relationship
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from models.orders import Order


class OrderLine(SQLModel, table=True):
    """Frozen copy of a cart line at submission time.

    Name and price are snapshots; later menu changes never reach them, which is
    why menu_item_id is a plain reference and not a foreign key.
    """
    __tablename__ = "order_lines"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        sa_column_kwargs={"nullable": False}
    )
    order_id: uuid.UUID = Field(foreign_key="orders.id", nullable=False, index=True)
    position: int = Field(default=0, nullable=False)
    menu_item_id: str | None = Field(default=None, max_length=64, nullable=True)
    name: str = Field(max_length=200, nullable=False)
    quantity: int = Field(nullable=False, ge=1)
    price: float = Field(nullable=False, ge=0)
    description: str = Field(default="", nullable=False)
    image_link: str = Field(default="", max_length=500, nullable=False)

    # Relationships
    order: "Order" = Relationship(back_populates="lines")
