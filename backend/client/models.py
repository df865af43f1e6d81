from datetime import datetime
from enum import Enum
from typing import Annotated, Optional
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PREPARING = "PREPARING"
    SERVED = "SERVED"
    CANCELLED = "CANCELLED"


IN_PROGRESS_STATUSES = (OrderStatus.PENDING, OrderStatus.PREPARING)
COMPLETED_STATUSES = (OrderStatus.SERVED, OrderStatus.CANCELLED)


class BillingStatus(str, Enum):
    UNPAID = "unpaid"
    PENDING_PAYMENT = "pending_payment"
    PAID = "paid"

    @property
    def rank(self) -> int:
        return list(BillingStatus).index(self)


def _upper_status(value):
    if isinstance(value, str):
        return value.upper()
    return value


# The order service speaks lowercase statuses
StatusField = Annotated[OrderStatus, BeforeValidator(_upper_status)]


# Cart

class Customization(BaseModel):
    name: str
    price_delta: float = 0.0


class CartItem(BaseModel):
    product_id: str
    name: str
    unit_price: float = Field(..., ge=0)
    quantity: int = Field(1, ge=1)
    description: str = ""
    image_ref: str = ""
    is_veg: bool = True
    customizations: list[Customization] = []
    is_auto_added: bool = False

    @property
    def line_key(self) -> str:
        """Merge key: customized lines of the same product stay separate."""
        if not self.customizations:
            return self.product_id
        names = sorted(c.name for c in self.customizations)
        return f"{self.product_id}|{','.join(names)}"

    @property
    def effective_unit_price(self) -> float:
        return self.unit_price + sum(c.price_delta for c in self.customizations)

    @property
    def line_total(self) -> float:
        return self.effective_unit_price * self.quantity


class CartTotals(BaseModel):
    subtotal: float
    tax: float
    delivery_fee: float = 0.0
    total: float


# Orders as returned by the order service

class OrderLine(BaseModel):
    model_config = ConfigDict(extra="ignore")

    menu_item_id: Optional[str] = None
    name: str
    quantity: int
    price: float
    description: str = ""
    image_link: str = ""


class Order(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    order_number: str
    session_id: str
    table_number: int
    items: list[OrderLine] = []
    subtotal: float
    tax: float
    total: float
    status: StatusField = OrderStatus.PENDING
    billing_status: BillingStatus = BillingStatus.UNPAID
    estimated_time: str = ""
    created_at: datetime


class BillRecord(BaseModel):
    """Server-persisted bill for a session."""
    model_config = ConfigDict(extra="ignore")

    bill_number: str
    session_id: str
    items: list[OrderLine] = []
    subtotal: float
    tax: float
    total: float
    order_count: int
    billing_status: BillingStatus
    created_at: datetime


class SessionTotals(BaseModel):
    subtotal: float
    tax: float
    total: float
    order_count: int


class BillView(BaseModel):
    """What the customer sees on the bill screen."""
    reference: str
    is_server_record: bool
    session_id: str
    items: list[OrderLine]
    subtotal: float
    tax: float
    total: float
    order_count: int
    billing_status: BillingStatus
    billing_status_confirmed: bool
    date: str
    time: str


# Identity and submission

class SessionRecord(BaseModel):
    """Persisted dining session; timestamp is epoch milliseconds."""
    id: str
    timestamp: int
    table_number: int


class CustomerIdentity(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    phone: str
    email: str = ""


class OrderDetails(BaseModel):
    table_number: Optional[int] = Field(None, ge=1)
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    order_number: Optional[str] = None
    estimated_time: Optional[str] = None


class OrderSummary(BaseModel):
    """Display-ready confirmation of a placed order."""
    order_id: str
    order_number: str
    session_id: str
    table_number: int
    items: list[OrderLine]
    subtotal: float
    tax: float
    total: float
    status: OrderStatus
    estimated_time: str
    date: str
    time: str
    barcode: str


# Push frames

class OrderStatusPush(BaseModel):
    model_config = ConfigDict(extra="ignore")

    order_id: str
    status: StatusField
    session_id: Optional[str] = None
    table_number: Optional[int] = None


class BillingStatusPush(BaseModel):
    model_config = ConfigDict(extra="ignore")

    session_id: str
    billing_status: BillingStatus
    bill_number: Optional[str] = None
    table_number: Optional[int] = None


class CatalogItem(BaseModel):
    """Menu entry as served by the catalog."""
    model_config = ConfigDict(extra="ignore")

    id: str
    product_name: str
    description: str = ""
    amount: float
    category: str = ""
    is_veg: bool = True
    availability: bool = True
    image_link: str = ""
