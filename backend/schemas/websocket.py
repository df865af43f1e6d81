from datetime import datetime
from typing import Optional, Literal
from pydantic import BaseModel
import uuid


ADMIN_ROOM = "admin"


def table_room(table_number: int) -> str:
    return f"table_{table_number}"


# Incoming messages
class JoinRoomMessage(BaseModel):
    type: Literal["join_room"] = "join_room"
    room: str
    token: Optional[str] = None  # staff token, only checked for the admin room


class LeaveRoomMessage(BaseModel):
    type: Literal["leave_room"] = "leave_room"
    room: str


class AdminJoinMessage(BaseModel):
    type: Literal["admin:join"] = "admin:join"
    token: Optional[str] = None


class CustomerJoinMessage(BaseModel):
    type: Literal["customer:join"] = "customer:join"
    table_number: int


# Outgoing messages
class RoomJoinedMessage(BaseModel):
    type: Literal["room_joined"] = "room_joined"
    room: str


class RoomLeftMessage(BaseModel):
    type: Literal["room_left"] = "room_left"
    room: str


class OrderCreatedMessage(BaseModel):
    type: Literal["order:new"] = "order:new"
    order: dict


class OrderStatusUpdateMessage(BaseModel):
    type: Literal["order:statusUpdate"] = "order:statusUpdate"
    order_id: uuid.UUID
    order_number: str
    session_id: str
    table_number: int
    status: str


class OrderDeletedMessage(BaseModel):
    type: Literal["order:deleted"] = "order:deleted"
    order_id: uuid.UUID


class BillingStatusUpdateMessage(BaseModel):
    type: Literal["billing:statusUpdate"] = "billing:statusUpdate"
    session_id: str
    billing_status: str
    bill_number: Optional[str] = None
    table_number: Optional[int] = None
    paid_at: Optional[datetime] = None
    payment_method: Optional[str] = None


class PaymentRequestMessage(BaseModel):
    type: Literal["payment:request"] = "payment:request"
    session_id: str
    bill_number: str
    table_number: int
    customer_name: str
    customer_phone: str
    customer_email: str
    customer_id: Optional[uuid.UUID]
    total: float
    order_count: int
    timestamp: datetime
