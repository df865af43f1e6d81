"""Push notifications fanned out after staff or customer actions."""
import uuid
from datetime import datetime

from api.websocket.manager import manager
from models.bills import Bill
from models.orders import Order
from schemas.orders import OrderResponse
from schemas.websocket import (
    ADMIN_ROOM,
    table_room,
    OrderCreatedMessage,
    OrderStatusUpdateMessage,
    OrderDeletedMessage,
    BillingStatusUpdateMessage,
    PaymentRequestMessage,
)


async def notify_order_created(order: Order):
    message = OrderCreatedMessage(order=OrderResponse.model_validate(order).model_dump(mode="json"))
    await manager.broadcast(message.model_dump(mode="json"), [ADMIN_ROOM])


async def notify_order_status(order: Order):
    message = OrderStatusUpdateMessage(
        order_id=order.id,
        order_number=order.order_number,
        session_id=order.session_id,
        table_number=order.table_number,
        status=order.status,
    )
    await manager.broadcast(
        message.model_dump(mode="json"),
        [ADMIN_ROOM, table_room(order.table_number)]
    )


async def notify_order_deleted(order_id: uuid.UUID, table_number: int):
    message = OrderDeletedMessage(order_id=order_id)
    await manager.broadcast(message.model_dump(mode="json"), [ADMIN_ROOM, table_room(table_number)])


async def notify_billing_status(
    session_id: str,
    billing_status: str,
    table_number: int | None,
    bill: Bill | None = None
):
    message = BillingStatusUpdateMessage(
        session_id=session_id,
        billing_status=billing_status,
        bill_number=bill.bill_number if bill else None,
        table_number=table_number,
        paid_at=bill.paid_at if bill else None,
        payment_method=bill.payment_method if bill else None,
    )
    rooms = [ADMIN_ROOM]
    if table_number:
        rooms.append(table_room(table_number))
    await manager.broadcast(message.model_dump(mode="json"), rooms)


async def notify_payment_request(bill: Bill, requested_at: datetime):
    message = PaymentRequestMessage(
        session_id=bill.session_id,
        bill_number=bill.bill_number,
        table_number=bill.table_number,
        customer_name=bill.customer_name,
        customer_phone=bill.customer_phone,
        customer_email=bill.customer_email,
        customer_id=bill.customer_id,
        total=bill.total,
        order_count=bill.order_count,
        timestamp=requested_at,
    )
    await manager.broadcast(message.model_dump(mode="json"), [ADMIN_ROOM])
