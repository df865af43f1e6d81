import logging
import uuid
from datetime import date
from typing import Optional
from fastapi import APIRouter, HTTPException, Query, Response, status

from api.deps import SessionDep, CurrentAdmin
from api.websocket import events
from crud import orders as crud_orders
from crud import bills as crud_bills
from crud import customers as crud_customers
from schemas.orders import OrderCreate, OrderResponse, OrderStatus, OrderStatusUpdate
from schemas.bills import (
    BillResponse,
    BillingStatus,
    BillingStatusResponse,
    BillingStatusUpdate,
    ConsolidatedBillResponse,
    PendingPaymentResponse,
)

router = APIRouter(prefix="/orders", tags=["orders"])

logger = logging.getLogger(__name__)


# Order creation & retrieval

@router.post("", response_model=OrderResponse, status_code=201)
async def create_order(order_data: OrderCreate, db: SessionDep):
    """Place an order for a dining session. Guests and verified customers are both accepted."""
    customer = crud_customers.get_verified_customer(db, order_data.customer_id or order_data.user_id)

    try:
        order = crud_orders.create_order(db, order_data, customer)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(
        f"[Orders] Created {order.order_number} for table {order.table_number} "
        f"(session {order.session_id}, total {order.total:.2f})"
    )
    await events.notify_order_created(order)
    return order


@router.get("", response_model=list[OrderResponse])
def list_orders(
    current_admin: CurrentAdmin,
    status: Optional[OrderStatus] = Query(None, description="Filter by order status"),
    db: SessionDep = None
):
    """List all orders for the staff dashboard."""
    return crud_orders.list_orders(db, status=status)


@router.get("/table/{table_number}", response_model=list[OrderResponse])
def get_orders_by_table(table_number: int, db: SessionDep):
    """Get orders placed at a table."""
    return crud_orders.get_orders_by_table(db, table_number)


@router.get("/phone/{phone}", response_model=list[OrderResponse])
def get_orders_by_phone(phone: str, db: SessionDep):
    """Get a customer's order history."""
    return crud_orders.get_orders_by_phone(db, phone)


# Payments management (staff)

@router.get("/payments", response_model=list[PendingPaymentResponse])
def get_pending_payments(current_admin: CurrentAdmin, db: SessionDep):
    """Bills waiting to be settled at the counter."""
    bills = crud_bills.list_pending_bills(db)
    return [
        PendingPaymentResponse(
            session_id=bill.session_id,
            bill_id=bill.id,
            bill_number=bill.bill_number,
            table_number=bill.table_number,
            customer_name=bill.customer_name,
            customer_phone=bill.customer_phone,
            total=bill.total,
            order_count=bill.order_count,
            billing_status=bill.billing_status,
            payment_requested_at=bill.payment_requested_at,
            created_at=bill.created_at,
        )
        for bill in bills
    ]


@router.get("/bills", response_model=list[BillResponse])
def list_bills(
    current_admin: CurrentAdmin,
    status: Optional[BillingStatus] = Query(None, description="Filter by billing status"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: SessionDep = None
):
    """Billing history."""
    return crud_bills.list_bills(db, status=status, start_date=start_date, end_date=end_date)


@router.get("/bills/phone/{phone}", response_model=list[BillResponse])
def get_bills_by_phone(phone: str, db: SessionDep):
    """Get a customer's billing history."""
    return crud_bills.get_bills_by_phone(db, phone)


# Session-based billing

@router.get("/session/{session_id}", response_model=list[OrderResponse])
def get_session_orders(session_id: str, db: SessionDep):
    """Get every order placed during a dining session."""
    return crud_orders.get_session_orders(db, session_id)


@router.get("/session/{session_id}/bill", response_model=ConsolidatedBillResponse)
def get_consolidated_bill(session_id: str, db: SessionDep):
    """Aggregate all non-cancelled orders of the session into one bill."""
    bill = crud_bills.build_consolidated_bill(db, session_id)
    if not bill:
        raise HTTPException(status_code=404, detail="No orders found for this session")
    return bill


@router.get("/session/{session_id}/bill-record", response_model=BillResponse)
def get_bill_record(session_id: str, db: SessionDep):
    """Get the persisted bill for a session."""
    bill = crud_bills.get_bill_by_session(db, session_id)
    if not bill:
        raise HTTPException(status_code=404, detail="Bill not found for this session")
    return bill


@router.post("/session/{session_id}/pay-request", response_model=BillResponse)
async def request_payment(session_id: str, response: Response, db: SessionDep):
    """Customer is ready to pay: persist the bill and tell the staff.

    Repeated requests return the existing bill untouched.
    """
    existing_bill = crud_bills.get_bill_by_session(db, session_id)
    if existing_bill:
        logger.info(f"[Pay Request] Bill {existing_bill.bill_number} already exists for session {session_id}")
        return existing_bill

    bill = crud_bills.create_session_bill(db, session_id)
    if not bill:
        raise HTTPException(status_code=404, detail="No orders found for this session")

    logger.info(
        f"[Pay Request] Table {bill.table_number} - Bill: {bill.bill_number} - "
        f"Customer: {bill.customer_name} - Total: {bill.total:.2f}"
    )
    await events.notify_payment_request(bill, bill.payment_requested_at)

    response.status_code = status.HTTP_201_CREATED
    return bill


@router.patch("/session/{session_id}/billing-status", response_model=BillingStatusResponse)
async def update_billing_status(
    session_id: str,
    data: BillingStatusUpdate,
    current_admin: CurrentAdmin,
    db: SessionDep
):
    """Staff marks a session's bill as paid (or back to unpaid)."""
    bill, orders = crud_bills.update_billing_status(db, session_id, data.billing_status, data.payment_method)

    if not bill and not orders:
        raise HTTPException(status_code=404, detail="No bill or orders found for this session")

    table_number = bill.table_number if bill else orders[0].table_number
    logger.info(f"[Billing] Session {session_id} set to {data.billing_status} by {current_admin.email}")
    await events.notify_billing_status(session_id, data.billing_status, table_number, bill)

    return BillingStatusResponse(
        session_id=session_id,
        billing_status=data.billing_status,
        bill_number=bill.bill_number if bill else None,
        orders_updated=len(orders),
    )


# Order lifecycle

@router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: uuid.UUID, db: SessionDep):
    """Get order details."""
    order = crud_orders.get_order_by_id(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.patch("/{order_id}", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    data: OrderStatusUpdate,
    current_admin: CurrentAdmin,
    db: SessionDep
):
    """Move an order through pending → preparing → served, or cancel it."""
    try:
        order = crud_orders.update_order_status(db, order_id, data.status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    logger.info(f"[Orders] {order.order_number} status set to {order.status}")
    await events.notify_order_status(order)
    return order


@router.delete("/{order_id}")
async def delete_order(order_id: uuid.UUID, current_admin: CurrentAdmin, db: SessionDep):
    """Permanently remove an order. Prefer cancelling to keep the audit trail."""
    order = crud_orders.get_order_by_id(db, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    table_number = order.table_number
    crud_orders.delete_order(db, order_id)

    await events.notify_order_deleted(order_id, table_number)
    return {"message": "Order deleted successfully", "id": str(order_id)}
