from datetime import date, datetime
from typing import Optional
from sqlmodel import select, Session
from models.bills import Bill
from models.bill_lines import BillLine
from models.orders import Order
from crud.orders import get_session_orders, get_billable_session_orders
from schemas.bills import BillOrderReference, ConsolidatedBillResponse
from schemas.orders import OrderLineResponse
from core.config import settings


def generate_bill_number(
    db: Session,
    today: date | None = None
) -> str:
    """Next bill number for the day, formatted BILL-YYYYMMDD-NNN."""
    today = today or datetime.now(settings.APP_TIMEZONE).date()
    prefix = f"BILL-{today.strftime('%Y%m%d')}-"

    last_bill = db.exec(
        select(Bill)
        .where(Bill.bill_number.startswith(prefix))
        .order_by(Bill.bill_number.desc())
    ).first()

    sequence_number = 1
    if last_bill:
        sequence_number = int(last_bill.bill_number.split("-")[2]) + 1

    return f"{prefix}{sequence_number:03d}"


def sum_order_totals(orders: list[Order]) -> tuple[float, float, float]:
    """Return (subtotal, tax, total) summed over the given orders."""
    subtotal = sum(order.subtotal for order in orders)
    tax = sum(order.tax for order in orders)
    total = sum(order.total for order in orders)
    return subtotal, tax, total


def build_consolidated_bill(
    db: Session,
    session_id: str
) -> ConsolidatedBillResponse | None:
    """Aggregate every non-cancelled order of a session into one bill view."""
    orders = get_billable_session_orders(db, session_id)
    if not orders:
        return None

    subtotal, tax, total = sum_order_totals(orders)

    return ConsolidatedBillResponse(
        session_id=session_id,
        table_number=orders[0].table_number,
        customer_name=orders[0].customer_name,
        items=[OrderLineResponse.model_validate(line) for order in orders for line in order.lines],
        subtotal=subtotal,
        tax=tax,
        total=total,
        order_count=len(orders),
        orders=[BillOrderReference.model_validate(order) for order in orders],
    )


def get_bill_by_session(
    db: Session,
    session_id: str
) -> Bill | None:
    """Get the persisted bill for a session."""
    return db.exec(select(Bill).where(Bill.session_id == session_id)).first()


def create_session_bill(
    db: Session,
    session_id: str
) -> Bill | None:
    """Persist a bill for the session and flag all its orders as pending payment.

    Returns None when the session has nothing to bill.
    """
    orders = get_billable_session_orders(db, session_id)
    if not orders:
        return None

    first = orders[0]
    subtotal, tax, total = sum_order_totals(orders)
    payment_requested_at = datetime.now(settings.APP_TIMEZONE)

    lines = []
    for order in orders:
        for line in order.lines:
            lines.append(BillLine(
                position=len(lines),
                menu_item_id=line.menu_item_id,
                name=line.name,
                quantity=line.quantity,
                price=line.price,
                description=line.description,
                image_link=line.image_link,
            ))

    bill = Bill(
        bill_number=generate_bill_number(db),
        session_id=session_id,
        table_number=first.table_number,
        customer_name=first.customer_name,
        customer_phone=first.customer_phone,
        customer_email=first.customer_email,
        customer_id=first.customer_id,
        subtotal=subtotal,
        tax=tax,
        total=total,
        order_count=len(orders),
        billing_status="pending_payment",
        payment_requested_at=payment_requested_at,
        lines=lines,
    )
    db.add(bill)
    db.flush()

    # Billing status is session-wide, so cancelled orders are stamped too
    for order in get_session_orders(db, session_id):
        order.billing_status = "pending_payment"
        order.payment_requested_at = payment_requested_at
        if order.status != "cancelled":
            order.bill_id = bill.id
        db.add(order)

    db.commit()
    db.refresh(bill)

    return bill


def update_billing_status(
    db: Session,
    session_id: str,
    billing_status: str,
    payment_method: Optional[str] = None
) -> tuple[Bill | None, list[Order]]:
    """Set the billing status on the session's bill and every one of its orders."""
    paid_at = datetime.now(settings.APP_TIMEZONE) if billing_status == "paid" else None

    bill = get_bill_by_session(db, session_id)
    if bill:
        bill.billing_status = billing_status
        if paid_at:
            bill.paid_at = paid_at
            if payment_method:
                bill.payment_method = payment_method
        db.add(bill)

    orders = get_session_orders(db, session_id)
    for order in orders:
        order.billing_status = billing_status
        order.paid_at = paid_at
        db.add(order)

    db.commit()
    if bill:
        db.refresh(bill)

    return bill, orders


def list_pending_bills(db: Session) -> list[Bill]:
    """Bills still waiting for staff to settle, most recent request first."""
    return db.exec(
        select(Bill)
        .where(Bill.billing_status.in_(["unpaid", "pending_payment"]))
        .order_by(Bill.payment_requested_at.desc(), Bill.created_at.desc())
    ).all()


def list_bills(
    db: Session,
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None
) -> list[Bill]:
    """Billing history with optional status and creation-date filters."""
    query = select(Bill)

    if status:
        query = query.where(Bill.billing_status == status)
    if start_date:
        query = query.where(Bill.created_at >= datetime.combine(start_date, datetime.min.time()))
    if end_date:
        query = query.where(Bill.created_at <= datetime.combine(end_date, datetime.max.time()))

    return db.exec(query.order_by(Bill.created_at.desc())).all()


def get_bills_by_phone(
    db: Session,
    phone: str
) -> list[Bill]:
    """Get a customer's bills by phone, newest first."""
    return db.exec(
        select(Bill)
        .where(Bill.customer_phone == phone)
        .order_by(Bill.created_at.desc())
    ).all()
