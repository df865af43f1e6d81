import uuid
from typing import Optional
from sqlmodel import select, Session
from models.orders import Order
from models.order_lines import OrderLine
from models.customers import Customer
from schemas.orders import OrderCreate
from core.config import settings

TERMINAL_STATUSES = ("served", "cancelled")


def get_order_by_id(
    db: Session,
    order_id: uuid.UUID
) -> Order | None:
    """Get an order by its ID."""
    return db.get(Order, order_id)


def get_order_by_number(
    db: Session,
    order_number: str
) -> Order | None:
    """Get an order by its human-readable number."""
    return db.exec(
        select(Order).where(Order.order_number == order_number)
    ).first()


def create_order(
    db: Session,
    order_data: OrderCreate,
    customer: Customer | None = None
) -> Order:
    """Create an order with a frozen snapshot of its lines.

    Raises ValueError when the order number is already taken.
    """
    if get_order_by_number(db, order_data.order_number):
        raise ValueError("Order number already exists")

    order = Order(
        session_id=order_data.session_id,
        order_number=order_data.order_number,
        table_number=order_data.table_number,
        customer_name=order_data.customer_name or (customer.name if customer else "Guest"),
        customer_phone=order_data.customer_phone or (customer.phone if customer else ""),
        customer_email=order_data.customer_email or (customer.email if customer else ""),
        customer_id=customer.id if customer else None,
        subtotal=order_data.subtotal,
        tax=order_data.tax,
        total=order_data.total,
        estimated_time=order_data.estimated_time or settings.DEFAULT_ESTIMATED_TIME,
        status="pending",
        lines=[
            OrderLine(position=position, **item.model_dump())
            for position, item in enumerate(order_data.items)
        ],
    )
    db.add(order)
    db.commit()
    db.refresh(order)

    return order


def list_orders(
    db: Session,
    status: Optional[str] = None
) -> list[Order]:
    """List orders, newest first, with an optional status filter."""
    query = select(Order)

    if status:
        query = query.where(Order.status == status)

    return db.exec(query.order_by(Order.created_at.desc())).all()


def get_orders_by_table(
    db: Session,
    table_number: int
) -> list[Order]:
    """Get all orders for a table, newest first."""
    return db.exec(
        select(Order)
        .where(Order.table_number == table_number)
        .order_by(Order.created_at.desc())
    ).all()


def get_orders_by_phone(
    db: Session,
    phone: str
) -> list[Order]:
    """Get a customer's order history by phone, newest first."""
    return db.exec(
        select(Order)
        .where(Order.customer_phone == phone)
        .order_by(Order.created_at.desc())
    ).all()


def get_session_orders(
    db: Session,
    session_id: str
) -> list[Order]:
    """Get all orders for a dining session in the order they were placed."""
    return db.exec(
        select(Order)
        .where(Order.session_id == session_id)
        .order_by(Order.created_at, Order.order_number)
    ).all()


def get_billable_session_orders(
    db: Session,
    session_id: str
) -> list[Order]:
    """Get the session orders that count towards the bill (everything not cancelled)."""
    return [order for order in get_session_orders(db, session_id) if order.status != "cancelled"]


def update_order_status(
    db: Session,
    order_id: uuid.UUID,
    status: str
) -> Order | None:
    """Set an order's kitchen status.

    Served and cancelled orders are final: repeating the same status is a no-op,
    anything else raises ValueError.
    """
    order = db.get(Order, order_id)
    if not order:
        return None

    if order.status in TERMINAL_STATUSES:
        if order.status == status:
            return order
        raise ValueError(f"Order is already {order.status}")

    order.status = status

    db.add(order)
    db.commit()
    db.refresh(order)

    return order


def delete_order(
    db: Session,
    order_id: uuid.UUID
) -> bool:
    """Permanently remove an order and its lines."""
    order = db.get(Order, order_id)
    if not order:
        return False

    db.delete(order)
    db.commit()
    return True
