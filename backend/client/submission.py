import logging
import random
from datetime import tzinfo

from client.api import OrderServiceClient
from client.auth import CustomerAuth
from client.cart import CartStore
from client.exceptions import EmptyCartError, OrderServiceError, SubmissionInProgressError
from client.formatting import (
    format_date,
    format_time,
    generate_barcode,
    generate_order_number,
    round_money,
)
from client.history import OrderHistory
from client.models import CartItem, OrderDetails, OrderSummary
from client.session import SessionIdentityManager

logger = logging.getLogger(__name__)

DEFAULT_ESTIMATED_TIME = "15-20 mins"
ORDER_NUMBER_ATTEMPTS = 3
DUPLICATE_ORDER_NUMBER = "Order number already exists"


def _line_payload(item: CartItem) -> dict:
    name = item.name
    if item.customizations:
        name = f"{name} ({', '.join(c.name for c in item.customizations)})"
    return {
        "menu_item_id": item.product_id,
        "name": name,
        "quantity": item.quantity,
        "price": item.effective_unit_price,
        "description": item.description,
        "image_link": item.image_ref,
    }


class OrderSubmission:
    def __init__(
        self,
        api: OrderServiceClient,
        cart: CartStore,
        session: SessionIdentityManager,
        history: OrderHistory,
        auth: CustomerAuth | None = None,
        default_estimated_time: str = DEFAULT_ESTIMATED_TIME,
        tz: tzinfo | None = None,
        rng: random.Random | None = None
    ):
        self._api = api
        self._cart = cart
        self._session = session
        self._history = history
        self._auth = auth
        self.default_estimated_time = default_estimated_time
        self._tz = tz
        self._rng = rng
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def _customer_fields(self, details: OrderDetails) -> dict:
        customer = self._auth.customer if self._auth else None
        if customer:
            return {
                "customer_id": customer.id,
                "user_id": customer.id,
                "customer_name": customer.name,
                "customer_phone": customer.phone,
                "customer_email": customer.email,
            }
        return {
            "customer_name": details.customer_name or "Guest",
            "customer_phone": details.customer_phone or "",
            "customer_email": details.customer_email or "",
        }

    async def _create_order(self, payload: dict, retry_number: bool):
        """Order numbers are short and random; a taken one is redrawn a few times."""
        attempts = ORDER_NUMBER_ATTEMPTS if retry_number else 1
        for attempt in range(1, attempts + 1):
            try:
                return await self._api.create_order(payload)
            except OrderServiceError as e:
                if attempt == attempts or e.status_code != 400 or e.detail != DUPLICATE_ORDER_NUMBER:
                    raise
                logger.info(f"[Submission] Order number {payload['order_number']} is taken, drawing another")
                payload["order_number"] = generate_order_number(self._rng)

    async def place_order(self, details: OrderDetails | None = None) -> OrderSummary:
        """Submit the cart as one order.

        Cart and session are only touched after the service accepts the order.
        """
        details = details or OrderDetails()
        if self._in_flight:
            raise SubmissionInProgressError()
        if self._cart.is_empty:
            raise EmptyCartError()

        session = self._session.prepare_session(details.table_number)
        totals = self._cart.totals()
        payload = {
            "session_id": session.id,
            "order_number": details.order_number or generate_order_number(self._rng),
            "table_number": session.table_number,
            "items": [_line_payload(item) for item in self._cart.items],
            "subtotal": totals.subtotal,
            "tax": totals.tax,
            "total": totals.total,
            "estimated_time": details.estimated_time or self.default_estimated_time,
            **self._customer_fields(details),
        }

        self._in_flight = True
        try:
            order = await self._create_order(payload, retry_number=not details.order_number)
        finally:
            self._in_flight = False

        self._session.activate(session)
        self._history.prepend(order)
        self._cart.clear()
        logger.info(f"[Submission] Placed {order.order_number} for table {order.table_number}")

        return OrderSummary(
            order_id=order.id,
            order_number=order.order_number,
            session_id=order.session_id,
            table_number=order.table_number,
            items=order.items,
            subtotal=round_money(order.subtotal),
            tax=round_money(order.tax),
            total=round_money(order.total),
            status=order.status,
            estimated_time=order.estimated_time,
            date=format_date(order.created_at, self._tz),
            time=format_time(order.created_at, self._tz),
            barcode=generate_barcode(self._rng),
        )
