import logging
from datetime import datetime, tzinfo
from enum import Enum
from typing import Iterable

from client.api import OrderServiceClient
from client.exceptions import MissingSessionError, OrderServiceError
from client.formatting import format_date, format_time, round_money, session_bill_reference
from client.models import BillingStatus, BillView, Order, OrderStatus, SessionTotals

logger = logging.getLogger(__name__)


class StatusSource(str, Enum):
    CONFIRMED = "confirmed"
    OPTIMISTIC = "optimistic"


class BillingTracker:
    """Session-wide billing status as last observed.

    A confirmed value comes from the order service (refresh or push) and always
    overwrites. An optimistic value is the client's own guess after a payment
    request; it only ever moves forward and can never be "paid".
    """

    def __init__(self):
        self.reset()

    def reset(self):
        self.status = BillingStatus.UNPAID
        self.source = StatusSource.CONFIRMED

    @property
    def is_confirmed(self) -> bool:
        return self.source == StatusSource.CONFIRMED

    def confirm(self, status: BillingStatus):
        self.status = BillingStatus(status)
        self.source = StatusSource.CONFIRMED

    def mark_optimistic(self, status: BillingStatus):
        status = BillingStatus(status)
        if status == BillingStatus.PAID:
            raise ValueError("Only the order service can mark a bill as paid")
        if status.rank <= self.status.rank:
            return
        self.status = status
        self.source = StatusSource.OPTIMISTIC


def compute_session_totals(orders: Iterable[Order]) -> SessionTotals:
    billable = [order for order in orders if order.status != OrderStatus.CANCELLED]
    return SessionTotals(
        subtotal=sum(order.subtotal for order in billable),
        tax=sum(order.tax for order in billable),
        total=sum(order.total for order in billable),
        order_count=len(billable),
    )


class BillConsolidator:
    def __init__(
        self,
        api: OrderServiceClient,
        session,
        history,
        tracker: BillingTracker,
        tz: tzinfo | None = None
    ):
        self._api = api
        self._session = session
        self._history = history
        self._tracker = tracker
        self._tz = tz

    async def get_consolidated_bill(self) -> BillView:
        """Server bill record when one exists, otherwise an aggregate of local orders."""
        session_id = self._session.session_id
        if not session_id:
            raise MissingSessionError("No active dining session to bill")

        try:
            record = await self._api.get_bill_record(session_id)
        except OrderServiceError as e:
            logger.warning(f"[Billing] Bill record lookup failed, using local orders: {e}")
            record = None

        if record:
            return self._view(
                reference=record.bill_number,
                is_server_record=True,
                session_id=session_id,
                items=record.items,
                totals=SessionTotals(
                    subtotal=record.subtotal,
                    tax=record.tax,
                    total=record.total,
                    order_count=record.order_count,
                ),
                created_at=record.created_at,
            )

        orders = [
            o for o in self._history.orders
            if o.session_id == session_id and o.status != OrderStatus.CANCELLED
        ]
        created_at = min((o.created_at for o in orders), default=None) or datetime.now(self._tz)
        return self._view(
            reference=session_bill_reference(session_id),
            is_server_record=False,
            session_id=session_id,
            items=[line for order in sorted(orders, key=lambda o: o.created_at) for line in order.items],
            totals=compute_session_totals(orders),
            created_at=created_at,
        )

    def _view(self, reference, is_server_record, session_id, items, totals, created_at) -> BillView:
        # Payment state always comes from the tracker, never from the record
        return BillView(
            reference=reference,
            is_server_record=is_server_record,
            session_id=session_id,
            items=items,
            subtotal=round_money(totals.subtotal),
            tax=round_money(totals.tax),
            total=round_money(totals.total),
            order_count=totals.order_count,
            billing_status=self._tracker.status,
            billing_status_confirmed=self._tracker.is_confirmed,
            date=format_date(created_at, self._tz),
            time=format_time(created_at, self._tz),
        )
