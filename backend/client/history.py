import logging

from pydantic import ValidationError

from client.api import OrderServiceClient
from client.billing import BillingTracker
from client.exceptions import OrderServiceError
from client.models import (
    BillingStatus,
    COMPLETED_STATUSES,
    IN_PROGRESS_STATUSES,
    Order,
    OrderStatus,
)
from client.session import SessionIdentityManager
from client.storage import MemoryStore, ORDERS_KEY

logger = logging.getLogger(__name__)


class OrderHistory:
    """Local copy of the session's orders, newest first.

    The order service is the source of truth: refresh() replaces the list and
    pushes overwrite single fields, nothing is merged.
    """

    def __init__(
        self,
        api: OrderServiceClient,
        session: SessionIdentityManager,
        store: MemoryStore,
        tracker: BillingTracker
    ):
        self._api = api
        self._session = session
        self._store = store
        self._tracker = tracker
        self._orders: list[Order] = self._load()

    def _load(self) -> list[Order]:
        data = self._store.get(ORDERS_KEY)
        if data is None:
            return []
        try:
            orders = [Order.model_validate(item) for item in data]
        except (TypeError, ValidationError):
            logger.warning("[History] Discarding corrupted order cache")
            self._store.delete(ORDERS_KEY)
            return []
        # a cache left behind by an expired session belongs to nobody
        session_id = self._session.session_id
        return [order for order in orders if order.session_id == session_id]

    def _persist(self):
        try:
            self._store.set(ORDERS_KEY, [order.model_dump(mode="json") for order in self._orders])
        except Exception:
            logger.exception("[History] Failed to persist order cache")

    @property
    def orders(self) -> list[Order]:
        return [order.model_copy() for order in self._orders]

    @property
    def in_progress(self) -> list[Order]:
        return [order for order in self.orders if order.status in IN_PROGRESS_STATUSES]

    @property
    def completed(self) -> list[Order]:
        return [order for order in self.orders if order.status in COMPLETED_STATUSES]

    def get(self, order_id: str) -> Order | None:
        return next((order for order in self._orders if order.id == order_id), None)

    async def refresh(self) -> list[Order]:
        """Replace the history with the service's list for the session.

        On failure the current history is kept and an empty list is returned,
        which callers must not read as "no orders".
        """
        session_id = self._session.session_id
        if not session_id:
            return []

        try:
            orders = await self._api.get_session_orders(session_id)
        except OrderServiceError as e:
            logger.warning(f"[History] Refresh failed for {session_id}: {e}")
            return []

        self._orders = sorted(orders, key=lambda order: order.created_at, reverse=True)
        self._persist()
        if orders:
            self._tracker.confirm(orders[0].billing_status)
        return self.orders

    def prepend(self, order: Order):
        self._orders.insert(0, order)
        self._persist()

    def apply_status_push(self, order_id: str, status: OrderStatus) -> bool:
        """Overwrite one order's status. Unknown ids are ignored."""
        order = self.get(order_id)
        if not order:
            return False
        order.status = OrderStatus(status)
        self._persist()
        return True

    def apply_billing_status(self, status: BillingStatus):
        for order in self._orders:
            order.billing_status = BillingStatus(status)
        self._persist()

    def reset(self):
        self._orders = []
        self._store.delete(ORDERS_KEY)
