"""Composition root for the customer ordering core."""
import asyncio
import logging
import time
from datetime import timedelta
from typing import Callable

import httpx
from pydantic import ValidationError

from client.api import OrderServiceClient
from client.auth import CustomerAuth
from client.billing import BillConsolidator, BillingTracker
from client.cart import CartStore
from client.config import ClientSettings
from client.history import OrderHistory
from client.models import BillingStatus, BillingStatusPush, OrderDetails, OrderStatusPush, OrderSummary
from client.payment import PaymentRequester
from client.realtime import Connector, StatusChannel, table_room
from client.session import SessionIdentityManager
from client.storage import JsonFileStore, MemoryStore
from client.submission import OrderSubmission

logger = logging.getLogger(__name__)


class DiningApp:
    """Builds every service once and wires pushes between them."""

    def __init__(
        self,
        settings: ClientSettings | None = None,
        store: MemoryStore | None = None,
        session_store: MemoryStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        connector: Connector | None = None,
        clock: Callable[[], float] = time.time
    ):
        self.settings = settings or ClientSettings()
        if store is None:
            store = JsonFileStore(self.settings.STORAGE_PATH) if self.settings.STORAGE_PATH else MemoryStore()
        self.store = store
        self.session_store = session_store or MemoryStore()
        tz = self.settings.APP_TIMEZONE

        self.api = OrderServiceClient(
            self.settings.API_BASE_URL,
            timeout=self.settings.REQUEST_TIMEOUT_SECONDS,
            transport=transport,
        )
        self.session = SessionIdentityManager(
            store,
            ttl=timedelta(hours=self.settings.SESSION_TTL_HOURS),
            clock=clock,
        )
        self.billing = BillingTracker()
        self.auth = CustomerAuth(self.api, store)
        self.cart = CartStore(
            store,
            self.session_store,
            catalog=self.api,
            tax_rate=self.settings.TAX_RATE,
            auto_add_product_name=self.settings.AUTO_ADD_PRODUCT_NAME,
        )
        self.history = OrderHistory(self.api, self.session, store, self.billing)
        self.submission = OrderSubmission(
            self.api,
            self.cart,
            self.session,
            self.history,
            auth=self.auth,
            default_estimated_time=self.settings.DEFAULT_ESTIMATED_TIME,
            tz=tz,
        )
        self.bills = BillConsolidator(self.api, self.session, self.history, self.billing, tz=tz)
        self.payments = PaymentRequester(self.api, self.session, self.billing)
        self.channel = StatusChannel(
            self.settings.WS_URL,
            connector=connector,
            reconnect_attempts=self.settings.RECONNECT_ATTEMPTS,
            reconnect_delay=self.settings.RECONNECT_DELAY_SECONDS,
        )

        self.channel.on("order:statusUpdate", self._on_order_status)
        self.channel.on("billing:statusUpdate", self._on_billing_status)
        self.session.add_start_listener(self.history.reset)
        self.session.add_start_listener(self.billing.reset)
        self.session.add_end_listener(self.history.reset)
        self.session.add_end_listener(self.billing.reset)
        self._session_end_task: asyncio.Task | None = None
        self._table_room: str | None = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def start(self):
        await self.cart.initialize()
        await self.channel.connect()
        table_number = self.session.table_number
        if table_number:
            await self._follow_table(table_number)
            await self.history.refresh()

    async def place_order(self, details: OrderDetails | None = None) -> OrderSummary:
        summary = await self.submission.place_order(details)
        await self._follow_table(summary.table_number)
        return summary

    async def _follow_table(self, table_number: int):
        """Stay subscribed to exactly one table room."""
        room = table_room(table_number)
        if self._table_room and self._table_room != room:
            await self.channel.leave(self._table_room)
        self._table_room = room
        await self.channel.join(room)

    async def request_payment(self) -> bool:
        return await self.payments.request_payment()

    def _on_order_status(self, frame: dict):
        try:
            push = OrderStatusPush.model_validate(frame)
        except ValidationError:
            logger.warning(f"[App] Ignoring malformed order status push: {frame}")
            return
        self.history.apply_status_push(push.order_id, push.status)

    def _on_billing_status(self, frame: dict):
        try:
            push = BillingStatusPush.model_validate(frame)
        except ValidationError:
            logger.warning(f"[App] Ignoring malformed billing push: {frame}")
            return
        if push.session_id != self.session.session_id:
            return

        self.billing.confirm(push.billing_status)
        self.history.apply_billing_status(push.billing_status)
        if push.billing_status == BillingStatus.PAID:
            self.schedule_session_end()

    def schedule_session_end(self):
        """End the session after the grace delay; repeated calls keep the first timer."""
        if self._session_end_task and not self._session_end_task.done():
            return
        self._session_end_task = asyncio.create_task(self._end_session_after_grace())

    async def _end_session_after_grace(self):
        await asyncio.sleep(self.settings.SESSION_END_GRACE_SECONDS)
        self.session.end_session()
        if self._table_room:
            await self.channel.leave(self._table_room)
            self._table_room = None

    async def close(self):
        if self._session_end_task and not self._session_end_task.done():
            self._session_end_task.cancel()
        await self.channel.close()
        await self.api.aclose()
