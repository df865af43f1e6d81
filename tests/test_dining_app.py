import re

import httpx
import pytest

from api.websocket.manager import manager
from channel_fakes import FakeConnector, wait_until
from client.app import DiningApp
from client.config import ClientSettings
from client.exceptions import EmptyCartError, MissingSessionError, OrderServiceError
from client.models import BillingStatus, CartItem, OrderDetails, OrderStatus
from client.storage import MemoryStore
from crud.menu import get_or_create_menu_item


class BridgeSocket:
    """Server-side room member that forwards pushes into the client's fake connection."""

    def __init__(self, connector: FakeConnector):
        self.connector = connector

    async def send_json(self, message):
        self.connector.current.push(message)


def client_settings(**overrides) -> ClientSettings:
    values = {
        "API_BASE_URL": "http://testserver/api",
        "WS_URL": "ws://testserver/api/ws",
        "SESSION_END_GRACE_SECONDS": 0.3,
        "RECONNECT_DELAY_SECONDS": 0.01,
    }
    values.update(overrides)
    return ClientSettings(**values)


@pytest.fixture
def transport(app_overrides):
    return httpx.ASGITransport(app=app_overrides)


@pytest.fixture
async def staff(transport, admin_headers):
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver/api", headers=admin_headers) as client:
        yield client


@pytest.fixture
async def dining(transport):
    connector = FakeConnector()
    bridge = BridgeSocket(connector)

    def relay(message):
        if message["type"] == "join_room":
            manager.join(bridge, message["room"])
        elif message["type"] == "leave_room":
            manager.leave(bridge, message["room"])

    connector._on_send = relay

    app = DiningApp(settings=client_settings(), store=MemoryStore(), transport=transport, connector=connector)
    app.bridge = bridge
    app.connector = connector
    await app.start()
    yield app
    await app.close()
    manager.disconnect(bridge)


def momo_a() -> CartItem:
    return CartItem(product_id="A", name="Veg Steam Momo", unit_price=5.00)


@pytest.mark.anyio
async def test_cart_to_paid_session(dining, staff):
    assert dining.cart.is_empty

    dining.cart.add_item(momo_a())
    dining.cart.add_item(momo_a())
    assert len(dining.cart.items) == 1
    assert dining.cart.items[0].quantity == 2
    totals = dining.cart.totals()
    assert totals.subtotal == pytest.approx(10.00)
    assert totals.tax == pytest.approx(0.80)
    assert totals.total == pytest.approx(10.80)

    summary = await dining.place_order(OrderDetails(table_number=7))

    assert dining.cart.is_empty
    assert len(dining.history.orders) == 1
    order = dining.history.orders[0]
    assert order.id == summary.order_id
    assert order.status == OrderStatus.PENDING
    assert order.total == pytest.approx(10.80)
    assert summary.total == 10.8
    assert re.fullmatch(r"MMC-\d{4}", summary.order_number)
    assert re.fullmatch(r"0192847\d{5}", summary.barcode)
    assert summary.session_id.startswith("session_7_")

    await wait_until(lambda: dining.bridge in manager.active_connections.get("table_7", ()))
    response = await staff.patch(f"/orders/{order.id}", json={"status": "preparing"})
    assert response.status_code == 200
    await wait_until(lambda: dining.history.get(order.id).status == OrderStatus.PREPARING)

    assert await dining.request_payment() is True
    assert dining.billing.status == BillingStatus.PENDING_PAYMENT
    assert not dining.billing.is_confirmed

    response = await staff.patch(
        f"/orders/session/{summary.session_id}/billing-status",
        json={"billing_status": "paid", "payment_method": "cash"},
    )
    assert response.status_code == 200
    await wait_until(lambda: dining.billing.status == BillingStatus.PAID)
    assert dining.billing.is_confirmed
    assert dining.session.is_valid()

    await wait_until(lambda: not dining.session.is_valid())
    assert dining.history.orders == []
    assert dining.billing.status == BillingStatus.UNPAID
    await wait_until(lambda: dining.bridge not in manager.active_connections.get("table_7", ()))
    assert "table_7" not in dining.channel._rooms


@pytest.mark.anyio
async def test_bill_view_uses_server_record_after_pay_request(dining):
    dining.cart.add_item(momo_a(), quantity=2)
    summary = await dining.place_order(OrderDetails(table_number=4))

    local = await dining.bills.get_consolidated_bill()
    assert local.reference == f"SESSION-{summary.session_id[-8:]}"
    assert local.total == 10.8

    await dining.request_payment()
    record = await dining.bills.get_consolidated_bill()

    assert record.is_server_record
    assert record.reference.startswith("BILL-")
    assert record.total == 10.8
    assert record.billing_status == BillingStatus.PENDING_PAYMENT


@pytest.mark.anyio
async def test_billing_push_for_another_session_is_ignored(dining):
    dining.cart.add_item(momo_a())
    await dining.place_order(OrderDetails(table_number=7))
    await dining.channel.wait_connected(timeout=1)

    dining.connector.current.push({
        "type": "billing:statusUpdate",
        "session_id": "session_7_1",
        "billing_status": "paid",
    })
    dining.connector.current.push({"type": "order:statusUpdate", "order_id": "unknown", "status": "served"})
    dining.connector.current.push({"type": "billing:statusUpdate", "billing_status": "paid"})

    await wait_until(lambda: dining.connector.current._inbox.empty())
    assert dining.billing.status == BillingStatus.UNPAID
    assert dining.session.is_valid()


@pytest.mark.anyio
async def test_empty_cart_is_rejected_before_any_request(dining):
    with pytest.raises(EmptyCartError):
        await dining.place_order(OrderDetails(table_number=7))


@pytest.mark.anyio
async def test_order_without_table_or_session(dining):
    dining.cart.add_item(momo_a())

    with pytest.raises(MissingSessionError):
        await dining.place_order()

    assert not dining.cart.is_empty


@pytest.mark.anyio
async def test_rejected_order_leaves_cart_and_session(dining):
    dining.cart.add_item(momo_a())
    await dining.place_order(OrderDetails(table_number=7, order_number="MMC-4242"))
    session_id = dining.session.session_id
    dining.cart.add_item(momo_a())

    with pytest.raises(OrderServiceError) as exc_info:
        await dining.place_order(OrderDetails(order_number="MMC-4242"))

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "Order number already exists"
    assert dining.cart.quantity_of("A") == 1
    assert dining.session.session_id == session_id
    assert len(dining.history.orders) == 1


@pytest.mark.anyio
async def test_failed_first_order_creates_no_session(transport):
    def refuse(request):
        return httpx.Response(503, json={"detail": "Service unavailable"})

    app = DiningApp(
        settings=client_settings(),
        store=MemoryStore(),
        transport=httpx.MockTransport(refuse),
        connector=FakeConnector(),
    )
    app.cart.add_item(momo_a())

    with pytest.raises(OrderServiceError):
        await app.place_order(OrderDetails(table_number=7))

    assert not app.session.is_valid()
    assert not app.cart.is_empty
    assert not app.submission.in_flight
    await app.close()


@pytest.mark.anyio
async def test_refresh_replaces_local_history(dining, staff):
    dining.cart.add_item(momo_a())
    summary = await dining.place_order(OrderDetails(table_number=7))
    await staff.patch(f"/orders/{summary.order_id}", json={"status": "served"})

    orders = await dining.history.refresh()

    assert [o.status for o in orders] == [OrderStatus.SERVED]
    assert dining.history.completed[0].id == summary.order_id


@pytest.mark.anyio
async def test_auto_add_uses_the_catalog(transport, db):
    get_or_create_menu_item(db, "Water Bottle", 20, category="Beverages", is_veg=True)
    app = DiningApp(settings=client_settings(), store=MemoryStore(), transport=transport, connector=FakeConnector())

    await app.start()

    assert [(item.name, item.is_auto_added) for item in app.cart.items] == [("Water Bottle", True)]
    await app.close()


@pytest.mark.anyio
async def test_signed_in_customer_is_attached_to_orders(dining, sms, staff):
    await dining.auth.send_code("98765-43210")
    customer, is_new = await dining.auth.verify_code("9876543210", sms.last_otp, name="Asha")
    dining.cart.add_item(momo_a())

    summary = await dining.place_order(OrderDetails(table_number=2))

    assert is_new
    orders = (await staff.get(f"/orders/session/{summary.session_id}")).json()
    assert orders[0]["customer_id"] == customer.id
    assert orders[0]["customer_name"] == "Asha"


class Clock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


class ScriptedRandom:
    """Returns the queued values first, then the low bound."""

    def __init__(self, *values):
        self.values = list(values)

    def randint(self, low, high):
        return self.values.pop(0) if self.values else low


@pytest.mark.anyio
async def test_unpaid_expired_session_does_not_leak_into_the_next_bill(transport):
    clock = Clock()
    app = DiningApp(
        settings=client_settings(),
        store=MemoryStore(),
        transport=transport,
        connector=FakeConnector(),
        clock=clock,
    )
    app.cart.add_item(momo_a(), quantity=20)
    first = await app.place_order(OrderDetails(table_number=7))
    assert first.total == 108.0

    clock.now += 4 * 60 * 60 + 1
    app.cart.add_item(momo_a(), quantity=2)
    second = await app.place_order(OrderDetails(table_number=7))

    bill = await app.bills.get_consolidated_bill()

    assert second.session_id != first.session_id
    assert [o.id for o in app.history.orders] == [second.order_id]
    assert bill.session_id == second.session_id
    assert bill.total == 10.8
    assert bill.order_count == 1
    await app.close()


@pytest.mark.anyio
async def test_taken_order_number_is_redrawn(dining):
    dining.cart.add_item(momo_a())
    await dining.place_order(OrderDetails(table_number=7, order_number="MMC-4242"))
    dining.submission._rng = ScriptedRandom(4242, 4243)
    dining.cart.add_item(momo_a())

    summary = await dining.place_order()

    assert summary.order_number == "MMC-4243"
    assert dining.cart.is_empty
    assert len(dining.history.orders) == 2


@pytest.mark.anyio
async def test_moving_table_leaves_the_old_room(dining):
    dining.cart.add_item(momo_a())
    await dining.place_order(OrderDetails(table_number=7))
    await wait_until(lambda: dining.bridge in manager.active_connections.get("table_7", ()))

    dining.session.end_session()
    dining.cart.add_item(momo_a())
    await dining.place_order(OrderDetails(table_number=3))

    await wait_until(lambda: dining.bridge in manager.active_connections.get("table_3", ()))
    assert dining.bridge not in manager.active_connections.get("table_7", ())
