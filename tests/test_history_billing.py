from datetime import datetime, timedelta

import pytest

from client.billing import BillConsolidator, BillingTracker, StatusSource, compute_session_totals
from client.exceptions import MissingSessionError, OrderServiceError
from client.history import OrderHistory
from client.models import BillingStatus, BillRecord, Order, OrderStatus
from client.payment import PaymentRequester
from client.session import SessionIdentityManager
from client.storage import ORDERS_KEY, MemoryStore

SESSION = "session_7_1700000000000"
PLACED_AT = datetime(2025, 8, 14, 13, 5)


def make_order(order_id, total, status="pending", minutes=0, billing_status="unpaid", session_id=SESSION) -> Order:
    subtotal = round(total / 1.08, 2)
    return Order.model_validate({
        "id": order_id,
        "order_number": f"MMC-{order_id}",
        "session_id": session_id,
        "table_number": 7,
        "items": [{"name": f"Item {order_id}", "quantity": 1, "price": subtotal}],
        "subtotal": subtotal,
        "tax": round(total - subtotal, 2),
        "total": total,
        "status": status,
        "billing_status": billing_status,
        "created_at": (PLACED_AT + timedelta(minutes=minutes)).isoformat(),
    })


class FakeOrderService:
    def __init__(self, orders=None, bill=None):
        self.orders = orders or []
        self.bill = bill
        self.fail = False
        self.payment_requests = []

    async def get_session_orders(self, session_id):
        if self.fail:
            raise OrderServiceError("down", status_code=503)
        return [o for o in self.orders if o.session_id == session_id]

    async def get_bill_record(self, session_id):
        if self.fail:
            raise OrderServiceError("down", status_code=503)
        return self.bill

    async def request_payment(self, session_id):
        if self.fail:
            raise OrderServiceError("down", status_code=503)
        self.payment_requests.append(session_id)
        return BillRecord(
            bill_number="BILL-20250814-001",
            session_id=session_id,
            subtotal=0,
            tax=0,
            total=0,
            order_count=0,
            billing_status=BillingStatus.PENDING_PAYMENT,
            created_at=PLACED_AT,
        )


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def sessions(store):
    manager = SessionIdentityManager(store, clock=lambda: 1_700_000_000.0)
    manager.get_or_create_session(7)
    return manager


@pytest.fixture
def service():
    return FakeOrderService()


@pytest.fixture
def tracker():
    return BillingTracker()


@pytest.fixture
def history(service, sessions, store, tracker):
    return OrderHistory(service, sessions, store, tracker)


def test_status_push_is_idempotent(history):
    history.prepend(make_order("a", 10.8))

    history.apply_status_push("a", OrderStatus.PREPARING)
    once = history.get("a").model_dump()
    history.apply_status_push("a", OrderStatus.PREPARING)

    assert history.get("a").model_dump() == once
    assert history.get("a").status == OrderStatus.PREPARING


def test_unknown_push_is_ignored(history):
    history.prepend(make_order("a", 10.8))

    assert history.apply_status_push("zzz", OrderStatus.SERVED) is False
    assert history.get("a").status == OrderStatus.PENDING


def test_out_of_order_terminal_duplicates_are_applied(history):
    history.prepend(make_order("a", 10.8))

    history.apply_status_push("a", OrderStatus.SERVED)
    history.apply_status_push("a", OrderStatus.PREPARING)
    history.apply_status_push("a", OrderStatus.SERVED)

    assert history.get("a").status == OrderStatus.SERVED


def test_derived_views(history):
    for order in [make_order("a", 1), make_order("b", 2, "preparing"), make_order("c", 3, "served"),
                  make_order("d", 4, "cancelled")]:
        history.prepend(order)

    assert {o.id for o in history.in_progress} == {"a", "b"}
    assert {o.id for o in history.completed} == {"c", "d"}


@pytest.mark.anyio
async def test_refresh_replaces_history(history, service, tracker):
    history.prepend(make_order("local-only", 99))
    service.orders = [make_order("a", 10.8), make_order("b", 21.6, minutes=5)]

    orders = await history.refresh()

    assert [o.id for o in orders] == ["b", "a"]
    assert history.get("local-only") is None


@pytest.mark.anyio
async def test_refresh_confirms_billing_status(history, service, tracker):
    tracker.mark_optimistic(BillingStatus.PENDING_PAYMENT)
    service.orders = [make_order("a", 10.8, billing_status="paid")]

    await history.refresh()

    assert tracker.status == BillingStatus.PAID
    assert tracker.source == StatusSource.CONFIRMED


@pytest.mark.anyio
async def test_empty_refresh_keeps_billing_status(history, service, tracker):
    tracker.confirm(BillingStatus.PENDING_PAYMENT)

    assert await history.refresh() == []
    assert tracker.status == BillingStatus.PENDING_PAYMENT


@pytest.mark.anyio
async def test_failed_refresh_keeps_history(history, service):
    history.prepend(make_order("a", 10.8))
    service.fail = True

    assert await history.refresh() == []
    assert history.get("a") is not None


def test_history_reloads_from_storage(service, sessions, store, tracker, history):
    history.prepend(make_order("a", 10.8))

    reloaded = OrderHistory(service, sessions, store, tracker)

    assert reloaded.get("a").total == 10.8


def test_corrupted_history_cache_is_discarded(service, sessions, store, tracker):
    store.set_raw(ORDERS_KEY, "[{")

    assert OrderHistory(service, sessions, store, tracker).orders == []


def test_session_totals_exclude_cancelled():
    orders = [make_order("a", 10), make_order("b", 20), make_order("c", 5, "cancelled")]

    totals = compute_session_totals(orders)

    assert totals.total == pytest.approx(30)
    assert totals.subtotal == pytest.approx(orders[0].subtotal + orders[1].subtotal)
    assert totals.order_count == 2


@pytest.mark.anyio
async def test_bill_falls_back_to_local_aggregate(history, service, sessions, tracker):
    history.prepend(make_order("a", 10.8))
    history.prepend(make_order("b", 5.4, "cancelled", minutes=1))
    consolidator = BillConsolidator(service, sessions, history, tracker)

    bill = await consolidator.get_consolidated_bill()

    assert bill.reference == "SESSION-00000000"
    assert bill.is_server_record is False
    assert bill.total == 10.8
    assert bill.order_count == 1
    assert [line.name for line in bill.items] == ["Item a"]
    assert bill.date == "08/14/25"
    assert bill.time == "01:05 PM"


@pytest.mark.anyio
async def test_bill_prefers_server_record(history, service, sessions, tracker):
    service.bill = BillRecord(
        bill_number="BILL-20250814-004",
        session_id=SESSION,
        items=[{"name": "Veg Steam Momo", "quantity": 2, "price": 5.0}],
        subtotal=10,
        tax=0.8,
        total=10.8,
        order_count=1,
        billing_status=BillingStatus.PAID,
        created_at=PLACED_AT,
    )
    tracker.confirm(BillingStatus.PENDING_PAYMENT)

    bill = await BillConsolidator(service, sessions, history, tracker).get_consolidated_bill()

    assert bill.reference == "BILL-20250814-004"
    assert bill.is_server_record is True
    # the record's own status is not trusted over the tracked one
    assert bill.billing_status == BillingStatus.PENDING_PAYMENT


@pytest.mark.anyio
async def test_bill_needs_a_session(history, service, tracker, store):
    sessions = SessionIdentityManager(MemoryStore())

    with pytest.raises(MissingSessionError):
        await BillConsolidator(service, sessions, history, tracker).get_consolidated_bill()


def test_optimistic_status_is_tagged():
    tracker = BillingTracker()

    tracker.mark_optimistic(BillingStatus.PENDING_PAYMENT)

    assert tracker.status == BillingStatus.PENDING_PAYMENT
    assert tracker.source == StatusSource.OPTIMISTIC
    assert not tracker.is_confirmed


def test_optimistic_status_never_moves_back_or_to_paid():
    tracker = BillingTracker()
    tracker.confirm(BillingStatus.PENDING_PAYMENT)

    tracker.mark_optimistic(BillingStatus.UNPAID)
    assert tracker.status == BillingStatus.PENDING_PAYMENT
    assert tracker.is_confirmed

    with pytest.raises(ValueError):
        tracker.mark_optimistic(BillingStatus.PAID)


@pytest.mark.anyio
async def test_payment_request_sets_optimistic_pending(service, sessions, tracker):
    payments = PaymentRequester(service, sessions, tracker)

    assert await payments.request_payment() is True

    assert tracker.status == BillingStatus.PENDING_PAYMENT
    assert tracker.source == StatusSource.OPTIMISTIC
    assert service.payment_requests == [SESSION]


@pytest.mark.anyio
async def test_repeated_payment_request_is_a_no_op(service, sessions, tracker):
    payments = PaymentRequester(service, sessions, tracker)
    await payments.request_payment()

    assert await payments.request_payment() is False

    assert tracker.status == BillingStatus.PENDING_PAYMENT
    assert service.payment_requests == [SESSION]


@pytest.mark.anyio
async def test_failed_payment_request_leaves_status(service, sessions, tracker):
    service.fail = True
    payments = PaymentRequester(service, sessions, tracker)

    with pytest.raises(OrderServiceError):
        await payments.request_payment()

    assert tracker.status == BillingStatus.UNPAID


@pytest.mark.anyio
async def test_payment_request_needs_a_session(service, tracker):
    payments = PaymentRequester(service, SessionIdentityManager(MemoryStore()), tracker)

    with pytest.raises(MissingSessionError):
        await payments.request_payment()


class Clock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.mark.anyio
async def test_expired_session_orders_stay_out_of_the_next_bill(service, store, tracker):
    clock = Clock()
    sessions = SessionIdentityManager(store, clock=clock)
    history = OrderHistory(service, sessions, store, tracker)
    sessions.add_start_listener(history.reset)
    sessions.get_or_create_session(7)
    history.prepend(make_order("old", 100.0))

    clock.now += 4 * 60 * 60 + 1
    new_session = sessions.get_or_create_session(7)
    history.prepend(make_order("new", 10.8, session_id=new_session))

    bill = await BillConsolidator(service, sessions, history, tracker).get_consolidated_bill()

    assert [o.id for o in history.orders] == ["new"]
    assert bill.total == 10.8
    assert bill.order_count == 1


@pytest.mark.anyio
async def test_local_bill_only_counts_the_current_session(history, service, sessions, tracker):
    history.prepend(make_order("a", 10.8))
    history.prepend(make_order("stray", 50.0, session_id="session_7_1600000000000"))

    bill = await BillConsolidator(service, sessions, history, tracker).get_consolidated_bill()

    assert bill.total == 10.8
    assert [line.name for line in bill.items] == ["Item a"]


def test_cache_from_an_expired_session_is_not_loaded(service, store, tracker):
    clock = Clock()
    sessions = SessionIdentityManager(store, clock=clock)
    sessions.get_or_create_session(7)
    OrderHistory(service, sessions, store, tracker).prepend(make_order("old", 100.0))

    clock.now += 4 * 60 * 60 + 1

    assert OrderHistory(service, sessions, store, tracker).orders == []
