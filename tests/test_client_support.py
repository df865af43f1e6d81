from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from client.auth import CustomerAuth, normalize_phone
from client.exceptions import InvalidPhoneError
from client.formatting import format_date, format_time, round_money, session_bill_reference
from client.models import CustomerIdentity, Order
from client.storage import CUSTOMER_KEY, JsonFileStore, MemoryStore


class FakeAuthService:
    def __init__(self):
        self.sent = []

    async def send_otp(self, phone):
        self.sent.append(phone)
        return {"message": "OTP sent successfully", "expires_in": 300}

    async def verify_otp(self, phone, otp, name=None, email=None):
        return CustomerIdentity(id="c-1", name=name or "Asha", phone=phone), "token-1", name is not None


def test_file_store_persists_between_instances(tmp_path):
    path = tmp_path / "state.json"
    JsonFileStore(path).set("momoMagicCart", [{"product_id": "A"}])

    assert JsonFileStore(path).get("momoMagicCart") == [{"product_id": "A"}]


def test_unreadable_file_store_starts_empty(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{broken", encoding="utf-8")

    store = JsonFileStore(path)

    assert store.get("momoMagicCart") is None


def test_corrupted_value_is_dropped():
    store = MemoryStore()
    store.set_raw("momoMagicOrders", "not json")

    assert store.get("momoMagicOrders") is None
    assert store.get_raw("momoMagicOrders") is None


def test_formatting_helpers():
    moment = datetime(2025, 8, 14, 8, 35, tzinfo=ZoneInfo("UTC"))
    kolkata = ZoneInfo("Asia/Kolkata")

    assert format_date(moment, kolkata) == "08/14/25"
    assert format_time(moment, kolkata) == "02:05 PM"
    assert round_money(10.800000000000001) == 10.8
    assert session_bill_reference("session_7_1700000000123") == "SESSION-00000123"


def test_server_statuses_are_normalized():
    order = Order.model_validate({
        "id": "1", "order_number": "MMC-1", "session_id": "s", "table_number": 1,
        "subtotal": 1, "tax": 0.08, "total": 1.08, "status": "preparing",
        "created_at": "2025-08-14T13:05:00", "unknown_field": True,
    })

    assert order.status == "PREPARING"


@pytest.mark.parametrize("raw, expected", [
    ("9876543210", "9876543210"),
    ("98765 43210", "9876543210"),
    ("(987) 654-3210", "9876543210"),
])
def test_normalize_phone(raw, expected):
    assert normalize_phone(raw) == expected


@pytest.mark.parametrize("raw", ["", "12345", "98765432101"])
def test_invalid_phone(raw):
    with pytest.raises(InvalidPhoneError):
        normalize_phone(raw)


@pytest.mark.anyio
async def test_bad_input_never_reaches_the_service():
    service = FakeAuthService()
    auth = CustomerAuth(service, MemoryStore())

    with pytest.raises(InvalidPhoneError):
        await auth.send_code("123")
    with pytest.raises(InvalidPhoneError):
        await auth.verify_code("9876543210", "12a4")

    assert service.sent == []
    assert not auth.is_authenticated


@pytest.mark.anyio
async def test_login_is_remembered():
    store = MemoryStore()
    auth = CustomerAuth(FakeAuthService(), store)

    customer, is_new = await auth.verify_code("9876543210", "1234", name="Asha")

    assert is_new
    restored = CustomerAuth(FakeAuthService(), store)
    assert restored.customer == customer
    assert restored.access_token == "token-1"

    restored.logout()
    assert store.get(CUSTOMER_KEY) is None


def test_corrupted_login_is_discarded():
    store = MemoryStore()
    store.set(CUSTOMER_KEY, {"customer": {"id": "c-1"}})

    auth = CustomerAuth(FakeAuthService(), store)

    assert auth.customer is None
    assert store.get_raw(CUSTOMER_KEY) is None
