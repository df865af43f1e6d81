import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["SQLITE_FILE_NAME"] = ":memory:"
os.environ["TWO_FACTOR_API_KEY"] = "test-api-key"

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

import models  # noqa: F401  registers every table
from main import app
from db.session import get_db
from core.security import create_admin_token
from crud.admins import create_admin
from services.sms_gateway import TwoFactorGateway, get_sms_gateway


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="db")
def db_fixture(engine):
    with Session(engine) as session:
        yield session


class GatewayRecorder:
    """Stands in for the SMS provider over httpx.MockTransport."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.body = {"Status": "Success", "Details": "gateway-session-1"}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_otp(self) -> str:
        # .../SMS/{phone}/{otp}/AUTOTRIGGER
        return self.requests[-1].url.path.split("/")[-2]


@pytest.fixture(name="sms")
def sms_fixture():
    return GatewayRecorder()


@pytest.fixture(name="gateway")
def gateway_fixture(sms):
    return TwoFactorGateway(
        api_url="https://sms.test/API/V1",
        api_key="test-api-key",
        timeout=5.0,
        transport=httpx.MockTransport(sms.handler),
    )


@pytest.fixture(name="app_overrides")
def app_overrides_fixture(engine, gateway):
    def get_db_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = get_db_override
    app.dependency_overrides[get_sms_gateway] = lambda: gateway
    yield app
    app.dependency_overrides.clear()


@pytest.fixture(name="client")
def client_fixture(app_overrides):
    return TestClient(app_overrides)


@pytest.fixture(name="admin")
def admin_fixture(db):
    return create_admin(db, email="master@gmail.com", password="master123", name="Master Admin")


@pytest.fixture(name="admin_headers")
def admin_headers_fixture(admin):
    return {"Authorization": f"Bearer {create_admin_token(str(admin.id))}"}


def order_payload(session_id: str = "session_7_1700000000000", order_number: str = "MMC-1001", **overrides) -> dict:
    payload = {
        "session_id": session_id,
        "order_number": order_number,
        "table_number": 7,
        "customer_name": "Asha",
        "customer_phone": "9876543210",
        "customer_email": "",
        "items": [
            {"menu_item_id": "veg-steam", "name": "Veg Steam Momo", "quantity": 2, "price": 5.0},
        ],
        "subtotal": 10.0,
        "tax": 0.8,
        "total": 10.8,
        "estimated_time": "15-20 mins",
    }
    payload.update(overrides)
    return payload
