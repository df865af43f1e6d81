"""Async HTTP client for the order service REST API."""
import logging
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from client.exceptions import OrderServiceError
from client.models import BillRecord, CatalogItem, CustomerIdentity, Order

logger = logging.getLogger(__name__)


def _error_detail(response: httpx.Response):
    try:
        return response.json().get("detail")
    except ValueError:
        return response.text or None


class OrderServiceClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def aclose(self):
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise OrderServiceError(f"{method} {path} timed out") from e
        except httpx.HTTPError as e:
            raise OrderServiceError(f"{method} {path} failed: {e}") from e

        if response.is_error:
            detail = _error_detail(response)
            message = detail if isinstance(detail, str) else f"{method} {path} returned {response.status_code}"
            raise OrderServiceError(message, status_code=response.status_code, detail=detail)
        return response

    def _parse(self, model, data):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise OrderServiceError(f"Unexpected {model.__name__} payload: {e}") from e

    # Orders

    async def create_order(self, payload: dict) -> Order:
        response = await self._request("POST", "/orders", json=payload)
        return self._parse(Order, response.json())

    async def get_session_orders(self, session_id: str) -> list[Order]:
        response = await self._request("GET", f"/orders/session/{quote(session_id)}")
        return [self._parse(Order, item) for item in response.json()]

    async def get_bill_record(self, session_id: str) -> BillRecord | None:
        """Persisted bill for the session, or None while none exists."""
        try:
            response = await self._request("GET", f"/orders/session/{quote(session_id)}/bill-record")
        except OrderServiceError as e:
            if e.status_code == 404:
                return None
            raise
        return self._parse(BillRecord, response.json())

    async def request_payment(self, session_id: str) -> BillRecord:
        response = await self._request("POST", f"/orders/session/{quote(session_id)}/pay-request")
        return self._parse(BillRecord, response.json())

    # Catalog

    async def get_menu_item_by_name(self, product_name: str) -> CatalogItem | None:
        try:
            response = await self._request("GET", f"/menu/by-name/{quote(product_name)}")
        except OrderServiceError as e:
            if e.status_code == 404:
                return None
            raise
        return self._parse(CatalogItem, response.json())

    # Phone login

    async def send_otp(self, phone_number: str) -> dict:
        response = await self._request("POST", "/auth/otp/send", json={"phone_number": phone_number})
        return response.json()

    async def verify_otp(
        self,
        phone_number: str,
        otp: str,
        name: str | None = None,
        email: str | None = None
    ) -> tuple[CustomerIdentity, str, bool]:
        """Returns (customer, access_token, is_new_customer)."""
        response = await self._request(
            "POST",
            "/auth/otp/verify",
            json={"phone_number": phone_number, "otp": otp, "name": name, "email": email},
        )
        data = response.json()
        customer = self._parse(CustomerIdentity, data.get("customer"))
        return customer, data.get("access_token", ""), bool(data.get("is_new_customer"))
