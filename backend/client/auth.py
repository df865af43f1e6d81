import logging
import re

from pydantic import BaseModel, ValidationError

from client.api import OrderServiceClient
from client.exceptions import InvalidPhoneError
from client.models import CustomerIdentity
from client.storage import CUSTOMER_KEY, MemoryStore

logger = logging.getLogger(__name__)

OTP_PATTERN = re.compile(r"^\d{4}$")


class StoredLogin(BaseModel):
    customer: CustomerIdentity
    access_token: str = ""


def normalize_phone(phone_number: str) -> str:
    digits = re.sub(r"\D", "", phone_number or "")
    if len(digits) != 10:
        raise InvalidPhoneError("Please enter a valid 10-digit phone number")
    return digits


class CustomerAuth:
    """Phone login state; the identity is attached to orders when present."""

    def __init__(self, api: OrderServiceClient, store: MemoryStore):
        self._api = api
        self._store = store
        self._login = self._load()

    def _load(self) -> StoredLogin | None:
        data = self._store.get(CUSTOMER_KEY)
        if data is None:
            return None
        try:
            return StoredLogin.model_validate(data)
        except ValidationError:
            logger.warning("[Auth] Discarding corrupted customer record")
            self._store.delete(CUSTOMER_KEY)
            return None

    @property
    def customer(self) -> CustomerIdentity | None:
        return self._login.customer if self._login else None

    @property
    def access_token(self) -> str | None:
        return self._login.access_token if self._login else None

    @property
    def is_authenticated(self) -> bool:
        return self._login is not None

    async def send_code(self, phone_number: str) -> str:
        """Ask the service to text a code. Returns the normalized phone."""
        phone = normalize_phone(phone_number)
        await self._api.send_otp(phone)
        return phone

    async def verify_code(
        self,
        phone_number: str,
        otp: str,
        name: str | None = None,
        email: str | None = None
    ) -> tuple[CustomerIdentity, bool]:
        """Returns (customer, is_new_customer) and remembers the login."""
        phone = normalize_phone(phone_number)
        if not OTP_PATTERN.match(otp or ""):
            raise InvalidPhoneError("The code must be 4 digits")

        customer, token, is_new = await self._api.verify_otp(phone, otp, name, email)
        self._login = StoredLogin(customer=customer, access_token=token)
        self._store.set(CUSTOMER_KEY, self._login.model_dump())
        logger.info(f"[Auth] Signed in customer {customer.id}")
        return customer, is_new

    def logout(self):
        self._login = None
        self._store.delete(CUSTOMER_KEY)
