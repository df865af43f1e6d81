"""SMS gateway client for one-time login codes.

Talks to a 2Factor-style HTTP API: GET {api_url}/{api_key}/SMS/{phone}/{otp}/AUTOTRIGGER
answers with {"Status": "Success", "Details": "<gateway session id>"}.
"""
import logging
import secrets

import httpx

from core.config import settings

logger = logging.getLogger(__name__)

OTP_LENGTH = 4


class SmsGatewayError(Exception):
    """The gateway could not deliver the code."""


def generate_otp() -> str:
    """Generate a random 4-digit code."""
    return str(secrets.randbelow(9000) + 1000)


class TwoFactorGateway:
    def __init__(
        self,
        api_url: str,
        api_key: str | None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None
    ):
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    async def send_otp(self, phone_number: str, otp: str) -> str | None:
        """Deliver a code to a normalized 10-digit number. Returns the gateway session id."""
        if not self.api_key:
            raise SmsGatewayError("TWO_FACTOR_API_KEY is not configured")

        url = f"{self.api_url}/{self.api_key}/SMS/{phone_number}/{otp}/AUTOTRIGGER"
        logger.info(f"[SMS] Sending OTP to {phone_number[-4:].rjust(10, '*')}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            raise SmsGatewayError("OTP service timeout. Please try again.") from e
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 401:
                raise SmsGatewayError("OTP service authentication failed.") from e
            raise SmsGatewayError(f"OTP service returned {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise SmsGatewayError(f"Failed to send OTP: {e}") from e

        if data.get("Status") != "Success":
            raise SmsGatewayError(data.get("Details") or data.get("Reason") or "Failed to send OTP")

        return data.get("Details")


sms_gateway = TwoFactorGateway(
    api_url=settings.TWO_FACTOR_API_URL,
    api_key=settings.TWO_FACTOR_API_KEY,
    timeout=settings.SMS_TIMEOUT_SECONDS,
)


def get_sms_gateway() -> TwoFactorGateway:
    return sms_gateway
