import logging

from client.api import OrderServiceClient
from client.billing import BillingTracker
from client.exceptions import MissingSessionError
from client.models import BillingStatus

logger = logging.getLogger(__name__)


class PaymentRequester:
    """Customer-side "ready to pay" signal. Staff settle it in person."""

    def __init__(self, api: OrderServiceClient, session, tracker: BillingTracker):
        self._api = api
        self._session = session
        self._tracker = tracker

    async def request_payment(self) -> bool:
        """Returns False when a request is already pending or the bill is paid."""
        session_id = self._session.session_id
        if not session_id:
            raise MissingSessionError("No active dining session to pay for")

        if self._tracker.status in (BillingStatus.PENDING_PAYMENT, BillingStatus.PAID):
            return False

        bill = await self._api.request_payment(session_id)
        self._tracker.mark_optimistic(BillingStatus.PENDING_PAYMENT)
        logger.info(f"[Payment] Requested payment for {session_id} (bill {bill.bill_number})")
        return True
