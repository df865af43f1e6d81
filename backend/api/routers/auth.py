import logging
from fastapi import APIRouter, HTTPException, Request

from api.deps import SessionDep, SmsGatewayDep
from core.config import settings
from core.security import create_customer_token
from crud import customers as crud_customers
from services.sms_gateway import SmsGatewayError, generate_otp
from schemas.auth import (
    SendOtpRequest,
    SendOtpResponse,
    VerifyOtpRequest,
    VerifyOtpResponse,
    CustomerResponse,
)

router = APIRouter(prefix="/auth", tags=["auth"])

logger = logging.getLogger(__name__)


@router.post("/otp/send", response_model=SendOtpResponse)
async def send_otp(
    data: SendOtpRequest,
    request: Request,
    db: SessionDep,
    gateway: SmsGatewayDep
):
    """Send a 4-digit login code by SMS."""
    try:
        phone = crud_customers.normalize_phone(data.phone_number)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    otp = generate_otp()
    try:
        gateway_session_id = await gateway.send_otp(phone, otp)
    except SmsGatewayError as e:
        logger.error(f"[OTP] Gateway failure for ******{phone[-4:]}: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    client_ip = request.client.host if request.client else ""
    crud_customers.create_otp_log(db, phone, otp, gateway_session_id, client_ip)

    return SendOtpResponse(
        message="OTP sent successfully",
        expires_in=settings.OTP_EXPIRY_MINUTES * 60,
    )


@router.post("/otp/verify", response_model=VerifyOtpResponse)
def verify_otp(data: VerifyOtpRequest, db: SessionDep):
    """Verify a login code and sign the customer in.

    First-time customers must send their name along with the code.
    """
    try:
        phone = crud_customers.normalize_phone(data.phone_number)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    otp_log, error = crud_customers.check_otp(db, phone, data.otp)
    if error:
        raise HTTPException(status_code=400, detail=error)

    try:
        customer, is_new = crud_customers.complete_verification(db, otp_log, data.name, data.email)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info(f"[OTP] Verified customer {customer.id} (new={is_new})")

    return VerifyOtpResponse(
        message="Account created successfully" if is_new else "Login successful",
        is_new_customer=is_new,
        customer=CustomerResponse.model_validate(customer),
        access_token=create_customer_token(str(customer.id)),
    )
