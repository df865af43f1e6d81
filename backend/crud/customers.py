import re
from datetime import datetime, timedelta
from sqlmodel import select, Session
from models.customers import Customer
from models.otp_logs import OtpLog
from core.config import settings
from core.security import get_password_hash, verify_password


def normalize_phone(phone_number: str) -> str:
    """Strip everything but digits. Raises ValueError unless 10 digits remain."""
    cleaned = re.sub(r"\D", "", phone_number or "")
    if len(cleaned) != 10:
        raise ValueError("Please provide a valid 10-digit phone number")
    return cleaned


def get_customer_by_phone(
    db: Session,
    phone: str
) -> Customer | None:
    """Get a customer by normalized phone number."""
    return db.exec(select(Customer).where(Customer.phone == phone)).first()


def get_verified_customer(
    db: Session,
    customer_id
) -> Customer | None:
    """Get a customer only if they completed phone verification."""
    if customer_id is None:
        return None
    customer = db.get(Customer, customer_id)
    if customer and customer.is_verified:
        return customer
    return None


def create_otp_log(
    db: Session,
    phone_number: str,
    otp: str,
    gateway_session_id: str | None = None,
    ip_address: str = ""
) -> OtpLog:
    """Record an issued code; only its hash is stored."""
    now = datetime.now(settings.APP_TIMEZONE)
    otp_log = OtpLog(
        phone_number=phone_number,
        otp_hash=get_password_hash(otp),
        gateway_session_id=gateway_session_id,
        expires_at=now + timedelta(minutes=settings.OTP_EXPIRY_MINUTES),
        ip_address=ip_address,
    )
    db.add(otp_log)
    db.commit()
    db.refresh(otp_log)
    return otp_log


def get_latest_pending_otp(
    db: Session,
    phone_number: str
) -> OtpLog | None:
    """Most recent code still awaiting verification for a phone."""
    return db.exec(
        select(OtpLog)
        .where(OtpLog.phone_number == phone_number, OtpLog.status == "pending")
        .order_by(OtpLog.created_at.desc())
    ).first()


def check_otp(
    db: Session,
    phone_number: str,
    otp: str
) -> tuple[OtpLog | None, str | None]:
    """Validate a code against the latest pending log. Returns (otp_log, error_message)."""
    otp_log = get_latest_pending_otp(db, phone_number)
    if not otp_log:
        return None, "No pending OTP for this phone number. Please request a new one."

    # SQLite drops tzinfo on the way back, so compare naive wall-clock times
    now = datetime.now(settings.APP_TIMEZONE).replace(tzinfo=None)
    if otp_log.expires_at.replace(tzinfo=None) < now:
        otp_log.status = "expired"
        db.add(otp_log)
        db.commit()
        return None, "OTP has expired. Please request a new one."

    if not verify_password(otp, otp_log.otp_hash):
        otp_log.attempts += 1
        if otp_log.attempts >= settings.OTP_MAX_ATTEMPTS:
            otp_log.status = "failed"
        db.add(otp_log)
        db.commit()
        return None, "Invalid OTP. Please try again."

    return otp_log, None


def complete_verification(
    db: Session,
    otp_log: OtpLog,
    name: str | None = None,
    email: str | None = None
) -> tuple[Customer, bool]:
    """Create or refresh the customer behind a verified code. Returns (customer, is_new).

    Raises ValueError when a new customer has no name.
    """
    now = datetime.now(settings.APP_TIMEZONE)
    customer = get_customer_by_phone(db, otp_log.phone_number)
    is_new = customer is None

    if is_new:
        if not name:
            raise ValueError("Customer name is required for new accounts")
        customer = Customer(
            name=name,
            phone=otp_log.phone_number,
            email=email or "",
            is_verified=True,
            verified_at=now,
            last_visit=now,
        )
    else:
        customer.last_visit = now
        customer.is_verified = True
        if name and name != customer.name:
            customer.name = name
        if email and email != customer.email:
            customer.email = email

    db.add(customer)
    db.flush()

    otp_log.status = "verified"
    otp_log.verified_at = now
    otp_log.customer_id = customer.id
    db.add(otp_log)

    db.commit()
    db.refresh(customer)

    return customer, is_new
