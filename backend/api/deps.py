from typing import Annotated, Optional
from uuid import UUID
from sqlmodel import Session
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from db.session import get_db
from models.admins import Admin
from core.security import decode_access_token
from services.sms_gateway import TwoFactorGateway, get_sms_gateway

security = HTTPBearer()

SessionDep = Annotated[Session, Depends(get_db)]
SmsGatewayDep = Annotated[TwoFactorGateway, Depends(get_sms_gateway)]


def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: SessionDep = None
) -> Admin:
    """Get current staff member from JWT token."""
    token = credentials.credentials
    payload = decode_access_token(token)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    admin_id: Optional[str] = payload.get("sub")
    if admin_id is None or payload.get("role") != "admin":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        admin_uuid = UUID(admin_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin ID format",
            headers={"WWW-Authenticate": "Bearer"},
        )

    admin = db.get(Admin, admin_uuid)
    if admin is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return admin


CurrentAdmin = Annotated[Admin, Depends(get_current_admin)]
