from pydantic import BaseModel, Field
from uuid import UUID


class SendOtpRequest(BaseModel):
    """Request to send a one-time code to a phone number."""
    phone_number: str


class SendOtpResponse(BaseModel):
    message: str
    expires_in: int  # seconds


class VerifyOtpRequest(BaseModel):
    """Request to verify a one-time code; name is required for new customers."""
    phone_number: str
    otp: str = Field(..., pattern=r"^\d{4}$")
    name: str | None = None
    email: str | None = None


class CustomerResponse(BaseModel):
    """Customer identity attached to orders."""
    id: UUID
    name: str
    phone: str
    email: str = ""
    is_verified: bool

    class Config:
        from_attributes = True


class VerifyOtpResponse(BaseModel):
    message: str
    is_new_customer: bool
    customer: CustomerResponse
    access_token: str
    token_type: str = "bearer"


class AdminLoginRequest(BaseModel):
    """Request to login with email and password."""
    email: str
    password: str


class AdminResponse(BaseModel):
    id: UUID
    name: str
    email: str

    class Config:
        from_attributes = True


class AdminTokenResponse(BaseModel):
    """Response with access token and staff info."""
    access_token: str
    token_type: str = "bearer"
    admin: AdminResponse
