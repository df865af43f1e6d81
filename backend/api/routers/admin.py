from fastapi import APIRouter, HTTPException, status

from api.deps import SessionDep, CurrentAdmin
from core.security import create_admin_token
from crud.admins import authenticate_admin
from schemas.auth import AdminLoginRequest, AdminResponse, AdminTokenResponse

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/login", response_model=AdminTokenResponse)
def login(data: AdminLoginRequest, db: SessionDep):
    """Staff login with email and password."""
    admin = authenticate_admin(db, data.email, data.password)

    if not admin:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AdminTokenResponse(
        access_token=create_admin_token(str(admin.id)),
        admin=AdminResponse.model_validate(admin)
    )


@router.get("/me", response_model=AdminResponse)
def get_me(current_admin: CurrentAdmin):
    return current_admin
