from sqlmodel import select, Session
from models.admins import Admin
from core.security import get_password_hash, verify_password


def get_admin_by_email(
    db: Session,
    email: str
) -> Admin | None:
    return db.exec(select(Admin).where(Admin.email == email.lower())).first()


def create_admin(
    db: Session,
    email: str,
    password: str,
    name: str
) -> Admin:
    """Create a staff account."""
    if get_admin_by_email(db, email):
        raise ValueError("Admin with this email already exists")

    admin = Admin(
        email=email.lower(),
        name=name,
        hashed_password=get_password_hash(password)
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)

    return admin


def authenticate_admin(
    db: Session,
    email: str,
    password: str
) -> Admin | None:
    """Authenticate a staff member with email and password."""
    admin = get_admin_by_email(db, email)

    if not admin:
        return None

    if not verify_password(password, admin.hashed_password):
        return None

    return admin
