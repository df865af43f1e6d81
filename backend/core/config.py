from typing import Annotated, Any, Literal
from zoneinfo import ZoneInfo

from pydantic import BeforeValidator, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",")]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file="./.env",
        env_ignore_empty=True,
        extra="ignore",
    )

    BACKEND_CORS_ORIGINS: Annotated[list[str] | str, BeforeValidator(parse_cors)] = []

    ENVIRONMENT: Literal["local", "staging", "production"] = "local"

    # Public URL of the customer ordering page, encoded into table QR codes
    FRONTEND_URL: str = (
        "https://momomagic.in" if ENVIRONMENT != "local" else "http://localhost:5173"
    )

    SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # Timezone configuration
    TIMEZONE: str = "Asia/Kolkata"

    # Database configuration
    SQLITE_FILE_NAME: str = "momo_magic.db"

    # SMS gateway (2Factor-style OTP API)
    TWO_FACTOR_API_URL: str = "https://2factor.in/API/V1"
    TWO_FACTOR_API_KEY: str | None = None
    SMS_TIMEOUT_SECONDS: float = 10.0
    OTP_EXPIRY_MINUTES: int = 5
    OTP_MAX_ATTEMPTS: int = 3

    # Orders
    DEFAULT_ESTIMATED_TIME: str = "15-20 mins"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:  # noqa
        return f"sqlite:///{self.SQLITE_FILE_NAME}"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def APP_TIMEZONE(self) -> ZoneInfo:  # noqa
        """Get the timezone object for the configured timezone string."""
        return ZoneInfo(self.TIMEZONE)

settings = Settings()  # type: ignore
