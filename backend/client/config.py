from zoneinfo import ZoneInfo

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MOMO_",
        env_file="./.env",
        env_ignore_empty=True,
        extra="ignore",
    )

    API_BASE_URL: str = "http://localhost:8000/api"
    WS_URL: str = "ws://localhost:8000/api/ws"

    # Explicit timeout on every order-service request
    REQUEST_TIMEOUT_SECONDS: float = 10.0

    SESSION_TTL_HOURS: float = 4.0
    # Time the "paid" state stays on screen before the session is reset
    SESSION_END_GRACE_SECONDS: float = 3.0

    RECONNECT_ATTEMPTS: int = 5
    RECONNECT_DELAY_SECONDS: float = 1.0

    TIMEZONE: str = "Asia/Kolkata"
    TAX_RATE: float = 0.08
    DEFAULT_ESTIMATED_TIME: str = "15-20 mins"
    AUTO_ADD_PRODUCT_NAME: str = "Water Bottle"

    # Local persistence; None keeps everything in memory
    STORAGE_PATH: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def APP_TIMEZONE(self) -> ZoneInfo:  # noqa
        return ZoneInfo(self.TIMEZONE)
