import random
from datetime import datetime, tzinfo


def round_money(value: float) -> float:
    return round(value, 2)


def format_date(value: datetime, tz: tzinfo | None = None) -> str:
    """08/14/25 style."""
    return _local(value, tz).strftime("%m/%d/%y")


def format_time(value: datetime, tz: tzinfo | None = None) -> str:
    """02:05 PM style."""
    return _local(value, tz).strftime("%I:%M %p")


def _local(value: datetime, tz: tzinfo | None) -> datetime:
    if tz is None or value.tzinfo is None:
        return value
    return value.astimezone(tz)


def generate_order_number(rng: random.Random | None = None) -> str:
    rng = rng or random
    return f"MMC-{rng.randint(1000, 9999)}"


def generate_barcode(rng: random.Random | None = None) -> str:
    rng = rng or random
    return f"0192847{rng.randint(10000, 99999)}"


def session_bill_reference(session_id: str) -> str:
    return f"SESSION-{session_id[-8:]}"
