"""Client-side key/value persistence.

Two scopes mirror a browser: a local store that survives restarts, and a
per-browser-session store that lives as long as the process. Values are JSON.
"""
import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CART_KEY = "momoMagicCart"
SESSION_KEY = "momoMagicSessionId"
ORDERS_KEY = "momoMagicOrders"
CUSTOMER_KEY = "momo_auth_customer"
AUTO_ADD_REMOVED_KEY = "momoMagicWaterBottleRemoved"


class MemoryStore:
    """Dict-backed store; also used as the per-browser-session store."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get_raw(self, key: str) -> str | None:
        return self._data.get(key)

    def set_raw(self, key: str, value: str):
        self._data[key] = value

    def delete(self, key: str):
        self._data.pop(key, None)

    def get(self, key: str) -> Any | None:
        """Decode a JSON value. Unparseable entries are dropped and reported as absent."""
        raw = self.get_raw(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"[Storage] Discarding corrupted entry '{key}'")
            self.delete(key)
            return None

    def set(self, key: str, value: Any):
        self.set_raw(key, json.dumps(value))


class JsonFileStore(MemoryStore):
    """Store persisted to a single JSON file, rewritten on every change."""

    def __init__(self, path: str | Path):
        super().__init__()
        self.path = Path(path)
        self._load()

    def _load(self):
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"[Storage] Ignoring unreadable store {self.path}: {e}")
            return
        if not isinstance(data, dict):
            logger.warning(f"[Storage] Ignoring store {self.path}: expected an object")
            return
        self._data = {k: v for k, v in data.items() if isinstance(v, str)}

    def _flush(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._data), encoding="utf-8")

    def set_raw(self, key: str, value: str):
        super().set_raw(key, value)
        self._flush()

    def delete(self, key: str):
        if key in self._data:
            super().delete(key)
            self._flush()
