import logging
import time
from datetime import timedelta
from typing import Callable

from pydantic import ValidationError

from client.exceptions import MissingSessionError
from client.models import SessionRecord
from client.storage import MemoryStore, ORDERS_KEY, SESSION_KEY

logger = logging.getLogger(__name__)

SESSION_TTL = timedelta(hours=4)


class SessionIdentityManager:
    """Owns the dining-session token that groups one table visit's orders."""

    def __init__(
        self,
        store: MemoryStore,
        ttl: timedelta = SESSION_TTL,
        clock: Callable[[], float] = time.time
    ):
        self._store = store
        self._ttl_ms = int(ttl.total_seconds() * 1000)
        self._clock = clock
        self._start_listeners: list[Callable[[], None]] = []
        self._end_listeners: list[Callable[[], None]] = []

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _load(self) -> SessionRecord | None:
        data = self._store.get(SESSION_KEY)
        if data is None:
            return None
        try:
            return SessionRecord.model_validate(data)
        except ValidationError:
            logger.warning("[Session] Discarding corrupted session record")
            self._store.delete(SESSION_KEY)
            return None

    def current(self) -> SessionRecord | None:
        """The stored session while it is still inside its validity window."""
        record = self._load()
        if record and self._now_ms() - record.timestamp < self._ttl_ms:
            return record
        return None

    def is_valid(self) -> bool:
        return self.current() is not None

    @property
    def session_id(self) -> str | None:
        record = self.current()
        return record.id if record else None

    @property
    def table_number(self) -> int | None:
        record = self.current()
        return record.table_number if record else None

    def prepare_session(self, table_number: int | None) -> SessionRecord:
        """Current session, or a fresh unsaved one for the table.

        Nothing is persisted until activate() so a failed order leaves no trace.
        """
        record = self.current()
        if record:
            return record
        if table_number is None:
            raise MissingSessionError()
        now = self._now_ms()
        return SessionRecord(id=f"session_{table_number}_{now}", timestamp=now, table_number=table_number)

    def activate(self, record: SessionRecord):
        """Persist the session. Replacing a different session drops its cached orders."""
        previous = self._load()
        self._store.set(SESSION_KEY, record.model_dump())
        if previous and previous.id == record.id:
            return
        self._store.delete(ORDERS_KEY)
        for listener in self._start_listeners:
            listener()
        logger.info(f"[Session] Started session {record.id}")

    def get_or_create_session(self, table_number: int | None) -> str:
        record = self.prepare_session(table_number)
        self.activate(record)
        return record.id

    def add_start_listener(self, listener: Callable[[], None]):
        self._start_listeners.append(listener)

    def add_end_listener(self, listener: Callable[[], None]):
        self._end_listeners.append(listener)

    def end_session(self):
        """Forget the session and its cached orders; listeners reset their state."""
        session_id = self.session_id
        self._store.delete(SESSION_KEY)
        self._store.delete(ORDERS_KEY)
        for listener in self._end_listeners:
            listener()
        logger.info(f"[Session] Ended session {session_id}")
