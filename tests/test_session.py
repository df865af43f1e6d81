import pytest

from client.exceptions import MissingSessionError
from client.session import SessionIdentityManager
from client.storage import ORDERS_KEY, SESSION_KEY, MemoryStore

FOUR_HOURS = 4 * 60 * 60


class Clock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def sessions(store, clock):
    return SessionIdentityManager(store, clock=clock)


def test_new_session_token(sessions):
    session_id = sessions.get_or_create_session(7)

    assert session_id == "session_7_1700000000000"
    assert sessions.is_valid()
    assert sessions.table_number == 7


def test_existing_session_is_reused(sessions, clock):
    first = sessions.get_or_create_session(7)
    clock.now += 60

    assert sessions.get_or_create_session(7) == first


def test_session_expires_after_four_hours(sessions, clock):
    first = sessions.get_or_create_session(7)

    clock.now += FOUR_HOURS - 1
    assert sessions.is_valid()

    clock.now += 2
    assert not sessions.is_valid()
    assert sessions.session_id is None
    assert sessions.get_or_create_session(7) != first


def test_session_needs_a_table(sessions):
    with pytest.raises(MissingSessionError):
        sessions.get_or_create_session(None)


def test_prepare_does_not_persist(sessions, store):
    record = sessions.prepare_session(3)

    assert record.table_number == 3
    assert store.get(SESSION_KEY) is None
    assert not sessions.is_valid()


def test_corrupted_session_is_absent(store, clock):
    store.set(SESSION_KEY, {"id": 12})

    sessions = SessionIdentityManager(store, clock=clock)

    assert not sessions.is_valid()
    assert store.get_raw(SESSION_KEY) is None


def test_end_session_clears_state_and_notifies(sessions, store):
    sessions.get_or_create_session(7)
    store.set(ORDERS_KEY, [])
    ended = []
    sessions.add_end_listener(lambda: ended.append(True))

    sessions.end_session()

    assert not sessions.is_valid()
    assert store.get_raw(ORDERS_KEY) is None
    assert ended == [True]


def test_new_session_drops_previous_orders_and_notifies(sessions, store, clock):
    sessions.get_or_create_session(7)
    store.set(ORDERS_KEY, [{"id": "old"}])
    started = []
    sessions.add_start_listener(lambda: started.append(True))

    sessions.get_or_create_session(7)
    assert started == []
    assert store.get(ORDERS_KEY) == [{"id": "old"}]

    clock.now += FOUR_HOURS + 1
    sessions.get_or_create_session(7)

    assert started == [True]
    assert store.get_raw(ORDERS_KEY) is None
