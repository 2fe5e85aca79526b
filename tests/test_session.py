import os
import stat

import pytest

from dbchat.core.session import SessionStore


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_token_round_trip(tmp_path):
    path = str(tmp_path / "nested" / "session.json")
    store = SessionStore(path)
    assert not store.is_authenticated()

    store.set_token("abc")
    assert store.get_token() == "abc"
    # Persisted for the next run
    assert SessionStore(path).get_token() == "abc"

    store.clear_token()
    assert store.get_token() is None
    assert not store.is_authenticated()


def test_corrupt_session_file_is_ignored(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{not json", encoding="utf-8")
    store = SessionStore(str(path))
    assert store.get_token() is None
    store.set_token("fresh")
    assert store.get_token() == "fresh"


def test_connection_state_expires_after_ttl(tmp_path):
    clock = FakeClock()
    store = SessionStore(str(tmp_path / "s.json"), connection_ttl=3600, clock=clock)
    store.set_connection_state(7, True)
    assert store.get_connection_state(7)

    clock.now += 3599
    assert store.get_connection_state(7)

    clock.now += 1
    assert not store.get_connection_state(7)


def test_connection_state_only_for_its_project(tmp_path):
    store = SessionStore(str(tmp_path / "s.json"), clock=FakeClock())
    store.set_connection_state(7, True)
    assert not store.get_connection_state(8)

    # Only the latest record is kept
    store.set_connection_state(8, True)
    assert store.get_connection_state(8)
    assert not store.get_connection_state(7)


def test_disconnected_state_is_not_connected(tmp_path):
    store = SessionStore(str(tmp_path / "s.json"), clock=FakeClock())
    store.set_connection_state(7, False)
    assert not store.get_connection_state(7)


def test_logout_clears_token_and_connection(tmp_path):
    store = SessionStore(str(tmp_path / "s.json"), clock=FakeClock())
    store.set_token("abc")
    store.set_connection_state(7, True)
    store.logout()
    assert store.get_token() is None
    assert not store.get_connection_state(7)


@pytest.mark.skipif(os.name == "nt", reason="POSIX file modes")
def test_session_file_is_private(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("{}", encoding="utf-8")
    path.chmod(0o644)

    SessionStore(str(path)).set_token("secret-token")
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
