from __future__ import annotations

import fakeredis
import pytest

from inlinegames.api.models import PlayerRef, SessionPlayers, SessionState
from inlinegames.errors import SessionBusyError, SessionDecodeError
from inlinegames.lock import session_lock
from inlinegames.session_store import RedisSessionStore


ALICE = PlayerRef(id=1, display_name="Alice")


def test_missing_session_loads_as_none(store: RedisSessionStore) -> None:
    assert store.load("nope") is None


def test_save_then_load_round_trips(store: RedisSessionStore) -> None:
    state = SessionState(game_code="sandbox", players=SessionPlayers(host=ALICE))

    store.save("s1", state)

    assert store.load("s1") == state
    assert store.load_raw("s1") == state.model_dump_json()


def test_sessions_are_indexed_by_game_code(store: RedisSessionStore) -> None:
    store.save("s1", SessionState.blank("sandbox"))
    store.save("s2", SessionState.blank("sandbox"))
    store.save("s3", SessionState.blank("other"))

    assert store.list_session_ids(game_code="sandbox") == ["s1", "s2"]
    assert store.list_session_ids() == ["s1", "s2", "s3"]


def test_delete_removes_blob_and_index_entry(store: RedisSessionStore) -> None:
    store.save("s1", SessionState.blank("sandbox"))

    assert store.delete("s1") is True
    assert store.load("s1") is None
    assert store.list_session_ids(game_code="sandbox") == []
    assert store.delete("s1") is False


def test_invalid_blob_raises_decode_error(r: fakeredis.FakeRedis, store: RedisSessionStore) -> None:
    r.set("inlinegames:session:s1", "{not json")

    with pytest.raises(SessionDecodeError) as e:
        store.load("s1")

    assert e.value.raw == "{not json"


def test_session_lock_is_exclusive_and_released(r: fakeredis.FakeRedis) -> None:
    with session_lock(r=r, session_id="s1"):
        with pytest.raises(SessionBusyError):
            with session_lock(r=r, session_id="s1"):
                pass

    with session_lock(r=r, session_id="s1"):
        pass
    assert r.get("inlinegames:lock:s1") is None


def test_store_lock_is_a_no_op_unless_enabled(r: fakeredis.FakeRedis) -> None:
    with RedisSessionStore(r).lock("s1"):
        assert r.get("inlinegames:lock:s1") is None

    with RedisSessionStore(r, use_lock=True).lock("s1"):
        assert r.get("inlinegames:lock:s1") is not None
