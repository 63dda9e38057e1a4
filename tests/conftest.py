from __future__ import annotations

from collections.abc import Callable, Generator

import fakeredis
import pytest

from inlinegames.actions import ActionDispatcher
from inlinegames.config import EngineConfig
from inlinegames.games.base import GameExtension
from inlinegames.games.sandbox import SandboxGame
from inlinegames.i18n import LocaleCatalog
from inlinegames.session_store import RedisSessionStore
from inlinegames.transport import RecordingTransport


@pytest.fixture()
def r() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def store(r: fakeredis.FakeRedis) -> RedisSessionStore:
    return RedisSessionStore(r)


@pytest.fixture()
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture()
def catalog() -> LocaleCatalog:
    return LocaleCatalog({"pl": {"Quit": "Wyjdź"}, "de": {"Quit": "Verlassen"}})


@pytest.fixture()
def make_dispatcher(
    store: RedisSessionStore,
    transport: RecordingTransport,
    catalog: LocaleCatalog,
) -> Callable[..., ActionDispatcher]:
    def _make(*, game: GameExtension | None = None, config: EngineConfig | None = None) -> ActionDispatcher:
        return ActionDispatcher(
            store=store,
            transport=transport,
            game=game or SandboxGame(),
            catalog=catalog,
            config=config or EngineConfig(),
        )

    return _make


@pytest.fixture()
def dispatcher(make_dispatcher: Callable[..., ActionDispatcher]) -> ActionDispatcher:
    return make_dispatcher()


@pytest.fixture()
def client_and_redis():
    """FastAPI TestClient wired to fakeredis and a default engine config."""

    from fastapi.testclient import TestClient

    from inlinegames.api.deps import get_config, get_redis
    from inlinegames.main import app

    fake = fakeredis.FakeRedis(decode_responses=True)

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield fake

    app.dependency_overrides[get_redis] = _override
    app.dependency_overrides[get_config] = lambda: EngineConfig()
    with TestClient(app) as c:
        yield c, fake
    app.dependency_overrides.clear()
