from __future__ import annotations

from inlinegames.actions import ActionDispatcher
from inlinegames.api.models import PlayerRef, SessionPlayers, SessionSettings, SessionState
from inlinegames.errors import RenderOutcome
from inlinegames.i18n import LocaleCatalog
from inlinegames.session_store import RedisSessionStore
from inlinegames.transport import RecordingTransport


ALICE = PlayerRef(id=1, display_name="Alice")

SID = "inline-msg-3"


def _seed(store: RedisSessionStore, locale: str | None) -> None:
    store.save(
        SID,
        SessionState(game_code="sandbox", players=SessionPlayers(host=ALICE), settings=SessionSettings(locale=locale)),
    )


def _locale(store: RedisSessionStore) -> str | None:
    s = store.load(SID)
    assert s is not None
    return s.settings.locale


def test_catalog_order_starts_with_default(catalog: LocaleCatalog) -> None:
    assert catalog.list_locales() == ["en", "pl", "de"]


def test_language_cycles_and_wraps(dispatcher: ActionDispatcher, store: RedisSessionStore) -> None:
    _seed(store, "pl")

    assert dispatcher.handle(SID, "sandbox;language", ALICE).outcome == RenderOutcome.edited
    assert _locale(store) == "de"

    dispatcher.handle(SID, "sandbox;language", ALICE)
    assert _locale(store) == "en"

    dispatcher.handle(SID, "sandbox;language", ALICE)
    assert _locale(store) == "pl"


def test_unknown_stored_locale_falls_back_to_default(dispatcher: ActionDispatcher, store: RedisSessionStore) -> None:
    _seed(store, "xx")

    dispatcher.handle(SID, "sandbox;language", ALICE)

    # "xx" resolves to the default "en", so the next one is "pl".
    assert _locale(store) == "pl"


def test_view_is_rendered_in_the_new_locale(
    dispatcher: ActionDispatcher, store: RedisSessionStore, transport: RecordingTransport
) -> None:
    _seed(store, None)

    dispatcher.handle(SID, "sandbox;language", ALICE)

    rows = transport.last_edit.keyboard
    assert rows[0] == [{"text": "Polski", "callback_data": "sandbox;language"}]
    assert rows[1][0] == {"text": "Wyjdź", "callback_data": "sandbox;quit"}


def test_language_is_allowed_for_anyone(dispatcher: ActionDispatcher, store: RedisSessionStore) -> None:
    _seed(store, None)

    result = dispatcher.handle(SID, "sandbox;language", PlayerRef(id=42, display_name="Lurker"))

    assert result.outcome == RenderOutcome.edited
    assert _locale(store) == "pl"
