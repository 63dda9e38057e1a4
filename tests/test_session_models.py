from __future__ import annotations

import pytest

from inlinegames.api.models import PlayerRef, SessionPhase, SessionPlayers, SessionSettings, SessionState
from inlinegames.errors import SessionInvariantError


ALICE = PlayerRef(id=1, display_name="Alice")
BOB = PlayerRef(id=2, display_name="Bob")


def test_json_round_trip_preserves_every_field() -> None:
    state = SessionState(
        game_code="sandbox",
        players=SessionPlayers(host=ALICE, guest=BOB),
        settings=SessionSettings(locale="pl"),
        game_state={"cells": ["host", None, "guest"], "turn": "host"},
    )

    restored = SessionState.model_validate_json(state.model_dump_json())

    assert restored == state
    assert restored.model_dump_json() == state.model_dump_json()


def test_phase_is_derived_from_players_and_game_state() -> None:
    s = SessionState.blank("sandbox")
    assert s.phase == SessionPhase.empty

    s.players.host = ALICE
    assert s.phase == SessionPhase.lobby

    s.players.guest = BOB
    assert s.phase == SessionPhase.pregame

    # An empty dict still counts as a started game.
    s.game_state = {}
    assert s.phase == SessionPhase.in_game


def test_player_identity_ignores_display_name() -> None:
    renamed = PlayerRef(id=ALICE.id, display_name="Alice (new name)")

    assert ALICE.is_same(renamed)
    assert not ALICE.is_same(BOB)
    assert not ALICE.is_same(None)


def test_slot_of() -> None:
    s = SessionState(game_code="sandbox", players=SessionPlayers(host=ALICE, guest=BOB))

    assert s.slot_of(1) == "host"
    assert s.slot_of(2) == "guest"
    assert s.slot_of(99) is None


def test_guest_without_host_violates_invariants() -> None:
    s = SessionState(game_code="sandbox", players=SessionPlayers(guest=BOB))

    with pytest.raises(SessionInvariantError):
        s.check_invariants()


def test_game_state_requires_both_players() -> None:
    s = SessionState(game_code="sandbox", players=SessionPlayers(host=ALICE), game_state={})

    with pytest.raises(SessionInvariantError):
        s.check_invariants()
