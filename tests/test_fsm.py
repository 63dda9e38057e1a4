from __future__ import annotations

import pytest
from statemachine.exceptions import TransitionNotAllowed

from inlinegames.api.models import PlayerRef, SessionPhase, SessionPlayers, SessionState
from inlinegames.errors import SessionInvariantError
from inlinegames.fsm import CrashRecoveryFSM, SessionFSM


ALICE = PlayerRef(id=1, display_name="Alice")
BOB = PlayerRef(id=2, display_name="Bob")


def test_fsm_starts_in_the_derived_phase() -> None:
    s = SessionState(game_code="sandbox", players=SessionPlayers(host=ALICE, guest=BOB))

    assert SessionFSM(s).phase == SessionPhase.pregame


def test_guest_cannot_join_an_empty_session() -> None:
    fsm = SessionFSM(SessionState.blank("sandbox"))

    with pytest.raises(TransitionNotAllowed):
        fsm.guest_joined()


def test_start_needs_pregame() -> None:
    s = SessionState(game_code="sandbox", players=SessionPlayers(host=ALICE))

    with pytest.raises(TransitionNotAllowed):
        SessionFSM(s).started()


def test_assert_matches_catches_mutations_that_disagree_with_events() -> None:
    s = SessionState(game_code="sandbox", players=SessionPlayers(host=ALICE))
    fsm = SessionFSM(s)

    # Claimed the guest joined, but nobody was seated.
    fsm.guest_joined()

    with pytest.raises(SessionInvariantError):
        fsm.assert_matches(s)


def test_assert_matches_accepts_consistent_mutation() -> None:
    s = SessionState(game_code="sandbox", players=SessionPlayers(host=ALICE))
    fsm = SessionFSM(s)

    s.players.guest = BOB
    fsm.guest_joined()

    fsm.assert_matches(s)


def test_crash_recovery_machine() -> None:
    fsm = CrashRecoveryFSM()
    assert fsm.current_state == fsm.running

    fsm.crash()
    assert fsm.current_state == fsm.crashed

    fsm.recover()
    assert fsm.current_state == fsm.empty

    with pytest.raises(TransitionNotAllowed):
        fsm.crash()
