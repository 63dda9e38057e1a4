from __future__ import annotations

from statemachine import State, StateMachine

from inlinegames.api.models import SessionPhase, SessionState
from inlinegames.errors import SessionInvariantError


class SessionFSM(StateMachine):
    """Phase guard for one action.

    Phases are derived from the session record, never stored. Handlers fire the
    event matching their mutation; an illegal transition raises
    `TransitionNotAllowed` and the action is treated as a crash.
    """

    empty = State(SessionPhase.empty.value, value=SessionPhase.empty.value, initial=True)
    lobby = State(SessionPhase.lobby.value, value=SessionPhase.lobby.value)
    pregame = State(SessionPhase.pregame.value, value=SessionPhase.pregame.value)
    in_game = State(SessionPhase.in_game.value, value=SessionPhase.in_game.value)

    created = empty.to(lobby) | lobby.to.itself() | pregame.to(lobby) | in_game.to(lobby)
    host_joined = empty.to(lobby)
    guest_joined = lobby.to(pregame)
    host_migrated = pregame.to(lobby) | in_game.to(lobby)
    host_left = lobby.to(empty)
    guest_left = pregame.to(lobby) | in_game.to(lobby)
    kicked = lobby.to.itself() | pregame.to(lobby) | in_game.to(lobby)
    started = pregame.to(in_game) | in_game.to.itself()
    moved = in_game.to.itself()

    def __init__(self, session: SessionState):
        self.session = session
        super().__init__(start_value=session.phase.value)

    @property
    def phase(self) -> SessionPhase:
        return SessionPhase(str(self.current_state.value))

    def assert_matches(self, session: SessionState) -> None:
        """Check the mutated record landed in the phase the fired events promised."""

        session.check_invariants()
        if session.phase != self.phase:
            raise SessionInvariantError(
                f"Session is in phase '{session.phase.value}' but transitions led to '{self.phase.value}'"
            )


class CrashRecoveryFSM(StateMachine):
    """running -> crashed -> empty.

    `empty` is reached only once the blank session has been persisted; a failed
    save leaves the machine in `crashed`.
    """

    running = State("Running", value="running", initial=True)
    crashed = State("Crashed", value="crashed")
    empty = State("Empty", value="empty", final=True)

    crash = running.to(crashed)
    recover = crashed.to(empty)
