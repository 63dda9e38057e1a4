from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from inlinegames.errors import RenderOutcome, SessionInvariantError


class PlayerRef(BaseModel):
    """Identity snapshot captured when the player joined.

    Only `id` identifies a player; the display name is cosmetic and never refreshed.
    """

    id: int
    display_name: str

    def is_same(self, other: PlayerRef | None) -> bool:
        return other is not None and other.id == self.id


class SessionPlayers(BaseModel):
    host: PlayerRef | None = None
    guest: PlayerRef | None = None


class SessionSettings(BaseModel):
    # None => default locale of the catalog.
    locale: str | None = None


class SessionPhase(StrEnum):
    empty = "empty"
    lobby = "lobby"
    pregame = "pregame"
    in_game = "in_game"


class SessionState(BaseModel):
    game_code: str
    players: SessionPlayers = Field(default_factory=SessionPlayers)
    settings: SessionSettings = Field(default_factory=SessionSettings)

    # Owned by the game extension. None => not started; {} => started, nothing on the board yet.
    game_state: dict[str, Any] | None = None

    @classmethod
    def blank(cls, game_code: str) -> SessionState:
        return cls(game_code=game_code)

    @property
    def phase(self) -> SessionPhase:
        if self.players.host is None:
            return SessionPhase.empty
        if self.players.guest is None:
            return SessionPhase.lobby
        if self.game_state is None:
            return SessionPhase.pregame
        return SessionPhase.in_game

    def slot_of(self, user_id: int) -> str | None:
        """Return "host" or "guest" for a seated user, None otherwise."""

        if self.players.host is not None and self.players.host.id == user_id:
            return "host"
        if self.players.guest is not None and self.players.guest.id == user_id:
            return "guest"
        return None

    def check_invariants(self) -> None:
        if self.players.guest is not None and self.players.host is None:
            raise SessionInvariantError("guest is set but host is empty")
        if self.game_state is not None and (self.players.host is None or self.players.guest is None):
            raise SessionInvariantError("game state is set but the session is missing a player")


class ActionRequest(BaseModel):
    # Raw callback payload ("<game_code>;<action>[;<token>]") or a bare action name.
    data: str = Field(..., min_length=1, max_length=64)
    user: PlayerRef
    event_id: str | None = None


class ButtonModel(BaseModel):
    text: str
    callback_data: str


class RecordedEdit(BaseModel):
    text: str
    inline_keyboard: list[list[ButtonModel]]


class RecordedAnswer(BaseModel):
    text: str
    show_alert: bool


class ActionResponse(BaseModel):
    outcome: RenderOutcome
    session: SessionState | None = None
    edit: RecordedEdit | None = None
    answer: RecordedAnswer | None = None


class SessionListResponse(BaseModel):
    session_ids: list[str]


class GameInfo(BaseModel):
    code: str
    title: str


class GameListResponse(BaseModel):
    games: list[GameInfo]
