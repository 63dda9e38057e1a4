from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, ClassVar, Literal

from inlinegames.api.models import SessionPlayers


PlayerSlot = Literal["host", "guest"]
GameData = dict[str, Any]


@dataclass(frozen=True, slots=True)
class BoardCell:
    """One board button. `token` is appended to the move payload."""

    label: str
    token: str


@dataclass(frozen=True, slots=True)
class MoveApplied:
    state: GameData


@dataclass(frozen=True, slots=True)
class MoveRejected:
    # msgid, translated by the dispatcher
    message: str


MoveResult = MoveApplied | MoveRejected


class GameExtension(ABC):
    """Capability interface a concrete game plugs into the dispatcher.

    The dispatcher never looks inside the game data; it only forwards it here and
    stores whatever comes back.
    """

    code: ClassVar[str]
    title: ClassVar[str]

    def initial_state(self, players: SessionPlayers) -> GameData:
        return {}

    @abstractmethod
    def apply_move(self, state: GameData, actor: PlayerSlot, token: str | None) -> MoveResult:
        raise NotImplementedError

    @abstractmethod
    def render_board(self, state: GameData) -> list[list[BoardCell]]:
        raise NotImplementedError

    def is_finished(self, state: GameData) -> bool:
        return False

    def status_text(self, state: GameData, players: SessionPlayers, gettext: Callable[..., str]) -> str:
        return ""
