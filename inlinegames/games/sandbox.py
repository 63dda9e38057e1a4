from __future__ import annotations

from collections.abc import Callable

from inlinegames.api.models import SessionPlayers
from inlinegames.games.base import (
    BoardCell,
    GameData,
    GameExtension,
    MoveApplied,
    MoveRejected,
    MoveResult,
    PlayerSlot,
)


class SandboxGame(GameExtension):
    """Smallest useful game: players take turns claiming cells in a single row.

    Exists to exercise the extension contract end to end (board rendering, move
    tokens, rejections, finished state) without any real rules.
    """

    code = "sandbox"
    title = "Sandbox"

    symbols = {"host": "X", "guest": "O", None: "·"}

    def __init__(self, width: int = 3) -> None:
        if width < 1:
            raise ValueError("width must be positive")
        self.width = width

    def initial_state(self, players: SessionPlayers) -> GameData:
        return {"cells": [None] * self.width, "turn": "host"}

    def apply_move(self, state: GameData, actor: PlayerSlot, token: str | None) -> MoveResult:
        cells = list(state.get("cells") or [None] * self.width)
        if self.is_finished(state):
            return MoveRejected("This game has ended!")
        if state.get("turn", "host") != actor:
            return MoveRejected("It's not your turn!")
        # Only plain ASCII digits; str.isdigit() also accepts "²" which int() refuses.
        if token is None or not (token.isascii() and token.isdecimal()):
            return MoveRejected("Invalid move!")

        idx = int(token)
        if idx >= len(cells) or cells[idx] is not None:
            return MoveRejected("Invalid move!")

        cells[idx] = actor
        return MoveApplied({"cells": cells, "turn": "guest" if actor == "host" else "host"})

    def render_board(self, state: GameData) -> list[list[BoardCell]]:
        cells = state.get("cells") or [None] * self.width
        return [[BoardCell(label=self.symbols.get(c, "?"), token=str(i)) for i, c in enumerate(cells)]]

    def is_finished(self, state: GameData) -> bool:
        cells = state.get("cells")
        return bool(cells) and all(c is not None for c in cells)

    def status_text(self, state: GameData, players: SessionPlayers, gettext: Callable[..., str]) -> str:
        if self.is_finished(state):
            return gettext("Game over!")
        turn = players.host if state.get("turn", "host") == "host" else players.guest
        name = turn.display_name if turn is not None else "?"
        return gettext("Current turn: {PLAYER}", PLAYER=name)
