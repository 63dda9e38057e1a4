from __future__ import annotations

from inlinegames.games.base import GameExtension
from inlinegames.games.sandbox import SandboxGame


_GAMES: dict[str, GameExtension] = {}


def register_game(game: GameExtension) -> GameExtension:
    if game.code in _GAMES:
        raise ValueError(f"Game code already registered: {game.code}")
    _GAMES[game.code] = game
    return game


def get_game(code: str) -> GameExtension:
    game = _GAMES.get(code)
    if game is None:
        raise ValueError(f"Unknown game: {code}")
    return game


def list_games() -> list[GameExtension]:
    return sorted(_GAMES.values(), key=lambda g: g.code)


register_game(SandboxGame())
