from __future__ import annotations

import html
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from inlinegames.api.models import PlayerRef, SessionPhase
from inlinegames.games.base import BoardCell


Gettext = Callable[..., str]
Keyboard = list[list["InlineButton"]]

PAYLOAD_SEPARATOR = ";"


@dataclass(frozen=True, slots=True)
class InlineButton:
    label: str
    payload: str


@dataclass(frozen=True, slots=True)
class CallbackData:
    game_code: str | None
    action: str
    token: str | None = None


def encode_payload(game_code: str, action: str, token: str | None = None) -> str:
    parts = [game_code, action] if token is None else [game_code, action, token]
    return PAYLOAD_SEPARATOR.join(parts)


def parse_payload(data: str) -> CallbackData:
    """Split `code;action[;token]`. A payload without separators is a bare action name."""

    parts = data.split(PAYLOAD_SEPARATOR, 2)
    if len(parts) == 1:
        return CallbackData(game_code=None, action=parts[0])
    token = parts[2] if len(parts) == 3 else None
    return CallbackData(game_code=parts[0] or None, action=parts[1], token=token)


def _language_row(game_code: str, locale_count: int, current_locale_name: str) -> Keyboard:
    if locale_count <= 1:
        return []
    label = current_locale_name[:1].upper() + current_locale_name[1:]
    return [[InlineButton(label, encode_payload(game_code, "language"))]]


def _quit_kick_row(game_code: str, gettext: Gettext) -> list[InlineButton]:
    return [
        InlineButton(gettext("Quit"), encode_payload(game_code, "quit")),
        InlineButton(gettext("Kick"), encode_payload(game_code, "kick")),
    ]


def empty_keyboard(*, game_code: str, gettext: Gettext) -> Keyboard:
    return [[InlineButton(gettext("Create"), encode_payload(game_code, "new"))]]


def lobby_keyboard(*, game_code: str, gettext: Gettext, locale_count: int, current_locale_name: str) -> Keyboard:
    rows = _language_row(game_code, locale_count, current_locale_name)
    rows.append(
        [
            InlineButton(gettext("Quit"), encode_payload(game_code, "quit")),
            InlineButton(gettext("Join"), encode_payload(game_code, "join")),
        ]
    )
    return rows


def pregame_keyboard(*, game_code: str, gettext: Gettext, locale_count: int, current_locale_name: str) -> Keyboard:
    rows: Keyboard = [[InlineButton(gettext("Play"), encode_payload(game_code, "start"))]]
    rows.extend(_language_row(game_code, locale_count, current_locale_name))
    rows.append(_quit_kick_row(game_code, gettext))
    return rows


def game_keyboard(
    *,
    game_code: str,
    gettext: Gettext,
    board: Sequence[Sequence[BoardCell]],
    finished: bool,
    debug_mode: bool,
) -> Keyboard:
    rows: Keyboard = []
    for board_row in board:
        row = [InlineButton(cell.label, encode_payload(game_code, "move", cell.token)) for cell in board_row]
        if row:
            rows.append(row)

    if finished:
        rows.append([InlineButton(gettext("Play again!"), encode_payload(game_code, "start"))])

    rows.append(_quit_kick_row(game_code, gettext))

    if debug_mode:
        rows.append([InlineButton("DEBUG: Restart", encode_payload(game_code, "start"))])
    return rows


def render_keyboard(
    phase: SessionPhase,
    *,
    game_code: str,
    gettext: Gettext,
    locale_count: int,
    current_locale_name: str,
    debug_mode: bool,
    board: Sequence[Sequence[BoardCell]] = (),
    finished: bool = False,
) -> Keyboard:
    """Button rows for a phase. In debug mode every keyboard ends with a crash button."""

    if phase == SessionPhase.lobby:
        rows = lobby_keyboard(
            game_code=game_code, gettext=gettext, locale_count=locale_count, current_locale_name=current_locale_name
        )
    elif phase == SessionPhase.pregame:
        rows = pregame_keyboard(
            game_code=game_code, gettext=gettext, locale_count=locale_count, current_locale_name=current_locale_name
        )
    elif phase == SessionPhase.in_game:
        rows = game_keyboard(game_code=game_code, gettext=gettext, board=board, finished=finished, debug_mode=debug_mode)
    else:
        rows = empty_keyboard(game_code=game_code, gettext=gettext)

    if debug_mode:
        rows.append([InlineButton("DEBUG: CRASH", encode_payload(game_code, "crash"))])
    return rows


def keyboard_payload(rows: Keyboard) -> list[list[dict[str, str]]]:
    """Transport-shaped `inline_keyboard` value."""

    return [[{"text": b.label, "callback_data": b.payload} for b in row] for row in rows]


# View texts (HTML parse mode).


def mention(player: PlayerRef) -> str:
    return f'<a href="tg://user?id={player.id}">{html.escape(player.display_name)}</a>'


def with_title(title: str, text: str) -> str:
    return f"<b>{html.escape(title)}</b>\n\n{text}"


def empty_text(gettext: Gettext) -> str:
    return "<i>" + gettext("This game session is empty.") + "</i>"


def crashed_text(gettext: Gettext, session_id: str) -> str:
    return "<i>" + gettext("This game session has crashed.") + "</i>\n(ID: " + html.escape(session_id) + ")"


def lobby_text(gettext: Gettext, host: PlayerRef) -> str:
    return (
        gettext("{PLAYER_HOST} is waiting for opponent to join...", PLAYER_HOST=mention(host))
        + "\n"
        + gettext("Press {BUTTON} button to join.", BUTTON="<b>'" + gettext("Join") + "'</b>")
    )


def pregame_text(gettext: Gettext, host: PlayerRef, guest: PlayerRef) -> str:
    return (
        gettext("{PLAYER_GUEST} joined...", PLAYER_GUEST=mention(guest))
        + "\n"
        + gettext("Waiting for {PLAYER} to start...", PLAYER=mention(host))
        + "\n"
        + gettext("Press {BUTTON} button to start.", BUTTON="<b>'" + gettext("Play") + "'</b>")
    )
