from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from inlinegames.api.models import SessionPhase, SessionState
from inlinegames.core.context import RenderInstruction
from inlinegames.errors import RenderOutcome, StorageError
from inlinegames.fsm import CrashRecoveryFSM
from inlinegames.games.base import GameExtension
from inlinegames.i18n import LocaleCatalog, Translator
from inlinegames.keyboards import crashed_text, render_keyboard, with_title
from inlinegames.session_store import SessionStore
from inlinegames.transport import Transport


logger = logging.getLogger(__name__)
crash_logger = logging.getLogger("inlinegames.crash")


def _format_value(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, SessionState):
        return value.model_dump_json()
    if isinstance(value, BaseException):
        return f"{type(value).__name__}: {value}"
    return str(value)


def crash_report(*, session_id: str, fields: Mapping[str, object]) -> str:
    """Plain-text crash dump, one `name: value` line per field. Locale independent."""

    lines = [f"CRASH (ID: {session_id}):"]
    lines.extend(f"{name}: {_format_value(value)}" for name, value in fields.items())
    return "\n".join(lines)


@dataclass(slots=True)
class CrashHandler:
    store: SessionStore
    transport: Transport
    game: GameExtension
    catalog: LocaleCatalog
    debug_mode: bool = False

    def recover(
        self,
        *,
        session_id: str,
        event_id: str | None,
        translator: Translator,
        before: SessionState | str | None,
        after: SessionState | None,
        callback_data: str,
        result: object,
    ) -> RenderInstruction:
        fsm = CrashRecoveryFSM()
        fsm.crash()

        report = crash_report(
            session_id=session_id,
            fields={
                "Game": self.game.title,
                "Game data (before)": before,
                "Game data (after)": after,
                "Callback data": callback_data,
                "Result": result,
            },
        )
        crash_logger.error(report)

        blank = SessionState.blank(self.game.code)
        text: str | None = None
        keyboard = None
        try:
            self.store.save(session_id, blank)
        except StorageError:
            logger.exception("Could not reset crashed session %s", session_id)
        else:
            fsm.recover()
            text = with_title(self.game.title, crashed_text(translator, session_id))
            keyboard = render_keyboard(
                SessionPhase.empty,
                game_code=self.game.code,
                gettext=translator,
                locale_count=len(self.catalog.list_locales()),
                current_locale_name=self.catalog.display_name(translator.locale),
                debug_mode=self.debug_mode,
            )
            try:
                self.transport.edit_view(session_id, text, keyboard)
            except Exception:
                logger.exception("Could not show crash notice for session %s", session_id)

        ack_text = translator("Critical error!")
        try:
            self.transport.acknowledge(event_id, ack_text, alert=True)
        except Exception:
            logger.exception("Could not acknowledge crashed action on session %s", session_id)

        return RenderInstruction(
            outcome=RenderOutcome.crashed,
            session_id=session_id,
            session=blank if fsm.current_state == fsm.empty else None,
            text=text,
            keyboard=keyboard,
            ack_text=ack_text,
            ack_alert=True,
            crash_report=report,
        )
