from __future__ import annotations

from dataclasses import dataclass

from inlinegames.api.models import PlayerRef, SessionState
from inlinegames.errors import RenderOutcome
from inlinegames.i18n import Translator
from inlinegames.keyboards import CallbackData, Keyboard
from inlinegames.transport import TransportResult


@dataclass(slots=True)
class ActionContext:
    """Everything one action needs; built per callback, discarded afterwards."""

    session_id: str
    event_id: str | None
    actor: PlayerRef
    callback: CallbackData
    raw_data: str
    session: SessionState
    translator: Translator
    view_text: str | None = None
    view_keyboard: Keyboard | None = None

    @property
    def locale(self) -> str:
        return self.translator.locale

    @property
    def actor_slot(self) -> str | None:
        return self.session.slot_of(self.actor.id)


@dataclass(frozen=True, slots=True)
class Edited:
    """Handler outcome: the view was edited, the dispatcher acknowledges."""

    result: TransportResult


@dataclass(frozen=True, slots=True)
class Answer:
    """Handler outcome: no (further) view change, just answer the callback."""

    text: str = ""
    alert: bool = False
    outcome: RenderOutcome = RenderOutcome.acknowledged


@dataclass(frozen=True, slots=True)
class RenderInstruction:
    """What happened to one action and what the viewer was sent."""

    outcome: RenderOutcome
    session_id: str
    session: SessionState | None = None
    text: str | None = None
    keyboard: Keyboard | None = None
    ack_text: str = ""
    ack_alert: bool = False
    crash_report: str | None = None
