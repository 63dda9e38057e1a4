from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from inlinegames.keyboards import Keyboard, keyboard_payload


@dataclass(frozen=True, slots=True)
class TransportResult:
    ok: bool
    description: str = ""
    error_code: int | None = None


class Transport(Protocol):
    """Chat client seen by the dispatcher: edit the inline message, answer the callback."""

    def edit_view(self, session_id: str, text: str, keyboard: Keyboard) -> TransportResult: ...

    def acknowledge(self, event_id: str | None, text: str, *, alert: bool) -> TransportResult: ...


@dataclass(slots=True)
class RecordedEdit:
    session_id: str
    text: str
    keyboard: list[list[dict[str, str]]]


@dataclass(slots=True)
class RecordedAck:
    event_id: str | None
    text: str
    alert: bool


@dataclass(slots=True)
class RecordingTransport:
    """In-memory transport that records calls instead of talking to a chat API.

    `edit_result` is returned from every edit, so callers can simulate API errors.
    """

    edit_result: TransportResult = field(default_factory=lambda: TransportResult(ok=True))
    edits: list[RecordedEdit] = field(default_factory=list)
    acks: list[RecordedAck] = field(default_factory=list)

    def edit_view(self, session_id: str, text: str, keyboard: Keyboard) -> TransportResult:
        self.edits.append(RecordedEdit(session_id=session_id, text=text, keyboard=keyboard_payload(keyboard)))
        return self.edit_result

    def acknowledge(self, event_id: str | None, text: str, *, alert: bool) -> TransportResult:
        self.acks.append(RecordedAck(event_id=event_id, text=text, alert=alert))
        return TransportResult(ok=True)

    @property
    def last_edit(self) -> RecordedEdit | None:
        return self.edits[-1] if self.edits else None

    @property
    def last_ack(self) -> RecordedAck | None:
        return self.acks[-1] if self.acks else None
