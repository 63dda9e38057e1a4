from __future__ import annotations

import logging
import re
from collections.abc import Callable
from enum import StrEnum

from inlinegames.api.models import PlayerRef, SessionPhase, SessionState
from inlinegames.config import EngineConfig
from inlinegames.core.context import ActionContext, Answer, Edited, RenderInstruction
from inlinegames.crash import CrashHandler
from inlinegames.errors import RenderOutcome, SessionDecodeError, StorageError
from inlinegames.fsm import SessionFSM
from inlinegames.games.base import GameExtension, MoveApplied, MoveRejected
from inlinegames.i18n import LocaleCatalog, Translator
from inlinegames.keyboards import (
    CallbackData,
    Keyboard,
    empty_text,
    lobby_text,
    mention,
    parse_payload,
    pregame_text,
    render_keyboard,
    with_title,
)
from inlinegames.session_store import SessionStore
from inlinegames.transport import Transport, TransportResult


logger = logging.getLogger(__name__)


class Action(StrEnum):
    new = "new"
    join = "join"
    quit = "quit"
    kick = "kick"
    start = "start"
    move = "move"
    language = "language"
    crash = "crash"


# Actions allowed to write to a session that does not exist yet.
CREATING_ACTIONS = frozenset({Action.new, Action.join})

_NON_LETTERS = re.compile(r"[^a-zA-Z]+")


def normalize_action(name: str) -> str:
    return _NON_LETTERS.sub("", name).lower()


def parse_action(name: str) -> Action | None:
    try:
        return Action(normalize_action(name))
    except ValueError:
        return None


HandlerResult = object
Handler = Callable[[ActionContext], HandlerResult]


class ActionDispatcher:
    """Loads a session, runs one action against it, persists and re-renders.

    Every call answers the callback exactly once, whatever happens. Handler
    results other than `Edited`/`Answer` and unexpected exceptions go through
    crash recovery; storage errors become a "try again" notice.
    """

    def __init__(
        self,
        *,
        store: SessionStore,
        transport: Transport,
        game: GameExtension,
        catalog: LocaleCatalog,
        config: EngineConfig | None = None,
    ) -> None:
        self.store = store
        self.transport = transport
        self.game = game
        self.catalog = catalog
        self.config = config or EngineConfig()
        self.crash_handler = CrashHandler(
            store=store, transport=transport, game=game, catalog=catalog, debug_mode=self.config.debug_mode
        )
        self._handlers: dict[Action, Handler] = {
            Action.new: self._new,
            Action.join: self._join,
            Action.quit: self._quit,
            Action.kick: self._kick,
            Action.start: self._start,
            Action.move: self._move,
            Action.language: self._language,
            Action.crash: self._crash,
        }

    # Entry point

    def handle(self, session_id: str, data: str, actor: PlayerRef, *, event_id: str | None = None) -> RenderInstruction:
        callback = parse_payload(data)
        action = parse_action(callback.action)
        default_t = Translator(self.catalog, self.catalog.default_locale())

        if action is None or (callback.game_code is not None and callback.game_code != self.game.code):
            logger.debug("Ignoring callback %r on session %s", data, session_id)
            return self._answer(session_id, event_id, None, Answer(outcome=RenderOutcome.ignored))

        try:
            with self.store.lock(session_id):
                return self._dispatch(session_id, event_id, actor, action, callback, data, default_t)
        except StorageError:
            logger.warning("Storage failure while handling %r on session %s", data, session_id, exc_info=True)
            return self._answer(
                session_id,
                event_id,
                None,
                Answer(
                    text=default_t("Database error!") + "\n\n" + default_t("Try again in a few seconds."),
                    alert=True,
                    outcome=RenderOutcome.storage_failure,
                ),
            )

    def _dispatch(
        self,
        session_id: str,
        event_id: str | None,
        actor: PlayerRef,
        action: Action,
        callback: CallbackData,
        data: str,
        default_t: Translator,
    ) -> RenderInstruction:
        try:
            session = self.store.load(session_id)
        except SessionDecodeError as e:
            return self.crash_handler.recover(
                session_id=session_id,
                event_id=event_id,
                translator=default_t,
                before=e.raw,
                after=None,
                callback_data=data,
                result=e,
            )

        missing = session is None
        if session is None:
            session = SessionState.blank(self.game.code)
        before = session.model_copy(deep=True)

        ctx = ActionContext(
            session_id=session_id,
            event_id=event_id,
            actor=actor,
            callback=callback,
            raw_data=data,
            session=session,
            translator=Translator(self.catalog, self._resolve_locale(session)),
        )
        logger.debug("Executing %s on session %s (locale %s)", action.value, session_id, ctx.locale)

        try:
            if missing and action not in CREATING_ACTIONS:
                result = self._handle_empty_data(ctx)
            else:
                result = self._handlers[action](ctx)
        except StorageError:
            raise
        except Exception as e:
            logger.debug("Handler %s raised on session %s", action.value, session_id, exc_info=True)
            return self._crash_from(ctx, before, e)

        if isinstance(result, Answer):
            return self._answer(session_id, event_id, ctx, result)

        if isinstance(result, Edited) and isinstance(result.result, TransportResult):
            response = result.result
            if response.ok or self._is_allowed_error(response.description):
                return self._answer(session_id, event_id, ctx, Answer(outcome=RenderOutcome.edited))

            logger.error(
                "Transport error on session %s: %s: %s", session_id, response.error_code, response.description
            )
            t = ctx.translator
            return self._answer(
                session_id,
                event_id,
                ctx,
                Answer(
                    text=t("Telegram API error!") + "\n\n" + t("Try again in a few seconds."),
                    alert=True,
                    outcome=RenderOutcome.transport_error,
                ),
            )

        logger.debug("Handler %s returned an unexpected value on session %s", action.value, session_id)
        return self._crash_from(ctx, before, result)

    # Plumbing

    def _resolve_locale(self, session: SessionState) -> str:
        locale = session.settings.locale
        if locale and locale in self.catalog.list_locales():
            return locale
        return self.catalog.default_locale()

    def _is_allowed_error(self, description: str) -> bool:
        text = description.casefold()
        return any(allowed.casefold() in text for allowed in self.config.allowed_transport_errors)

    def _answer(
        self, session_id: str, event_id: str | None, ctx: ActionContext | None, answer: Answer
    ) -> RenderInstruction:
        try:
            self.transport.acknowledge(event_id, answer.text, alert=answer.alert)
        except Exception:
            logger.exception("Failed to acknowledge callback on session %s", session_id)
        return RenderInstruction(
            outcome=answer.outcome,
            session_id=session_id,
            session=ctx.session if ctx is not None else None,
            text=ctx.view_text if ctx is not None else None,
            keyboard=ctx.view_keyboard if ctx is not None else None,
            ack_text=answer.text,
            ack_alert=answer.alert,
        )

    def _crash_from(self, ctx: ActionContext, before: SessionState, result: object) -> RenderInstruction:
        return self.crash_handler.recover(
            session_id=ctx.session_id,
            event_id=ctx.event_id,
            translator=ctx.translator,
            before=before,
            after=ctx.session,
            callback_data=ctx.raw_data,
            result=result,
        )

    def _commit(self, ctx: ActionContext, fsm: SessionFSM) -> None:
        fsm.assert_matches(ctx.session)
        # Housekeeping finds sessions by game code, so it is stamped on every save.
        ctx.session.game_code = self.game.code
        logger.debug("Saving session %s (phase %s)", ctx.session_id, ctx.session.phase.value)
        self.store.save(ctx.session_id, ctx.session)

    def _edit(self, ctx: ActionContext, text: str, keyboard: Keyboard) -> Edited:
        full_text = with_title(self.game.title, text)
        ctx.view_text = full_text
        ctx.view_keyboard = keyboard
        try:
            response = self.transport.edit_view(ctx.session_id, full_text, keyboard)
        except Exception as e:
            # State is already saved; report as a transport error rather than a crash.
            logger.exception("Editing the view of session %s failed", ctx.session_id)
            response = TransportResult(ok=False, description=f"{type(e).__name__}: {e}")
        return Edited(response)

    def _render_phase(self, ctx: ActionContext, lead: str | None = None) -> Edited:
        """Re-render whatever the session currently looks like."""

        session = ctx.session
        t = ctx.translator
        phase = session.phase
        board = []
        finished = False

        if phase == SessionPhase.empty:
            body = empty_text(t)
        elif phase == SessionPhase.lobby:
            body = lobby_text(t, session.players.host)
        elif phase == SessionPhase.pregame:
            body = pregame_text(t, session.players.host, session.players.guest)
        else:
            state = session.game_state or {}
            board = self.game.render_board(state)
            finished = self.game.is_finished(state)
            body = "\n".join(
                part
                for part in (
                    t(
                        "{PLAYER_HOST} vs. {PLAYER_GUEST}",
                        PLAYER_HOST=mention(session.players.host),
                        PLAYER_GUEST=mention(session.players.guest),
                    ),
                    self.game.status_text(state, session.players, t),
                )
                if part
            )

        keyboard = render_keyboard(
            phase,
            game_code=self.game.code,
            gettext=t,
            locale_count=len(self.catalog.list_locales()),
            current_locale_name=self.catalog.display_name(ctx.locale),
            debug_mode=self.config.debug_mode,
            board=board,
            finished=finished,
        )
        text = body if lead is None else f"{lead}\n{body}"
        return self._edit(ctx, text, keyboard)

    def _reject(self, ctx: ActionContext, msgid: str, *, alert: bool = True) -> Answer:
        logger.debug("Rejected on session %s: %s", ctx.session_id, msgid)
        return Answer(text=ctx.translator(msgid), alert=alert, outcome=RenderOutcome.rejected)

    def _handle_empty_data(self, ctx: ActionContext) -> Answer:
        logger.debug("No stored data for session %s", ctx.session_id)
        self._render_phase(ctx)
        return Answer(text=ctx.translator("Error!"), alert=True, outcome=RenderOutcome.acknowledged)

    # Actions

    def _new(self, ctx: ActionContext) -> HandlerResult:
        session = ctx.session
        if session.players.host is not None and not session.players.host.is_same(ctx.actor):
            return self._reject(ctx, "This game is already created!")

        fsm = SessionFSM(session)
        session.players.host = ctx.actor
        session.players.guest = None
        session.game_state = None
        fsm.created()

        self._commit(ctx, fsm)
        return self._render_phase(ctx)

    def _join(self, ctx: ActionContext) -> HandlerResult:
        session = ctx.session
        fsm = SessionFSM(session)

        if session.players.host is None:
            logger.debug("Host: %s", ctx.actor.id)
            session.players.host = ctx.actor
            fsm.host_joined()
            self._commit(ctx, fsm)
            return self._render_phase(ctx)

        if session.players.guest is None:
            if not session.players.host.is_same(ctx.actor) or self.config.is_admin(ctx.actor.id):
                logger.debug("Guest: %s", ctx.actor.id)
                session.players.guest = ctx.actor
                fsm.guest_joined()
                self._commit(ctx, fsm)
                return self._render_phase(ctx)
            return self._reject(ctx, "You cannot play with yourself!")

        return self._reject(ctx, "This game is full!", alert=False)

    def _quit(self, ctx: ActionContext) -> HandlerResult:
        session = ctx.session
        slot = ctx.actor_slot
        if slot is None:
            return self._reject(ctx, "You're not in this game!")

        t = ctx.translator
        fsm = SessionFSM(session)
        quit_line = t("{PLAYER} quit...", PLAYER=mention(ctx.actor))

        if slot == "host" and session.players.guest is not None:
            logger.debug("Quit, host migration: %s => %s", ctx.actor.id, session.players.guest.id)
            session.players.host = session.players.guest
            session.players.guest = None
            session.game_state = None
            fsm.host_migrated()
            self._commit(ctx, fsm)
            return self._render_phase(ctx, lead=quit_line)

        if slot == "host":
            logger.debug("Quit (host): %s", ctx.actor.id)
            session.players.host = None
            session.game_state = None
            fsm.host_left()
            self._commit(ctx, fsm)
            return self._render_phase(ctx)

        logger.debug("Quit (guest): %s", ctx.actor.id)
        session.players.guest = None
        session.game_state = None
        fsm.guest_left()
        self._commit(ctx, fsm)
        return self._render_phase(ctx, lead=quit_line)

    def _kick(self, ctx: ActionContext) -> HandlerResult:
        session = ctx.session
        if ctx.actor_slot != "host":
            return self._reject(ctx, "You're not the host!")

        kicked = session.players.guest
        fsm = SessionFSM(session)
        session.players.guest = None
        session.game_state = None
        fsm.kicked()
        self._commit(ctx, fsm)

        lead = None
        if kicked is not None:
            logger.debug("%s kicked %s", ctx.actor.id, kicked.id)
            lead = ctx.translator("{PLAYER_GUEST} was kicked...", PLAYER_GUEST=mention(kicked))
        return self._render_phase(ctx, lead=lead)

    def _start(self, ctx: ActionContext) -> HandlerResult:
        session = ctx.session
        if session.players.host is None:
            self._render_phase(ctx)
            return Answer()

        slot = ctx.actor_slot
        if slot is None:
            return self._reject(ctx, "You're not in this game!")
        if slot != "host":
            return self._reject(ctx, "You're not the host!")

        if session.players.guest is None:
            logger.debug("Start requested on session %s without a guest", ctx.session_id)
            self._render_phase(ctx)
            return Answer()

        fsm = SessionFSM(session)
        session.game_state = self.game.initial_state(session.players)
        fsm.started()
        self._commit(ctx, fsm)
        return self._render_phase(ctx)

    def _move(self, ctx: ActionContext) -> HandlerResult:
        session = ctx.session
        slot = ctx.actor_slot
        if slot is None:
            return self._reject(ctx, "You're not in this game!")
        if session.game_state is None:
            return self._handle_empty_data(ctx)

        result = self.game.apply_move(dict(session.game_state), slot, ctx.callback.token)
        if isinstance(result, MoveRejected):
            return self._reject(ctx, result.message)
        if not isinstance(result, MoveApplied):
            return result

        fsm = SessionFSM(session)
        session.game_state = result.state
        fsm.moved()
        self._commit(ctx, fsm)
        return self._render_phase(ctx)

    def _language(self, ctx: ActionContext) -> HandlerResult:
        session = ctx.session
        selected = self.catalog.next_locale(ctx.locale)

        session.settings.locale = selected
        self._commit(ctx, SessionFSM(session))
        logger.debug("Set language: %s", selected)

        ctx.translator = Translator(self.catalog, selected)
        return self._render_phase(ctx)

    def _crash(self, ctx: ActionContext) -> HandlerResult:
        if not self.config.debug_mode:
            return Answer()
        return "(forced crash)"
