from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any

from gameshelf.api.models import GameDescriptor, Session, SessionStatus
from gameshelf.core.errors import GameNotFound, GameShelfError, InvalidTransition, PersistenceError
from gameshelf.core.intents import Intent
from gameshelf.fsm import SessionFSM
from gameshelf.ledger import Ledger
from gameshelf.manifest.registry import ManifestStore
from gameshelf.save_slots import SaveSlotStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TransitionResult:
    """Outcome of one session command.

    - `state_changed`: whether the session or the user state was mutated.
    - `intents`: side effects for the presentation adapter, in order.
    - `error`: the non-fatal error, if any. Commands never raise for these.
    - `value`: command-specific result (favorite membership, loaded save state, ...).
    """

    session: Session
    state_changed: bool
    intents: tuple[Intent, ...] = ()
    error: GameShelfError | None = None
    value: Any = None


class SessionManager:
    """Owns the single play session and drives it through browsing/playing/paused.

    Invalid transitions are fail-soft: the call is logged, nothing changes, and the
    result carries an InvalidTransition. All commands are serialized on one lock.
    """

    def __init__(self, *, manifest: ManifestStore, ledger: Ledger, save_slots: SaveSlotStore) -> None:
        self._manifest = manifest
        self._ledger = ledger
        self._save_slots = save_slots
        self._session = Session()
        self._lock = threading.RLock()

    @property
    def session(self) -> Session:
        return self._session

    def use_manifest(self, manifest: ManifestStore) -> None:
        # The active game keeps its descriptor even if the new manifest drops it.
        with self._lock:
            self._manifest = manifest

    # ------------------------------------------------------------------
    # Play transitions
    # ------------------------------------------------------------------

    def launch(self, game_id: str) -> TransitionResult:
        with self._lock:
            fsm = SessionFSM(self._session)
            try:
                status = fsm.advance("launch")
            except InvalidTransition as e:
                return self._rejected(e)

            game = self._manifest.by_id(game_id)
            if game is None:
                err = GameNotFound(game_id)
                logger.warning("%s", err)
                return TransitionResult(
                    session=self._session,
                    state_changed=False,
                    intents=(Intent.notify(f"Game not found: {game_id}", "error"),),
                    error=err,
                )

            self._commit(status=status, game=game)
            self._ledger.record_play(game.id)
            intents = [
                Intent.open_viewport(game.entry_url),
                Intent.focus_viewport(),
                Intent.notify(f"Starting {game.title}..."),
            ]
            return self._changed(intents)

    def pause(self) -> TransitionResult:
        with self._lock:
            try:
                status = SessionFSM(self._session).advance("pause")
            except InvalidTransition as e:
                return self._rejected(e)

            self._commit(status=status, game=self._session.active_game)
            return self._changed([Intent.show_overlay(), Intent.notify("Game Paused")])

    def resume(self) -> TransitionResult:
        with self._lock:
            try:
                status = SessionFSM(self._session).advance("resume")
            except InvalidTransition as e:
                return self._rejected(e)

            self._commit(status=status, game=self._session.active_game)
            return self._changed([Intent.hide_overlay(), Intent.focus_viewport()])

    def toggle_pause(self) -> TransitionResult:
        with self._lock:
            if self._session.status == SessionStatus.playing:
                return self.pause()
            if self._session.status == SessionStatus.paused:
                return self.resume()
            return self._rejected(InvalidTransition("toggle_pause", self._session.status.value))

    def restart(self) -> TransitionResult:
        with self._lock:
            was_paused = self._session.status == SessionStatus.paused
            game = self._session.active_game
            try:
                status = SessionFSM(self._session).advance("restart")
            except InvalidTransition as e:
                return self._rejected(e)
            if game is None:
                return self._rejected(InvalidTransition("restart", self._session.status.value))

            self._commit(status=status, game=game)
            intents = [Intent.open_viewport(game.entry_url)]
            if was_paused:
                intents.append(Intent.hide_overlay())
            intents.extend([Intent.focus_viewport(), Intent.notify("Game Restarted")])
            return self._changed(intents)

    def quit(self) -> TransitionResult:
        with self._lock:
            was_fullscreen = self._session.is_fullscreen
            try:
                status = SessionFSM(self._session).advance("quit")
            except InvalidTransition as e:
                return self._rejected(e)

            self._commit(status=status, game=None, is_fullscreen=False)
            intents: list[Intent] = []
            if was_fullscreen:
                intents.append(Intent.exit_fullscreen())
            intents.extend([Intent.close_viewport(), Intent.show_menu(), Intent.notify("Game Quit")])
            return self._changed(intents)

    def toggle_fullscreen(self) -> TransitionResult:
        with self._lock:
            entering = not self._session.is_fullscreen
            self._commit(status=self._session.status, game=self._session.active_game, is_fullscreen=entering)
            return self._changed([Intent.enter_fullscreen() if entering else Intent.exit_fullscreen()])

    def shutdown(self) -> TransitionResult:
        """Leave any active game; used when the shelf is torn down."""

        with self._lock:
            if self._session.status == SessionStatus.browsing:
                return TransitionResult(session=self._session, state_changed=False)
            return self.quit()

    # ------------------------------------------------------------------
    # User state routed through the session
    # ------------------------------------------------------------------

    def toggle_favorite(self, game_id: str) -> TransitionResult:
        with self._lock:
            if self._manifest.by_id(game_id) is None:
                # Silent no-op for ids outside the manifest.
                return TransitionResult(session=self._session, state_changed=False, value=False)

            member = self._ledger.toggle_favorite(game_id)
            message = "Added to favorites" if member else "Removed from favorites"
            return self._changed([Intent.notify(message, "success")], value=member)

    def save_state(self, slot: str, value: Any) -> TransitionResult:
        with self._lock:
            game = self._session.active_game
            if game is None:
                return self._rejected(InvalidTransition("save_state", self._session.status.value))
            try:
                self._save_slots.save(game.id, slot, value)
            except PersistenceError as e:
                return self._persistence_failed(e)
            return self._changed([Intent.notify("Game state saved", "success")])

    def load_state(self, slot: str) -> TransitionResult:
        with self._lock:
            game = self._session.active_game
            if game is None:
                return self._rejected(InvalidTransition("load_state", self._session.status.value))
            try:
                value = self._save_slots.load(game.id, slot)
            except PersistenceError as e:
                return self._persistence_failed(e)

            if value is None:
                notice = Intent.notify(f"No saved state in slot {slot}", "warning")
            else:
                notice = Intent.notify("Game state loaded", "success")
            return TransitionResult(session=self._session, state_changed=False, intents=(notice,), value=value)

    def delete_state(self, slot: str) -> TransitionResult:
        with self._lock:
            game = self._session.active_game
            if game is None:
                return self._rejected(InvalidTransition("delete_state", self._session.status.value))
            try:
                removed = self._save_slots.remove(game.id, slot)
            except PersistenceError as e:
                return self._persistence_failed(e)
            return TransitionResult(session=self._session, state_changed=removed, value=removed)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _commit(self, *, status: SessionStatus, game: GameDescriptor | None, is_fullscreen: bool | None = None) -> None:
        # Session validates the status/game pairing on construction.
        self._session = Session(
            status=status,
            active_game=game,
            is_fullscreen=self._session.is_fullscreen if is_fullscreen is None else is_fullscreen,
        )
        logger.debug("Session -> %s (%s)", status.value, game.id if game else "-")

    def _changed(self, intents: list[Intent], *, value: Any = None) -> TransitionResult:
        error: GameShelfError | None = None
        for failure in self._ledger.drain_failures():
            intents.append(Intent.notify("Could not save your changes; they will last for this session only", "error"))
            error = error or failure
        return TransitionResult(
            session=self._session,
            state_changed=True,
            intents=tuple(intents),
            error=error,
            value=value,
        )

    def _rejected(self, err: InvalidTransition) -> TransitionResult:
        logger.warning("Ignoring %s", err)
        return TransitionResult(session=self._session, state_changed=False, error=err)

    def _persistence_failed(self, err: PersistenceError) -> TransitionResult:
        logger.warning("%s", err)
        return TransitionResult(
            session=self._session,
            state_changed=False,
            intents=(Intent.notify("Could not access saved games storage", "error"),),
            error=err,
        )
