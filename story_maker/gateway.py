"""
Mutation Gateway, the single entry point for state transitions.

Every change to the document goes through MutationGateway.dispatch():

  1. parse the intent (dict payloads are validated into intent models)
  2. take the writer lock and remember the pre-intent state
  3. route the intent to the store, sequencer or history
  4. on any exception restore the remembered state and re-raise, so readers
     never observe a half-applied intent
  5. publish a SessionView to every subscribed observer

The lock is only held for the synchronous apply step.  Long-running work
(image generation, uploads) happens outside and re-enters as an intent.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from pydantic import BaseModel

from story_maker.document.history import DocumentHistory
from story_maker.document.models import DocumentState
from story_maker.document.sequencer import ShotSequencer
from story_maker.document.store import EntityStore
from story_maker.errors import NotFoundError
from story_maker.intents import UPDATE_KINDS, parse_intent

logger = logging.getLogger(__name__)


class SessionView(BaseModel):
    """What observers receive after each dispatch: the full current state."""

    document: DocumentState
    snapshot_index: int
    snapshot_count: int


@dataclass
class DispatchResult:
    """Outcome of one dispatch.

    ``applied`` is False when the intent was accepted but changed nothing
    (update or delete of a missing id, out-of-range snapshot navigation).
    """

    kind: str
    applied: bool
    view: SessionView

    @property
    def state(self) -> DocumentState:
        return self.view.document


Observer = Callable[[SessionView], None]


class MutationGateway:
    """Routes intents to the document components under a single-writer lock."""

    def __init__(self, store: Optional[EntityStore] = None) -> None:
        self._store = store if store is not None else EntityStore()
        self._sequencer = ShotSequencer(self._store)
        self._history = DocumentHistory(self._store)
        self._lock = threading.RLock()
        self._observers: List[Observer] = []

    # ── Read side ─────────────────────────────────────────────────────────

    @property
    def store(self) -> EntityStore:
        return self._store

    @property
    def sequencer(self) -> ShotSequencer:
        return self._sequencer

    @property
    def history(self) -> DocumentHistory:
        return self._history

    def view(self) -> SessionView:
        with self._lock:
            return SessionView(
                document=self._store.copy_state(),
                snapshot_index=self._history.cursor,
                snapshot_count=self._history.snapshot_count,
            )

    # ── Observers ─────────────────────────────────────────────────────────

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register *observer*; the returned callable unsubscribes it."""
        with self._lock:
            self._observers.append(observer)

        def _unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return _unsubscribe

    def _publish(self, view: SessionView) -> None:
        for observer in list(self._observers):
            try:
                observer(view)
            except Exception:
                # state is already committed; remaining observers still run
                logger.exception("observer %r failed", observer)

    # ── Dispatch ──────────────────────────────────────────────────────────

    def dispatch(self, intent: Any, *, strict: bool = False) -> DispatchResult:
        """Validate and apply one intent atomically.

        Args:
            intent: An intent model or a dict payload with a ``kind`` key.
            strict: Raise NotFoundError instead of silently ignoring an
                    update that targets a missing id.

        Returns:
            DispatchResult with the post-intent SessionView.

        Raises:
            ValidationError: malformed payload or invalid parameters.
            NotFoundError:   strict update of a missing id, or a scene link
                             against a missing scene.
        """
        parsed = parse_intent(intent)
        kind = parsed.kind
        handler = getattr(self, "_apply_" + kind.replace("-", "_"))
        with self._lock:
            before = self._store.copy_state()
            try:
                applied = handler(parsed)
                if not applied and strict and kind in UPDATE_KINDS:
                    raise NotFoundError(*_missing_target(parsed))
            except Exception as exc:
                self._store.replace(before)
                logger.info("intent %s rejected: %s", kind, exc)
                raise
            if applied:
                logger.debug("intent %s applied", kind)
            elif kind in UPDATE_KINDS:
                logger.warning(
                    "intent %s ignored: %s '%s' not found", kind, *_missing_target(parsed)
                )
            else:
                logger.debug("intent %s was a no-op", kind)
            view = self.view()
            self._publish(view)
        return DispatchResult(kind=kind, applied=applied, view=view)

    # ── Handlers (return True when the state changed) ─────────────────────

    def _apply_add_version(self, intent) -> bool:
        self._history.add_version(intent.text)
        return True

    def _apply_set_current_version(self, intent) -> bool:
        self._history.set_current_version(intent.text)
        return True

    def _apply_add_scene(self, intent) -> bool:
        self._store.add_scene(intent.tag, scene_id=intent.scene_id)
        return True

    def _apply_link_scene_character(self, intent) -> bool:
        return self._store.link_scene_character(intent.scene_id, intent.character_id)

    def _apply_unlink_scene_character(self, intent) -> bool:
        return self._store.unlink_scene_character(intent.scene_id, intent.character_id)

    def _apply_link_scene_shot(self, intent) -> bool:
        return self._store.link_scene_shot(intent.scene_id, intent.shot_id)

    def _apply_unlink_scene_shot(self, intent) -> bool:
        return self._store.unlink_scene_shot(intent.scene_id, intent.shot_id)

    def _apply_add_character(self, intent) -> bool:
        self._store.add_character(intent.character)
        return True

    def _apply_update_character(self, intent) -> bool:
        return self._store.update_character(intent.character)

    def _apply_delete_character(self, intent) -> bool:
        return self._store.delete_character(intent.character_id)

    def _apply_add_shot(self, intent) -> bool:
        self._sequencer.append(intent.shot)
        return True

    def _apply_update_shot(self, intent) -> bool:
        return self._store.update_shot(intent.shot)

    def _apply_save_shot(self, intent) -> bool:
        if self._store.update_shot(intent.shot):
            return True
        self._sequencer.append(intent.shot)
        return True

    def _apply_attach_generated_image(self, intent) -> bool:
        return self._store.set_generated_image(intent.shot_id, intent.image_ref)

    def _apply_delete_shot(self, intent) -> bool:
        return self._sequencer.remove(intent.shot_id)

    def _apply_move_shot(self, intent) -> bool:
        self._sequencer.move_shot(intent.from_index, intent.to_index)
        return True

    def _apply_take_snapshot(self, intent) -> bool:
        self._history.take_snapshot()
        return True

    def _apply_navigate_snapshot(self, intent) -> bool:
        return self._history.navigate_snapshot(intent.index)

    def _apply_step_snapshot(self, intent) -> bool:
        return self._history.step(intent.direction)


def _missing_target(intent) -> tuple:
    """(entity, id) pair an update intent pointed at."""
    if intent.kind == "update-character":
        return ("character", intent.character.id)
    if intent.kind == "update-shot":
        return ("shot", intent.shot.id)
    return ("shot", intent.shot_id)
