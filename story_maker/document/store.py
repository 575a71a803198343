"""
Entity Store, the single owner of the live document graph.

The store holds one DocumentState and exposes create / update / delete per
entity type plus the scene relation-maintenance operations.  Shot ordering
(append, remove, move) lives in sequencer.py and works on the same state.

Update rules
------------
  - update_character / update_shot replace the entity with the same id in
    place and return True; a missing id is a silent no-op returning False.
  - delete_* removes by id unconditionally; a missing id is a no-op.
  - Character and shot ids must be unique; adding a duplicate raises
    ValidationError and leaves the store unchanged.
  - Foreign keys (shot.scene_id, shot.character_ids) are never checked here.
"""
from __future__ import annotations

from typing import List, Optional

from story_maker.document.ids import new_id
from story_maker.document.models import Character, DocumentState, Scene, Shot
from story_maker.errors import NotFoundError, ValidationError


class EntityStore:
    """Mutable holder of the live DocumentState."""

    def __init__(self, state: Optional[DocumentState] = None) -> None:
        self._state = state if state is not None else DocumentState()

    @property
    def state(self) -> DocumentState:
        return self._state

    def replace(self, state: DocumentState) -> None:
        """Swap the whole live state (snapshot navigation, rollback)."""
        self._state = state

    def copy_state(self) -> DocumentState:
        return self._state.model_copy(deep=True)

    # ── Scenes ────────────────────────────────────────────────────────────

    def add_scene(self, tag: str, scene_id: Optional[str] = None) -> Scene:
        """Append a new scene with an empty relation set."""
        if not tag:
            raise ValidationError("ERROR: scene tag must not be empty")
        scene_id = scene_id or new_id("scene")
        if self.get_scene(scene_id) is not None:
            raise ValidationError(f"ERROR: duplicate scene id '{scene_id}'")
        scene = Scene(id=scene_id, tag=tag)
        self._state.scenes.append(scene)
        return scene

    def get_scene(self, scene_id: str) -> Optional[Scene]:
        return next((s for s in self._state.scenes if s.id == scene_id), None)

    def _require_scene(self, scene_id: str) -> Scene:
        scene = self.get_scene(scene_id)
        if scene is None:
            raise NotFoundError("scene", scene_id)
        return scene

    # ── Characters ────────────────────────────────────────────────────────

    def add_character(self, character: Character) -> Character:
        if self.get_character(character.id) is not None:
            raise ValidationError(f"ERROR: duplicate character id '{character.id}'")
        stored = character.model_copy(deep=True)
        self._state.characters.append(stored)
        return stored

    def get_character(self, character_id: str) -> Optional[Character]:
        return next((c for c in self._state.characters if c.id == character_id), None)

    def update_character(self, character: Character) -> bool:
        """Replace the character with the same id; False when it does not exist."""
        chars = self._state.characters
        for i, existing in enumerate(chars):
            if existing.id == character.id:
                chars[i] = character.model_copy(deep=True)
                return True
        return False

    def delete_character(self, character_id: str) -> bool:
        # no cascade: shot and scene references become dangling
        before = len(self._state.characters)
        self._state.characters = [
            c for c in self._state.characters if c.id != character_id
        ]
        return len(self._state.characters) != before

    # ── Shots (ordering lives in sequencer.py) ────────────────────────────

    def get_shot(self, shot_id: str) -> Optional[Shot]:
        return next((s for s in self._state.shots if s.id == shot_id), None)

    def update_shot(self, shot: Shot) -> bool:
        """Replace the shot with the same id, keeping its sequence position."""
        shots = self._state.shots
        for i, existing in enumerate(shots):
            if existing.id == shot.id:
                shots[i] = shot.model_copy(deep=True)
                return True
        return False

    def set_generated_image(self, shot_id: str, image_ref: Optional[str]) -> bool:
        """Merge only ``generated_image`` into an existing shot."""
        shots = self._state.shots
        for i, existing in enumerate(shots):
            if existing.id == shot_id:
                shots[i] = existing.model_copy(update={"generated_image": image_ref})
                return True
        return False

    # ── Scene relations ───────────────────────────────────────────────────

    def link_scene_character(self, scene_id: str, character_id: str) -> bool:
        """Reference *character_id* from the scene and the scene from the character.

        Idempotent: returns False when both sides were already linked.

        Raises:
            NotFoundError: the scene does not exist.
        """
        scene = self._require_scene(scene_id)
        changed = _append_unique(scene.characters, character_id)
        character = self.get_character(character_id)
        if character is not None:
            changed = _append_unique(character.associated_scenes, scene_id) or changed
        return changed

    def unlink_scene_character(self, scene_id: str, character_id: str) -> bool:
        changed = False
        scene = self.get_scene(scene_id)
        if scene is not None:
            changed = _remove(scene.characters, character_id)
        character = self.get_character(character_id)
        if character is not None:
            changed = _remove(character.associated_scenes, scene_id) or changed
        return changed

    def link_scene_shot(self, scene_id: str, shot_id: str) -> bool:
        """Reference *shot_id* from the scene.

        Raises:
            NotFoundError: the scene does not exist.
        """
        scene = self._require_scene(scene_id)
        return _append_unique(scene.shots, shot_id)

    def unlink_scene_shot(self, scene_id: str, shot_id: str) -> bool:
        scene = self.get_scene(scene_id)
        if scene is None:
            return False
        return _remove(scene.shots, shot_id)


def _append_unique(values: List[str], value: str) -> bool:
    if value in values:
        return False
    values.append(value)
    return True


def _remove(values: List[str], value: str) -> bool:
    if value not in values:
        return False
    values.remove(value)
    return True
