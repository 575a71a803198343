"""Ordered shot sequencer.

The shot list order is independent of ids and creation time.  Every operation
keeps it a gap-free total order: move_shot is a pure permutation, append adds
at the end, remove filters by id.
"""
from __future__ import annotations

from typing import List, Optional

from story_maker.document.models import Shot
from story_maker.document.store import EntityStore
from story_maker.errors import ValidationError

DEFAULT_PROGRESS_TARGET = 10


class ShotSequencer:
    """Positional operations over the store's shot list."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    @property
    def shots(self) -> List[Shot]:
        return self._store.state.shots

    def order(self) -> List[str]:
        """Shot ids in sequence order."""
        return [shot.id for shot in self.shots]

    def position(self, shot_id: str) -> Optional[int]:
        for i, shot in enumerate(self.shots):
            if shot.id == shot_id:
                return i
        return None

    def append(self, shot: Shot) -> Shot:
        """Add *shot* at the end of the sequence.

        Raises:
            ValidationError: a shot with the same id is already sequenced.
        """
        if self.position(shot.id) is not None:
            raise ValidationError(f"ERROR: duplicate shot id '{shot.id}'")
        stored = shot.model_copy(deep=True)
        self.shots.append(stored)
        return stored

    def remove(self, shot_id: str) -> bool:
        """Filter *shot_id* out of the sequence; absent ids are a no-op."""
        state = self._store.state
        before = len(state.shots)
        state.shots = [s for s in state.shots if s.id != shot_id]
        return len(state.shots) != before

    def move_shot(self, from_index: int, to_index: int) -> None:
        """Remove the shot at *from_index* and reinsert it at *to_index*.

        Both indices must lie in ``[0, len(shots))``; the sequence is left
        untouched when either does not.

        Raises:
            ValidationError: an index is out of range.
        """
        length = len(self.shots)
        for label, index in (("from_index", from_index), ("to_index", to_index)):
            if not 0 <= index < length:
                raise ValidationError(
                    f"ERROR: {label}={index} out of range for {length} shots"
                )
        moved = self.shots.pop(from_index)
        self.shots.insert(to_index, moved)

    def progress(self, target: int = DEFAULT_PROGRESS_TARGET) -> float:
        """Fraction of *target* shots already sequenced, capped at 1.0."""
        if target <= 0:
            raise ValidationError("ERROR: progress target must be positive")
        return min(len(self.shots) / target, 1.0)
