"""
Script version log and whole-document snapshot history.

Versions
--------
    add_version(text)          append + make current; duplicates are kept
    set_current_version(text)  repoint "current" without touching the log

Versions are addressed by text at the boundary.  When several versions share
the same text, set_current_version resolves to the LAST matching entry.  Text
that matches no saved version becomes an unsaved draft
(current_version_index is None).

Snapshots
---------
The snapshot log is append-only within a session.  The cursor is -1 while the
log is empty and otherwise a valid index into it:

    take_snapshot()       append a deep copy of the live state, cursor -> N-1
    navigate_snapshot(i)  replace the live state with a copy of log[i],
                          cursor -> i; out-of-range i is silently ignored
    step(direction)       navigate_snapshot(cursor -/+ 1)

Snapshots are deep copies on the way in and on the way out, so mutating the
live state can never alter a stored checkpoint.
"""
from __future__ import annotations

import difflib
from typing import List, Literal, Optional

from story_maker.document.models import ScriptVersion, Snapshot
from story_maker.document.store import EntityStore
from story_maker.errors import ValidationError

Direction = Literal["back", "forward"]


class DocumentHistory:
    """Version log plus snapshot log for one EntityStore."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store
        self._snapshots: List[Snapshot] = []
        self._cursor = -1

    # ── Versions ──────────────────────────────────────────────────────────

    @property
    def versions(self) -> List[ScriptVersion]:
        return self._store.state.versions

    @property
    def current_version(self) -> str:
        return self._store.state.current_version

    def add_version(self, text: str) -> ScriptVersion:
        state = self._store.state
        version = ScriptVersion(index=len(state.versions), text=text)
        state.versions.append(version)
        state.current_version = text
        state.current_version_index = version.index
        return version

    def set_current_version(self, text: str) -> Optional[ScriptVersion]:
        """Make *text* the current version.

        Returns the resolved ScriptVersion (last match wins), or None when
        *text* is not in the log and is shown as a draft.
        """
        state = self._store.state
        match = self.find_version(text)
        state.current_version = text
        state.current_version_index = match.index if match is not None else None
        return match

    def find_version(self, text: str) -> Optional[ScriptVersion]:
        for version in reversed(self.versions):
            if version.text == text:
                return version
        return None

    def compare_versions(self, left_index: int, right_index: int) -> List[str]:
        """Unified diff lines turning version *left_index* into *right_index*.

        Raises:
            ValidationError: either index is outside the version log.
        """
        count = len(self.versions)
        for index in (left_index, right_index):
            if not 0 <= index < count:
                raise ValidationError(
                    f"ERROR: version index {index} out of range for {count} versions"
                )
        left = self.versions[left_index]
        right = self.versions[right_index]
        return list(
            difflib.unified_diff(
                left.text.splitlines(),
                right.text.splitlines(),
                fromfile=f"version {left.index + 1}",
                tofile=f"version {right.index + 1}",
                lineterm="",
            )
        )

    # ── Snapshots ─────────────────────────────────────────────────────────

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def snapshot_count(self) -> int:
        return len(self._snapshots)

    def snapshot_at(self, index: int) -> Snapshot:
        """Independent copy of the stored snapshot at *index*.

        Raises:
            ValidationError: *index* is outside the snapshot log.
        """
        count = len(self._snapshots)
        if not 0 <= index < count:
            raise ValidationError(
                f"ERROR: snapshot index {index} out of range for {count} snapshots"
            )
        return self._snapshots[index].model_copy(deep=True)

    def take_snapshot(self) -> int:
        """Append a checkpoint of the live state and return its index."""
        self._snapshots.append(Snapshot.capture(self._store.state))
        self._cursor = len(self._snapshots) - 1
        return self._cursor

    def navigate_snapshot(self, index: int) -> bool:
        """Roll the live state to snapshot *index*; False (no-op) when out of range."""
        if not 0 <= index < len(self._snapshots):
            return False
        self._store.replace(self._snapshots[index].restore())
        self._cursor = index
        return True

    def can_step(self, direction: Direction) -> bool:
        target = self._cursor - 1 if direction == "back" else self._cursor + 1
        return 0 <= target < len(self._snapshots)

    def step(self, direction: Direction) -> bool:
        if direction not in ("back", "forward"):
            raise ValidationError(f"ERROR: unknown direction {direction!r}")
        offset = -1 if direction == "back" else 1
        return self.navigate_snapshot(self._cursor + offset)
