"""Document models: script versions, scenes, characters, shots and snapshots.

Every entity is a pydantic model with extra="ignore" so payloads produced by
newer editors (unknown fields) are dropped rather than rejected.  Media fields
hold opaque references (URLs, data URIs, upload handles) and are never
inspected.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from story_maker.document.ids import new_id

MediaRef = str


def _unique(values: List[str]) -> List[str]:
    """Drop duplicates while keeping first-seen order."""
    seen: set = set()
    out: List[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            out.append(value)
    return out


# ── Script versions ───────────────────────────────────────────────────────────


class ScriptVersion(BaseModel):
    """An immutable saved script text.

    ``index`` is the insertion position in the version log; it is the only
    identity a version has.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    index: int = Field(..., ge=0)
    text: str


# ── Scenes, characters, shots ─────────────────────────────────────────────────


class Scene(BaseModel):
    """A tagged scene holding ordered character and shot references."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=lambda: new_id("scene"), min_length=1)
    tag: str = Field(..., min_length=1)
    characters: List[str] = []
    shots: List[str] = []

    @field_validator("characters", "shots")
    @classmethod
    def _dedupe_refs(cls, value: List[str]) -> List[str]:
        return _unique(value)


class Character(BaseModel):
    """A character sheet with optional imagery and associated scenes."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=lambda: new_id("char"), min_length=1)
    name: str = ""
    description: str = ""
    behaviors: str = ""
    motivations: str = ""
    primary_image: Optional[MediaRef] = None
    reference_images: List[MediaRef] = []
    associated_scenes: List[str] = []

    @field_validator("associated_scenes")
    @classmethod
    def _dedupe_scenes(cls, value: List[str]) -> List[str]:
        return _unique(value)


class Shot(BaseModel):
    """A storyboard unit.

    ``scene_id`` and ``character_ids`` are soft references: nothing checks
    them on write, and readers resolve them through the relations module.
    An empty ``scene_id`` means the shot is not placed in any scene.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = Field(default_factory=lambda: new_id("shot"), min_length=1)
    number: str = ""
    name: str = ""
    description: str = ""
    source_image: Optional[MediaRef] = None
    source_video: Optional[MediaRef] = None
    generated_image: Optional[MediaRef] = None
    scene_id: str = ""
    character_ids: List[str] = []

    @field_validator("character_ids")
    @classmethod
    def _dedupe_characters(cls, value: List[str]) -> List[str]:
        return _unique(value)


# ── Whole-document state ──────────────────────────────────────────────────────


class DocumentState(BaseModel):
    """The live document graph owned by the entity store.

    ``current_version`` is the text shown as current; ``current_version_index``
    points at the matching entry of ``versions`` or is None when the current
    text is an unsaved draft.
    """

    model_config = ConfigDict(extra="ignore")

    versions: List[ScriptVersion] = []
    current_version: str = ""
    current_version_index: Optional[int] = None
    scenes: List[Scene] = []
    characters: List[Character] = []
    shots: List[Shot] = []


class Snapshot(DocumentState):
    """A whole-document checkpoint in the snapshot log.

    Always built from a deep copy, so later edits to the live state never
    reach a stored snapshot.
    """

    @classmethod
    def capture(cls, state: DocumentState) -> "Snapshot":
        return cls.model_validate(state.model_dump())

    def restore(self) -> DocumentState:
        """Return an independent DocumentState equal to this snapshot."""
        return DocumentState.model_validate(self.model_dump())
