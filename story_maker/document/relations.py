"""
Relationship Index: read-only resolution of soft references.

Nothing here is cached; every call walks the current DocumentState, so the
index can never go stale after a mutation.  Dangling references (a shot whose
scene was never created, a deleted character) resolve to an ``Unresolved``
value instead of raising.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Union

from story_maker.document.models import Character, DocumentState, Scene, Shot

UNRESOLVED_LABEL = "unresolved"


@dataclass(frozen=True)
class Unresolved:
    """A reference whose target is not in the store."""

    ref: str
    label: str = UNRESOLVED_LABEL


SceneRef = Union[Scene, Unresolved]
CharacterRef = Union[Character, Unresolved]
ShotRef = Union[Shot, Unresolved]


def _label(entity: Union[Scene, Character, Shot, Unresolved]) -> str:
    if isinstance(entity, Unresolved):
        return entity.label
    if isinstance(entity, Scene):
        return entity.tag
    return entity.name


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def resolve_scene(state: DocumentState, scene_id: str) -> SceneRef:
    for scene in state.scenes:
        if scene.id == scene_id:
            return scene
    return Unresolved(scene_id)


def resolve_character(state: DocumentState, character_id: str) -> CharacterRef:
    for character in state.characters:
        if character.id == character_id:
            return character
    return Unresolved(character_id)


def resolve_shot(state: DocumentState, shot_id: str) -> ShotRef:
    for shot in state.shots:
        if shot.id == shot_id:
            return shot
    return Unresolved(shot_id)


def shot_scene(state: DocumentState, shot: Shot) -> SceneRef:
    """Scene a shot is placed in; an empty scene_id is unresolved too."""
    return resolve_scene(state, shot.scene_id)


def shot_characters(state: DocumentState, shot: Shot) -> List[CharacterRef]:
    return [resolve_character(state, cid) for cid in shot.character_ids]


def scene_characters(state: DocumentState, scene: Scene) -> List[CharacterRef]:
    return [resolve_character(state, cid) for cid in scene.characters]


def scene_shots(state: DocumentState, scene: Scene) -> List[ShotRef]:
    return [resolve_shot(state, sid) for sid in scene.shots]


def shots_in_scene(state: DocumentState, scene_id: str) -> List[Shot]:
    """Shots whose own scene_id points at *scene_id*, in sequence order."""
    return [shot for shot in state.shots if scene_id and shot.scene_id == scene_id]


def dangling_references(state: DocumentState) -> List[str]:
    """List every soft reference that does not resolve.

    Returns human-readable strings; an empty list means the graph is
    referentially consistent.  Empty shot scene_ids are not reported.
    """
    problems: List[str] = []
    for shot in state.shots:
        if shot.scene_id and isinstance(shot_scene(state, shot), Unresolved):
            problems.append(f"shots.{shot.id}.scene_id -> '{shot.scene_id}'")
        for cid in shot.character_ids:
            if isinstance(resolve_character(state, cid), Unresolved):
                problems.append(f"shots.{shot.id}.character_ids -> '{cid}'")
    for scene in state.scenes:
        for cid in scene.characters:
            if isinstance(resolve_character(state, cid), Unresolved):
                problems.append(f"scenes.{scene.id}.characters -> '{cid}'")
        for sid in scene.shots:
            if isinstance(resolve_shot(state, sid), Unresolved):
                problems.append(f"scenes.{scene.id}.shots -> '{sid}'")
    for character in state.characters:
        for scene_id in character.associated_scenes:
            if isinstance(resolve_scene(state, scene_id), Unresolved):
                problems.append(
                    f"characters.{character.id}.associated_scenes -> '{scene_id}'"
                )
    return problems


# ---------------------------------------------------------------------------
# Display summaries
# ---------------------------------------------------------------------------

def describe_shot(state: DocumentState, shot: Shot) -> dict:
    """Labels for one row of the shot list: heading, scene, character names."""
    return {
        "heading": f"{shot.number}: {shot.name}",
        "scene": _label(shot_scene(state, shot)),
        "characters": ", ".join(_label(c) for c in shot_characters(state, shot)),
    }


def describe_scene(state: DocumentState, scene: Scene) -> dict:
    """Labels for one scene card: tag plus character and shot names."""
    return {
        "tag": scene.tag,
        "characters": ", ".join(_label(c) for c in scene_characters(state, scene)),
        "shots": ", ".join(_label(s) for s in scene_shots(state, scene)),
    }
