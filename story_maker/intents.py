"""Intent models: the named requests accepted by the mutation gateway.

Each intent is a pydantic model tagged by a ``kind`` literal; ``Intent`` is
the discriminated union of all of them.  Raw payloads (dicts or JSON from a
UI) are turned into intents with parse_intent().
"""
from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from story_maker.document.models import Character, Shot
from story_maker.errors import ValidationError


class _IntentBase(BaseModel):
    model_config = ConfigDict(extra="forbid")


# ── Versions ──────────────────────────────────────────────────────────────────


class AddVersion(_IntentBase):
    kind: Literal["add-version"] = "add-version"
    text: str


class SetCurrentVersion(_IntentBase):
    kind: Literal["set-current-version"] = "set-current-version"
    text: str


# ── Scenes ────────────────────────────────────────────────────────────────────


class AddScene(_IntentBase):
    kind: Literal["add-scene"] = "add-scene"
    tag: str = Field(..., min_length=1)
    scene_id: Optional[str] = None


class LinkSceneCharacter(_IntentBase):
    kind: Literal["link-scene-character"] = "link-scene-character"
    scene_id: str
    character_id: str


class UnlinkSceneCharacter(_IntentBase):
    kind: Literal["unlink-scene-character"] = "unlink-scene-character"
    scene_id: str
    character_id: str


class LinkSceneShot(_IntentBase):
    kind: Literal["link-scene-shot"] = "link-scene-shot"
    scene_id: str
    shot_id: str


class UnlinkSceneShot(_IntentBase):
    kind: Literal["unlink-scene-shot"] = "unlink-scene-shot"
    scene_id: str
    shot_id: str


# ── Characters ────────────────────────────────────────────────────────────────


class AddCharacter(_IntentBase):
    kind: Literal["add-character"] = "add-character"
    character: Character


class UpdateCharacter(_IntentBase):
    kind: Literal["update-character"] = "update-character"
    character: Character


class DeleteCharacter(_IntentBase):
    kind: Literal["delete-character"] = "delete-character"
    character_id: str


# ── Shots ─────────────────────────────────────────────────────────────────────


class AddShot(_IntentBase):
    kind: Literal["add-shot"] = "add-shot"
    shot: Shot


class UpdateShot(_IntentBase):
    kind: Literal["update-shot"] = "update-shot"
    shot: Shot


class SaveShot(_IntentBase):
    """Update the shot when its id is sequenced, otherwise append it."""

    kind: Literal["save-shot"] = "save-shot"
    shot: Shot


class AttachGeneratedImage(_IntentBase):
    kind: Literal["attach-generated-image"] = "attach-generated-image"
    shot_id: str
    image_ref: Optional[str] = None


class DeleteShot(_IntentBase):
    kind: Literal["delete-shot"] = "delete-shot"
    shot_id: str


class MoveShot(_IntentBase):
    kind: Literal["move-shot"] = "move-shot"
    from_index: int
    to_index: int


# ── History ───────────────────────────────────────────────────────────────────


class TakeSnapshot(_IntentBase):
    kind: Literal["take-snapshot"] = "take-snapshot"


class NavigateSnapshot(_IntentBase):
    kind: Literal["navigate-snapshot"] = "navigate-snapshot"
    index: int


class StepSnapshot(_IntentBase):
    kind: Literal["step-snapshot"] = "step-snapshot"
    direction: Literal["back", "forward"]


Intent = Annotated[
    Union[
        AddVersion,
        SetCurrentVersion,
        AddScene,
        LinkSceneCharacter,
        UnlinkSceneCharacter,
        LinkSceneShot,
        UnlinkSceneShot,
        AddCharacter,
        UpdateCharacter,
        DeleteCharacter,
        AddShot,
        UpdateShot,
        SaveShot,
        AttachGeneratedImage,
        DeleteShot,
        MoveShot,
        TakeSnapshot,
        NavigateSnapshot,
        StepSnapshot,
    ],
    Field(discriminator="kind"),
]

INTENT_ADAPTER: TypeAdapter = TypeAdapter(Intent)

# Updates that silently no-op on a missing id unless dispatched strictly.
UPDATE_KINDS = frozenset({"update-character", "update-shot", "attach-generated-image"})


def parse_intent(data: Any) -> BaseModel:
    """Build an intent model from a dict (or return *data* if already one).

    Raises:
        ValidationError: the payload does not describe a known intent.
    """
    if isinstance(data, _IntentBase):
        return data
    try:
        return INTENT_ADAPTER.validate_python(data)
    except PydanticValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors()
        )
        raise ValidationError(f"ERROR: invalid intent: {details}") from exc


def intent_json_schema() -> dict:
    """JSON Schema describing every accepted intent payload.

    ``kind`` has a default on the models but is required on the wire.
    """
    schema = INTENT_ADAPTER.json_schema()
    for definition in schema.get("$defs", {}).values():
        if "kind" in definition.get("properties", {}):
            required = definition.setdefault("required", [])
            if "kind" not in required:
                required.insert(0, "kind")
    return schema
