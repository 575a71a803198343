"""Versioned document core: entity store, relations, shot sequence, history."""

from story_maker.document.history import DocumentHistory
from story_maker.document.models import (
    Character,
    DocumentState,
    Scene,
    ScriptVersion,
    Shot,
    Snapshot,
)
from story_maker.document.relations import Unresolved
from story_maker.document.sequencer import ShotSequencer
from story_maker.document.store import EntityStore

__all__ = [
    "Character",
    "DocumentHistory",
    "DocumentState",
    "EntityStore",
    "Scene",
    "ScriptVersion",
    "Shot",
    "ShotSequencer",
    "Snapshot",
    "Unresolved",
]
