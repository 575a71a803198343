"""Tests for story_maker/document/relations.py: soft-reference resolution."""
from __future__ import annotations

from story_maker.document import relations
from story_maker.document.models import Character, DocumentState, Scene, Shot
from story_maker.document.relations import Unresolved


def _state() -> DocumentState:
    return DocumentState(
        scenes=[Scene(id="sc1", tag="Hangar", characters=["A1", "ghost"], shots=["S1", "S404"])],
        characters=[Character(id="A1", name="Ava"), Character(id="B1", name="Ben")],
        shots=[
            Shot(id="S1", number="1", name="Opening", scene_id="sc1", character_ids=["A1", "B1"]),
            Shot(id="S2", number="2", name="Drift", scene_id="", character_ids=["gone"]),
            Shot(id="S3", number="3", name="Lost", scene_id="deleted-scene"),
        ],
    )


class TestResolution:

    def test_shot_scene_resolves(self):
        state = _state()
        assert relations.shot_scene(state, state.shots[0]).tag == "Hangar"

    def test_empty_scene_id_is_unresolved(self):
        state = _state()
        result = relations.shot_scene(state, state.shots[1])
        assert isinstance(result, Unresolved)
        assert result.label == "unresolved"

    def test_dangling_scene_id_is_unresolved(self):
        state = _state()
        result = relations.shot_scene(state, state.shots[2])
        assert result == Unresolved("deleted-scene")

    def test_shot_characters_mixed(self):
        state = _state()
        names = [c.name for c in relations.shot_characters(state, state.shots[0])]
        assert names == ["Ava", "Ben"]
        assert relations.shot_characters(state, state.shots[1]) == [Unresolved("gone")]

    def test_scene_characters_and_shots(self):
        state = _state()
        scene = state.scenes[0]
        assert relations.scene_characters(state, scene)[1] == Unresolved("ghost")
        shots = relations.scene_shots(state, scene)
        assert shots[0].id == "S1"
        assert shots[1] == Unresolved("S404")

    def test_shots_in_scene_uses_shot_scene_id(self):
        state = _state()
        assert [s.id for s in relations.shots_in_scene(state, "sc1")] == ["S1"]
        assert relations.shots_in_scene(state, "") == []

    def test_index_reflects_latest_state(self):
        state = _state()
        state.characters[0].name = "Ava Prime"
        names = [c.name for c in relations.shot_characters(state, state.shots[0])]
        assert names[0] == "Ava Prime"


class TestDanglingReferences:

    def test_reports_every_dangling_reference(self):
        problems = relations.dangling_references(_state())
        assert problems == [
            "shots.S2.character_ids -> 'gone'",
            "shots.S3.scene_id -> 'deleted-scene'",
            "scenes.sc1.characters -> 'ghost'",
            "scenes.sc1.shots -> 'S404'",
        ]

    def test_consistent_graph_reports_nothing(self):
        state = DocumentState(
            scenes=[Scene(id="sc1", tag="Hangar", characters=["A1"])],
            characters=[Character(id="A1", name="Ava", associated_scenes=["sc1"])],
            shots=[Shot(id="S1", scene_id="sc1", character_ids=["A1"])],
        )
        assert relations.dangling_references(state) == []


class TestDescriptions:

    def test_describe_shot(self):
        state = _state()
        assert relations.describe_shot(state, state.shots[0]) == {
            "heading": "1: Opening",
            "scene": "Hangar",
            "characters": "Ava, Ben",
        }

    def test_describe_shot_with_dangling_refs(self):
        state = _state()
        assert relations.describe_shot(state, state.shots[1]) == {
            "heading": "2: Drift",
            "scene": "unresolved",
            "characters": "unresolved",
        }

    def test_describe_scene(self):
        state = _state()
        assert relations.describe_scene(state, state.scenes[0]) == {
            "tag": "Hangar",
            "characters": "Ava, unresolved",
            "shots": "Opening, unresolved",
        }
