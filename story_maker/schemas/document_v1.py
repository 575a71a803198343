"""
Saved document format, version 1.

A saved document is the canonical JSON of one DocumentState.  Loading checks
more than the field shapes: the store addresses entities by id and the
history addresses versions by position, so a document is only accepted when

  - scene, character and shot ids are unique within their collection
  - versions[i].index == i
  - current_version_index, when set, names a version whose text is
    current_version

Soft references that do not resolve (a shot pointing at a deleted scene) are
legal in a live session and are reported separately, never rejected.
"""
from __future__ import annotations

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Any, List, Union

from pydantic import ValidationError as PydanticValidationError

from story_maker.document.models import DocumentState
from story_maker.document.relations import dangling_references
from story_maker.errors import ValidationError

SCHEMA_VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def _read(source: Union[str, bytes, dict, Path]) -> Any:
    if isinstance(source, Path):
        source = source.read_text(encoding="utf-8")
    if isinstance(source, (str, bytes)):
        try:
            return json.loads(source)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"ERROR: document is not valid JSON: {exc}") from exc
    return source


def _shape_errors(data: Any) -> List[str]:
    try:
        DocumentState.model_validate(data)
    except PydanticValidationError as exc:
        return [
            f"{'.'.join(str(p) for p in e['loc']) or '<root>'}: {e['msg']}"
            for e in exc.errors()
        ]
    return []


def consistency_errors(state: DocumentState) -> List[str]:
    """Id and version-log problems the field types alone cannot catch."""
    errors: List[str] = []
    for collection in ("scenes", "characters", "shots"):
        counts = Counter(entity.id for entity in getattr(state, collection))
        for entity_id, count in counts.items():
            if count > 1:
                errors.append(f"{collection}: duplicate id '{entity_id}'")

    for position, version in enumerate(state.versions):
        if version.index != position:
            errors.append(
                f"versions.{position}.index: expected {position}, got {version.index}"
            )

    index = state.current_version_index
    if index is not None:
        if not 0 <= index < len(state.versions):
            errors.append(f"current_version_index: {index} is outside the version log")
        elif state.versions[index].text != state.current_version:
            errors.append(
                f"current_version_index: version {index} text differs from current_version"
            )
    return errors


def validate_document(data: Any) -> List[str]:
    """Every problem with a raw saved document, as readable strings.

    Shape errors come first; when the shape is valid, id and version-log
    problems follow, then unresolved references as ``unresolved: <path>``.
    An empty list means the document loads cleanly.  Does not raise.
    """
    errors = _shape_errors(data)
    if errors:
        return errors
    state = DocumentState.model_validate(data)
    return consistency_errors(state) + [
        f"unresolved: {ref}" for ref in dangling_references(state)
    ]


def load_document(source: Union[str, bytes, dict, Path]) -> DocumentState:
    """Load a saved document from a JSON string, bytes, dict or file Path.

    Unresolved references are logged and kept.

    Raises:
        ValidationError:   the data is not JSON, has the wrong shape, or
                           fails the id and version-log checks.
        FileNotFoundError: Path does not exist.
    """
    data = _read(source)
    errors = _shape_errors(data)
    if errors:
        raise ValidationError("ERROR: invalid document: " + "; ".join(errors))
    state = DocumentState.model_validate(data)
    errors = consistency_errors(state)
    if errors:
        raise ValidationError("ERROR: invalid document: " + "; ".join(errors))
    for ref in dangling_references(state):
        logger.warning("loaded document has unresolved reference %s", ref)
    return state


def dump_document(state: DocumentState, *, indent: int = 2) -> str:
    """Serialize a DocumentState to canonical JSON (sort_keys=True, indent=2)."""
    raw = state.model_dump(mode="json")
    return json.dumps(raw, sort_keys=True, indent=indent, ensure_ascii=False)


def canonical_json_bytes(state: DocumentState) -> bytes:
    """Canonical UTF-8 bytes for a DocumentState.

    Two states are equal in content exactly when these bytes are equal.
    """
    return dump_document(state).encode("utf-8")
