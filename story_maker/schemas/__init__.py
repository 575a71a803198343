"""Versioned document loaders and validators."""

from story_maker.schemas.document_v1 import (
    canonical_json_bytes,
    consistency_errors,
    dump_document,
    load_document,
    validate_document,
)

__all__ = [
    "canonical_json_bytes",
    "consistency_errors",
    "dump_document",
    "load_document",
    "validate_document",
]
