"""Error taxonomy for the story-maker core.

Validation and not-found conditions are raised synchronously to the caller of
the mutation gateway.  External-service errors come from the image-generation
collaborator and are normally reported as a degraded outcome rather than
raised (see generation.py).
"""
from __future__ import annotations

from typing import Literal, Optional

ExternalErrorKind = Literal["network", "provider", "empty-result"]


class StoryMakerError(Exception):
    """Base class for every error raised by story_maker."""


class ValidationError(StoryMakerError, ValueError):
    """An intent carried invalid parameters (bad index, duplicate id, empty prompt)."""


class NotFoundError(StoryMakerError, LookupError):
    """An intent referenced an entity id that is not in the store."""

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"ERROR: {entity} '{entity_id}' not found")


class ExternalServiceError(StoryMakerError, RuntimeError):
    """The image-generation collaborator failed.

    ``kind`` is one of "network", "provider" or "empty-result".
    """

    def __init__(self, kind: ExternalErrorKind, message: Optional[str] = None) -> None:
        self.kind = kind
        self.message = message
        text = f"ERROR: image generation failed ({kind})"
        if message:
            text = f"{text}: {message}"
        super().__init__(text)
