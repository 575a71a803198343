"""Story Maker: versioned document core for scripts, scenes, characters and shots."""

from story_maker.errors import (
    ExternalServiceError,
    NotFoundError,
    StoryMakerError,
    ValidationError,
)
from story_maker.gateway import DispatchResult, MutationGateway, SessionView

__all__ = [
    "DispatchResult",
    "ExternalServiceError",
    "MutationGateway",
    "NotFoundError",
    "SessionView",
    "StoryMakerError",
    "ValidationError",
]
