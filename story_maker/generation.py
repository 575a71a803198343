"""Image generation for shots.

StabilityImageGenerator talks to a remote text-to-image HTTP service and
returns an opaque image reference (a ``data:image/png;base64,...`` URI).  It
never touches document state.

save_shot_with_generated_image() is the "save shot and generate image" flow:
the generator is awaited first, with no lock held on the store, and only the
final result enters the gateway as one ``save-shot`` intent.  A failed
generation still saves the shot, with ``generated_image=None``, and reports
the failure in the returned ShotSaveOutcome.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import httpx

from story_maker import config
from story_maker.document.models import Shot
from story_maker.errors import ExternalServiceError, StoryMakerError, ValidationError
from story_maker.gateway import MutationGateway, SessionView
from story_maker.intents import SaveShot

logger = logging.getLogger(__name__)


class ImageGenerator(Protocol):
    async def generate(self, prompt: str) -> str:
        ...


def _require_prompt(prompt: str) -> str:
    if not prompt or not prompt.strip():
        raise ValidationError("ERROR: shot description is required for image generation")
    return prompt


class StabilityImageGenerator:
    """Async client for the Stability text-to-image endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        engine: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = config.STABILITY_API_KEY if api_key is None else api_key
        self.base_url = base_url or config.STABILITY_BASE_URL
        self.engine = engine or config.STABILITY_ENGINE
        self.timeout_seconds = timeout_seconds or config.STABILITY_TIMEOUT_SECONDS
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    @staticmethod
    def _build_payload(prompt: str) -> dict[str, Any]:
        return {
            "text_prompts": [{"text": prompt}],
            "cfg_scale": 7,
            "height": 1024,
            "width": 1024,
            "steps": 30,
            "samples": 1,
        }

    async def generate(self, prompt: str) -> str:
        """Generate one image for *prompt* and return it as a data URI.

        Raises:
            ValidationError:      *prompt* is empty.
            ExternalServiceError: kind "network" when the service is
                unreachable, "provider" for an error response or a missing
                credential, "empty-result" when no image came back.
        """
        _require_prompt(prompt)
        if not self.api_key:
            raise ExternalServiceError("provider", "STABILITY_API_KEY is not configured")

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    f"/v1/generation/{self.engine}/text-to-image",
                    headers=self._headers(),
                    json=self._build_payload(prompt),
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as exc:
            raise ExternalServiceError("provider", _provider_message(exc.response)) from exc
        except httpx.RequestError as exc:
            raise ExternalServiceError(
                "network", "unable to reach the image generation service"
            ) from exc
        except ValueError as exc:
            raise ExternalServiceError(
                "provider", "invalid response from the image generation service"
            ) from exc

        artifacts = data.get("artifacts") if isinstance(data, dict) else None
        first = artifacts[0] if isinstance(artifacts, list) and artifacts else None
        if not isinstance(first, dict) or not first.get("base64"):
            raise ExternalServiceError("empty-result", "no image generated from the API")
        return f"data:image/png;base64,{first['base64']}"


def _provider_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase or f"HTTP {response.status_code}"


# ── Save-shot workflow ────────────────────────────────────────────────────────


@dataclass
class ShotSaveOutcome:
    """Result of saving a shot with image generation.

    ``error`` is set when generation failed and the shot was saved without
    an image.
    """

    shot_id: str
    generated_image: Optional[str]
    view: SessionView
    error: Optional[StoryMakerError] = None

    @property
    def degraded(self) -> bool:
        return self.error is not None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


async def save_shot_with_generated_image(
    gateway: MutationGateway,
    shot: Shot,
    generator: ImageGenerator,
) -> ShotSaveOutcome:
    """Generate an image from the shot description, then save the shot.

    The shot is always saved (updated in place when its id is already
    sequenced, appended otherwise).
    """
    error: Optional[StoryMakerError] = None
    image_ref: Optional[str] = None
    try:
        image_ref = await generator.generate(_require_prompt(shot.description))
    except (ExternalServiceError, ValidationError) as exc:
        error = exc
        logger.warning("shot %s saved without image: %s", shot.id, exc)

    saved = shot.model_copy(update={"generated_image": image_ref})
    result = gateway.dispatch(SaveShot(shot=saved))
    return ShotSaveOutcome(
        shot_id=saved.id,
        generated_image=image_ref,
        view=result.view,
        error=error,
    )
