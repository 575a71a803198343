"""Tests for story_maker/generation.py: image provider and save-shot flow."""
from __future__ import annotations

import json

import httpx
import pytest

from story_maker.document.models import Shot
from story_maker.errors import ExternalServiceError, ValidationError
from story_maker.gateway import MutationGateway
from story_maker.generation import StabilityImageGenerator, save_shot_with_generated_image


def _generator(handler) -> StabilityImageGenerator:
    return StabilityImageGenerator(
        api_key="test-key",
        base_url="https://stability.test",
        engine="sdxl-test",
        transport=httpx.MockTransport(handler),
    )


def _ok_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"artifacts": [{"base64": "SU1BR0U=", "seed": 1}]})


def _network_down(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


class _FailingGenerator:
    def __init__(self, error: Exception) -> None:
        self.error = error
        self.calls = 0

    async def generate(self, prompt: str) -> str:
        self.calls += 1
        raise self.error


# ── Provider client ───────────────────────────────────────────────────────────


class TestStabilityImageGenerator:

    @pytest.mark.asyncio
    async def test_builds_request_and_returns_data_uri(self):
        captured: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["Authorization"]
            captured["json"] = json.loads(request.content.decode())
            return _ok_handler(request)

        image = await _generator(handler).generate("A hangar at dawn")

        assert image == "data:image/png;base64,SU1BR0U="
        assert captured["url"] == "https://stability.test/v1/generation/sdxl-test/text-to-image"
        assert captured["auth"] == "Bearer test-key"
        assert captured["json"]["text_prompts"] == [{"text": "A hangar at dawn"}]
        assert captured["json"]["samples"] == 1
        assert captured["json"]["height"] == 1024

    @pytest.mark.asyncio
    async def test_empty_prompt_is_validation_error(self):
        calls = []

        def handler(request):
            calls.append(request)
            return _ok_handler(request)

        with pytest.raises(ValidationError):
            await _generator(handler).generate("   ")
        assert calls == []

    @pytest.mark.asyncio
    async def test_network_error(self):
        with pytest.raises(ExternalServiceError) as exc_info:
            await _generator(_network_down).generate("prompt")
        assert exc_info.value.kind == "network"

    @pytest.mark.asyncio
    async def test_provider_error_uses_response_message(self):
        def handler(request):
            return httpx.Response(400, json={"message": "invalid prompts"})

        with pytest.raises(ExternalServiceError) as exc_info:
            await _generator(handler).generate("prompt")
        assert exc_info.value.kind == "provider"
        assert exc_info.value.message == "invalid prompts"

    @pytest.mark.asyncio
    async def test_provider_error_without_json_body(self):
        def handler(request):
            return httpx.Response(503, text="upstream down")

        with pytest.raises(ExternalServiceError) as exc_info:
            await _generator(handler).generate("prompt")
        assert exc_info.value.kind == "provider"
        assert exc_info.value.message == "Service Unavailable"

    @pytest.mark.asyncio
    async def test_empty_result(self):
        def handler(request):
            return httpx.Response(200, json={"artifacts": []})

        with pytest.raises(ExternalServiceError) as exc_info:
            await _generator(handler).generate("prompt")
        assert exc_info.value.kind == "empty-result"

    @pytest.mark.asyncio
    async def test_non_json_body_is_provider_error(self):
        def handler(request):
            return httpx.Response(200, text="<html>gateway</html>")

        with pytest.raises(ExternalServiceError) as exc_info:
            await _generator(handler).generate("prompt")
        assert exc_info.value.kind == "provider"
        assert "invalid response" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_malformed_artifact_is_empty_result(self):
        def handler(request):
            return httpx.Response(200, json={"artifacts": ["oops"]})

        with pytest.raises(ExternalServiceError) as exc_info:
            await _generator(handler).generate("prompt")
        assert exc_info.value.kind == "empty-result"

    @pytest.mark.asyncio
    async def test_missing_api_key_is_provider_error(self):
        generator = StabilityImageGenerator(
            api_key="", transport=httpx.MockTransport(_ok_handler)
        )
        with pytest.raises(ExternalServiceError) as exc_info:
            await generator.generate("prompt")
        assert exc_info.value.kind == "provider"


# ── Save-shot workflow ────────────────────────────────────────────────────────


class TestSaveShotWithGeneratedImage:

    @pytest.mark.asyncio
    async def test_success_stores_image(self):
        gateway = MutationGateway()
        shot = Shot(id="S1", name="Opening", description="A hangar at dawn")
        outcome = await save_shot_with_generated_image(gateway, shot, _generator(_ok_handler))

        assert outcome.degraded is False
        outcome.raise_for_error()
        stored = gateway.store.get_shot("S1")
        assert stored.generated_image == "data:image/png;base64,SU1BR0U="
        assert outcome.view.document.shots[0].generated_image == stored.generated_image

    @pytest.mark.asyncio
    async def test_network_failure_still_saves_shot(self):
        gateway = MutationGateway()
        shot = Shot(id="S1", name="Opening", description="A hangar at dawn")
        outcome = await save_shot_with_generated_image(gateway, shot, _generator(_network_down))

        assert outcome.degraded is True
        assert isinstance(outcome.error, ExternalServiceError)
        assert outcome.error.kind == "network"
        stored = gateway.store.get_shot("S1")
        assert stored is not None
        assert stored.generated_image is None
        with pytest.raises(ExternalServiceError):
            outcome.raise_for_error()

    @pytest.mark.asyncio
    async def test_empty_description_saves_without_calling_provider(self):
        gateway = MutationGateway()
        generator = _FailingGenerator(ExternalServiceError("network"))
        outcome = await save_shot_with_generated_image(gateway, Shot(id="S1"), generator)

        assert generator.calls == 0
        assert isinstance(outcome.error, ValidationError)
        assert gateway.sequencer.order() == ["S1"]

    @pytest.mark.asyncio
    async def test_existing_shot_is_updated_in_place(self):
        gateway = MutationGateway()
        for shot_id in ("S1", "S2"):
            gateway.dispatch({"kind": "add-shot", "shot": {"id": shot_id, "name": shot_id}})
        edited = Shot(id="S1", name="Edited", description="Close on Ava",
                      generated_image="data:image/png;base64,OLD=")
        outcome = await save_shot_with_generated_image(
            gateway, edited, _FailingGenerator(ExternalServiceError("provider", "quota"))
        )

        assert gateway.sequencer.order() == ["S1", "S2"]
        assert gateway.store.get_shot("S1").name == "Edited"
        assert gateway.store.get_shot("S1").generated_image is None
        assert outcome.error.message == "quota"

    @pytest.mark.asyncio
    async def test_observers_see_one_update(self):
        gateway = MutationGateway()
        seen = []
        gateway.subscribe(seen.append)
        await save_shot_with_generated_image(
            gateway, Shot(id="S1", description="x"), _generator(_ok_handler)
        )
        assert len(seen) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="<html>gateway</html>"),
            httpx.Response(200, json={"artifacts": ["oops"]}),
            httpx.Response(200, json=["not", "an", "object"]),
        ],
    )
    async def test_malformed_success_response_still_saves_shot(self, response):
        gateway = MutationGateway()
        shot = Shot(id="S1", name="Opening", description="A hangar at dawn")
        outcome = await save_shot_with_generated_image(
            gateway, shot, _generator(lambda request: response)
        )

        assert outcome.degraded is True
        assert isinstance(outcome.error, ExternalServiceError)
        assert gateway.sequencer.order() == ["S1"]
        assert gateway.store.get_shot("S1").generated_image is None
