from __future__ import annotations

import logging
from typing import Any

from google import genai
from google.genai import types

from pixshop.domain.entities.geometry import Point
from pixshop.domain.entities.image import GeneratedImage, ImageSnapshot
from pixshop.domain.errors import (
    ConfigError,
    GenerationStoppedError,
    NoImageReturnedError,
    PromptBlockedError,
)
from pixshop.domain.services.transform_service import DEFAULT_AGGRESSIVENESS, ImageTransformService
from pixshop.infrastructure.genai import prompts

logger = logging.getLogger(__name__)

_CONTEXT_LABELS = {
    "edit": "edit",
    "filter": "filter",
    "adjustment": "adjustment",
    "background-removal": "background removal",
    "upscale": "upscale",
    "combine": "combination",
}


def _enum_name(value: Any) -> str:
    return getattr(value, "name", None) or str(value)


def handle_response(response: Any, context: str) -> GeneratedImage:
    """Extract the generated image from a generate_content response.

    Checked in order: prompt block, first inline image part, abnormal finish
    reason, and finally "no image" with any text the model sent instead.
    """
    label = _CONTEXT_LABELS.get(context, context)

    feedback = getattr(response, "prompt_feedback", None)
    block_reason = getattr(feedback, "block_reason", None) if feedback else None
    if block_reason:
        err = PromptBlockedError(_enum_name(block_reason), getattr(feedback, "block_reason_message", None))
        logger.error("%s request blocked: %s", context, err.message)
        raise err

    candidates = getattr(response, "candidates", None) or []
    candidate = candidates[0] if candidates else None
    content = getattr(candidate, "content", None)
    parts = (getattr(content, "parts", None) or []) if content else []

    for part in parts:
        inline = getattr(part, "inline_data", None)
        if inline is not None and getattr(inline, "data", None):
            mime_type = getattr(inline, "mime_type", None) or "image/png"
            logger.info("Received image data (%s) for %s", mime_type, context)
            return GeneratedImage(data=inline.data, mime_type=mime_type)

    finish_reason = getattr(candidate, "finish_reason", None) if candidate else None
    if finish_reason and _enum_name(finish_reason) != "STOP":
        err = GenerationStoppedError(label, _enum_name(finish_reason))
        logger.error(err.message)
        raise err

    text = "".join(getattr(p, "text", None) or "" for p in parts).strip() or None
    logger.error("Model response did not contain an image part for %s", context)
    raise NoImageReturnedError(label, text)


class GeminiTransformService(ImageTransformService):
    """Image transform service backed by Gemini image generation (google-genai SDK)."""

    def __init__(self, api_key: str | None, model: str = "gemini-2.5-flash-image") -> None:
        self.api_key = api_key
        self.model = model
        self._client: genai.Client | None = None

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            if not self.api_key:
                raise ConfigError(
                    "GEMINI_API_KEY is not set. Configure it or set GENAI_DISABLED=1 for offline mode."
                )
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def _generate(self, images: list[tuple[bytes, str]], prompt: str, context: str) -> GeneratedImage:
        contents: list[Any] = [
            types.Part.from_bytes(data=data, mime_type=mime_type) for data, mime_type in images
        ]
        contents.append(prompt)
        logger.info("Sending %d image(s) and %s prompt to %s", len(images), context, self.model)
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=contents,
            config=types.GenerateContentConfig(response_modalities=["IMAGE", "TEXT"]),
        )
        return handle_response(response, context)

    async def edit_at_point(
        self, image: ImageSnapshot, instruction: str, hotspot: Point
    ) -> GeneratedImage:
        logger.info("Starting generative edit at (%s, %s)", hotspot.x, hotspot.y)
        return await self._generate(
            [(image.data, image.mime_type)], prompts.edit_prompt(instruction, hotspot), "edit"
        )

    async def global_adjust(self, image: ImageSnapshot, instruction: str) -> GeneratedImage:
        return await self._generate(
            [(image.data, image.mime_type)], prompts.adjustment_prompt(instruction), "adjustment"
        )

    async def apply_filter(self, image: ImageSnapshot, instruction: str) -> GeneratedImage:
        return await self._generate(
            [(image.data, image.mime_type)], prompts.filter_prompt(instruction), "filter"
        )

    async def remove_background(
        self, image: ImageSnapshot, aggressiveness: int = DEFAULT_AGGRESSIVENESS
    ) -> GeneratedImage:
        return await self._generate(
            [(image.data, image.mime_type)],
            prompts.remove_background_prompt(aggressiveness),
            "background-removal",
        )

    async def upscale(self, image: GeneratedImage) -> GeneratedImage:
        return await self._generate([(image.data, image.mime_type)], prompts.upscale_prompt(), "upscale")

    async def combine(
        self,
        source: ImageSnapshot,
        destination: ImageSnapshot,
        instruction: str,
        source_point: Point,
        destination_point: Point,
    ) -> GeneratedImage:
        logger.info('Starting image combination: moving "%s"', instruction)
        return await self._generate(
            [(source.data, source.mime_type), (destination.data, destination.mime_type)],
            prompts.combine_prompt(instruction, source_point, destination_point),
            "combine",
        )
