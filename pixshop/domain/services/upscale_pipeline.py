from __future__ import annotations

import logging
from dataclasses import dataclass

from pixshop.domain.entities.image import GeneratedImage, ImageSnapshot
from pixshop.domain.errors import ImagingError, UpscaleError
from pixshop.domain.services.imaging_service import ImagingService
from pixshop.domain.services.transform_service import ImageTransformService

logger = logging.getLogger(__name__)


@dataclass
class UpscalePipeline:
    """
    Repair the resolution loss of a generative edit.

    The generation service usually answers with a smaller image than it was
    given. The pipeline brings the result back to the exact pixel size of a
    trusted reference (the untouched original of the active history):

    1. Ask the transform service for an AI upscale of the generated image.
    2. Resample that intermediate to the reference's width and height.
    3. If step 1 or 2 fails for any reason, resample the generated image
       itself to the reference size instead.

    Only when the fallback resample also fails does the pipeline raise
    UpscaleError, and the caller must treat the whole edit as failed.
    The output keeps the generated image's MIME type.
    """

    transform: ImageTransformService
    imaging: ImagingService

    async def run(
        self, generated: GeneratedImage, reference: ImageSnapshot, tag: str
    ) -> ImageSnapshot:
        target = reference.size
        mime_type = generated.mime_type
        try:
            upscaled = await self.transform.upscale(generated)
            data = self.imaging.resample_to(upscaled.data, target, mime_type)
        except Exception as exc:
            logger.warning("AI upscale failed (%s); falling back to direct resample", exc)
            data = self._fallback(generated, target)
        else:
            logger.debug("AI upscale succeeded, resampled to %sx%s", *target)
        return ImageSnapshot(
            data=data, mime_type=mime_type, width=target[0], height=target[1], tag=tag
        )

    def _fallback(self, generated: GeneratedImage, target: tuple[int, int]) -> bytes:
        try:
            return self.imaging.resample_to(generated.data, target, generated.mime_type)
        except ImagingError as exc:
            logger.error("Fallback resample failed: %s", exc)
            raise UpscaleError(f"Could not restore the image resolution: {exc.message}") from exc
