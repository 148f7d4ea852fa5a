from __future__ import annotations

import logging

from pixshop.domain.entities.geometry import Point
from pixshop.domain.entities.image import GeneratedImage, ImageSnapshot
from pixshop.domain.services.imaging_service import ImagingService
from pixshop.domain.services.transform_service import DEFAULT_AGGRESSIVENESS, ImageTransformService

logger = logging.getLogger(__name__)


class LocalTransformService(ImageTransformService):
    """Offline stand-in used when GENAI_DISABLED=1.

    Content is not changed. Every generative operation answers with the input
    squeezed to `size x size` PNG, reproducing the resolution loss of the real
    service so the upscale pipeline has work to do. `upscale` doubles the size.
    """

    def __init__(self, imaging: ImagingService, size: int = 512) -> None:
        self.imaging = imaging
        self.size = size

    def _squeeze(self, data: bytes) -> GeneratedImage:
        out = self.imaging.resample_to(data, (self.size, self.size), "image/png")
        return GeneratedImage(data=out, mime_type="image/png")

    async def edit_at_point(
        self, image: ImageSnapshot, instruction: str, hotspot: Point
    ) -> GeneratedImage:
        logger.debug("local edit at (%s, %s): %s", hotspot.x, hotspot.y, instruction)
        return self._squeeze(image.data)

    async def global_adjust(self, image: ImageSnapshot, instruction: str) -> GeneratedImage:
        return self._squeeze(image.data)

    async def apply_filter(self, image: ImageSnapshot, instruction: str) -> GeneratedImage:
        return self._squeeze(image.data)

    async def remove_background(
        self, image: ImageSnapshot, aggressiveness: int = DEFAULT_AGGRESSIVENESS
    ) -> GeneratedImage:
        return self._squeeze(image.data)

    async def upscale(self, image: GeneratedImage) -> GeneratedImage:
        img = self.imaging.decode(image.data)
        out = self.imaging.resample_to(image.data, (img.width * 2, img.height * 2), image.mime_type)
        return GeneratedImage(data=out, mime_type=image.mime_type)

    async def combine(
        self,
        source: ImageSnapshot,
        destination: ImageSnapshot,
        instruction: str,
        source_point: Point,
        destination_point: Point,
    ) -> GeneratedImage:
        return self._squeeze(destination.data)
