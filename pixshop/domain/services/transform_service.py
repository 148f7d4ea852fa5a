from __future__ import annotations

from abc import ABC, abstractmethod

from pixshop.domain.entities.geometry import Point
from pixshop.domain.entities.image import GeneratedImage, ImageSnapshot

DEFAULT_AGGRESSIVENESS = 3


class ImageTransformService(ABC):
    """Generative image operations.

    Every method returns the generated image or raises a TransformServiceError
    subclass when the model answers without one.
    """

    @abstractmethod
    async def edit_at_point(
        self, image: ImageSnapshot, instruction: str, hotspot: Point
    ) -> GeneratedImage: ...

    @abstractmethod
    async def global_adjust(self, image: ImageSnapshot, instruction: str) -> GeneratedImage: ...

    @abstractmethod
    async def apply_filter(self, image: ImageSnapshot, instruction: str) -> GeneratedImage: ...

    @abstractmethod
    async def remove_background(
        self, image: ImageSnapshot, aggressiveness: int = DEFAULT_AGGRESSIVENESS
    ) -> GeneratedImage: ...

    @abstractmethod
    async def upscale(self, image: GeneratedImage) -> GeneratedImage: ...

    @abstractmethod
    async def combine(
        self,
        source: ImageSnapshot,
        destination: ImageSnapshot,
        instruction: str,
        source_point: Point,
        destination_point: Point,
    ) -> GeneratedImage: ...
