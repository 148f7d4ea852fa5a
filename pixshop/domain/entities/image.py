from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ImageSnapshot:
    data: bytes = field(repr=False)
    mime_type: str
    width: int  # native pixel size, decoded once when the snapshot is created
    height: int
    tag: str = "original"  # operation that produced it: edited, filtered, combined, ...

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def extension(self) -> str:
        subtype = self.mime_type.split("/")[-1].lower()
        return {"jpeg": "jpg", "svg+xml": "svg"}.get(subtype, subtype)


@dataclass(frozen=True)
class GeneratedImage:
    """Raw output of the transform service, before the upscale pipeline."""

    data: bytes = field(repr=False)
    mime_type: str = "image/png"
