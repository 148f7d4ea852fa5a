from __future__ import annotations

from io import BytesIO

import numpy as np
from PIL import Image, UnidentifiedImageError

from pixshop.domain.entities.image import ImageSnapshot
from pixshop.domain.errors import ImagingError

_FORMAT_BY_MIME = {
    "image/png": "PNG",
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
    "image/webp": "WEBP",
    "image/gif": "GIF",
    "image/bmp": "BMP",
    "image/tiff": "TIFF",
}


class ImagingService:
    """Decode, resample and encode image payloads with Pillow and NumPy.

    Array convention (same as the rest of the codebase): float32 normalized to [0, 1],
    RGB (H, W, 3) or RGBA (H, W, 4).
    """

    def __init__(self, jpeg_quality: int = 95) -> None:
        self.jpeg_quality = jpeg_quality

    # --------- decoding ---------
    @staticmethod
    def decode(data: bytes) -> Image.Image:
        try:
            img = Image.open(BytesIO(data))
            img.load()
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise ImagingError(f"Could not decode image: {exc}") from exc
        return img

    def snapshot_from_bytes(
        self, data: bytes, mime_type: str | None = None, tag: str = "original"
    ) -> ImageSnapshot:
        img = self.decode(data)
        detected = Image.MIME.get(img.format or "", None)
        return ImageSnapshot(
            data=data,
            mime_type=mime_type or detected or "image/png",
            width=img.width,
            height=img.height,
            tag=tag,
        )

    # --------- encoding ---------
    def encode(self, img: Image.Image, mime_type: str) -> bytes:
        fmt = _FORMAT_BY_MIME.get(mime_type.lower(), "PNG")
        if fmt == "JPEG" and img.mode not in ("RGB", "L"):
            img = img.convert("RGB")
        buf = BytesIO()
        try:
            if fmt in ("JPEG", "WEBP"):
                img.save(buf, format=fmt, quality=self.jpeg_quality)
            else:
                img.save(buf, format=fmt)
        except (OSError, ValueError) as exc:
            raise ImagingError(f"Could not encode image as {fmt}: {exc}") from exc
        return buf.getvalue()

    # --------- geometry ---------
    def resample_to(self, data: bytes, size: tuple[int, int], mime_type: str) -> bytes:
        """Resize `data` to exactly `size` (width, height) with a Lanczos filter.

        Pure geometric resample; aspect ratio is not preserved.
        """
        img = self.decode(data)
        if img.mode not in ("RGB", "RGBA", "L", "LA"):
            img = img.convert("RGBA" if "A" in img.getbands() else "RGB")
        width, height = int(size[0]), int(size[1])
        if width <= 0 or height <= 0:
            raise ImagingError(f"Invalid target size {width}x{height}")
        if img.size != (width, height):
            img = img.resize((width, height), resample=Image.Resampling.LANCZOS)
        return self.encode(img, mime_type)

    # --------- array helpers ---------
    @staticmethod
    def to_rgba_array(img: Image.Image) -> np.ndarray:
        return np.asarray(img.convert("RGBA")).astype(np.float32) / 255.0

    # Composite over white: out = a * rgb + (1 - a) * 1
    @staticmethod
    def flatten_on_white(matrix: np.ndarray) -> np.ndarray:
        mat = matrix.astype(np.float32)
        if mat.ndim == 2:
            return mat
        if mat.shape[2] < 4:
            return mat[..., :3]
        alpha = mat[..., 3:4]
        out = mat[..., :3] * alpha + (1.0 - alpha)
        return np.clip(out, 0.0, 1.0).astype(np.float32)

    def to_jpeg_on_white(self, data: bytes) -> bytes:
        arr = self.flatten_on_white(self.to_rgba_array(self.decode(data)))
        img = Image.fromarray((arr * 255.0 + 0.5).astype("uint8"))
        return self.encode(img, "image/jpeg")
