from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class MappedPoint:
    """A selected point in both coordinate spaces.

    `display` is relative to the rendered (possibly scaled) element and only
    drives marker placement; `native` is in the image's own pixel grid and is
    what gets sent to the transform service.
    """

    display: Point
    native: Point
