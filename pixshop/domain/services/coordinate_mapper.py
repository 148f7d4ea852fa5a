from __future__ import annotations

import math

from pixshop.domain.entities.geometry import MappedPoint, Point


def _round_half_up(value: float) -> int:
    # Browser Math.round semantics: 2.5 -> 3, -2.5 -> -2
    return int(math.floor(value + 0.5))


def map_pointer(
    offset_x: float,
    offset_y: float,
    client_width: float,
    client_height: float,
    natural_width: float,
    natural_height: float,
) -> MappedPoint:
    """Translate a pointer offset on a rendered image into native pixel coordinates.

    The caller must only invoke this once the element has a non-zero rendered size.
    """
    scale_x = natural_width / client_width
    scale_y = natural_height / client_height
    return MappedPoint(
        display=Point(x=offset_x, y=offset_y),
        native=Point(x=_round_half_up(offset_x * scale_x), y=_round_half_up(offset_y * scale_y)),
    )
