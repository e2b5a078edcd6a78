"""Oval dental chart geometry.

Teeth are placed at equal angular steps around an ellipse centred in the
viewbox, clockwise in the given order. One tooth (48 by convention) is pinned
to the top of the ellipse; the order then continues 47..41, 18..11, 21..28,
38..31 and closes back at 48.
"""
import math
from dataclasses import dataclass
from typing import List, Sequence

from clinic.chart.constants import (
    OVAL_PADDING,
    OVAL_TOP_TOOTH,
    OVAL_VIEWBOX_HEIGHT,
    OVAL_VIEWBOX_WIDTH,
    RADIUS_X_RATIO,
    RADIUS_Y_RATIO,
)


@dataclass(frozen=True)
class OvalPosition:
    fdi: int
    x: float
    y: float


@dataclass(frozen=True)
class ConnectorSegment:
    x1: float
    y1: float
    x2: float
    y2: float


def oval_positions(
    order: Sequence[int],
    width: float = OVAL_VIEWBOX_WIDTH,
    height: float = OVAL_VIEWBOX_HEIGHT,
    padding: float = OVAL_PADDING,
    top_tooth: int = OVAL_TOP_TOOTH
) -> List[OvalPosition]:
    """
    Place teeth along an ellipse.

    Args:
        order: FDI numbers in path order (32 permanent or 20 deciduous)
        width, height: Viewbox size
        padding: Inset from each viewbox edge
        top_tooth: Tooth pinned to the top; the first entry is used when absent

    Returns:
        One OvalPosition per entry, in input order (empty order -> empty list)
    """
    n = len(order)
    if n == 0:
        return []

    cx = width / 2
    cy = height / 2
    rx = max(0.0, (width - 2 * padding) * RADIUS_X_RATIO)
    ry = max(0.0, (height - 2 * padding) * RADIUS_Y_RATIO)

    top_index = list(order).index(top_tooth) if top_tooth in order else 0
    step = 2 * math.pi / n

    positions = []
    for i, fdi in enumerate(order):
        angle = math.pi / 2 - (i - top_index) * step
        # Screen y grows downward
        positions.append(OvalPosition(
            fdi=fdi,
            x=cx + rx * math.cos(angle),
            y=cy - ry * math.sin(angle),
        ))
    return positions


def connector_segments(positions: Sequence[OvalPosition]) -> List[ConnectorSegment]:
    """Segments joining consecutive teeth, with a final one closing the loop."""
    segments = []
    for i, start in enumerate(positions):
        end = positions[(i + 1) % len(positions)]
        segments.append(ConnectorSegment(x1=start.x, y1=start.y, x2=end.x, y2=end.y))
    return segments
