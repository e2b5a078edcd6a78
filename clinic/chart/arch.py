"""Anatomical (two-arch) dental chart geometry.

Each arch is a parabola across the chart width:
- Upper arch sags toward the middle of the chart from the top edge
- Lower arch mirrors it upward from the bottom edge

Sixteen teeth per arch sit at evenly spaced x positions. The outward normal
at each tooth is estimated from a finite-difference tangent and decides which
side of the crown trapezoid is narrow.

Pure math only; rendering is left to the caller.
"""
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

from clinic.chart.constants import (
    ARCH_AMPLITUDE,
    ARCH_PATH_SEGMENTS,
    CHART_HEIGHT,
    CHART_WIDTH,
    CROWN_NARROW_RATIO,
    LOWER_ARCH_BOTTOM,
    LOWER_TEETH,
    NORMAL_SAMPLE_DX,
    TEETH_PER_ARCH,
    TOOTH_HEIGHT,
    TOOTH_WIDTH,
    UPPER_ARCH_TOP,
    UPPER_TEETH,
)


class ArchSide(str, Enum):
    UPPER = "upper"
    LOWER = "lower"


@dataclass(frozen=True)
class ToothPosition:
    """Tooth centre on the chart and its unit outward normal."""
    x: float
    y: float
    normal_x: float
    normal_y: float


def _arch_depth(x: float) -> float:
    t = 2 * x / CHART_WIDTH - 1  # -1..1 across the chart
    return ARCH_AMPLITUDE * (1 - t * t)


def upper_arch_y(x: float) -> float:
    return UPPER_ARCH_TOP + _arch_depth(x)


def lower_arch_y(x: float) -> float:
    return CHART_HEIGHT - LOWER_ARCH_BOTTOM - _arch_depth(x)


def arch_y(x: float, arch_side: ArchSide) -> float:
    """Y on the given arch at x (screen coordinates, y down)."""
    if ArchSide(arch_side) == ArchSide.UPPER:
        return upper_arch_y(x)
    return lower_arch_y(x)


def tooth_x(index: int) -> float:
    """Centre x of the index-th tooth of an arch (index 0 is the patient's right)."""
    return (index + 0.5) / TEETH_PER_ARCH * CHART_WIDTH


def tooth_position(index: int, arch_side: ArchSide) -> ToothPosition:
    """
    Position and outward normal of a tooth on an arch.

    Args:
        index: Position within the arch (0-15); other values extrapolate along the curve
        arch_side: "upper" or "lower"

    Returns:
        ToothPosition with a unit normal pointing away from the opposite arch
        (normal_y < 0 on the upper arch, > 0 on the lower arch)

    Raises:
        ValueError: If arch_side is not upper/lower
    """
    side = ArchSide(arch_side)
    x = tooth_x(index)
    y = arch_y(x, side)

    # Tangent sampled slightly ahead of the tooth
    slope = (arch_y(x + NORMAL_SAMPLE_DX, side) - y) / NORMAL_SAMPLE_DX
    length = math.hypot(slope, 1.0)
    if side == ArchSide.UPPER:
        normal_x, normal_y = slope / length, -1.0 / length
    else:
        normal_x, normal_y = -slope / length, 1.0 / length

    return ToothPosition(x=x, y=y, normal_x=normal_x, normal_y=normal_y)


def upper_tooth_positions() -> List[Tuple[int, ToothPosition]]:
    """(FDI number, position) for every upper tooth, 18 through 28."""
    return [(fdi, tooth_position(i, ArchSide.UPPER)) for i, fdi in enumerate(UPPER_TEETH)]


def lower_tooth_positions() -> List[Tuple[int, ToothPosition]]:
    """(FDI number, position) for every lower tooth, 48 through 38."""
    return [(fdi, tooth_position(i, ArchSide.LOWER)) for i, fdi in enumerate(LOWER_TEETH)]


def crown_vertices(cx: float, cy: float, normal_y: float) -> List[Tuple[float, float]]:
    """
    Corners of the crown trapezoid centred on (cx, cy).

    The narrow edge faces the arch curve: on the upper arch (normal_y < 0) it is
    the top edge, on the lower arch the bottom edge.

    Returns:
        Four (x, y) points: narrow-left, narrow-right, wide-right, wide-left
    """
    narrow_toward_arch = normal_y < 0
    half_w = TOOTH_WIDTH / 2
    half_h = TOOTH_HEIGHT / 2
    narrow_w = half_w * CROWN_NARROW_RATIO

    narrow_y = cy - half_h if narrow_toward_arch else cy + half_h
    wide_y = cy + half_h if narrow_toward_arch else cy - half_h

    return [
        (cx - narrow_w, narrow_y),
        (cx + narrow_w, narrow_y),
        (cx + half_w, wide_y),
        (cx - half_w, wide_y),
    ]


def format_number(value: float) -> str:
    """Compact SVG number: integers without a decimal part, others to 4 places."""
    if float(value).is_integer():
        return str(int(value))
    return str(round(value, 4))


def crown_path(cx: float, cy: float, normal_y: float) -> str:
    """SVG path string for the crown trapezoid."""
    (x1, y1), (x2, _), (x3, y2), (x4, _) = crown_vertices(cx, cy, normal_y)
    f = format_number
    return (
        f"M {f(x1)} {f(y1)} L {f(x2)} {f(y1)} "
        f"L {f(x3)} {f(y2)} L {f(x4)} {f(y2)} Z"
    )


def arch_guide_points(
    arch_side: ArchSide,
    segments: int = ARCH_PATH_SEGMENTS
) -> List[Tuple[float, float]]:
    """
    Sample the arch parabola at evenly spaced x from 0 to the chart width.

    Args:
        arch_side: "upper" or "lower"
        segments: Number of straight segments (segments + 1 points)

    Raises:
        ValueError: If segments < 1
    """
    if segments < 1:
        raise ValueError(f"Arch path needs at least one segment, got {segments}")

    side = ArchSide(arch_side)
    step = CHART_WIDTH / segments
    return [(i * step, arch_y(i * step, side)) for i in range(segments + 1)]


def arch_guide_path(arch_side: ArchSide, segments: int = ARCH_PATH_SEGMENTS) -> str:
    """Piecewise-linear SVG path along the arch ("M x y L x y ...")."""
    points = arch_guide_points(arch_side, segments)
    first_x, first_y = points[0]
    parts = [f"M {format_number(first_x)} {format_number(first_y)}"]
    parts.extend(f"L {format_number(x)} {format_number(y)}" for x, y in points[1:])
    return " ".join(parts)
