from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

Color = tuple[int, int, int]
Point = tuple[float, float]

GAME_OVER_CLIP = "gameover"


@dataclass(frozen=True, slots=True)
class Region:
    """One wedge of the board.

    Angles are screen degrees: 0 points along +x and values grow clockwise
    because screen y grows downward. The interval is half-open [start, end).
    """

    index: int
    start_deg: float
    end_deg: float
    color: Color
    clip: str
    label: str = ""

    def contains(self, angle_deg: float) -> bool:
        return self.start_deg <= angle_deg < self.end_deg

    @property
    def mid_deg(self) -> float:
        return (self.start_deg + self.end_deg) / 2.0


DEFAULT_REGIONS: tuple[Region, ...] = (
    Region(0, 180.0, 270.0, (46, 204, 113), "green", "left"),
    Region(1, 270.0, 360.0, (231, 76, 60), "red", "top"),
    Region(2, 0.0, 90.0, (241, 196, 15), "yellow", "right"),
    Region(3, 90.0, 180.0, (52, 152, 219), "blue", "bottom"),
)


def validate_regions(regions: Sequence[Region]) -> None:
    if not regions:
        raise ValueError("at least one region is required")
    for expected, region in enumerate(regions):
        if region.index != expected:
            raise ValueError(f"region at position {expected} has index {region.index}")
        if not (0.0 <= region.start_deg < region.end_deg <= 360.0):
            raise ValueError(f"region {region.index} has an invalid interval")

    spans = sorted((r.start_deg, r.end_deg) for r in regions)
    cursor = 0.0
    for start, end in spans:
        if start != cursor:
            raise ValueError(f"regions leave a gap or overlap at {cursor:g} degrees")
        cursor = end
    if cursor != 360.0:
        raise ValueError("regions must cover the full circle")


def pointer_angle_deg(dx: float, dy: float) -> float:
    """Angle of (dx, dy) in [0, 360), clockwise on screen."""

    angle = math.degrees(math.atan2(dy, dx))
    if angle < 0.0:
        angle += 360.0
    # -tiny + 360 can round up to exactly 360.0; -0.0 stays -0.0.
    if angle >= 360.0 or angle == 0.0:
        angle = 0.0
    return angle


def resolve_sector(
    pointer: Point,
    center: Point,
    radius: float,
    regions: Sequence[Region] = DEFAULT_REGIONS,
) -> int | None:
    """Map a pointer position to a region index, or None outside the disc.

    Points exactly on the rim are inside. Points exactly on a separator go
    to the region whose interval starts there.
    """

    if radius <= 0:
        raise ValueError("radius must be > 0")

    dx = float(pointer[0]) - float(center[0])
    dy = float(pointer[1]) - float(center[1])
    if math.hypot(dx, dy) > radius:
        return None

    angle = pointer_angle_deg(dx, dy)
    for region in regions:
        if region.contains(angle):
            return region.index
    return None


def wedge_points(
    center: Point,
    radius: float,
    start_deg: float,
    end_deg: float,
    *,
    steps: int = 24,
) -> list[Point]:
    """Polygon outline of a wedge: the centre followed by points along the arc."""

    cx, cy = float(center[0]), float(center[1])
    n = max(2, int(steps))
    points: list[Point] = [(cx, cy)]
    for i in range(n + 1):
        a = math.radians(start_deg + (end_deg - start_deg) * (i / n))
        points.append((cx + math.cos(a) * radius, cy + math.sin(a) * radius))
    return points
