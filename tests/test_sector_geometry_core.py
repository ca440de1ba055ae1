from __future__ import annotations

import math

import pytest

from simon_game.sector_geometry import (
    DEFAULT_REGIONS,
    Region,
    pointer_angle_deg,
    resolve_sector,
    validate_regions,
    wedge_points,
)

CENTER = (400.0, 260.0)
RADIUS = 140.0


def _at(angle_deg: float, dist: float) -> tuple[float, float]:
    a = math.radians(angle_deg)
    return (CENTER[0] + math.cos(a) * dist, CENTER[1] + math.sin(a) * dist)


def test_quadrant_mapping_uses_screen_clockwise_angles() -> None:
    assert resolve_sector(_at(225.0, 70.0), CENTER, RADIUS) == 0  # up-left
    assert resolve_sector(_at(315.0, 70.0), CENTER, RADIUS) == 1  # up-right
    assert resolve_sector(_at(45.0, 70.0), CENTER, RADIUS) == 2  # down-right
    assert resolve_sector(_at(135.0, 70.0), CENTER, RADIUS) == 3  # down-left


def test_axis_aligned_boundaries_follow_half_open_intervals() -> None:
    right = (CENTER[0] + 50.0, CENTER[1])
    down = (CENTER[0], CENTER[1] + 50.0)
    left = (CENTER[0] - 50.0, CENTER[1])
    up = (CENTER[0], CENTER[1] - 50.0)

    for _ in range(3):
        assert resolve_sector(right, CENTER, RADIUS) == 2
        assert resolve_sector(down, CENTER, RADIUS) == 3
        assert resolve_sector(left, CENTER, RADIUS) == 0
        assert resolve_sector(up, CENTER, RADIUS) == 1


def test_just_below_ninety_degrees_is_right_region() -> None:
    assert resolve_sector(_at(89.999, 100.0), CENTER, RADIUS) == 2
    assert resolve_sector(_at(90.001, 100.0), CENTER, RADIUS) == 3


def test_outside_disc_resolves_to_none_for_every_angle() -> None:
    for deg in range(0, 360, 15):
        assert resolve_sector(_at(float(deg), RADIUS + 1.0), CENTER, RADIUS) is None


def test_rim_and_center_are_inside() -> None:
    assert resolve_sector((CENTER[0] + RADIUS, CENTER[1]), CENTER, RADIUS) == 2
    assert resolve_sector((CENTER[0] - RADIUS, CENTER[1]), CENTER, RADIUS) == 0
    assert resolve_sector(CENTER, CENTER, RADIUS) == 2


def test_every_point_in_disc_maps_to_exactly_one_region() -> None:
    for deg in range(0, 360, 7):
        for dist in (1.0, 35.0, 90.0, RADIUS - 0.01):
            x, y = _at(float(deg) + 0.5, dist)
            idx = resolve_sector((x, y), CENTER, RADIUS)
            assert idx in (0, 1, 2, 3)
            angle = pointer_angle_deg(x - CENTER[0], y - CENTER[1])
            matches = [r.index for r in DEFAULT_REGIONS if r.contains(angle)]
            assert matches == [idx]


def test_pointer_angle_is_normalised() -> None:
    assert pointer_angle_deg(1.0, 0.0) == 0.0
    assert pointer_angle_deg(1.0, -0.0) == 0.0
    assert pointer_angle_deg(0.0, -1.0) == pytest.approx(270.0)
    assert 0.0 <= pointer_angle_deg(1.0, -1e-300) < 360.0


def test_invalid_radius_is_rejected() -> None:
    with pytest.raises(ValueError):
        resolve_sector(CENTER, CENTER, 0.0)


def test_region_validation_detects_gaps_and_bad_indices() -> None:
    validate_regions(DEFAULT_REGIONS)

    gap = (
        Region(0, 0.0, 90.0, (0, 0, 0), "a"),
        Region(1, 100.0, 360.0, (0, 0, 0), "b"),
    )
    with pytest.raises(ValueError):
        validate_regions(gap)

    misnumbered = (
        Region(1, 0.0, 180.0, (0, 0, 0), "a"),
        Region(0, 180.0, 360.0, (0, 0, 0), "b"),
    )
    with pytest.raises(ValueError):
        validate_regions(misnumbered)


def test_wedge_points_start_at_center_and_stay_on_arc() -> None:
    pts = wedge_points(CENTER, RADIUS, 0.0, 90.0, steps=8)
    assert pts[0] == CENTER
    assert len(pts) == 10
    for x, y in pts[1:]:
        assert math.hypot(x - CENTER[0], y - CENTER[1]) == pytest.approx(RADIUS)
    assert pts[1] == pytest.approx((CENTER[0] + RADIUS, CENTER[1]))
    assert pts[-1] == pytest.approx((CENTER[0], CENTER[1] + RADIUS))
