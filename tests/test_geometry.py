"""Tests for the planar polygon helpers used by the plot mapping tools."""

from __future__ import annotations

import math

import pytest

from src.geometry.polygons import (
    METERS_PER_DEGREE_LAT,
    centroid,
    distance_m,
    edge_lengths,
    is_polygon,
    normalize_angle,
    plot_bounds,
    rotate_point,
    template_rectangle,
)

_MANILA = (14.5995, 120.9842)


def test_centroid_of_square() -> None:
    assert centroid([[0, 0], [0, 2], [2, 2], [2, 0]]) == (1.0, 1.0)


def test_centroid_does_not_mutate_input() -> None:
    points = [[1.0, 2.0], [3.0, 4.0], [5.0, 0.0]]
    centroid(points)
    assert points == [[1.0, 2.0], [3.0, 4.0], [5.0, 0.0]]


def test_centroid_of_empty_input_is_a_caller_error() -> None:
    with pytest.raises(ZeroDivisionError):
        centroid([])


def test_rotate_by_zero_is_identity() -> None:
    lat, lng = rotate_point((10.0, 20.0), (10.5, 19.25), 0)
    assert lat == pytest.approx(10.5)
    assert lng == pytest.approx(19.25)


def test_rotate_then_unrotate_returns_original() -> None:
    pivot = (14.0, 121.0)
    point = (14.0003, 121.0007)
    for angle in (17.0, -45.0, 90.0, 725.0):
        back = rotate_point(pivot, rotate_point(pivot, point, angle), -angle)
        assert back[0] == pytest.approx(point[0], abs=1e-12)
        assert back[1] == pytest.approx(point[1], abs=1e-12)


def test_rotate_quarter_turn_counter_clockwise() -> None:
    # A point east of the pivot (positive longitude offset) ends up north of it.
    lat, lng = rotate_point((0.0, 0.0), (0.0, 1.0), 90)
    assert lat == pytest.approx(1.0)
    assert lng == pytest.approx(0.0, abs=1e-12)


def test_rotate_wraps_around_full_turns() -> None:
    pivot = (1.0, 1.0)
    point = (1.2, 1.7)
    a = rotate_point(pivot, point, 30)
    b = rotate_point(pivot, point, 390)
    assert a[0] == pytest.approx(b[0])
    assert a[1] == pytest.approx(b[1])


def test_distance_is_zero_for_same_point() -> None:
    assert distance_m(_MANILA, _MANILA) == 0.0


def test_distance_one_degree_of_latitude() -> None:
    assert distance_m((0.0, 0.0), (1.0, 0.0)) == pytest.approx(111_195, rel=1e-3)


def test_distance_is_symmetric_and_satisfies_triangle_inequality() -> None:
    a = (14.5995, 120.9842)
    b = (14.6010, 120.9870)
    c = (14.5980, 120.9900)
    assert distance_m(a, b) == pytest.approx(distance_m(b, a))
    assert distance_m(a, c) <= distance_m(a, b) + distance_m(b, c)


def test_normalize_angle() -> None:
    assert normalize_angle(-10) == 350
    assert normalize_angle(360) == 0
    assert normalize_angle(370) == 10


def test_template_rectangle_has_requested_size() -> None:
    corners = template_rectangle(_MANILA, width_m=2.0, length_m=1.0)
    assert len(corners) == 4

    bottom_left, top_left, top_right, bottom_right = corners
    assert distance_m(bottom_left, top_left) == pytest.approx(1.0, rel=1e-2)
    assert distance_m(top_left, top_right) == pytest.approx(2.0, rel=1e-2)
    assert distance_m(top_right, bottom_right) == pytest.approx(1.0, rel=1e-2)


def test_template_rectangle_is_centred_on_click_for_any_rotation() -> None:
    for rotation in (0, 33, 90, 270):
        corners = template_rectangle(_MANILA, 3.0, 1.5, rotation)
        lat, lng = centroid(corners)
        assert lat == pytest.approx(_MANILA[0], abs=1e-12)
        assert lng == pytest.approx(_MANILA[1], abs=1e-12)


def test_template_rectangle_latitude_offset_uses_meters_per_degree() -> None:
    corners = template_rectangle((0.0, 0.0), width_m=2.0, length_m=2.0)
    assert corners[1][0] == pytest.approx(1 / METERS_PER_DEGREE_LAT)
    # At the equator cos(lat) == 1, so the longitude offset matches the latitude one.
    assert corners[2][1] == pytest.approx(1 / METERS_PER_DEGREE_LAT)


def test_edge_lengths_closes_the_ring() -> None:
    corners = template_rectangle(_MANILA, 2.0, 1.0)
    lengths = edge_lengths(corners)
    assert len(lengths) == 4
    assert lengths[3] == pytest.approx(distance_m(corners[3], corners[0]))


def test_edge_lengths_needs_two_points() -> None:
    assert edge_lengths([]) == []
    assert edge_lengths([(1.0, 1.0)]) == []


def test_plot_bounds_defaults_to_single_plot() -> None:
    (lat0, lng0), (lat1, lng1) = plot_bounds(120.0, 14.0, reference_lat=14.0)
    assert (lat0, lng0) == (14.0, 120.0)
    assert (lat1 - lat0) * METERS_PER_DEGREE_LAT == pytest.approx(1.0)
    per_m_lng = 1 / (METERS_PER_DEGREE_LAT * math.cos(math.radians(14.0)))
    assert lng1 - lng0 == pytest.approx(2.0 * per_m_lng)


def test_is_polygon() -> None:
    assert is_polygon([[0, 0], [0, 1], [1, 1]])
    assert not is_polygon([[0, 0], [0, 1]])
    assert not is_polygon({"x": 1, "y": 2})
    assert not is_polygon(None)
    assert not is_polygon([[0, 0], [0, "a"], [1, 1]])
