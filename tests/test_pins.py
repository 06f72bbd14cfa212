"""Tests for pin placement around circle, square and border frames."""

import pytest

from stringart.errors import ConfigurationError
from stringart.pins import Pin, expected_pin_count, layout_pins

# ---------------------------------------------------------------------------
# Counts and bounds
# ---------------------------------------------------------------------------


class TestPinCount:
    @pytest.mark.parametrize("num_pins", [4, 7, 100, 201, 400])
    def test_circle_and_border_keep_requested_count(self, num_pins):
        for shape in ("circle", "border"):
            assert len(layout_pins(num_pins, 500, 500, shape)) == num_pins

    @pytest.mark.parametrize(
        "num_pins,expected", [(4, 4), (7, 4), (10, 8), (201, 200), (203, 200)]
    )
    def test_square_truncates_to_multiple_of_four(self, num_pins, expected):
        pins = layout_pins(num_pins, 500, 500, "square")
        assert len(pins) == expected
        assert expected_pin_count(num_pins, "square") == expected

    def test_indices_follow_layout_order(self):
        pins = layout_pins(37, 300, 200, "border")
        assert [p.index for p in pins] == list(range(37))


class TestPinBounds:
    @pytest.mark.parametrize("shape", ["circle", "square", "border"])
    @pytest.mark.parametrize("width,height", [(500, 500), (500, 354), (353, 500), (101, 77)])
    @pytest.mark.parametrize("margin", [0, 5, 12])
    def test_pins_stay_inside_margin(self, shape, width, height, margin):
        for p in layout_pins(60, width, height, shape, margin):
            assert margin <= p.x <= width - margin
            assert margin <= p.y <= height - margin

    @pytest.mark.parametrize("shape", ["circle", "square", "border"])
    def test_coordinates_are_whole_pixels(self, shape):
        for p in layout_pins(50, 333, 250, shape):
            assert float(p.x).is_integer()
            assert float(p.y).is_integer()


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


class TestCircle:
    def test_pin_zero_at_top_centre(self):
        assert layout_pins(200, 500, 500, "circle", 5)[0] == Pin(0, 250, 5)

    def test_four_pins_clockwise_from_top(self):
        pins = layout_pins(4, 100, 100, "circle", 0)
        assert [(p.x, p.y) for p in pins] == [(50, 0), (100, 50), (50, 100), (0, 50)]

    def test_radius_uses_smaller_side(self):
        pins = layout_pins(4, 200, 100, "circle", 10)
        # radius = 100/2 - 10 = 40, centre (100, 50)
        assert [(p.x, p.y) for p in pins] == [(100, 10), (140, 50), (100, 90), (60, 50)]


class TestSquare:
    def test_perimeter_walk_order(self):
        pins = layout_pins(8, 500, 500, "square", 5)
        assert [(p.x, p.y) for p in pins] == [
            (5, 5),
            (250, 5),
            (495, 5),
            (495, 250),
            (495, 495),
            (250, 495),
            (5, 495),
            (5, 250),
        ]

    def test_square_is_centred_in_wide_raster(self):
        pins = layout_pins(4, 300, 100, "square", 0)
        assert pins[0] == Pin(0, 100, 0)
        assert pins[1] == Pin(1, 200, 0)


class TestBorder:
    def test_pin_zero_at_top_left(self):
        assert layout_pins(50, 400, 300, "border", 7)[0] == Pin(0, 7, 7)

    def test_distribution_by_arc_length(self):
        # 490 x 290 rectangle, perimeter 1560, spacing 390
        pins = layout_pins(4, 500, 300, "border", 5)
        assert [(p.x, p.y) for p in pins] == [(5, 5), (395, 5), (495, 295), (105, 295)]


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestLayoutErrors:
    @pytest.mark.parametrize(
        "kwargs",
        [
            dict(num_pins=3, width=100, height=100),
            dict(num_pins=0, width=100, height=100),
            dict(num_pins=10, width=0, height=100),
            dict(num_pins=10, width=100, height=-5),
            dict(num_pins=10, width=100, height=100, shape="hexagon"),
            dict(num_pins=10, width=100, height=100, margin=50),
            dict(num_pins=10, width=100, height=100, margin=-1),
        ],
    )
    def test_invalid_layout_rejected(self, kwargs):
        with pytest.raises(ConfigurationError):
            layout_pins(**kwargs)
