"""
Tests for tilepyramid.types module.

Tests envelope validation, in-place union and CRS coercion.
"""

import pytest
from pydantic import ValidationError
from pyproj import CRS

from tilepyramid.errors import InconsistentDimensionError, InvalidArgumentError
from tilepyramid.types import Envelope, Format, crs_label, to_crs


class TestEnvelope:
    """Test envelope model."""

    def test_from_bounds(self):
        """Test creating a 2-D envelope from coordinates."""
        env = Envelope.from_bounds(0, 1, 10, 11, crs="EPSG:4326")

        assert env.lower == (0.0, 1.0)
        assert env.upper == (10.0, 11.0)
        assert env.dimension == 2
        assert env.bounds == (0.0, 1.0, 10.0, 11.0)
        assert env.crs == CRS.from_epsg(4326)

    def test_zero_area_envelope_is_valid(self):
        """A degenerate envelope is a real extent, not an error."""
        env = Envelope(lower=(5, 5), upper=(5, 5))

        assert env.span(0) == 0
        assert env.span(1) == 0

    def test_inverted_corners_rejected(self):
        with pytest.raises(ValidationError):
            Envelope(lower=(10, 0), upper=(0, 10))

    def test_mismatched_corner_dimensions_rejected(self):
        with pytest.raises(ValidationError):
            Envelope(lower=(0, 0, 0), upper=(1, 1))

    def test_add_expands_in_place(self):
        """Test union takes component-wise min and max."""
        env = Envelope.from_bounds(0, 0, 10, 10)
        other = Envelope.from_bounds(5, -5, 15, 5)

        result = env.add(other)

        assert result is env
        assert env.lower == (0, -5)
        assert env.upper == (15, 10)
        assert other.lower == (5, -5)

    def test_add_three_dimensions(self):
        env = Envelope(lower=(0, 0, 100), upper=(1, 1, 200))
        env.add(Envelope(lower=(-1, 0, 50), upper=(0, 2, 150)))

        assert env.lower == (-1, 0, 50)
        assert env.upper == (1, 2, 200)

    def test_add_dimension_mismatch(self):
        env = Envelope.from_bounds(0, 0, 10, 10)

        with pytest.raises(InconsistentDimensionError):
            env.add(Envelope(lower=(0, 0, 0), upper=(1, 1, 1)))

    def test_add_crs_mismatch(self):
        env = Envelope.from_bounds(0, 0, 10, 10, crs="EPSG:4326")

        with pytest.raises(InvalidArgumentError):
            env.add(Envelope.from_bounds(0, 0, 10, 10, crs="EPSG:3857"))

    def test_add_adopts_crs(self):
        env = Envelope.from_bounds(0, 0, 10, 10)
        env.add(Envelope.from_bounds(0, 0, 1, 1, crs="EPSG:4326"))

        assert env.crs == CRS.from_epsg(4326)

    def test_contains_and_intersects(self):
        outer = Envelope.from_bounds(0, 0, 10, 10)
        inner = Envelope.from_bounds(2, 2, 8, 8)
        touching = Envelope.from_bounds(10, 10, 20, 20)
        apart = Envelope.from_bounds(11, 11, 20, 20)

        assert outer.contains(inner)
        assert not inner.contains(outer)
        assert outer.intersects(touching)
        assert not outer.intersects(apart)

    def test_bounds_requires_2d(self):
        with pytest.raises(InconsistentDimensionError):
            Envelope(lower=(0,), upper=(1,)).bounds

    def test_str(self):
        assert str(Envelope.from_bounds(0, 0, 15, 15)) == "BOX(0 0, 15 15)"


class TestCRS:
    """Test CRS coercion helpers."""

    def test_to_crs_from_string_and_int(self):
        assert to_crs("EPSG:4326") == CRS.from_epsg(4326)
        assert to_crs(3857) == CRS.from_epsg(3857)

    def test_to_crs_passthrough(self, wgs84):
        assert to_crs(wgs84) is wgs84

    def test_to_crs_missing(self):
        with pytest.raises(InvalidArgumentError):
            to_crs(None)

    def test_to_crs_invalid(self):
        with pytest.raises(InvalidArgumentError) as exc_info:
            to_crs("not a crs")
        assert exc_info.value.cause is not None

    def test_crs_label_prefers_name(self, wgs84):
        assert crs_label(wgs84) == "WGS 84"

    def test_format_values(self):
        assert Format("image/png") is Format.PNG
