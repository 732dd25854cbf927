import numpy as np
import pytest

from plot_heatmap.heat_utils.frequency_grid import DegenerateRegion
from plot_heatmap.heat_utils.spatial_helpers import (
    Region,
    centers,
    fit_aspect_ratio,
    get_bbox,
    intersects,
    java_round,
    map_to_grid,
    map_to_grid_array,
)

"""
Unit Tests For heat_utils/spatial_helpers.py
"""


class TestMapToGrid:
    @pytest.fixture(autouse=True)
    def fixture(self):
        self.region = Region(-100.0, 50.0, 100.0, 150.0)
        yield

    def test_corners(self):
        assert map_to_grid((-100, 50), self.region, 1000, 500) == (0, 0)
        assert map_to_grid((100, 150), self.region, 1000, 500) == (1000, 500)

    def test_middle(self):
        assert map_to_grid((0, 100), self.region, 1000, 500) == (500, 250)

    def test_rounds_half_up(self):
        # 0.25 of a 10 wide region over 2 cells is 0.5 of a cell
        region = Region(0, 0, 10, 10)
        assert map_to_grid((2.5, 7.5), region, 2, 2) == (1, 2)

    def test_array_same_as_single(self):
        rng = np.random.default_rng(0)
        xs = rng.uniform(-100, 100, 20)
        ys = rng.uniform(50, 150, 20)
        gx, gy = map_to_grid_array(xs, ys, self.region, 640, 320)
        for x, y, cx, cy in zip(xs, ys, gx, gy):
            assert map_to_grid((x, y), self.region, 640, 320) == (cx, cy)

    @pytest.mark.parametrize("region", [Region(0, 0, 0, 5), Region(0, 3, 5, 3)])
    def test_degenerate_region(self, region):
        with pytest.raises(DegenerateRegion):
            map_to_grid((0, 0), region, 10, 10)
        with pytest.raises(DegenerateRegion):
            map_to_grid_array([0], [0], region, 10, 10)


class TestFitAspectRatio:
    def test_wide_region(self):
        assert fit_aspect_ratio(200, 100, 1000, 1000) == (1000, 500)

    def test_tall_region(self):
        assert fit_aspect_ratio(100, 200, 1000, 1000) == (500, 1000)

    def test_same_ratio(self):
        assert fit_aspect_ratio(30, 20, 300, 200) == (300, 200)

    def test_rounding(self):
        # 1000 * 100 / 300 = 333.33, 1000 * 200 / 300 = 666.67
        assert fit_aspect_ratio(300, 100, 1000, 1000) == (1000, 333)
        assert fit_aspect_ratio(200, 300, 1000, 1000) == (667, 1000)

    def test_even(self):
        assert fit_aspect_ratio(300, 100, 1000, 1000, even=True) == (1000, 332)
        assert fit_aspect_ratio(200, 300, 1000, 1000, even=True) == (666, 1000)
        # the side that was not recomputed is left alone
        assert fit_aspect_ratio(200, 100, 999, 999, even=True) == (999, 500)

    def test_never_zero(self):
        width, height = fit_aspect_ratio(1e6, 1, 100, 100)
        assert (width, height) == (100, 1)
        assert fit_aspect_ratio(1e6, 1, 100, 100, even=True) == (100, 2)

    def test_degenerate(self):
        with pytest.raises(DegenerateRegion):
            fit_aspect_ratio(0, 10, 100, 100)


class TestRegion:
    def test_parse(self):
        assert Region.parse("0,1,10,20") == Region(0, 1, 10, 20)
        assert Region.parse("10, 20, 0, 1") == Region(0, 1, 10, 20)

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            Region.parse("0,1,10")
        with pytest.raises(ValueError):
            Region.parse("a,b,c,d")

    def test_buffer_and_union(self):
        region = Region(0, 0, 10, 10).buffer(1, 2)
        assert region == Region(-1, -2, 11, 12)
        assert region.union(Region(5, 5, 20, 6)) == Region(-1, -2, 20, 12)
        assert region.union(None) == region


class TestShapeHelpers:
    @pytest.fixture(autouse=True)
    def fixture(self):
        self.mbrs = np.array([[0, 0, 2, 2], [5, 5, 5, 5], [-4, 1, -2, 3]], dtype=float)
        yield

    def test_get_bbox(self):
        assert get_bbox(self.mbrs) == Region(-4, 0, 5, 5)
        assert get_bbox(np.empty((0, 4))) is None

    def test_centers(self):
        xs, ys = centers(self.mbrs)
        assert list(xs) == [1, 5, -3]
        assert list(ys) == [1, 5, 2]

    def test_intersects(self):
        mask = intersects(self.mbrs, Region(1, 1, 5, 5))
        assert list(mask) == [True, True, False]


def test_java_round():
    assert list(java_round([0.5, 1.5, 2.5, -0.5, -1.5, 2.49])) == [1, 2, 3, 0, -1, 2]
