"""
Tests for the placement arithmetic in pdf_insert_backend.compositor.
"""

import pytest

from pdf_insert_backend.compositor import (
    BoxPlacement,
    TopAnchoredPlacement,
    fit_and_center,
    fit_to_page_top,
)
from pdf_insert_backend.models import ImageDimensions, PlacementRegion

TOLERANCE = 1e-9

REGIONS = [
    PlacementRegion(x=0, y=335, width=1600, height=625),
    PlacementRegion(x=10, y=20, width=100, height=100),
    PlacementRegion(x=-50, y=0, width=0.5, height=300),
    PlacementRegion(x=36, y=36, width=540, height=720),
]

IMAGES = [
    ImageDimensions(width=800, height=400),
    ImageDimensions(width=1, height=1),
    ImageDimensions(width=3000, height=17),
    ImageDimensions(width=17, height=3000),
    ImageDimensions(width=4032, height=3024),
]


class TestFitAndCenter:
    """Tests for fit_and_center."""

    def test_wide_image_in_template_box(self):
        rect = fit_and_center(
            PlacementRegion(x=0, y=335, width=1600, height=625),
            ImageDimensions(width=800, height=400),
        )
        assert rect.width == pytest.approx(1250)
        assert rect.height == pytest.approx(625)
        assert rect.x == pytest.approx(175)
        assert rect.y == pytest.approx(335)

    def test_small_image_is_scaled_up_without_cap(self):
        rect = fit_and_center(
            PlacementRegion(x=0, y=0, width=10_000, height=10_000),
            ImageDimensions(width=2, height=1),
        )
        assert rect.width == pytest.approx(10_000)
        assert rect.height == pytest.approx(5_000)
        assert rect.y == pytest.approx(2_500)

    @pytest.mark.parametrize("region", REGIONS)
    @pytest.mark.parametrize("image", IMAGES)
    def test_result_stays_inside_region(self, region, image):
        rect = fit_and_center(region, image)
        assert rect.x >= region.x - TOLERANCE
        assert rect.y >= region.y - TOLERANCE
        assert rect.right <= region.x + region.width + 1e-6
        assert rect.top <= region.y + region.height + 1e-6

    @pytest.mark.parametrize("region", REGIONS)
    @pytest.mark.parametrize("image", IMAGES)
    def test_aspect_ratio_is_preserved(self, region, image):
        rect = fit_and_center(region, image)
        assert rect.width / rect.height == pytest.approx(image.aspect_ratio, rel=1e-9)

    @pytest.mark.parametrize("region", REGIONS)
    @pytest.mark.parametrize("image", IMAGES)
    def test_binding_axis_touches_region(self, region, image):
        rect = fit_and_center(region, image)
        width_binds = region.width / image.width <= region.height / image.height
        if width_binds:
            assert rect.width == pytest.approx(region.width)
            assert rect.x == pytest.approx(region.x)
        else:
            assert rect.height == pytest.approx(region.height)
            assert rect.y == pytest.approx(region.y)

    def test_is_deterministic(self):
        region = PlacementRegion(x=3, y=7, width=333, height=111)
        image = ImageDimensions(width=640, height=480)
        assert fit_and_center(region, image) == fit_and_center(region, image)

    @pytest.mark.parametrize(
        "region, image",
        [
            (PlacementRegion(x=0, y=0, width=0, height=10), ImageDimensions(width=1, height=1)),
            (PlacementRegion(x=0, y=0, width=10, height=-1), ImageDimensions(width=1, height=1)),
            (PlacementRegion(x=0, y=0, width=10, height=10), ImageDimensions(width=0, height=1)),
            (PlacementRegion(x=0, y=0, width=10, height=10), ImageDimensions(width=1, height=float("inf"))),
        ],
    )
    def test_rejects_non_positive_dimensions(self, region, image):
        with pytest.raises(ValueError):
            fit_and_center(region, image)


class TestFitToPageTop:
    """Tests for the top-margin anchored page placement."""

    def test_square_image_on_letter_page(self):
        rect = fit_to_page_top(612, 792, 36, ImageDimensions(width=1000, height=1000))
        assert rect.width == pytest.approx(612)
        assert rect.height == pytest.approx(612)
        assert rect.x == pytest.approx(0)
        assert rect.y == pytest.approx(792 - 612 - 36)

    def test_short_image_is_anchored_to_top_not_centered(self):
        rect = fit_to_page_top(612, 792, 36, ImageDimensions(width=800, height=400))
        assert rect.height == pytest.approx(306)
        assert rect.top == pytest.approx(792 - 36)
        # A vertically centered image would sit at (756 - 306) / 2 = 225
        assert rect.y == pytest.approx(450)

    def test_tall_image_is_centered_horizontally_and_fills_below_margin(self):
        rect = fit_to_page_top(612, 792, 36, ImageDimensions(width=300, height=600))
        assert rect.height == pytest.approx(756)
        assert rect.width == pytest.approx(378)
        assert rect.x == pytest.approx((612 - 378) / 2)
        assert rect.y == pytest.approx(0)

    def test_zero_margin(self):
        rect = fit_to_page_top(612, 792, 0, ImageDimensions(width=612, height=100))
        assert rect.top == pytest.approx(792)

    @pytest.mark.parametrize("margin", [-1, 792, 1000])
    def test_rejects_margin_outside_page(self, margin):
        with pytest.raises(ValueError):
            fit_to_page_top(612, 792, margin, ImageDimensions(width=10, height=10))


class TestPlacementPolicies:
    """Tests for the named placement policies."""

    def test_box_placement_delegates_to_fit_and_center(self):
        region = PlacementRegion(x=0, y=335, width=1600, height=625)
        image = ImageDimensions(width=800, height=400)
        assert BoxPlacement(region).place(image) == fit_and_center(region, image)

    def test_top_anchored_placement(self):
        policy = TopAnchoredPlacement(page_width=612, page_height=792, top_margin=36)
        image = ImageDimensions(width=1000, height=1000)
        assert policy.page_size == (612, 792)
        assert policy.place(image) == fit_to_page_top(612, 792, 36, image)
