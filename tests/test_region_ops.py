"""
Tests for destructive region operations.

Tests cover:
- Clone stamp mapping, locality and out-of-bounds sampling
- Red eye correction inside a disk
- Crop extraction, partial overlap and invalid rectangles
- Sticker compositing
- Width-based resize
"""

import math

import numpy as np
import pytest

from RT_Libs.ImageEditingLib.image_models import CropRect, Sticker
from RT_Libs.ImageEditingLib.raster_image import RasterImage
from RT_Libs.ImageEditingLib.region_ops import (
    apply_clone_stamp,
    apply_red_eye_correction,
    composite_stickers,
    crop_image,
    resize_to_width,
    sticker_font_size,
)
from RT_Libs.errors import InvalidRegion

WHITE = (255, 255, 255, 255)


class TestCloneStamp:
    """Test clone stamp disk copying."""

    def test_copies_source_disk(self, large_gradient):
        """Test that disk pixels take the value at the offset source location."""
        result = apply_clone_stamp(large_gradient, 5, 5, 12, 10, radius=3)

        assert result.pixel(5, 5) == (120, 100, 7, 255)
        assert result.pixel(7, 5) == (140, 100, 7, 255)
        assert result.pixel(5, 8) == (120, 130, 7, 255)

    def test_pixels_outside_disk_unchanged(self, large_gradient):
        """Test that only pixels within the radius are modified."""
        result = apply_clone_stamp(large_gradient, 5, 5, 12, 10, radius=3)

        before = large_gradient.to_array()
        after = result.to_array()
        ys, xs = np.mgrid[0:20, 0:20]
        outside = (xs - 5) ** 2 + (ys - 5) ** 2 > 9

        np.testing.assert_array_equal(after[outside], before[outside])
        assert result.pixel(9, 5) == (90, 50, 7, 255)

    def test_input_not_modified(self, large_gradient):
        """Test that the source image is left intact."""
        apply_clone_stamp(large_gradient, 5, 5, 12, 10, radius=3)

        assert large_gradient.pixel(5, 5) == (50, 50, 7, 255)

    def test_out_of_bounds_source_leaves_pixel(self, large_gradient):
        """Test that targets whose source sample is outside the image are kept."""
        result = apply_clone_stamp(large_gradient, 1, 1, 18, 18, radius=3)

        assert result.pixel(1, 1) == (180, 180, 7, 255)
        assert result.pixel(2, 1) == (190, 180, 7, 255)
        # (3, 3) would sample (20, 20)
        assert result.pixel(3, 3) == (30, 30, 7, 255)

    def test_overlapping_disks_read_original(self, large_gradient):
        """Test that sampling never reads already-cloned pixels."""
        result = apply_clone_stamp(large_gradient, 10, 10, 11, 10, radius=3)

        for x in range(7, 14):
            assert result.pixel(x, 10) == ((x + 1) * 10, 100, 7, 255)

    def test_same_source_and_target_is_identity(self, large_gradient):
        """Test that a zero offset reproduces the image."""
        assert apply_clone_stamp(large_gradient, 10, 10, 10, 10, radius=5) == large_gradient

    @pytest.mark.parametrize("target", [(-50, -50), (25, 5), (-2.5, -2.5)])
    def test_target_outside_image(self, large_gradient, target):
        """Test that a disk with no pixel on the canvas is rejected."""
        with pytest.raises(InvalidRegion):
            apply_clone_stamp(large_gradient, target[0], target[1], 5, 5, radius=3)

    def test_target_partially_outside(self, large_gradient):
        """Test that the on-canvas part of an edge disk is still cloned."""
        result = apply_clone_stamp(large_gradient, -1, 5, 10, 5, radius=3)

        assert result.pixel(0, 5) == (110, 50, 7, 255)
        assert result.pixel(3, 5) == large_gradient.pixel(3, 5)

    @pytest.mark.parametrize("radius", [0, -2, math.nan])
    def test_invalid_radius(self, large_gradient, radius):
        """Test that non-positive radii are rejected."""
        with pytest.raises(InvalidRegion):
            apply_clone_stamp(large_gradient, 5, 5, 10, 10, radius=radius)

    def test_non_finite_point(self, large_gradient):
        """Test that non-finite coordinates are rejected."""
        with pytest.raises(InvalidRegion):
            apply_clone_stamp(large_gradient, math.inf, 5, 10, 10, radius=3)


class TestRedEyeCorrection:
    """Test red eye desaturation."""

    def test_corrects_red_pixels(self):
        """Test the replacement value and alpha preservation."""
        image = RasterImage.blank(31, 31, (200, 30, 40, 128))

        result = apply_red_eye_correction(image, 15, 15)

        assert result.pixel(15, 15) == (35, 35, 35, 128)

    def test_disk_boundary(self):
        """Test that the default radius of 15 includes its boundary only."""
        image = RasterImage.blank(31, 31, (200, 30, 40, 255))

        result = apply_red_eye_correction(image, 15, 15)

        assert result.pixel(0, 15) == (35, 35, 35, 255)
        assert result.pixel(15, 30) == (35, 35, 35, 255)
        assert result.pixel(0, 0) == (200, 30, 40, 255)

    def test_non_red_pixels_untouched(self):
        """Test that red == green + blue does not qualify."""
        image = RasterImage.blank(9, 9, (100, 60, 40, 255))

        result = apply_red_eye_correction(image, 4, 4, radius=4)

        assert result == image

    def test_floor_division(self):
        """Test that odd green + blue sums round down."""
        image = RasterImage.blank(3, 3, (250, 10, 21, 255))

        result = apply_red_eye_correction(image, 1, 1, radius=1)

        assert result.pixel(1, 1) == (15, 15, 15, 255)

    def test_mixed_region(self, sample_rgba_colors):
        """Test that only red-dominant colours are replaced."""
        arr = np.array([sample_rgba_colors], dtype=np.uint8)
        image = RasterImage.from_array(arr)

        result = apply_red_eye_correction(image, 2, 0, radius=10)

        assert result.pixel(0, 0) == (0, 0, 0, 255)
        for x in range(1, len(sample_rgba_colors)):
            assert result.pixel(x, 0) == sample_rgba_colors[x]

    def test_input_not_modified(self):
        """Test that the source image is left intact."""
        image = RasterImage.blank(5, 5, (200, 30, 40, 255))

        apply_red_eye_correction(image, 2, 2, radius=2)

        assert image.pixel(2, 2) == (200, 30, 40, 255)

    def test_disk_outside_image(self):
        """Test that a click whose disk misses the image is rejected."""
        image = RasterImage.blank(8, 8, (200, 30, 40, 255))

        with pytest.raises(InvalidRegion):
            apply_red_eye_correction(image, 40, 40)

    def test_disk_partially_outside(self):
        """Test that an edge disk corrects the pixels it covers."""
        image = RasterImage.blank(8, 8, (200, 30, 40, 255))

        result = apply_red_eye_correction(image, -1, 0, radius=2)

        assert result.pixel(0, 0) == (35, 35, 35, 255)
        assert result.pixel(2, 0) == (200, 30, 40, 255)

    @pytest.mark.parametrize("radius", [0, -1])
    def test_invalid_radius(self, gradient_image, radius):
        """Test that non-positive radii are rejected."""
        with pytest.raises(InvalidRegion):
            apply_red_eye_correction(gradient_image, 2, 2, radius=radius)


class TestCrop:
    """Test rectangular crop."""

    def test_inside_crop(self, gradient_image):
        """Test output dimensions and content of a fully inside crop."""
        result = crop_image(gradient_image, CropRect(1, 1, 3, 2))

        assert result.size == (3, 2)
        assert result.pixel(0, 0) == gradient_image.pixel(1, 1)
        assert result.pixel(2, 1) == gradient_image.pixel(3, 2)

    def test_partial_overlap_is_transparent(self, gradient_image):
        """Test that parts outside the source become transparent black."""
        result = crop_image(gradient_image, CropRect(4, 3, 4, 4))

        assert result.size == (4, 4)
        assert result.pixel(0, 0) == (160, 150, 70, 255)
        assert result.pixel(1, 1) == (200, 200, 90, 255)
        assert result.pixel(2, 0) == (0, 0, 0, 0)
        assert result.pixel(0, 2) == (0, 0, 0, 0)

    def test_negative_origin(self, gradient_image):
        """Test that a rectangle starting left of the image is padded."""
        result = crop_image(gradient_image, CropRect(-2, 0, 3, 1))

        assert result.pixel(0, 0) == (0, 0, 0, 0)
        assert result.pixel(2, 0) == gradient_image.pixel(0, 0)

    def test_accepts_dict_and_tuple(self, gradient_image):
        """Test the alternate rectangle spellings."""
        from_dict = crop_image(gradient_image, {"x": 1, "y": 1, "width": 3, "height": 2})
        from_tuple = crop_image(gradient_image, (1, 1, 3, 2))

        assert from_dict == from_tuple

    def test_fractional_rectangle(self, gradient_image):
        """Test that the origin is floored and the size truncated."""
        result = crop_image(gradient_image, (1.7, 0.2, 2.9, 2.5))

        assert result.size == (2, 2)
        assert result.pixel(0, 0) == gradient_image.pixel(1, 0)

    @pytest.mark.parametrize("rect", [
        (0, 0, 0, 3),
        (0, 0, 3, -1),
        (10, 10, 2, 2),
        (-5, -5, 3, 3),
        (0, math.nan, 2, 2),
    ])
    def test_invalid_rectangles(self, gradient_image, rect):
        """Test that empty, off-canvas and non-finite rectangles are rejected."""
        with pytest.raises(InvalidRegion):
            crop_image(gradient_image, rect)

    def test_malformed_tuple(self, gradient_image):
        """Test that a rectangle of the wrong arity is rejected."""
        with pytest.raises(InvalidRegion):
            crop_image(gradient_image, (1, 2))


class TestStickers:
    """Test sticker compositing."""

    def test_no_stickers_returns_copy(self, gradient_image):
        """Test that an empty sticker list leaves pixels unchanged."""
        assert composite_stickers(gradient_image, []) == gradient_image

    def test_draws_near_position(self):
        """Test that ink lands around the sticker centre only."""
        image = RasterImage.blank(100, 100, WHITE)

        result = composite_stickers(image, [Sticker(id=1, content="A", scale=3.0)])

        arr = result.to_array()
        centre = arr[35:65, 35:65]
        assert (centre != 255).any()
        assert result.pixel(0, 0) == WHITE
        assert result.pixel(99, 99) == WHITE
        assert image.pixel(50, 50) == WHITE

    def test_accepts_dicts(self):
        """Test that plain dict stickers are converted."""
        image = RasterImage.blank(100, 100, WHITE)

        result = composite_stickers(image, [{"content": "X", "x": 0.25, "y": 0.25, "scale": 3.0}])

        assert (result.to_array()[10:40, 10:40] != 255).any()
        assert (result.to_array()[60:, 60:] == 255).all()

    def test_later_stickers_drawn_on_top(self):
        """Test that overlapping stickers stack in list order."""
        image = RasterImage.blank(100, 100, WHITE)
        red = Sticker(id=1, content="M", scale=6.0, fill=(255, 0, 0, 255))
        blue = Sticker(id=2, content="M", scale=6.0, fill=(0, 0, 255, 255))

        red_on_top = composite_stickers(image, [blue, red]).to_array()
        blue_on_top = composite_stickers(image, [red, blue]).to_array()

        solid_red = np.all(red_on_top == (255, 0, 0, 255), axis=2)
        solid_blue = np.all(blue_on_top == (0, 0, 255, 255), axis=2)
        assert solid_red.any()
        assert not np.all(red_on_top == (0, 0, 255, 255), axis=2).any()
        np.testing.assert_array_equal(solid_red, solid_blue)

    def test_glyph_centred_on_position(self):
        """Test that ink is centred on (x * width, y * height)."""
        image = RasterImage.blank(200, 200, WHITE)

        def ink_box(x, y):
            arr = composite_stickers(image, [Sticker(id=1, content="O", x=x, y=y)]).to_array()
            ys, xs = np.nonzero(np.any(arr[:, :, :3] != 255, axis=2))
            return xs.min(), ys.min(), xs.max(), ys.max()

        x0, y0, x1, y1 = ink_box(0.3, 0.4)
        assert abs((x0 + x1) / 2 - 60) <= 2
        assert abs((y0 + y1) / 2 - 80) <= 3

        moved = ink_box(0.6, 0.7)
        assert abs(moved[0] - x0 - 60) <= 1
        assert abs(moved[1] - y0 - 60) <= 1
        assert abs((moved[2] - moved[0]) - (x1 - x0)) <= 1

    def test_sticker_fill_overrides_default(self):
        """Test that a sticker's own fill replaces the default ink colour."""
        image = RasterImage.blank(100, 100, WHITE)

        result = composite_stickers(
            image, [Sticker(id=1, content="M", scale=6.0, fill=(0, 200, 0, 255))]
        ).to_array()

        assert np.all(result == (0, 200, 0, 255), axis=2).any()
        assert not np.all(result == (0, 0, 0, 255), axis=2).any()

    def test_rejects_invalid_items(self, gradient_image):
        """Test that unsupported sticker values raise TypeError."""
        with pytest.raises(TypeError):
            composite_stickers(gradient_image, ["A"])

    def test_font_size(self):
        """Test font sizing relative to image width."""
        assert sticker_font_size(100, 1.0) == 10
        assert sticker_font_size(100, 2.0) == 20
        assert sticker_font_size(5, 1.0) == 1

    def test_sticker_validation(self):
        """Test sticker field validation."""
        with pytest.raises(ValueError):
            Sticker(id=1, content="A", x=1.5)
        with pytest.raises(ValueError):
            Sticker(id=1, content="A", scale=0)
        with pytest.raises(ValueError):
            Sticker(id=1, content="A", fill=(0, 0, 0))


class TestResizeToWidth:
    """Test aspect-preserving resize."""

    def test_upscale_dimensions(self, gradient_image):
        """Test that height follows the aspect ratio."""
        result = resize_to_width(gradient_image, 12)

        assert result.size == (12, 10)

    def test_same_width(self, gradient_image):
        """Test that resizing to the current width keeps the pixels."""
        assert resize_to_width(gradient_image, 6) == gradient_image

    def test_flat_colour_preserved(self):
        """Test that resampling a flat image keeps its colour."""
        image = RasterImage.blank(4, 4, (30, 60, 90, 255))

        result = resize_to_width(image, 8)

        np.testing.assert_allclose(result.pixel(3, 3), (30, 60, 90, 255), atol=1)

    def test_invalid_width(self, gradient_image):
        """Test that non-positive widths are rejected."""
        with pytest.raises(ValueError):
            resize_to_width(gradient_image, 0)
