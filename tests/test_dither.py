"""Tests for the error-diffusion ditherer and the drawing entry point."""

from __future__ import annotations

import numpy as np
import pytest

from palette_quant.color import RGBA64
from palette_quant.dither import Dither211, as_paletted, as_sub_imager, dither211, dither_image
from palette_quant.draw import draw_src
from palette_quant.errors import PaletteTooLargeError
from palette_quant.geometry import Point, Rectangle
from palette_quant.palette import KDTreePalette, LinearPalette
from palette_quant.quantizer import map_nearest
from palette_quant.raster import PalettedImage, RGBAImage, UniformImage

BLACK = RGBA64.from_rgb8(0, 0, 0)
WHITE = RGBA64.from_rgb8(255, 255, 255)
GRAY_100 = RGBA64.from_rgb8(100, 100, 100)  # 25700 per channel
GRAY_200 = RGBA64.from_rgb8(200, 200, 200)

# Recorded output for a uniform 8-bit gray 100 source and {black, white}.
GOLDEN_4X4 = np.array(
    [
        [0, 1, 0, 1],
        [0, 1, 0, 1],
        [1, 0, 1, 0],
        [0, 1, 0, 1],
    ],
    dtype=np.uint8,
)


def _uniform(color: RGBA64, w: int, h: int, origin: Point = Point()) -> RGBAImage:
    img = RGBAImage.new(Rectangle(origin, origin.add(Point(w, h))))
    img.pix[:, :] = color
    return img


# -- Fixtures ----------------------------------------------------------


@pytest.fixture
def bw() -> LinearPalette:
    return LinearPalette([BLACK, WHITE])


@pytest.fixture
def gray_4x4() -> RGBAImage:
    return _uniform(GRAY_100, 4, 4)


@pytest.fixture
def random_rgba() -> RGBAImage:
    rng = np.random.default_rng(7)
    return RGBAImage.from_array(rng.integers(0, 256, size=(5, 6, 3), dtype=np.uint8))


# -- Core scan ---------------------------------------------------------


class TestDither211:
    def test_golden_black_white(self, gray_4x4: RGBAImage, bw: LinearPalette) -> None:
        out = dither211(gray_4x4, bw)
        np.testing.assert_array_equal(out.pix, GOLDEN_4X4)

    def test_golden_with_offset_bounds(self, bw: LinearPalette) -> None:
        src = _uniform(GRAY_100, 4, 4, origin=Point(5, -3))
        out = dither211(src, bw)
        assert out.bounds == src.bounds
        np.testing.assert_array_equal(out.pix, GOLDEN_4X4)

    def test_golden_with_kdtree_palette(self, gray_4x4: RGBAImage) -> None:
        out = dither211(gray_4x4, KDTreePalette([BLACK, WHITE]))
        np.testing.assert_array_equal(out.pix, GOLDEN_4X4)

    def test_single_pixel_exact_colour(self) -> None:
        target = RGBA64.from_rgb8(10, 20, 30)
        palette = LinearPalette([BLACK, target, WHITE])
        out = dither211(_uniform(target, 1, 1), palette)
        assert out.color_index_at(0, 0) == 1
        assert out.at(0, 0) == target

    def test_exact_palette_colours_diffuse_nothing(self) -> None:
        colors = [RGBA64.from_rgb8(*c) for c in [(0, 0, 0), (90, 30, 200), (255, 128, 0)]]
        rng = np.random.default_rng(3)
        choice = rng.integers(0, len(colors), size=(6, 7))
        src = RGBAImage.new(Rectangle.sized(7, 6))
        src.pix[:, :] = np.array(colors, dtype=np.uint16)[choice]

        out = dither211(src, LinearPalette(colors))
        np.testing.assert_array_equal(out.pix, choice.astype(np.uint8))

    def test_output_references_palette(self, gray_4x4: RGBAImage, bw: LinearPalette) -> None:
        out = dither211(gray_4x4, bw)
        assert out.palette == bw.color_palette()

    def test_overflow_saturates(self) -> None:
        # Wrapping 0xFFFF + carry would land near black and pick index 0.
        palette = LinearPalette([BLACK, RGBA64(0x8080, 0x8080, 0x8080)])
        out = dither211(_uniform(WHITE, 8, 3), palette)
        assert np.all(out.pix == 1)

    def test_negative_error_is_not_diffused(self, bw: LinearPalette) -> None:
        # Every pixel rounds up to white; the overshoot is dropped.
        out = dither211(_uniform(GRAY_200, 8, 8), bw)
        assert np.all(out.pix == 1)

    def test_deterministic_across_calls(self, random_rgba: RGBAImage) -> None:
        palette = LinearPalette([BLACK, WHITE, RGBA64.from_rgb8(255, 0, 0)])
        a = dither211(random_rgba, palette)
        b = dither211(random_rgba, palette)
        np.testing.assert_array_equal(a.pix, b.pix)

    def test_empty_source(self, bw: LinearPalette) -> None:
        out = dither211(RGBAImage.new(Rectangle.sized(0, 5)), bw)
        assert out.bounds.empty()

    def test_palette_too_large(self, gray_4x4: RGBAImage) -> None:
        colors = [RGBA64(i * 256, 0, 0) for i in range(256)] + [RGBA64(0, 1, 0)]
        with pytest.raises(PaletteTooLargeError) as exc_info:
            dither211(gray_4x4, LinearPalette(colors))
        assert exc_info.value.size == 257

    def test_256_colours_accepted(self, gray_4x4: RGBAImage) -> None:
        colors = [RGBA64(i * 257, i * 257, i * 257) for i in range(256)]
        out = dither211(gray_4x4, LinearPalette(colors))
        assert out.pix.shape == (4, 4)

    def test_mean_colour_closer_than_nearest(self, bw: LinearPalette) -> None:
        src = _uniform(GRAY_100, 32, 32)
        dithered = dither211(src, bw)
        nearest = map_nearest(src, bw)

        def mean_error(img: PalettedImage) -> float:
            shown = np.array(img.palette, dtype=np.float64)[img.pix][:, :, :3]
            return float(np.abs(shown.mean(axis=(0, 1)) - GRAY_100.r).mean())

        assert mean_error(dithered) < mean_error(nearest)


# -- Drawing entry point -----------------------------------------------


class TestDither211Draw:
    def test_draw_into_offset_region(self, gray_4x4: RGBAImage, bw: LinearPalette) -> None:
        dst = PalettedImage.new(Rectangle.sized(8, 8), bw.color_palette())
        Dither211().draw(dst, Rectangle.of(2, 2, 6, 6), gray_4x4, Point(0, 0))

        np.testing.assert_array_equal(dst.pix[2:6, 2:6], GOLDEN_4X4)
        untouched = dst.pix.copy()
        untouched[2:6, 2:6] = 0
        assert not untouched.any()

    def test_draw_crops_source(self, bw: LinearPalette) -> None:
        src = _uniform(GRAY_100, 8, 8)
        dst = PalettedImage.new(Rectangle.sized(4, 4), bw.color_palette())
        Dither211().draw(dst, dst.bounds, src, Point(2, 2))
        np.testing.assert_array_equal(dst.pix, GOLDEN_4X4)

    def test_draw_clips_to_destination(self, bw: LinearPalette) -> None:
        src = _uniform(GRAY_100, 4, 4)
        dst = PalettedImage.new(Rectangle.sized(3, 2), bw.color_palette())
        Dither211().draw(dst, Rectangle.sized(4, 4), src, Point(0, 0))
        np.testing.assert_array_equal(dst.pix, dither211(src.sub_image(dst.bounds), bw).pix)

    def test_draw_defaults_to_destination_palette(self, gray_4x4: RGBAImage) -> None:
        dst = PalettedImage.new(Rectangle.sized(4, 4), [BLACK, WHITE])
        Dither211().draw(dst, dst.bounds, gray_4x4, Point(0, 0))
        np.testing.assert_array_equal(dst.pix, GOLDEN_4X4)

    def test_empty_intersection_is_noop(self, gray_4x4: RGBAImage, bw: LinearPalette) -> None:
        dst = PalettedImage.new(Rectangle.sized(4, 4), bw.color_palette())
        dst.pix[:, :] = 1
        Dither211().draw(dst, Rectangle.of(10, 10, 14, 14), gray_4x4, Point(0, 0))
        Dither211().draw(dst, dst.bounds, gray_4x4, Point(100, 100))
        assert np.all(dst.pix == 1)

    def test_non_indexed_destination_copies(self, random_rgba: RGBAImage) -> None:
        dst = RGBAImage.new(Rectangle.sized(8, 8))
        Dither211().draw(dst, Rectangle.of(1, 2, 8, 8), random_rgba, Point(0, 0))

        np.testing.assert_array_equal(dst.pix[2:7, 1:7], random_rgba.pix)
        assert not dst.pix[:2].any()
        assert not dst.pix[:, :1].any()

    def test_uncroppable_source_copies(self, bw: LinearPalette) -> None:
        # Dithering would produce white pixels; a plain copy maps everything to black.
        dst = PalettedImage.new(Rectangle.sized(4, 4), bw.color_palette())
        Dither211().draw(dst, dst.bounds, UniformImage(GRAY_100), Point(0, 0))
        assert np.all(dst.pix == 0)

    def test_palette_too_large_on_draw(self, gray_4x4: RGBAImage, bw: LinearPalette) -> None:
        big = LinearPalette([RGBA64(i, i, i) for i in range(300)])
        dst = PalettedImage.new(Rectangle.sized(4, 4), bw.color_palette())
        with pytest.raises(PaletteTooLargeError) as exc_info:
            Dither211().draw(dst, dst.bounds, gray_4x4, Point(0, 0), big)
        assert exc_info.value.size == 300
        assert not dst.pix.any()

    def test_palette_too_large_with_uncroppable_source(self, bw: LinearPalette) -> None:
        big = LinearPalette([RGBA64(i, i, i) for i in range(300)])
        dst = PalettedImage.new(Rectangle.sized(4, 4), bw.color_palette())
        dst.pix[:, :] = 1
        with pytest.raises(PaletteTooLargeError):
            Dither211().draw(dst, dst.bounds, UniformImage(GRAY_100), Point(0, 0), big)
        assert np.all(dst.pix == 1)

    def test_oversized_destination_refused(self) -> None:
        colors = [RGBA64(i, i, i) for i in range(300)]
        with pytest.raises(PaletteTooLargeError) as exc_info:
            PalettedImage.new(Rectangle.sized(4, 4), colors)
        assert exc_info.value.size == 300

    def test_dither_image(self, gray_4x4: RGBAImage, bw: LinearPalette) -> None:
        out = dither_image(gray_4x4, bw)
        np.testing.assert_array_equal(out.pix, GOLDEN_4X4)


class TestCapabilities:
    def test_as_paletted(self, bw: LinearPalette) -> None:
        pd = PalettedImage.new(Rectangle.sized(2, 2), bw.color_palette())
        assert as_paletted(pd) is pd
        assert as_paletted(RGBAImage.new(Rectangle.sized(2, 2))) is None

    def test_as_sub_imager(self) -> None:
        img = RGBAImage.new(Rectangle.sized(2, 2))
        assert as_sub_imager(img) is img
        assert as_sub_imager(UniformImage(BLACK)) is None


# -- Direct copy -------------------------------------------------------


class TestDrawSrc:
    def test_identity_copy(self, random_rgba: RGBAImage) -> None:
        dst = RGBAImage.new(random_rgba.bounds)
        draw_src(dst, dst.bounds, random_rgba, Point(0, 0))
        np.testing.assert_array_equal(dst.pix, random_rgba.pix)

    def test_source_offset(self, random_rgba: RGBAImage) -> None:
        dst = RGBAImage.new(Rectangle.sized(3, 3))
        draw_src(dst, dst.bounds, random_rgba, Point(2, 1))
        np.testing.assert_array_equal(dst.pix, random_rgba.pix[1:4, 2:5])

    def test_paletted_to_paletted_copies_indices(self) -> None:
        # Duplicate entries must keep their original indices.
        palette = [BLACK, WHITE, BLACK]
        src = PalettedImage.new(Rectangle.sized(2, 1), palette)
        src.set_color_index(0, 0, 2)
        src.set_color_index(1, 0, 1)
        dst = PalettedImage.new(Rectangle.sized(2, 1), palette)
        draw_src(dst, dst.bounds, src, Point(0, 0))
        np.testing.assert_array_equal(dst.pix, [[2, 1]])

    def test_rgba_to_paletted_uses_nearest(self, bw: LinearPalette) -> None:
        src = RGBAImage.from_array(np.array([[[10, 10, 10], [240, 240, 240]]], dtype=np.uint8))
        dst = PalettedImage.new(src.bounds, bw.color_palette())
        draw_src(dst, dst.bounds, src, Point(0, 0))
        np.testing.assert_array_equal(dst.pix, [[0, 1]])

    def test_generic_source(self) -> None:
        dst = RGBAImage.new(Rectangle.sized(2, 2))
        draw_src(dst, dst.bounds, UniformImage(GRAY_100), Point(-5, 9))
        assert all(dst.at(x, y) == GRAY_100 for x in range(2) for y in range(2))
