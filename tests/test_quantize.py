"""Tests for median cut, nearest-colour search, dithering, image I/O and the CLI."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image
from typer.testing import CliRunner

from pixel_canvas.canvas import IndexedCanvas, RgbaCanvas, RgbCanvas
from pixel_canvas.cli import app
from pixel_canvas.color_utils import SUM_DELTA_BOUND, squared_distance
from pixel_canvas.colour import RgbaColour, RgbColour
from pixel_canvas.config import QuantizeConfig
from pixel_canvas.dithering import (
    KERNEL_TOTAL,
    MARGIN,
    DitherMode,
    ErrorDiffusionState,
    reduce_simply,
    reduce_with_error_diffusion,
)
from pixel_canvas.image_io import (
    compose_side_by_side,
    load_canvas,
    save_canvas,
)
from pixel_canvas.nearest import NearestColourIndex, build_nearest_colour_index
from pixel_canvas.palette import (
    ColourChannelRange,
    PixelRange,
    generate_palette,
    median_cut,
)
from pixel_canvas.quantize import quantize

RED = RgbColour(255, 0, 0)

# -- Fixtures ----------------------------------------------------------


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(2024)


@pytest.fixture
def photo(rng: np.random.Generator) -> RgbCanvas:
    """Smooth gradient with noise: many distinct colours."""
    h, w = 24, 32
    canvas = RgbCanvas(w, h)
    ys, xs = np.mgrid[0:h, 0:w]
    base = np.stack([xs * 8, ys * 10, (xs + ys) * 4], axis=-1)
    noise = rng.integers(-6, 7, size=(h, w, 3))
    canvas.pixels[...] = np.clip(base + noise, 0, 255).astype(np.uint8)
    return canvas


@pytest.fixture
def four_colours() -> RgbCanvas:
    canvas = RgbCanvas(8, 8)
    canvas.box(0, 0, 3, 3, RgbColour(200, 10, 10), fill=True)
    canvas.box(4, 0, 7, 3, RgbColour(10, 200, 10), fill=True)
    canvas.box(0, 4, 3, 7, RgbColour(10, 10, 200), fill=True)
    canvas.box(4, 4, 7, 7, RgbColour(240, 240, 240), fill=True)
    return canvas


@pytest.fixture
def tmp_image(tmp_path: Path, photo: RgbCanvas) -> Path:
    p = tmp_path / "photo.png"
    Image.fromarray(np.ascontiguousarray(photo.pixels)).save(p)
    return p


# -- Config ------------------------------------------------------------

class TestConfig:
    def test_defaults(self) -> None:
        cfg = QuantizeConfig()
        assert cfg.mode == "error_diffusion"
        assert cfg.depth == 8
        assert cfg.split == "mean"

    def test_frozen(self) -> None:
        cfg = QuantizeConfig()
        with pytest.raises(AttributeError):
            cfg.depth = 4  # type: ignore[misc]


# -- Median cut --------------------------------------------------------

class TestChannelRange:
    def test_cutoff_tightens_to_present_values(self) -> None:
        channel = ColourChannelRange()
        channel.add(10)
        channel.add(20, count=3)
        assert channel.cutoff() == 11
        assert (channel.min, channel.max) == (10, 20)
        assert channel.sum == 70

    def test_cutoff_without_values_keeps_bounds(self) -> None:
        channel = ColourChannelRange(5, 9)
        assert channel.cutoff() == 5
        assert (channel.min, channel.max) == (5, 9)


class TestPixelRange:
    def test_divide_along_widest_channel_at_mean(self) -> None:
        rng = PixelRange()
        rng.add(0, 0, 0)
        rng.add(0, 100, 0)
        upper = rng.divide()
        assert (rng.green.min, rng.green.max) == (0, 50)
        assert (upper.green.min, upper.green.max) == (51, 100)
        assert (rng.red.min, rng.red.max) == (0, 0)

    def test_divide_at_midpoint(self) -> None:
        rng = PixelRange()
        rng.add(0, 0, 0)
        rng.add(0, 90, 0)
        rng.add(0, 100, 0)
        upper = rng.divide("midpoint")
        assert rng.green.max == 50
        assert upper.green.min == 51

    def test_green_wins_ties(self) -> None:
        rng = PixelRange()
        rng.add(0, 0, 0)
        rng.add(40, 40, 40)
        upper = rng.divide()
        assert upper.green.min == 21
        assert upper.red.min == 0

    def test_mean_of_empty_range_is_black(self) -> None:
        assert PixelRange().mean() == (0, 0, 0)


class TestMedianCut:
    def test_palette_shape(self, photo: RgbCanvas) -> None:
        palette = generate_palette(photo)
        assert palette.shape == (256, 3)
        assert palette.dtype == np.uint8

    def test_ranges_partition_the_pixels(self, photo: RgbCanvas) -> None:
        ranges = median_cut(photo)
        assert len(ranges) == 256
        assert sum(r.count for r in ranges) == photo.width * photo.height

    def test_depth_controls_range_count(self, photo: RgbCanvas) -> None:
        assert len(median_cut(photo, depth=3)) == 8
        palette = generate_palette(photo, depth=2)
        assert not palette[4:].any()

    def test_single_colour(self) -> None:
        canvas = RgbCanvas(13, 7)
        canvas.clear(RgbColour(12, 34, 56))
        palette = generate_palette(canvas)
        index = build_nearest_colour_index(palette)
        found, distance = index.find((12, 34, 56))
        assert distance == 0
        assert tuple(palette[found]) == (12, 34, 56)

    def test_distinct_colours_kept_exactly(self, four_colours: RgbCanvas) -> None:
        palette = {tuple(int(c) for c in e) for e in generate_palette(four_colours)}
        for colour in [(200, 10, 10), (10, 200, 10), (10, 10, 200), (240, 240, 240)]:
            assert colour in palette

    def test_alpha_ignored(self) -> None:
        canvas = RgbaCanvas(4, 4)
        canvas.clear(RgbaColour(9, 8, 7, 0))
        assert tuple(generate_palette(canvas)[0]) == (9, 8, 7)

    def test_invalid_arguments(self, photo: RgbCanvas) -> None:
        with pytest.raises(ValueError):
            median_cut(photo, depth=9)
        with pytest.raises(ValueError):
            median_cut(photo, split="median")
        with pytest.raises(TypeError):
            generate_palette(IndexedCanvas(2, 2))


# -- Nearest-colour index ----------------------------------------------

class TestNearestColourIndex:
    def test_exact_match(self, rng: np.random.Generator) -> None:
        palette = rng.integers(0, 256, size=(256, 3), dtype=np.uint8)
        index = NearestColourIndex(palette)
        for i in (0, 17, 128, 255):
            found, distance = index.find(palette[i])
            assert distance == 0
            assert tuple(palette[found]) == tuple(palette[i])

    def test_agrees_with_exhaustive_search(self, rng: np.random.Generator) -> None:
        palette = rng.integers(0, 256, size=(256, 3), dtype=np.uint8)
        index = NearestColourIndex(palette)
        queries = rng.integers(0, 256, size=(300, 3))
        for q in queries:
            best = min(squared_distance(q, p) for p in palette)
            found, distance = index.find(q)
            assert distance == best
            assert squared_distance(q, palette[found]) == best

    def test_small_palette(self) -> None:
        index = NearestColourIndex([(0, 0, 0), (255, 255, 255)])
        assert index.find_index((100, 100, 100)) == 0
        assert index.find_index((200, 130, 200)) == 1
        assert len(index) == 2

    def test_ties_resolve_to_highest_index(self) -> None:
        index = NearestColourIndex([(0, 0, 0), (9, 9, 9), (0, 0, 0), (1, 0, 0)])
        assert index.find((0, 0, 0)) == (2, 0)
        assert index.find((0, 1, 0)) == (2, 1)
        assert index.find((2, 0, 0)) == (3, 1)
        assert index.find_index((0, 0, 1)) == 2

    def test_buckets_by_channel_sum(self) -> None:
        index = NearestColourIndex([(1, 2, 3), (6, 0, 0), (0, 0, 7)])
        assert index.bucket(6) == [0, 1]
        assert index.bucket(7) == [2]
        assert index.bucket(0) == []

    def test_snapshot(self) -> None:
        palette = np.zeros((4, 3), dtype=np.uint8)
        index = NearestColourIndex(palette)
        assert index.is_current(palette)
        palette[2] = (9, 9, 9)
        assert not index.is_current(palette)
        assert index.find((9, 9, 9))[1] == 243

    @pytest.mark.parametrize("bad", [np.zeros((0, 3)), np.zeros((4,)), np.zeros((4, 2))])
    def test_rejects_malformed_palette(self, bad: np.ndarray) -> None:
        with pytest.raises(ValueError):
            NearestColourIndex(bad)

    def test_sum_bound_is_monotonic(self) -> None:
        assert SUM_DELTA_BOUND[0] == 0
        assert all(a <= b for a, b in zip(SUM_DELTA_BOUND, SUM_DELTA_BOUND[1:]))


# -- Dithering ---------------------------------------------------------

class TestErrorDiffusionState:
    def test_error_reaches_next_row(self) -> None:
        state = ErrorDiffusionState(5, 5)
        state.spread(0, (KERNEL_TOTAL, 0, 0))
        assert state.correction(1) == (7, 0, 0)
        state.advance()
        assert state.correction(0) == (7, 0, 0)
        assert state.correction(2) == (3, 0, 0)

    def test_margins_stay_zero(self) -> None:
        state = ErrorDiffusionState(3, 4)
        for x in range(3):
            state.spread(x, (100, -100, 50))
        assert not state.errors[:, :MARGIN].any()
        assert not state.errors[:, MARGIN + 3:].any()

    def test_last_row_spreads_only_rightwards(self) -> None:
        state = ErrorDiffusionState(4, 1)
        state.spread(1, (48, 48, 48))
        assert not state.errors[1:].any()
        assert state.correction(2) == (7, 7, 7)

    def test_negative_error_truncates_toward_zero(self) -> None:
        state = ErrorDiffusionState(4, 2)
        state.spread(0, (-6, 0, 0))
        assert state.correction(1) == (0, 0, 0)


class TestReduction:
    def _target(self, width: int, height: int) -> IndexedCanvas:
        dst = IndexedCanvas(width, height)
        dst.set_palette_entry(1, RgbColour(255, 255, 255))
        return dst

    def test_simple_maps_gray_to_one_entry(self) -> None:
        src = RgbCanvas(16, 16)
        src.clear(RgbColour(128, 128, 128))
        dst = self._target(16, 16)
        reduce_simply(src, dst, build_nearest_colour_index(dst.palette))
        assert np.all(dst.pixels == 1)

    def test_error_diffusion_mixes_entries(self) -> None:
        src = RgbCanvas(16, 16)
        src.clear(RgbColour(128, 128, 128))
        dst = self._target(16, 16)
        reduce_with_error_diffusion(src, dst, build_nearest_colour_index(dst.palette))
        used = {tuple(int(c) for c in dst.palette[i]) for i in np.unique(dst.pixels)}
        assert used == {(0, 0, 0), (255, 255, 255)}
        white_share = float(np.mean(dst.pixels == 1))
        assert 0.3 < white_share < 0.7


class TestQuantize:
    def test_red_round_trip_simple(self) -> None:
        canvas = RgbCanvas(4, 4)
        canvas.clear(RED)
        indexed = quantize(canvas, DitherMode.SIMPLE)
        assert indexed is not None
        assert np.all(indexed.palette[indexed.pixels] == (255, 0, 0))

    def test_solid_colour_error_diffusion(self) -> None:
        canvas = RgbCanvas(9, 5)
        canvas.clear(RgbColour(30, 60, 90))
        indexed = quantize(canvas, "error_diffusion")
        assert indexed is not None
        assert np.all(indexed.palette[indexed.pixels] == (30, 60, 90))

    def test_distinct_colours_exact(self, four_colours: RgbCanvas) -> None:
        for mode in DitherMode:
            indexed = quantize(four_colours, mode)
            assert indexed is not None
            rgb = indexed.to_rgb()
            assert rgb is not None
            np.testing.assert_array_equal(rgb.pixels, four_colours.pixels)

    def test_photo_error_is_small(self, photo: RgbCanvas) -> None:
        indexed = quantize(photo, DitherMode.SIMPLE)
        assert indexed is not None
        mapped = indexed.palette[indexed.pixels].astype(np.float64)
        err = np.sqrt(np.sum((mapped - photo.pixels) ** 2, axis=-1))
        assert float(np.mean(err)) < 12.0

    def test_to_indexed(self, photo: RgbCanvas) -> None:
        indexed = photo.to_indexed("simple")
        assert indexed is not None
        assert (indexed.width, indexed.height) == (photo.width, photo.height)

    def test_rejects_indexed_source(self) -> None:
        with pytest.raises(TypeError):
            quantize(IndexedCanvas(2, 2))

    def test_unknown_mode(self) -> None:
        with pytest.raises(ValueError):
            quantize(RgbCanvas(2, 2), "floyd")


# -- Image I/O ---------------------------------------------------------

class TestImageIO:
    def test_rgb_round_trip(self, tmp_image: Path, photo: RgbCanvas) -> None:
        canvas = load_canvas(tmp_image)
        assert isinstance(canvas, RgbCanvas)
        np.testing.assert_array_equal(canvas.pixels, photo.pixels)

    def test_rgba_round_trip(self, tmp_path: Path) -> None:
        rgba = RgbaCanvas(3, 2)
        rgba.clear(RgbaColour(1, 2, 3, 4))
        out = tmp_path / "alpha.png"
        assert save_canvas(rgba, out)
        loaded = load_canvas(out)
        assert isinstance(loaded, RgbaCanvas)
        assert loaded.pixel(2, 1) == RgbaColour(1, 2, 3, 4)

    def test_indexed_round_trip(self, tmp_path: Path, four_colours: RgbCanvas) -> None:
        indexed = quantize(four_colours, DitherMode.SIMPLE)
        assert indexed is not None
        out = tmp_path / "indexed.png"
        assert save_canvas(indexed, out)
        loaded = load_canvas(out)
        assert isinstance(loaded, IndexedCanvas)
        np.testing.assert_array_equal(loaded.pixels, indexed.pixels)
        rgb = loaded.to_rgb()
        assert rgb is not None
        np.testing.assert_array_equal(rgb.pixels, four_colours.pixels)

    def test_save_upscaled(self, tmp_path: Path, photo: RgbCanvas) -> None:
        out = tmp_path / "big.png"
        assert save_canvas(photo, out, pixel_upscale=4)
        with Image.open(out) as img:
            assert img.size == (128, 96)

    def test_missing_file(self, tmp_path: Path) -> None:
        assert load_canvas(tmp_path / "nope.png") is None

    def test_side_by_side(self, photo: RgbCanvas) -> None:
        indexed = quantize(photo, DitherMode.SIMPLE)
        assert indexed is not None
        sheet = compose_side_by_side(photo, indexed, gap=4)
        assert sheet is not None
        assert (sheet.width, sheet.height) == (68, 24)
        np.testing.assert_array_equal(sheet.pixels[:, :32], photo.pixels)
        assert sheet.pixel(33, 0) == RgbColour(30, 30, 30)


# -- CLI ---------------------------------------------------------------

class TestCli:
    def test_info(self, tmp_image: Path) -> None:
        result = CliRunner().invoke(app, ["info", str(tmp_image)])
        assert result.exit_code == 0
        assert "RGB" in result.output

    def test_single(self, tmp_image: Path, tmp_path: Path) -> None:
        out = tmp_path / "out" / "indexed.png"
        result = CliRunner().invoke(
            app, ["single", str(tmp_image), "-o", str(out), "--mode", "simple"],
        )
        assert result.exit_code == 0
        with Image.open(out) as img:
            assert img.mode == "P"
            assert img.size == (32, 24)

    def test_unknown_split_rule(self, tmp_image: Path, tmp_path: Path) -> None:
        out = tmp_path / "split.png"
        result = CliRunner().invoke(
            app, ["single", str(tmp_image), "-o", str(out), "--split", "median"],
        )
        assert result.exit_code == 2
        assert not out.exists()

    def test_split_option(self, tmp_image: Path, tmp_path: Path) -> None:
        out = tmp_path / "midpoint.png"
        result = CliRunner().invoke(
            app,
            [
                "single", str(tmp_image), "-o", str(out),
                "-m", "simple", "--split", "midpoint",
            ],
        )
        assert result.exit_code == 0
        assert out.exists()

    def test_missing_source(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(
            app, ["single", str(tmp_path / "none.png"), "-o", str(tmp_path / "o.png")],
        )
        assert result.exit_code == 1
