# SPDX-FileCopyrightText: 2026 Jeff Epler
#
# SPDX-License-Identifier: MIT

import logging

import pytest

from sixheat.heatmap import (
    DEFAULT_PALETTE,
    Geometry,
    HeatmapOptions,
    build_grid,
    parse_samples,
    quantize,
    rasterize,
    render_heatmap,
)
from sixheat.sixel import BACKGROUND


class TestParseSamples:
    def test_keeps_signed_integers(self):
        assert parse_samples(["1", "-2", "+3", "0"]) == [1, -2, 3, 0]

    def test_drops_every_malformed_token(self):
        tokens = ["x", "4", "x", "1.5", "x", "0x10", "1_000", "-", "7"]
        assert parse_samples(tokens) == [4, 7]

    def test_logs_dropped_count(self, caplog):
        caplog.set_level(logging.DEBUG, logger="sixheat.heatmap")
        parse_samples(["a", "1", "b"])
        assert "dropped 2 malformed" in caplog.text


class TestQuantize:
    def test_all_equal_maps_to_zero(self):
        assert quantize([5, 5, 5, 5], 5) == [0, 0, 0, 0]

    def test_single_sample(self):
        assert quantize([-12], 5) == [0]

    def test_empty(self):
        assert quantize([], 5) == []

    def test_rounds_half_up(self):
        # 1..4 over 5 colors: 0, 4/3, 8/3, 4
        assert quantize([1, 2, 3, 4], 5) == [0, 1, 3, 4]
        assert quantize([0, 1, 2], 2) == [0, 1, 1]

    def test_extremes(self):
        assert quantize([7, -3, 10, 0], 5) == [3, 0, 4, 1]

    def test_negative_range(self):
        assert quantize([-4, -2, 0], 3) == [0, 1, 2]

    def test_monotonic(self):
        samples = list(range(-50, 51, 3))
        indices = quantize(samples, 5)
        assert indices == sorted(indices)
        assert indices[0] == 0
        assert indices[-1] == 4


class TestBuildGrid:
    def test_empty_is_none(self):
        assert build_grid([], 32) is None

    @pytest.mark.parametrize(
        "n,max_cols,cols,rows",
        [(1, 32, 1, 1), (4, 32, 4, 1), (32, 32, 32, 1), (33, 32, 32, 2), (64, 32, 32, 2), (10, 3, 3, 4)],
    )
    def test_shape(self, n, max_cols, cols, rows):
        grid = build_grid([0] * n, max_cols)
        assert grid is not None
        assert (grid.cols, grid.rows) == (cols, rows)
        assert len(grid.cells) == n


class TestGeometry:
    def test_single_row(self):
        grid = build_grid([0, 1, 3, 4], 32)
        geometry = Geometry.for_grid(grid, 16, 4)
        assert geometry.width == 76
        assert geometry.unpadded_height == 16
        assert geometry.height == 18

    def test_already_aligned(self):
        grid = build_grid([0] * 40, 32)
        geometry = Geometry.for_grid(grid, 16, 4)
        assert geometry.unpadded_height == 36
        assert geometry.height == 36

    def test_padding_is_less_than_a_band(self):
        for rows in range(1, 8):
            for cell_size in range(1, 9):
                for margin_size in range(0, 4):
                    grid = build_grid([0] * rows, 1)
                    geometry = Geometry.for_grid(grid, cell_size, margin_size)
                    assert geometry.height % 6 == 0
                    assert 0 <= geometry.height - geometry.unpadded_height < 6


class TestRasterize:
    def test_cells_margins_and_padding(self):
        grid = build_grid([0, 1, 3, 4], 32)
        buffer = rasterize(grid, Geometry.for_grid(grid, 16, 4))
        assert (buffer.width, buffer.height) == (76, 18)
        assert len(buffer.pixels) == 76 * 18
        assert buffer[0, 0] == 0
        assert buffer[15, 15] == 0
        assert buffer[16, 0] == BACKGROUND
        assert buffer[19, 15] == BACKGROUND
        assert buffer[20, 0] == 1
        assert buffer[40, 0] == 3
        assert buffer[75, 15] == 4
        for x in range(76):
            assert buffer[x, 16] == BACKGROUND
            assert buffer[x, 17] == BACKGROUND
        for idx in (0, 1, 3, 4):
            assert buffer.pixels.count(idx) == 16 * 16
        assert buffer.pixels.count(2) == 0

    def test_short_last_row(self):
        grid = build_grid([0, 1, 2], 2)
        buffer = rasterize(grid, Geometry.for_grid(grid, 2, 1))
        assert (buffer.width, buffer.height) == (5, 6)
        assert buffer[0, 3] == 2
        assert buffer[1, 4] == 2
        assert buffer[3, 3] == BACKGROUND
        assert buffer[4, 4] == BACKGROUND
        assert buffer.pixels.count(BACKGROUND) == 5 * 6 - 3 * 4

    def test_zero_margin(self):
        grid = build_grid([0, 1], 2)
        buffer = rasterize(grid, Geometry.for_grid(grid, 3, 0))
        assert [buffer[x, 0] for x in range(6)] == [0, 0, 0, 1, 1, 1]


class TestRenderHeatmap:
    def test_empty(self):
        assert render_heatmap([], HeatmapOptions()) == ""

    def test_all_malformed(self):
        assert render_heatmap(["x", "y"], HeatmapOptions()) == ""

    def test_malformed_tokens_do_not_shift_cells(self):
        options = HeatmapOptions(cell_size=1, margin_size=0)
        assert render_heatmap(["1", "x", "2", "3", "y", "4"], options) == render_heatmap(
            ["1", "2", "3", "4"], options
        )

    def test_default_palette_header(self):
        stream = render_heatmap(["1", "2", "3", "4"], HeatmapOptions())
        assert stream.startswith('\x1bPq"1;1;76;18#0;2;0;0;100#1;2;0;100;100')
        assert stream.endswith("\x1b\\")
        assert len(DEFAULT_PALETTE) == 5

    def test_compressed_is_shorter(self):
        tokens = [str(i) for i in range(20)]
        plain = render_heatmap(tokens, HeatmapOptions())
        packed = render_heatmap(tokens, HeatmapOptions(compress=True))
        assert len(packed) < len(plain)
        assert "!" in packed
