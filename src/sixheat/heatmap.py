# SPDX-FileCopyrightText: 2026 Jeff Epler
#
# SPDX-License-Identifier: MIT

from dataclasses import dataclass, field

import logging
import re
from typing import Iterable, Sequence

from .sixel import BACKGROUND, BAND_HEIGHT, buffer_to_sixel, compress

logger = logging.getLogger(__name__)

ColorType = tuple[int, int, int]

# Blue through red, as percentages
DEFAULT_PALETTE: tuple[ColorType, ...] = (
    (0, 0, 100),
    (0, 100, 100),
    (0, 100, 0),
    (100, 100, 0),
    (100, 0, 0),
)

_integer_re = re.compile(r"[-+]?[0-9]+")


@dataclass(frozen=True)
class HeatmapOptions:
    cell_size: int = 16
    margin_size: int = 4
    max_cols: int = 32
    compress: bool = False
    min_run: int = 3
    fold_background: bool = False
    palette: tuple[ColorType, ...] = field(default=DEFAULT_PALETTE)


@dataclass(frozen=True)
class CellGrid:
    """Palette indices laid out row by row; the last row may be short."""

    cells: tuple[int, ...]
    rows: int
    cols: int


@dataclass(frozen=True)
class Geometry:
    cell_size: int
    margin_size: int
    width: int
    unpadded_height: int
    height: int

    @property
    def pitch(self) -> int:
        """Distance in pixels from one cell's origin to the next"""
        return self.cell_size + self.margin_size

    @classmethod
    def for_grid(cls, grid: CellGrid, cell_size: int, margin_size: int) -> "Geometry":
        width = cell_size * grid.cols + margin_size * (grid.cols - 1)
        unpadded_height = cell_size * grid.rows + margin_size * (grid.rows - 1)
        height = -(-unpadded_height // BAND_HEIGHT) * BAND_HEIGHT
        return cls(cell_size, margin_size, width, unpadded_height, height)


@dataclass(frozen=True)
class PixelBuffer:
    """Row-major pixels, each a palette index or BACKGROUND"""

    width: int
    height: int
    pixels: list[int]

    def __getitem__(self, xy: tuple[int, int]) -> int:
        x, y = xy
        return self.pixels[y * self.width + x]


def parse_samples(tokens: Iterable[str]) -> list[int]:
    """Convert tokens to integers, dropping every token that isn't one"""
    samples = []
    dropped = 0
    for token in tokens:
        if _integer_re.fullmatch(token):
            samples.append(int(token))
        else:
            dropped += 1
    if dropped:
        logger.debug("dropped %d malformed token(s)", dropped)
    return samples


def quantize(samples: Sequence[int], palette_size: int) -> list[int]:
    """
    Map each sample onto a palette index.

    The observed range is split evenly across the palette, rounding half
    away from zero, so the minimum maps to 0 and the maximum to
    palette_size - 1. When every sample is equal they all map to 0.
    """
    if not samples:
        return []
    lo = min(samples)
    hi = max(samples)
    span = hi - lo
    if span == 0:
        return [0] * len(samples)
    steps = palette_size - 1
    return [((v - lo) * steps + span // 2) // span for v in samples]


def build_grid(indices: Sequence[int], max_cols: int) -> CellGrid | None:
    if not indices:
        return None
    cols = min(len(indices), max_cols)
    rows = -(-len(indices) // cols)
    return CellGrid(tuple(indices), rows, cols)


def rasterize(grid: CellGrid, geometry: Geometry) -> PixelBuffer:
    """
    Paint each cell as a solid square on a BACKGROUND canvas.

    The canvas already includes the padding rows that bring its height up
    to a whole number of sixel bands.
    """
    width = geometry.width
    size = geometry.cell_size
    pitch = geometry.pitch
    pixels = [BACKGROUND] * (width * geometry.height)

    for i, idx in enumerate(grid.cells):
        r, c = divmod(i, grid.cols)
        x0 = c * pitch
        y0 = r * pitch
        for y in range(y0, y0 + size):
            start = y * width + x0
            pixels[start : start + size] = [idx] * size

    return PixelBuffer(width, geometry.height, pixels)


def render_heatmap(tokens: Iterable[str], options: HeatmapOptions) -> str:
    """Render whitespace-separated sample tokens as a sixel heatmap.

    Returns the empty string when no token is an integer.
    """
    samples = parse_samples(tokens)
    indices = quantize(samples, len(options.palette))
    grid = build_grid(indices, options.max_cols)
    if grid is None:
        logger.debug("no samples, nothing to render")
        return ""
    logger.debug("palette indices range %d..%d", min(indices), max(indices))

    geometry = Geometry.for_grid(grid, options.cell_size, options.margin_size)
    logger.debug(
        "grid %dx%d cells, image %dx%d pixels (%d before padding)",
        grid.cols,
        grid.rows,
        geometry.width,
        geometry.height,
        geometry.unpadded_height,
    )

    stream = buffer_to_sixel(rasterize(grid, geometry), options.palette)
    if options.compress:
        stream = compress(stream, options.min_run, options.fold_background)
    return stream
