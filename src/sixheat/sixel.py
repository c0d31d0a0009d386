# SPDX-FileCopyrightText: 2026 Jeff Epler
#
# SPDX-License-Identifier: MIT
from __future__ import annotations

import logging
import re

TYPE_CHECKING = False
if TYPE_CHECKING:
    from typing import Generator, Sequence

    from .heatmap import PixelBuffer

    ColorType = tuple[int, int, int]

logger = logging.getLogger(__name__)

BACKGROUND = -1
BAND_HEIGHT = 6

INTRODUCER = "\x1bPq"
TERMINATOR = "\x1b\\"
CARRIAGE_RETURN = "$"
LINE_FEED = "-"
COLOR_SELECT = "#"
RASTER_ATTRIBUTES = '"'
REPEAT = "!"

# The sixel alphabet: bit i of the mask is pixel row i of the band
_sixels = [chr(0x3F + mask) for mask in range(1 << BAND_HEIGHT)]
_BLANK = _sixels[0]

_repeat_re = re.compile(r"!(\d+)(.)", re.DOTALL)


def _check_indices(buffer: PixelBuffer, n_colors: int) -> None:
    for p in buffer.pixels:
        if p != BACKGROUND and not 0 <= p < n_colors:
            raise ValueError(
                f"Pixel color {p} is outside the palette (0..{n_colors - 1})"
            )


def _band_row(buffer: PixelBuffer, top: int, color: int) -> str:
    width = buffer.width
    pixels = buffer.pixels
    row = []
    for x in range(width):
        mask = 0
        for i in range(BAND_HEIGHT):
            if pixels[(top + i) * width + x] == color:
                mask |= 1 << i
        row.append(_sixels[mask])
    return "".join(row)


def _sixel_gen(buffer: PixelBuffer, palette: Sequence[ColorType]) -> Generator[str]:
    yield INTRODUCER
    yield f'{RASTER_ATTRIBUTES}1;1;{buffer.width};{buffer.height}'
    for i, (r, g, b) in enumerate(palette):
        yield f"{COLOR_SELECT}{i};2;{r};{g};{b}"

    tops = range(0, buffer.height, BAND_HEIGHT)
    for top in tops:
        for color in range(len(palette)):
            if color:
                yield CARRIAGE_RETURN
            yield f"{COLOR_SELECT}{color}"
            yield _band_row(buffer, top, color)
        if top != tops[-1]:
            yield LINE_FEED
    yield TERMINATOR


def buffer_to_sixel(buffer: PixelBuffer, palette: Sequence[ColorType]) -> str:
    """Encode a padded pixel buffer as a complete sixel image.

    Every palette color is encoded as one plane per band, so overlaying
    the planes draws each non-background pixel exactly once.
    """
    if buffer.height % BAND_HEIGHT:
        raise ValueError(f"Buffer height {buffer.height} is not a multiple of 6")
    _check_indices(buffer, len(palette))
    return "".join(_sixel_gen(buffer, palette))


def _flush(out: list[str], char: str, count: int, min_run: int) -> None:
    if not count:
        return
    if count >= min_run:
        out.append(f"{REPEAT}{count}{char}")
    else:
        out.append(char * count)


def _control_end(stream: str, i: int) -> int:
    """Index just past the parameters of a '#' or '"' control."""
    i += 1
    while i < len(stream) and (stream[i].isdigit() or stream[i] == ";"):
        i += 1
    return i


def compress(stream: str, min_run: int = 3, fold_background: bool = False) -> str:
    """Replace runs of identical sixel characters with repeat tokens.

    Runs never extend across a color selection, carriage return or line
    feed. Repeat tokens already present are read back as runs, so
    compressing twice gives the same result as compressing once.

    With fold_background, a single blank column right before a switch to
    the next color plane is dropped; it draws nothing.
    """
    if min_run < 2:
        raise ValueError(f"min_run must be at least 2, not {min_run}")

    out: list[str] = []
    char = ""
    count = 0
    i = 0
    n = len(stream)
    while i < n:
        c = stream[i]
        if stream.startswith(INTRODUCER, i):
            end = i + len(INTRODUCER)
        elif stream.startswith(TERMINATOR, i):
            end = i + len(TERMINATOR)
        elif c in (COLOR_SELECT, RASTER_ATTRIBUTES):
            end = _control_end(stream, i)
        elif c == CARRIAGE_RETURN:
            if (
                fold_background
                and char == _BLANK
                and count == 1
                and stream.startswith(COLOR_SELECT, i + 1)
            ):
                count = 0
            end = i + 1
        elif c == REPEAT:
            m = _repeat_re.match(stream, i)
            if m is None:
                raise ValueError(f"Malformed repeat token at offset {i}")
            repeated = m.group(2)
            if repeated != char:
                _flush(out, char, count, min_run)
                char, count = repeated, 0
            count += int(m.group(1))
            i = m.end()
            continue
        elif "?" <= c <= "~":
            if c != char:
                _flush(out, char, count, min_run)
                char, count = c, 0
            count += 1
            i += 1
            continue
        else:
            end = i + 1

        _flush(out, char, count, min_run)
        char, count = "", 0
        out.append(stream[i:end])
        i = end

    _flush(out, char, count, min_run)
    result = "".join(out)
    logger.debug("compressed sixel stream from %d to %d bytes", n, len(result))
    return result


def decompress(stream: str) -> str:
    """Expand every repeat token back into the characters it stands for."""
    return _repeat_re.sub(lambda m: m.group(2) * int(m.group(1)), stream)
