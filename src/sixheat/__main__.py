#!/usr/bin/python3

# SPDX-FileCopyrightText: 2026 Jeff Epler
#
# SPDX-License-Identifier: MIT

import logging
import pathlib
from typing import IO

import click

from .config import load_config, options_from_settings
from .heatmap import render_heatmap


def debug_callback(ctx: click.Context, param: click.Parameter, debug: bool) -> None:
    if debug:
        logging.basicConfig(
            level=logging.DEBUG, format="%(name)s %(levelname)s %(message)s"
        )


@click.command
@click.argument("input", type=click.File("r", errors="replace"), default="-")
@click.option(
    "--cell-size",
    type=click.IntRange(min=1),
    default=None,
    help="Size of each cell in pixels [default: 16]",
)
@click.option(
    "--margin-size",
    type=click.IntRange(min=0),
    default=None,
    help="Gap between cells in pixels [default: 4]",
)
@click.option(
    "--max-cols",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of cells per row [default: 32]",
)
@click.option(
    "--compress/--no-compress",
    default=None,
    help="Use sixel repeat tokens for runs of identical columns",
)
@click.option(
    "--min-run",
    type=click.IntRange(min=2),
    default=None,
    help="Shortest run replaced by a repeat token [default: 3]",
)
@click.option(
    "--fold-background/--no-fold-background",
    default=None,
    help="When compressing, drop a lone blank column before each color change",
)
@click.option(
    "--config",
    type=pathlib.Path,
    default=None,
    help="Configuration file to use",
)
@click.option(
    "--profile",
    type=str,
    default=None,
    help="Profile to use within the configuration file",
)
@click.option(
    "--debug",
    is_flag=True,
    is_eager=True,
    expose_value=False,
    callback=debug_callback,
    help="Log debugging information to stderr",
)
def main(
    input: IO[str],
    cell_size: int | None,
    margin_size: int | None,
    max_cols: int | None,
    compress: bool | None,
    min_run: int | None,
    fold_background: bool | None,
    config: pathlib.Path | None,
    profile: str | None,
) -> None:
    """Render whitespace-separated integers from INPUT as a sixel heatmap.

    Tokens that are not integers are ignored.
    """
    options = options_from_settings(
        load_config(config, profile),
        cell_size=cell_size,
        margin_size=margin_size,
        max_cols=max_cols,
        compress=compress,
        min_run=min_run,
        fold_background=fold_background,
    )

    stream = render_heatmap(input.read().split(), options)
    if stream:
        out = click.get_binary_stream("stdout")
        out.write(stream.encode("ascii"))
        out.flush()


if __name__ == "__main__":
    main()
