#!/usr/bin/env python3
"""
Sprite Sheet Splitter - Command Line Interface

Splits a sprite sheet into one image per sprite. Sprites are found as
connected regions of opaque pixels; regions whose padded bounds overlap are
merged into one sprite.

Sheets with a solid background color can be keyed first: every pixel close
to the color of the top-left pixel is made transparent. Each sprite is then
either scaled into a padded square of fixed size, or copied as-is with a
small transparent margin.
"""

import logging
import sys
from pathlib import Path

import click

from spritesplit.config import ProcessingConfig
from spritesplit.errors import DecodeError
from spritesplit.raster import encode_png, load_image
from spritesplit.session import Session
from spritesplit.sprite_save import save_sprites


@click.command(context_settings=dict(show_default=True))
@click.argument('input_path', type=click.Path(exists=True))
@click.argument('output_path', type=click.Path())
@click.option('--remove-background', '-r', is_flag=True,
              help='Make the color of the top-left pixel transparent before detection')
@click.option('--tolerance', '-t', type=click.FloatRange(0, 100), default=20,
              help='Background color distance tolerance (raw RGB distance)')
@click.option('--homogenize/--no-homogenize', default=True,
              help='Scale every sprite into a square of --target-size pixels')
@click.option('--target-size', '-s', type=click.IntRange(min=1), default=512,
              help='Edge length of homogenized sprites')
@click.option('--padding', '-p', type=click.FloatRange(0, 100, max_open=True), default=10,
              help='Margin around homogenized sprites, in percent of --target-size')
@click.option('--debug', '-d', is_flag=True, help='Save intermediate images for debugging')
@click.option('--verbose', '-v', is_flag=True, help='Log pipeline details')
def main(input_path: str, output_path: str, remove_background: bool, tolerance: float,
         homogenize: bool, target_size: int, padding: float, debug: bool, verbose: bool) -> None:
    """Split a sprite sheet into individual sprite images.

    INPUT_PATH is the path to the sprite sheet (PNG or JPEG).

    OUTPUT_PATH is either a .zip file to create, or a directory where one
    PNG per sprite will be saved. Sprites are named item_1, item_2, ...

    If no sprites are found, try --remove-background, or change --tolerance
    if it is already on.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        sheet = load_image(input_path)
    except DecodeError as e:
        click.echo(f"Error: Could not load image from {input_path}: {e}", err=True)
        sys.exit(1)
    click.echo(f"Loaded {sheet.width}x{sheet.height} image")

    try:
        config = ProcessingConfig(
            remove_background=remove_background,
            background_tolerance=tolerance,
            homogenize=homogenize,
            target_size=target_size,
            padding_percent=padding
        )
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    session = Session()
    result = session.run(sheet, config, debug=debug)

    if debug:
        debug_dir = Path("debug")
        debug_dir.mkdir(exist_ok=True)
        for image in result.debug_images:
            (debug_dir / f"{image.name}.png").write_bytes(encode_png(image.image))
        click.echo(f"Saved {len(result.debug_images)} debug image(s) to {debug_dir}")

    if result.no_regions:
        click.echo(f"Error: {result.message}", err=True)
        sys.exit(1)

    failed = [s for s in result.sprites if not s.exportable]
    click.echo(f"Processed {len(result.sprites)} sprite(s)")
    for sprite in failed:
        click.echo(f"Warning: {sprite.user_name} skipped: {sprite.error}", err=True)

    written = save_sprites(session.sprites, output_path)
    if Path(output_path).suffix.lower() == ".zip":
        click.echo(f"Archive saved to {output_path}")
    else:
        click.echo(f"{len(written)} sprite(s) saved to {output_path}")


if __name__ == "__main__":
    main()
