"""
Rendering of detected sprite regions into output images.

Two modes are supported: homogenized (every sprite scaled uniformly into a
padded square of a fixed size) and verbatim (the region copied as-is with a
small transparent margin).
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import cv2
import numpy as np

from spritesplit.config import ProcessingConfig, round_half_up
from spritesplit.raster import BoundingBox, Raster

# Transparent margin around verbatim sprites
VERBATIM_MARGIN = 2


@dataclass(frozen=True)
class Placement:
    """
    Where a box lands inside a homogenized output image.

    Attributes:
        padding_px: Margin on each side of the output, in pixels
        available: Edge length of the square drawing area inside the margin
        scale: Uniform scale factor applied to the box
        draw_width: Scaled width of the box
        draw_height: Scaled height of the box
        start_x: Left edge of the scaled box (may be fractional)
        start_y: Top edge of the scaled box (may be fractional)
    """
    padding_px: int
    available: int
    scale: float
    draw_width: float
    draw_height: float
    start_x: float
    start_y: float


def fit_box(box: BoundingBox, config: ProcessingConfig) -> Placement:
    """
    Compute how a box is scaled and centered in a homogenized output image.

    Raises:
        ValueError: If the box is empty or the padding leaves no drawing area.
    """
    if box.width <= 0 or box.height <= 0:
        raise ValueError(f"cannot place an empty box: {box}")

    target = config.target_size
    padding_px = config.padding_px
    available = target - 2 * padding_px
    if available <= 0:
        raise ValueError(
            f"padding of {config.padding_percent}% leaves no room in a {target}px image")

    scale = min(available / box.width, available / box.height)
    draw_width = box.width * scale
    draw_height = box.height * scale

    return Placement(
        padding_px=padding_px,
        available=available,
        scale=scale,
        draw_width=draw_width,
        draw_height=draw_height,
        start_x=padding_px + (available - draw_width) / 2,
        start_y=padding_px + (available - draw_height) / 2,
    )


def composite(source: Raster, box: BoundingBox, config: ProcessingConfig) -> Raster:
    """
    Render the region of source covered by box into a new raster.

    Args:
        source: Raster the box refers to. Only read.
        box: Region to render, within the source bounds
        config: Selects homogenized or verbatim output

    Returns:
        A new raster that shares no memory with source.
    """
    if box.width <= 0 or box.height <= 0:
        raise ValueError(f"cannot composite an empty box: {box}")
    if box.x < 0 or box.y < 0 or box.right > source.width or box.bottom > source.height:
        raise ValueError(f"box {box} exceeds the {source.width}x{source.height} source")

    region = source.crop(box)

    if not config.homogenize:
        output = Raster.blank(box.width + 2 * VERBATIM_MARGIN, box.height + 2 * VERBATIM_MARGIN)
        output.pixels[VERBATIM_MARGIN:VERBATIM_MARGIN + box.height,
                      VERBATIM_MARGIN:VERBATIM_MARGIN + box.width] = region
        return output

    placement = fit_box(box, config)
    target = config.target_size
    output = Raster.blank(target, target)

    draw_w = max(1, round_half_up(placement.draw_width))
    draw_h = max(1, round_half_up(placement.draw_height))
    interpolation = cv2.INTER_AREA if placement.scale < 1 else cv2.INTER_CUBIC
    scaled = cv2.resize(np.ascontiguousarray(region), (draw_w, draw_h), interpolation=interpolation)

    x0 = max(0, int(math.floor(placement.start_x + 1e-9)))
    y0 = max(0, int(math.floor(placement.start_y + 1e-9)))
    # Rounding can push the last row or column one pixel past the edge
    x1 = min(target, x0 + draw_w)
    y1 = min(target, y0 + draw_h)
    output.pixels[y0:y1, x0:x1] = scaled[:y1 - y0, :x1 - x0]
    return output
