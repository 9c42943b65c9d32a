"""
Functions for keying out a solid background color into the alpha channel.
"""

import numpy as np

from spritesplit.raster import Raster

# Largest possible Euclidean distance between two RGB colors
MAX_RGB_DISTANCE = float(np.sqrt(3 * 255 ** 2))


def remove_background(raster: Raster, tolerance: float) -> None:
    """
    Make every pixel close to the top-left pixel's color transparent, in place.

    The tolerance is compared directly against the Euclidean RGB distance
    (0 to about 441.7), so a tolerance of 100 is far from keying every color.

    Args:
        raster: Raster to modify. Must be writable.
        tolerance: Maximum RGB distance from the reference color for a pixel
                   to be treated as background
    """
    if tolerance < 0:
        raise ValueError(f"tolerance must be non-negative, got {tolerance}")
    if raster.width == 0 or raster.height == 0:
        return

    pixels = raster.pixels
    reference = pixels[0, 0]

    # Already transparent, assume the image was keyed beforehand
    if reference[3] == 0:
        return

    diff = pixels[:, :, :3].astype(np.float64) - reference[:3].astype(np.float64)
    distance = np.sqrt(np.sum(diff * diff, axis=2))

    pixels[distance <= tolerance, 3] = 0
