"""
Functions for segmenting sprites in a sprite sheet.
"""

import logging

import cv2
import numpy as np

from spritesplit.raster import BoundingBox, Raster

logger = logging.getLogger(__name__)

# Pixels with alpha below this count as background, whatever their color
ALPHA_THRESHOLD = 10

# Components smaller than this (in pixels) are treated as noise
MIN_REGION_PIXELS = 50

# Padding added around each detected region
DETECTION_PADDING = 1


def opacity_mask(raster: Raster) -> np.ndarray:
    """Binary mask (0/255) of the pixels that count as opaque."""
    return np.where(raster.pixels[:, :, 3] >= ALPHA_THRESHOLD, 255, 0).astype(np.uint8)


def find_regions(raster: Raster, min_pixels: int = MIN_REGION_PIXELS,
                 padding: int = DETECTION_PADDING) -> list[BoundingBox]:
    """
    Find bounding boxes of the 4-connected opaque regions of a raster.

    Regions are labeled with OpenCV's connected components, then put in the
    order a row-major scan first reaches them: the position of each label's
    first pixel in the flattened label image.

    Args:
        raster: Source raster
        min_pixels: Regions with fewer pixels than this are dropped
        padding: Pixels added on each side of a region's bounds

    Returns:
        Padded boxes clamped to the raster, in order of discovery.
        Empty if the raster has no opaque region large enough.
    """
    width, height = raster.width, raster.height
    if width == 0 or height == 0:
        return []

    binary = opacity_mask(raster)
    num_labels, labels, stats, _centroids = cv2.connectedComponentsWithStats(binary, connectivity=4)

    # First flat index of every label; label 0 is the background
    found, first_index = np.unique(labels.ravel(), return_index=True)
    discovery = sorted((int(index), int(label)) for label, index in zip(found, first_index) if label != 0)

    regions = []
    for _index, label in discovery:
        if stats[label, cv2.CC_STAT_AREA] < min_pixels:
            continue

        min_x = int(stats[label, cv2.CC_STAT_LEFT])
        min_y = int(stats[label, cv2.CC_STAT_TOP])
        w = int(stats[label, cv2.CC_STAT_WIDTH])
        h = int(stats[label, cv2.CC_STAT_HEIGHT])
        box_x = max(0, min_x - padding)
        box_y = max(0, min_y - padding)
        box_w = min(width, w + 2 * padding, width - box_x)
        box_h = min(height, h + 2 * padding, height - box_y)
        regions.append(BoundingBox(box_x, box_y, box_w, box_h))

    logger.debug("Found %d components, kept %d with at least %d pixels",
                 num_labels - 1, len(regions), min_pixels)
    return regions


def merge_overlapping(boxes: list[BoundingBox]) -> list[BoundingBox]:
    """
    Merge boxes that overlap, until no two boxes overlap.

    Each pass looks for the first overlapping pair, replaces the first box of
    the pair with their union and drops the second, then starts over.
    The result is the transitive closure of the overlap relation, so it does
    not depend on the input order (the order of the output may).

    Args:
        boxes: Boxes to merge

    Returns:
        List of merged boxes
    """
    merged = list(boxes)

    changed = True
    while changed:
        changed = False
        for i in range(len(merged)):
            for j in range(i + 1, len(merged)):
                if merged[i].intersects(merged[j]):
                    merged[i] = merged[i].union(merged[j])
                    del merged[j]
                    changed = True
                    break
            if changed:
                break

    if len(merged) != len(boxes):
        logger.debug("Merged %d boxes into %d", len(boxes), len(merged))
    return merged
