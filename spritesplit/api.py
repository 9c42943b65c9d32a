#!/usr/bin/env python3
"""
Public API for the sprite extraction pipeline.

This module provides the main interface for programmatic use of sprite
detection, background removal and normalization.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Generator

import cv2

from spritesplit.alpha_processing import remove_background
from spritesplit.compositor import composite
from spritesplit.config import ProcessingConfig
from spritesplit.raster import BoundingBox, Raster
from spritesplit.sprite_segmentation import find_regions, merge_overlapping

logger = logging.getLogger(__name__)


class SpriteState(enum.Enum):
    """Lifecycle of a sprite in a session."""
    PENDING = "pending"
    NAMING = "naming"
    READY = "ready"
    ERROR = "error"


@dataclass
class ProcessedImage:
    """
    A processed image with metadata from the sprite extraction pipeline.

    Attributes:
        image: The output raster, or None if rendering this sprite failed
        name: Descriptive name for the image (e.g., "sprite_0", "debug_segmented")
        bbox: Source bounding box for sprites, or None for debug images
        is_debug: True if this is a debug/intermediate image, False for output sprites
        metadata: Additional metadata (e.g., sprite index, error message)
    """
    image: Raster | None
    name: str
    bbox: BoundingBox | None
    is_debug: bool
    metadata: dict[str, float | int | str] | None = None


def detect_sprites(raster: Raster) -> list[BoundingBox]:
    """Find and merge sprite regions. The raster is not modified."""
    boxes = find_regions(raster)
    return merge_overlapping(boxes)


def _outline_boxes(raster: Raster, boxes: list[BoundingBox]) -> Raster:
    outlined = raster.pixels.copy()
    for box in boxes:
        cv2.rectangle(outlined, (box.x, box.y), (box.right - 1, box.bottom - 1), (0, 255, 0, 255), 1)
    return Raster(outlined)


def process_spritesheet(
    raster: Raster | None,
    config: ProcessingConfig | None = None,
    *,
    debug: bool = False
) -> Generator[ProcessedImage, None, None]:
    """
    Process a sprite sheet and yield sprites and debug images as they're produced.

    The input is copied, optionally background-keyed, then frozen before
    detection so that no later stage can modify it. Each detected sprite is
    rendered independently; a failure to render one sprite is reported and
    does not stop the others.

    Args:
        raster: Input sprite sheet
        config: Processing settings. Defaults to ProcessingConfig().
        debug: If True, also yield intermediate images

    Yields:
        ProcessedImage objects. Sprites are named "sprite_<i>" and come in
        detection order; a sprite that could not be rendered has image=None
        and metadata["error"] set. Yields no sprites if nothing was detected.

    Raises:
        ValueError: If raster is None or not a Raster.

    Example:
        >>> from spritesplit import load_image, process_spritesheet
        >>>
        >>> sheet = load_image("spritesheet.png")
        >>> for result in process_spritesheet(sheet):
        >>>     if not result.is_debug:
        >>>         print(f"Sprite: {result.name} from {result.bbox}")
    """
    if raster is None:
        raise ValueError("raster cannot be None")
    if not isinstance(raster, Raster):
        raise ValueError(f"raster must be a Raster, got {type(raster)}")
    if config is None:
        config = ProcessingConfig()

    # Take ownership of a private copy
    img = raster.copy()

    if config.remove_background:
        remove_background(img, config.background_tolerance)
        if debug:
            yield ProcessedImage(
                image=img.copy(),
                name="debug_background_removed",
                bbox=None,
                is_debug=True,
                metadata={"tolerance": float(config.background_tolerance)}
            )

    # No stage past this point may modify the source
    img.freeze()

    boxes = detect_sprites(img)
    logger.info("Detected %d sprite(s) in %dx%d image", len(boxes), img.width, img.height)

    if debug:
        yield ProcessedImage(
            image=_outline_boxes(img, boxes),
            name="debug_segmented",
            bbox=None,
            is_debug=True,
            metadata={"num_sprites": len(boxes)}
        )

    for i, box in enumerate(boxes):
        try:
            sprite = composite(img, box, config)
        except (ValueError, cv2.error) as e:
            logger.warning("Could not render sprite %d at %s: %s", i, box, e)
            yield ProcessedImage(
                image=None,
                name=f"sprite_{i}",
                bbox=box,
                is_debug=False,
                metadata={"sprite_index": i, "error": str(e)}
            )
            continue

        yield ProcessedImage(
            image=sprite,
            name=f"sprite_{i}",
            bbox=box,
            is_debug=False,
            metadata={"sprite_index": i}
        )
