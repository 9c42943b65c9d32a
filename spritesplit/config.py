"""
Processing settings shared by the background remover and the compositor.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class ProcessingConfig:
    """
    Settings for one processing run.

    Attributes:
        remove_background: Key out the color of the top-left pixel before detection
        background_tolerance: Raw RGB distance (0-100) within which a pixel counts
                              as background
        homogenize: Scale every sprite into a square of target_size pixels
        target_size: Edge length of homogenized output images
        padding_percent: Margin around homogenized sprites, as a percentage of
                         target_size (0 <= padding < 100)
    """
    remove_background: bool = False
    background_tolerance: float = 20
    homogenize: bool = True
    target_size: int = 512
    padding_percent: float = 10

    def __post_init__(self) -> None:
        if not 0 <= self.background_tolerance <= 100:
            raise ValueError(
                f"background_tolerance must be within [0, 100], got {self.background_tolerance}")
        if isinstance(self.target_size, bool) or not isinstance(self.target_size, int):
            raise ValueError(f"target_size must be an integer, got {type(self.target_size)}")
        if self.target_size <= 0:
            raise ValueError(f"target_size must be positive, got {self.target_size}")
        if not 0 <= self.padding_percent < 100:
            raise ValueError(
                f"padding_percent must be within [0, 100), got {self.padding_percent}")
        if self.homogenize and self.target_size - 2 * self.padding_px <= 0:
            raise ValueError(
                f"padding of {self.padding_percent}% leaves no room in a {self.target_size}px image")

    @property
    def padding_px(self) -> int:
        """Margin on each side of a homogenized image, in pixels."""
        return round_half_up(self.target_size * self.padding_percent / 100)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return int(math.floor(value + 0.5))
