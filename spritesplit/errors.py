"""
Exception types raised by the sprite extraction pipeline.
"""


class SpriteSplitError(Exception):
    """Base class for all errors raised by spritesplit."""


class DecodeError(SpriteSplitError, ValueError):
    """The uploaded data could not be decoded into a raster."""


class EncodingError(SpriteSplitError, RuntimeError):
    """A sprite could not be encoded to PNG."""
