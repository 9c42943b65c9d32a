"""
RGBA raster type, bounding boxes and PNG/JPEG decoding and encoding.

All rasters are held as numpy arrays of shape (height, width, 4) in RGBA
channel order. OpenCV works in BGRA, so conversion happens only at the
decode/encode boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import cv2
import numpy as np

from spritesplit.errors import DecodeError, EncodingError


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned region in source raster coordinates."""
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def intersects(self, other: BoundingBox) -> bool:
        """True if the boxes share some area. Boxes that only touch at an edge do not intersect."""
        return (self.x < other.right and self.right > other.x and
                self.y < other.bottom and self.bottom > other.y)

    def union(self, other: BoundingBox) -> BoundingBox:
        x = min(self.x, other.x)
        y = min(self.y, other.y)
        return BoundingBox(x, y, max(self.right, other.right) - x, max(self.bottom, other.bottom) - y)


@dataclass
class Raster:
    """
    Grid of RGBA pixels.

    Attributes:
        pixels: uint8 array of shape (height, width, 4), RGBA, top-left origin
    """
    pixels: np.ndarray

    def __post_init__(self) -> None:
        if not isinstance(self.pixels, np.ndarray):
            raise ValueError(f"pixels must be a numpy array, got {type(self.pixels)}")
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"pixels must have shape (height, width, 4), got {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"pixels must be uint8, got {self.pixels.dtype}")

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @classmethod
    def blank(cls, width: int, height: int) -> Raster:
        """A fully transparent raster."""
        return cls(np.zeros((height, width, 4), dtype=np.uint8))

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes) -> Raster:
        """Build a raster from a flat, row-major RGBA byte sequence."""
        if len(data) != 4 * width * height:
            raise ValueError(
                f"expected {4 * width * height} bytes for a {width}x{height} raster, got {len(data)}")
        pixels = np.frombuffer(data, dtype=np.uint8).reshape((height, width, 4)).copy()
        return cls(pixels)

    def to_bytes(self) -> bytes:
        return np.ascontiguousarray(self.pixels).tobytes()

    def copy(self) -> Raster:
        return Raster(self.pixels.copy())

    def freeze(self) -> None:
        """Make the pixel buffer read-only. Later writes raise ValueError."""
        self.pixels.setflags(write=False)

    def crop(self, box: BoundingBox) -> np.ndarray:
        """View of the pixels covered by box."""
        return self.pixels[box.y:box.bottom, box.x:box.right]


def decode_image(data: bytes) -> Raster:
    """
    Decode PNG/JPEG (or anything else OpenCV reads) into an 8-bit RGBA raster.

    Raises:
        DecodeError: If the data is not a readable image.
    """
    if not data:
        raise DecodeError("no image data")

    buf = np.frombuffer(data, dtype=np.uint8)
    try:
        img = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
    except cv2.error as e:
        raise DecodeError(f"could not decode image: {e}") from e
    if img is None:
        raise DecodeError("data is not a supported image format")

    # 16-bit PNGs
    if img.dtype == np.uint16:
        img = (img >> 8).astype(np.uint8)
    elif img.dtype != np.uint8:
        raise DecodeError(f"unsupported pixel depth {img.dtype}")

    if img.ndim == 2:
        rgba = cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
    elif img.shape[2] == 3:
        rgba = cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)
    elif img.shape[2] == 4:
        rgba = cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
    else:
        raise DecodeError(f"unsupported channel count {img.shape[2]}")

    return Raster(rgba)


def load_image(path: str | Path) -> Raster:
    """Read and decode an image file."""
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise DecodeError(f"could not read {path}: {e}") from e
    return decode_image(data)


def encode_png(raster: Raster) -> bytes:
    """
    Encode a raster as PNG, keeping the alpha channel.

    Raises:
        EncodingError: If OpenCV fails to encode the image.
    """
    try:
        bgra = cv2.cvtColor(raster.pixels, cv2.COLOR_RGBA2BGRA)
        ok, encoded = cv2.imencode(".png", bgra)
    except cv2.error as e:
        raise EncodingError(f"could not encode {raster.width}x{raster.height} image: {e}") from e
    if not ok:
        raise EncodingError(f"could not encode {raster.width}x{raster.height} image")
    return encoded.tobytes()
