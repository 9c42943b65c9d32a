"""
Tests for the raster type and image decoding/encoding.
"""

import cv2
import numpy as np
import pytest

from spritesplit.errors import DecodeError
from spritesplit.raster import BoundingBox, Raster, decode_image, encode_png, load_image


def _png_bytes(bgr_or_bgra: np.ndarray) -> bytes:
    ok, encoded = cv2.imencode(".png", bgr_or_bgra)
    assert ok
    return encoded.tobytes()


def test_from_bytes_is_row_major_rgba():
    data = bytes([
        1, 2, 3, 4, 5, 6, 7, 8,
        9, 10, 11, 12, 13, 14, 15, 16,
        17, 18, 19, 20, 21, 22, 23, 24,
    ])
    raster = Raster.from_bytes(2, 3, data)

    assert (raster.width, raster.height) == (2, 3)
    assert tuple(raster.pixels[1, 0]) == (9, 10, 11, 12)
    assert raster.to_bytes() == data


def test_from_bytes_checks_length():
    with pytest.raises(ValueError, match="expected 16 bytes"):
        Raster.from_bytes(2, 2, bytes(15))


def test_raster_rejects_bad_arrays():
    with pytest.raises(ValueError, match="shape"):
        Raster(np.zeros((4, 4, 3), dtype=np.uint8))
    with pytest.raises(ValueError, match="uint8"):
        Raster(np.zeros((4, 4, 4), dtype=np.float32))


def test_freeze_blocks_writes():
    raster = Raster.blank(4, 4)
    raster.freeze()
    with pytest.raises(ValueError):
        raster.pixels[0, 0, 3] = 255


def test_crop_and_union():
    raster = Raster.blank(10, 10)
    box = BoundingBox(2, 3, 4, 5)
    assert raster.crop(box).shape == (5, 4, 4)
    assert box.union(BoundingBox(0, 0, 1, 1)) == BoundingBox(0, 0, 6, 8)


def test_png_keeps_alpha():
    rng = np.random.RandomState(0)
    pixels = rng.randint(0, 256, (12, 9, 4), dtype=np.uint8)

    decoded = decode_image(encode_png(Raster(pixels)))

    assert np.array_equal(decoded.pixels, pixels)


def test_decode_bgr_image_as_opaque_rgba():
    bgr = np.zeros((4, 4, 3), dtype=np.uint8)
    bgr[:, :] = (255, 0, 0)  # blue in OpenCV's channel order

    decoded = decode_image(_png_bytes(bgr))

    assert tuple(decoded.pixels[0, 0]) == (0, 0, 255, 255)


def test_decode_grayscale():
    gray = np.full((3, 5), 77, dtype=np.uint8)

    decoded = decode_image(_png_bytes(gray))

    assert decoded.pixels.shape == (3, 5, 4)
    assert tuple(decoded.pixels[2, 4]) == (77, 77, 77, 255)


def test_decode_sixteen_bit():
    deep = np.full((2, 2, 4), 0xFF00, dtype=np.uint16)

    decoded = decode_image(_png_bytes(deep))

    assert tuple(decoded.pixels[0, 0]) == (255, 255, 255, 255)


def test_decode_rejects_garbage():
    with pytest.raises(DecodeError):
        decode_image(b"definitely not an image")
    with pytest.raises(DecodeError):
        decode_image(b"")


def test_load_image_missing_file(tmp_path):
    with pytest.raises(DecodeError, match="could not read"):
        load_image(tmp_path / "missing.png")
