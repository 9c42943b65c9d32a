"""
Tests for rendering sprite regions into output images.
"""

import numpy as np
import pytest

from spritesplit.compositor import composite, fit_box
from spritesplit.config import ProcessingConfig
from spritesplit.raster import BoundingBox, Raster


def _solid_sheet(width: int, height: int, color=(255, 0, 0, 255)) -> Raster:
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[:, :] = color
    return Raster(pixels)


def test_fit_box_numbers():
    config = ProcessingConfig(target_size=512, padding_percent=10)
    placement = fit_box(BoundingBox(0, 0, 100, 50), config)

    assert placement.padding_px == 51
    assert placement.available == 410
    assert placement.scale == pytest.approx(4.1)
    assert placement.draw_width == pytest.approx(410)
    assert placement.draw_height == pytest.approx(205)
    assert placement.start_x == pytest.approx(51)
    assert placement.start_y == pytest.approx(153.5)


def test_fit_box_rounds_padding_half_up():
    # 100 * 2.5% = 2.5 px
    placement = fit_box(BoundingBox(0, 0, 10, 10), ProcessingConfig(target_size=100, padding_percent=2.5))
    assert placement.padding_px == 3
    assert placement.available == 94


def test_fit_box_rejects_padding_without_room():
    with pytest.raises(ValueError, match="no room"):
        fit_box(BoundingBox(0, 0, 10, 10), ProcessingConfig(target_size=64, padding_percent=50, homogenize=False))


def test_fit_box_rejects_empty_box():
    with pytest.raises(ValueError, match="empty"):
        fit_box(BoundingBox(0, 0, 0, 10), ProcessingConfig())


def test_homogenized_upscale_is_centered():
    sheet = _solid_sheet(120, 80)
    config = ProcessingConfig(target_size=512, padding_percent=10)

    out = composite(sheet, BoundingBox(10, 10, 100, 50), config)

    assert (out.width, out.height) == (512, 512)
    alpha = out.pixels[:, :, 3]
    rows = np.flatnonzero(alpha.any(axis=1))
    cols = np.flatnonzero(alpha.any(axis=0))
    assert (cols[0], cols[-1]) == (51, 460)
    assert (rows[0], rows[-1]) == (153, 357)
    assert np.count_nonzero(alpha) == 410 * 205
    red, green, blue, a = (int(v) for v in out.pixels[256, 256])
    assert red >= 250 and green <= 5 and blue <= 5 and a >= 250
    assert tuple(out.pixels[0, 0]) == (0, 0, 0, 0)


def test_homogenized_downscale():
    sheet = _solid_sheet(128, 64, color=(0, 0, 255, 255))
    config = ProcessingConfig(target_size=64, padding_percent=0)

    out = composite(sheet, BoundingBox(0, 0, 128, 64), config)

    alpha = out.pixels[:, :, 3]
    rows = np.flatnonzero(alpha.any(axis=1))
    assert (out.width, out.height) == (64, 64)
    assert (rows[0], rows[-1]) == (16, 47)
    assert np.all(alpha[16:48, :] == 255)
    assert tuple(out.pixels[30, 30]) == (0, 0, 255, 255)


def test_verbatim_adds_margin():
    rng = np.random.RandomState(3)
    pixels = rng.randint(0, 256, (60, 50, 4), dtype=np.uint8)
    sheet = Raster(pixels)
    box = BoundingBox(5, 7, 30, 40)

    out = composite(sheet, box, ProcessingConfig(homogenize=False))

    assert (out.width, out.height) == (34, 44)
    assert np.array_equal(out.pixels[2:42, 2:32], pixels[7:47, 5:35])
    assert not out.pixels[:2].any()
    assert not out.pixels[-2:].any()
    assert not out.pixels[:, :2].any()
    assert not out.pixels[:, -2:].any()


def test_output_does_not_share_memory_with_source():
    sheet = _solid_sheet(40, 40)
    sheet.freeze()

    for config in (ProcessingConfig(homogenize=False), ProcessingConfig(target_size=64)):
        out = composite(sheet, BoundingBox(0, 0, 20, 20), config)
        assert not np.shares_memory(out.pixels, sheet.pixels)
        out.pixels[:] = 0
        assert sheet.pixels[5, 5, 0] == 255


def test_box_outside_source_is_rejected():
    with pytest.raises(ValueError, match="exceeds"):
        composite(_solid_sheet(20, 20), BoundingBox(10, 10, 20, 20), ProcessingConfig())
