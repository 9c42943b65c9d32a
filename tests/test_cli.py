"""
Smoke tests for the command line interface.
"""

import zipfile

import cv2
import numpy as np
from click.testing import CliRunner

from spritesplit import api
from spritesplit.main import main


def _save_sheet(path, background=(0, 0, 0, 0)) -> None:
    """Write a 100x100 BGRA sheet with two squares."""
    pixels = np.zeros((100, 100, 4), dtype=np.uint8)
    pixels[:, :] = background
    pixels[10:30, 10:30] = (40, 40, 220, 255)
    pixels[60:90, 50:80] = (220, 40, 40, 255)
    assert cv2.imwrite(str(path), pixels)


def test_cli_writes_archive(tmp_path):
    source = tmp_path / "sheet.png"
    _save_sheet(source)
    target = tmp_path / "sprites.zip"

    result = CliRunner().invoke(main, [str(source), str(target), "--target-size", "64"])

    assert result.exit_code == 0, result.output
    assert "Processed 2 sprite(s)" in result.output
    with zipfile.ZipFile(target) as archive:
        assert archive.namelist() == ["item_1.png", "item_2.png"]


def test_cli_writes_directory(tmp_path):
    source = tmp_path / "sheet.png"
    _save_sheet(source, background=(255, 255, 255, 255))
    out_dir = tmp_path / "out"

    result = CliRunner().invoke(main, [str(source), str(out_dir), "-r", "--no-homogenize"])

    assert result.exit_code == 0, result.output
    assert sorted(p.name for p in out_dir.iterdir()) == ["item_1.png", "item_2.png"]
    first = cv2.imread(str(out_dir / "item_1.png"), cv2.IMREAD_UNCHANGED)
    assert first.shape == (26, 26, 4)


def test_cli_debug_images(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    source = tmp_path / "sheet.png"
    _save_sheet(source)

    result = CliRunner().invoke(main, [str(source), str(tmp_path / "out.zip"), "-d", "-s", "32"])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "debug" / "debug_segmented.png").exists()


def test_cli_no_sprites(tmp_path):
    source = tmp_path / "empty.png"
    assert cv2.imwrite(str(source), np.zeros((20, 20, 4), dtype=np.uint8))

    result = CliRunner().invoke(main, [str(source), str(tmp_path / "out.zip")])

    assert result.exit_code == 1
    assert "No distinct sprites found" in result.output
    assert not (tmp_path / "out.zip").exists()


def test_cli_rejects_non_image(tmp_path):
    source = tmp_path / "notes.txt"
    source.write_text("hello")

    result = CliRunner().invoke(main, [str(source), str(tmp_path / "out.zip")])

    assert result.exit_code == 1
    assert "Could not load image" in result.output


def test_cli_rejects_padding_without_room(tmp_path):
    source = tmp_path / "sheet.png"
    _save_sheet(source)

    result = CliRunner().invoke(main, [str(source), str(tmp_path / "out.zip"), "--padding", "60"])

    assert result.exit_code == 1
    assert "leaves no room" in result.output
    assert not (tmp_path / "out.zip").exists()


def test_cli_debug_processes_sheet_once(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    source = tmp_path / "sheet.png"
    _save_sheet(source)
    calls = []
    original = api.detect_sprites

    def counting_detect(raster):
        calls.append(raster)
        return original(raster)

    monkeypatch.setattr(api, "detect_sprites", counting_detect)

    result = CliRunner().invoke(main, [str(source), str(tmp_path / "out.zip"), "-d", "-r"])

    assert result.exit_code == 0, result.output
    assert len(calls) == 1
    assert sorted(p.name for p in (tmp_path / "debug").iterdir()) == [
        "debug_background_removed.png", "debug_segmented.png"]
    with zipfile.ZipFile(tmp_path / "out.zip") as archive:
        assert archive.namelist() == ["item_1.png", "item_2.png"]
