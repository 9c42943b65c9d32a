#!/usr/bin/env python3
"""
Functions for exporting sprites as individual PNG files or as one ZIP archive.
"""

from __future__ import annotations

import io
import logging
import re
import zipfile
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_NAME = "sprites_split.zip"

# Path separators, characters Windows rejects, and control characters
_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


def safe_stem(name: str | None, fallback: str) -> str:
    """
    Turn a sprite name into a file name stem that stays inside its directory.

    Unsafe characters become underscores and leading dots are dropped, so
    "../escaped" becomes "_escaped" and "weapons/sword" becomes "weapons_sword".
    """
    stem = _UNSAFE_FILENAME_CHARS.sub("_", name or "").strip().lstrip(".").strip()
    return stem or fallback


def export_entries(sprites: Iterable) -> list[tuple[str, bytes]]:
    """
    Pair every exportable sprite with a unique file name.

    Sprites in the error state are skipped. Names are made safe to use as
    file names (see safe_stem). When two sprites share a name,
    later ones get a numeric suffix (sword.png, sword_2.png, ...).

    Args:
        sprites: Sprite objects from a session

    Returns:
        List of (filename, png_bytes) tuples in sprite order
    """
    entries = []
    used: set[str] = set()
    for sprite in sprites:
        if not sprite.exportable:
            continue
        stem = safe_stem(sprite.user_name, fallback=f"item_{sprite.index + 1}")
        filename = f"{stem}.png"
        n = 2
        while filename in used:
            filename = f"{stem}_{n}.png"
            n += 1
        used.add(filename)
        entries.append((filename, sprite.png))
    return entries


def build_archive(sprites: Iterable) -> bytes:
    """
    Package sprites into an in-memory ZIP archive, one PNG entry per sprite.

    Args:
        sprites: Sprite objects from a session

    Returns:
        The archive as bytes
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        entries = export_entries(sprites)
        for filename, png in entries:
            archive.writestr(filename, png)
    logger.debug("Packed %d sprite(s) into archive", len(entries))
    return buffer.getvalue()


def save_individual_sprites(sprites: Iterable, output_dir: str | Path) -> list[Path]:
    """
    Save each sprite as its own PNG file.

    Args:
        sprites: Sprite objects from a session
        output_dir: Directory for the files, created if missing

    Returns:
        Paths of the written files
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = []
    for filename, png in export_entries(sprites):
        path = output_dir / filename
        path.write_bytes(png)
        paths.append(path)
    return paths


def save_sprites(sprites: Iterable, output_path: str | Path) -> list[Path]:
    """
    Save sprites either as a ZIP archive or as individual files.

    Args:
        sprites: Sprite objects from a session
        output_path: A path ending in .zip gets an archive, anything else is
                     treated as a directory for individual files

    Returns:
        Paths of the written files
    """
    output_path = Path(output_path)
    if output_path.suffix.lower() == ".zip":
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(build_archive(sprites))
        return [output_path]
    return save_individual_sprites(sprites, output_path)
