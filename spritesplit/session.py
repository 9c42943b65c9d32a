"""
In-memory session holding the sprites of the current run.

A session owns the sprite list and is the only place sprite state changes.
Naming results arrive as NamingUpdate messages tagged with a run id; messages
from a run that has since been reset or replaced are dropped.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field

from spritesplit.api import ProcessedImage, SpriteState, process_spritesheet
from spritesplit.config import ProcessingConfig
from spritesplit.errors import EncodingError
from spritesplit.naming import FALLBACK_NAME, Identifier, NamingJob, NamingQueue, NamingUpdate, clean_name
from spritesplit.raster import BoundingBox, Raster, encode_png
from spritesplit.sprite_save import build_archive, safe_stem

logger = logging.getLogger(__name__)

NO_REGIONS_MESSAGE = ("No distinct sprites found. Try enabling background removal "
                      "or adjusting the background tolerance.")

# Transitions the naming step may make
_ALLOWED_TRANSITIONS = {
    (SpriteState.PENDING, SpriteState.NAMING),
    (SpriteState.PENDING, SpriteState.READY),
    (SpriteState.NAMING, SpriteState.READY),
}

_run_ids = itertools.count(1)


@dataclass
class Sprite:
    """
    One extracted sprite.

    Attributes:
        index: Position in detection order (0-based)
        source_box: Region of the source sheet the sprite came from
        output: Rendered sprite, or None if rendering failed
        png: Encoded output, or None if rendering or encoding failed
        user_name: Name used for export; starts as item_<index+1>
        suggested_name: Name from the naming service, once known
        state: Current lifecycle state
        error: Why the sprite is in the ERROR state
    """
    index: int
    source_box: BoundingBox
    output: Raster | None
    png: bytes | None
    user_name: str
    suggested_name: str | None = None
    state: SpriteState = SpriteState.PENDING
    error: str | None = None
    renamed: bool = field(default=False, repr=False)

    @property
    def filename(self) -> str:
        stem = safe_stem(self.user_name, fallback=f"item_{self.index + 1}")
        return f"{stem}.png"

    @property
    def exportable(self) -> bool:
        return self.state is not SpriteState.ERROR and self.png is not None


@dataclass
class RunResult:
    """Outcome of one processing run."""
    run_id: int
    sprites: list[Sprite]
    no_regions: bool = False
    message: str | None = None
    debug_images: list[ProcessedImage] = field(default_factory=list)


class Session:
    """Holds the sprites of at most one active run."""

    def __init__(self):
        self.run_id: int | None = None
        self.sprites: list[Sprite] = []
        self.named_count = 0

    def run(self, raster: Raster, config: ProcessingConfig | None = None, *,
            debug: bool = False) -> RunResult:
        """
        Extract sprites from raster, replacing the previous run.

        Args:
            raster: Sprite sheet to split
            config: Processing settings, defaults if None
            debug: Keep the intermediate images in RunResult.debug_images

        Returns:
            RunResult. If nothing was detected, no_regions is set and message
            suggests what to change.
        """
        self.reset()
        run_id = next(_run_ids)

        sprites = []
        debug_images = []
        for result in process_spritesheet(raster, config, debug=debug):
            if result.is_debug:
                debug_images.append(result)
                continue
            index = len(sprites)
            sprite = Sprite(index=index, source_box=result.bbox, output=result.image,
                            png=None, user_name=f"item_{index + 1}")
            if result.image is None:
                sprite.state = SpriteState.ERROR
                sprite.error = str(result.metadata.get("error")) if result.metadata else None
            else:
                try:
                    sprite.png = encode_png(result.image)
                except EncodingError as e:
                    logger.warning("Sprite %d could not be encoded: %s", index, e)
                    sprite.state = SpriteState.ERROR
                    sprite.error = str(e)
            sprites.append(sprite)

        self.run_id = run_id
        self.sprites = sprites

        if not sprites:
            logger.info("Run %d found no sprites", run_id)
            return RunResult(run_id, sprites, no_regions=True, message=NO_REGIONS_MESSAGE,
                             debug_images=debug_images)

        failed = sum(1 for s in sprites if s.state is SpriteState.ERROR)
        logger.info("Run %d produced %d sprite(s), %d failed", run_id, len(sprites), failed)
        return RunResult(run_id, sprites, debug_images=debug_images)

    def reset(self) -> None:
        """Discard all sprites. Late naming results for them are ignored."""
        self.run_id = None
        self.sprites = []
        self.named_count = 0

    def rename(self, index: int, name: str) -> Sprite:
        """Set the export name of a sprite. The suggested name is left alone."""
        if not 0 <= index < len(self.sprites):
            raise IndexError(f"no sprite with index {index}")
        name = clean_name(name, fallback="")
        if not name:
            raise ValueError("name cannot be empty")
        sprite = self.sprites[index]
        sprite.user_name = name
        sprite.renamed = True
        return sprite

    def apply_update(self, update: NamingUpdate) -> bool:
        """
        Apply a naming message to the matching sprite.

        Returns:
            False if the update was dropped (stale run, unknown sprite or
            invalid transition).
        """
        if update.run_id != self.run_id:
            logger.debug("Dropping update for stale run %d", update.run_id)
            return False
        if not 0 <= update.index < len(self.sprites):
            logger.warning("Dropping update for unknown sprite %d", update.index)
            return False

        sprite = self.sprites[update.index]
        if (sprite.state, update.state) not in _ALLOWED_TRANSITIONS:
            logger.warning("Ignoring transition %s -> %s for sprite %d",
                           sprite.state.value, update.state.value, update.index)
            return False

        sprite.state = update.state
        if update.state is SpriteState.READY:
            name = update.name or FALLBACK_NAME
            sprite.suggested_name = name
            # An explicit rename wins over a late suggestion
            if not sprite.renamed:
                sprite.user_name = name
            self.named_count += 1
        return True

    async def name_sprites(self, identify: Identifier, **queue_kwargs) -> None:
        """
        Ask the naming service for a name for every pending sprite.

        Updates are applied as they arrive. If the session is reset or rerun
        while this is in progress, the remaining results are discarded.
        """
        if self.run_id is None:
            return
        jobs = [NamingJob(self.run_id, s.index, s.png) for s in self.sprites
                if s.state is SpriteState.PENDING and s.png is not None]
        if not jobs:
            return

        naming = NamingQueue(identify, **queue_kwargs)
        updates: asyncio.Queue = asyncio.Queue()

        async def produce():
            try:
                await naming.run(jobs, updates)
            finally:
                # End of stream
                await updates.put(None)

        producer = asyncio.create_task(produce())
        while True:
            update = await updates.get()
            if update is None:
                break
            self.apply_update(update)
        await producer

    def export_archive(self) -> bytes:
        """ZIP archive of every exportable sprite."""
        return build_archive(self.sprites)
