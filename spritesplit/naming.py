"""
Throttled batching of sprites through an external naming service.

The naming service is any callable taking a sprite's PNG bytes and returning
a short snake_case name. It may be a coroutine function or a plain (blocking)
function, may be slow, and may fail; failures never escape this module.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence, Union

from spritesplit.api import SpriteState
from spritesplit.sprite_save import safe_stem

logger = logging.getLogger(__name__)

FALLBACK_NAME = "unknown_item"
BATCH_SIZE = 3
BATCH_DELAY = 0.5

Identifier = Callable[[bytes], Union[str, Awaitable[str]]]


@dataclass(frozen=True)
class NamingJob:
    """One sprite to be named."""
    run_id: int
    index: int
    png: bytes


@dataclass(frozen=True)
class NamingUpdate:
    """State change for one sprite, tagged with the run it belongs to."""
    run_id: int
    index: int
    state: SpriteState
    name: str | None = None


def clean_name(raw: str | None, fallback: str = FALLBACK_NAME) -> str:
    """
    Strip markdown backticks, line breaks and outer whitespace from a suggested name.

    The result is also made safe as a file name, since names end up as export
    paths: path separators become underscores and leading dots are dropped.
    """
    if not raw:
        return fallback
    name = raw.replace("`", "").replace("\r", "").replace("\n", "").strip()
    return safe_stem(name, fallback)


class NamingQueue:
    """
    Sends sprites to a naming service in fixed-size concurrent batches.

    Every batch waits for all of its calls to finish, then the queue pauses
    for batch_delay seconds before starting the next one.
    """

    def __init__(self, identify: Identifier, batch_size: int = BATCH_SIZE,
                 batch_delay: float = BATCH_DELAY, fallback_name: str = FALLBACK_NAME,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        if batch_delay < 0:
            raise ValueError(f"batch_delay must be non-negative, got {batch_delay}")
        self.identify = identify
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.fallback_name = fallback_name
        self._sleep = sleep

    async def _call_identify(self, png: bytes) -> str:
        if inspect.iscoroutinefunction(self.identify):
            return await self.identify(png)
        result = await asyncio.to_thread(self.identify, png)
        # Plain callables may still hand back an awaitable
        if inspect.isawaitable(result):
            result = await result
        return result

    async def name_one(self, job: NamingJob, updates: asyncio.Queue) -> str:
        """Name a single sprite, reporting Naming and then Ready."""
        await updates.put(NamingUpdate(job.run_id, job.index, SpriteState.NAMING))
        try:
            raw = await self._call_identify(job.png)
            name = clean_name(raw if isinstance(raw, str) else None, self.fallback_name)
        except Exception as e:
            logger.warning("Naming failed for sprite %d: %s", job.index, e)
            name = self.fallback_name
        await updates.put(NamingUpdate(job.run_id, job.index, SpriteState.READY, name))
        return name

    async def run(self, jobs: Sequence[NamingJob], updates: asyncio.Queue) -> list[str]:
        """
        Name all jobs, posting NamingUpdate messages to updates as they happen.

        Returns:
            The final names, in job order.
        """
        names = []
        for start in range(0, len(jobs), self.batch_size):
            if start > 0 and self.batch_delay > 0:
                await self._sleep(self.batch_delay)
            batch = jobs[start:start + self.batch_size]
            logger.debug("Naming sprites %d-%d of %d", start + 1, start + len(batch), len(jobs))
            names.extend(await asyncio.gather(*(self.name_one(job, updates) for job in batch)))
        return names
