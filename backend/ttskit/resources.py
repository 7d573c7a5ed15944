from __future__ import annotations

import asyncio
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from ttskit.logging_utils import get_logger


logger = get_logger(__name__)


class ExclusiveResource:
    """A process-wide device that one utterance at a time may use.

    Holders enter `hold()` for the whole utterance; the resource is released
    when the block exits, whether the utterance completed, failed or was
    cancelled. Locks are kept per event loop so that tests running on fresh
    loops never see a lock bound to a closed one.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.holder: Optional[str] = None
        self._locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock]" = (
            weakref.WeakKeyDictionary()
        )

    def _lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        lock = self._locks.get(loop)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[loop] = lock
        return lock

    def locked(self) -> bool:
        return self.holder is not None

    @asynccontextmanager
    async def hold(self, owner: str) -> AsyncIterator[None]:
        lock = self._lock()
        if lock.locked():
            logger.debug(
                "Waiting for %s (held by %s, requested by %s)",
                self.name,
                self.holder,
                owner,
            )
        async with lock:
            self.holder = owner
            try:
                yield
            finally:
                self.holder = None


AUDIO_OUTPUT = ExclusiveResource("audio-output")
LOCAL_ENGINE = ExclusiveResource("local-engine")
