from __future__ import annotations

import asyncio
import tempfile
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional
from uuid import uuid4

from ttskit.logging_utils import get_logger


logger = get_logger(__name__)


class UtteranceOutcome(str, Enum):
    COMPLETED = "completed"
    STOPPED = "stopped"


class PlaybackHandle:
    """State of one in-progress utterance, owned by a single service.

    The outcome future is settled exactly once: resolved with an
    UtteranceOutcome or rejected with the failure. Once it is settled the
    handle no longer counts as live and the owning service stops forwarding
    events for it.
    """

    def __init__(self, backend: str) -> None:
        self.id = uuid4().hex[:12]
        self.backend = backend
        self.outcome: asyncio.Future[UtteranceOutcome] = (
            asyncio.get_running_loop().create_future()
        )
        self.task: Optional[asyncio.Task[None]] = None
        self.released = False
        self._cancel_hooks: List[Callable[[], None]] = []
        self._temp_files: List[Path] = []

    @property
    def live(self) -> bool:
        return not self.outcome.done()

    def resolve(self, outcome: UtteranceOutcome) -> bool:
        if self.outcome.done():
            return False
        self.outcome.set_result(outcome)
        return True

    def reject(self, error: BaseException) -> bool:
        if self.outcome.done():
            return False
        self.outcome.set_exception(error)
        return True

    def on_cancel(self, hook: Callable[[], None]) -> None:
        """Register a synchronous action to run when the utterance is stopped."""
        self._cancel_hooks.append(hook)

    def write_temp_audio(self, audio: bytes, suffix: str) -> Path:
        with tempfile.NamedTemporaryFile(
            prefix=f"ttskit-{self.id}-", suffix=suffix, delete=False
        ) as tmp:
            tmp.write(audio)
        path = Path(tmp.name)
        self._temp_files.append(path)
        return path

    def cancel(self) -> None:
        hooks, self._cancel_hooks = self._cancel_hooks, []
        for hook in hooks:
            try:
                hook()
            except Exception:
                logger.exception(
                    "Cancel hook failed for utterance=%s (backend=%s)",
                    self.id,
                    self.backend,
                )
        if self.task is not None and not self.task.done():
            self.task.cancel()

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        self._cancel_hooks.clear()
        for path in self._temp_files:
            try:
                path.unlink(missing_ok=True)
            except OSError:
                logger.warning("Failed to delete temp TTS file: %s", path)
        self._temp_files.clear()
