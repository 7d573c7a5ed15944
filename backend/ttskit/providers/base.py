from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping, Optional, Union

from ttskit import metrics as app_metrics
from ttskit.errors import InputError, TTSError
from ttskit.logging_utils import get_logger
from ttskit.models import BoundaryEvent, SynthesisOptions
from .handle import PlaybackHandle, UtteranceOutcome


logger = get_logger(__name__)


StartCallback = Callable[[], None]
EndCallback = Callable[[], None]
ErrorCallback = Callable[[Exception], None]
BoundaryCallback = Callable[[BoundaryEvent], None]


class TTSService(ABC):
    """Contract shared by every speech backend.

    Callers assign the optional ``on_start``/``on_end``/``on_error``/
    ``on_boundary`` callbacks, then ``await speak(...)``. One utterance is
    in flight per instance: a new ``speak`` or a ``stop`` supersedes the
    current one, whose callbacks are then never invoked and whose ``speak``
    returns ``UtteranceOutcome.STOPPED``.

    Failures are reported twice in the same step: ``on_error`` is called and
    the awaiting ``speak`` raises the same exception.

    Subclasses implement ``_perform`` and report progress through
    ``_notify_start`` and ``_notify_boundary``.
    """

    name: str = "tts"

    def __init__(self) -> None:
        self.on_start: Optional[StartCallback] = None
        self.on_end: Optional[EndCallback] = None
        self.on_error: Optional[ErrorCallback] = None
        self.on_boundary: Optional[BoundaryCallback] = None
        self._handle: Optional[PlaybackHandle] = None

    @property
    def speaking(self) -> bool:
        return self._handle is not None

    async def speak(
        self,
        text: str,
        options: Union[SynthesisOptions, Mapping[str, Any], None] = None,
    ) -> UtteranceOutcome:
        """Speak `text`, returning once the audio has ended or was superseded.

        `options` may be a SynthesisOptions or a plain mapping with the same
        keys. Empty text and invalid options fail like any other utterance:
        ``on_error`` is called and an InputError is raised.
        """
        self.stop()
        handle = PlaybackHandle(self.name)
        self._handle = handle
        app_metrics.record_utterance_started(self.name)
        try:
            resolved = self._prepare(text, options)
        except InputError as exc:
            self._fail(handle, exc)
            return await handle.outcome

        logger.info(
            "[%s] utterance=%s starting (chars=%d, lang=%s, voice=%s)",
            self.name,
            handle.id,
            len(text),
            resolved.lang,
            resolved.voice,
        )

        handle.task = asyncio.get_running_loop().create_task(
            self._drive(handle, text, resolved)
        )
        try:
            return await asyncio.shield(handle.outcome)
        except asyncio.CancelledError:
            # The awaiting caller went away; do not leave audio running.
            if self._handle is handle:
                self.stop()
            raise

    def stop(self) -> None:
        handle = self._handle
        if handle is None:
            return
        self._handle = None
        if handle.resolve(UtteranceOutcome.STOPPED):
            app_metrics.record_utterance_stopped(self.name)
            logger.info("[%s] utterance=%s stopped", self.name, handle.id)
        handle.cancel()

    @staticmethod
    def _prepare(
        text: str,
        options: Union[SynthesisOptions, Mapping[str, Any], None],
    ) -> SynthesisOptions:
        if not text:
            raise InputError("text must not be empty")
        if options is None or isinstance(options, SynthesisOptions):
            return (options or SynthesisOptions()).resolved()
        if not isinstance(options, Mapping):
            raise InputError(
                f"options must be SynthesisOptions or a mapping, not {type(options).__name__}"
            )
        try:
            return SynthesisOptions.from_mapping(options).resolved()
        except (TypeError, ValueError) as exc:
            raise InputError(f"invalid options: {exc}") from exc

    @abstractmethod
    async def _perform(
        self,
        handle: PlaybackHandle,
        text: str,
        options: SynthesisOptions,
    ) -> None:
        """Synthesize and play `text`, returning once the audio has ended.

        `options` are already resolved. Raise a TTSError subclass on failure.
        """

    async def _drive(
        self,
        handle: PlaybackHandle,
        text: str,
        options: SynthesisOptions,
    ) -> None:
        app_metrics.increment_active_utterances(self.name)
        try:
            await self._perform(handle, text, options)
        except asyncio.CancelledError:
            logger.debug("[%s] utterance=%s cancelled", self.name, handle.id)
            raise
        except Exception as exc:
            if isinstance(exc, TTSError):
                error = exc
            else:
                error = TTSError(f"{type(exc).__name__}: {exc}")
                error.__cause__ = exc
            self._fail(handle, error)
        else:
            self._complete(handle)
        finally:
            handle.release()
            app_metrics.decrement_active_utterances(self.name)

    def _notify_start(self, handle: PlaybackHandle) -> None:
        if handle.live:
            self._emit(self.on_start)

    def _notify_boundary(self, handle: PlaybackHandle, event: BoundaryEvent) -> None:
        if handle.live:
            self._emit(self.on_boundary, event)

    def _complete(self, handle: PlaybackHandle) -> None:
        if not handle.live:
            return
        self._detach(handle)
        app_metrics.record_utterance_completed(self.name)
        logger.info("[%s] utterance=%s completed", self.name, handle.id)
        self._emit(self.on_end)
        handle.resolve(UtteranceOutcome.COMPLETED)

    def _fail(self, handle: PlaybackHandle, error: TTSError) -> None:
        if not handle.live:
            logger.debug(
                "[%s] dropping error of superseded utterance=%s: %s",
                self.name,
                handle.id,
                error,
            )
            return
        self._detach(handle)
        app_metrics.record_utterance_failed(self.name)
        logger.warning(
            "[%s] utterance=%s failed: %s", self.name, handle.id, error
        )
        self._emit(self.on_error, error)
        handle.reject(error)

    def _detach(self, handle: PlaybackHandle) -> None:
        if self._handle is handle:
            self._handle = None

    def _emit(self, callback: Optional[Callable[..., Any]], *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception(
                "[%s] %s callback raised",
                self.name,
                getattr(callback, "__name__", repr(callback)),
            )
