from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Optional

import pyttsx3

from ttskit.config import settings
from ttskit.errors import EngineError, TTSError
from ttskit.logging_utils import get_logger
from ttskit.models import BoundaryEvent, SynthesisOptions, Voice
from ttskit.resources import LOCAL_ENGINE
from .base import TTSService
from .handle import PlaybackHandle


logger = get_logger(__name__)

EngineFactory = Callable[[], Any]

# pyttsx3 reports words-per-minute; used when a driver reports no rate.
_FALLBACK_WPM = 200


def _default_engine_factory() -> Any:
    return pyttsx3.init(settings.local_engine_driver)


def _decode_language(raw: Any) -> str:
    # espeak reports languages as bytes prefixed with a priority byte.
    if isinstance(raw, bytes):
        return raw[1:].decode("utf-8", errors="ignore")
    return str(raw)


def _to_voice(engine_voice: Any) -> Voice:
    gender = str(getattr(engine_voice, "gender", "") or "").lower()
    if "female" in gender:
        ssml_gender = "FEMALE"
    elif "male" in gender:
        ssml_gender = "MALE"
    else:
        ssml_gender = "SSML_VOICE_GENDER_UNSPECIFIED"
    languages = [
        _decode_language(lang) for lang in getattr(engine_voice, "languages", None) or []
    ]
    return Voice(
        name=engine_voice.name,
        language_codes=[lang for lang in languages if lang],
        ssml_gender=ssml_gender,
    )


class LocalEngineService(TTSService):
    """Speaks through the platform synthesizer (SAPI5, NSSpeech, eSpeak).

    The pyttsx3 engine is created on first use and driven from the event
    loop with ``startLoop(False)``/``iterate()``, so ``stop`` can cancel the
    engine synchronously from the loop thread. Engine callbacks may arrive
    on a driver thread and are marshalled back onto the loop.
    """

    name = "local"

    def __init__(
        self,
        *,
        engine_factory: Optional[EngineFactory] = None,
        poll_interval_seconds: Optional[float] = None,
    ) -> None:
        super().__init__()
        self._engine_factory = engine_factory or _default_engine_factory
        self._poll_interval = (
            poll_interval_seconds
            if poll_interval_seconds is not None
            else settings.local_engine_poll_interval_seconds
        )
        self._engine: Any = None
        self._base_rate = _FALLBACK_WPM
        self._default_voice_id: Optional[str] = None

    def _ensure_engine(self) -> Any:
        if self._engine is not None:
            return self._engine
        try:
            engine = self._engine_factory()
        except Exception as exc:
            raise EngineError(f"Local speech engine unavailable: {exc}") from exc
        self._engine = engine
        self._base_rate = int(engine.getProperty("rate") or _FALLBACK_WPM)
        self._default_voice_id = engine.getProperty("voice")
        logger.info(
            "Local engine initialized (rate=%d wpm, default voice=%s)",
            self._base_rate,
            self._default_voice_id,
        )
        return engine

    async def list_voices(self) -> List[Voice]:
        """Return the voices installed for the local engine."""
        engine = self._ensure_engine()
        return [_to_voice(v) for v in engine.getProperty("voices") or []]

    def _configure(self, engine: Any, options: SynthesisOptions) -> None:
        engine.setProperty("rate", int(round(self._base_rate * options.rate)))
        engine.setProperty("volume", options.volume)
        if options.pitch != 1.0:
            logger.debug("pitch=%s ignored; pyttsx3 exposes no pitch control", options.pitch)

        voice_id = self._default_voice_id
        if options.voice:
            for candidate in engine.getProperty("voices") or []:
                if candidate.name == options.voice:
                    voice_id = candidate.id
                    break
            else:
                logger.debug(
                    "Voice %r not installed; keeping engine default", options.voice
                )
        if voice_id is not None:
            engine.setProperty("voice", voice_id)

    async def _perform(
        self,
        handle: PlaybackHandle,
        text: str,
        options: SynthesisOptions,
    ) -> None:
        async with LOCAL_ENGINE.hold(handle.id):
            try:
                await self._run_utterance(handle, text, options)
            except TTSError:
                raise
            except Exception as exc:
                raise EngineError(f"Local speech engine failed: {exc}") from exc

    async def _run_utterance(
        self,
        handle: PlaybackHandle,
        text: str,
        options: SynthesisOptions,
    ) -> None:
        engine = self._ensure_engine()
        self._configure(engine, options)

        loop = asyncio.get_running_loop()
        finished: asyncio.Future[None] = loop.create_future()

        def on_loop(fn: Callable[..., None], *args: Any) -> None:
            if not loop.is_closed():
                loop.call_soon_threadsafe(fn, *args)

        def settle(error: Optional[EngineError]) -> None:
            if finished.done():
                return
            if error is None:
                finished.set_result(None)
            else:
                finished.set_exception(error)

        def started_utterance(name: str) -> None:
            if name == handle.id:
                on_loop(self._notify_start, handle)

        def started_word(name: str, location: int, length: int) -> None:
            if name == handle.id:
                event = BoundaryEvent(name="word", char_index=location)
                on_loop(self._notify_boundary, handle, event)

        def finished_utterance(name: str, completed: bool) -> None:
            if name != handle.id or not handle.live:
                return
            error = None if completed else EngineError("Utterance interrupted by the engine")
            on_loop(settle, error)

        def engine_error(name: str, exception: Exception) -> None:
            if name == handle.id and handle.live:
                on_loop(settle, EngineError(f"Local speech engine error: {exception}"))

        tokens = [
            engine.connect("started-utterance", started_utterance),
            engine.connect("started-word", started_word),
            engine.connect("finished-utterance", finished_utterance),
            engine.connect("error", engine_error),
        ]
        in_loop = False
        try:
            engine.say(text, handle.id)
            engine.startLoop(False)
            in_loop = True
            handle.on_cancel(engine.stop)
            while not finished.done():
                engine.iterate()
                await asyncio.sleep(self._poll_interval)
            await finished
        finally:
            if in_loop:
                try:
                    engine.endLoop()
                except RuntimeError:
                    logger.warning("Local engine loop already ended (utterance=%s)", handle.id)
            for token in tokens:
                engine.disconnect(token)
