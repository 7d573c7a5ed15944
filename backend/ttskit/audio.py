from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable, Optional, Protocol, Union

import numpy as np

from ttskit.errors import DecodeError, PlaybackError
from ttskit.logging_utils import get_logger


logger = get_logger(__name__)


class AudioPlayer(Protocol):
    """Host audio facility used by the remote backends.

    `play` returns once the file has been played to the end. Cancelling the
    awaiting task must silence the output immediately.
    """

    async def play(self, path: Path, *, on_start: Callable[[], None]) -> None:
        ...

    def pause(self) -> None:
        ...

    def resume(self) -> None:
        ...


class _Playback:
    """Frames and cursor of the file currently being played."""

    def __init__(self, frames: np.ndarray, stop_signal: type) -> None:
        self.frames = frames
        self._stop_signal = stop_signal
        self.position = 0
        self.paused = False

    def fill(self, outdata: np.ndarray, frame_count: int) -> None:
        if self.paused:
            outdata.fill(0)
            return
        chunk = self.frames[self.position : self.position + frame_count]
        n = len(chunk)
        outdata[:n] = chunk
        self.position += n
        if n < frame_count:
            outdata[n:] = 0
            raise self._stop_signal


def _load_audio_modules():
    try:
        import sounddevice
        import soundfile
    except (ImportError, OSError) as exc:
        # sounddevice raises OSError when the PortAudio library is missing.
        raise PlaybackError(
            f"sounddevice and soundfile are required for playback: {exc}"
        ) from exc
    return sounddevice, soundfile


def _parse_device(device: Optional[str]) -> Union[int, str, None]:
    if device is None:
        return None
    return int(device) if device.isdigit() else device


class SoundDevicePlayer(AudioPlayer):
    """Plays decoded audio files through PortAudio.

    Files are decoded with soundfile (WAV, FLAC, OGG and MP3 with a recent
    libsndfile) and streamed from a callback, which lets `pause`/`resume`
    hold the cursor without tearing the stream down.
    """

    def __init__(self, device: Optional[str] = None) -> None:
        self._device = _parse_device(device)
        self._current: Optional[_Playback] = None

    async def play(self, path: Path, *, on_start: Callable[[], None]) -> None:
        sd, sf = _load_audio_modules()
        try:
            frames, sample_rate = await asyncio.to_thread(
                sf.read, str(path), dtype="float32", always_2d=True
            )
        except sf.SoundFileError as exc:
            raise DecodeError(f"Unsupported or corrupt audio: {exc}") from exc
        if len(frames) == 0:
            raise DecodeError("Audio payload contains no frames")

        loop = asyncio.get_running_loop()
        finished = asyncio.Event()
        playback = _Playback(frames, sd.CallbackStop)

        def callback(outdata, frame_count, time_info, status) -> None:
            if status:
                logger.debug("PortAudio status: %s", status)
            playback.fill(outdata, frame_count)

        def finished_callback() -> None:
            loop.call_soon_threadsafe(finished.set)

        try:
            stream = sd.OutputStream(
                samplerate=sample_rate,
                channels=frames.shape[1],
                dtype="float32",
                device=self._device,
                callback=callback,
                finished_callback=finished_callback,
            )
            stream.start()
        except sd.PortAudioError as exc:
            raise PlaybackError(f"Audio output unavailable: {exc}") from exc

        self._current = playback
        try:
            on_start()
            await finished.wait()
        finally:
            self._current = None
            if not finished.is_set():
                stream.abort(ignore_errors=True)
            stream.close(ignore_errors=True)

        logger.debug(
            "Played %s (%d frames @ %dHz)", path.name, len(frames), sample_rate
        )

    def pause(self) -> None:
        if self._current is not None:
            self._current.paused = True

    def resume(self) -> None:
        if self._current is not None:
            self._current.paused = False
