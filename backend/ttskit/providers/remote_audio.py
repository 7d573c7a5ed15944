from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

import httpx

from ttskit import metrics as app_metrics
from ttskit.audio import AudioPlayer, SoundDevicePlayer
from ttskit.config import settings
from ttskit.errors import DecodeError, PlaybackError, RequestError, TTSError
from ttskit.logging_utils import get_logger
from ttskit.resources import AUDIO_OUTPUT
from .handle import PlaybackHandle


logger = get_logger(__name__)


class RemoteAudioPipeline:
    """Fetch-then-play steps shared by the HTTP backends.

    Owns the backend's audio player. When no client is injected a fresh
    ``httpx.AsyncClient`` is opened per request, so a stopped utterance
    simply drops its connection when the driving task is cancelled.
    """

    def __init__(
        self,
        backend: str,
        *,
        player: Optional[AudioPlayer] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.backend = backend
        self.player = player or SoundDevicePlayer(settings.audio_output_device)
        self._client = client
        self._timeout = timeout if timeout is not None else settings.http_timeout_seconds

    async def post(
        self,
        url: str,
        *,
        headers: Mapping[str, str],
        json: Any = None,
        content: Optional[bytes] = None,
    ) -> httpx.Response:
        logger.debug("[%s] POST %s", self.backend, url)
        try:
            if self._client is not None:
                return await self._client.post(
                    url, headers=dict(headers), json=json, content=content
                )
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                return await client.post(
                    url, headers=dict(headers), json=json, content=content
                )
        except httpx.HTTPError as exc:
            app_metrics.record_request_failure(self.backend)
            raise RequestError(f"{self.backend} request failed: {exc}") from exc

    def status_error(self, response: httpx.Response) -> RequestError:
        """Build the error reported for a non-success response."""
        app_metrics.record_request_failure(self.backend)
        logger.warning(
            "[%s] provider answered HTTP %d", self.backend, response.status_code
        )
        return RequestError(
            f"{self.backend} request failed (HTTP {response.status_code})",
            status_code=response.status_code,
        )

    async def play(
        self,
        handle: PlaybackHandle,
        audio: bytes,
        *,
        suffix: str,
        on_start: Callable[[], None],
    ) -> None:
        if not audio:
            raise DecodeError(f"{self.backend} returned an empty audio payload")
        app_metrics.record_audio_bytes(self.backend, len(audio))
        try:
            path = handle.write_temp_audio(audio, suffix)
            async with AUDIO_OUTPUT.hold(handle.id):
                await self.player.play(path, on_start=on_start)
        except TTSError:
            raise
        except Exception as exc:
            raise PlaybackError(f"Audio playback failed: {exc}") from exc
        finally:
            handle.release()
