from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from ttskit import metrics as app_metrics
from ttskit.audio import AudioPlayer
from ttskit.errors import DecodeError, RequestError, TTSError
from ttskit.logging_utils import get_logger
from ttskit.models import BackendConfig, SynthesisOptions
from .base import TTSService
from .handle import PlaybackHandle
from .remote_audio import RemoteAudioPipeline


logger = get_logger(__name__)


def default_request_body(
    config: BackendConfig,
    text: str,
    options: SynthesisOptions,
) -> Dict[str, Any]:
    return {
        "text": text,
        "model": config.model,
        "voice": options.voice or config.voice,
        "language": options.lang,
        "speed": options.rate,
        "volume": options.volume,
        "pitch": options.pitch,
    }


class RemoteTTSService(TTSService):
    """Generic HTTP synthesis backend driven by a BackendConfig.

    Posts a JSON body to the configured endpoint, turns the response into
    audio bytes and plays them. Presets plug provider specifics in through
    the config's ``request_body`` and ``response_decoder`` strategies.
    Remote audio carries no word timing, so ``on_boundary`` never fires.
    """

    name = "remote"

    def __init__(
        self,
        config: BackendConfig,
        *,
        name: Optional[str] = None,
        player: Optional[AudioPlayer] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__()
        if name:
            self.name = name
        self.config = config
        self._pipeline = RemoteAudioPipeline(
            self.name, player=player, client=client, timeout=timeout
        )

    def build_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", **self.config.headers}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    def build_body(self, text: str, options: SynthesisOptions) -> Any:
        if self.config.request_body is not None:
            return self.config.request_body(text, options)
        return default_request_body(self.config, text, options)

    def pause(self) -> None:
        if self.speaking:
            self._pipeline.player.pause()

    def resume(self) -> None:
        if self.speaking:
            self._pipeline.player.resume()

    async def _perform(
        self,
        handle: PlaybackHandle,
        text: str,
        options: SynthesisOptions,
    ) -> None:
        response = await self._pipeline.post(
            self.config.endpoint,
            headers=self.build_headers(),
            json=self.build_body(text, options),
        )
        audio = self._decode(response)
        await self._pipeline.play(
            handle,
            audio,
            suffix=self.config.audio_suffix,
            on_start=lambda: self._notify_start(handle),
        )

    def _decode(self, response: httpx.Response) -> bytes:
        decoder = self.config.response_decoder
        if not response.is_success:
            if decoder is not None:
                # Provider decoders may report a more specific error payload.
                try:
                    decoder(response)
                except RequestError:
                    app_metrics.record_request_failure(self.name)
                    raise
                except Exception as exc:
                    raise self._pipeline.status_error(response) from exc
            raise self._pipeline.status_error(response)

        if decoder is None:
            return response.content
        try:
            return decoder(response)
        except TTSError:
            raise
        except Exception as exc:
            raise DecodeError(
                f"{self.name} response could not be decoded: {exc}"
            ) from exc
