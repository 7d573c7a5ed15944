from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Dict, Optional

import httpx

from ttskit.audio import AudioPlayer
from ttskit.logging_utils import get_logger
from ttskit.models import SynthesisOptions
from .base import TTSService
from .handle import PlaybackHandle
from .remote_audio import RemoteAudioPipeline


logger = get_logger(__name__)

DEFAULT_VOICE = "zh-CN-XiaoxiaoNeural"
OUTPUT_FORMAT = "audio-16khz-128kbitrate-mono-mp3"
SSML_NAMESPACE = "http://www.w3.org/2001/10/synthesis"
_XML_LANG = "{http://www.w3.org/XML/1998/namespace}lang"


def azure_endpoint(region: str) -> str:
    return f"https://{region}.tts.speech.microsoft.com/cognitiveservices/v1"


def _format_number(value: float) -> str:
    return f"{value:g}"


def build_ssml(text: str, options: SynthesisOptions) -> str:
    """Render resolved options and text as an SSML document.

    The text is inserted as element content, so XML-special characters are
    escaped and spoken literally. Prosody values use SSML units: rate as a
    multiplier, pitch as a relative percentage and volume on a 0-100 scale.
    """
    speak = ET.Element(
        "speak", {"version": "1.0", "xmlns": SSML_NAMESPACE, _XML_LANG: options.lang}
    )
    voice = ET.SubElement(speak, "voice", {"name": options.voice or DEFAULT_VOICE})
    prosody = ET.SubElement(
        voice,
        "prosody",
        {
            "rate": _format_number(options.rate),
            "pitch": f"{(options.pitch - 1.0) * 100:+.0f}%",
            "volume": _format_number(round(options.volume * 100, 2)),
        },
    )
    prosody.text = text
    return ET.tostring(speak, encoding="unicode")


class AzureTTSService(TTSService):
    """Azure Cognitive Services speech over its SSML REST endpoint.

    ``speak`` returns when the fetched audio has finished playing, or raises
    when the request, decoding or playback fails.
    """

    name = "azure"

    def __init__(
        self,
        api_key: str,
        region: str,
        *,
        endpoint: Optional[str] = None,
        player: Optional[AudioPlayer] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ) -> None:
        super().__init__()
        self._api_key = api_key
        self.region = region
        self.endpoint = endpoint or azure_endpoint(region)
        self._pipeline = RemoteAudioPipeline(
            self.name, player=player, client=client, timeout=timeout
        )

    def build_headers(self) -> Dict[str, str]:
        return {
            "Ocp-Apim-Subscription-Key": self._api_key,
            "Content-Type": "application/ssml+xml",
            "X-Microsoft-OutputFormat": OUTPUT_FORMAT,
        }

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
            self.endpoint,
            headers=self.build_headers(),
            content=build_ssml(text, options).encode("utf-8"),
        )
        if not response.is_success:
            raise self._pipeline.status_error(response)
        await self._pipeline.play(
            handle,
            response.content,
            suffix=".mp3",
            on_start=lambda: self._notify_start(handle),
        )
