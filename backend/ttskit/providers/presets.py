from __future__ import annotations

import base64
import binascii
import math
from typing import Any, Callable, Dict, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from ttskit.errors import DecodeError, RequestError
from ttskit.models import BackendConfig, SynthesisOptions


COSYVOICE2_ENDPOINT = "http://localhost:5000/tts"
CHAT_TTS_ENDPOINT = "https://api.chattts.com/v1/tts"
GOOGLE_CLOUD_ENDPOINT = "https://texttospeech.googleapis.com/v1/text:synthesize"

# Google accepts volumeGainDb within [-96, 16].
MIN_GAIN_DB = -96.0
MAX_GAIN_DB = 16.0


def volume_to_gain_db(volume: Optional[float]) -> float:
    """Map a linear volume in [0, 1] onto a decibel gain.

    Unset volume means no gain change; silence clamps to the provider floor.
    """
    if volume is None:
        return 0.0
    if volume <= 0:
        return MIN_GAIN_DB
    return max(MIN_GAIN_DB, min(MAX_GAIN_DB, 20.0 * math.log10(volume)))


def pitch_to_semitones(pitch: Optional[float]) -> float:
    if not pitch:
        return 0.0
    return max(-20.0, min(20.0, 12.0 * math.log2(pitch)))


def identity_decoder(response: httpx.Response) -> bytes:
    return response.content


class _GoogleErrorDetail(BaseModel):
    code: Optional[int] = None
    message: str = "Unknown error"
    status: Optional[str] = None


class _GoogleErrorEnvelope(BaseModel):
    error: _GoogleErrorDetail


class _GoogleSynthesizeResponse(BaseModel):
    audio_content: str = Field(alias="audioContent")


def decode_google_audio(response: httpx.Response) -> bytes:
    """Decode a text:synthesize response into MP3 bytes.

    Error responses carry ``{"error": {"code", "message", "status"}}``; their
    message is surfaced as a RequestError.
    """
    if not response.is_success:
        try:
            message = _GoogleErrorEnvelope.model_validate_json(response.content).error.message
        except ValidationError:
            message = response.text or "Unknown error"
        raise RequestError(
            f"Google Cloud TTS failed: {message}", status_code=response.status_code
        )

    try:
        payload = _GoogleSynthesizeResponse.model_validate_json(response.content)
        return base64.b64decode(payload.audio_content, validate=True)
    except (ValidationError, binascii.Error) as exc:
        raise DecodeError(f"Google Cloud TTS returned malformed audio: {exc}") from exc


def cosyvoice2(
    api_key: Optional[str] = None,
    endpoint: Optional[str] = None,
) -> BackendConfig:
    """Local CosyVoice2 / Coqui-style voice server; needs no credential."""

    def request_body(text: str, options: SynthesisOptions) -> Dict[str, Any]:
        return {
            "text": text,
            "speaker_id": options.voice or "default",
            "language": options.lang,
        }

    return BackendConfig(
        endpoint=endpoint or COSYVOICE2_ENDPOINT,
        api_key=api_key,
        request_body=request_body,
        response_decoder=identity_decoder,
        audio_suffix=".wav",
    )


def chat_tts(api_key: str, endpoint: Optional[str] = None) -> BackendConfig:
    def request_body(text: str, options: SynthesisOptions) -> Dict[str, Any]:
        return {
            "text": text,
            "voice": options.voice or "zh-CN-natural",
            "speed": options.rate,
        }

    return BackendConfig(
        endpoint=endpoint or CHAT_TTS_ENDPOINT,
        api_key=api_key,
        request_body=request_body,
        response_decoder=identity_decoder,
    )


def google_cloud(api_key: str, endpoint: Optional[str] = None) -> BackendConfig:
    """Google Cloud Text-to-Speech; the key travels in X-Goog-Api-Key."""

    def request_body(text: str, options: SynthesisOptions) -> Dict[str, Any]:
        return {
            "input": {"text": text},
            "voice": {
                "languageCode": options.lang,
                "name": options.voice or "zh-CN-Neural2-A",
            },
            "audioConfig": {
                "audioEncoding": "MP3",
                "pitch": pitch_to_semitones(options.pitch),
                "speakingRate": options.rate,
                "volumeGainDb": volume_to_gain_db(options.volume),
            },
        }

    return BackendConfig(
        endpoint=endpoint or GOOGLE_CLOUD_ENDPOINT,
        headers={"Content-Type": "application/json", "X-Goog-Api-Key": api_key},
        request_body=request_body,
        response_decoder=decode_google_audio,
    )


def custom(config: BackendConfig) -> BackendConfig:
    """Escape hatch: the caller's config is used as-is."""
    return config


PRESETS: Dict[str, Callable[..., BackendConfig]] = {
    "cosyvoice2": cosyvoice2,
    "chat_tts": chat_tts,
    "google_cloud": google_cloud,
}
