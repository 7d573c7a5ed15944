from __future__ import annotations

import os
from dataclasses import dataclass


def _optional_float(name: str) -> float | None:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else None


@dataclass
class AppConfig:
    """Application configuration loaded from environment.

    The HTTP surface and the CLI build their default speech backend from
    these values; library callers usually pass explicit parameters to the
    factory instead.
    """

    # Backend selection for the daemon / CLI (see TTSServiceFactory).
    tts_backend: str = os.getenv("TTS_BACKEND", "local")
    tts_api_key: str | None = os.getenv("TTS_API_KEY") or None
    tts_region: str | None = os.getenv("TTS_REGION") or None
    tts_endpoint: str | None = os.getenv("TTS_ENDPOINT") or None
    # JSON object describing a BackendConfig for the "custom" backend.
    tts_custom_config: str | None = os.getenv("TTS_CUSTOM_CONFIG") or None

    # Remote calls have no deadline unless one is configured here.
    http_timeout_seconds: float | None = _optional_float("TTS_HTTP_TIMEOUT_SECONDS")

    # Voice catalog credential; falls back to the backend credential.
    google_api_key: str | None = (
        os.getenv("GOOGLE_API_KEY") or os.getenv("TTS_API_KEY") or None
    )

    # pyttsx3 driver name (sapi5, nsss, espeak); None lets pyttsx3 pick.
    local_engine_driver: str | None = os.getenv("LOCAL_ENGINE_DRIVER") or None
    local_engine_poll_interval_seconds: float = float(
        os.getenv("LOCAL_ENGINE_POLL_INTERVAL_SECONDS", "0.02")
    )

    # sounddevice output device (index or name); None uses the host default.
    audio_output_device: str | None = os.getenv("AUDIO_OUTPUT_DEVICE") or None


settings = AppConfig()
