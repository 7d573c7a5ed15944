from __future__ import annotations

from prometheus_client import Counter, Gauge

from ttskit.logging_utils import get_logger


logger = get_logger(__name__)


TTS_UTTERANCES_TOTAL = Counter(
    "tts_utterances_total",
    "Total utterances by backend and lifecycle status.",
    ["backend", "status"],
)

TTS_ACTIVE_UTTERANCES = Gauge(
    "tts_active_utterances",
    "Current number of utterances being synthesized or played.",
    ["backend"],
)

TTS_BACKEND_REQUEST_FAILURES_TOTAL = Counter(
    "tts_backend_request_failures_total",
    "Total number of failed remote synthesis requests.",
    ["backend"],
)

TTS_AUDIO_BYTES_TOTAL = Counter(
    "tts_audio_bytes_total",
    "Total number of decoded audio bytes handed to the player.",
    ["backend"],
)

TTS_VOICE_CATALOG_REQUESTS_TOTAL = Counter(
    "tts_voice_catalog_requests_total",
    "Total voice catalog fetches by outcome.",
    ["status"],
)


def record_utterance_started(backend: str) -> None:
    TTS_UTTERANCES_TOTAL.labels(backend=backend, status="started").inc()


def record_utterance_completed(backend: str) -> None:
    TTS_UTTERANCES_TOTAL.labels(backend=backend, status="completed").inc()


def record_utterance_failed(backend: str) -> None:
    TTS_UTTERANCES_TOTAL.labels(backend=backend, status="failed").inc()


def record_utterance_stopped(backend: str) -> None:
    TTS_UTTERANCES_TOTAL.labels(backend=backend, status="stopped").inc()


def increment_active_utterances(backend: str) -> None:
    TTS_ACTIVE_UTTERANCES.labels(backend=backend).inc()


def decrement_active_utterances(backend: str) -> None:
    TTS_ACTIVE_UTTERANCES.labels(backend=backend).dec()


def record_request_failure(backend: str) -> None:
    TTS_BACKEND_REQUEST_FAILURES_TOTAL.labels(backend=backend).inc()


def record_audio_bytes(backend: str, num_bytes: int) -> None:
    TTS_AUDIO_BYTES_TOTAL.labels(backend=backend).inc(num_bytes)


def record_voice_catalog_request(status: str) -> None:
    """Record a voice catalog fetch; `status` is "ok" or "failed"."""
    TTS_VOICE_CATALOG_REQUESTS_TOTAL.labels(status=status).inc()
