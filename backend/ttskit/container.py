from __future__ import annotations

from functools import lru_cache

from ttskit.providers import TTSService, get_configured_service


@lru_cache(maxsize=1)
def get_speech_service() -> TTSService:
    """Return the process-wide backend selected by the environment.

    Construction errors (missing credentials) propagate to the caller and
    are not cached, so fixing the environment and retrying works.
    """
    return get_configured_service()
