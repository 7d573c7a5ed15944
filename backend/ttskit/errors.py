from __future__ import annotations


class TTSError(Exception):
    """Base exception for all speech synthesis failures."""


class ConfigurationError(TTSError):
    """A backend was requested without the parameters it needs.

    Raised synchronously by the factory, before any backend exists.
    """


class RequestError(TTSError):
    """A remote call failed (transport error or non-success status)."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodeError(TTSError):
    """A provider response could not be turned into playable audio."""


class PlaybackError(TTSError):
    """The host audio facility reported a fault."""


class EngineError(TTSError):
    """The local synthesis engine reported a fault."""


class InputError(TTSError, ValueError):
    """The text or options handed to ``speak`` cannot be spoken."""
