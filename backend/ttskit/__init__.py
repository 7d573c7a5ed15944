"""Unified text-to-speech backends behind one speak/stop lifecycle."""

from .errors import (
    ConfigurationError,
    DecodeError,
    EngineError,
    InputError,
    PlaybackError,
    RequestError,
    TTSError,
)
from .models import BackendConfig, BoundaryEvent, SynthesisOptions, Voice
from .providers import (
    AzureTTSService,
    BackendName,
    LocalEngineService,
    PlaybackHandle,
    RemoteTTSService,
    ServiceParams,
    TTSService,
    TTSServiceFactory,
    UtteranceOutcome,
    backend_names,
    create_service,
)
from .providers import presets
from .services import list_voices

__all__ = [
    "ConfigurationError",
    "DecodeError",
    "EngineError",
    "InputError",
    "PlaybackError",
    "RequestError",
    "TTSError",
    "BackendConfig",
    "BoundaryEvent",
    "SynthesisOptions",
    "Voice",
    "AzureTTSService",
    "BackendName",
    "LocalEngineService",
    "PlaybackHandle",
    "RemoteTTSService",
    "ServiceParams",
    "TTSService",
    "TTSServiceFactory",
    "UtteranceOutcome",
    "backend_names",
    "create_service",
    "presets",
    "list_voices",
]
