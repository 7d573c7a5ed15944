from .base import TTSService
from .handle import PlaybackHandle, UtteranceOutcome
from .local_engine import LocalEngineService
from .http_remote import RemoteTTSService
from .azure_ssml import AzureTTSService
from . import presets
from .factory import (
    BackendName,
    ServiceParams,
    TTSServiceFactory,
    backend_names,
    create_service,
    get_configured_service,
)

__all__ = [
    "TTSService",
    "PlaybackHandle",
    "UtteranceOutcome",
    "LocalEngineService",
    "RemoteTTSService",
    "AzureTTSService",
    "BackendName",
    "ServiceParams",
    "TTSServiceFactory",
    "backend_names",
    "create_service",
    "get_configured_service",
    "presets",
]
