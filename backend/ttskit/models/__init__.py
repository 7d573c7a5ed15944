from .api import (
    SpeechRequest,
    SpeechAcceptedResponse,
    BackendsResponse,
    VoicesResponse,
    HealthResponse,
)
from .backend_config import BackendConfig, RequestBodyBuilder, ResponseDecoder
from .options import BoundaryEvent, SynthesisOptions
from .voice import Voice, VoiceCatalog

__all__ = [
    "SpeechRequest",
    "SpeechAcceptedResponse",
    "BackendsResponse",
    "VoicesResponse",
    "HealthResponse",
    "BackendConfig",
    "RequestBodyBuilder",
    "ResponseDecoder",
    "BoundaryEvent",
    "SynthesisOptions",
    "Voice",
    "VoiceCatalog",
]
