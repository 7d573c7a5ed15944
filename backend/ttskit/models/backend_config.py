from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Callable, Mapping, Optional

import httpx

from .options import SynthesisOptions


# (text, resolved options) -> JSON-serializable request body
RequestBodyBuilder = Callable[[str, SynthesisOptions], Any]
# provider response -> raw audio bytes
ResponseDecoder = Callable[[httpx.Response], bytes]


@dataclass(frozen=True)
class BackendConfig:
    """How a remote provider is called and how its answer becomes audio.

    `request_body` and `response_decoder` are optional strategies; without
    them the generic remote backend posts its default JSON body and plays
    the raw response bytes.
    """

    endpoint: str
    api_key: Optional[str] = None
    model: Optional[str] = None
    voice: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)
    request_body: Optional[RequestBodyBuilder] = None
    response_decoder: Optional[ResponseDecoder] = None
    audio_suffix: str = ".mp3"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BackendConfig":
        """Build a config from a plain mapping such as a parsed JSON file.

        Accepts the camelCase spellings (`apiKey`, `audioSuffix`) alongside
        the attribute names. Unknown keys are rejected.
        """
        aliases = {"apiKey": "api_key", "audioSuffix": "audio_suffix"}
        allowed = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = aliases.get(key, key)
            if name not in allowed:
                raise ValueError(f"Unknown backend config field '{key}'")
            kwargs[name] = value
        if not kwargs.get("endpoint"):
            raise ValueError("Backend config requires an endpoint")
        return cls(**kwargs)
