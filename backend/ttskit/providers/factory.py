from __future__ import annotations

import json
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import httpx

from ttskit.audio import AudioPlayer
from ttskit.config import settings
from ttskit.errors import ConfigurationError
from ttskit.logging_utils import get_logger
from ttskit.models import BackendConfig
from . import presets
from .azure_ssml import AzureTTSService
from .base import TTSService
from .http_remote import RemoteTTSService
from .local_engine import LocalEngineService


logger = get_logger(__name__)


class BackendName(str, Enum):
    LOCAL = "local"
    AZURE = "azure"
    COSYVOICE2 = "cosyvoice2"
    CHAT_TTS = "chat_tts"
    GOOGLE_CLOUD = "google_cloud"
    CUSTOM = "custom"


@dataclass
class ServiceParams:
    """Connection parameters; which ones are required depends on the backend."""

    api_key: Optional[str] = None
    region: Optional[str] = None
    endpoint: Optional[str] = None
    custom_config: Union[BackendConfig, Mapping[str, Any], None] = None

    @classmethod
    def coerce(
        cls, params: Union["ServiceParams", Mapping[str, Any], None]
    ) -> "ServiceParams":
        if params is None:
            return cls()
        if isinstance(params, cls):
            return params
        aliases = {"apiKey": "api_key", "customConfig": "custom_config"}
        allowed = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in params.items():
            name = aliases.get(key, key)
            if name not in allowed:
                raise ConfigurationError(f"Unknown service parameter '{key}'")
            kwargs[name] = value
        return cls(**kwargs)


@dataclass
class _BuildContext:
    params: ServiceParams
    player: Optional[AudioPlayer]
    client: Optional[httpx.AsyncClient]


def _build_local(ctx: _BuildContext) -> TTSService:
    return LocalEngineService()


def _build_azure(ctx: _BuildContext) -> TTSService:
    p = ctx.params
    if not p.api_key or not p.region:
        raise ConfigurationError("Azure TTS requires api_key and region")
    return AzureTTSService(
        p.api_key,
        p.region,
        endpoint=p.endpoint,
        player=ctx.player,
        client=ctx.client,
    )


def _remote(ctx: _BuildContext, name: str, config: BackendConfig) -> TTSService:
    return RemoteTTSService(config, name=name, player=ctx.player, client=ctx.client)


def _build_cosyvoice2(ctx: _BuildContext) -> TTSService:
    p = ctx.params
    return _remote(ctx, "cosyvoice2", presets.cosyvoice2(p.api_key, p.endpoint))


def _build_chat_tts(ctx: _BuildContext) -> TTSService:
    p = ctx.params
    if not p.api_key:
        raise ConfigurationError("ChatTTS requires api_key")
    return _remote(ctx, "chat_tts", presets.chat_tts(p.api_key, p.endpoint))


def _build_google_cloud(ctx: _BuildContext) -> TTSService:
    p = ctx.params
    if not p.api_key:
        raise ConfigurationError("Google Cloud TTS requires api_key")
    return _remote(ctx, "google_cloud", presets.google_cloud(p.api_key, p.endpoint))


def _build_custom(ctx: _BuildContext) -> TTSService:
    raw = ctx.params.custom_config
    if not raw:
        raise ConfigurationError("Custom TTS requires configuration")
    if isinstance(raw, BackendConfig):
        config = raw
    else:
        try:
            config = BackendConfig.from_mapping(raw)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid custom TTS configuration: {exc}") from exc
    return _remote(ctx, "custom", presets.custom(config))


_BACKEND_BUILDERS: Dict[str, Callable[[_BuildContext], TTSService]] = {
    BackendName.LOCAL.value: _build_local,
    BackendName.AZURE.value: _build_azure,
    BackendName.COSYVOICE2.value: _build_cosyvoice2,
    BackendName.CHAT_TTS.value: _build_chat_tts,
    BackendName.GOOGLE_CLOUD.value: _build_google_cloud,
    BackendName.CUSTOM.value: _build_custom,
}


def backend_names() -> List[str]:
    return list(_BACKEND_BUILDERS)


class TTSServiceFactory:
    """Builds a speech backend from a symbolic name and its parameters.

    Missing required parameters raise ConfigurationError before anything
    touches the network. Unknown names fall back to the local engine.
    """

    @staticmethod
    def create_service(
        name: Union[str, BackendName, None],
        params: Union[ServiceParams, Mapping[str, Any], None] = None,
        *,
        player: Optional[AudioPlayer] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> TTSService:
        key = name.value if isinstance(name, BackendName) else str(name or "")
        key = key.strip().lower()
        builder = _BACKEND_BUILDERS.get(key)
        if builder is None:
            logger.warning("Unknown TTS backend '%s'; using the local engine", name)
            builder = _build_local

        ctx = _BuildContext(
            params=ServiceParams.coerce(params), player=player, client=client
        )
        service = builder(ctx)
        logger.info("Created %s for backend '%s'", type(service).__name__, key)
        return service


create_service = TTSServiceFactory.create_service


def get_configured_service() -> TTSService:
    """Build the backend selected through environment configuration."""
    custom_config = None
    if settings.tts_custom_config:
        try:
            custom_config = json.loads(settings.tts_custom_config)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"TTS_CUSTOM_CONFIG is not valid JSON: {exc}") from exc
    return TTSServiceFactory.create_service(
        settings.tts_backend,
        ServiceParams(
            api_key=settings.tts_api_key,
            region=settings.tts_region,
            endpoint=settings.tts_endpoint,
            custom_config=custom_config,
        ),
    )
