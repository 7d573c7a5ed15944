from __future__ import annotations

import json
from typing import List

import httpx
import pytest

from ttskit.models import BackendConfig, SynthesisOptions
from ttskit.providers import LocalEngineService, TTSService, TTSServiceFactory


EXPLICIT_DEFAULTS = SynthesisOptions(rate=1, pitch=1, volume=1, lang="zh-CN")

REMOTE_BACKENDS = {
    "azure": {"api_key": "k", "region": "eastus"},
    "cosyvoice2": {},
    "chat_tts": {"api_key": "k"},
    "google_cloud": {"api_key": "k"},
    "custom": {"custom_config": BackendConfig(endpoint="https://tts.example/v1", model="m")},
}


def _remote(name: str, player, requests: List[httpx.Request]) -> TTSService:
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if name == "google_cloud":
            return httpx.Response(200, json={"audioContent": "QVVESU8="})
        return httpx.Response(200, content=b"AUDIO")

    return TTSServiceFactory.create_service(
        name,
        REMOTE_BACKENDS[name],
        player=player,
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.mark.parametrize("name", sorted(REMOTE_BACKENDS))
@pytest.mark.asyncio
async def test_remote_requests_identical_with_and_without_explicit_defaults(
    name, fake_player
) -> None:
    requests: List[httpx.Request] = []
    service = _remote(name, fake_player, requests)

    await service.speak("hi")
    await service.speak("hi", EXPLICIT_DEFAULTS)

    implicit, explicit = requests
    assert implicit.url == explicit.url
    if name != "azure":
        assert json.loads(implicit.content) == json.loads(explicit.content)
    assert dict(implicit.headers) == dict(explicit.headers)
    assert implicit.content == explicit.content


@pytest.mark.asyncio
async def test_local_engine_configured_identically(fake_engine) -> None:
    snapshots: List[dict] = []
    service = LocalEngineService(engine_factory=lambda: fake_engine, poll_interval_seconds=0)

    def snapshot() -> None:
        props = fake_engine.properties
        snapshots.append({k: props[k] for k in ("rate", "volume", "voice")})

    service.on_start = snapshot

    await service.speak("hi")
    await service.speak("hi", EXPLICIT_DEFAULTS)

    assert len(snapshots) == 2
    assert snapshots[0] == snapshots[1]
