from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import List

import httpx
import pytest

from ttskit.errors import RequestError
from ttskit.models import SynthesisOptions
from ttskit.providers import AzureTTSService, UtteranceOutcome
from ttskit.providers.azure_ssml import SSML_NAMESPACE, azure_endpoint, build_ssml


NS = {"s": SSML_NAMESPACE}


def _prosody(ssml: str) -> ET.Element:
    root = ET.fromstring(ssml)
    prosody = root.find("s:voice/s:prosody", NS)
    assert prosody is not None
    return prosody


def test_build_ssml_uses_defaults_and_valid_prosody_units() -> None:
    ssml = build_ssml("你好", SynthesisOptions().resolved())
    root = ET.fromstring(ssml)

    assert root.get("{http://www.w3.org/XML/1998/namespace}lang") == "zh-CN"
    voice = root.find("s:voice", NS)
    assert voice is not None and voice.get("name") == "zh-CN-XiaoxiaoNeural"
    prosody = _prosody(ssml)
    assert prosody.attrib == {"rate": "1", "pitch": "+0%", "volume": "100"}
    assert prosody.text == "你好"


def test_build_ssml_maps_prosody_values() -> None:
    options = SynthesisOptions(lang="en-US", rate=1.5, pitch=1.2, volume=0.5, voice="en-US-JennyNeural")

    prosody = _prosody(build_ssml("hi", options.resolved()))

    assert prosody.attrib == {"rate": "1.5", "pitch": "+20%", "volume": "50"}


def test_build_ssml_escapes_markup_in_text() -> None:
    text = 'Tom & Jerry <break time="5s"/> "quoted"'

    ssml = build_ssml(text, SynthesisOptions().resolved())

    assert "&amp;" in ssml
    assert "&lt;break" in ssml
    assert _prosody(ssml).text == text


def test_azure_endpoint_is_derived_from_region() -> None:
    assert (
        azure_endpoint("eastus")
        == "https://eastus.tts.speech.microsoft.com/cognitiveservices/v1"
    )


@pytest.mark.asyncio
async def test_speak_posts_ssml_with_subscription_key(fake_player, recorder) -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, content=b"MP3")

    service = AzureTTSService(
        "azure-key",
        "westeurope",
        player=fake_player,
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    events = recorder(service)

    assert await service.speak("hello & goodbye") is UtteranceOutcome.COMPLETED

    (request,) = requests
    assert str(request.url) == azure_endpoint("westeurope")
    assert request.headers["Ocp-Apim-Subscription-Key"] == "azure-key"
    assert request.headers["Content-Type"] == "application/ssml+xml"
    assert request.headers["X-Microsoft-OutputFormat"] == "audio-16khz-128kbitrate-mono-mp3"
    assert "Authorization" not in request.headers
    assert _prosody(request.content.decode("utf-8")).text == "hello & goodbye"
    assert fake_player.played == [b"MP3"]
    assert events == ["start", "end"]


@pytest.mark.asyncio
async def test_non_success_status_fails_through_callback_and_result(
    fake_player, recorder
) -> None:
    service = AzureTTSService(
        "bad-key",
        "eastus",
        player=fake_player,
        client=httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(401))
        ),
    )
    events = recorder(service)

    with pytest.raises(RequestError) as excinfo:
        await service.speak("hello")

    assert excinfo.value.status_code == 401
    assert events == [("error", excinfo.value)]
    assert fake_player.played == []
