from __future__ import annotations

from typing import Any, List

import pytest

from ttskit import cli
from ttskit.errors import RequestError
from ttskit.models import SynthesisOptions, Voice
from ttskit.providers import ServiceParams


def test_speak_builds_backend_and_speaks(
    monkeypatch: pytest.MonkeyPatch, recording_service
) -> None:
    calls: List[Any] = []

    def fake_create_service(name, params):
        calls.append((name, params))
        return recording_service

    monkeypatch.setattr(cli, "create_service", fake_create_service)

    code = cli.main(
        ["speak", "--text", "hello", "--backend", "chat_tts", "--api-key", "k", "--rate", "1.2"]
    )

    assert code == 0
    ((name, params),) = calls
    assert name == "chat_tts"
    assert isinstance(params, ServiceParams) and params.api_key == "k"
    assert recording_service.spoken == [
        ("hello", SynthesisOptions(rate=1.2).resolved())
    ]


def test_speak_failure_returns_non_zero(
    monkeypatch: pytest.MonkeyPatch, recording_service
) -> None:
    recording_service.error = RequestError("provider down")
    monkeypatch.setattr(cli, "create_service", lambda name, params: recording_service)

    assert cli.main(["speak", "--text", "hello"]) == 1


def test_voices_prints_filtered_catalog(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    seen: List[Any] = []

    async def fake_list_voices(api_key, language=None):
        seen.append((api_key, language))
        return [Voice(name="en-US-Neural2-A", language_codes=["en-US"], ssml_gender="MALE")]

    monkeypatch.setattr(cli, "list_voices", fake_list_voices)

    code = cli.main(["voices", "--api-key", "g-key", "--language", "en-US"])

    assert code == 0
    assert seen == [("g-key", "en-US")]
    assert capsys.readouterr().out.strip() == "en-US-Neural2-A\ten-US\tMALE"
