from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

from ttskit.models import SynthesisOptions
from ttskit.providers import PlaybackHandle, TTSService


class FakePlayer:
    """AudioPlayer double that records what it was asked to play.

    Set `gate` to an asyncio.Event to keep playback running until the test
    releases it; set `error` to make playback fail.
    """

    def __init__(self) -> None:
        self.played: List[bytes] = []
        self.paths: List[Path] = []
        self.gate: Optional[asyncio.Event] = None
        self.error: Optional[Exception] = None
        self.paused = False

    async def play(self, path: Path, *, on_start: Callable[[], None]) -> None:
        self.paths.append(path)
        self.played.append(path.read_bytes())
        if self.error is not None:
            raise self.error
        on_start()
        if self.gate is not None:
            await self.gate.wait()

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False


@dataclass
class FakeVoice:
    id: str
    name: str
    languages: List[Any] = field(default_factory=list)
    gender: Optional[str] = None


class FakeEngine:
    """In-memory stand-in for a pyttsx3 engine driven by an external loop.

    `mode` decides what the next utterance does on `iterate()`:
    "complete" speaks every word and finishes, "hold" starts and waits for
    `stop()`, "error" reports a driver error and "interrupted" finishes
    with completed=False.
    """

    def __init__(self, voices: Optional[List[FakeVoice]] = None, mode: str = "complete") -> None:
        self.mode = mode
        self.properties: Dict[str, Any] = {
            "rate": 200,
            "volume": 1.0,
            "voice": "default-voice",
            "voices": voices
            or [
                FakeVoice("default-voice", "Default", [b"\x05en-us"], "male"),
                FakeVoice("zh-voice", "Huihui", ["zh-CN"], "female"),
            ],
        }
        self.callbacks: Dict[str, List[Callable[..., None]]] = {}
        self.pending: List[tuple[str, str]] = []
        self.current: Optional[str] = None
        self.said: List[str] = []
        self.in_loop = False
        self.loop_ended = 0
        self.stopped = False

    def getProperty(self, name: str) -> Any:
        return self.properties[name]

    def setProperty(self, name: str, value: Any) -> None:
        self.properties[name] = value

    def connect(self, topic: str, cb: Callable[..., None]) -> Dict[str, Any]:
        self.callbacks.setdefault(topic, []).append(cb)
        return {"topic": topic, "cb": cb}

    def disconnect(self, token: Dict[str, Any]) -> None:
        self.callbacks[token["topic"]].remove(token["cb"])

    def connected(self) -> int:
        return sum(len(cbs) for cbs in self.callbacks.values())

    def _fire(self, topic: str, *args: Any) -> None:
        for cb in list(self.callbacks.get(topic, [])):
            cb(*args)

    def say(self, text: str, name: Optional[str] = None) -> None:
        self.said.append(text)
        self.pending.append((text, name or ""))

    def startLoop(self, useDriverLoop: bool = True) -> None:
        if self.in_loop:
            raise RuntimeError("run loop already started")
        self.in_loop = True

    def endLoop(self) -> None:
        if not self.in_loop:
            raise RuntimeError("run loop not started")
        self.in_loop = False
        self.loop_ended += 1

    def iterate(self) -> None:
        if not self.pending:
            return
        text, name = self.pending.pop(0)
        self.current = name
        self._fire("started-utterance", name)
        if self.mode == "error":
            self._fire("error", name, RuntimeError("driver crashed"))
            return
        if self.mode == "interrupted":
            self._fire("finished-utterance", name, False)
            return
        location = 0
        for word in text.split(" "):
            self._fire("started-word", name, location, len(word))
            location += len(word) + 1
        if self.mode == "complete":
            self._fire("finished-utterance", name, True)
            self.current = None

    def stop(self) -> None:
        self.stopped = True
        if self.current is not None:
            self._fire("finished-utterance", self.current, False)
            self.current = None


class RecordingService(TTSService):
    """Backend double that finishes each utterance without doing any I/O."""

    name = "recording"

    def __init__(self) -> None:
        super().__init__()
        self.spoken: List[tuple[str, SynthesisOptions]] = []
        self.stop_calls = 0
        self.error: Optional[Exception] = None

    def stop(self) -> None:
        self.stop_calls += 1
        super().stop()

    async def _perform(
        self,
        handle: PlaybackHandle,
        text: str,
        options: SynthesisOptions,
    ) -> None:
        self.spoken.append((text, options))
        self._notify_start(handle)
        if self.error is not None:
            raise self.error


@pytest.fixture
def fake_player() -> FakePlayer:
    return FakePlayer()


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def recording_service() -> RecordingService:
    return RecordingService()


@pytest.fixture
def events() -> List[Any]:
    return []


def attach_recorder(service: TTSService, events: List[Any]) -> None:
    service.on_start = lambda: events.append("start")
    service.on_end = lambda: events.append("end")
    service.on_error = lambda exc: events.append(("error", exc))
    service.on_boundary = lambda event: events.append(("boundary", event.char_index))


@pytest.fixture
def recorder(events: List[Any]) -> Callable[[TTSService], List[Any]]:
    """Wire a service's callbacks into the shared `events` list."""

    def _attach(service: TTSService) -> List[Any]:
        attach_recorder(service, events)
        return events

    return _attach


@pytest.fixture
def wait_until() -> Callable[..., Any]:
    async def _wait(predicate: Callable[[], bool], attempts: int = 200) -> None:
        for _ in range(attempts):
            if predicate():
                return
            await asyncio.sleep(0.005)
        raise AssertionError("condition not reached")

    return _wait
