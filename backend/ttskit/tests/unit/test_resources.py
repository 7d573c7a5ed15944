from __future__ import annotations

import asyncio
import logging

import pytest

from ttskit.providers import PlaybackHandle, UtteranceOutcome
from ttskit.resources import ExclusiveResource


@pytest.mark.asyncio
async def test_exclusive_resource_serializes_holders() -> None:
    resource = ExclusiveResource("speaker")
    order: list[str] = []
    first_inside = asyncio.Event()
    release_first = asyncio.Event()

    async def first() -> None:
        async with resource.hold("first"):
            order.append("first-in")
            first_inside.set()
            await release_first.wait()
            order.append("first-out")

    async def second() -> None:
        await first_inside.wait()
        async with resource.hold("second"):
            order.append("second-in")
            assert resource.holder == "second"

    t1 = asyncio.create_task(first())
    t2 = asyncio.create_task(second())
    await first_inside.wait()
    await asyncio.sleep(0)
    assert resource.locked()
    assert resource.holder == "first"

    release_first.set()
    await asyncio.gather(t1, t2)

    assert order == ["first-in", "first-out", "second-in"]
    assert not resource.locked()


@pytest.mark.asyncio
async def test_exclusive_resource_released_when_holder_is_cancelled() -> None:
    resource = ExclusiveResource("speaker")
    entered = asyncio.Event()

    async def holder() -> None:
        async with resource.hold("doomed"):
            entered.set()
            await asyncio.sleep(10)

    task = asyncio.create_task(holder())
    await entered.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert not resource.locked()
    async with resource.hold("next"):
        assert resource.holder == "next"


@pytest.mark.asyncio
async def test_handle_settles_once_and_cleans_up_temp_audio() -> None:
    handle = PlaybackHandle("remote")
    path = handle.write_temp_audio(b"audio", ".mp3")
    assert path.read_bytes() == b"audio"

    assert handle.resolve(UtteranceOutcome.STOPPED) is True
    assert handle.reject(RuntimeError("late")) is False
    assert not handle.live
    assert handle.outcome.result() is UtteranceOutcome.STOPPED

    handle.release()
    handle.release()
    assert not path.exists()


@pytest.mark.asyncio
async def test_handle_cancel_runs_hooks_even_if_one_fails(caplog) -> None:
    handle = PlaybackHandle("local")
    calls: list[str] = []

    def broken() -> None:
        raise RuntimeError("hook failed")

    handle.on_cancel(broken)
    handle.on_cancel(lambda: calls.append("stopped"))

    with caplog.at_level(logging.ERROR):
        handle.cancel()

    assert calls == ["stopped"]
    assert any("Cancel hook failed" in r.getMessage() for r in caplog.records)
