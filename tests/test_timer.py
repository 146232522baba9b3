import asyncio

import pytest

from quiz_engine.timer import Countdown, TimerState


class Recorder:
    def __init__(self):
        self.ticks = []
        self.expired = 0

    def on_tick(self, remaining):
        self.ticks.append(remaining)

    def on_expire(self):
        self.expired += 1


@pytest.mark.asyncio
async def test_untimed_stays_idle():
    rec = Recorder()
    c = Countdown(None, rec.on_expire, rec.on_tick, interval=0.01)
    c.start()
    await asyncio.sleep(0.05)
    assert c.state == TimerState.idle
    assert rec.ticks == [] and rec.expired == 0


@pytest.mark.asyncio
async def test_counts_down_and_expires_once():
    rec = Recorder()
    c = Countdown(3, rec.on_expire, rec.on_tick, interval=0.01)
    c.start()
    assert c.state == TimerState.running
    await asyncio.sleep(0.2)
    assert rec.ticks == [2, 1, 0]
    assert rec.expired == 1
    assert c.state == TimerState.expired
    c.tick()  # nothing happens after expiry
    assert rec.ticks == [2, 1, 0] and rec.expired == 1


@pytest.mark.asyncio
async def test_cancel_releases_the_handle():
    rec = Recorder()
    async with Countdown(5, rec.on_expire, rec.on_tick, interval=0.01) as c:
        await asyncio.sleep(0.025)
    seen = list(rec.ticks)
    await asyncio.sleep(0.1)
    assert rec.ticks == seen  # no stray tick after teardown
    assert rec.expired == 0
    assert c.state == TimerState.stopped
    c.start()
    assert c.state == TimerState.stopped


@pytest.mark.asyncio
async def test_stop_freezes_remaining():
    rec = Recorder()
    c = Countdown(10, rec.on_expire, rec.on_tick, interval=60)
    c.start()
    c.tick()
    c.tick()
    c.stop()
    c.tick()
    assert c.remaining_seconds == 8
    assert c.state == TimerState.stopped


@pytest.mark.asyncio
async def test_resumed_with_no_time_left_expires_immediately():
    rec = Recorder()
    c = Countdown(0, rec.on_expire, rec.on_tick, interval=60)
    c.start()
    assert c.state == TimerState.expired
    assert rec.expired == 1


@pytest.mark.asyncio
async def test_async_expiry_callback_is_scheduled():
    done = asyncio.Event()

    async def on_expire():
        done.set()

    c = Countdown(1, on_expire, interval=60)
    c.start()
    c.tick()
    await asyncio.wait_for(done.wait(), timeout=1)
    assert c.expiry_task is not None and c.expiry_task.done()
