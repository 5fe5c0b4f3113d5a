import asyncio

import pytest

from lenetflow.playback import PlaybackSequencer, RepeatingTimer, TimedRunner
from lenetflow.receptive import ConvolutionWalk

IDS = ("input", "conv1", "pool1", "flatten", "output")


def test_playback_runs_to_last_layer_and_cancels_timer():
    async def scenario():
        seq = PlaybackSequencer(IDS, step_interval_ms=1)
        runner = TimedRunner(seq)
        visited = []
        seq.subscribe(lambda state: visited.append(state.active_layer_id))
        seq.start()
        state = await runner.wait_stopped(timeout=2.0)
        return state, runner, visited

    state, runner, visited = asyncio.run(scenario())
    assert state.active_layer_id == "output"
    assert not state.is_running
    assert not runner.timer.active
    assert runner.timer.fired == len(IDS) - 1
    assert visited == list(IDS)


def test_pause_prevents_further_ticks():
    async def scenario():
        seq = PlaybackSequencer(IDS, step_interval_ms=20)
        runner = TimedRunner(seq)
        seq.start()
        seq.pause()
        await asyncio.sleep(0.1)
        return seq, runner

    seq, runner = asyncio.run(scenario())
    assert seq.active_layer_id == "input"
    assert runner.timer.fired == 0
    assert not runner.timer.active


@pytest.mark.parametrize("command", ["jump", "step", "reset"])
def test_manual_commands_stop_playback(command):
    async def scenario():
        seq = PlaybackSequencer(IDS, step_interval_ms=20)
        runner = TimedRunner(seq)
        seq.start()
        if command == "jump":
            seq.jump_to("flatten")
        elif command == "step":
            seq.step_forward()
        else:
            seq.reset()
        expected = seq.active_layer_id
        await asyncio.sleep(0.1)
        return seq, runner, expected

    seq, runner, expected = asyncio.run(scenario())
    assert seq.active_layer_id == expected
    assert runner.timer.fired == 0


def test_interval_change_reschedules_timer():
    async def scenario():
        seq = PlaybackSequencer(IDS, step_interval_ms=1000)
        runner = TimedRunner(seq)
        seq.start()
        first = runner.timer.interval
        seq.set_interval(5)
        second = runner.timer.interval
        state = await runner.wait_stopped(timeout=2.0)
        runner.close()
        return first, second, state

    first, second, state = asyncio.run(scenario())
    assert first == 1.0
    assert second == 0.005
    assert state.active_layer_id == "output"


def test_cancel_inside_callback_wins():
    async def scenario():
        timer = RepeatingTimer()
        calls = []

        def callback():
            calls.append(timer.fired)
            if len(calls) == 3:
                timer.cancel()

        timer.start(0.001, callback)
        await asyncio.sleep(0.1)
        return timer, calls

    timer, calls = asyncio.run(scenario())
    assert calls == [1, 2, 3]
    assert not timer.active


def test_restart_replaces_pending_tick():
    async def scenario():
        timer = RepeatingTimer()
        calls = []
        timer.start(0.05, lambda: calls.append("old"))
        timer.start(0.001, lambda: calls.append("new"))
        await asyncio.sleep(0.02)
        timer.cancel()
        return calls

    calls = asyncio.run(scenario())
    assert calls
    assert set(calls) == {"new"}


def test_timer_rejects_non_positive_interval():
    timer = RepeatingTimer()
    with pytest.raises(ValueError):
        timer.start(0, lambda: None)


def test_walk_runs_on_its_own_timer():
    async def scenario():
        walk = ConvolutionWalk(2, 2, 3, interval_ms=1)
        runner = TimedRunner(walk, name="walk")
        walk.start()
        state = await runner.wait_stopped(timeout=2.0)
        runner.close()
        return walk, state

    walk, state = asyncio.run(scenario())
    assert state.step == 3
    assert walk.active_cell == (1, 1)
    assert not state.is_running


def test_close_detaches_runner():
    async def scenario():
        seq = PlaybackSequencer(IDS, step_interval_ms=20)
        runner = TimedRunner(seq)
        runner.close()
        seq.start()
        await asyncio.sleep(0.1)
        return seq, runner

    seq, runner = asyncio.run(scenario())
    assert seq.active_layer_id == "input"
    assert seq.is_running
    assert not runner.timer.active


def test_runner_attached_to_running_machine_starts_ticking():
    async def scenario():
        seq = PlaybackSequencer(IDS, step_interval_ms=1)
        seq.start()
        runner = TimedRunner(seq)
        active = runner.timer.active
        state = await runner.wait_stopped(timeout=2.0)
        runner.close()
        return active, state

    active, state = asyncio.run(scenario())
    assert active
    assert state.active_layer_id == "output"
    assert not state.is_running
