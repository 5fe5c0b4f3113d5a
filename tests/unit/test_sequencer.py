import pytest

from lenetflow.core.errors import ConfigurationError, InvalidLayer, LayerNotFound
from lenetflow.graph import lenet5
from lenetflow.playback import PlaybackSequencer, SequencerState

IDS = ("input", "conv", "pool", "out")


def _recorded(sequencer):
    events = []
    sequencer.subscribe(events.append)
    return events


def test_initial_state():
    seq = PlaybackSequencer(IDS)
    assert seq.state == SequencerState("input", False, 1000)
    assert seq.max_steps == 3


def test_accepts_layer_graph():
    seq = PlaybackSequencer(lenet5(), step_interval_ms=500)
    assert seq.layer_ids[0] == "input"
    assert seq.layer_ids[-1] == "output"
    assert seq.interval_ms == 500


def test_rejects_bad_construction():
    with pytest.raises(ConfigurationError):
        PlaybackSequencer(())
    with pytest.raises(ConfigurationError):
        PlaybackSequencer(("a", "a"))
    with pytest.raises(ValueError):
        PlaybackSequencer(IDS, step_interval_ms=0)


def test_ticks_run_to_last_layer_and_stop():
    seq = PlaybackSequencer(IDS)
    seq.start()
    moves = [seq.tick() for _ in range(seq.max_steps)]
    assert moves == [True, True, True]
    assert seq.active_layer_id == "out"
    assert not seq.is_running
    assert seq.tick() is False
    assert seq.active_layer_id == "out"


def test_tick_while_paused_is_ignored():
    seq = PlaybackSequencer(IDS)
    assert seq.tick() is False
    assert seq.active_layer_id == "input"


def test_start_at_last_layer_rewinds():
    seq = PlaybackSequencer(IDS)
    seq.jump_to("out")
    state = seq.start()
    assert state.active_layer_id == "input"
    assert state.is_running


def test_start_mid_way_resumes():
    seq = PlaybackSequencer(IDS)
    seq.jump_to("conv")
    assert seq.start().active_layer_id == "conv"


def test_step_forward_pauses_and_clamps():
    seq = PlaybackSequencer(IDS)
    seq.start()
    state = seq.step_forward()
    assert state.active_layer_id == "conv"
    assert not state.is_running
    seq.jump_to("out")
    assert seq.step_forward().active_layer_id == "out"


def test_jump_to_unknown_layer_leaves_state_unchanged():
    seq = PlaybackSequencer(IDS)
    seq.start()
    before = seq.state
    with pytest.raises(InvalidLayer) as info:
        seq.jump_to("fc9")
    assert isinstance(info.value, LayerNotFound)
    assert seq.state == before


def test_toggle_reset_and_interval():
    seq = PlaybackSequencer(IDS)
    assert seq.toggle().is_running
    seq.tick()
    assert not seq.toggle().is_running
    assert seq.active_layer_id == "conv"
    seq.set_interval(2000)
    assert seq.interval_ms == 2000
    with pytest.raises(ValueError):
        seq.set_interval(-5)
    assert seq.reset() == SequencerState("input", False, 2000)


def test_listeners_see_only_real_changes():
    seq = PlaybackSequencer(IDS)
    events = _recorded(seq)
    seq.pause()
    seq.start()
    seq.start()
    seq.tick()
    assert [e.active_layer_id for e in events] == ["input", "conv"]
    assert all(e.is_running for e in events)


def test_unsubscribe_stops_notifications():
    seq = PlaybackSequencer(IDS)
    events = []
    unsubscribe = seq.subscribe(events.append)
    seq.start()
    unsubscribe()
    seq.pause()
    assert len(events) == 1
