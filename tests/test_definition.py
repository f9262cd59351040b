"""
Definition Test - Group defaults, Region cloning and range validation
"""

import json

import pytest

from sfzutils.constants import LoopMode, OffMode, SwVel, Trigger
from sfzutils.definition import Group, Region, validate_region
from sfzutils.errors import UninitializedValue


def test_reset_then_create_region_yields_format_defaults():
    group = Group()
    group.lokey = 40
    group.hichan = 2
    group.loop_mode = LoopMode.ONE_SHOT
    group.set_indexed("locc", 1, 20)
    group.set_indexed("on_locc", 64, 64)

    group.reset()
    region = group.create_region()

    assert region.lochan == 1
    assert region.hichan == 16
    assert region.lokey == 0
    assert region.hikey == 127
    assert region.hivel == 127
    assert region.lobend == -8192
    assert region.hibend == 8192
    assert region.hibpm == 500.0
    assert region.hirand == 1.0
    assert region.seq_length == 1
    assert region.seq_position == 1
    assert region.sw_last == -1
    assert region.sw_vel is SwVel.CURRENT
    assert region.trigger == Trigger.ATTACK
    assert region.off_mode is OffMode.FAST
    assert region.loop_mode is LoopMode.NO_LOOP
    assert region.pitch_keycenter == 60
    assert region.eq2_freq == 500.0
    assert all(region.locc.get(i) == 0 for i in range(128))
    assert all(region.hicc.get(i) == 127 for i in range(128))
    assert not any(region.is_set("on_locc", i) for i in range(128))
    assert region == Region(region.id)


def test_fields_without_default_are_unset():
    region = Group().create_region()
    for name in ("sample", "end", "loop_start", "loop_end", "count", "cutoff"):
        assert not region.is_set(name)
    with pytest.raises(UninitializedValue) as excinfo:
        region.sample
    assert excinfo.value.name == "sample"


def test_group_values_are_copied_into_new_regions():
    group = Group()
    group.volume = -6.0
    group.sample = "piano.wav"
    group.set_indexed("gain_oncc", 7, 1.5)

    region = group.create_region()
    assert region.volume == -6.0
    assert region.sample == "piano.wav"
    assert region.gain_oncc.get(7) == 1.5


def test_reset_group_no_longer_supplies_values():
    group = Group()
    group.volume = -6.0
    first = group.create_region()
    group.reset()
    second = group.create_region()

    assert first.volume == -6.0
    assert second.volume == 0.0


def test_region_writes_do_not_touch_group():
    group = Group()
    region = group.create_region()
    region.lokey = 10
    region.set_indexed("hicc", 1, 5)

    assert group.lokey == 0
    assert group.hicc.get(1) == 127
    assert group.create_region().lokey == 0


def test_region_has_no_reference_to_group():
    group = Group()
    region = group.create_region()
    group.lokey = 99
    assert region.lokey == 0


def test_region_ids_increase_across_resets():
    group = Group()
    ids = [group.create_region().id]
    group.reset()
    ids.append(group.create_region().id)
    ids.append(group.create_region().id)
    assert ids == [0, 1, 2]


def test_unknown_attribute_raises_attribute_error():
    with pytest.raises(AttributeError):
        Region().not_an_opcode


def test_arrays_cannot_be_assigned_wholesale():
    with pytest.raises(AttributeError):
        Region().locc = [0] * 128


def test_frozen_region_rejects_writes():
    region = Group().create_region()
    region.freeze()
    assert region.frozen
    with pytest.raises(AttributeError):
        region.lokey = 5
    with pytest.raises(AttributeError):
        region.set_indexed("locc", 1, 5)
    with pytest.raises(ValueError):
        region.locc.set(1, 5)
    # performance counters stay mutable
    region.tracker.advance(2)
    assert region.tracker.sequence_position == 2


def test_copy_is_deep():
    region = Group().create_region()
    region.set_indexed("locc", 3, 30)
    region.tracker.last_switch_key = 36
    clone = region.copy()
    clone.set_indexed("locc", 3, 31)

    assert region.locc.get(3) == 30
    assert clone.tracker.last_switch_key == 36
    assert clone.id == region.id


def test_copy_keeps_unset_fields_unset():
    region = Group().create_region()
    region.unset("lokey")
    region.unset("hicc", 7)
    clone = region.copy()

    assert not clone.is_set("lokey")
    assert not clone.is_set("hicc", 7)
    assert clone == region


def test_copy_of_frozen_region_is_writable():
    region = Group().create_region()
    region.freeze()
    clone = region.copy()
    clone.set_indexed("locc", 1, 5)
    assert clone.locc.get(1) == 5
    assert region.locc.get(1) == 0


def test_to_dict_lists_set_fields_and_changed_controllers():
    region = Group().create_region()
    region.sample = "a.wav"
    region.set_indexed("locc", 64, 10)
    region.set_indexed("delay_oncc", 1, 0.5)

    data = region.to_dict()
    assert data["id"] == 0
    assert data["sample"] == "a.wav"
    assert data["trigger"] == "attack"
    assert data["loop_mode"] == "no_loop"
    assert data["locc"] == {"64": 10}
    assert data["delay_oncc"] == {"1": 0.5}
    assert "hicc" not in data
    assert "end" not in data


def test_to_dict_writes_non_finite_values_as_none():
    region = Group().create_region()
    region.set_indexed("gain_oncc", 7, float("inf"))
    data = region.to_dict()
    assert data["hitimer"] is None
    assert data["gain_oncc"] == {"7": None}
    json.dumps(data, allow_nan=False)


def test_sequence_tracker_wraps():
    tracker = Region().tracker
    positions = []
    for _ in range(4):
        tracker.advance(3)
        positions.append(tracker.sequence_position)
    assert positions == [2, 3, 1, 2]


def test_sample_path_resolution(tmp_path):
    region = Region()
    assert region.sample_path() is None
    region.sample = "samples\\piano C4.wav"
    assert region.sample_path(tmp_path) == tmp_path / "samples" / "piano C4.wav"


def test_default_region_is_valid():
    assert validate_region(Group().create_region()) == []


def test_validate_reports_inverted_ranges():
    region = Region()
    region.lokey = 70
    region.hikey = 60
    region.set_indexed("locc", 5, 100)
    region.set_indexed("hicc", 5, 10)

    problems = validate_region(region)
    assert "lokey=70 is greater than hikey=60" in problems
    assert "locc5=100 is greater than hicc5=10" in problems
    assert len(problems) == 2


def test_validate_reports_sequence_position_outside_length():
    region = Region()
    region.seq_length = 2
    region.seq_position = 3
    assert validate_region(region) == ["seq_position=3 is outside 1-2"]


def test_validate_reports_self_choke():
    region = Region()
    region.group = 2
    region.off_by = 2
    assert len(validate_region(region)) == 1
