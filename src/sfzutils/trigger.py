# Copyright (c) 2025 bakajikara
#
# This file is licensed under the MIT License (MIT).
# See the LICENSE file in the project root for the full license text.

"""
Trigger evaluation - decides whether a Region sounds for a MIDI event.

`matches()` is a short-circuit conjunction of range tests against the event and the
performance state. It also updates the Region's SequenceTracker: the switch-key
latch before the tests, the round-robin counter after them (note-ons only).
"""

from dataclasses import dataclass, field

import numpy as np

from .constants import NO_KEY, NUM_CONTROLLERS, NUM_KEYS, SwVel, Trigger


@dataclass(frozen=True)
class KeyEvent:
    channel: int
    key: int
    velocity: int


@dataclass(frozen=True)
class ControlEvent:
    channel: int
    controller: int
    value: int


def _controller_values():
    return np.zeros(NUM_CONTROLLERS, dtype=np.int64)


def _key_states():
    return np.zeros(NUM_KEYS, dtype=bool)


@dataclass
class PerformanceState:
    """
    Transient performance data an event is evaluated against.

    Attributes:
        bend: Current pitch bend, -8192..8192.
        bpm: Host tempo.
        chanaft: Channel pressure.
        polyaft: Polyphonic aftertouch.
        program: Current program number.
        rand: Random draw in [0, 1) for this event.
        trigger: How the event was generated (Trigger flags).
        cc: Live values of all 128 controllers.
        timer: Seconds since the previous trigger in the region's group.
        keys_down: Which of the 128 keys are currently held.
        previous_note: The note played before this event, or -1.
        previous_velocity: Velocity of the previous note.
    """
    bend: int = 0
    bpm: float = 120.0
    chanaft: int = 0
    polyaft: int = 0
    program: int = 0
    rand: float = 0.0
    trigger: Trigger = Trigger.ATTACK
    cc: np.ndarray = field(default_factory=_controller_values)
    timer: float = 0.0
    keys_down: np.ndarray = field(default_factory=_key_states)
    previous_note: int = NO_KEY
    previous_velocity: int = 0

    def __post_init__(self):
        self.cc = np.asarray(self.cc, dtype=np.int64)
        self.keys_down = np.asarray(self.keys_down, dtype=bool)
        if self.cc.shape != (NUM_CONTROLLERS,):
            raise ValueError(f"cc must hold {NUM_CONTROLLERS} values, got shape {self.cc.shape}")
        if self.keys_down.shape != (NUM_KEYS,):
            raise ValueError(f"keys_down must hold {NUM_KEYS} values, got shape {self.keys_down.shape}")


def matches(region, event, state):
    """
    Evaluates one Region against one event.

    Args:
        region: The Region to test. Its tracker is updated.
        event: A KeyEvent or ControlEvent.
        state: The PerformanceState at the time of the event.

    Returns:
        True if the region should sound.
    """
    tracker = region.tracker
    if isinstance(event, KeyEvent):
        tracker.latch_switch_key(event.key, region.sw_lokey, region.sw_hikey)

    triggered = _is_triggered(region, event, state)

    # controller messages and note-offs leave the round-robin where it is
    if isinstance(event, KeyEvent) and not state.trigger & Trigger.RELEASE:
        tracker.advance(region.seq_length)

    return triggered


def matching_regions(regions, event, state):
    """
    Evaluates every region and returns the ones that sound, in order.

    Every region is evaluated, so every tracker advances even after a match.
    """
    return [region for region in regions if matches(region, event, state)]


def _in_range(region, lo_name, hi_name, value):
    return getattr(region, lo_name) <= value <= getattr(region, hi_name)


def _is_triggered(region, event, state):
    if not _in_range(region, "lochan", "hichan", event.channel):
        return False

    if isinstance(event, KeyEvent):
        if not _in_range(region, "lokey", "hikey", event.key):
            return False
        velocity = state.previous_velocity if region.sw_vel is SwVel.PREVIOUS else event.velocity
        if not _in_range(region, "lovel", "hivel", velocity):
            return False
    elif not _controller_window_matches(region, event.controller, event.value):
        return False

    performance_ranges = (
        ("lobend", "hibend", state.bend),
        ("lobpm", "hibpm", state.bpm),
        ("lochanaft", "hichanaft", state.chanaft),
        ("lopolyaft", "hipolyaft", state.polyaft),
        ("loprog", "hiprog", state.program),
        ("lorand", "hirand", state.rand),
        ("lotimer", "hitimer", state.timer),
    )
    for lo_name, hi_name, value in performance_ranges:
        if not _in_range(region, lo_name, hi_name, value):
            return False

    if region.tracker.sequence_position != region.seq_position:
        return False

    if not _key_switches_pass(region, state):
        return False

    if not region.trigger & state.trigger:
        return False

    return _controllers_in_range(region, state.cc)


def _controller_window_matches(region, controller, value):
    """
    True if `value` lies in the on_locc/on_hicc or start_locc/start_hicc window of `controller`.

    A window is open when either of its bounds is set; the missing bound is 0 or 127.
    """
    for lo_name, hi_name in (("on_locc", "on_hicc"), ("start_locc", "start_hicc")):
        lo, hi = region.array(lo_name), region.array(hi_name)
        if not (lo.is_set(controller) or hi.is_set(controller)):
            continue
        if lo.value_or(controller, 0) <= value <= hi.value_or(controller, 127):
            return True
    return False


def _switch_key_allowed(key, sw_lokey, sw_hikey):
    # keys outside the MIDI range can never be held
    return 0 <= key < NUM_KEYS and sw_lokey <= key <= sw_hikey


def _key_switches_pass(region, state):
    sw_lokey, sw_hikey = region.sw_lokey, region.sw_hikey
    has_range = sw_lokey != NO_KEY and sw_hikey != NO_KEY

    sw_last = region.sw_last
    if has_range and sw_last != NO_KEY:
        if not sw_lokey <= sw_last <= sw_hikey or region.tracker.last_switch_key != sw_last:
            return False

    sw_down = region.sw_down
    if has_range and sw_down != NO_KEY:
        if not _switch_key_allowed(sw_down, sw_lokey, sw_hikey) or not state.keys_down[sw_down]:
            return False

    sw_up = region.sw_up
    if has_range and sw_up != NO_KEY:
        if not _switch_key_allowed(sw_up, sw_lokey, sw_hikey) or state.keys_down[sw_up]:
            return False

    sw_previous = region.sw_previous
    if sw_previous != NO_KEY and state.previous_note != sw_previous:
        return False

    return True


def _controllers_in_range(region, cc):
    """True if every controller lies inside its locc/hicc window."""
    locc, hicc = region.locc, region.hicc
    active = locc.present & hicc.present
    inside = (locc.values <= cc) & (cc <= hicc.values)
    return bool(np.all(inside | ~active))


def get_articulation(region, bend=0, bpm=120.0, chanaft=0, polyaft=0, cc=None):
    """
    Placeholder for per-voice parameter synthesis (gain, pitch, filter cutoff).

    Returns:
        An empty dict.
    """
    return {}
