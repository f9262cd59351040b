# Copyright (c) 2025 bakajikara
#
# This file is licensed under the MIT License (MIT).
# See the LICENSE file in the project root for the full license text.

"""
Performance - live MIDI state for one Instrument.

Keeps track of held keys, controllers, bend, pressure, program and tempo, turns
incoming MIDI messages into events and returns the Regions each event triggers.
Evaluation of one event runs to completion before the next one is accepted; a
Performance must not be shared between threads without external locking.
"""

import time

import numpy as np

from .constants import NO_KEY, NUM_CONTROLLERS, NUM_KEYS, Trigger
from .trigger import ControlEvent, KeyEvent, PerformanceState, matches


class Performance:
    """
    Drives trigger evaluation for an Instrument from a stream of MIDI messages.
    """

    def __init__(self, instrument, seed=None, rng=None, clock=time.monotonic):
        """
        Initializes the Performance.

        Args:
            instrument: The Instrument to play.
            seed: Seed for the random draws, used when `rng` is not given.
            rng: A numpy Generator supplying the per-event random draw.
            clock: Callable returning the current time in seconds.
        """
        self.instrument = instrument
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.clock = clock
        self.reset()

    def reset(self):
        """Releases every key, clears controllers and rewinds every region's tracker."""
        self.bend = 0
        self.bpm = 120.0
        self.chanaft = 0
        self.polyaft = 0
        self.program = 0
        self.controllers = np.zeros(NUM_CONTROLLERS, dtype=np.int64)
        self.keys_down = np.zeros(NUM_KEYS, dtype=bool)
        self.key_velocities = np.zeros(NUM_KEYS, dtype=np.int64)
        self.keys_pressed = 0
        self.last_note = NO_KEY
        self.last_velocity = 0
        self._last_trigger_time = {}
        self.instrument.reset_performance_state()

    def pitch_bend(self, value):
        self.bend = value

    def channel_pressure(self, value):
        self.chanaft = value

    def aftertouch(self, value):
        self.polyaft = value

    def program_change(self, value):
        self.program = value

    def set_bpm(self, value):
        self.bpm = value

    def set_controller(self, controller, value):
        """Stores a controller value without evaluating any region."""
        self.controllers[controller] = value

    def note_on(self, channel, key, velocity, rand=None):
        """
        Handles a note-on message.

        A velocity of 0 is treated as a note-off.

        Returns:
            The Regions triggered, in instrument order.
        """
        if velocity == 0:
            return self.note_off(channel, key, rand=rand)

        trigger = Trigger.ATTACK | (Trigger.LEGATO if self.keys_pressed > 0 else Trigger.FIRST)

        if not self.keys_down[key]:
            self.keys_pressed += 1
        self.keys_down[key] = True
        self.key_velocities[key] = velocity

        # previous_note/previous_velocity still describe the note before this one
        state = self._build_state(trigger, rand)
        triggered = self._evaluate(KeyEvent(channel, key, velocity), state)

        self.last_note = key
        self.last_velocity = velocity
        return triggered

    def note_off(self, channel, key, rand=None):
        """
        Handles a note-off message; release regions are evaluated with the velocity
        the key was struck with.

        Returns:
            The Regions triggered, in instrument order.
        """
        if self.keys_down[key]:
            self.keys_pressed -= 1
        self.keys_down[key] = False

        state = self._build_state(Trigger.RELEASE, rand)
        velocity = int(self.key_velocities[key])
        return self._evaluate(KeyEvent(channel, key, velocity), state)

    def control_change(self, channel, controller, value, rand=None):
        """
        Handles a control-change message.

        Returns:
            The Regions triggered, in instrument order.
        """
        self.controllers[controller] = value
        state = self._build_state(Trigger.ATTACK, rand)
        return self._evaluate(ControlEvent(channel, controller, value), state)

    def _build_state(self, trigger, rand):
        if rand is None:
            rand = float(self.rng.random())
        return PerformanceState(
            bend=self.bend,
            bpm=self.bpm,
            chanaft=self.chanaft,
            polyaft=self.polyaft,
            program=self.program,
            rand=rand,
            trigger=trigger,
            cc=self.controllers.copy(),
            keys_down=self.keys_down.copy(),
            previous_note=self.last_note,
            previous_velocity=self.last_velocity,
        )

    def _evaluate(self, event, state):
        now = self.clock()
        triggered = []
        for region in self.instrument:
            last_time = self._last_trigger_time.get(region.group)
            state.timer = float("inf") if last_time is None else now - last_time
            if matches(region, event, state):
                triggered.append(region)

        for region in triggered:
            self._last_trigger_time[region.group] = now
        return triggered
