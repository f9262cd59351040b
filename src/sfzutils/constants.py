# Copyright (c) 2025 bakajikara
#
# This file is licensed under the MIT License (MIT).
# See the LICENSE file in the project root for the full license text.

"""
SFZ Constants - Common constant definitions used by the SFZ model, parser and evaluator.
"""

from enum import Enum, IntFlag


# MIDI limits
NUM_CONTROLLERS = 128
NUM_KEYS = 128
NUM_VELOCITIES = 128

# Sentinel used by the key-switch opcodes for "not configured"
NO_KEY = -1


class Trigger(IntFlag):
    """Flags describing how a note event was generated."""
    ATTACK = 1 << 0
    RELEASE = 1 << 1
    FIRST = 1 << 2
    LEGATO = 1 << 3


TRIGGER_ATTACK = Trigger.ATTACK
TRIGGER_RELEASE = Trigger.RELEASE
TRIGGER_FIRST = Trigger.FIRST
TRIGGER_LEGATO = Trigger.LEGATO

# Literal values accepted by the `trigger` opcode
TRIGGER_VALUES = {
    "attack": Trigger.ATTACK,
    "release": Trigger.RELEASE,
    "first": Trigger.FIRST,
    "legato": Trigger.LEGATO,
}


class LoopMode(Enum):
    NO_LOOP = "no_loop"
    ONE_SHOT = "one_shot"
    LOOP_CONTINUOUS = "loop_continuous"
    LOOP_SUSTAIN = "loop_sustain"


class SwVel(Enum):
    CURRENT = "current"
    PREVIOUS = "previous"


class OffMode(Enum):
    FAST = "fast"
    NORMAL = "normal"


class Curve(Enum):
    GAIN = "gain"
    POWER = "power"


class FilterType(Enum):
    LPF_1P = "lpf_1p"
    HPF_1P = "hpf_1p"
    LPF_2P = "lpf_2p"
    HPF_2P = "hpf_2p"
    BPF_2P = "bpf_2p"
    BRF_2P = "brf_2p"


# Semitone offsets used when a key opcode is written as a note name (C4 = 60)
NOTE_SEMITONES = {"c": 0, "d": 2, "e": 4, "f": 5, "g": 7, "a": 9, "b": 11}

# Section headers
HEADER_GROUP = "<group>"
HEADER_REGION = "<region>"
HEADER_CONTROL = "<control>"
