# Copyright (c) 2025 bakajikara
#
# This file is licensed under the MIT License (MIT).
# See the LICENSE file in the project root for the full license text.

from .constants import LoopMode, OffMode, SwVel, Trigger
from .definition import Definition, Group, Region, SequenceTracker, validate_region
from .errors import MalformedValue, SfzError, UninitializedValue, UnknownHeader, UnknownOpcode
from .instrument import Instrument
from .optional import UNSET, ControllerArray, OptionalField
from .parser import SfzParser, load, loads
from .performance import Performance
from .trigger import ControlEvent, KeyEvent, PerformanceState, get_articulation, matches, matching_regions

__all__ = [
    "ControlEvent",
    "ControllerArray",
    "Definition",
    "Group",
    "Instrument",
    "KeyEvent",
    "LoopMode",
    "MalformedValue",
    "OffMode",
    "OptionalField",
    "Performance",
    "PerformanceState",
    "Region",
    "SequenceTracker",
    "SfzError",
    "SfzParser",
    "SwVel",
    "Trigger",
    "UNSET",
    "UninitializedValue",
    "UnknownHeader",
    "UnknownOpcode",
    "get_articulation",
    "load",
    "loads",
    "matches",
    "matching_regions",
    "validate_region",
]
