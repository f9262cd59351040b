# Copyright (c) 2025 bakajikara
#
# This file is licensed under the MIT License (MIT).
# See the LICENSE file in the project root for the full license text.

"""
SFZ Definition Model - the field set shared by Group and Region.

Every field is listed once in the tables below together with the kind of value the
parser must produce for it and its format default. Fields without a default start
out unset. Controller-indexed fields are stored as 128-entry arrays.
"""

import math
from collections import namedtuple
from pathlib import PurePosixPath, PureWindowsPath, Path

from .constants import (
    NO_KEY,
    NUM_VELOCITIES,
    TRIGGER_VALUES,
    Curve,
    FilterType,
    LoopMode,
    OffMode,
    SwVel,
    Trigger,
)
from .optional import UNSET, ControllerArray, OptionalField


# kind is one of "int", "float", "note", "str", "trigger" or an Enum class
FieldSpec = namedtuple("FieldSpec", ["name", "kind", "default"])

SCALAR_FIELDS = [
    # Sample definition
    FieldSpec("sample", "str", UNSET),

    # Input controls
    FieldSpec("lochan", "int", 1),
    FieldSpec("hichan", "int", 16),
    FieldSpec("lokey", "note", 0),
    FieldSpec("hikey", "note", 127),
    FieldSpec("lovel", "int", 0),
    FieldSpec("hivel", "int", 127),
    FieldSpec("lobend", "int", -8192),
    FieldSpec("hibend", "int", 8192),
    FieldSpec("lochanaft", "int", 0),
    FieldSpec("hichanaft", "int", 127),
    FieldSpec("lopolyaft", "int", 0),
    FieldSpec("hipolyaft", "int", 127),
    FieldSpec("loprog", "int", 0),
    FieldSpec("hiprog", "int", 127),
    FieldSpec("lobpm", "float", 0.0),
    FieldSpec("hibpm", "float", 500.0),
    FieldSpec("lorand", "float", 0.0),
    FieldSpec("hirand", "float", 1.0),
    FieldSpec("lotimer", "float", 0.0),
    FieldSpec("hitimer", "float", float("inf")),
    FieldSpec("seq_length", "int", 1),
    FieldSpec("seq_position", "int", 1),
    FieldSpec("sw_lokey", "note", NO_KEY),
    FieldSpec("sw_hikey", "note", NO_KEY),
    FieldSpec("sw_last", "note", NO_KEY),
    FieldSpec("sw_down", "note", NO_KEY),
    FieldSpec("sw_up", "note", NO_KEY),
    FieldSpec("sw_previous", "note", NO_KEY),
    FieldSpec("sw_vel", SwVel, SwVel.CURRENT),
    FieldSpec("trigger", "trigger", Trigger.ATTACK),
    FieldSpec("group", "int", -1),
    FieldSpec("off_by", "int", -1),
    FieldSpec("off_mode", OffMode, OffMode.FAST),

    # Sample player
    FieldSpec("count", "int", UNSET),
    FieldSpec("delay", "float", 0.0),
    FieldSpec("delay_random", "float", 0.0),
    FieldSpec("delay_samples", "int", UNSET),
    FieldSpec("end", "int", UNSET),
    FieldSpec("loop_mode", LoopMode, LoopMode.NO_LOOP),
    FieldSpec("loop_start", "int", UNSET),
    FieldSpec("loop_end", "int", UNSET),
    FieldSpec("offset", "int", 0),
    FieldSpec("offset_random", "int", 0),

    # Amplifier
    FieldSpec("volume", "float", 0.0),
    FieldSpec("pan", "float", 0.0),
    FieldSpec("width", "float", 100.0),
    FieldSpec("position", "float", 0.0),
    FieldSpec("amp_keytrack", "float", 0.0),
    FieldSpec("amp_keycenter", "note", 60),
    FieldSpec("amp_veltrack", "float", 100.0),
    FieldSpec("amp_random", "float", 0.0),
    FieldSpec("rt_decay", "float", 0.0),
    FieldSpec("xfin_lokey", "note", 0),
    FieldSpec("xfin_hikey", "note", 0),
    FieldSpec("xfout_lokey", "note", 127),
    FieldSpec("xfout_hikey", "note", 127),
    FieldSpec("xf_keycurve", Curve, Curve.POWER),
    FieldSpec("xfin_lovel", "int", 0),
    FieldSpec("xfin_hivel", "int", 0),
    FieldSpec("xfout_lovel", "int", 127),
    FieldSpec("xfout_hivel", "int", 127),
    FieldSpec("xf_velcurve", Curve, Curve.POWER),
    FieldSpec("xf_cccurve", Curve, Curve.POWER),

    # Pitch
    FieldSpec("transpose", "int", 0),
    FieldSpec("tune", "int", 0),
    FieldSpec("pitch_keycenter", "note", 60),
    FieldSpec("pitch_keytrack", "int", 100),
    FieldSpec("pitch_veltrack", "int", 0),
    FieldSpec("pitch_random", "int", 0),
    FieldSpec("bend_up", "int", 200),
    FieldSpec("bend_down", "int", -200),
    FieldSpec("bend_step", "int", 1),

    # Filter
    FieldSpec("fil_type", FilterType, FilterType.LPF_2P),
    FieldSpec("cutoff", "float", UNSET),
    FieldSpec("cutoff_chanaft", "int", 0),
    FieldSpec("cutoff_polyaft", "int", 0),
    FieldSpec("resonance", "float", 0.0),
    FieldSpec("fil_keytrack", "int", 0),
    FieldSpec("fil_keycenter", "note", 60),
    FieldSpec("fil_veltrack", "int", 0),
    FieldSpec("fil_random", "int", 0),
]

# Three-band EQ
for _band, _freq in ((1, 50.0), (2, 500.0), (3, 5000.0)):
    SCALAR_FIELDS += [
        FieldSpec(f"eq{_band}_freq", "float", _freq),
        FieldSpec(f"eq{_band}_bw", "float", 1.0),
        FieldSpec(f"eq{_band}_gain", "float", 0.0),
        FieldSpec(f"eq{_band}_vel2freq", "float", 0.0),
        FieldSpec(f"eq{_band}_vel2gain", "float", 0.0),
    ]

# Controller-indexed fields, written by `{name}N` opcodes (e.g. "locc64")
ARRAY_FIELDS = [
    FieldSpec("locc", "int", 0),
    FieldSpec("hicc", "int", 127),
    FieldSpec("start_locc", "int", UNSET),
    FieldSpec("start_hicc", "int", UNSET),
    FieldSpec("stop_locc", "int", UNSET),
    FieldSpec("stop_hicc", "int", UNSET),
    FieldSpec("on_locc", "int", UNSET),
    FieldSpec("on_hicc", "int", UNSET),
    FieldSpec("delay_oncc", "float", UNSET),
    FieldSpec("delay_samples_oncc", "int", UNSET),
    FieldSpec("offset_oncc", "int", UNSET),
    FieldSpec("gain_oncc", "float", UNSET),
    FieldSpec("xfin_locc", "int", 0),
    FieldSpec("xfin_hicc", "int", 0),
    FieldSpec("xfout_locc", "int", 127),
    FieldSpec("xfout_hicc", "int", 127),
    FieldSpec("cutoff_oncc", "int", UNSET),
    # Indexed by velocity, written by "amp_velcurve_N"
    FieldSpec("amp_velcurve", "float", UNSET),
]

SCALAR_SPECS = {spec.name: spec for spec in SCALAR_FIELDS}
ARRAY_SPECS = {spec.name: spec for spec in ARRAY_FIELDS}

# lo/hi pairs that must satisfy lo <= hi once both are set
RANGE_PAIRS = [
    ("lochan", "hichan"),
    ("lokey", "hikey"),
    ("lovel", "hivel"),
    ("lobend", "hibend"),
    ("lochanaft", "hichanaft"),
    ("lopolyaft", "hipolyaft"),
    ("loprog", "hiprog"),
    ("lobpm", "hibpm"),
    ("lorand", "hirand"),
    ("lotimer", "hitimer"),
    ("sw_lokey", "sw_hikey"),
    ("xfin_lokey", "xfin_hikey"),
    ("xfout_lokey", "xfout_hikey"),
    ("xfin_lovel", "xfin_hivel"),
    ("xfout_lovel", "xfout_hivel"),
]

ARRAY_RANGE_PAIRS = [
    ("locc", "hicc"),
    ("start_locc", "start_hicc"),
    ("stop_locc", "stop_hicc"),
    ("on_locc", "on_hicc"),
    ("xfin_locc", "xfin_hicc"),
    ("xfout_locc", "xfout_hicc"),
]

_TRIGGER_LITERALS = {flag: literal for literal, flag in TRIGGER_VALUES.items()}


def _array_size(spec):
    return NUM_VELOCITIES if spec.name == "amp_velcurve" else 128


def _array_dtype(spec):
    return float if spec.kind == "float" else int


def _serialize(value):
    """Converts a field value into something json can write."""
    if isinstance(value, Trigger):
        return _TRIGGER_LITERALS.get(value, int(value))
    if hasattr(value, "value") and not isinstance(value, (int, float)):
        return value.value
    # JSON has no infinity (hitimer defaults to it)
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


class Definition:
    """
    The field set shared by Group and Region.

    Scalar fields read like plain attributes (`region.lokey`) and raise
    UninitializedValue when unset. Controller-indexed fields return their
    ControllerArray (`region.locc[64]`).
    """

    def __init__(self):
        object.__setattr__(self, "_fields", {spec.name: OptionalField() for spec in SCALAR_FIELDS})
        object.__setattr__(self, "_arrays", {
            spec.name: ControllerArray(_array_dtype(spec), spec.default, size=_array_size(spec))
            for spec in ARRAY_FIELDS
        })
        object.__setattr__(self, "_frozen", False)
        self.reset()

    def reset(self):
        """
        Restores every field, including all controller-indexed arrays, to the format defaults.
        """
        self._check_writable()
        for spec in SCALAR_FIELDS:
            self._fields[spec.name] = OptionalField(spec.default)
        for array in self._arrays.values():
            array.reset()

    def __getattr__(self, name):
        # Only reached when normal attribute lookup fails
        fields = self.__dict__.get("_fields")
        if fields is not None and name in fields:
            return fields[name].get(name)
        arrays = self.__dict__.get("_arrays")
        if arrays is not None and name in arrays:
            return arrays[name]
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    def __setattr__(self, name, value):
        if name in self._fields:
            self._check_writable()
            self._fields[name].set(value)
        elif name in self._arrays:
            raise AttributeError(f"\"{name}\" is controller-indexed; use set_indexed()")
        else:
            object.__setattr__(self, name, value)

    def _check_writable(self):
        if self._frozen:
            raise AttributeError(f"{type(self).__name__} is frozen")

    def field(self, name):
        """Returns the OptionalField holding `name`."""
        return self._fields[name]

    def array(self, name):
        """Returns the ControllerArray holding `name`."""
        return self._arrays[name]

    def is_set(self, name, index=None):
        if index is None:
            return self._fields[name].is_set
        return self._arrays[name].is_set(index)

    def value_or(self, name, default):
        return self._fields[name].value_or(default)

    def set_value(self, name, value):
        self._check_writable()
        self._fields[name].set(value)

    def set_indexed(self, name, index, value):
        self._check_writable()
        self._arrays[name].set(index, value)

    def unset(self, name, index=None):
        self._check_writable()
        if index is None:
            self._fields[name].unset()
        else:
            self._arrays[name].unset(index)

    def inherit(self, other):
        """
        Copies every set field of `other` into this definition.

        Fields left unset on `other` keep whatever value this definition already has.
        """
        self._check_writable()
        for name, field in other._fields.items():
            self._fields[name].update_from(field)
        for name, array in other._arrays.items():
            self._arrays[name].update_from(array)

    def freeze(self):
        """Makes every field read-only."""
        object.__setattr__(self, "_frozen", True)
        for array in self._arrays.values():
            array.values.flags.writeable = False
            array.present.flags.writeable = False

    @property
    def frozen(self):
        return self._frozen

    def to_dict(self):
        """
        Returns a json-serializable dict of the definition.

        Every set scalar field is included. Controller-indexed fields are included
        sparsely, only listing entries that differ from the format default.
        """
        data = {}
        for spec in SCALAR_FIELDS:
            field = self._fields[spec.name]
            if field.is_set:
                data[spec.name] = _serialize(field.get())
        for spec in ARRAY_FIELDS:
            entries = {str(index): _serialize(value) for index, value in self._arrays[spec.name].changed_items()}
            if entries:
                data[spec.name] = entries
        return data

    def __eq__(self, other):
        if not isinstance(other, Definition):
            return NotImplemented
        return self._fields == other._fields and self._arrays == other._arrays

    __hash__ = None


class SequenceTracker:
    """
    Per-Region performance counters mutated as a side effect of trigger evaluation.
    """

    def __init__(self):
        self.reset()

    def reset(self):
        self.sequence_position = 1
        self.last_switch_key = NO_KEY

    def latch_switch_key(self, key, sw_lokey, sw_hikey):
        """Records `key` as the last switch key if it lies in the switch range."""
        if sw_lokey <= key <= sw_hikey:
            self.last_switch_key = key

    def advance(self, seq_length):
        """Moves the round-robin counter forward, wrapping to 1 after `seq_length`."""
        if self.sequence_position < seq_length:
            self.sequence_position += 1
        else:
            self.sequence_position = 1

    def copy(self):
        clone = SequenceTracker()
        clone.sequence_position = self.sequence_position
        clone.last_switch_key = self.last_switch_key
        return clone

    def __repr__(self):
        return f"SequenceTracker(sequence_position={self.sequence_position}, last_switch_key={self.last_switch_key})"


class Region(Definition):
    """
    A playable unit: one sample plus the conditions under which it sounds.

    Created by cloning a Group; holds no reference back to it.
    """

    def __init__(self, region_id=0):
        super().__init__()
        self.id = region_id
        self.tracker = SequenceTracker()

    def sample_path(self, base_dir=None):
        """
        Resolves the sample opcode to a filesystem path.

        Args:
            base_dir: Directory of the .sfz file; relative sample paths are joined to it.

        Returns:
            A Path, or None if the region has no sample.
        """
        if not self.is_set("sample"):
            return None
        raw = self.sample
        # SFZ files written on Windows use backslashes
        parts = PureWindowsPath(raw).parts if "\\" in raw else PurePosixPath(raw).parts
        path = Path(*parts) if parts else Path(raw)
        if base_dir is not None and not path.is_absolute():
            path = Path(base_dir) / path
        return path

    def copy(self):
        clone = Region(self.id)
        for name, field in self._fields.items():
            clone._fields[name] = field.copy()
        for name, array in self._arrays.items():
            clone._arrays[name] = array.copy()
        clone.tracker = self.tracker.copy()
        return clone

    def to_dict(self):
        data = {"id": self.id}
        data.update(super().to_dict())
        return data

    def __eq__(self, other):
        if not isinstance(other, Region):
            return NotImplemented
        return self.id == other.id and super().__eq__(other)

    __hash__ = None

    def __repr__(self):
        sample = self.value_or("sample", None)
        return f"Region(id={self.id}, sample={sample!r})"


class Group(Definition):
    """
    A template of Definition defaults that Regions are cloned from.

    The region id counter lives here and survives `reset()` so ids stay unique
    across every `<group>` of a file.
    """

    def __init__(self):
        super().__init__()
        self._next_region_id = 0

    def create_region(self):
        """
        Clones the current group state into a new Region with the next id.

        Returns:
            The new Region.
        """
        region = Region(self._next_region_id)
        self._next_region_id += 1
        region.inherit(self)
        return region

    def __repr__(self):
        return f"Group(next_region_id={self._next_region_id})"


def validate_region(region):
    """
    Checks the invariants the parser does not enforce.

    Args:
        region: The Region (or Group) to check.

    Returns:
        A list of problem descriptions; empty if the region is consistent.
    """
    problems = []
    for lo_name, hi_name in RANGE_PAIRS:
        if region.is_set(lo_name) and region.is_set(hi_name):
            lo, hi = getattr(region, lo_name), getattr(region, hi_name)
            if lo > hi:
                problems.append(f"{lo_name}={lo} is greater than {hi_name}={hi}")

    for lo_name, hi_name in ARRAY_RANGE_PAIRS:
        lo_array, hi_array = region.array(lo_name), region.array(hi_name)
        both = lo_array.present & hi_array.present
        for index in (both & (lo_array.values > hi_array.values)).nonzero()[0]:
            problems.append(
                f"{lo_name}{index}={lo_array.get(index)} is greater than "
                f"{hi_name}{index}={hi_array.get(index)}"
            )

    if region.is_set("seq_length") and region.is_set("seq_position"):
        if not 1 <= region.seq_position <= region.seq_length:
            problems.append(f"seq_position={region.seq_position} is outside 1-{region.seq_length}")

    if region.is_set("group") and region.is_set("off_by"):
        if region.group != -1 and region.group == region.off_by:
            problems.append(f"group={region.group} is switched off by itself (off_by={region.off_by})")

    return problems
