# Copyright (c) 2025 bakajikara
#
# This file is licensed under the MIT License (MIT).
# See the LICENSE file in the project root for the full license text.

"""
Tri-state (unset / set) field containers.

Every Group and Region field is held in one of these so that a Group can tell the
Region cloned from it which values were actually written and which are still open.
"""

import sys

try:
    import numpy as np
except ImportError:
    print("Error: numpy library is required. Install it with: pip install numpy")
    sys.exit(1)

from .constants import NUM_CONTROLLERS
from .errors import UninitializedValue


class _Unset:
    """Marker for "no value"; distinct from None so None stays a storable value."""

    def __repr__(self):
        return "UNSET"

    def __bool__(self):
        return False


UNSET = _Unset()


class OptionalField:
    """
    A single value with an explicit presence flag.

    Writing sets both the value and the flag. `unset()` clears only the flag, so the
    last written value is kept around but can no longer be read through `get()`.
    """

    __slots__ = ("_value", "_present")

    def __init__(self, value=UNSET):
        if value is UNSET:
            self._value = None
            self._present = False
        else:
            self._value = value
            self._present = True

    @property
    def is_set(self):
        return self._present

    def get(self, name=None):
        """
        Returns the stored value.

        Args:
            name: Field name used in the error message.

        Raises:
            UninitializedValue: If the field has never been set or was unset.
        """
        if not self._present:
            raise UninitializedValue(name)
        return self._value

    def value_or(self, default):
        return self._value if self._present else default

    def set(self, value):
        self._value = value
        self._present = True

    def unset(self):
        self._present = False

    def update_from(self, other):
        """Copies `other` into this field only if `other` is set."""
        if other._present:
            self.set(other._value)

    def copy(self):
        clone = OptionalField()
        clone._value = self._value
        clone._present = self._present
        return clone

    def __eq__(self, other):
        if not isinstance(other, OptionalField):
            return NotImplemented
        if self._present != other._present:
            return False
        return not self._present or self._value == other._value

    __hash__ = None

    def __repr__(self):
        if not self._present:
            return "OptionalField(UNSET)"
        return f"OptionalField({self._value!r})"


class ControllerArray:
    """
    A fixed-size array of optional values indexed by MIDI controller (or velocity) number.

    Values and presence flags are kept in two numpy arrays so range checks over all
    128 controllers can be done in one vectorised comparison.
    """

    def __init__(self, dtype, default=UNSET, size=NUM_CONTROLLERS):
        """
        Initializes the array.

        Args:
            dtype: Python element type, int or float.
            default: Value every entry takes on reset, or UNSET to leave entries unset.
            size: Number of entries.
        """
        self.dtype = dtype
        self.default = default
        self.values = np.zeros(size, dtype=np.int64 if dtype is int else np.float64)
        self.present = np.zeros(size, dtype=bool)
        self.reset()

    def reset(self):
        if self.default is UNSET:
            self.values[:] = 0
            self.present[:] = False
        else:
            self.values[:] = self.default
            self.present[:] = True

    def _check_index(self, index):
        if not 0 <= index < len(self.values):
            raise IndexError(f"index {index} out of range 0-{len(self.values) - 1}")

    def get(self, index, name=None):
        self._check_index(index)
        if not self.present[index]:
            raise UninitializedValue(f"{name}[{index}]" if name else None)
        return self.values[index].item()

    def value_or(self, index, default):
        self._check_index(index)
        return self.values[index].item() if self.present[index] else default

    def set(self, index, value):
        self._check_index(index)
        self.values[index] = value
        self.present[index] = True

    def unset(self, index):
        self._check_index(index)
        self.present[index] = False

    def is_set(self, index):
        self._check_index(index)
        return bool(self.present[index])

    def items(self):
        """Yields (index, value) for every set entry."""
        for index in np.flatnonzero(self.present):
            yield int(index), self.values[index].item()

    def changed_items(self):
        """Yields (index, value) for set entries that differ from the default."""
        mask = self.present.copy()
        if self.default is not UNSET:
            mask &= self.values != self.default
        for index in np.flatnonzero(mask):
            yield int(index), self.values[index].item()

    def update_from(self, other):
        """Copies every set entry of `other` into this array."""
        mask = other.present
        self.values[mask] = other.values[mask]
        self.present |= mask

    def copy(self):
        clone = ControllerArray.__new__(ControllerArray)
        clone.dtype = self.dtype
        clone.default = self.default
        clone.values = self.values.copy()
        clone.present = self.present.copy()
        return clone

    def __len__(self):
        return len(self.values)

    def __getitem__(self, index):
        return self.get(index)

    def __setitem__(self, index, value):
        self.set(index, value)

    def __eq__(self, other):
        if not isinstance(other, ControllerArray):
            return NotImplemented
        if not np.array_equal(self.present, other.present):
            return False
        return bool(np.array_equal(self.values[self.present], other.values[other.present]))

    __hash__ = None

    def __repr__(self):
        entries = ", ".join(f"{i}: {v!r}" for i, v in self.items())
        return f"ControllerArray({{{entries}}})"
