# Copyright (c) 2025 bakajikara
#
# This file is licensed under the MIT License (MIT).
# See the LICENSE file in the project root for the full license text.

"""
Exceptions and warnings raised while loading and evaluating SFZ instruments.
"""


class SfzError(Exception):
    """Base class for all sfzutils errors."""


class MalformedValue(SfzError, ValueError):
    """
    An opcode value could not be converted to the type its field expects.

    Fatal: the load that produced it is aborted.
    """

    def __init__(self, opcode, value, section=None, line_number=None, source=None):
        self.opcode = opcode
        self.value = value
        self.section = section
        self.line_number = line_number
        self.source = source

        location = ""
        if source is not None:
            location += f"{source}:"
        if line_number is not None:
            location += f"{line_number}: "
        elif location:
            location += " "
        where = f" in <{section}>" if section else ""
        super().__init__(f"{location}malformed value \"{value}\" for opcode \"{opcode}\"{where}")


class UninitializedValue(SfzError):
    """An optional field was read before it was ever set."""

    def __init__(self, name=None):
        self.name = name
        if name is None:
            super().__init__("value is not set")
        else:
            super().__init__(f"\"{name}\" is not set")


class SfzWarning(UserWarning):
    """Base class for non-fatal problems found while parsing."""


class UnknownHeader(SfzWarning):
    """A section header that is not modeled; its opcodes are discarded."""

    def __init__(self, header, line_number=None):
        self.header = header
        self.line_number = line_number
        prefix = f"line {line_number}: " if line_number is not None else ""
        super().__init__(f"{prefix}unknown header {header}, ignoring its opcodes")


class UnknownOpcode(SfzWarning):
    """An opcode key, or an enumerated literal, that is not recognized."""

    def __init__(self, opcode, value=None, line_number=None):
        self.opcode = opcode
        self.value = value
        self.line_number = line_number
        prefix = f"line {line_number}: " if line_number is not None else ""
        if value is None:
            super().__init__(f"{prefix}unknown opcode \"{opcode}\"")
        else:
            super().__init__(f"{prefix}unknown value \"{value}\" for opcode \"{opcode}\"")
