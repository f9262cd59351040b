# Copyright (c) 2025 bakajikara
#
# This file is licensed under the MIT License (MIT).
# See the LICENSE file in the project root for the full license text.

"""
SFZ Parser - Reads SFZ text into Group, Region and Instrument objects.

The text is consumed line by line. Everything after "//" is a comment. Tokens in
angle brackets are headers, tokens containing "=" start an opcode, and any other
token continues the value of the previous opcode (sample paths may contain spaces).
"""

import re
from pathlib import Path

from .constants import (
    HEADER_CONTROL,
    HEADER_GROUP,
    HEADER_REGION,
    NOTE_SEMITONES,
    TRIGGER_VALUES,
)
from .definition import ARRAY_SPECS, SCALAR_SPECS, Group
from .errors import MalformedValue, UnknownHeader, UnknownOpcode
from .instrument import Instrument


SECTION_GROUP = "group"
SECTION_REGION = "region"
SECTION_CONTROL = "control"

_HEADER_PATTERN = re.compile(r"(<[^<>\s]*>)")
_INDEXED_OPCODE_PATTERN = re.compile(r"([a-z_]+)(\d+)")
_NOTE_NAME_PATTERN = re.compile(r"([a-gA-G])([#b]?)(-?\d+)")

# Opcodes that write more than one field
_OPCODE_ALIASES = {
    "key": ("lokey", "hikey"),
}


def parse_note(text):
    """
    Parses a MIDI note number written as an integer or a note name.

    Note names are a letter, an optional "#" or "b", and an octave, with C4 = 60.

    Args:
        text: The raw opcode value.

    Returns:
        The note number as an int.

    Raises:
        ValueError: If the text is neither an integer nor a note name.
    """
    try:
        return int(text)
    except ValueError:
        pass
    match = _NOTE_NAME_PATTERN.fullmatch(text.strip())
    if match is None:
        raise ValueError(f"invalid note: {text!r}")
    letter, accidental, octave = match.groups()
    semitone = NOTE_SEMITONES[letter.lower()]
    if accidental == "#":
        semitone += 1
    elif accidental == "b":
        semitone -= 1
    return 12 * (int(octave) + 1) + semitone


def coerce_value(kind, opcode, value):
    """
    Converts a raw opcode value into the type its field expects.

    Args:
        kind: The field kind from the definition tables.
        opcode: The opcode key, for error reporting.
        value: The raw text after "=".

    Returns:
        The converted value, or None for an unrecognized enumerated literal.

    Raises:
        MalformedValue: If a numeric value cannot be parsed.
    """
    if kind == "str":
        return value
    if kind == "trigger":
        return TRIGGER_VALUES.get(value)
    if not isinstance(kind, str):
        # Enumeration: the literal is the enum value
        try:
            return kind(value)
        except ValueError:
            return None
    try:
        if kind == "int":
            return int(value)
        if kind == "float":
            return float(value)
        if kind == "note":
            return parse_note(value)
    except ValueError:
        raise MalformedValue(opcode, value) from None
    raise ValueError(f"unknown field kind: {kind!r}")


def apply_opcode(definition, opcode, value):
    """
    Writes one opcode into a Group or Region.

    Args:
        definition: The Group or Region to write.
        opcode: The opcode key (text before "=").
        value: The opcode value (text after "=").

    Returns:
        None if the opcode was applied, or an UnknownOpcode warning if the key or an
        enumerated literal was not recognized.

    Raises:
        MalformedValue: If a numeric value cannot be parsed.
    """
    if opcode in _OPCODE_ALIASES:
        names = _OPCODE_ALIASES[opcode]
        converted = coerce_value(SCALAR_SPECS[names[0]].kind, opcode, value)
        for name in names:
            definition.set_value(name, converted)
        return None

    spec = SCALAR_SPECS.get(opcode)
    if spec is not None:
        converted = coerce_value(spec.kind, opcode, value)
        if converted is None:
            return UnknownOpcode(opcode, value)
        definition.set_value(spec.name, converted)
        return None

    match = _INDEXED_OPCODE_PATTERN.fullmatch(opcode)
    if match is not None:
        name, index = match.group(1), int(match.group(2))
        if name == "amp_velcurve_":
            name = "amp_velcurve"
        elif not name.endswith("cc"):
            name = None
        spec = ARRAY_SPECS.get(name)
        if spec is not None and index < len(definition.array(spec.name)):
            converted = coerce_value(spec.kind, opcode, value)
            try:
                definition.set_indexed(spec.name, index, converted)
            except OverflowError:
                # does not fit the array dtype
                raise MalformedValue(opcode, value) from None
            return None

    return UnknownOpcode(opcode)


class SfzParser:
    """
    A parser for SFZ files.
    """

    def __init__(self, encoding="utf-8", verbose=False):
        """
        Initializes the SfzParser.

        Args:
            encoding: Text encoding used by `load()`.
            verbose: Print progress while loading files.
        """
        self.encoding = encoding
        self.verbose = verbose
        self.instrument = None
        self.warnings = []

        # Parse state
        self._source = None
        self._line_number = None
        self._section = None
        self._group = None
        self._region = None
        self._building = None

    def load(self, filepath):
        """
        Parses an SFZ file.

        Args:
            filepath: The path to the .sfz file.

        Returns:
            The parsed Instrument.
        """
        filepath = Path(filepath)
        if self.verbose:
            print(f"Parsing file: {filepath}")

        with open(filepath, "r", encoding=self.encoding, errors="replace") as f:
            instrument = self.parse_lines(f, source=filepath)

        if self.verbose:
            print(f"  Loaded: {len(instrument)} regions")
            for warning in self.warnings:
                print(f"  Warning: {warning}")
        return instrument

    def parse_string(self, text, source=None):
        """Parses SFZ text held in memory."""
        return self.parse_lines(text.splitlines(), source=source)

    def parse_lines(self, lines, source=None):
        """
        Parses an iterable of SFZ lines.

        On MalformedValue the partially built instrument is discarded and
        `self.instrument` is left as None.

        Args:
            lines: Iterable of text lines.
            source: Name of the input, used in error messages and for sample paths.

        Returns:
            The parsed Instrument.
        """
        self.instrument = None
        self.warnings = []
        self._source = source
        self._building = Instrument(source)
        # Opcodes before the first header act as group defaults
        self._group = Group()
        self._region = None
        self._section = SECTION_GROUP

        try:
            for line_number, line in enumerate(lines, start=1):
                self._line_number = line_number
                self._parse_line(line)
            instrument = self._building
        finally:
            self._building = None
            self._region = None
            self._line_number = None

        for region in instrument:
            region.freeze()
        self.instrument = instrument
        return instrument

    def _parse_line(self, line):
        """
        Splits one line into header and opcode strings and dispatches them.
        """
        comment_index = line.find("//")
        if comment_index != -1:
            line = line[:comment_index]

        # Headers may be written without a space before the first opcode
        line = _HEADER_PATTERN.sub(r" \1 ", line)

        pending = None
        pending_is_header = False
        for token in line.split():
            if token.startswith("<") and token.endswith(">"):
                self._dispatch(pending, pending_is_header)
                pending, pending_is_header = token, True
            elif "=" in token:
                self._dispatch(pending, pending_is_header)
                pending, pending_is_header = token, False
            elif pending is None or pending_is_header:
                self.warnings.append(UnknownOpcode(token, line_number=self._line_number))
            else:
                pending = f"{pending} {token}"

        # End of line
        self._dispatch(pending, pending_is_header)

    def _dispatch(self, text, is_header):
        if text is None:
            return
        if is_header:
            self._push_header(text)
        else:
            self._push_opcode(text)

    def _push_header(self, header):
        if header == HEADER_GROUP:
            self._section = SECTION_GROUP
            self._group.reset()
        elif header == HEADER_REGION:
            self._section = SECTION_REGION
            self._region = self._building.add_region(self._group.create_region())
        elif header == HEADER_CONTROL:
            self._section = SECTION_CONTROL
        else:
            self._section = None
            self.warnings.append(UnknownHeader(header, line_number=self._line_number))

    def _push_opcode(self, text):
        if self._section == SECTION_REGION:
            target = self._region
        elif self._section == SECTION_GROUP:
            target = self._group
        else:
            return

        opcode, _, value = text.partition("=")
        try:
            warning = apply_opcode(target, opcode, value)
        except MalformedValue as e:
            raise MalformedValue(e.opcode, e.value, self._section, self._line_number, self._source) from None

        if warning is not None:
            self.warnings.append(UnknownOpcode(warning.opcode, warning.value, self._line_number))


def load(filepath, encoding="utf-8", verbose=False):
    """Parses an SFZ file and returns its Instrument."""
    return SfzParser(encoding=encoding, verbose=verbose).load(filepath)


def loads(text, source=None):
    """Parses SFZ text and returns its Instrument."""
    return SfzParser().parse_string(text, source=source)
