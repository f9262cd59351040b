# Copyright (c) 2025 bakajikara
#
# This file is licensed under the MIT License (MIT).
# See the LICENSE file in the project root for the full license text.

"""
Command-line interface for sfzutils.

Provides subcommands:
- dump: parse an SFZ file and write its regions as JSON
- match: show which regions a note event triggers
- check: report range and configuration problems

This module exposes small entry functions that can be used as console_scripts
entry points (they must be callables taking no arguments).
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path


from .parser import SfzParser
from .performance import Performance


def _controller_assignment(text):
    """Parses "N=V" into (controller, value)."""
    try:
        controller, value = (int(part) for part in text.split("=", 1))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected CONTROLLER=VALUE, got \"{text}\"") from None
    if not 0 <= controller <= 127:
        raise argparse.ArgumentTypeError(f"controller must be between 0 and 127, got {controller}")
    return controller, value


def _build_root_parser():
    p = argparse.ArgumentParser(prog="sfzutils", description="sfzutils command-line tool")
    sub = p.add_subparsers(dest="command", required=True)

    c_dump = sub.add_parser("dump", help="Parse an SFZ file and write its regions as JSON")
    c_dump.add_argument("input_file", help="Input SFZ file path")
    c_dump.add_argument("output_file", nargs="?", help="Output JSON file path (default: print to stdout)")
    c_dump.add_argument("-f", "--force", action="store_true", help="Force overwrite without confirmation")

    c_match = sub.add_parser("match", help="List the regions a note event triggers")
    c_match.add_argument("input_file", help="Input SFZ file path")
    c_match.add_argument("-k", "--key", type=int, required=True, help="MIDI key number (0-127)")
    c_match.add_argument("-v", "--velocity", type=int, default=100, help="Note velocity (default: 100)")
    c_match.add_argument("-c", "--channel", type=int, default=1, help="MIDI channel (1-16, default: 1)")
    c_match.add_argument("--release", action="store_true", help="Evaluate the note-off (release) instead of the note-on")
    c_match.add_argument("--cc", type=_controller_assignment, action="append", default=[], metavar="N=V", help="Controller value to set before the note (repeatable)")
    c_match.add_argument("--bend", type=int, default=0, help="Pitch bend (-8192-8192, default: 0)")
    c_match.add_argument("--bpm", type=float, default=120.0, help="Host tempo (default: 120)")
    c_match.add_argument("--rand", type=float, metavar="R", help="Random draw in [0, 1) (default: drawn from --seed)")
    c_match.add_argument("--seed", type=int, help="Seed for the random draw")

    c_check = sub.add_parser("check", help="Report range and configuration problems in an SFZ file")
    c_check.add_argument("input_file", help="Input SFZ file path")

    return p


def _print_warnings(parser):
    for warning in parser.warnings:
        print(f"Warning: {warning}", file=sys.stderr)


def _describe(region):
    sample = region.value_or("sample", "")
    return f"  region {region.id}: {sample}"


def main(argv=None):
    """
    Generic entry point for `python -m sfzutils` or package-level CLI.

    Returns exit code (0 on success).
    """
    argv = list(argv) if argv is not None else None
    parser = _build_root_parser()
    args = parser.parse_args(argv)

    try:
        sfz = Path(args.input_file)
        sfz_parser = SfzParser()
        instrument = sfz_parser.load(sfz)
        _print_warnings(sfz_parser)

        if args.command == "dump":
            text = json.dumps(instrument.to_dict(), indent=2, allow_nan=False)
            if not args.output_file:
                print(text)
                return 0

            out = Path(args.output_file)
            # Warn if output file exists (unless --force is used)
            if out.exists() and not args.force:
                response = input(f"Warning: \"{out}\" already exists. Overwrite? (y/n): ")
                if response.lower() != "y":
                    print("Dump cancelled.")
                    return 0

            out.write_text(text + "\n", encoding="utf-8")
            print(f"Wrote {len(instrument)} regions to: {out}")

        elif args.command == "match":
            if args.rand is not None and not 0.0 <= args.rand < 1.0:
                raise ValueError(f"Random draw must be in [0, 1), got {args.rand}")

            performance = Performance(instrument, seed=args.seed)
            performance.pitch_bend(args.bend)
            performance.set_bpm(args.bpm)
            for controller, value in args.cc:
                performance.set_controller(controller, value)

            triggered = performance.note_on(args.channel, args.key, args.velocity, rand=args.rand)
            if args.release:
                triggered = performance.note_off(args.channel, args.key, rand=args.rand)

            kind = "release" if args.release else "note-on"
            print(f"{len(triggered)} region(s) triggered by {kind} key={args.key} velocity={args.velocity} channel={args.channel}")
            for region in triggered:
                print(_describe(region))

        elif args.command == "check":
            problems = instrument.validate()
            for problem in problems:
                print(problem)
            if problems:
                print(f"{len(problems)} problem(s) found in {len(instrument)} regions.")
                return 1
            print(f"No problems found in {len(instrument)} regions.")

        else:
            parser.print_help()
            return 2
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
