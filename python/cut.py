#!/usr/bin/env python3
"""
Name: cut
Description: select byte, character or field positions from each line of a file
Author: Rich Lafferty, rich@alcor.concordia.ca (Original Perl Author)
License: perl
"""

import sys
import os
import argparse
import contextlib
import csv
import io
from enum import Enum
from typing import NamedTuple

import regex

__version__ = "1.0"

# One match per extended grapheme cluster (a user-perceived character).
GRAPHEME = regex.compile(r'\X')

DIGITS = frozenset('0123456789')

class PositionError(ValueError):
    """Base class for a malformed position list."""

class EmptySpecification(PositionError):
    def __init__(self):
        super().__init__('illegal list value: ""')

class InvalidToken(PositionError):
    def __init__(self, token: str):
        self.token = token
        super().__init__(f'illegal list value: "{token}"')

class ZeroValue(PositionError):
    def __init__(self):
        super().__init__('illegal list value: "0"')

class RangeOrderViolation(PositionError):
    def __init__(self, first: int, second: int):
        self.first = first
        self.second = second
        super().__init__(
            f"First number in range ({first}) must be lower than second number ({second})"
        )

class Mode(Enum):
    FIELDS = 'fields'
    BYTES = 'bytes'
    CHARS = 'chars'

class Extract(NamedTuple):
    """The selected extraction mode and the position list it applies."""
    mode: Mode
    positions: list

def is_number(text: str) -> bool:
    """Only ASCII digits count, so signs, whitespace and '' are rejected."""
    return bool(text) and set(text) <= DIGITS

def parse_number(text: str) -> int:
    """Converts an already validated numeric part, rejecting zero."""
    value = int(text)
    if value == 0:
        raise ZeroValue()
    return value

def parse_pos(spec: str) -> list:
    """
    Parses a position list such as "1,7,3-5" into a list of half-open,
    0-based ranges, e.g. [range(0, 1), range(6, 7), range(2, 5)].

    Ranges keep the order they were given in; nothing is sorted, merged
    or deduplicated. The first bad token rejects the whole list.
    """
    if not spec:
        raise EmptySpecification()

    positions = []
    for token in spec.split(','):
        first, hyphen, second = token.partition('-')
        # The whole token is checked before any number is converted,
        # so "0-a" reports the token and not the zero.
        if not is_number(first) or (hyphen and not is_number(second)):
            raise InvalidToken(token)

        if not hyphen:
            num = parse_number(first)
            positions.append(range(num - 1, num))
            continue

        # Both halves are checked for zero before comparing.
        low = parse_number(first)
        high = parse_number(second)
        if low >= high:
            raise RangeOrderViolation(low, high)
        positions.append(range(low - 1, high))

    return positions

def extract_fields(record: list, positions: list) -> list:
    """Selects fields from a parsed record; missing fields are skipped."""
    selected = []
    for span in positions:
        # Slicing clips to the record length, so no padding is produced.
        selected.extend(record[span.start:span.stop])
    return selected

def extract_bytes(line: str, positions: list) -> str:
    """
    Selects bytes from the UTF-8 encoding of a line. A range that cuts a
    multibyte character in half yields U+FFFD for the broken piece.
    """
    data = line.encode('utf-8')
    selected = b''.join(data[span.start:span.stop] for span in positions)
    return selected.decode('utf-8', errors='replace')

def extract_chars(line: str, positions: list) -> str:
    """Selects grapheme clusters from a line."""
    clusters = GRAPHEME.findall(line)
    return ''.join(
        ''.join(clusters[span.start:span.stop]) for span in positions
    )

@contextlib.contextmanager
def open_input(filename: str, newline=None):
    """
    Yields a readable text stream for a filename, or stdin for '-'.
    Files opened here are always closed; stdin is left alone.
    """
    if filename == '-':
        yield sys.stdin
        return
    with open(filename, 'r', encoding='utf-8', newline=newline) as stream:
        yield stream

def cut_fields(stream, positions: list, delimiter: str, out=None):
    """Re-emits the selected fields of every record using the same delimiter."""
    reader = csv.reader(stream, delimiter=delimiter, strict=True)
    writer = csv.writer(out or sys.stdout, delimiter=delimiter, lineterminator='\n')
    try:
        for record in reader:
            writer.writerow(extract_fields(record, positions))
    except csv.Error as e:
        raise csv.Error(f"line {reader.line_num}: {e}") from e

def cut_lines(stream, extractor, positions: list, out=None):
    """Writes one extracted line per input line."""
    out = out or sys.stdout
    for line in stream:
        print(extractor(line.rstrip('\n'), positions), file=out)

def cut_stream(stream, extract: Extract, delimiter: str, out=None):
    """Dispatches one opened source to the extractor for the selected mode."""
    if extract.mode is Mode.FIELDS:
        cut_fields(stream, extract.positions, delimiter, out)
    elif extract.mode is Mode.BYTES:
        cut_lines(stream, extract_bytes, extract.positions, out)
    else:
        cut_lines(stream, extract_chars, extract.positions, out)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Select byte, character or field positions from each line of a file.",
        usage="%(prog)s [-b list | -c list | -f list] [-d delim] [file ...]"
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )
    # Exactly one of the three lists picks the mode for the whole run.
    mode_group = parser.add_mutually_exclusive_group(required=True)
    mode_group.add_argument('-f', '--fields', dest='field_list', help='Select only these fields.')
    mode_group.add_argument('-b', '--bytes', dest='byte_list', help='Select only these bytes.')
    mode_group.add_argument('-c', '--chars', dest='char_list', help='Select only these characters.')

    parser.add_argument('-d', '--delimiter', default='\t',
                        help="Field delimiter, a single byte (default: TAB).")
    parser.add_argument('files', nargs='*', default=['-'],
                        help="Files to process. Reads from stdin if none are given or for '-'.")
    return parser

def select_mode(args: argparse.Namespace) -> Extract:
    """Parses whichever position list was given into the run's Extract."""
    if args.field_list is not None:
        return Extract(Mode.FIELDS, parse_pos(args.field_list))
    if args.byte_list is not None:
        return Extract(Mode.BYTES, parse_pos(args.byte_list))
    return Extract(Mode.CHARS, parse_pos(args.char_list))

def check_delimiter(delimiter: str):
    """Returns why a delimiter can't separate fields, or None if it can."""
    if len(delimiter.encode('utf-8')) != 1:
        return "must be a single byte"
    # csv reserves the quote character and line breaks.
    if delimiter in '"\r\n':
        return "cannot be a quote or line break"
    try:
        csv.writer(io.StringIO(), delimiter=delimiter, lineterminator='\n')
    except (TypeError, ValueError) as e:
        return str(e)
    return None

def run(argv: list, out=None) -> int:
    """Runs cut over argv and returns the exit status."""
    args = build_parser().parse_args(argv)
    program_name = os.path.basename(sys.argv[0])

    # --- Validate everything before touching any input ---
    problem = check_delimiter(args.delimiter)
    if problem:
        print(f'{program_name}: --delim "{args.delimiter}" {problem}', file=sys.stderr)
        return 1
    try:
        extract = select_mode(args)
    except PositionError as e:
        print(f"{program_name}: {e}", file=sys.stderr)
        return 1

    # --- Process each source on its own; a failure only skips that source ---
    exit_status = 0
    newline = '' if extract.mode is Mode.FIELDS else None
    for filename in args.files:
        try:
            with open_input(filename, newline=newline) as stream:
                cut_stream(stream, extract, args.delimiter, out)
        except OSError as e:
            print(f"{program_name}: {filename}: {e.strerror}", file=sys.stderr)
            exit_status = 1
        except (UnicodeDecodeError, csv.Error) as e:
            print(f"{program_name}: {filename}: {e}", file=sys.stderr)
            exit_status = 1

    return exit_status

def main():
    sys.exit(run(sys.argv[1:]))

if __name__ == "__main__":
    main()
