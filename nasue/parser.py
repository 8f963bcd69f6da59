"""Command-line parsing engine: fills an option table from argv and prints usage."""

import argparse
import logging
import os
import sys
from typing import List, Optional, Sequence, TextIO

from nasue.options import OptionTable

logger = logging.getLogger("nasue")


class OptionError(Exception):
    """Raised by the argument parser instead of exiting the process."""


class _TableArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        raise OptionError(message)

    def _get_option_tuples(self, option_string):
        # Option names match exactly, never by prefix.
        return []


def _build_parser(table: OptionTable) -> argparse.ArgumentParser:
    parser = _TableArgumentParser(
        prog=table.command_name,
        add_help=False,
        allow_abbrev=False,
    )
    for index, desc in enumerate(table):
        parser.add_argument(
            desc.name,
            dest=f"opt{index}",
            metavar=desc.arg,
            default=desc.value,
            help=desc.usage,
        )
    return parser


def _join_values(args: Sequence[str], table: OptionTable) -> List[str]:
    """Rewrite each "name value" pair as "name=value".

    The value is the next argument taken verbatim, even when it starts
    with a dash. Anything that is not exactly an option name is rejected.
    """
    placeholders = {desc.name: desc.arg for desc in table}
    joined = []
    it = iter(args)
    for token in it:
        name = token.split("=", 1)[0]
        if name not in placeholders:
            raise OptionError(f"unrecognized argument: {token}")
        if name == token:
            value = next(it, None)
            if value is None:
                raise OptionError(f"argument {name} {placeholders[name]}: expected one argument")
            token = f"{name}={value}"
        joined.append(token)
    return joined


def parse(argv: Sequence[str], table: OptionTable) -> bool:
    """Parse argv (program name first) into table values.

    Options not given keep their current value. On an unknown flag, a
    missing argument or a stray positional, the error is logged, the table
    is left unchanged and False is returned.
    """
    argv = list(argv)
    command = argv[0] if argv else ""
    parser = _build_parser(table)
    try:
        args = parser.parse_args(_join_values(argv[1:], table))
    except OptionError as e:
        logger.error("%s: %s", os.path.basename(command) or table.command_name, e)
        return False
    if command:
        table.command_name = os.path.basename(command)
    for index, desc in enumerate(table):
        desc.value = getattr(args, f"opt{index}")
    return True


def print_usage(table: OptionTable, file: Optional[TextIO] = None):
    """Write the option list, in table order, with placeholders and defaults."""
    out = file or sys.stderr
    out.write(f"Usage: {table.command_name} [options]\n")
    width = max(len(f"{d.name} {d.arg}") for d in table) + 2
    for desc in table:
        key = f"{desc.name} {desc.arg}"
        out.write(f"  {key.ljust(width)}{desc.usage} (default: {desc.default})\n")
