"""Typed access to the NAS UE command-line options."""

import sys
from typing import Optional, Sequence, TextIO

from nasue import parser
from nasue.options import Option, OptionTable, new_option_table

_HEX_DIGITS = {c: int(c, 16) for c in "0123456789abcdefABCDEF"}
_INT32_MASK = 0xFFFFFFFF


def _to_int32(value: int) -> int:
    value &= _INT32_MASK
    return value - (1 << 32) if value & 0x80000000 else value


def atohex(value: Optional[str]) -> int:
    """Convert the leading hexadecimal digits of value to an integer.

    Scanning stops at the first character that is not a hex digit; what
    follows is ignored. None, empty, or no leading hex digit gives 0.
    The result wraps as a signed 32-bit integer.
    """
    result = 0
    if not value:
        return result
    for c in value:
        digit = _HEX_DIGITS.get(c)
        if digit is None:
            break
        result = ((result << 4) + digit) & _INT32_MASK
    return _to_int32(result)


def atoi(value: Optional[str]) -> int:
    """Decimal prefix parse: leading whitespace, optional sign, digits. Never raises."""
    if not value:
        return 0
    s = value.lstrip()
    sign = 1
    if s[:1] in ("+", "-"):
        if s[0] == "-":
            sign = -1
        s = s[1:]
    end = 0
    while end < len(s) and s[end] in "0123456789":
        end += 1
    if end == 0:
        return 0
    return _to_int32(sign * int(s[:end]))


class NasSettings:
    """Command-line configuration of one NAS process.

    Owns an option table at its defaults until get_options() fills it.
    Accessors convert the current raw value on every read.
    """

    def __init__(self, table: Optional[OptionTable] = None):
        self.table = table if table is not None else new_option_table()

    def get_options(self, argv: Optional[Sequence[str]] = None) -> bool:
        """Fill the options from argv (sys.argv by default); False on a command-line error."""
        return parser.parse(sys.argv if argv is None else argv, self.table)

    def print_usage(self, version: str, file: Optional[TextIO] = None):
        """Print the option usage followed by the firmware version."""
        out = file or sys.stderr
        parser.print_usage(self.table, out)
        out.write(f"Version: {version}\n")

    @property
    def nb_options(self) -> int:
        """Number of command-line options."""
        return self.table.count

    def _value(self, opt: Option) -> str:
        return self.table[opt].value

    @property
    def ueid(self) -> int:
        return atoi(self._value(Option.UE_ID))

    @property
    def trace_level(self) -> int:
        return atohex(self._value(Option.TRACE_LEVEL))

    @property
    def user_host(self) -> str:
        return self._value(Option.USER_HOST)

    @property
    def network_host(self) -> str:
        return self._value(Option.NETWORK_HOST)

    @property
    def user_port(self) -> str:
        return self._value(Option.USER_PORT)

    @property
    def network_port(self) -> str:
        return self._value(Option.NETWORK_PORT)

    @property
    def device_path(self) -> str:
        return self._value(Option.DEVICE_PATH)

    @property
    def device_params(self) -> str:
        return self._value(Option.DEVICE_ATTR)
