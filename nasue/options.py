"""Option table for the NAS UE process command line."""

import enum
from dataclasses import dataclass, field
from typing import Iterator, List


NULL_VALUE = "NULL"

DEFAULT_COMMAND_NAME = "NASprocess"
DEFAULT_UE_ID = "1"
DEFAULT_TRACE_LEVEL = "0"
DEFAULT_NETWORK_HOST = "localhost"
DEFAULT_USER_PORT = "10000"
DEFAULT_NETWORK_PORT = "12000"


class Option(enum.IntEnum):
    """Slots of the option table, in the order options are declared."""

    UE_ID = 0
    TRACE_LEVEL = 1
    USER_HOST = 2
    NETWORK_HOST = 3
    USER_PORT = 4
    NETWORK_PORT = 5
    DEVICE_PATH = 6
    DEVICE_ATTR = 7


NB_OPTIONS = len(Option)


@dataclass
class OptionDescriptor:
    """One command-line flag: its name, placeholder, help text and current value."""

    name: str
    arg: str
    usage: str
    default: str
    value: str = field(init=False)

    def __post_init__(self):
        self.value = self.default


# (name, placeholder, usage, default), one entry per Option slot.
_OPTION_DEFS = {
    Option.UE_ID: ("-ueid", "<ueid>", "UE identifier", DEFAULT_UE_ID),
    Option.TRACE_LEVEL: ("-trace", "<mask>", "Logging trace level", DEFAULT_TRACE_LEVEL),
    Option.USER_HOST: ("-uhost", "<uhost>", "User app layer's hostname", NULL_VALUE),
    Option.NETWORK_HOST: ("-nhost", "<nhost>", "Network layer's hostname", DEFAULT_NETWORK_HOST),
    Option.USER_PORT: ("-uport", "<uport>", "User app layer's port number", DEFAULT_USER_PORT),
    Option.NETWORK_PORT: ("-nport", "<nport>", "Network layer's port number", DEFAULT_NETWORK_PORT),
    Option.DEVICE_PATH: ("-dev", "<devpath>", "Device pathname", NULL_VALUE),
    Option.DEVICE_ATTR: ("-params", "<params>", "Device attribute parameters", NULL_VALUE),
}


class OptionTable:
    """Ordered set of option descriptors, indexed by Option."""

    def __init__(self, command_name: str = DEFAULT_COMMAND_NAME):
        self.command_name = command_name
        self.descriptors: List[OptionDescriptor] = [
            OptionDescriptor(*_OPTION_DEFS[opt]) for opt in Option
        ]

    @property
    def count(self) -> int:
        """Number of descriptors in the table."""
        return len(self.descriptors)

    def __getitem__(self, opt: Option) -> OptionDescriptor:
        return self.descriptors[opt]

    def __iter__(self) -> Iterator[OptionDescriptor]:
        return iter(self.descriptors)

    def __len__(self) -> int:
        return self.count


def new_option_table() -> OptionTable:
    """Return a fresh table with every option at its default value."""
    return OptionTable()


def get_option_count(table: OptionTable) -> int:
    """Return the number of options declared in table."""
    return table.count
