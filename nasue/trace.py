"""Map the hexadecimal trace mask to logging levels."""

import logging

TRACE_ERROR = 0x01
TRACE_WARNING = 0x02
TRACE_INFO = 0x04
TRACE_DEBUG = 0x08

# Most verbose first.
_LEVELS = (
    (TRACE_DEBUG, logging.DEBUG),
    (TRACE_INFO, logging.INFO),
    (TRACE_WARNING, logging.WARNING),
    (TRACE_ERROR, logging.ERROR),
)


def trace_mask_to_level(mask: int) -> int:
    """Return the logging level for the most verbose bit set in mask."""
    for bit, level in _LEVELS:
        if mask & bit:
            return level
    return logging.WARNING


def configure_logging(mask: int):
    """Set up root logging and give the nasue logger the level selected by mask."""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("nasue").setLevel(trace_mask_to_level(mask))
