"""Device attribute parameters and opening of the UE serial device."""

import logging
import re
from typing import Any, Dict

import serial

from nasue.options import NULL_VALUE

logger = logging.getLogger("nasue")

DEFAULT_BAUD = 115200

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


class DeviceError(ValueError):
    """Invalid device path or attribute parameters."""


def _to_bool(key: str, value: str) -> bool:
    v = value.lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise DeviceError(f"Device parameter {key} expects a boolean, got {value!r}")


def _to_int(key: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise DeviceError(f"Device parameter {key} expects an integer, got {value!r}") from None


def _choice(key: str, value, choices):
    if value not in choices:
        raise DeviceError(f"Device parameter {key} must be one of {choices}, got {value!r}")
    return value


def _baudrate(key, value):
    baud = _to_int(key, value)
    if baud <= 0:
        raise DeviceError(f"Device parameter {key} must be positive")
    return baud


def _bytesize(key, value):
    return _choice(key, _to_int(key, value), serial.Serial.BYTESIZES)


def _parity(key, value):
    return _choice(key, value.upper(), serial.Serial.PARITIES)


def _stopbits(key, value):
    try:
        bits = float(value)
    except ValueError:
        raise DeviceError(f"Device parameter {key} expects a number, got {value!r}") from None
    if bits.is_integer():
        bits = int(bits)
    return _choice(key, bits, serial.Serial.STOPBITS)


def _timeout(key, value):
    try:
        return float(value)
    except ValueError:
        raise DeviceError(f"Device parameter {key} expects a number, got {value!r}") from None


# parameter name -> (pyserial keyword, converter)
_PARAMS = {
    "baudrate": ("baudrate", _baudrate),
    "speed": ("baudrate", _baudrate),
    "bytesize": ("bytesize", _bytesize),
    "parity": ("parity", _parity),
    "stopbits": ("stopbits", _stopbits),
    "timeout": ("timeout", _timeout),
    "rtscts": ("rtscts", _to_bool),
    "xonxoff": ("xonxoff", _to_bool),
}


def parse_device_params(params: str) -> Dict[str, Any]:
    """Parse "key=value" tokens, separated by spaces or commas, into serial settings."""
    settings: Dict[str, Any] = {}
    if not params or params == NULL_VALUE:
        return settings
    for token in re.split(r"[\s,]+", params.strip()):
        if not token:
            continue
        key, sep, value = token.partition("=")
        key = key.lstrip("-").lower()
        if not sep or not value:
            raise DeviceError(f"Device parameter {token!r} is not of the form key=value")
        if key not in _PARAMS:
            raise DeviceError(f"Unknown device parameter {key!r}")
        name, convert = _PARAMS[key]
        settings[name] = convert(key, value)
    return settings


def open_device(path: str, params: str = NULL_VALUE) -> serial.Serial:
    """Open the serial device at path with the given attribute parameters."""
    if not path or path == NULL_VALUE:
        raise DeviceError("No device pathname given (-dev)")
    kwargs = {"baudrate": DEFAULT_BAUD}
    kwargs.update(parse_device_params(params))
    logger.debug("Opening device %s with %s", path, kwargs)
    return serial.Serial(port=path, **kwargs)
