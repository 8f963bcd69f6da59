"""NAS UE process: command-line options and the user/network relay."""

from nasue.settings import NasSettings, atohex

__version__ = "0.1.0"

__all__ = ["NasSettings", "atohex", "__version__"]
