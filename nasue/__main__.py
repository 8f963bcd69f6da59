"""Entry point: parse the NAS options and run the user/network relay."""

import logging
import sys

from nasue import __version__
from nasue.relay import run_relay
from nasue.settings import NasSettings
from nasue.trace import configure_logging

logger = logging.getLogger("nasue")


def main(argv=None):
    settings = NasSettings()
    if not settings.get_options(argv):
        settings.print_usage(__version__)
        sys.exit(1)
    configure_logging(settings.trace_level)
    logger.debug(
        "%s: ueid=%d trace=0x%x uhost=%s uport=%s nhost=%s nport=%s dev=%s params=%s",
        settings.table.command_name, settings.ueid, settings.trace_level,
        settings.user_host, settings.user_port,
        settings.network_host, settings.network_port,
        settings.device_path, settings.device_params,
    )
    try:
        run_relay(settings)
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
