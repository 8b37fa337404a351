"""Console logging setup for the vbo_telemetry package."""

import logging
import sys


class ConsoleHandler(logging.StreamHandler):
    """Stdout handler installed by setup_logging()"""

    def __init__(self):
        super().__init__(sys.stdout)


def setup_logging(log_level=logging.INFO):
    """Configure console logging for applications embedding vbo_telemetry"""

    # Create formatter - friendly without timestamps
    friendly_formatter = logging.Formatter(
        '%(levelname)-8s %(name)s: %(message)s'
    )

    package_logger = logging.getLogger("vbo_telemetry")
    package_logger.setLevel(log_level)

    # Avoid stacking console handlers on repeated calls
    for handler in list(package_logger.handlers):
        if isinstance(handler, ConsoleHandler):
            package_logger.removeHandler(handler)

    console_handler = ConsoleHandler()
    console_handler.setFormatter(friendly_formatter)
    package_logger.addHandler(console_handler)

    return package_logger
