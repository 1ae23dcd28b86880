"""Process-wide logging setup, called once from ``create_app()``."""

import logging

_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger with a single stream handler."""
    logging.basicConfig(level=level.upper(), format=_FORMAT)
    logging.getLogger().setLevel(level.upper())
    # httpx logs every request at INFO; keep it quiet unless debugging
    logging.getLogger("httpx").setLevel(logging.WARNING)
