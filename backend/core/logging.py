import logging

from ops.ops_events import OPS_LOGGER_NAME

from .config import Settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(settings: Settings) -> None:
    """Configure application-wide logging based on settings.

    Uvicorn follows the app level. httpx logs one INFO line per upstream call,
    so it stays at WARNING unless the app runs at DEBUG. Ops events always
    pass through at INFO or lower.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(level=level, format=LOG_FORMAT)

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(logger_name).setLevel(level)

    upstream_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for logger_name in ("httpx", "httpcore"):
        logging.getLogger(logger_name).setLevel(upstream_level)

    logging.getLogger(OPS_LOGGER_NAME).setLevel(min(level, logging.INFO))
