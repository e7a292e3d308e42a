import logging
import sys
from typing import Optional

# AWS SDK loggers are chatty below WARNING; they log signing internals at DEBUG
_SDK_LOGGERS = ("botocore", "boto3", "urllib3", "s3transfer")
_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: Optional[str] = "INFO") -> None:
    """
    Configure process-wide logging on a single stdout handler.
    Uvicorn's loggers are routed through the root handler so gateway and server
    lines share one format. SDK loggers follow the app only when it runs at DEBUG.
    """
    log_level = getattr(logging, str(level or "INFO").upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Reloads call this again; keep exactly one handler
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root_logger.addHandler(handler)
    logging.captureWarnings(True)

    for name in _UVICORN_LOGGERS:
        uv = logging.getLogger(name)
        uv.handlers.clear()
        uv.propagate = True

    sdk_level = logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    for name in _SDK_LOGGERS:
        logging.getLogger(name).setLevel(sdk_level)
