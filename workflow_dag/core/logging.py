# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Structured logging for the workflow engine.

Engine events go through log_event with execution_id / node_id style fields;
the JSON formatter lifts those fields to the top level of each line.
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Optional, Any


# Whatever a bare LogRecord carries is not an event field
_RECORD_ATTRS = frozenset(logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__) | {"message"}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, event fields included."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        log_data.update(
            (key, value) for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS
        )

        # Node outputs are not always JSON native
        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Simple text formatter for human-readable logs."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )


def get_logger(
    name: str,
    log_level: Optional[str] = None,
    log_format: Optional[str] = None
) -> logging.Logger:
    """
    Logger with a single stdout handler.

    Level and format default to the ``logging`` section of the engine config.
    """
    if log_level is None or log_format is None:
        from workflow_dag.core.config import get_config
        settings = get_config().logging
        log_level = log_level or settings.level
        log_format = log_format or settings.format

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, log_level.upper()))
    logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(JSONFormatter() if log_format == "json" else TextFormatter())
    logger.addHandler(console_handler)

    return logger


def log_event(logger: logging.Logger, event: str, level: str = "INFO", **kwargs: Any) -> None:
    """Log ``event`` at ``level`` with ``kwargs`` as structured fields."""
    getattr(logger, level.lower())(event, extra=kwargs)
