import json
import logging
import os
from typing import Optional, Union


# Attributes every LogRecord has; anything else arrived through ``extra=``
_RECORD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with the store's ``extra=`` fields inlined.

    The store logs ``event_type``, ``path``, ``keys`` and ``backups_pruned``.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (name, value) for name, value in vars(record).items() if name not in _RECORD_ATTRS
        )
        return json.dumps(payload, default=str)


def configure_logging(level: Optional[Union[str, int]] = None) -> None:
    """Configure logging for a process hosting a store.

    Output is human friendly unless ``LOG_FORMAT=json`` is set, in which case
    each record becomes one JSON object.
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").upper()

    fmt = os.getenv("LOG_FORMAT", "plain").lower()
    if fmt == "json":
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logging.basicConfig(level=level, handlers=[handler], force=True)
    else:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%H:%M:%S",
            force=True,
        )
