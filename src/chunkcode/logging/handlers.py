"""Log formatters that render the pool slot context.

Both formatters read slot_id, job_id and segment_index from the record when
WorkerContextFilter has set them, and from the live slot context otherwise, so
a handler installed without the filter still tags slot output.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from chunkcode.logging.context import format_worker_tag, get_slot_context

SLOT_FIELDS = ("slot_id", "job_id", "segment_index")

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(worker_tag)s%(name)s: %(message)s"
TEXT_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"

# Attributes every LogRecord is born with; anything else arrived through extra=
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}
_CONTEXT_ATTRS = frozenset(SLOT_FIELDS) | {"worker_tag"}

# Top-level JSON key for each slot field
_JSON_KEYS = {"slot_id": "slot", "job_id": "job", "segment_index": "segment"}


def _slot_fields(record: logging.LogRecord) -> tuple[Any, Any, Any]:
    if hasattr(record, "slot_id"):
        return tuple(getattr(record, field, None) for field in SLOT_FIELDS)
    return get_slot_context()


class SlotTextFormatter(logging.Formatter):
    """Plain text, one line per record, with a "[S01:job:seg0003] " tag."""

    def __init__(self, fmt: str = TEXT_FORMAT, datefmt: str = TEXT_DATEFMT) -> None:
        super().__init__(fmt, datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "worker_tag"):
            record.worker_tag = format_worker_tag(*_slot_fields(record))
        return super().format(record)


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    Keys, in order:
    - ts: ISO-8601 UTC, millisecond precision
    - level, logger, msg
    - slot, job, segment: only when set, so one job's lines can be selected
      with a plain ``jq 'select(.job == "...")'``
    - extra: fields passed through ``extra=``
    - exc, stack: formatted traceback and stack, when present
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "ts": created.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        for field, value in zip(SLOT_FIELDS, _slot_fields(record)):
            if value is not None:
                entry[_JSON_KEYS[field]] = value

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
            and key not in _CONTEXT_ATTRS
            and not key.startswith("_")
        }
        if extra:
            entry["extra"] = extra

        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str)
