from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import TextIO


# Record extras attached by the batch validator (see contractcheck.batch).
CONTEXT_KEYS = ("contract", "kind", "status", "error_code")

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _context(record: logging.LogRecord) -> dict[str, object]:
    out: dict[str, object] = {}
    for key in CONTEXT_KEYS:
        value = getattr(record, key, None)
        if value is not None:
            out[key] = value
    return out


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_context(record))
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ContractTextFormatter(logging.Formatter):
    """Plain-text lines with the contract context appended as ``[key=value ...]``."""

    def __init__(self) -> None:
        super().__init__(_TEXT_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        ctx = _context(record)
        if not ctx:
            return line
        head, sep, tail = line.partition("\n")
        suffix = " ".join(f"{k}={v}" for k, v in ctx.items())
        return f"{head} [{suffix}]{sep}{tail}"


def setup_logging(level: str = "INFO", *, json_output: bool = False, stream: TextIO | None = None) -> None:
    """Configure the root logger once.

    Logs go to stderr by default so reports printed on stdout stay parseable.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    lvl = getattr(logging, level.upper(), logging.INFO)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(JsonFormatter() if json_output else ContractTextFormatter())
    root.setLevel(lvl)
    root.addHandler(handler)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(lvl)
