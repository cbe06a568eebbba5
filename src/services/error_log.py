"""Diagnostic error log.

Failed operations are appended as one JSON object per line to
``<error_log_dir>/error_YYYY-MM-DD.log`` (UTC date), so each day gets
its own file. Writing is best effort: a failure to write is reported on
the application logger and never raised to the caller.
"""

import asyncio
import json
import traceback
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from src.config import settings
from src.logging_config import get_logger

logger = get_logger(__name__)

# Request headers that must never reach the log file
_REDACTED_HEADERS = frozenset({"authorization", "cookie", "x-api-key"})


def redact_headers(headers: Any) -> dict[str, str]:
    """Copy request headers, masking credentials."""
    return {
        key: ("[REDACTED]" if key.lower() in _REDACTED_HEADERS else value)
        for key, value in dict(headers).items()
    }


class ErrorLog:
    """Appends failure records to a daily-rotated JSON-lines file."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def path_for(self, when: datetime) -> Path:
        return self.directory / f"error_{when.strftime('%Y-%m-%d')}.log"

    def build_entry(
        self,
        error: BaseException | str,
        request_data: Any = None,
        now: datetime | None = None,
        **context: Any,
    ) -> dict[str, Any]:
        now = now or datetime.now(UTC)
        entry: dict[str, Any] = {"timestamp": now.isoformat()}
        if isinstance(error, BaseException):
            entry["error"] = str(error)
            entry["error_type"] = type(error).__name__
            entry["stack"] = "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )
        else:
            entry["error"] = error
            entry["error_type"] = None
            entry["stack"] = None
        entry["request_data"] = request_data
        entry.update(context)
        return entry

    def record(
        self,
        error: BaseException | str,
        request_data: Any = None,
        **context: Any,
    ) -> Path | None:
        """Append one entry; returns the file written, or None on failure."""
        now = datetime.now(UTC)
        entry = self.build_entry(error, request_data, now=now, **context)
        path = self.path_for(now)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(entry, default=str) + "\n")
        except OSError as e:
            logger.error("Error writing to log file", path=str(path), error=str(e))
            return None
        return path

    async def arecord(
        self,
        error: BaseException | str,
        request_data: Any = None,
        **context: Any,
    ) -> Path | None:
        """Async variant of ``record``; the file write runs in a worker thread."""
        return await asyncio.to_thread(self.record, error, request_data, **context)


_error_log: ErrorLog | None = None


def get_error_log() -> ErrorLog:
    """Return the process-wide error log (FastAPI dependency)."""
    global _error_log
    if _error_log is None:
        _error_log = ErrorLog(settings.error_log_dir)
    return _error_log
