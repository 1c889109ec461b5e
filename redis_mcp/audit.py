"""
Audit log of every request the server handles.

Entries are kept newest-first in a bounded in-memory window and appended
to a durable log file. Recording never raises to the caller.
"""

import json
import logging
import time
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Deque, List, Optional


logger = logging.getLogger(__name__)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _serialize(value: Any) -> Optional[str]:
    if value is None:
        return None
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError):
        return str(value)


@dataclass(frozen=True)
class AuditEntry:
    """One recorded dispatch attempt and its outcome."""
    id: int
    method: str
    params: str
    result: Optional[str]
    error: Optional[str]
    created_at: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "method": self.method,
            "params": self.params,
            "result": self.result,
            "error": self.error,
            "created_at": self.created_at,
        }

    def to_line(self) -> str:
        return (
            f"{self.created_at} | {self.method} | {self.params} | "
            f"{self.error or 'SUCCESS'} | RESPONSE: {self.result or 'null'}"
        )


class AuditLog:
    """
    Bounded in-memory audit window plus an append-only log file.

    Args:
        log_path: Durable log file, or None to keep entries in memory only
        max_entries: Size of the in-memory window
        max_bytes: Rotate the log file past this size (0 disables rotation)
        backup_count: Rotated files to keep
    """

    def __init__(
        self,
        log_path: Optional[Path] = None,
        max_entries: int = 1000,
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
    ):
        self.log_path = log_path
        self.max_entries = max_entries
        self._entries: Deque[AuditEntry] = deque(maxlen=max_entries)
        self._last_id = 0
        self._file_logger: Optional[logging.Logger] = None

        if log_path is not None:
            self._file_logger = self._open_sink(Path(log_path), max_bytes, backup_count)

    def _open_sink(self, path: Path, max_bytes: int, backup_count: int) -> Optional[logging.Logger]:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(
                path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
            )
        except OSError as e:
            logger.error(f"Failed to open audit log {path}: {e}")
            return None

        handler.setFormatter(logging.Formatter("%(message)s"))
        sink = logging.getLogger(f"{__name__}.file.{path}")
        sink.handlers = [handler]
        sink.setLevel(logging.INFO)
        sink.propagate = False
        return sink

    def _next_id(self) -> int:
        # Millisecond timestamp, bumped so ids stay strictly increasing.
        self._last_id = max(self._last_id + 1, int(time.time() * 1000))
        return self._last_id

    def _append(self, line: str) -> None:
        if self._file_logger is not None:
            self._file_logger.info(line)

    def record(
        self,
        method: str,
        params: Any,
        result: Any = None,
        error: Optional[Any] = None,
    ) -> AuditEntry:
        """Record a dispatch and return the stored entry."""
        entry = AuditEntry(
            id=self._next_id(),
            method=method,
            params=_serialize(params if params is not None else {}),
            result=_serialize(result),
            error=str(error) if error is not None else None,
            created_at=now_iso(),
        )
        self._entries.appendleft(entry)
        self._append(entry.to_line())
        return entry

    def record_operation(
        self,
        operation: str,
        key: str,
        error: Optional[Any] = None,
    ) -> None:
        """Append a Redis operation line to the durable log only."""
        self._append(f"{now_iso()} | REDIS: {operation} | KEY: {key} | {error or 'SUCCESS'}")

    def recent(self, limit: int = 50, offset: int = 0) -> List[AuditEntry]:
        """Entries newest-first, paged."""
        return list(self._entries)[offset:offset + limit]

    def close(self) -> None:
        if self._file_logger is not None:
            for handler in self._file_logger.handlers:
                handler.close()
            self._file_logger.handlers = []
            self._file_logger = None

    def __len__(self) -> int:
        return len(self._entries)
