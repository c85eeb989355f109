"""
Taskdeck Event Log — structured JSONL events behind the module loggers.

Pieces:
- LogEntry: one event bound for {directory}/{source}/{category}/{day}.jsonl
- FileLogger: appends entries, reads them back newest first, prunes old days
- AsyncLogQueue: bounded hand-off to a daemon writer thread
- Entry builders for data source calls, view-model events, bulk operations
- configure_logging(): applies LoggingConfig to stdlib logging and the queue

Module loggers (logging.getLogger("taskdeck.*")) stay the human-readable
channel. The event log is opt-in via logging.structured in taskdeck.yaml.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from queue import Empty, Full, Queue
from typing import Any, Dict, Iterator, List, Optional

from taskdeck.engine.config import LoggingConfig

logger = logging.getLogger("taskdeck.engine.logging")

# Event sources and the categories each one writes
SOURCE_CATEGORIES = {
    "datasource": ["execution", "performance"],
    "view_model": ["execution"],
    "bulk": ["execution"],
}


@dataclass(frozen=True)
class LogEntry:
    source: str
    category: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Daily JSONL files per source and category under one directory.

    A single lock serializes appends, so several writer threads may share
    one instance.
    """

    def __init__(self, log_dir: str = "logs"):
        self._log_dir = Path(log_dir)
        self._lock = threading.Lock()
        for source, categories in SOURCE_CATEGORIES.items():
            for category in categories:
                (self._log_dir / source / category).mkdir(parents=True, exist_ok=True)

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def path_for(self, source: str, category: str, day: Optional[date] = None) -> Path:
        day = day or date.today()
        return self._log_dir / source / category / f"{day.isoformat()}.jsonl"

    def write(self, entry: LogEntry) -> None:
        self.write_batch([entry])

    def write_batch(self, entries: List[LogEntry]) -> None:
        """Append entries, opening each target file once."""
        by_path: Dict[Path, List[str]] = {}
        for entry in entries:
            path = self.path_for(entry.source, entry.category)
            by_path.setdefault(path, []).append(entry.to_json())

        with self._lock:
            for path, lines in by_path.items():
                path.parent.mkdir(parents=True, exist_ok=True)
                with path.open("a", encoding="utf-8") as f:
                    f.write("\n".join(lines) + "\n")

    def query(
        self,
        source: str,
        category: str,
        *,
        days: int = 7,
        filters: Optional[Dict[str, Any]] = None,
        limit: int = 500,
    ) -> List[Dict[str, Any]]:
        """
        Entries for one source/category, newest first.

        Args:
            days: Number of past days to include besides today.
            filters: Exact-match constraints on top-level entry keys.
            limit: Cap on the number of entries returned.
        """
        today = date.today()
        found: List[Dict[str, Any]] = []
        for offset in range(days + 1):
            path = self.path_for(source, category, today - timedelta(days=offset))
            day_entries = [
                data for data in self._read(path)
                if not filters or all(data.get(k) == v for k, v in filters.items())
            ]
            found.extend(reversed(day_entries))
            if len(found) >= limit:
                break
        return found[:limit]

    @staticmethod
    def _read(path: Path) -> Iterator[Dict[str, Any]]:
        if not path.exists():
            return
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            logger.warning(f"Could not read event log {path}: {e}")
            return
        for line in lines:
            if not line.strip():
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError:
                logger.debug(f"Skipping malformed line in {path}")

    def prune(self, retention_days: int) -> int:
        """Delete daily files older than retention_days. Returns the number removed."""
        cutoff = (date.today() - timedelta(days=retention_days)).isoformat()
        removed = 0
        with self._lock:
            for path in self._log_dir.glob("*/*/*.jsonl"):
                if path.stem < cutoff:
                    path.unlink()
                    removed += 1
        if removed:
            logger.info(f"Pruned {removed} event log files older than {cutoff}")
        return removed


class AsyncLogQueue:
    """
    Bounded queue drained by a daemon thread.

    push() never blocks: when the queue is full the entry is dropped and
    counted. The writer wakes at least every flush_interval_ms and writes
    at most flush_batch_size entries per batch.
    """

    def __init__(
        self,
        file_logger: FileLogger,
        flush_interval_ms: int = 100,
        flush_batch_size: int = 50,
        max_queue_size: int = 10000,
    ):
        self._file_logger = file_logger
        self._interval = flush_interval_ms / 1000.0
        self._batch_size = flush_batch_size
        self._queue: Queue = Queue(maxsize=max_queue_size)
        self._stopping = threading.Event()
        self._writer: Optional[threading.Thread] = None
        self._dropped = 0
        self._written = 0

    @property
    def running(self) -> bool:
        return self._writer is not None and self._writer.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stopping.clear()
        self._writer = threading.Thread(target=self._run, name="taskdeck-log-flush", daemon=True)
        self._writer.start()
        logger.debug("Event log writer started")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the writer and flush whatever is still queued."""
        self._stopping.set()
        if self._writer is not None:
            self._writer.join(timeout=timeout)
            self._writer = None
        while True:
            batch = self._take(block=False)
            if not batch:
                break
            self._flush(batch)
        logger.debug(f"Event log writer stopped ({self._written} written, {self._dropped} dropped)")

    def push(self, entry: LogEntry) -> bool:
        """Queue entry without blocking. False when it had to be dropped."""
        try:
            self._queue.put_nowait(entry)
        except Full:
            self._dropped += 1
            return False
        return True

    def _run(self) -> None:
        while not self._stopping.is_set():
            batch = self._take(block=True)
            if batch:
                self._flush(batch)

    def _take(self, block: bool) -> List[LogEntry]:
        try:
            first = self._queue.get(timeout=self._interval) if block else self._queue.get_nowait()
        except Empty:
            return []
        batch = [first]
        while len(batch) < self._batch_size:
            try:
                batch.append(self._queue.get_nowait())
            except Empty:
                break
        return batch

    def _flush(self, batch: List[LogEntry]) -> None:
        try:
            self._file_logger.write_batch(batch)
        except OSError as e:
            logger.error(f"Event log write failed, {len(batch)} entries lost: {e}")
            self._dropped += len(batch)
        else:
            self._written += len(batch)

    @property
    def pending_count(self) -> int:
        return self._queue.qsize()

    @property
    def dropped_count(self) -> int:
        return self._dropped

    @property
    def written_count(self) -> int:
        return self._written


# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def _base_entry(event: str, level: str, **fields: Any) -> Dict[str, Any]:
    entry = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
    }
    entry.update({k: v for k, v in fields.items() if v is not None})
    return entry


def log_datasource_call(
    operation: str,
    duration_ms: float,
    *,
    success: bool,
    record_count: Optional[int] = None,
    task_id: Optional[str] = None,
    error: Optional[str] = None,
) -> LogEntry:
    """Build an entry for one TaskDataSource call."""
    data = _base_entry(
        "datasource_call",
        "INFO" if success else "ERROR",
        operation=operation,
        duration_ms=round(duration_ms, 2),
        success=success,
        record_count=record_count,
        task_id=task_id,
        error=error,
    )
    category = "performance" if success else "execution"
    return LogEntry(source="datasource", category=category, data=data)


def log_view_model_event(
    event: str,
    *,
    generation: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
    error: Optional[str] = None,
) -> LogEntry:
    """Build an entry for a view-model state transition."""
    data = _base_entry(
        event,
        "ERROR" if error else "INFO",
        generation=generation,
        details=details,
        error=error,
    )
    return LogEntry(source="view_model", category="execution", data=data)


def log_bulk_operation(
    operation: str,
    succeeded: int,
    failed: int,
    duration_ms: float,
) -> LogEntry:
    """Build an entry summarizing one fan-out mutation."""
    data = _base_entry(
        "bulk_operation",
        "WARNING" if failed else "INFO",
        operation=operation,
        succeeded=succeeded,
        failed=failed,
        duration_ms=round(duration_ms, 2),
    )
    return LogEntry(source="bulk", category="execution", data=data)


# ---------------------------------------------------------------------------
# Process-wide queue
# ---------------------------------------------------------------------------

_queue: Optional[AsyncLogQueue] = None


def init_logging(
    log_dir: str = "logs",
    flush_interval_ms: int = 100,
    flush_batch_size: int = 50,
    max_queue_size: int = 10000,
) -> AsyncLogQueue:
    """(Re)start the process-wide event queue writing under log_dir."""
    global _queue
    shutdown_logging()
    _queue = AsyncLogQueue(
        FileLogger(log_dir=log_dir),
        flush_interval_ms=flush_interval_ms,
        flush_batch_size=flush_batch_size,
        max_queue_size=max_queue_size,
    )
    _queue.start()
    logger.info(f"Structured event log enabled at {log_dir}")
    return _queue


def configure_logging(config: LoggingConfig) -> Optional[AsyncLogQueue]:
    """Apply a LoggingConfig: stdlib level for taskdeck.*, plus the queue if enabled."""
    logging.getLogger("taskdeck").setLevel(config.level)
    if not config.structured:
        return None
    queue_cfg = config.async_queue
    return init_logging(
        log_dir=config.directory,
        flush_interval_ms=queue_cfg.flush_interval_ms,
        flush_batch_size=queue_cfg.flush_batch_size,
        max_queue_size=queue_cfg.max_queue_size,
    )


def get_log_queue() -> Optional[AsyncLogQueue]:
    return _queue


def log(entry: LogEntry) -> bool:
    """Hand entry to the event queue. Dropped (False) when structured logging is off."""
    return _queue.push(entry) if _queue is not None else False


def shutdown_logging() -> None:
    global _queue
    queue, _queue = _queue, None
    if queue is not None:
        queue.stop()
