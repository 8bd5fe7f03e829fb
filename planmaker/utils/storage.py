"""Local persistence — JSON records on disk with expiry, plus a debounced writer.

Each key maps to one file holding {"data": ..., "timestamp": <epoch seconds>}.
When the storage directory cannot be used, records live in memory for the
rest of the process instead.
"""

import json
import re
import sys
import threading
import time
from pathlib import Path
from typing import Any, Callable

_KEY_RE = re.compile(r"[^A-Za-z0-9_.-]")


class JsonFileStorage:
    """Key/value store of timestamped JSON records under a single directory."""

    def __init__(self, directory: Path | str, prefix: str = "planmaker",
                 clock: Callable[[], float] = time.time):
        self.directory = Path(directory)
        self.prefix = prefix
        self.clock = clock
        self._memory: dict[str, dict] = {}
        self._available: bool | None = None

    def is_available(self) -> bool:
        """Return True if the directory is writable. The answer is cached."""
        if self._available is not None:
            return self._available
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            probe = self.directory / f"{self.prefix}_test"
            probe.write_text("test", encoding="utf-8")
            probe.unlink()
            self._available = True
        except OSError as exc:
            print(
                f"[planmaker] Warning: storage directory {self.directory} is not usable "
                f"({exc}). Falling back to in-memory storage.",
                file=sys.stderr,
            )
            self._available = False
        return self._available

    def reset_availability(self) -> None:
        self._available = None

    def _path(self, key: str) -> Path:
        return self.directory / f"{self.prefix}_{_KEY_RE.sub('_', key)}.json"

    def _read_record(self, key: str) -> dict | None:
        if not self.is_available():
            return self._memory.get(key)
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            print(f"[planmaker] Warning: could not read {path.name}: {exc}", file=sys.stderr)
            self.remove(key)
            return None

    def load(self, key: str, max_age: float | None = None) -> Any:
        """Return the stored data for key, or None if missing, malformed or older than max_age seconds."""
        record = self._read_record(key)
        if record is None:
            return None

        if (
            not isinstance(record, dict)
            or "data" not in record
            or not isinstance(record.get("timestamp"), (int, float))
        ):
            self.remove(key)
            return None

        if max_age is not None and self.clock() - record["timestamp"] > max_age:
            self.remove(key)
            return None

        return record["data"]

    def save(self, key: str, data: Any) -> None:
        record = {"data": data, "timestamp": self.clock()}
        if self.is_available():
            try:
                self._path(key).write_text(json.dumps(record), encoding="utf-8")
                return
            except OSError as exc:
                print(f"[planmaker] Warning: failed to save '{key}': {exc}", file=sys.stderr)
        self._memory[key] = record

    def remove(self, key: str) -> None:
        self._memory.pop(key, None)
        if self.is_available():
            self._path(key).unlink(missing_ok=True)


class DebouncedWriter:
    """Coalesce bursts of writes: each schedule() restarts a pending-flush timer.

    With a delay of 0 the write happens synchronously inside schedule().
    """

    def __init__(self, delay: float, write: Callable[[Any], None]):
        self.delay = delay
        self._write = write
        self._pending: Any = None
        self._has_pending = False
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()

    def schedule(self, value: Any) -> None:
        with self._lock:
            self._pending = value
            self._has_pending = True
            self._cancel_timer()
            if self.delay > 0:
                self._timer = threading.Timer(self.delay, self.flush)
                self._timer.daemon = True
                self._timer.start()
                return
        self.flush()

    def flush(self) -> None:
        """Write the pending value now, if any."""
        with self._lock:
            self._cancel_timer()
            if not self._has_pending:
                return
            value = self._pending
            self._pending = None
            self._has_pending = False
        self._write(value)

    @property
    def pending(self) -> bool:
        return self._has_pending

    def dispose(self) -> None:
        """Cancel any pending write without flushing it."""
        with self._lock:
            self._cancel_timer()
            self._pending = None
            self._has_pending = False

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
