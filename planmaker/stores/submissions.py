"""SubmissionMetadataStore — the latest clarification job id per plan.

One live value per plan: recording replaces, never merges. With storage
attached, entries survive restarts until they expire.
"""

import sys
from datetime import datetime, timezone
from typing import Callable

from planmaker.state import SubmissionMetadata
from planmaker.utils.storage import DebouncedWriter, JsonFileStorage

STORAGE_KEY = "submission-metadata"


def _parse_timestamp(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def validate_metadata_state(data) -> dict[str, SubmissionMetadata]:
    """Keep only well-formed {plan_id: {job_id, submitted_at[, answers_hash]}} entries."""
    if not isinstance(data, dict):
        return {}

    validated: dict[str, SubmissionMetadata] = {}
    for plan_id, value in data.items():
        if not isinstance(value, dict):
            continue
        if not isinstance(value.get("job_id"), str) or not isinstance(value.get("submitted_at"), str):
            continue
        entry: SubmissionMetadata = {"job_id": value["job_id"], "submitted_at": value["submitted_at"]}
        if isinstance(value.get("answers_hash"), str):
            entry["answers_hash"] = value["answers_hash"]
        validated[plan_id] = entry

    dropped = len(data) - len(validated)
    if dropped:
        print(f"[planmaker] Warning: dropped {dropped} malformed submission record(s).", file=sys.stderr)
    return validated


class SubmissionMetadataStore:
    """Per-plan submission metadata with observers and optional persistence.

    Args:
        storage: When given, metadata is restored from and saved to it.
        debounce: Seconds to coalesce writes; 0 writes on every mutation.
        expiry_seconds: Entries submitted longer ago than this read as absent.
        clock: Returns "now" as an aware datetime (tests inject a fixed one).
    """

    def __init__(self, storage: JsonFileStorage | None = None, debounce: float = 0.0,
                 expiry_seconds: float | None = None, storage_key: str = STORAGE_KEY,
                 clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self._metadata: dict[str, SubmissionMetadata] = {}
        self._subscribers: list[Callable[["SubmissionMetadataStore"], None]] = []
        self._storage = storage
        self._storage_key = storage_key
        self._expiry_seconds = expiry_seconds
        self._clock = clock
        self._writer: DebouncedWriter | None = None

        if storage is not None:
            self._metadata = validate_metadata_state(storage.load(storage_key))
            self._writer = DebouncedWriter(debounce, self._save)

    def record(self, plan_id: str, job_id: str, submitted_at: str | None = None,
               answers_hash: str | None = None) -> SubmissionMetadata:
        """Replace the plan's metadata. submitted_at defaults to now (UTC, ISO-8601)."""
        entry: SubmissionMetadata = {
            "job_id": job_id,
            "submitted_at": submitted_at or self._clock().isoformat(),
        }
        if answers_hash:
            entry["answers_hash"] = answers_hash
        self._metadata[plan_id] = entry
        self._changed()
        return entry

    def get(self, plan_id: str) -> SubmissionMetadata | None:
        entry = self._metadata.get(plan_id)
        if entry is None:
            return None
        if self._is_expired(entry):
            self.clear(plan_id)
            return None
        return dict(entry)

    def clear(self, plan_id: str) -> None:
        if self._metadata.pop(plan_id, None) is not None:
            self._changed()

    def clear_all(self) -> None:
        self._metadata = {}
        self._changed()

    def subscribe(self, callback: Callable[["SubmissionMetadataStore"], None]) -> Callable[[], None]:
        """Register callback(store) for every mutation. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def _unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def flush(self) -> None:
        if self._writer is not None:
            self._writer.flush()

    def close(self) -> None:
        self.flush()
        if self._writer is not None:
            self._writer.dispose()

    def _is_expired(self, entry: SubmissionMetadata) -> bool:
        if self._expiry_seconds is None:
            return False
        submitted = _parse_timestamp(entry["submitted_at"])
        if submitted is None:
            return True
        return (self._clock() - submitted).total_seconds() > self._expiry_seconds

    def _changed(self) -> None:
        if self._writer is not None:
            self._writer.schedule({k: dict(v) for k, v in self._metadata.items()})
        for callback in list(self._subscribers):
            callback(self)

    def _save(self, state: dict) -> None:
        if state:
            self._storage.save(self._storage_key, state)
        else:
            self._storage.remove(self._storage_key)
