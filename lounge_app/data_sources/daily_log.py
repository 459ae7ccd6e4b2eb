from __future__ import annotations

import json
import threading
from collections.abc import Callable
from datetime import date, datetime
from pathlib import Path

from lounge_app.data_sources.json_files import write_json_atomic
from lounge_app.duration import format_duration
from lounge_app.errors import LogStoreError
from lounge_app.models import LogEntry


def entry_to_record(entry: LogEntry) -> dict:
    record = {
        "user_name": entry.name,
        "user_id": entry.identity,
        "pc_id": entry.device_id,
        "check_in_time": entry.checked_in_at.isoformat(),
    }
    if entry.checked_out_at is not None:
        record["check_out_time"] = entry.checked_out_at.isoformat()
    if entry.usage_time:
        record["usage_time"] = entry.usage_time
    return record


def entry_from_record(record: dict) -> LogEntry:
    checked_out_at = record.get("check_out_time")
    return LogEntry(
        name=record["user_name"],
        identity=record["user_id"],
        device_id=int(record["pc_id"]),
        checked_in_at=datetime.fromisoformat(record["check_in_time"]),
        checked_out_at=datetime.fromisoformat(checked_out_at) if checked_out_at else None,
        usage_time=record.get("usage_time") or None,
    )


def find_open_entry(
    entries: list[LogEntry],
    identity: str,
    device_id: int,
    checked_in_at: datetime,
) -> int | None:
    """Index of the newest open entry for this session, scanning newest to oldest.

    Duplicate-looking open entries resolve to the most recent one.
    """
    for index in range(len(entries) - 1, -1, -1):
        entry = entries[index]
        if (
            entry.identity == identity
            and entry.device_id == device_id
            and entry.checked_in_at == checked_in_at
            and entry.is_open
        ):
            return index
    return None


class DailyLogStore:
    """One JSON file per calendar day holding the full entry sequence."""

    def __init__(self, log_dir: Path, clock: Callable[[], datetime] = datetime.now) -> None:
        self.log_dir = Path(log_dir)
        self.clock = clock
        self._lock = threading.Lock()

    def path_for(self, day: date | None = None) -> Path:
        day = day or self.clock().date()
        return self.log_dir / f"lounge-{day.isoformat()}.json"

    def read_entries(self, day: date | None = None) -> list[LogEntry]:
        path = self.path_for(day)
        if not path.exists():
            return []
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise LogStoreError(f"read log: {path}: {exc}") from exc
        if not raw.strip():
            return []
        try:
            return [entry_from_record(record) for record in json.loads(raw)]
        except (ValueError, KeyError, TypeError) as exc:
            raise LogStoreError(f"unmarshal log: {path}: {exc}") from exc

    def write_entries(self, entries: list[LogEntry], day: date | None = None) -> None:
        path = self.path_for(day)
        try:
            write_json_atomic(path, [entry_to_record(entry) for entry in entries])
        except OSError as exc:
            raise LogStoreError(f"write log: {path}: {exc}") from exc

    def append_entry(self, entry: LogEntry) -> list[LogEntry]:
        with self._lock:
            entries = self.read_entries()
            entries.append(entry)
            self.write_entries(entries)
            return entries

    def close_entry(
        self,
        identity: str,
        device_id: int,
        checked_in_at: datetime,
        checked_out_at: datetime,
    ) -> LogEntry | None:
        with self._lock:
            entries = self.read_entries()
            index = find_open_entry(entries, identity, device_id, checked_in_at)
            if index is None:
                return None
            entry = entries[index]
            entry.checked_out_at = checked_out_at
            entry.usage_time = format_duration(checked_out_at - entry.checked_in_at)
            self.write_entries(entries)
            return entry

    def assign_entry(self, identity: str, checked_in_at: datetime, device_id: int) -> LogEntry | None:
        with self._lock:
            entries = self.read_entries()
            index = find_open_entry(entries, identity, 0, checked_in_at)
            if index is None:
                return None
            entry = entries[index]
            entry.device_id = device_id
            self.write_entries(entries)
            return entry
