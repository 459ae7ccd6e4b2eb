from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from lounge_app.data_sources.json_files import write_json_atomic
from lounge_app.logging_orchestrator import LoggingOrchestrator
from lounge_app.models import Session


def session_to_record(session: Session) -> dict:
    return {
        "id": session.identity,
        "name": session.name,
        "checkin_time": session.checked_in_at.isoformat(),
        "pc_id": session.device_id,
    }


def session_from_record(record: dict) -> Session:
    return Session(
        identity=str(record["id"]),
        name=str(record["name"]),
        checked_in_at=datetime.fromisoformat(record["checkin_time"]),
        device_id=int(record.get("pc_id", 0)),
    )


class SessionSnapshotStore:
    """Complete snapshot of active sessions, rewritten after every mutation."""

    def __init__(self, path: Path, logger: LoggingOrchestrator) -> None:
        self.path = Path(path)
        self.logger = logger

    def load(self) -> list[Session]:
        if not self.path.exists():
            return []
        try:
            with self.path.open(encoding="utf-8") as handle:
                records = json.load(handle)
            return [session_from_record(record) for record in records or []]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            self.logger.warning(f"Session snapshot {self.path} unreadable, starting empty: {exc}")
            return []

    def save(self, sessions: list[Session]) -> None:
        write_json_atomic(self.path, [session_to_record(session) for session in sessions])
