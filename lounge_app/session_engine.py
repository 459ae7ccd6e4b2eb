from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from lounge_app.data_sources.daily_log import DailyLogStore
from lounge_app.data_sources.device_inventory import DeviceInventoryClient
from lounge_app.data_sources.member_directory import MemberDirectoryClient
from lounge_app.data_sources.session_store import SessionSnapshotStore
from lounge_app.duration import format_duration
from lounge_app.errors import (
    AlreadyAssigned,
    DeviceBusy,
    DeviceNotFound,
    DuplicateSession,
    InvalidCheckIn,
    LogStoreError,
    LoungeError,
    MemberDirectoryError,
    SameDevice,
    SessionNotFound,
    SessionNotQueued,
    SessionQueued,
    SwitchAndRollbackFailed,
)
from lounge_app.logging_orchestrator import LoggingOrchestrator
from lounge_app.models import (
    QUEUE_DEVICE_ID,
    CheckoutReceipt,
    Device,
    LogEntry,
    Member,
    Session,
)
from lounge_app.refresh_signal import RefreshSignal


SwitchOutcome = Literal["success", "rolled_back", "inconsistent"]


@dataclass(slots=True)
class SwitchResult:
    outcome: SwitchOutcome
    identity: str
    from_device_id: int
    to_device_id: int
    session: Session | None = None
    forward_error: LoungeError | None = None
    rollback_error: LoungeError | None = None


@dataclass(slots=True)
class SessionEngine:
    """Authoritative device and session tables plus every transition on them.

    All public operations take one re-entrant lock, so a device-table update
    and its session-table counterpart are never observed half-applied. Log
    writes run on a single background worker in submission order.
    """

    device_inventory: DeviceInventoryClient
    session_store: SessionSnapshotStore
    daily_log: DailyLogStore
    member_directory: MemberDirectoryClient
    refresh_signal: RefreshSignal
    logger: LoggingOrchestrator
    clock: Callable[[], datetime] = datetime.now
    _sessions: list[Session] = field(init=False)
    _lock: threading.RLock = field(init=False)
    _log_writer: ThreadPoolExecutor = field(init=False)
    _pending_writes: list[Future] = field(init=False)

    def __post_init__(self) -> None:
        self._lock = threading.RLock()
        self._log_writer = ThreadPoolExecutor(max_workers=1, thread_name_prefix="lounge-log")
        self._pending_writes = []
        self._sessions = []

        seen: set[str] = set()
        for session in self.session_store.load():
            if session.identity in seen:
                self.logger.warning(f"Dropping duplicate persisted session for user_id={session.identity}.")
                continue
            seen.add(session.identity)
            self._sessions.append(session)

        orphans, conflicts = self.device_inventory.reconcile(self._sessions)
        for orphan in orphans:
            self.logger.warning(
                f"Persisted session user_id={orphan.identity} references unknown device {orphan.device_id}."
            )
        for conflict in conflicts:
            self.logger.warning(
                f"Persisted session user_id={conflict.identity} shares workstation {conflict.device_id} "
                f"with user_id={self.device_inventory.get_device(conflict.device_id).occupied_by}; moved to queue."
            )
            conflict.device_id = QUEUE_DEVICE_ID
        if conflicts:
            self._persist()
        self.logger.info(f"Session engine loaded {len(self._sessions)} active session(s).")

    # ---------- queries ----------

    def sessions(self) -> list[Session]:
        with self._lock:
            return list(self._sessions)

    def get_session(self, identity: str) -> Session | None:
        with self._lock:
            return self._find_session(identity)

    def queued_sessions(self) -> list[Session]:
        with self._lock:
            return [session for session in self._sessions if session.is_queued]

    def sessions_on_device(self, device_id: int) -> list[Session]:
        with self._lock:
            return [session for session in self._sessions if session.device_id == device_id]

    def devices(self) -> list[Device]:
        with self._lock:
            return self.device_inventory.all_devices()

    def get_device(self, device_id: int) -> Device | None:
        with self._lock:
            return self.device_inventory.get_device(device_id)

    def today_log(self) -> list[LogEntry]:
        try:
            return self.daily_log.read_entries()
        except LogStoreError as exc:
            self.logger.warning(f"Error reading daily log: {exc}")
            return []

    # ---------- transitions ----------

    def check_in(self, name: str, identity: str, device_id: int = QUEUE_DEVICE_ID) -> Session:
        with self._lock:
            session = self._check_in_locked(name, identity, device_id)
        self.refresh_signal.post()
        return session

    def check_out(self, identity: str) -> CheckoutReceipt:
        with self._lock:
            receipt = self._check_out_locked(identity)
        self.refresh_signal.post()
        return receipt

    def remove_from_queue(self, identity: str) -> CheckoutReceipt:
        with self._lock:
            session = self._require_session(identity)
            if not session.is_queued:
                raise SessionNotQueued(identity, session.device_id)
            receipt = self._check_out_locked(identity)
        self.refresh_signal.post()
        return receipt

    def assign_queued_session(self, identity: str, device_id: int) -> Session:
        with self._lock:
            session = self._require_session(identity)
            if not session.is_queued:
                raise AlreadyAssigned(identity, session.device_id)
            self._require_available_device(device_id)

            self.device_inventory.mark_occupied(device_id, identity)
            session.device_id = device_id
            self._persist()
            self._dispatch_log_write(
                f"assign user_id={identity} to device {device_id}",
                self._patch_assigned_entry,
                identity,
                session.checked_in_at,
                device_id,
            )
            self.logger.info(f"Queued user_id={identity} assigned to device {device_id}.")
        self.refresh_signal.post()
        return session

    def switch_station(self, identity: str, new_device_id: int) -> SwitchResult:
        with self._lock:
            session = self._require_session(identity)
            if session.is_queued:
                raise SessionQueued(identity)
            if session.device_id == new_device_id:
                raise SameDevice(identity, new_device_id)
            self._require_available_device(new_device_id)
            result = self._run_switch(session, new_device_id)
        self.refresh_signal.post()

        if result.outcome == "inconsistent":
            self.logger.error(
                f"Switch of user_id={identity} from device {result.from_device_id} to {result.to_device_id} "
                f"failed and rollback failed; manual reconciliation required."
            )
            raise SwitchAndRollbackFailed(
                identity,
                result.from_device_id,
                result.to_device_id,
                result.forward_error,
                result.rollback_error,
            )
        if result.outcome == "rolled_back":
            self.logger.warning(
                f"Switch of user_id={identity} to device {result.to_device_id} failed; "
                f"restored to device {result.from_device_id}: {result.forward_error}"
            )
            raise result.forward_error
        self.logger.info(f"User_id={identity} switched from device {result.from_device_id} to {result.to_device_id}.")
        return result

    # ---------- log write dispatch ----------

    def flush(self, timeout: float | None = None) -> None:
        """Block until every dispatched log write has finished."""
        with self._lock:
            pending = list(self._pending_writes)
        wait(pending, timeout=timeout)

    def close(self) -> None:
        self.flush()
        self._log_writer.shutdown(wait=True)

    # ---------- internals (caller holds the lock) ----------

    def _find_session(self, identity: str) -> Session | None:
        for session in self._sessions:
            if session.identity == identity:
                return session
        return None

    def _require_session(self, identity: str) -> Session:
        session = self._find_session(identity)
        if session is None:
            raise SessionNotFound(identity)
        return session

    def _require_available_device(self, device_id: int) -> Device:
        device = self.device_inventory.get_device(device_id)
        if device is None:
            raise DeviceNotFound(device_id)
        if not self.device_inventory.is_available(device):
            raise DeviceBusy(device_id, device.occupied_by)
        return device

    def _check_in_locked(self, name: str, identity: str, device_id: int) -> Session:
        name, identity = name.strip(), identity.strip()
        if not name or not identity:
            raise InvalidCheckIn(name, identity)
        existing = self._find_session(identity)
        if existing is not None:
            raise DuplicateSession(identity, existing.name, existing.device_id)
        if device_id != QUEUE_DEVICE_ID:
            self._require_available_device(device_id)
            self.device_inventory.mark_occupied(device_id, identity)

        session = Session(identity=identity, name=name, checked_in_at=self.clock(), device_id=device_id)
        self._sessions.append(session)
        self._enroll_if_new(name, identity)
        self._persist()
        self._dispatch_log_write(
            f"check-in user_id={identity}",
            self.daily_log.append_entry,
            LogEntry(name=name, identity=identity, device_id=device_id, checked_in_at=session.checked_in_at),
        )
        where = "queue" if session.is_queued else f"device {device_id}"
        self.logger.info(f"User {name} (user_id={identity}) checked in to {where}.")
        return session

    def _check_out_locked(self, identity: str) -> CheckoutReceipt:
        session = self._require_session(identity)
        checked_out_at = self.clock()
        usage_time = format_duration(checked_out_at - session.checked_in_at)

        self._sessions.remove(session)
        if not session.is_queued and self.device_inventory.get_device(session.device_id) is not None:
            remaining = sum(1 for other in self._sessions if other.device_id == session.device_id)
            self.device_inventory.release(session.device_id, remaining)

        self._persist()
        self._dispatch_log_write(
            f"check-out user_id={identity}",
            self._patch_closed_entry,
            session,
            checked_out_at,
        )
        self.logger.info(
            f"User {session.name} (user_id={identity}) checked out of "
            f"{'queue' if session.is_queued else f'device {session.device_id}'} after {usage_time}."
        )
        return CheckoutReceipt(session=session, checked_out_at=checked_out_at, usage_time=usage_time)

    def _run_switch(self, session: Session, new_device_id: int) -> SwitchResult:
        old_device_id = session.device_id
        self._check_out_locked(session.identity)

        forward_error: LoungeError | None = None
        try:
            moved = self._check_in_locked(session.name, session.identity, new_device_id)
        except LoungeError as exc:
            forward_error = exc
        else:
            return SwitchResult("success", session.identity, old_device_id, new_device_id, session=moved)

        try:
            restored = self._check_in_locked(session.name, session.identity, old_device_id)
        except LoungeError as exc:
            return SwitchResult(
                "inconsistent",
                session.identity,
                old_device_id,
                new_device_id,
                forward_error=forward_error,
                rollback_error=exc,
            )
        return SwitchResult(
            "rolled_back",
            session.identity,
            old_device_id,
            new_device_id,
            session=restored,
            forward_error=forward_error,
        )

    def _enroll_if_new(self, name: str, identity: str) -> None:
        if self.member_directory.get_member(identity) is not None:
            return
        try:
            self.member_directory.enroll(Member(name=name, identity=identity))
        except MemberDirectoryError as exc:
            self.logger.warning(f"Enrolment of user_id={identity} failed: {exc}")
        else:
            self.logger.info(f"Enrolled new member {name} (user_id={identity}).")

    def _persist(self) -> None:
        try:
            self.session_store.save(self._sessions)
        except OSError as exc:
            self.logger.error(f"Error writing session snapshot {self.session_store.path}: {exc}")

    def _dispatch_log_write(self, description: str, task: Callable, *args) -> None:
        future = self._log_writer.submit(self._run_log_write, description, task, *args)
        self._pending_writes.append(future)
        future.add_done_callback(self._forget_write)

    def _forget_write(self, future: Future) -> None:
        with self._lock:
            if future in self._pending_writes:
                self._pending_writes.remove(future)

    def _run_log_write(self, description: str, task: Callable, *args) -> None:
        try:
            task(*args)
        except LogStoreError as exc:
            self.logger.warning(f"Daily log write failed ({description}): {exc}")

    # ---------- log patch tasks (run on the log worker) ----------

    def _patch_closed_entry(self, session: Session, checked_out_at: datetime) -> None:
        entry = self.daily_log.close_entry(
            session.identity,
            session.device_id,
            session.checked_in_at,
            checked_out_at,
        )
        if entry is None:
            self.logger.warning(
                f"No matching check-in for user {session.name} (user_id={session.identity}) "
                f"device {session.device_id}."
            )

    def _patch_assigned_entry(self, identity: str, checked_in_at: datetime, device_id: int) -> None:
        entry = self.daily_log.assign_entry(identity, checked_in_at, device_id)
        if entry is None:
            self.logger.warning(f"No queued log entry for user_id={identity} to assign to device {device_id}.")
